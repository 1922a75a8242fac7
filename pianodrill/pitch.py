"""Pitch classes, note names and MIDI numbers.

Pitch classes are integers 0-11 spelled with sharps (``C, C#, D, ... B``). Flat
spellings are accepted on the way in and folded to sharps; they are never
produced.

Module-level constants:
- `NOTE_NAMES`: The twelve canonical (sharp) note names, indexed by pitch class.
- `NOTE_NAME_TO_PC`: Accepted spellings (sharp and flat) mapped to pitch classes.

None of these functions raise for unknown input. Lookups that fail return ``-1``
or ``None``.
"""

import typing


NOTE_NAMES: typing.Tuple[str, ...] = (
	"C",
	"C#",
	"D",
	"D#",
	"E",
	"F",
	"F#",
	"G",
	"G#",
	"A",
	"A#",
	"B",
)

NOTE_NAME_TO_PC: typing.Dict[str, int] = {
	"C": 0,
	"C#": 1,
	"Db": 1,
	"D": 2,
	"D#": 3,
	"Eb": 3,
	"E": 4,
	"Fb": 4,
	"F": 5,
	"F#": 6,
	"Gb": 6,
	"G": 7,
	"G#": 8,
	"Ab": 8,
	"A": 9,
	"A#": 10,
	"Bb": 10,
	"B": 11,
	"Cb": 11,
}

_ACCIDENTAL_REPLACEMENTS: typing.Dict[str, str] = {
	"♭": "b",
	"♯": "#",
}


def _fold_accidentals (name: str) -> str:

	for symbol, ascii_symbol in _ACCIDENTAL_REPLACEMENTS.items():
		name = name.replace(symbol, ascii_symbol)

	return name.strip()


def index_of (name: typing.Any) -> int:

	"""Return the pitch class (0-11) for a note name, or ``-1`` if unknown.

	Accepts sharp and flat spellings, with ASCII (``#``/``b``) or Unicode
	(``♯``/``♭``) accidentals. The letter must be upper case.

	Example:
		```python
		index_of("C")   # → 0
		index_of("Bb")  # → 10
		index_of("F♯")  # → 6
		index_of("H")   # → -1
		```
	"""

	if not isinstance(name, str):
		return -1

	return NOTE_NAME_TO_PC.get(_fold_accidentals(name), -1)


def spell (pitch_class: int) -> str:

	"""Return the canonical sharp spelling of a pitch class.

	Values outside 0-11 are reduced modulo 12, so ``spell(midi)`` also names
	the pitch class of a MIDI number.
	"""

	return NOTE_NAMES[pitch_class % 12]


def normalize_note_name (name: str) -> typing.Optional[str]:

	"""Fold any accepted spelling to the sharp spelling, or ``None`` if unknown.

	Example:
		```python
		normalize_note_name("Db")  # → "C#"
		normalize_note_name("B♭")  # → "A#"
		```
	"""

	pc = index_of(name)

	if pc == -1:
		return None

	return NOTE_NAMES[pc]


def is_pitch_class (value: typing.Any) -> bool:

	"""True when ``value`` is an int in 0-11 (bools excluded)."""

	return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 11


def midi_pitch_class (midi: int) -> int:

	"""Return the pitch class of a MIDI note number."""

	return midi % 12


def midi_octave (midi: int) -> int:

	"""Return the octave of a MIDI note number (middle C, 60, is octave 4)."""

	return midi // 12 - 1


def midi_of (pitch_class: int, octave: int) -> int:

	"""Return the MIDI number for a pitch class in an octave.

	Example:
		```python
		midi_of(0, 4)  # → 60 (C4)
		midi_of(9, 4)  # → 69 (A4)
		```
	"""

	return (octave + 1) * 12 + (pitch_class % 12)


def note_label (midi: int) -> str:

	"""Name a MIDI note number with its octave, e.g. ``60`` → ``"C4"``."""

	return f"{spell(midi)}{midi_octave(midi)}"


def to_pitch_class (value: typing.Any) -> int:

	"""Accept either a pitch class int or a note name; return 0-11 or ``-1``."""

	if isinstance(value, str):
		return index_of(value)

	if is_pitch_class(value):
		return typing.cast(int, value)

	return -1
