"""Parse absolute chord symbols such as ``Cmaj7``, ``Eₘ⁷`` or ``D/F♯``.

A symbol is ``Root[Quality][/Bass]``. The root is an upper-case letter ``A-G``
with an optional ``#`` or ``b``. The quality suffix is matched exactly (it is
case-sensitive: ``M7`` is major 7, ``m7`` is minor 7) against `SUFFIX_TO_KIND`.
A trailing ``/X`` names the bass; when ``X`` is a chord tone the inversion that
puts it lowest is chosen.

The display form produced by ``ChordToken.name()`` (``"C Major 7"``) is also
accepted so that rendered names always parse back.

Unlike the progression parser, these functions raise ``InvalidChord`` on bad
input.
"""

import logging
import re
import typing

import pianodrill.chord_text
import pianodrill.chords
import pianodrill.errors
import pianodrill.pitch
import pianodrill.voicings


logger = logging.getLogger(__name__)


SUFFIX_TO_KIND: typing.Dict[str, str] = {
	"": "major",
	"maj": "major",
	"M": "major",
	"m": "minor",
	"min": "minor",
	"-": "minor",
	"dim": "diminished",
	"°": "diminished",
	"o": "diminished",
	"aug": "augmented",
	"+": "augmented",
	"sus2": "sus2",
	"sus4": "sus4",
	"sus": "sus4",
	"7": "dominant7",
	"maj7": "major7",
	"M7": "major7",
	"Δ7": "major7",
	"Δ": "major7",
	"m7": "minor7",
	"min7": "minor7",
	"-7": "minor7",
	"dim7": "diminished7",
	"°7": "diminished7",
	"o7": "diminished7",
	"m7b5": "half_diminished7",
	"min7b5": "half_diminished7",
	"ø7": "half_diminished7",
	"ø": "half_diminished7",
	"6": "major6",
	"maj6": "major6",
	"M6": "major6",
	"add9": "add9",
	"maj9": "major9",
	"M9": "major9",
	"m9": "minor9",
	"min9": "minor9",
	"6/9": "six_nine",
	"69": "six_nine",
}

NAME_TO_KIND: typing.Dict[str, str] = {
	kind.name.lower(): kind_id for kind_id, kind in pianodrill.chords.CHORD_KINDS.items()
}

_SYMBOL_PATTERN = re.compile(r"^([A-G][#b]?)(.*)$")
_DISPLAY_PATTERN = re.compile(r"^([A-G][#b]?)\s+(.+)$")
_BASS_PATTERN = re.compile(r"^[A-G][#b]?$")

# Bar lines and whitespace always separate; a hyphen separates only when the
# next token starts, so "C-7" keeps its minor-seventh hyphen.
SEPARATOR_PATTERN = re.compile(r"[\s|]+|(?<=\S)-(?=[A-Gb#IViv])")


def _with_bass (root: int, kind: str, bass_name: str, text: str) -> pianodrill.chords.ChordToken:

	"""Build a slash chord, choosing the inversion that puts the bass lowest."""

	bass = pianodrill.pitch.index_of(bass_name)

	if bass == -1 or not _BASS_PATTERN.match(bass_name):
		raise pianodrill.errors.InvalidChord(text, f"unknown bass note {bass_name!r}")

	inversion = pianodrill.voicings.bass_inversion(pianodrill.chords.chord_tones(root, kind), bass)

	return pianodrill.chords.ChordToken(
		root = root,
		kind = kind,
		inversion = inversion if inversion is not None else 0,
		bass = bass
	)


def parse_chord_name (text: str) -> pianodrill.chords.ChordToken:

	"""Parse one chord symbol into a ``ChordToken``.

	Parameters:
		text: A lead-sheet symbol (``"Cmaj7"``, ``"Bbm"``, ``"G/B"``,
			``"Eₘ⁷"``) or a display name (``"C Major 7"``).

	Returns:
		The parsed chord.

	Raises:
		InvalidChord: If the text is not a recognisable chord.

	Example:
		```python
		parse_chord_name("Cmaj7")   # ChordToken(root=0, kind="major7")
		parse_chord_name("G/B")     # ChordToken(root=7, kind="major", inversion=1, bass=11)
		parse_chord_name("A Minor") # ChordToken(root=9, kind="minor")
		```
	"""

	normalized = pianodrill.chord_text.normalize_chord_text(text)

	if not normalized:
		raise pianodrill.errors.InvalidChord(text, "empty")

	display = _DISPLAY_PATTERN.match(normalized)

	if display is not None:
		kind = NAME_TO_KIND.get(display.group(2).lower())
		if kind is None:
			raise pianodrill.errors.InvalidChord(text, f"unknown chord name {display.group(2)!r}")
		return pianodrill.chords.ChordToken(root=pianodrill.pitch.index_of(display.group(1)), kind=kind)

	match = _SYMBOL_PATTERN.match(normalized)

	if match is None:
		raise pianodrill.errors.InvalidChord(text, "expected a root A-G")

	root = pianodrill.pitch.index_of(match.group(1))
	suffix = match.group(2)

	# Exact suffixes first so that "6/9" is not read as a slash chord.
	if suffix in SUFFIX_TO_KIND:
		return pianodrill.chords.ChordToken(root=root, kind=SUFFIX_TO_KIND[suffix])

	if "/" in suffix:
		quality, _, bass_name = suffix.rpartition("/")
		if quality in SUFFIX_TO_KIND:
			return _with_bass(root, SUFFIX_TO_KIND[quality], bass_name, text)

	raise pianodrill.errors.InvalidChord(text, f"unknown quality {suffix!r}")


def split_symbols (text: str, normalize: bool = True) -> typing.List[str]:

	"""Split lead-sheet text on spaces, bar lines and hyphens; drop empties.

	With ``normalize=False`` the tokens keep their original spelling (only
	invisible characters and odd spaces are cleaned), for error messages.
	"""

	if normalize:
		cleaned = pianodrill.chord_text.normalize_chord_text(text)
	else:
		cleaned = pianodrill.chord_text.clean_input_text(text)

	return [token for token in SEPARATOR_PATTERN.split(cleaned) if token]


def parse_chord_symbols (text: str) -> typing.List[pianodrill.chords.ChordToken]:

	"""Parse space- or pipe-separated lead-sheet text into chords.

	Raises:
		InvalidChord: On the first token that does not parse.

	Example:
		```python
		parse_chord_symbols("C | Am | F | G7")  # four ChordTokens
		```
	"""

	chords = [parse_chord_name(token) for token in split_symbols(text)]

	logger.debug(f"Parsed {len(chords)} chord symbols from {text!r}")

	return chords
