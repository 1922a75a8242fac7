"""Chord kinds, chord tokens and chord-tone generation.

This module provides the chord kind table and the `ChordToken` class used
everywhere a concrete chord is passed around: parsed progressions, identified
chords, and practice targets.

Module-level constants:
- `CHORD_KINDS`: Chord kind id → `ChordKind`, in declaration order.
- `KIND_ORDER`: The kind ids as a tuple, in the same order.

The declaration order of `CHORD_KINDS` is part of the contract of
`pianodrill.identify`: when a set of notes matches several chords with the same
root, the kind declared first wins. Do not reorder it casually.

Chord kinds: `"major"`, `"minor"`, `"diminished"`, `"augmented"`, `"sus2"`,
`"sus4"`, `"major7"`, `"minor7"`, `"dominant7"`, `"diminished7"`,
`"half_diminished7"`, `"major6"`, `"add9"`, `"major9"`, `"minor9"`, `"six_nine"`
"""

import dataclasses
import typing

import pianodrill.constants
import pianodrill.pitch
import pianodrill.scales
import pianodrill.voicings


@dataclasses.dataclass(frozen=True)
class ChordKind:

	"""
	A chord quality: its intervals above the root and how it is named.
	"""

	id: str
	name: str
	symbol: str
	intervals: typing.Tuple[int, ...]


	@property
	def size (self) -> int:

		"""Number of chord tones, root included."""

		return len(self.intervals) + 1


	@property
	def complexity (self) -> int:

		"""Number of tones above the root; used to rank suggestions."""

		return len(self.intervals)


CHORD_KINDS: typing.Dict[str, ChordKind] = {
	"major": ChordKind("major", "Major", "", (4, 7)),
	"minor": ChordKind("minor", "Minor", "m", (3, 7)),
	"diminished": ChordKind("diminished", "Diminished", "dim", (3, 6)),
	"augmented": ChordKind("augmented", "Augmented", "aug", (4, 8)),
	"sus2": ChordKind("sus2", "Suspended 2", "sus2", (2, 7)),
	"sus4": ChordKind("sus4", "Suspended 4", "sus4", (5, 7)),
	"major7": ChordKind("major7", "Major 7", "maj7", (4, 7, 11)),
	"minor7": ChordKind("minor7", "Minor 7", "m7", (3, 7, 10)),
	"dominant7": ChordKind("dominant7", "Dominant 7", "7", (4, 7, 10)),
	"diminished7": ChordKind("diminished7", "Diminished 7", "dim7", (3, 6, 9)),
	"half_diminished7": ChordKind("half_diminished7", "Half Diminished 7", "m7b5", (3, 6, 10)),
	"major6": ChordKind("major6", "Major 6", "6", (4, 7, 9)),
	"add9": ChordKind("add9", "Add 9", "add9", (4, 7, 14)),
	"major9": ChordKind("major9", "Major 9", "maj9", (4, 7, 11, 14)),
	"minor9": ChordKind("minor9", "Minor 9", "m9", (3, 7, 10, 14)),
	"six_nine": ChordKind("six_nine", "6/9", "6/9", (4, 7, 9, 14)),
}

KIND_ORDER: typing.Tuple[str, ...] = tuple(CHORD_KINDS)

_INVERSION_NAMES: typing.Tuple[str, ...] = (
	"Root Position",
	"1st Inversion",
	"2nd Inversion",
	"3rd Inversion",
	"4th Inversion",
)


def get_chord_kind (kind: str) -> ChordKind:

	"""Return a chord kind by id.

	Raises:
		ValueError: If the kind is not recognised.
	"""

	if kind not in CHORD_KINDS:
		raise ValueError(f"Unknown chord kind: {kind!r}. Available: {', '.join(KIND_ORDER)}")

	return CHORD_KINDS[kind]


def chord_tones (root: typing.Any, kind: str) -> typing.List[int]:

	"""Return the pitch classes of a chord, root first.

	Parameters:
		root: Root pitch class (0-11) or note name.
		kind: Chord kind id from ``CHORD_KINDS``.

	Returns:
		``[root, (root + i) % 12 for each interval]``, or ``[]`` when the root
		or kind is unknown.

	Example:
		```python
		chord_tones(0, "major")   # → [0, 4, 7]
		chord_tones("A", "minor7")  # → [9, 0, 4, 7]
		chord_tones(0, "add9")    # → [0, 4, 7, 2]
		```
	"""

	root_pc = pianodrill.pitch.to_pitch_class(root)

	if root_pc == -1 or kind not in CHORD_KINDS:
		return []

	return [root_pc] + [(root_pc + interval) % 12 for interval in CHORD_KINDS[kind].intervals]


def voice (
	root: typing.Any,
	kind: str,
	inversion: int = 0,
	base_octave: int = pianodrill.constants.DEFAULT_OCTAVE
) -> typing.List[int]:

	"""Return strictly ascending MIDI notes for a chord in a given inversion.

	The chord tones are rotated so that tone ``inversion`` is in the bass, then
	stacked upward starting in ``base_octave``. Inversions outside
	``0..len(intervals)`` wrap.

	Example:
		```python
		voice(0, "major")        # → [60, 64, 67]
		voice(0, "major", 1)     # → [64, 67, 72]
		voice(0, "major", 2, 3)  # → [55, 60, 64]
		```
	"""

	tones = chord_tones(root, kind)

	if not tones:
		return []

	return pianodrill.voicings.stack(pianodrill.voicings.rotate(tones, inversion), base_octave)


def inversion_name (inversion: int) -> str:

	"""Human-readable inversion label (``"Root Position"``, ``"1st Inversion"``...)."""

	if 0 <= inversion < len(_INVERSION_NAMES):
		return _INVERSION_NAMES[inversion]

	return f"Inversion {inversion}"


@dataclasses.dataclass(frozen=True)
class ChordToken:

	"""
	A concrete chord: root pitch class, kind, inversion and optional slash bass.

	``bass`` overrides ``inversion`` for slash chords whose bass is not
	implied by the inversion (e.g. ``C/D``). When ``bass`` is ``None`` the bass
	is the chord tone selected by ``inversion``.
	"""

	root: int
	kind: str
	inversion: int = 0
	bass: typing.Optional[int] = None


	def chord_kind (self) -> ChordKind:

		"""Return the ``ChordKind`` for this token."""

		return get_chord_kind(self.kind)


	def tones (self) -> typing.List[int]:

		"""Pitch classes of the chord, root first."""

		return chord_tones(self.root, self.kind)


	def pitch_class_set (self) -> typing.FrozenSet[int]:

		"""The chord's pitch classes as a set."""

		return frozenset(self.tones())


	def bass_pc (self) -> int:

		"""Pitch class of the lowest note."""

		if self.bass is not None:
			return self.bass

		tones = self.tones()

		return tones[self.inversion % len(tones)]


	def voice (self, base_octave: int = pianodrill.constants.DEFAULT_OCTAVE) -> typing.List[int]:

		"""MIDI notes for this chord; see :func:`voice`."""

		return voice(self.root, self.kind, self.inversion, base_octave)


	def same_chord (self, other: "ChordToken") -> bool:

		"""True when root and kind match, whatever the inversion."""

		return self.root == other.root and self.kind == other.kind


	def with_inversion (self, inversion: int) -> "ChordToken":

		"""Return a copy in a different inversion (slash bass dropped)."""

		return dataclasses.replace(self, inversion=inversion, bass=None)


	def name (self) -> str:

		"""
		Return the display name, e.g. ``"C Major"`` or ``"A# Half Diminished 7"``.
		"""

		return f"{pianodrill.pitch.spell(self.root)} {self.chord_kind().name}"


	def symbol (self) -> str:

		"""Return a compact lead-sheet symbol, e.g. ``"Cmaj7"`` or ``"D/F#"``."""

		text = f"{pianodrill.pitch.spell(self.root)}{self.chord_kind().symbol}"

		if self.bass is not None and self.bass != self.root:
			text += f"/{pianodrill.pitch.spell(self.bass)}"

		return text


	def inversion_name (self) -> str:

		"""Human-readable inversion label."""

		return inversion_name(self.inversion)


	def to_dict (self) -> typing.Dict[str, typing.Any]:

		"""Plain-data form for JSON output."""

		return {
			"root": pianodrill.pitch.spell(self.root),
			"kind": self.kind,
			"inversion": self.inversion,
			"bass": None if self.bass is None else pianodrill.pitch.spell(self.bass),
			"name": self.name(),
			"symbol": self.symbol(),
		}


_NUMERALS: typing.Tuple[str, ...] = ("I", "II", "III", "IV", "V", "VI", "VII")

_LOWER_CASE_KINDS = frozenset({
	"minor", "minor7", "minor9", "diminished", "diminished7", "half_diminished7",
})

_NUMERAL_SUFFIX: typing.Dict[str, str] = {
	"major": "",
	"minor": "",
	"diminished": "°",
	"augmented": "+",
	"sus2": "sus2",
	"sus4": "sus4",
	"major7": "maj7",
	"minor7": "7",
	"dominant7": "7",
	"diminished7": "°7",
	"half_diminished7": "ø7",
	"major6": "6",
	"add9": "add9",
	"major9": "maj9",
	"minor9": "9",
	"six_nine": "6/9",
}


def roman_numeral (key_root: typing.Any, scale: str, chord: ChordToken) -> str:

	"""Return the Roman numeral of a chord within a key, or ``"?"``.

	Roots in the scale use its own degrees. Other roots are written as a
	flattened major-scale degree (``bIII``, ``bVII``). A root that is a natural
	major-scale degree missing from the key (E in C minor) has no numeral that
	reads back as the same chord, so it is ``"?"``.

	Example:
		```python
		c = ChordToken(root=2, kind="minor")
		roman_numeral(0, "major", c)  # → "ii"
		roman_numeral(0, "major", ChordToken(root=10, kind="major"))  # → "bVII"
		```
	"""

	notes = pianodrill.scales.scale_notes(key_root, scale)

	if not notes or chord.kind not in CHORD_KINDS:
		return "?"

	prefix = ""

	if chord.root in notes:
		degree = notes.index(chord.root)

	else:
		interval = (chord.root - notes[0]) % 12

		if interval in pianodrill.scales.MAJOR_DEGREE_OFFSETS:
			return "?"

		# Every other interval is a semitone below a major-scale degree.
		degree = pianodrill.scales.MAJOR_DEGREE_OFFSETS.index((interval + 1) % 12)
		prefix = "b"

	numeral = _NUMERALS[degree]

	if chord.kind in _LOWER_CASE_KINDS:
		numeral = numeral.lower()

	return f"{prefix}{numeral}{_NUMERAL_SUFFIX[chord.kind]}"
