"""Parse chord progressions written in Roman numerals, chord symbols, or both.

A progression is a whitespace- (or ``|``-) separated list of tokens. A token that
matches `ROMAN_PATTERN` is resolved against a key; anything else is parsed as an
absolute chord symbol by `pianodrill.chord_names`.

Roman numerals:

- Case sets the default quality: ``IV`` is major, ``iv`` is minor.
- Suffixes override it: ``°``/``dim`` diminished, ``+``/``aug`` augmented,
  ``7`` dominant 7 (upper case) or minor 7 (lower case), ``maj7``/``M7`` major 7,
  ``dim7``/``°7`` diminished 7, ``m7``/``min7`` minor 7.
- Plain numerals take their root from the scale of the key. A leading ``b`` or
  ``#`` alters the degree of the parallel major scale instead, so ``bVII`` is
  B♭ in both C major and C minor.

The parser never raises. It returns a `ParseResult` whose ``error`` names the
first token that failed, with an empty chord list.

Example:
	```python
	key = KeyContext(root=0, scale="major")
	result = parse_progression("I vi IV V7", key)
	[element.chord.name() for element in result.chords]
	# → ['C Major', 'A Minor', 'F Major', 'G Dominant 7']
	```
"""

import dataclasses
import logging
import re
import typing

import pianodrill.chord_names
import pianodrill.chord_text
import pianodrill.chords
import pianodrill.errors
import pianodrill.pitch
import pianodrill.scales


logger = logging.getLogger(__name__)


ROMAN_PATTERN = re.compile(
	r"^(b|#)?(VII|III|IV|VI|II|V|I|vii|iii|iv|vi|ii|v|i)(°7|dim7|°|\+|dim|aug|maj7|M7|min7|m7|7)?$"
)

DEGREES: typing.Dict[str, int] = {
	"i": 0,
	"ii": 1,
	"iii": 2,
	"iv": 3,
	"v": 4,
	"vi": 5,
	"vii": 6,
}

_SUFFIX_KIND: typing.Dict[str, str] = {
	"°": "diminished",
	"dim": "diminished",
	"+": "augmented",
	"aug": "augmented",
	"maj7": "major7",
	"M7": "major7",
	"dim7": "diminished7",
	"°7": "diminished7",
	"min7": "minor7",
	"m7": "minor7",
}


@dataclasses.dataclass(frozen=True)
class KeyContext:

	"""
	The key Roman numerals are read in: a root (pitch class or note name) and a
	scale id.
	"""

	root: typing.Union[int, str]
	scale: str = "major"


	def tonic (self) -> int:

		"""The root as a pitch class; note names are accepted, ``-1`` if unknown."""

		return pianodrill.pitch.to_pitch_class(self.root)


	def scale_notes (self) -> typing.List[int]:

		"""Pitch classes of the key's scale."""

		return pianodrill.scales.scale_notes(self.root, self.scale)


	def name (self) -> str:

		"""E.g. ``"C Major"`` or ``"A Natural Minor"``."""

		scale_id = pianodrill.scales.resolve_scale_id(self.scale)
		scale_name = pianodrill.scales.SCALES[scale_id].name if scale_id else self.scale

		tonic = self.tonic()
		root_name = pianodrill.pitch.spell(tonic) if tonic != -1 else str(self.root)

		return f"{root_name} {scale_name}"


@dataclasses.dataclass(frozen=True)
class RomanElement:

	"""A progression step written as a Roman numeral, with its resolved chord."""

	roman: str
	chord: pianodrill.chords.ChordToken
	pin_inversion: bool = False
	kind: typing.Literal["roman"] = "roman"


	@property
	def label (self) -> str:

		return self.roman


@dataclasses.dataclass(frozen=True)
class AbsoluteElement:

	"""A progression step written as a chord symbol, with its resolved chord."""

	text: str
	chord: pianodrill.chords.ChordToken
	pin_inversion: bool = False
	kind: typing.Literal["absolute"] = "absolute"


	@property
	def label (self) -> str:

		return self.text


ProgressionElement = typing.Union[RomanElement, AbsoluteElement]


@dataclasses.dataclass
class ParseResult:

	"""Outcome of :func:`parse_progression`: chords, or an error message."""

	chords: typing.List[ProgressionElement]
	error: typing.Optional[str] = None


	@property
	def ok (self) -> bool:

		return self.error is None


def resolve_roman (token: str, key: KeyContext) -> typing.Optional[pianodrill.chords.ChordToken]:

	"""Resolve one normalised Roman numeral in a key.

	Returns ``None`` when the token is not a Roman numeral or the key's scale
	has no such degree (e.g. ``vi`` in a five-note scale).

	Example:
		```python
		resolve_roman("bVII", KeyContext(0, "natural_minor"))
		# → ChordToken(root=10, kind="major")
		```
	"""

	match = ROMAN_PATTERN.match(token)

	if match is None:
		return None

	tonic = key.tonic()

	if tonic == -1:
		return None

	accidental, numeral, suffix = match.groups()
	degree = DEGREES[numeral.lower()]
	upper = numeral.isupper()

	if accidental:
		shift = -1 if accidental == "b" else 1
		root = (tonic + pianodrill.scales.MAJOR_DEGREE_OFFSETS[degree] + shift) % 12

	else:
		notes = key.scale_notes()
		if degree >= len(notes):
			return None
		root = notes[degree]

	if suffix == "7":
		kind = "dominant7" if upper else "minor7"
	elif suffix:
		kind = _SUFFIX_KIND[suffix]
	else:
		kind = "major" if upper else "minor"

	return pianodrill.chords.ChordToken(root=root, kind=kind)


def parse_progression (text: str, key: typing.Optional[KeyContext] = None) -> ParseResult:

	"""Parse a progression into resolved chords.

	Parameters:
		text: Roman numerals and/or chord symbols separated by spaces, bar
			lines (``|``) or hyphens. Unicode accidentals, sub/superscripts and
			invisible characters are normalised first.
		key: Key context for Roman numerals. Absolute chords ignore it. When
			``None``, any Roman numeral is an error.

	Returns:
		A ``ParseResult``. On failure ``chords`` is empty and ``error`` names
		the offending token.

	Example:
		```python
		parse_progression("C | Eₘ⁷ | G/B | Aₘ⁷ | D | G", KeyContext(0, "major"))
		parse_progression("i bVII bVI V", KeyContext(0, "natural_minor"))
		```
	"""

	if not isinstance(text, str) or not pianodrill.chord_text.clean_input_text(text):
		return ParseResult(chords=[])

	elements: typing.List[ProgressionElement] = []

	for raw_token in pianodrill.chord_names.split_symbols(text, normalize=False):

		token = pianodrill.chord_text.normalize_chord_text(raw_token)

		if not token:
			continue

		if ROMAN_PATTERN.match(token):

			if key is None:
				return ParseResult(chords=[], error=f"Invalid symbol: {raw_token} (Roman numeral needs a key)")

			chord = resolve_roman(token, key)

			if chord is None:
				return ParseResult(chords=[], error=f"Invalid symbol: {raw_token} (no such degree in {key.name()})")

			elements.append(RomanElement(roman=raw_token, chord=chord))
			continue

		try:
			chord = pianodrill.chord_names.parse_chord_name(token)

		except pianodrill.errors.InvalidChord as exc:
			logger.debug(f"Progression token rejected: {exc}")
			return ParseResult(chords=[], error=f"Invalid symbol: {raw_token}")

		elements.append(AbsoluteElement(text=raw_token, chord=chord))

	return ParseResult(chords=elements)


def render_progression (elements: typing.Sequence[ProgressionElement]) -> str:

	"""Render resolved chords back to space-separated chord symbols."""

	return " ".join(element.chord.symbol() for element in elements)
