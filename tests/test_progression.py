import pytest

import pianodrill.chord_names
import pianodrill.chord_text
import pianodrill.chords
import pianodrill.progression


C_MAJOR = pianodrill.progression.KeyContext(root=0, scale="major")
C_MINOR = pianodrill.progression.KeyContext(root=0, scale="natural_minor")


def _roots_and_kinds (result: pianodrill.progression.ParseResult) -> list:

	return [(element.chord.root, element.chord.kind) for element in result.chords]


def test_unicode_lead_sheet () -> None:

	"""Bar lines, subscripts, superscripts and a slash chord parse in one go."""

	result = pianodrill.progression.parse_progression("C | Eₘ⁷ | G/B | Aₘ⁷ | D | G", C_MAJOR)

	assert result.error is None
	assert _roots_and_kinds(result) == [
		(0, "major"),
		(4, "minor7"),
		(7, "major"),
		(9, "minor7"),
		(2, "major"),
		(7, "major"),
	]
	assert result.chords[2].chord.bass == 11
	assert all(element.kind == "absolute" for element in result.chords)


def test_roman_with_flats_in_minor () -> None:

	"""i bVII bVI V in C minor resolves to C, A#, G#, G."""

	result = pianodrill.progression.parse_progression("i bVII bVI V", C_MINOR)

	assert result.error is None
	assert _roots_and_kinds(result) == [(0, "minor"), (10, "major"), (8, "major"), (7, "major")]
	assert [element.label for element in result.chords] == ["i", "bVII", "bVI", "V"]


def test_roman_in_major () -> None:

	"""Case decides quality; 7 is dominant on upper case and minor on lower case."""

	result = pianodrill.progression.parse_progression("I vi IV V7 ii7", C_MAJOR)

	assert _roots_and_kinds(result) == [
		(0, "major"),
		(9, "minor"),
		(5, "major"),
		(7, "dominant7"),
		(2, "minor7"),
	]


@pytest.mark.parametrize("token, root, kind", [
	("vii°", 11, "diminished"),
	("viidim", 11, "diminished"),
	("III+", 4, "augmented"),
	("IIIaug", 4, "augmented"),
	("Imaj7", 0, "major7"),
	("IM7", 0, "major7"),
	("iim7", 2, "minor7"),
	("iimin7", 2, "minor7"),
	("vii°7", 11, "diminished7"),
	("viidim7", 11, "diminished7"),
	("#iv", 6, "minor"),
	("bII", 1, "major"),
])
def test_roman_suffixes (token: str, root: int, kind: str) -> None:

	"""Suffixes override the case-derived quality."""

	result = pianodrill.progression.parse_progression(token, C_MAJOR)

	assert result.error is None
	assert _roots_and_kinds(result) == [(root, kind)]


def test_v7_in_minor_is_dominant () -> None:

	"""Upper-case V7 is a dominant seventh even in a minor key."""

	result = pianodrill.progression.parse_progression("V7", C_MINOR)

	assert _roots_and_kinds(result) == [(7, "dominant7")]


def test_diatonic_vii_in_minor_is_not_flattened () -> None:

	"""VII in natural minor uses the scale's own seventh degree."""

	result = pianodrill.progression.parse_progression("VII", C_MINOR)

	assert _roots_and_kinds(result) == [(10, "major")]


def test_mixed_roman_and_absolute () -> None:

	"""Roman and absolute tokens mix; absolute tokens ignore the key."""

	result = pianodrill.progression.parse_progression("I IV V C", pianodrill.progression.KeyContext(root=7))

	assert _roots_and_kinds(result) == [(7, "major"), (0, "major"), (2, "major"), (0, "major")]
	assert [element.kind for element in result.chords] == ["roman", "roman", "roman", "absolute"]


def test_hyphen_separators () -> None:

	"""Hyphens between chords separate tokens."""

	result = pianodrill.progression.parse_progression("I-IV-V-I", C_MAJOR)

	assert len(result.chords) == 4


def test_invalid_token_reports_error () -> None:

	"""The first bad token is named and no chords are returned."""

	result = pianodrill.progression.parse_progression("I IV Q V", C_MAJOR)

	assert result.chords == []
	assert result.error is not None
	assert "Q" in result.error
	assert not result.ok


def test_roman_without_key_is_error () -> None:

	"""Roman numerals need a key context."""

	result = pianodrill.progression.parse_progression("I IV V")

	assert result.chords == []
	assert result.error is not None and "I" in result.error


def test_missing_degree_in_pentatonic_key () -> None:

	"""A degree the scale does not have is an error naming the token."""

	result = pianodrill.progression.parse_progression("I vi", pianodrill.progression.KeyContext(root=0, scale="major_pentatonic"))

	assert result.chords == []
	assert result.error is not None and "vi" in result.error


@pytest.mark.parametrize("text", ["", "   ", "\u200b", None])
def test_empty_input (text: object) -> None:

	"""Empty input gives no chords and no error."""

	result = pianodrill.progression.parse_progression(text, C_MAJOR)  # type: ignore[arg-type]

	assert result.chords == []
	assert result.error is None


def test_parser_never_raises () -> None:

	"""Garbage input produces an error field rather than an exception."""

	for text in ["///", "C/", "I/", "##", "b", "|||", "Xmaj7", "C/Q"]:
		result = pianodrill.progression.parse_progression(text, C_MAJOR)
		assert result.error is not None or result.chords == []


@pytest.mark.parametrize("text, key", [
	("C | Eₘ⁷ | G/B | Aₘ⁷ | D | G", C_MAJOR),
	("i bVII bVI V", C_MINOR),
	("I vi IV V7 ii7 vii°", C_MAJOR),
	("Cmaj7 Dm9 G6/9 Fadd9 Bm7b5 Edim7", C_MAJOR),
])
def test_names_reparse_as_absolute (text: str, key: pianodrill.progression.KeyContext) -> None:

	"""Each resolved chord's display name parses back to the same chord."""

	result = pianodrill.progression.parse_progression(text, key)

	assert result.error is None

	for element in result.chords:
		reparsed = pianodrill.chord_names.parse_chord_name(element.chord.name())
		assert reparsed.same_chord(element.chord)


def test_render_progression () -> None:

	"""Rendering gives absolute symbols that parse back to the same chords."""

	result = pianodrill.progression.parse_progression("i bVII bVI V7", C_MINOR)
	rendered = pianodrill.progression.render_progression(result.chords)

	assert rendered == "Cm A# G# G7"

	again = pianodrill.progression.parse_progression(rendered)

	assert _roots_and_kinds(again) == _roots_and_kinds(result)


def test_key_context_name () -> None:

	"""Key names combine the root and scale display name."""

	assert C_MINOR.name() == "C Natural Minor"
	assert C_MAJOR.scale_notes() == [0, 2, 4, 5, 7, 9, 11]


def test_note_name_root () -> None:

	"""A key given by note name resolves Roman numerals like its pitch class."""

	by_name = pianodrill.progression.KeyContext(root="C", scale="natural_minor")
	result = pianodrill.progression.parse_progression("i bVII bVI V", by_name)

	assert result.error is None
	assert _roots_and_kinds(result) == _roots_and_kinds(pianodrill.progression.parse_progression("i bVII bVI V", C_MINOR))
	assert by_name.name() == "C Natural Minor"


def test_unknown_root_is_an_error () -> None:

	"""An unusable key root gives an error result, not an exception."""

	result = pianodrill.progression.parse_progression("I bVII", pianodrill.progression.KeyContext(root="H"))

	assert result.chords == []
	assert result.error is not None and "H Major" in result.error


@pytest.mark.parametrize("scale", ["major", "natural_minor", "harmonic_minor", "major_pentatonic", "blues"])
def test_roman_numeral_reads_back (scale: str) -> None:

	"""Every numeral named for a chord in a key parses back to that chord."""

	key = pianodrill.progression.KeyContext(root=0, scale=scale)

	for root in range(12):
		for kind in ("major", "minor", "diminished", "augmented", "major7", "minor7", "dominant7", "diminished7"):

			chord = pianodrill.chords.ChordToken(root=root, kind=kind)
			numeral = pianodrill.chords.roman_numeral(0, scale, chord)

			if numeral == "?":
				continue

			result = pianodrill.progression.parse_progression(numeral, key)

			assert result.error is None, numeral
			assert _roots_and_kinds(result) == [(root, kind)], numeral


@pytest.mark.parametrize("notation", sorted(pianodrill.chord_text.SAMPLE_INPUTS))
def test_sample_inputs_parse (notation: str) -> None:

	"""The bundled example progressions all parse in C major."""

	for text in pianodrill.chord_text.SAMPLE_INPUTS[notation]:
		result = pianodrill.progression.parse_progression(text, C_MAJOR)
		assert result.error is None, text
		assert result.chords
