import pytest

import pianodrill.chord_names
import pianodrill.chord_text
import pianodrill.chords
import pianodrill.errors


@pytest.mark.parametrize("text, root, kind", [
	("C", 0, "major"),
	("Cmaj", 0, "major"),
	("Am", 9, "minor"),
	("Amin", 9, "minor"),
	("Bdim", 11, "diminished"),
	("B°", 11, "diminished"),
	("Caug", 0, "augmented"),
	("C+", 0, "augmented"),
	("Dsus2", 2, "sus2"),
	("Dsus4", 2, "sus4"),
	("G7", 7, "dominant7"),
	("Cmaj7", 0, "major7"),
	("CM7", 0, "major7"),
	("Cm7", 0, "minor7"),
	("Cmin7", 0, "minor7"),
	("Bdim7", 11, "diminished7"),
	("B°7", 11, "diminished7"),
	("Bm7b5", 11, "half_diminished7"),
	("Bø7", 11, "half_diminished7"),
	("C6", 0, "major6"),
	("Cmaj6", 0, "major6"),
	("Cadd9", 0, "add9"),
	("Cmaj9", 0, "major9"),
	("CM9", 0, "major9"),
	("Cm9", 0, "minor9"),
	("Cmin9", 0, "minor9"),
	("C6/9", 0, "six_nine"),
	("C69", 0, "six_nine"),
	("Bb", 10, "major"),
	("F#m", 6, "minor"),
])
def test_suffix_table (text: str, root: int, kind: str) -> None:

	"""Each documented suffix maps to its chord kind."""

	chord = pianodrill.chord_names.parse_chord_name(text)

	assert (chord.root, chord.kind) == (root, kind)


def test_suffix_case_matters () -> None:

	"""M7 is major 7 but m7 is minor 7."""

	assert pianodrill.chord_names.parse_chord_name("CM7").kind == "major7"
	assert pianodrill.chord_names.parse_chord_name("Cm7").kind == "minor7"


def test_unicode_symbols () -> None:

	"""Subscripts, superscripts and Unicode accidentals are normalised first."""

	assert pianodrill.chord_names.parse_chord_name("Eₘ⁷") == pianodrill.chords.ChordToken(root=4, kind="minor7")
	assert pianodrill.chord_names.parse_chord_name("Fᵐᵃʲ⁷") == pianodrill.chords.ChordToken(root=5, kind="major7")
	assert pianodrill.chord_names.parse_chord_name("B♭m7").root == 10


def test_slash_chord_sets_bass_and_inversion () -> None:

	"""A chord-tone bass picks the matching inversion."""

	g_over_b = pianodrill.chord_names.parse_chord_name("G/B")
	d_over_f_sharp = pianodrill.chord_names.parse_chord_name("D/F♯")

	assert (g_over_b.root, g_over_b.kind, g_over_b.bass, g_over_b.inversion) == (7, "major", 11, 1)
	assert (d_over_f_sharp.root, d_over_f_sharp.bass, d_over_f_sharp.inversion) == (2, 6, 1)


def test_slash_chord_non_chord_tone_bass () -> None:

	"""A bass outside the chord is kept, with root-position inversion."""

	chord = pianodrill.chord_names.parse_chord_name("C/D")

	assert chord.bass == 2
	assert chord.inversion == 0


def test_display_form_parses () -> None:

	"""Rendered display names parse back, case-insensitively."""

	assert pianodrill.chord_names.parse_chord_name("C Major 7") == pianodrill.chords.ChordToken(root=0, kind="major7")
	assert pianodrill.chord_names.parse_chord_name("A minor") == pianodrill.chords.ChordToken(root=9, kind="minor")
	assert pianodrill.chord_names.parse_chord_name("A# Half Diminished 7").kind == "half_diminished7"


@pytest.mark.parametrize("kind", pianodrill.chords.KIND_ORDER)
def test_every_name_reparses (kind: str) -> None:

	"""name() output parses back to the same root and kind."""

	for root in range(12):

		chord = pianodrill.chords.ChordToken(root=root, kind=kind)
		parsed = pianodrill.chord_names.parse_chord_name(chord.name())

		assert parsed.same_chord(chord)


@pytest.mark.parametrize("kind", pianodrill.chords.KIND_ORDER)
def test_every_symbol_reparses (kind: str) -> None:

	"""symbol() output parses back to the same root and kind."""

	for root in range(12):

		chord = pianodrill.chords.ChordToken(root=root, kind=kind)

		assert pianodrill.chord_names.parse_chord_name(chord.symbol()).same_chord(chord)


@pytest.mark.parametrize("text", ["", "H", "Cxyz", "C/H", "c", "C Bogus"])
def test_invalid_chord_raises (text: str) -> None:

	"""Unparseable text raises InvalidChord carrying the text."""

	with pytest.raises(pianodrill.errors.InvalidChord) as info:
		pianodrill.chord_names.parse_chord_name(text)

	assert info.value.text == text


def test_parse_chord_symbols_pipes_and_spaces () -> None:

	"""Bar lines and spaces both separate chords."""

	chords = pianodrill.chord_names.parse_chord_symbols("C | Am | F | G7")

	assert [c.symbol() for c in chords] == ["C", "Am", "F", "G7"]


def test_split_symbols_hyphens () -> None:

	"""A hyphen before a new chord separates; C-7 keeps its hyphen."""

	assert pianodrill.chord_names.split_symbols("C-F-G") == ["C", "F", "G"]
	assert pianodrill.chord_names.split_symbols("C-7 F") == ["C-7", "F"]
	assert pianodrill.chord_names.split_symbols("I-IV-V") == ["I", "IV", "V"]


def test_clean_input_text () -> None:

	"""Invisible characters vanish and odd spaces fold to one space."""

	assert pianodrill.chord_text.clean_input_text("C\u200b  F\u00a0 G ") == "C F G"
	assert pianodrill.chord_text.clean_input_text(None) == ""


def test_normalize_chord_text () -> None:

	"""Unicode chord spellings become ASCII."""

	assert pianodrill.chord_text.normalize_chord_text("Eₘ⁷") == "Em7"
	assert pianodrill.chord_text.normalize_chord_text("D/F♯") == "D/F#"
	assert pianodrill.chord_text.normalize_chord_text("B♭m7") == "Bbm7"


def test_suggest_fix () -> None:

	"""A hint is offered when cleaning would change the text."""

	hint = pianodrill.chord_text.suggest_fix("C\u200b F", "Invalid symbol: C\u200b")

	assert hint is not None and "C F" in hint
	assert pianodrill.chord_text.suggest_fix("C F", None) is None
