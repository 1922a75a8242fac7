import collections

import pytest

import pianodrill.chords


def test_chord_kind_table () -> None:

	"""All sixteen kinds are present, in their documented order."""

	assert pianodrill.chords.KIND_ORDER == (
		"major", "minor", "diminished", "augmented", "sus2", "sus4",
		"major7", "minor7", "dominant7", "diminished7", "half_diminished7",
		"major6", "add9", "major9", "minor9", "six_nine",
	)


@pytest.mark.parametrize("kind", pianodrill.chords.KIND_ORDER)
def test_chord_tones_contain_root_and_have_expected_size (kind: str) -> None:

	"""Chord tones have one distinct pitch class per interval plus the root."""

	for root in range(12):

		tones = pianodrill.chords.chord_tones(root, kind)

		assert tones[0] == root
		assert len(set(tones)) == len(pianodrill.chords.CHORD_KINDS[kind].intervals) + 1


def test_chord_tones_examples () -> None:

	"""Compound intervals reduce modulo 12."""

	assert pianodrill.chords.chord_tones(0, "major") == [0, 4, 7]
	assert pianodrill.chords.chord_tones("A", "minor7") == [9, 0, 4, 7]
	assert pianodrill.chords.chord_tones(0, "add9") == [0, 4, 7, 2]


def test_chord_tones_invalid () -> None:

	"""Unknown roots or kinds give an empty list."""

	assert pianodrill.chords.chord_tones(12, "major") == []
	assert pianodrill.chords.chord_tones(0, "power") == []


@pytest.mark.parametrize("kind", pianodrill.chords.KIND_ORDER)
def test_voice_is_ascending_with_matching_pitch_classes (kind: str) -> None:

	"""Every voicing is strictly ascending with the chord's pitch-class multiset."""

	size = pianodrill.chords.CHORD_KINDS[kind].size

	for root in range(12):
		for octave in range(0, 9):
			for inversion in range(size):

				notes = pianodrill.chords.voice(root, kind, inversion, octave)

				assert len(notes) == size
				assert all(a < b for a, b in zip(notes, notes[1:]))
				assert collections.Counter(n % 12 for n in notes) == collections.Counter(pianodrill.chords.chord_tones(root, kind))


def test_voice_examples () -> None:

	"""Root position and inversions are stacked from the base octave."""

	assert pianodrill.chords.voice(0, "major") == [60, 64, 67]
	assert pianodrill.chords.voice(0, "major", 1) == [64, 67, 72]
	assert pianodrill.chords.voice(0, "major", 2, 3) == [55, 60, 64]
	assert pianodrill.chords.voice(0, "major", 3) == pianodrill.chords.voice(0, "major", 0)


def test_chord_token_names () -> None:

	"""Display names, symbols and inversion labels."""

	cmaj7 = pianodrill.chords.ChordToken(root=0, kind="major7")
	g_over_b = pianodrill.chords.ChordToken(root=7, kind="major", inversion=1, bass=11)
	a_sharp = pianodrill.chords.ChordToken(root=10, kind="half_diminished7")

	assert cmaj7.name() == "C Major 7"
	assert cmaj7.symbol() == "Cmaj7"
	assert g_over_b.symbol() == "G/B"
	assert g_over_b.inversion_name() == "1st Inversion"
	assert a_sharp.name() == "A# Half Diminished 7"
	assert pianodrill.chords.inversion_name(0) == "Root Position"


def test_chord_token_same_chord_ignores_inversion () -> None:

	"""same_chord compares root and kind only."""

	a = pianodrill.chords.ChordToken(root=0, kind="major")
	b = pianodrill.chords.ChordToken(root=0, kind="major", inversion=2)

	assert a.same_chord(b)
	assert a != b
	assert not a.same_chord(pianodrill.chords.ChordToken(root=0, kind="minor"))


def test_chord_token_bass () -> None:

	"""The bass is the slash bass, or the tone chosen by the inversion."""

	assert pianodrill.chords.ChordToken(root=0, kind="major", inversion=1).bass_pc() == 4
	assert pianodrill.chords.ChordToken(root=0, kind="major", bass=2).bass_pc() == 2


def test_with_inversion_drops_slash_bass () -> None:

	g_over_b = pianodrill.chords.ChordToken(root=7, kind="major", bass=11)
	second = g_over_b.with_inversion(2)

	assert second.inversion == 2
	assert second.bass is None
	assert second.bass_pc() == 2
	assert second.same_chord(g_over_b)


def test_get_chord_kind_unknown_raises () -> None:

	"""Unknown kind ids raise ValueError naming the options."""

	with pytest.raises(ValueError, match="major"):
		pianodrill.chords.get_chord_kind("power")


@pytest.mark.parametrize("key_root, scale, root, kind, expected", [
	(0, "major", 2, "minor", "ii"),
	(0, "major", 11, "diminished", "vii°"),
	(0, "major", 7, "dominant7", "V7"),
	(0, "major", 10, "major", "bVII"),
	(0, "major", 0, "major7", "Imaj7"),
	(0, "natural_minor", 3, "major", "III"),
	(0, "natural_minor", 1, "major", "bII"),
	(0, "natural_minor", 4, "major", "?"),
	(0, "major_pentatonic", 7, "major", "IV"),
	(7, "major", 2, "major", "V"),
])
def test_roman_numeral (key_root: int, scale: str, root: int, kind: str, expected: str) -> None:

	"""Chords are named by degree within a key."""

	chord = pianodrill.chords.ChordToken(root=root, kind=kind)

	assert pianodrill.chords.roman_numeral(key_root, scale, chord) == expected


def test_roman_numeral_invalid_key () -> None:

	"""An unknown key gives '?'."""

	assert pianodrill.chords.roman_numeral("H", "major", pianodrill.chords.ChordToken(root=0, kind="major")) == "?"
