"""Chord inversions and simple octave placement.

Voicing here means choosing which chord tone sits in the bass and stacking the
remaining tones upward from a base octave. There is no voice leading and no
spread voicings: each tone is placed at the lowest pitch above the previous one.

Example:
	```python
	from pianodrill.voicings import rotate, stack

	tones = rotate([0, 4, 7], 1)  # [4, 7, 0]  - E in the bass
	stack(tones, 4)               # [64, 67, 72]
	```
"""

import typing

import pianodrill.pitch


def rotate (tones: typing.Sequence[int], inversion: int) -> typing.List[int]:

	"""Rotate chord tones so that tone ``inversion`` is first.

	Inversion 0 is root position. Values outside ``0..len(tones) - 1`` wrap,
	so a triad's inversion 3 is root position again.

	Example:
		```python
		rotate([0, 4, 7], 0)  # [0, 4, 7]
		rotate([0, 4, 7], 2)  # [7, 0, 4]
		rotate([0, 4, 7], 4)  # [4, 7, 0]
		```
	"""

	n = len(tones)

	if n == 0:
		return []

	inversion = inversion % n

	return list(tones[inversion:]) + list(tones[:inversion])


def stack (pitch_classes: typing.Sequence[int], base_octave: int) -> typing.List[int]:

	"""Lay pitch classes out as strictly ascending MIDI notes.

	The first pitch class is placed in ``base_octave``. Each following pitch
	class stays in the current octave unless it is not higher than the note
	just placed, in which case the octave advances.

	Example:
		```python
		stack([0, 4, 7, 2], 4)  # [60, 64, 67, 74]  - C add9
		stack([7, 0, 4], 3)     # [55, 60, 64]      - C/G
		```
	"""

	notes: typing.List[int] = []
	octave = base_octave

	for pc in pitch_classes:

		if notes and pc % 12 <= notes[-1] % 12:
			octave += 1

		notes.append(pianodrill.pitch.midi_of(pc, octave))

	return notes


def bass_inversion (tones: typing.Sequence[int], bass_pc: int) -> typing.Optional[int]:

	"""Return the inversion that puts ``bass_pc`` lowest, or ``None`` if absent."""

	for index, tone in enumerate(tones):
		if tone % 12 == bass_pc % 12:
			return index

	return None
