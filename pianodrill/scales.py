"""Scale definitions and scale-degree generation.

Each scale kind is a step vector in semitones. Heptatonic step vectors sum to 12;
pentatonic and blues vectors have fewer, larger steps.

Module-level constants:
- `SCALES`: Scale id → `ScaleKind`, in the order they are offered to users.
- `MAJOR_DEGREE_OFFSETS`: Semitone offsets of the seven major-scale degrees,
  the reference that chromatic Roman numerals (``bVII``, ``#iv``) alter.
"""

import dataclasses
import typing

import pianodrill.pitch


@dataclasses.dataclass(frozen=True)
class ScaleKind:

	"""
	A named scale shape.
	"""

	id: str
	name: str
	steps: typing.Tuple[int, ...]


	def offsets (self) -> typing.List[int]:

		"""Semitone offset of each degree above the root (``[0, 2, 4, ...]``)."""

		result = [0]

		for step in self.steps[:-1]:
			result.append(result[-1] + step)

		return result


SCALES: typing.Dict[str, ScaleKind] = {
	"major": ScaleKind("major", "Major", (2, 2, 1, 2, 2, 2, 1)),
	"natural_minor": ScaleKind("natural_minor", "Natural Minor", (2, 1, 2, 2, 1, 2, 2)),
	"harmonic_minor": ScaleKind("harmonic_minor", "Harmonic Minor", (2, 1, 2, 2, 1, 3, 1)),
	"melodic_minor": ScaleKind("melodic_minor", "Melodic Minor", (2, 1, 2, 2, 2, 2, 1)),
	"lydian": ScaleKind("lydian", "Lydian", (2, 2, 2, 1, 2, 2, 1)),
	"blues": ScaleKind("blues", "Blues", (3, 2, 1, 1, 3, 2)),
	"major_pentatonic": ScaleKind("major_pentatonic", "Major Pentatonic", (2, 2, 3, 2, 3)),
	"minor_pentatonic": ScaleKind("minor_pentatonic", "Minor Pentatonic", (3, 2, 2, 3, 2)),
}

# Older saved progressions say "minor" for natural minor.
SCALE_ALIASES: typing.Dict[str, str] = {
	"minor": "natural_minor",
	"ionian": "major",
	"aeolian": "natural_minor",
}

MAJOR_DEGREE_OFFSETS: typing.Tuple[int, ...] = (0, 2, 4, 5, 7, 9, 11)


def resolve_scale_id (scale: str) -> typing.Optional[str]:

	"""Return the canonical scale id for a name or alias, or ``None``."""

	scale = SCALE_ALIASES.get(scale, scale)

	if scale not in SCALES:
		return None

	return scale


def get_scale (scale: str) -> ScaleKind:

	"""Return a scale kind by id.

	Raises:
		ValueError: If the scale id is not recognised.
	"""

	scale_id = resolve_scale_id(scale)

	if scale_id is None:
		raise ValueError(f"Unknown scale: {scale!r}. Available: {', '.join(SCALES)}")

	return SCALES[scale_id]


def scale_notes (root: typing.Any, scale: str) -> typing.List[int]:

	"""Return the pitch classes of a scale in ascending degree order.

	Starting from ``root``, each step of the step vector is added modulo 12.
	The octave is not repeated, so the result has one entry per step.

	Parameters:
		root: Root pitch class (0-11) or note name (``"F#"``, ``"Bb"``).
		scale: Scale id from ``SCALES`` (or an alias such as ``"minor"``).

	Returns:
		List of pitch classes, or ``[]`` when the root or scale is unknown.

	Example:
		```python
		scale_notes(0, "major")          # → [0, 2, 4, 5, 7, 9, 11]
		scale_notes("A", "minor_pentatonic")  # → [9, 0, 2, 4, 7]
		```
	"""

	root_pc = pianodrill.pitch.to_pitch_class(root)
	scale_id = resolve_scale_id(scale) if isinstance(scale, str) else None

	if root_pc == -1 or scale_id is None:
		return []

	steps = SCALES[scale_id].steps
	notes = [root_pc]
	current = root_pc

	for step in steps[:-1]:
		current = (current + step) % 12
		notes.append(current)

	return notes


def scale_note_names (root: typing.Any, scale: str) -> typing.List[str]:

	"""Return ``scale_notes`` spelled with sharps."""

	return [pianodrill.pitch.spell(pc) for pc in scale_notes(root, scale)]


def scale_run (root: typing.Any, scale: str) -> typing.List[int]:

	"""Return the up-and-back practice run over a scale.

	Ascending degrees, the root an octave up, then the degrees descending back
	to the root. C major gives 15 pitch classes: ``C D E F G A B C B A G F E D C``.
	"""

	notes = scale_notes(root, scale)

	if not notes:
		return []

	return notes + [notes[0]] + list(reversed(notes))
