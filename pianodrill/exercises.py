"""Built-in practice exercises and the parameters that tailor them.

An `Exercise` bundles a mode (``"scale"`` or ``"chord"``), a key cycle, and a
function that builds the step sequence for one key. The runners in
`pianodrill.runner` walk the sequence, then move to the next key.

Exercises can be narrowed with URL-style parameters, as used by links such as
``/exercise/i-v-i-circle?startKey=G&keys=3``:

- ``startKey``: one of `CIRCLE_OF_FIFTHS_KEYS`; selects the first key.
- ``keys``: 1-12; how many keys to visit before the cycle completes.

Unknown or invalid parameters are ignored.
"""

import dataclasses
import logging
import re
import typing
import urllib.parse

import pianodrill.chords
import pianodrill.constants
import pianodrill.pitch
import pianodrill.progression
import pianodrill.scales


logger = logging.getLogger(__name__)


SCALE_MODE = "scale"
CHORD_MODE = "chord"

CIRCLE_OF_FIFTHS: typing.Tuple[int, ...] = tuple(
	pianodrill.pitch.index_of(name) for name in pianodrill.constants.CIRCLE_OF_FIFTHS_KEYS
)


@dataclasses.dataclass(frozen=True)
class ScaleStep:

	"""One target note of a scale-mode exercise."""

	pitch_class: int
	label: str = ""


	def name (self) -> str:

		return self.label or pianodrill.pitch.spell(self.pitch_class)


Step = typing.Union[ScaleStep, pianodrill.progression.RomanElement, pianodrill.progression.AbsoluteElement]
SequenceFactory = typing.Callable[[int], typing.Sequence[Step]]


@dataclasses.dataclass(frozen=True)
class Exercise:

	"""
	A parameterised practice exercise.

	Attributes:
		id: Registry key (also the URL slug).
		name: Title shown to the player.
		mode: ``"scale"`` (single notes) or ``"chord"`` (held chords).
		key_cycle: Pitch classes of the keys to walk through, in order.
		scale: Scale id used to build each key's sequence.
		make_sequence: Builds the steps for one key root.
		max_keys: How many keys make up one pass (``None`` = the whole cycle).
		start_key_index: Index into ``key_cycle`` of the first key.
		reject_errors: Restart the sequence on a wrong note or chord.
		description: Longer help text.
	"""

	id: str
	name: str
	mode: str
	key_cycle: typing.Tuple[int, ...]
	scale: str
	make_sequence: SequenceFactory
	max_keys: typing.Optional[int] = None
	start_key_index: int = 0
	reject_errors: bool = False
	description: str = ""


	def keys_per_pass (self) -> int:

		"""Number of keys visited before the cycle completes."""

		if not self.key_cycle:
			return 0

		if self.max_keys is None:
			return len(self.key_cycle)

		return max(1, min(self.max_keys, len(self.key_cycle)))


	def key_order (self) -> typing.List[int]:

		"""The keys of one pass, starting from ``start_key_index``."""

		n = len(self.key_cycle)

		return [self.key_cycle[(self.start_key_index + i) % n] for i in range(self.keys_per_pass())]


	def sequence_for (self, root: int) -> typing.List[Step]:

		"""The steps for one key."""

		return list(self.make_sequence(root))


# ---------------------------------------------------------------------------
# Sequence builders
# ---------------------------------------------------------------------------


def scale_run_steps (scale: str) -> SequenceFactory:

	"""Up-and-back scale run (``C D E F G A B C B A G F E D C`` for C major)."""

	def make (root: int) -> typing.List[Step]:
		return [ScaleStep(pc) for pc in pianodrill.scales.scale_run(root, scale)]

	return make


def interval_sprints (root: int, scale: str = "major") -> typing.List[Step]:

	"""Root then each degree in turn, ending root to octave: 14 steps for a 7-note scale.

	Example:
		```python
		[s.name() for s in interval_sprints(0)]
		# → ['C', 'D', 'C', 'E', 'C', 'F', 'C', 'G', 'C', 'A', 'C', 'B', 'C', 'C']
		```
	"""

	notes = pianodrill.scales.scale_notes(root, scale)
	steps: typing.List[Step] = []

	for degree in notes[1:] + notes[:1]:
		steps.append(ScaleStep(notes[0]))
		steps.append(ScaleStep(degree))

	return steps


def roman_progression (pattern: str, scale: str = "major") -> SequenceFactory:

	"""Resolve a Roman-numeral pattern in whichever key the runner asks for."""

	def make (root: int) -> typing.List[Step]:

		result = pianodrill.progression.parse_progression(
			pattern, pianodrill.progression.KeyContext(root=root, scale=scale)
		)

		if result.error is not None:
			logger.error(f"Exercise pattern {pattern!r} failed in key {pianodrill.pitch.spell(root)}: {result.error}")
			return []

		return list(result.chords)

	return make


_SHAPE_SHIFT_CHORDS: typing.Tuple[typing.Tuple[str, int], ...] = (("I", 0), ("IV", 5), ("V", 7))
_SHAPE_SHIFT_INVERSIONS: typing.Tuple[int, ...] = (0, 1, 2, 0)


def triad_inversions (root: int = 0) -> typing.List[Step]:

	"""I, IV and V triads each in root position, 1st, 2nd, then root position again.

	Every step pins its inversion, so the right chord in the wrong shape does
	not count.
	"""

	steps: typing.List[Step] = []

	for numeral, offset in _SHAPE_SHIFT_CHORDS:

		triad = pianodrill.chords.ChordToken(root=(root + offset) % 12, kind="major")

		for inversion in _SHAPE_SHIFT_INVERSIONS:
			steps.append(
				pianodrill.progression.RomanElement(
					roman = numeral,
					chord = triad.with_inversion(inversion),
					pin_inversion = True
				)
			)

	return steps


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def _circle_progression (exercise_id: str, name: str, pattern: str) -> Exercise:

	return Exercise(
		id = exercise_id,
		name = name,
		mode = CHORD_MODE,
		key_cycle = CIRCLE_OF_FIFTHS,
		scale = "major",
		make_sequence = roman_progression(pattern, "major"),
		description = f"Practice {pattern} through all 12 keys in Circle of Fifths order"
	)


def _scale_journey (exercise_id: str, name: str, scale: str) -> Exercise:

	return Exercise(
		id = exercise_id,
		name = name,
		mode = SCALE_MODE,
		key_cycle = CIRCLE_OF_FIFTHS,
		scale = scale,
		make_sequence = scale_run_steps(scale),
		description = f"Play the {pianodrill.scales.SCALES[scale].name.lower()} scale up and down in all 12 keys"
	)


EXERCISES: typing.Dict[str, Exercise] = {
	exercise.id: exercise for exercise in (
		_circle_progression("i-v-i-circle", "I-V-I Circle of Fifths", "I V I"),
		_circle_progression("i-iv-v-i-circle", "I-IV-V-I Circle of Fifths", "I IV V I"),
		_circle_progression("vi-iv-i-v-circle", "vi-IV-I-V Circle of Fifths", "vi IV I V"),
		_scale_journey("major-scale-journey", "12-Key Major Scale Journey", "major"),
		_scale_journey("major-pentatonic-journey", "Major Pentatonic Journey", "major_pentatonic"),
		_scale_journey("minor-pentatonic-journey", "Minor Pentatonic Journey", "minor_pentatonic"),
		Exercise(
			id = "interval-sprints",
			name = "Interval Sprints",
			mode = SCALE_MODE,
			key_cycle = (0,),
			scale = "major",
			make_sequence = interval_sprints,
			description = "From the root to each degree of the major scale in turn"
		),
		Exercise(
			id = "interval-sprints-circle",
			name = "Interval Sprints (Circle of Fifths)",
			mode = SCALE_MODE,
			key_cycle = CIRCLE_OF_FIFTHS,
			scale = "major",
			make_sequence = interval_sprints,
			description = "Interval sprints through all 12 keys"
		),
		Exercise(
			id = "triad-shape-shifting",
			name = "Triad Shape-Shifting",
			mode = CHORD_MODE,
			key_cycle = (0,),
			scale = "major",
			make_sequence = triad_inversions,
			description = "C, F and G triads in root position, 1st and 2nd inversion, and back"
		),
	)
}


def get_exercise (exercise_id: str) -> typing.Optional[Exercise]:

	"""Look up an exercise by id; ``None`` if unknown."""

	return EXERCISES.get(exercise_id)


def get_exercise_or_raise (exercise_id: str) -> Exercise:

	"""Look up an exercise by id.

	Raises:
		ValueError: If the id is not registered.
	"""

	exercise = get_exercise(exercise_id)

	if exercise is None:
		raise ValueError(f"Unknown exercise: {exercise_id!r}. Available: {', '.join(EXERCISES)}")

	return exercise


def get_all_exercises () -> typing.List[Exercise]:

	return list(EXERCISES.values())


def parse_url_params (search: typing.Optional[str]) -> typing.Dict[str, typing.Any]:

	"""Read ``startKey`` and ``keys`` from a query string such as ``"?startKey=G&keys=3"``.

	Returns a dict with both keys; missing or malformed values are ``None``.
	A string that does not start with ``?`` is treated as having no parameters.
	"""

	params: typing.Dict[str, typing.Any] = {"startKey": None, "keys": None}

	if not search or not search.startswith("?"):
		return params

	query = urllib.parse.parse_qs(search[1:])

	if query.get("startKey"):
		params["startKey"] = query["startKey"][0]

	if query.get("keys"):
		try:
			params["keys"] = int(query["keys"][0])
		except ValueError:
			logger.warning(f"Ignoring non-numeric keys parameter {query['keys'][0]!r}")

	return params


def apply_params (exercise: Exercise, params: typing.Mapping[str, typing.Any]) -> Exercise:

	"""Return a copy of ``exercise`` with valid ``startKey`` / ``keys`` applied."""

	changes: typing.Dict[str, typing.Any] = {}
	start_key = params.get("startKey")
	keys = params.get("keys")

	if isinstance(start_key, str) and start_key in pianodrill.constants.CIRCLE_OF_FIFTHS_KEYS:
		pc = pianodrill.pitch.index_of(start_key)
		if pc in exercise.key_cycle:
			changes["start_key_index"] = exercise.key_cycle.index(pc)

	elif start_key is not None:
		logger.warning(f"Ignoring startKey {start_key!r}")

	if isinstance(keys, int) and not isinstance(keys, bool) and 1 <= keys <= len(pianodrill.constants.CIRCLE_OF_FIFTHS_KEYS):
		changes["max_keys"] = keys

	elif keys is not None:
		logger.warning(f"Ignoring keys {keys!r}")

	return dataclasses.replace(exercise, **changes) if changes else exercise


def load_exercise (exercise_id: str, params: typing.Union[str, typing.Mapping[str, typing.Any], None] = None) -> typing.Optional[Exercise]:

	"""Look up an exercise and apply URL-style parameters to it.

	Example:
		```python
		exercise = load_exercise("i-v-i-circle", "?startKey=G&keys=3")
		exercise.key_order()  # → [7, 2, 9]  (G, D, A)
		```
	"""

	exercise = get_exercise(exercise_id)

	if exercise is None:
		return None

	if params is None or isinstance(params, str):
		params = parse_url_params(params)

	return apply_params(exercise, params)


def get_exercise_id_from_path (pathname: str) -> typing.Optional[str]:

	"""Extract the id from a path like ``/exercise/i-v-i-circle``."""

	match = re.match(r"^/exercise/([^/]+)$", pathname or "")

	return match.group(1) if match else None


def custom_progression_exercise (text: str, key_root: typing.Any, scale: str = "major", reject_errors: bool = False) -> Exercise:

	"""Wrap a user-written progression as a single-key chord exercise.

	Raises:
		ValueError: If the key is unknown or the progression does not parse.
	"""

	root = pianodrill.pitch.to_pitch_class(key_root)
	scale_id = pianodrill.scales.resolve_scale_id(scale)

	if root == -1 or scale_id is None:
		raise ValueError(f"Unknown key: {key_root!r} {scale!r}")

	key = pianodrill.progression.KeyContext(root=root, scale=scale_id)
	result = pianodrill.progression.parse_progression(text, key)

	if result.error is not None:
		raise ValueError(result.error)

	if not result.chords:
		raise ValueError("Progression is empty")

	elements = tuple(result.chords)

	return Exercise(
		id = "custom",
		name = f"Custom progression in {key.name()}",
		mode = CHORD_MODE,
		key_cycle = (root,),
		scale = scale_id,
		make_sequence = lambda _root: list(elements),
		reject_errors = reject_errors,
		description = text
	)
