"""Step-indexed practice state machines.

`ScaleRunner` expects single notes; `ChordRunner` expects held chords. Both
walk the step sequence an `Exercise` builds for the current key, then move on
through the exercise's key cycle.

Runners are synchronous and never raise on player input. They are driven by
two calls:

- ``handle(event, now_ms)`` for every input event, in arrival order.
- ``tick(now_ms)`` to fire a debounced chord advance once its deadline passes.
  ``pending_deadline()`` says when that is, so an event loop can arm a single
  timer (see `pianodrill.session`) and tests can step time by hand.

Listeners subscribe with ``runner.on(event_name, callback)``:

=================== ====================================================
``active``          ``(notes)`` sorted held MIDI notes
``detected``        ``(chord_or_None, all_chords)``
``suggestions``     ``(suggestions)``
``step``            ``(step_index, total_steps)``
``key_advanced``    ``(key_pitch_class)``
``cycle_completed`` ``()``
``wrong_inversion`` ``(played_inversion)``
``progression_reset`` ``()``
``status``          ``(message)``
=================== ====================================================
"""

import logging
import typing

import pianodrill.chords
import pianodrill.constants
import pianodrill.event_emitter
import pianodrill.exercises
import pianodrill.identify
import pianodrill.midi_input
import pianodrill.pitch


logger = logging.getLogger(__name__)


EVENT_NAMES: typing.Tuple[str, ...] = (
	"active",
	"detected",
	"suggestions",
	"step",
	"key_advanced",
	"cycle_completed",
	"wrong_inversion",
	"progression_reset",
	"status",
)


class PracticeRunner:

	"""
	Shared state and key cycling for both runner kinds.

	The only mutable run state is the position in the key cycle and the step
	index within the current key's sequence. Held notes live in a
	`NoteTracker`.
	"""

	mode: str = ""

	def __init__ (self, exercise: pianodrill.exercises.Exercise, reject_errors: typing.Optional[bool] = None) -> None:

		self.events = pianodrill.event_emitter.EventEmitter()
		self.tracker = pianodrill.midi_input.NoteTracker()

		self.exercise = exercise
		self.reject_errors = exercise.reject_errors if reject_errors is None else reject_errors

		self.key_position: int = 0
		self.step_index: int = 0
		self.keys_completed: int = 0
		self.sequence: typing.List[pianodrill.exercises.Step] = []

		self._load_key()


	def on (self, event_name: str, callback: pianodrill.event_emitter.CallbackType) -> None:

		"""Subscribe to a runner event (see the module docstring for names)."""

		if event_name not in EVENT_NAMES:
			raise ValueError(f"Unknown runner event {event_name!r}. Available: {', '.join(EVENT_NAMES)}")

		self.events.on(event_name, callback)


	# -- state -------------------------------------------------------------

	@property
	def key_index (self) -> int:

		"""Index into ``exercise.key_cycle`` of the current key."""

		cycle = self.exercise.key_cycle

		return (self.exercise.start_key_index + self.key_position) % len(cycle) if cycle else 0


	@property
	def current_key (self) -> int:

		"""Pitch class of the current key."""

		cycle = self.exercise.key_cycle

		return cycle[self.key_index] if cycle else 0


	@property
	def total_steps (self) -> int:

		return len(self.sequence)


	@property
	def current_step (self) -> typing.Optional[pianodrill.exercises.Step]:

		if 0 <= self.step_index < len(self.sequence):
			return self.sequence[self.step_index]

		return None


	def pending_deadline (self) -> typing.Optional[float]:

		"""Time (ms) at which ``tick`` will advance; ``None`` when nothing is pending."""

		return None


	def snapshot (self) -> typing.Dict[str, typing.Any]:

		"""Plain-data view of the runner for displays."""

		step = self.current_step

		return {
			"mode": self.mode,
			"exercise": self.exercise.id,
			"key": pianodrill.pitch.spell(self.current_key),
			"key_number": self.key_position + 1,
			"keys_total": self.exercise.keys_per_pass(),
			"step": self.step_index,
			"total_steps": self.total_steps,
			"target": _step_label(step) if step is not None else None,
			"active": self.tracker.sorted_active(),
		}


	# -- input -------------------------------------------------------------

	def handle (self, event: pianodrill.midi_input.InputEvent, now_ms: float = 0.0) -> pianodrill.midi_input.NoteChange:

		"""Apply one input event and react to the resulting held-note edges."""

		change = self.tracker.apply(event)

		if change.dropped is not None:
			self._emit("status", f"Ignored input: {change.dropped}")
			return change

		if event.kind == pianodrill.midi_input.INPUTS_CHANGED:
			logger.info(f"Input changed: {event.device}")
			self._emit("status", f"Input: {event.device}")
			return change

		if not change.changed:
			return change

		active = self.tracker.sorted_active()
		matches = pianodrill.identify.identify_all(active)

		self._emit("active", active)
		self._emit("detected", matches[0] if matches else None, matches)
		self._emit("suggestions", pianodrill.identify.suggest(active))

		self._on_change(change, matches, now_ms)

		return change


	def tick (self, now_ms: float) -> bool:

		"""Fire any advance that is due; returns True if the step moved."""

		return False


	# -- control -----------------------------------------------------------

	def reset (self) -> None:

		"""Back to the first step of the current key; cancels pending advances."""

		self._cancel_pending()
		self.step_index = 0
		self._emit("step", self.step_index, self.total_steps)


	def restart (self) -> None:

		"""Back to the first key and first step."""

		self._cancel_pending()
		self.key_position = 0
		self.keys_completed = 0
		self._load_key()
		self._emit("step", self.step_index, self.total_steps)


	def set_exercise (self, exercise: pianodrill.exercises.Exercise) -> None:

		"""Switch exercise, starting from its first key."""

		logger.info(f"Exercise: {exercise.name}")

		self.exercise = exercise
		self.reject_errors = exercise.reject_errors
		self.restart()


	def set_key (self, key: typing.Any) -> bool:

		"""Jump to a key in this exercise's pass; returns False if it is not part of it."""

		pc = pianodrill.pitch.to_pitch_class(key)
		order = self.exercise.key_order()

		if pc not in order:
			self._emit("status", f"Key {key!r} is not part of {self.exercise.name}")
			return False

		self._cancel_pending()
		self.key_position = order.index(pc)
		self._load_key()
		self._emit("key_advanced", self.current_key)
		self._emit("step", self.step_index, self.total_steps)

		return True


	# -- internals ---------------------------------------------------------

	def _emit (self, event_name: str, *args: typing.Any) -> None:

		self.events.emit(event_name, *args)


	def _on_change (self, change: pianodrill.midi_input.NoteChange, matches: typing.List[pianodrill.chords.ChordToken], now_ms: float) -> None:

		raise NotImplementedError


	def _cancel_pending (self) -> None:

		pass


	def _load_key (self) -> None:

		self.step_index = 0
		self.sequence = self.exercise.sequence_for(self.current_key)

		if not self.sequence:
			logger.warning(f"{self.exercise.id} has no steps in key {pianodrill.pitch.spell(self.current_key)}")


	def _advance_step (self) -> None:

		self.step_index += 1

		if self.step_index >= self.total_steps:
			self._complete_key()
			return

		logger.debug(f"Step {self.step_index}/{self.total_steps}")
		self._emit("step", self.step_index, self.total_steps)


	def _complete_key (self) -> None:

		"""Move to the next key; wrap (and report a completed cycle) after the last one."""

		self.keys_completed += 1
		self.key_position += 1

		wrapped = self.key_position >= self.exercise.keys_per_pass()

		if wrapped:
			self.key_position = 0

		self._load_key()

		logger.info(f"Key complete, next key {pianodrill.pitch.spell(self.current_key)}")
		self._emit("key_advanced", self.current_key)

		if wrapped:
			logger.info(f"Cycle complete: {self.exercise.name}")
			self._emit("cycle_completed")

		self._emit("step", self.step_index, self.total_steps)


class ScaleRunner (PracticeRunner):

	"""
	Advance one step each time the target pitch class is newly pressed.

	Any octave counts. A held note only counts once; it must be released and
	pressed again to count twice. With ``reject_errors`` a wrong note sends the
	player back to the first step.
	"""

	mode = pianodrill.exercises.SCALE_MODE

	def _on_change (self, change: pianodrill.midi_input.NoteChange, matches: typing.List[pianodrill.chords.ChordToken], now_ms: float) -> None:

		step = self.current_step

		if step is None or not change.pressed:
			return

		target = typing.cast(pianodrill.exercises.ScaleStep, step).pitch_class
		pressed = [note % 12 for note in change.pressed]

		if target in pressed:
			self._advance_step()
			return

		if self.reject_errors:
			wrong = pianodrill.pitch.spell(pressed[0])
			logger.debug(f"Wrong note {wrong}, expected {pianodrill.pitch.spell(target)}")
			self._emit("status", f"Wrong note {wrong}: starting over")
			self.reset()


class ChordRunner (PracticeRunner):

	"""
	Advance when the target chord has been held for the debounce window.

	Matching is level-triggered on the held notes: any interpretation of the
	held pitch classes with the target's root and kind counts, so A-C-E-G
	satisfies an Am7 target even though it also reads as C6. Inversion only
	matters when the step pins it.

	Once a chord has advanced the runner, its notes are spent: it cannot arm
	another advance until at least one of them has been released. Adding a
	doubling is not enough.
	"""

	mode = pianodrill.exercises.CHORD_MODE

	def __init__ (
		self,
		exercise: pianodrill.exercises.Exercise,
		reject_errors: typing.Optional[bool] = None,
		advance_ms: float = pianodrill.constants.ADVANCE_DEBOUNCE_MS
	) -> None:

		self.advance_ms = advance_ms
		self._deadline: typing.Optional[float] = None
		self._spent: typing.FrozenSet[int] = frozenset()

		super().__init__(exercise, reject_errors)


	def pending_deadline (self) -> typing.Optional[float]:

		return self._deadline


	def handle (self, event: pianodrill.midi_input.InputEvent, now_ms: float = 0.0) -> pianodrill.midi_input.NoteChange:

		# An advance whose window closed before this event still happens first.
		self.tick(now_ms)

		return super().handle(event, now_ms)


	def tick (self, now_ms: float) -> bool:

		if self._deadline is None or now_ms < self._deadline:
			return False

		self._deadline = None
		self._spent = frozenset(self.tracker.sorted_active())
		self._advance_step()

		return True


	def _cancel_pending (self) -> None:

		if self._deadline is not None:
			logger.debug("Pending advance cancelled")

		self._deadline = None


	def _target (self) -> typing.Optional[pianodrill.chords.ChordToken]:

		step = self.current_step

		return getattr(step, "chord", None)


	def _on_change (self, change: pianodrill.midi_input.NoteChange, matches: typing.List[pianodrill.chords.ChordToken], now_ms: float) -> None:

		held = tuple(self.tracker.sorted_active())

		# Spent until a spent note is released or a new pitch class joins.
		if self._spent and (
			not self._spent <= set(held)
			or pianodrill.identify.pitch_classes(held) != pianodrill.identify.pitch_classes(self._spent)
		):
			self._spent = frozenset()

		target = self._target()

		if target is None:
			return

		hits = [chord for chord in matches if chord.same_chord(target)]

		if hits:

			played = hits[0]

			if getattr(self.current_step, "pin_inversion", False) and played.inversion != target.inversion:
				self._cancel_pending()
				logger.debug(f"{played.name()} in {played.inversion_name()}, wanted {target.inversion_name()}")
				self._emit("wrong_inversion", played.inversion)
				self._emit("status", f"Right chord, wrong inversion: play {target.inversion_name()}")
				return

			# Extra doublings keep an already-armed advance.
			if self._deadline is None and not self._spent:
				self._deadline = now_ms + self.advance_ms

			return

		self._cancel_pending()

		if not matches or not self.reject_errors:
			return

		# Notes still on the way to the target are not mistakes.
		if pianodrill.identify.pitch_classes(held) <= target.pitch_class_set():
			return

		logger.debug(f"Wrong chord {matches[0].name()}, expected {target.name()}")
		self._emit("status", f"Wrong chord {matches[0].name()}: starting over")
		self._emit("progression_reset")
		self.reset()


def _step_label (step: pianodrill.exercises.Step) -> str:

	if isinstance(step, pianodrill.exercises.ScaleStep):
		return step.name()

	return f"{step.label} ({step.chord.name()})"


def make_runner (exercise: pianodrill.exercises.Exercise, **kwargs: typing.Any) -> PracticeRunner:

	"""Build the runner that matches the exercise's mode.

	Raises:
		ValueError: If the mode is not ``"scale"`` or ``"chord"``.
	"""

	if exercise.mode == pianodrill.exercises.SCALE_MODE:
		kwargs.pop("advance_ms", None)
		return ScaleRunner(exercise, **kwargs)

	if exercise.mode == pianodrill.exercises.CHORD_MODE:
		return ChordRunner(exercise, **kwargs)

	raise ValueError(f"Unknown exercise mode {exercise.mode!r}. Available: scale, chord")
