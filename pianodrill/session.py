"""Run a practice runner against a live MIDI input on the asyncio event loop.

mido delivers messages on its own callback thread. `PracticeSession` moves
each one onto the event loop with ``call_soon_threadsafe`` and an
``asyncio.Queue``, so the runner is only ever touched from the loop thread,
in arrival order.

The session also owns the chord runner's debounce timer: after every event it
re-arms a single ``loop.call_at`` handle from ``runner.pending_deadline()``,
and cancels it whenever the runner is reset or replaced.

Example:
	```python
	session = PracticeSession(pianodrill.exercises.get_exercise("i-v-i-circle"))
	session.on("step", lambda index, total: print(index, total))
	await session.start()
	...
	await session.stop()
	```
"""

import asyncio
import logging
import typing

import pianodrill.constants
import pianodrill.event_emitter
import pianodrill.exercises
import pianodrill.midi_input
import pianodrill.recording
import pianodrill.runner


logger = logging.getLogger(__name__)


DEVICE_UNAVAILABLE = "device unavailable"


class PracticeSession:

	"""
	A runner, its MIDI input, and the timer that drives debounced advances.

	Parameters:
		exercise: The exercise to start with.
		input_device_name: MIDI input port; ``None`` opens the first available.
		open_device: Open a MIDI port on ``start()``. Set False to drive the
			session only through ``feed()`` (tests, playback).
		recorder: When given, every fed note event is also recorded.
		reject_errors: Overrides the exercise's own setting.
		advance_ms: Chord debounce window.
	"""

	def __init__ (
		self,
		exercise: pianodrill.exercises.Exercise,
		input_device_name: typing.Optional[str] = None,
		open_device: bool = True,
		recorder: typing.Optional[pianodrill.recording.RecordingManager] = None,
		reject_errors: typing.Optional[bool] = None,
		advance_ms: float = pianodrill.constants.ADVANCE_DEBOUNCE_MS
	) -> None:

		self.input_device_name = input_device_name
		self.open_device = open_device
		self.recorder = recorder
		self.advance_ms = advance_ms

		self.midi_in: typing.Optional[typing.Any] = None
		self.running = False

		self._subscriptions: typing.List[typing.Tuple[str, pianodrill.event_emitter.CallbackType]] = []
		self._loop: typing.Optional[asyncio.AbstractEventLoop] = None
		self._queue: typing.Optional[asyncio.Queue] = None
		self._task: typing.Optional[asyncio.Task] = None
		self._timer: typing.Optional[asyncio.TimerHandle] = None
		self._timer_deadline: typing.Optional[float] = None

		self.runner = self._make_runner(exercise, reject_errors)


	def _make_runner (self, exercise: pianodrill.exercises.Exercise, reject_errors: typing.Optional[bool] = None) -> pianodrill.runner.PracticeRunner:

		runner = pianodrill.runner.make_runner(exercise, reject_errors=reject_errors, advance_ms=self.advance_ms)

		for event_name, callback in self._subscriptions:
			runner.on(event_name, callback)

		return runner


	def on (self, event_name: str, callback: pianodrill.event_emitter.CallbackType) -> None:

		"""Subscribe to runner events; subscriptions survive exercise changes."""

		self.runner.on(event_name, callback)
		self._subscriptions.append((event_name, callback))


	def _status (self, message: str) -> None:

		self.runner.events.emit("status", message)


	# -- lifecycle ---------------------------------------------------------

	async def start (self) -> None:

		"""Open the MIDI input (if enabled) and start processing events.

		A device that cannot be opened is not fatal: the session keeps running
		without input and reports ``"device unavailable"``.
		"""

		if self.running:
			return

		self._loop = asyncio.get_running_loop()
		self._queue = asyncio.Queue()

		if self.open_device:

			device_name, midi_in = pianodrill.midi_input.open_input(self.input_device_name, self._on_midi_input)

			if midi_in is None:
				logger.warning("MIDI input unavailable; practice input disabled")
				self._status(DEVICE_UNAVAILABLE)

			else:
				self.input_device_name = device_name
				self.midi_in = midi_in
				self._status(f"Listening on {device_name}")

		self.running = True
		self._task = asyncio.create_task(self._run())

		logger.info(f"Practice session started: {self.runner.exercise.name}")


	async def stop (self) -> None:

		"""Stop processing, close the MIDI port and cancel any pending advance."""

		if not self.running:
			return

		self.running = False

		if self._queue is not None:
			self._queue.put_nowait(None)

		if self._task is not None:
			await self._task
			self._task = None

		self._cancel_timer()

		if self.midi_in is not None:
			self.midi_in.close()
			self.midi_in = None

		self._queue = None
		self._loop = None

		logger.info("Practice session stopped")


	# -- input -------------------------------------------------------------

	def _on_midi_input (self, message: typing.Any) -> None:

		"""mido callback thread: hand the message to the event loop."""

		if self._queue is None or self._loop is None:
			return

		self._loop.call_soon_threadsafe(self._queue.put_nowait, message)


	async def _run (self) -> None:

		assert self._queue is not None

		while True:

			message = await self._queue.get()

			if message is None:
				break

			if isinstance(message, pianodrill.midi_input.InputEvent):
				event: typing.Optional[pianodrill.midi_input.InputEvent] = message
			else:
				event = pianodrill.midi_input.event_from_message(message)

			if event is not None:
				self.feed(event)


	def now_ms (self) -> float:

		loop = self._loop or asyncio.get_running_loop()

		return loop.time() * 1000.0


	def feed (self, event: pianodrill.midi_input.InputEvent) -> None:

		"""Process one event on the loop thread (MIDI, playback or tests)."""

		if self.recorder is not None and event.kind != pianodrill.midi_input.INPUTS_CHANGED:
			self.recorder.record_event(event)

		self.runner.handle(event, self.now_ms())
		self._arm_timer()


	async def submit (self, event: pianodrill.midi_input.InputEvent) -> None:

		"""Queue an event behind any already waiting (used for playback)."""

		if self._queue is None:
			self.feed(event)
			return

		await self._queue.put(event)


	# -- debounce timer ----------------------------------------------------

	def _arm_timer (self) -> None:

		deadline = self.runner.pending_deadline()

		if deadline is None:
			self._cancel_timer()
			return

		if self._timer is not None and self._timer_deadline == deadline:
			return

		self._cancel_timer()

		loop = self._loop or asyncio.get_running_loop()
		self._timer = loop.call_at(deadline / 1000.0, self._on_timer)
		self._timer_deadline = deadline


	def _cancel_timer (self) -> None:

		if self._timer is not None:
			self._timer.cancel()

		self._timer = None
		self._timer_deadline = None


	def _on_timer (self) -> None:

		self._timer = None
		self._timer_deadline = None

		self.runner.tick(self.now_ms())
		self._arm_timer()


	# -- control -----------------------------------------------------------

	def set_exercise (self, exercise: pianodrill.exercises.Exercise) -> None:

		"""Switch exercise; the runner is replaced when the mode changes."""

		self._cancel_timer()

		if exercise.mode == self.runner.mode:
			self.runner.set_exercise(exercise)
			return

		held = self.runner.tracker
		self.runner = self._make_runner(exercise)
		self.runner.tracker = held

		logger.info(f"Exercise: {exercise.name}")
		self.runner.restart()


	def set_key (self, key: typing.Any) -> bool:

		self._cancel_timer()

		return self.runner.set_key(key)


	def reset (self) -> None:

		self._cancel_timer()
		self.runner.reset()
