import asyncio
import typing

import mido
import pytest

import pianodrill.exercises
import pianodrill.midi_input
import pianodrill.recording
import pianodrill.runner
import pianodrill.session
import conftest


def _exercise (exercise_id: str) -> pianodrill.exercises.Exercise:

	return pianodrill.exercises.get_exercise_or_raise(exercise_id)


@pytest.mark.asyncio
async def test_session_opens_input_port (patch_midi: None) -> None:

	"""Starting a session opens the requested MIDI input port."""

	session = pianodrill.session.PracticeSession(_exercise("i-v-i-circle"), input_device_name="Other Keyboard")
	statuses: typing.List[str] = []
	session.on("status", statuses.append)

	await session.start()

	assert isinstance(session.midi_in, conftest.FakeMidiIn)
	assert session.input_device_name == "Other Keyboard"
	assert statuses == ["Listening on Other Keyboard"]

	fake = session.midi_in
	await session.stop()

	assert fake.closed
	assert session.midi_in is None


@pytest.mark.asyncio
async def test_session_without_device (no_midi_inputs: None) -> None:

	"""No input port is not fatal; the session reports it and keeps running."""

	session = pianodrill.session.PracticeSession(_exercise("major-scale-journey"))
	statuses: typing.List[str] = []
	session.on("status", statuses.append)

	await session.start()

	assert session.running
	assert session.midi_in is None
	assert statuses == [pianodrill.session.DEVICE_UNAVAILABLE]

	await session.stop()


@pytest.mark.asyncio
async def test_midi_messages_reach_the_runner (patch_midi: None) -> None:

	"""Messages from the MIDI callback drive the scale runner in order."""

	session = pianodrill.session.PracticeSession(_exercise("major-scale-journey"))
	await session.start()

	assert conftest._current_fake_input is not None

	for note in (60, 62, 64):
		conftest._current_fake_input.inject(mido.Message("note_on", note=note, velocity=100))
		conftest._current_fake_input.inject(mido.Message("note_off", note=note))

	conftest._current_fake_input.inject(mido.Message("control_change", control=64, value=127))

	await asyncio.sleep(0.05)

	assert session.runner.step_index == 3

	await session.stop()


@pytest.mark.asyncio
async def test_chord_debounce_timer_advances (patch_midi: None) -> None:

	"""A held chord advances once the debounce timer fires."""

	session = pianodrill.session.PracticeSession(_exercise("i-v-i-circle"), advance_ms=30)
	steps: typing.List[typing.Tuple[int, int]] = []
	session.on("step", lambda index, total: steps.append((index, total)))

	await session.start()

	for note in (60, 64, 67):
		await session.submit(pianodrill.midi_input.InputEvent.note_on(note))

	await asyncio.sleep(0.01)

	assert session.runner.step_index == 0

	await asyncio.sleep(0.1)

	assert steps == [(1, 3)]

	await session.stop()


@pytest.mark.asyncio
async def test_release_before_deadline_cancels (patch_midi: None) -> None:

	"""Letting go before the window closes means no advance."""

	session = pianodrill.session.PracticeSession(_exercise("i-v-i-circle"), open_device=False, advance_ms=50)
	await session.start()

	for note in (60, 64, 67):
		session.feed(pianodrill.midi_input.InputEvent.note_on(note))

	session.feed(pianodrill.midi_input.InputEvent.note_off(64))

	await asyncio.sleep(0.1)

	assert session.runner.step_index == 0
	assert session.runner.pending_deadline() is None

	await session.stop()


@pytest.mark.asyncio
async def test_recorder_captures_fed_events () -> None:

	"""With a recorder attached, note events are recorded as they are played."""

	recorder = pianodrill.recording.RecordingManager()
	recorder.start()

	session = pianodrill.session.PracticeSession(_exercise("major-scale-journey"), open_device=False, recorder=recorder)
	await session.start()

	session.feed(pianodrill.midi_input.InputEvent.note_on(60))
	session.feed(pianodrill.midi_input.InputEvent.note_off(60))

	await session.stop()

	recording = recorder.stop("Warm-up")

	assert recording is not None
	assert [e["type"] for e in recording["events"]] == ["noteOn", "noteOff"]


@pytest.mark.asyncio
async def test_set_exercise_switches_runner_and_keeps_listeners () -> None:

	"""Changing mode swaps the runner; subscriptions carry over."""

	session = pianodrill.session.PracticeSession(_exercise("major-scale-journey"), open_device=False)
	steps: typing.List[typing.Tuple[int, int]] = []
	session.on("step", lambda index, total: steps.append((index, total)))

	await session.start()

	session.feed(pianodrill.midi_input.InputEvent.note_on(55))
	session.set_exercise(_exercise("i-iv-v-i-circle"))

	assert isinstance(session.runner, pianodrill.runner.ChordRunner)
	assert steps[-1] == (0, 4)
	assert session.runner.tracker.active == (55,)

	session.set_exercise(_exercise("i-v-i-circle"))

	assert steps[-1] == (0, 3)

	await session.stop()


@pytest.mark.asyncio
async def test_set_key_and_reset () -> None:

	session = pianodrill.session.PracticeSession(_exercise("i-v-i-circle"), open_device=False)
	await session.start()

	assert session.set_key("E")
	assert session.runner.current_key == 4
	assert not session.set_key("nope")

	session.reset()

	assert session.runner.step_index == 0

	await session.stop()
