"""Capture what the player plays, export it as a MIDI file, and play it back.

A recording is a plain dict::

	{
		"version": "1.0",
		"id": "<uuid4>",
		"name": "Warm-up",
		"createdAt": 1718000000000,
		"duration": 5123.0,                  # ms, last event
		"metadata": {...},
		"events": [
			{"type": "noteOn", "note": 60, "velocity": 90, "channel": 0, "timestamp_ms": 0.0},
			...
		]
	}

Timestamps are relative to the first event. Time spent paused is subtracted,
so they never go backwards.
"""

import asyncio
import logging
import time
import typing
import uuid

import mido

import pianodrill.constants
import pianodrill.midi_input


logger = logging.getLogger(__name__)


IDLE = "idle"
RECORDING = "recording"
PAUSED = "paused"

NOTE_ON = "noteOn"
NOTE_OFF = "noteOff"


def _monotonic_ms () -> float:

	return time.monotonic() * 1000.0


class RecordingManager:

	"""
	Record note events with pause-corrected timestamps.

	``clock`` returns milliseconds and defaults to the monotonic clock; tests
	pass a fake one.

	Example:
		```python
		recorder = RecordingManager()
		recorder.start()
		recorder.record_event(InputEvent.note_on(60, 90))
		recording = recorder.stop("Warm-up")
		```
	"""

	def __init__ (self, clock: typing.Callable[[], float] = _monotonic_ms) -> None:

		self.clock = clock
		self.state = IDLE
		self.events: typing.List[typing.Dict[str, typing.Any]] = []

		self._start_time: typing.Optional[float] = None
		self._pause_time: typing.Optional[float] = None
		self._paused_total: float = 0.0


	def _clear (self) -> None:

		self.state = IDLE
		self.events = []
		self._start_time = None
		self._pause_time = None
		self._paused_total = 0.0


	def start (self) -> None:

		if self.state == RECORDING:
			logger.warning("Already recording")
			return

		self._clear()
		self.state = RECORDING
		self._start_time = self.clock()

		logger.info("Recording started")


	def record_event (self, event: pianodrill.midi_input.InputEvent) -> bool:

		"""Append a note event; returns False (with a warning) if it was not recorded."""

		if self.state != RECORDING:
			logger.debug("Not recording, ignoring event")
			return False

		if event.is_note_on:
			kind = NOTE_ON
		elif event.is_note_off:
			kind = NOTE_OFF
		else:
			logger.warning(f"Not recording {event.kind} event")
			return False

		if not pianodrill.midi_input.is_valid_note(event.midi):
			logger.warning(f"Not recording invalid note {event.midi!r}")
			return False

		self.events.append({
			"type": kind,
			"note": event.midi,
			"velocity": event.velocity if kind == NOTE_ON else 0,
			"channel": event.channel,
			"timestamp_ms": self.current_duration(),
		})

		return True


	def pause (self) -> None:

		if self.state != RECORDING:
			logger.warning("Not recording, cannot pause")
			return

		self.state = PAUSED
		self._pause_time = self.clock()


	def resume (self) -> None:

		if self.state != PAUSED:
			logger.warning("Not paused, cannot resume")
			return

		if self._pause_time is not None:
			self._paused_total += self.clock() - self._pause_time
			self._pause_time = None

		self.state = RECORDING


	def current_duration (self) -> float:

		"""Milliseconds recorded so far, excluding pauses."""

		if self.state == IDLE or self._start_time is None:
			return 0.0

		now = self._pause_time if self._pause_time is not None else self.clock()

		return now - self._start_time - self._paused_total


	def event_count (self) -> int:

		return len(self.events)


	def stop (self, name: str = "Untitled Recording", metadata: typing.Optional[typing.Dict[str, typing.Any]] = None) -> typing.Optional[typing.Dict[str, typing.Any]]:

		"""Finish and return the recording; ``None`` if nothing was being recorded."""

		if self.state == IDLE:
			logger.warning("Not recording, nothing to stop")
			return None

		events = normalize_timestamps(self.events)

		recording = {
			"version": pianodrill.constants.RECORDING_FORMAT_VERSION,
			"id": str(uuid.uuid4()),
			"name": name,
			"createdAt": int(time.time() * 1000),
			"duration": max((e["timestamp_ms"] for e in events), default=0.0),
			"metadata": dict(metadata or {}),
			"events": events,
		}

		logger.info(f"Recording stopped: {len(events)} events, {recording['duration']:.0f} ms")

		self._clear()

		return recording


	def cancel (self) -> None:

		"""Discard the current recording."""

		if self.state != IDLE:
			logger.info("Recording cancelled")

		self._clear()


def normalize_timestamps (events: typing.Sequence[typing.Dict[str, typing.Any]]) -> typing.List[typing.Dict[str, typing.Any]]:

	"""Shift timestamps so the earliest event is at 0."""

	if not events:
		return []

	first = min(e["timestamp_ms"] for e in events)

	return [dict(e, timestamp_ms=e["timestamp_ms"] - first) for e in events]


def to_midi_file (recording: typing.Dict[str, typing.Any], filename: str, bpm: float = 120, ticks_per_beat: int = 480) -> mido.MidiFile:

	"""Write a recording to a type 0 Standard MIDI File and return it.

	Event times are converted from milliseconds to ticks at ``bpm``; a tempo
	meta message at the start preserves real time on playback.
	"""

	tempo = mido.bpm2tempo(bpm)

	mid = mido.MidiFile(type=0, ticks_per_beat=ticks_per_beat)
	track = mido.MidiTrack()
	mid.tracks.append(track)

	track.append(mido.MetaMessage("set_tempo", tempo=tempo, time=0))
	track.append(mido.MetaMessage("track_name", name=str(recording.get("name", "")), time=0))

	last_tick = 0

	for event in sorted(recording.get("events", []), key=lambda e: e["timestamp_ms"]):

		tick = int(round(mido.second2tick(event["timestamp_ms"] / 1000.0, ticks_per_beat, tempo)))
		message_type = "note_on" if event["type"] == NOTE_ON else "note_off"

		track.append(mido.Message(
			message_type,
			note = event["note"],
			velocity = event.get("velocity", 0),
			channel = event.get("channel", 0),
			time = max(0, tick - last_tick)
		))

		last_tick = max(last_tick, tick)

	try:
		mid.save(filename)
		logger.info(f"Saved {filename} ({len(recording.get('events', []))} events)")

	except OSError:
		logger.exception(f"Failed to save MIDI recording to {filename}")
		raise

	return mid


def events_from_midi_file (filename: str) -> typing.List[typing.Dict[str, typing.Any]]:

	"""Read note events back from a MIDI file with millisecond timestamps."""

	events: typing.List[typing.Dict[str, typing.Any]] = []
	elapsed = 0.0

	# Iterating a MidiFile yields messages with delta times in seconds.
	for message in mido.MidiFile(filename):

		elapsed += message.time

		if message.type not in ("note_on", "note_off"):
			continue

		is_on = message.type == "note_on" and message.velocity > 0

		events.append({
			"type": NOTE_ON if is_on else NOTE_OFF,
			"note": message.note,
			"velocity": message.velocity if is_on else 0,
			"channel": message.channel,
			"timestamp_ms": elapsed * 1000.0,
		})

	return events


def event_to_input (event: typing.Dict[str, typing.Any]) -> pianodrill.midi_input.InputEvent:

	if event["type"] == NOTE_ON:
		return pianodrill.midi_input.InputEvent.note_on(event["note"], event.get("velocity", 100), event.get("channel", 0))

	return pianodrill.midi_input.InputEvent.note_off(event["note"], event.get("channel", 0))


async def play_recording (
	recording: typing.Dict[str, typing.Any],
	callback: typing.Callable[[pianodrill.midi_input.InputEvent], typing.Any],
	speed: float = 1.0
) -> int:

	"""Replay a recording into ``callback`` with its original timing.

	``speed`` scales the tempo (2.0 plays twice as fast). Cancel the task to
	stop early. Returns the number of events delivered.

	Raises:
		ValueError: If ``speed`` is not positive.
	"""

	if speed <= 0:
		raise ValueError(f"Playback speed must be positive, got {speed}")

	loop = asyncio.get_running_loop()
	start = loop.time()
	delivered = 0

	for event in sorted(recording.get("events", []), key=lambda e: e["timestamp_ms"]):

		due = start + event["timestamp_ms"] / 1000.0 / speed
		delay = due - loop.time()

		if delay > 0:
			await asyncio.sleep(delay)

		result = callback(event_to_input(event))

		if asyncio.iscoroutine(result):
			await result

		delivered += 1

	logger.debug(f"Playback finished: {delivered} events")

	return delivered
