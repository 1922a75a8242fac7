"""MIDI input: device selection, message conversion and held-note tracking.

`NoteTracker` turns a stream of note-on / note-off events into the set of held
notes plus what changed since the previous event. It is the only place that
decides what "pressed" means, so the practice runners never see a held note
twice.

Device access goes through ``mido``; nothing else in the package touches ports.
"""

import dataclasses
import logging
import typing

import mido

import pianodrill.constants


logger = logging.getLogger(__name__)


NOTE_ON = "note_on"
NOTE_OFF = "note_off"
INPUTS_CHANGED = "inputs_changed"


@dataclasses.dataclass(frozen=True)
class InputEvent:

	"""
	One event from the input source.

	``velocity == 0`` on a ``note_on`` is a note-off. ``inputs_changed`` carries
	an opaque device label in ``device`` and no note.
	"""

	kind: str
	midi: typing.Optional[int] = None
	velocity: int = 0
	channel: int = 0
	device: typing.Optional[str] = None


	@classmethod
	def note_on (cls, midi: int, velocity: int = 100, channel: int = 0) -> "InputEvent":

		return cls(kind=NOTE_ON, midi=midi, velocity=velocity, channel=channel)


	@classmethod
	def note_off (cls, midi: int, channel: int = 0) -> "InputEvent":

		return cls(kind=NOTE_OFF, midi=midi, velocity=0, channel=channel)


	@property
	def is_note_on (self) -> bool:

		return self.kind == NOTE_ON and self.velocity > 0


	@property
	def is_note_off (self) -> bool:

		return self.kind == NOTE_OFF or (self.kind == NOTE_ON and self.velocity == 0)


@dataclasses.dataclass(frozen=True)
class NoteChange:

	"""
	The held notes after an event, and the notes that changed state.

	``dropped`` is set (and the edges are empty) when the event was rejected.
	"""

	active: typing.Tuple[int, ...]
	pressed: typing.Tuple[int, ...] = ()
	released: typing.Tuple[int, ...] = ()
	dropped: typing.Optional[str] = None


	@property
	def changed (self) -> bool:

		return bool(self.pressed or self.released)


def is_valid_note (midi: typing.Any) -> bool:

	"""True for an int MIDI note number 0-127."""

	return (
		isinstance(midi, int) and not isinstance(midi, bool)
		and pianodrill.constants.MIDI_NOTE_MIN <= midi <= pianodrill.constants.MIDI_NOTE_MAX
	)


class NoteTracker:

	"""Track held notes and report pressed / released edges.

	Held notes are kept in press order. Pressing a note that is already held,
	or releasing one that is not, changes nothing and produces no edge.

	Example:
		```python
		tracker = NoteTracker()
		tracker.apply(InputEvent.note_on(60)).pressed   # (60,)
		tracker.apply(InputEvent.note_on(60)).pressed   # ()
		tracker.apply(InputEvent.note_off(60)).released # (60,)
		```
	"""

	def __init__ (self) -> None:

		self._held: typing.Dict[int, None] = {}


	@property
	def active (self) -> typing.Tuple[int, ...]:

		"""Held notes in the order they were pressed."""

		return tuple(self._held)


	def sorted_active (self) -> typing.List[int]:

		return sorted(self._held)


	def apply (self, event: InputEvent) -> NoteChange:

		"""Apply one event and return the resulting state and edges."""

		if event.kind == INPUTS_CHANGED:
			return NoteChange(active=self.active)

		if event.kind not in (NOTE_ON, NOTE_OFF):
			return NoteChange(active=self.active, dropped=f"unknown event kind {event.kind!r}")

		if not is_valid_note(event.midi):
			logger.warning(f"Dropping {event.kind} with invalid note {event.midi!r}")
			return NoteChange(active=self.active, dropped=f"invalid MIDI note {event.midi!r}")

		note = typing.cast(int, event.midi)

		if event.is_note_on:

			if note in self._held:
				return NoteChange(active=self.active)

			self._held[note] = None
			return NoteChange(active=self.active, pressed=(note,))

		if note not in self._held:
			return NoteChange(active=self.active)

		del self._held[note]
		return NoteChange(active=self.active, released=(note,))


	def release_all (self) -> NoteChange:

		"""Forget every held note (e.g. when the device goes away)."""

		released = self.active
		self._held.clear()

		return NoteChange(active=(), released=released)


def event_from_message (message: typing.Any) -> typing.Optional[InputEvent]:

	"""Convert a ``mido.Message`` to an ``InputEvent``; other types give ``None``."""

	if message.type == "note_on":
		return InputEvent(kind=NOTE_ON, midi=message.note, velocity=message.velocity, channel=message.channel)

	if message.type == "note_off":
		return InputEvent(kind=NOTE_OFF, midi=message.note, velocity=0, channel=message.channel)

	return None


def list_input_devices () -> typing.List[str]:

	"""Names of the available MIDI input ports (empty if the backend fails)."""

	try:
		return list(mido.get_input_names())

	except Exception as e:
		logger.error(f"Failed to list MIDI inputs: {e}")
		return []


def open_input (device_name: typing.Optional[str] = None, callback: typing.Optional[typing.Callable] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Select and open a MIDI input device.

	If ``device_name`` is given and present, that port is opened. If it is
	missing, or no name is given, the first available port is used and a
	warning is logged, which keeps saved configs portable between machines.

	Returns:
		A tuple of (device_name, midi_in_object) or (None, None) when no port
		exists or opening fails.
	"""

	try:
		inputs = mido.get_input_names()
		logger.info(f"Available MIDI inputs: {inputs}")

		if not inputs:
			logger.error("No MIDI input devices found.")
			return None, None

		target = device_name

		if target is None or target not in inputs:
			if target is not None:
				logger.warning(f"MIDI input device '{target}' not found.")
			target = inputs[0]
			logger.warning(f"Using MIDI input: {target}")

		midi_in = mido.open_input(target, callback=callback)
		logger.info(f"Opened MIDI input: {target}")
		return target, midi_in

	except Exception as e:
		logger.error(f"Failed to open MIDI input: {e}")
		return None, None
