"""Live terminal status line for a practice session.

Shows the exercise position and what is being played, redrawn whenever the
runner reports a change::

	Key: G  Step: 3/15  Target: A  Played: C Major  Keys: 2/12

Log messages scroll above the status line without disruption.
"""

import logging
import sys
import typing

import pianodrill.chords
import pianodrill.pitch

if typing.TYPE_CHECKING:
	from pianodrill.session import PracticeSession


class DisplayLogHandler (logging.Handler):

	"""Logging handler that clears and redraws the status line around log output.

	Installed by ``Display.start()`` and removed by ``Display.stop()``.
	"""

	def __init__ (self, display: "Display") -> None:

		super().__init__()
		self._display = display


	def emit (self, record: logging.LogRecord) -> None:

		"""Clear the status line, write the log message, then redraw."""

		try:
			self._display.clear_line()

			msg = self.format(record)
			self._display.stream.write(msg + "\n")
			self._display.stream.flush()

			self._display.draw()

		except Exception:
			self.handleError(record)


class Display:

	"""Persistent status line reading its state from the session's runner.

	Example:
		```python
		display = Display(session)
		display.start()
		await session.start()
		```
	"""

	def __init__ (self, session: "PracticeSession", stream: typing.Optional[typing.TextIO] = None) -> None:

		self._session = session
		self.stream: typing.TextIO = stream if stream is not None else sys.stderr

		self._active: bool = False
		self._handler: typing.Optional[DisplayLogHandler] = None
		self._saved_handlers: typing.List[logging.Handler] = []
		self._last_line: str = ""

		self._played: typing.Optional[str] = None
		self._message: typing.Optional[str] = None

		session.on("detected", self._on_detected)
		session.on("status", self._on_status)

		for event_name in ("active", "step", "key_advanced", "cycle_completed", "wrong_inversion"):
			session.on(event_name, self.update)


	def start (self) -> None:

		"""Install the log handler and activate the display.

		Existing root logger handlers are saved and restored by ``stop()``.
		"""

		if self._active:
			return

		self._active = True

		root_logger = logging.getLogger()
		self._saved_handlers = list(root_logger.handlers)
		self._handler = DisplayLogHandler(self)

		if self._saved_handlers and self._saved_handlers[0].formatter:
			self._handler.setFormatter(self._saved_handlers[0].formatter)
		else:
			self._handler.setFormatter(logging.Formatter("%(levelname)s:%(name)s:%(message)s"))

		root_logger.handlers.clear()
		root_logger.addHandler(self._handler)

		self.update()


	def stop (self) -> None:

		"""Clear the status line and restore original log handlers."""

		if not self._active:
			return

		self.clear_line()
		self._active = False

		root_logger = logging.getLogger()
		root_logger.handlers.clear()

		for handler in self._saved_handlers:
			root_logger.addHandler(handler)

		self._saved_handlers = []
		self._handler = None


	def _on_detected (self, chord: typing.Optional[pianodrill.chords.ChordToken], _all: typing.Any = None) -> None:

		self._played = chord.name() if chord is not None else None
		self.update()


	def _on_status (self, message: str) -> None:

		self._message = message
		self.update()


	def update (self, *_: typing.Any) -> None:

		"""Rebuild and redraw the status line; event arguments are ignored."""

		if not self._active:
			return

		self._last_line = self.format_status()
		self.draw()


	def draw (self) -> None:

		"""Write the current status line to the terminal."""

		if not self._active or not self._last_line:
			return

		self.stream.write(f"\r\033[K{self._last_line}")
		self.stream.flush()


	def clear_line (self) -> None:

		if not self._active:
			return

		self.stream.write("\r\033[K")
		self.stream.flush()


	def format_status (self) -> str:

		"""Build the status string from the runner's current state."""

		state = self._session.runner.snapshot()
		parts: typing.List[str] = [f"Key: {state['key']}"]

		if state["total_steps"]:
			parts.append(f"Step: {state['step'] + 1}/{state['total_steps']}")

		if state["target"]:
			parts.append(f"Target: {state['target']}")

		if self._played:
			parts.append(f"Played: {self._played}")
		elif state["active"]:
			parts.append("Played: " + " ".join(pianodrill.pitch.note_label(note) for note in state["active"]))

		if state["keys_total"] > 1:
			parts.append(f"Keys: {state['key_number']}/{state['keys_total']}")

		if self._message:
			parts.append(f"[{self._message}]")

		return "  ".join(parts)
