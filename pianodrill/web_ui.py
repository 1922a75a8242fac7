import asyncio
import json
import logging
import typing
import weakref

import websockets
import websockets.asyncio.server
import websockets.exceptions

import pianodrill.constants
import pianodrill.exercises


logger = logging.getLogger(__name__)


class WebUI:

	"""
	Background WebSocket server for browser front ends.

	Broadcasts the session state as JSON to every connected client about ten
	times a second, and accepts a few commands back::

		{"action": "set_exercise", "id": "i-v-i-circle", "params": "?startKey=G"}
		{"action": "set_key", "key": "D"}
		{"action": "reset"}
	"""

	def __init__ (
		self,
		session: typing.Any,
		port: int = 8765,
		host: str = "0.0.0.0",
		interval: float = 0.1,
		octave: int = pianodrill.constants.DEFAULT_OCTAVE
	) -> None:

		self.session_ref = weakref.ref(session)
		self.port = port
		self.host = host
		self.interval = interval
		self.octave = octave

		self._ws_server: typing.Optional[websockets.asyncio.server.Server] = None
		self._broadcast_task: typing.Optional[asyncio.Task] = None
		self._clients: typing.Set[websockets.asyncio.server.ServerConnection] = set()

		self._detected: typing.List[typing.Dict[str, typing.Any]] = []
		self._suggestions: typing.List[typing.Dict[str, typing.Any]] = []
		self._status: typing.Optional[str] = None

		session.on("detected", self._on_detected)
		session.on("suggestions", self._on_suggestions)
		session.on("status", self._on_status)


	def _on_detected (self, _chord: typing.Any, chords: typing.List[typing.Any]) -> None:

		self._detected = [chord.to_dict() for chord in chords]


	def _on_suggestions (self, suggestions: typing.List[typing.Any]) -> None:

		self._suggestions = [
			{"chord": s.chord.to_dict(), "missing": s.missing_names(), "complexity": s.complexity}
			for s in suggestions
		]


	def _on_status (self, message: str) -> None:

		self._status = message


	async def start (self) -> None:

		try:
			self._ws_server = await websockets.asyncio.server.serve(self._handle_client, self.host, self.port)
			self._broadcast_task = asyncio.create_task(self._broadcast_loop())
			logger.info(f"Web UI WebSocket listening on ws://{self.host}:{self.port}")

		except OSError as e:
			logger.error(f"WebSocket server error: {e}")


	async def _handle_client (self, websocket: websockets.asyncio.server.ServerConnection) -> None:

		self._clients.add(websocket)

		try:
			async for message in websocket:
				self.handle_command(message)

		except websockets.exceptions.ConnectionClosed:
			pass

		finally:
			self._clients.discard(websocket)


	def handle_command (self, message: typing.Union[str, bytes]) -> bool:

		"""Apply one client command; malformed commands are logged and ignored."""

		session = self.session_ref()

		if session is None:
			return False

		try:
			command = json.loads(message)
		except json.JSONDecodeError:
			logger.warning(f"Ignoring non-JSON web command: {message!r}")
			return False

		if not isinstance(command, dict):
			logger.warning(f"Ignoring web command: {command!r}")
			return False

		action = command.get("action")

		if action == "set_exercise":
			exercise = pianodrill.exercises.load_exercise(str(command.get("id")), command.get("params"))
			if exercise is None:
				logger.warning(f"Unknown exercise requested: {command.get('id')!r}")
				return False
			session.set_exercise(exercise)
			return True

		if action == "set_key":
			return bool(session.set_key(command.get("key")))

		if action == "reset":
			session.reset()
			return True

		logger.warning(f"Unknown web command action: {action!r}")
		return False


	async def _broadcast_loop (self) -> None:

		while True:

			await asyncio.sleep(self.interval)

			if not self._clients:
				continue

			session = self.session_ref()

			if session is None:
				break

			try:
				websockets.broadcast(self._clients, json.dumps(self.get_state(session)))

			except (TypeError, ValueError):
				logger.exception("Error broadcasting UI state")


	def get_state (self, session: typing.Any) -> typing.Dict[str, typing.Any]:

		state = session.runner.snapshot()
		step = session.runner.current_step

		# Keys for a front end to light up; scale steps have no voicing.
		chord = getattr(step, "chord", None)
		state["target_notes"] = chord.voice(self.octave) if chord is not None else []

		state.update({
			"detected": self._detected,
			"suggestions": self._suggestions,
			"status": self._status,
		})

		return state


	def stop (self) -> None:

		if self._broadcast_task:
			self._broadcast_task.cancel()
			self._broadcast_task = None

		if self._ws_server:
			self._ws_server.close()

			try:
				loop = asyncio.get_running_loop()
				loop.create_task(self._ws_server.wait_closed())
			except RuntimeError:
				pass

			self._ws_server = None
