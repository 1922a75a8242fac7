"""Saved progressions: validation, a small key-value store, and an async library.

Stored objects are plain dicts in the persisted progression format::

	{
		"version": "1.0.0",
		"id": "3f1c...-4...",          # UUID v4
		"name": "Sad turnaround",      # 1-100 characters
		"progression": "i bVII bVI V",
		"createdAt": 1718000000000,    # ms since the epoch
		"metadata": {"key": "C", "scaleType": "natural_minor"}   # optional
	}

Stores are synchronous and keep two orderings, ``createdAt`` and ``name``.
`ProgressionLibrary` wraps a store for use from the event loop, running store
calls in a worker thread and bounding saves with a timeout.
"""

import asyncio
import copy
import datetime
import json
import logging
import os
import re
import tempfile
import threading
import time
import typing
import uuid

import pianodrill.constants
import pianodrill.errors
import pianodrill.pitch
import pianodrill.progression
import pianodrill.scales


logger = logging.getLogger(__name__)


UUID4_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)

INDEX_NAMES: typing.Tuple[str, ...] = ("createdAt", "name")
DIRECTIONS: typing.Tuple[str, ...] = ("next", "prev")


class KeyValueStore (typing.Protocol):

	"""Object store keyed by id, scannable by ``createdAt`` or ``name``."""

	def put (self, item_id: str, obj: typing.Dict[str, typing.Any]) -> None: ...

	def get (self, item_id: str) -> typing.Optional[typing.Dict[str, typing.Any]]: ...

	def delete (self, item_id: str) -> None: ...

	def scan_by (self, index_name: str, direction: str = "next") -> typing.List[typing.Dict[str, typing.Any]]: ...


def _check_scan (index_name: str, direction: str) -> None:

	if index_name not in INDEX_NAMES:
		raise ValueError(f"Unknown index {index_name!r}. Available: {', '.join(INDEX_NAMES)}")

	if direction not in DIRECTIONS:
		raise ValueError(f"Unknown direction {direction!r}. Available: {', '.join(DIRECTIONS)}")


def _sorted_items (items: typing.Iterable[typing.Dict[str, typing.Any]], index_name: str, direction: str) -> typing.List[typing.Dict[str, typing.Any]]:

	_check_scan(index_name, direction)

	# Items missing the indexed field are left out, as an index would.
	indexed = [item for item in items if item.get(index_name) is not None]

	return sorted(indexed, key=lambda item: item[index_name], reverse=(direction == "prev"))


class MemoryStore:

	"""In-process store; values are deep-copied in and out."""

	def __init__ (self) -> None:

		self._items: typing.Dict[str, typing.Dict[str, typing.Any]] = {}
		self._lock = threading.Lock()


	def put (self, item_id: str, obj: typing.Dict[str, typing.Any]) -> None:

		with self._lock:
			self._items[item_id] = copy.deepcopy(obj)


	def get (self, item_id: str) -> typing.Optional[typing.Dict[str, typing.Any]]:

		with self._lock:
			item = self._items.get(item_id)
			return copy.deepcopy(item) if item is not None else None


	def delete (self, item_id: str) -> None:

		with self._lock:
			self._items.pop(item_id, None)


	def scan_by (self, index_name: str, direction: str = "next") -> typing.List[typing.Dict[str, typing.Any]]:

		with self._lock:
			return copy.deepcopy(_sorted_items(self._items.values(), index_name, direction))


class JsonFileStore:

	"""
	Store backed by one JSON document on disk.

	Every write replaces the whole file through a temporary file in the same
	directory, so a crash never leaves a half-written document behind.

	Raises:
		StorageUnavailable: The file cannot be read or written.
		StorageCorrupt: The file exists but is not a JSON object of objects.
	"""

	def __init__ (self, path: str) -> None:

		self.path = path
		self._lock = threading.Lock()


	def _read (self) -> typing.Dict[str, typing.Dict[str, typing.Any]]:

		if not os.path.exists(self.path):
			return {}

		try:
			with open(self.path, "r", encoding="utf-8") as f:
				data = json.load(f)

		except json.JSONDecodeError as exc:
			raise pianodrill.errors.StorageCorrupt(f"{self.path} is not valid JSON: {exc}") from exc

		except OSError as exc:
			raise pianodrill.errors.StorageUnavailable(f"Cannot read {self.path}: {exc}") from exc

		if not isinstance(data, dict) or not all(isinstance(value, dict) for value in data.values()):
			raise pianodrill.errors.StorageCorrupt(f"{self.path} does not hold an object of objects")

		return data


	def _write (self, data: typing.Dict[str, typing.Dict[str, typing.Any]]) -> None:

		directory = os.path.dirname(os.path.abspath(self.path))

		try:
			os.makedirs(directory, exist_ok=True)
			fd, temp_path = tempfile.mkstemp(prefix=".pianodrill-", suffix=".json", dir=directory)

			try:
				with os.fdopen(fd, "w", encoding="utf-8") as f:
					json.dump(data, f, indent=2, ensure_ascii=False)
				os.replace(temp_path, self.path)

			except BaseException:
				if os.path.exists(temp_path):
					os.unlink(temp_path)
				raise

		except OSError as exc:
			raise pianodrill.errors.StorageUnavailable(f"Cannot write {self.path}: {exc}") from exc


	def put (self, item_id: str, obj: typing.Dict[str, typing.Any]) -> None:

		with self._lock:
			data = self._read()
			data[item_id] = obj
			self._write(data)


	def get (self, item_id: str) -> typing.Optional[typing.Dict[str, typing.Any]]:

		with self._lock:
			return self._read().get(item_id)


	def delete (self, item_id: str) -> None:

		with self._lock:
			data = self._read()
			if data.pop(item_id, None) is not None:
				self._write(data)


	def scan_by (self, index_name: str, direction: str = "next") -> typing.List[typing.Dict[str, typing.Any]]:

		with self._lock:
			return _sorted_items(self._read().values(), index_name, direction)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_progression (obj: typing.Any) -> None:

	"""Check an object against the persisted progression format.

	Raises:
		CapacityExceeded: The name is longer than 100 characters or the
			progression text is empty.
		StorageCorrupt: Any other field is missing or malformed; the message
			names the field.
	"""

	corrupt = pianodrill.errors.StorageCorrupt

	if not isinstance(obj, dict):
		raise corrupt("Progression must be an object")

	if not isinstance(obj.get("version"), str) or not obj["version"]:
		raise corrupt("Missing or invalid version field")

	if not isinstance(obj.get("id"), str) or not UUID4_PATTERN.match(obj["id"]):
		raise corrupt("Missing or invalid id field (expected a UUID v4)")

	name = obj.get("name")

	if not isinstance(name, str) or not name:
		raise corrupt("Missing or invalid name field")

	if len(name) > pianodrill.constants.MAX_NAME_LENGTH:
		raise pianodrill.errors.CapacityExceeded(f"Name must be {pianodrill.constants.MAX_NAME_LENGTH} characters or less (got {len(name)})")

	text = obj.get("progression")

	if not isinstance(text, str):
		raise corrupt("Missing or invalid progression field")

	if not text.strip():
		raise pianodrill.errors.CapacityExceeded("Progression string cannot be empty")

	created_at = obj.get("createdAt")

	if not isinstance(created_at, int) or isinstance(created_at, bool) or created_at <= 0:
		raise corrupt("Missing or invalid createdAt field")

	if "metadata" in obj:

		metadata = obj["metadata"]

		if not isinstance(metadata, dict):
			raise corrupt("Metadata must be an object")

		if not isinstance(metadata.get("key"), str) or not metadata["key"]:
			raise corrupt("Missing or invalid metadata.key field")

		if not isinstance(metadata.get("scaleType"), str) or not metadata["scaleType"]:
			raise corrupt("Missing or invalid metadata.scaleType field")


def validate_progression_string (text: str, key: typing.Optional[str] = None, scale: typing.Optional[str] = None) -> typing.Optional[str]:

	"""Return ``None`` if ``text`` parses (in the key, when given), else the error.

	An unknown key or scale is not an error by itself: absolute chords still
	validate without one.

	Example:
		```python
		validate_progression_string("I IV V", "C", "major")   # None
		validate_progression_string("I Q V", "C", "major")    # 'Invalid symbol: Q'
		```
	"""

	if not isinstance(text, str) or not text.strip():
		return "Progression string cannot be empty"

	context: typing.Optional[pianodrill.progression.KeyContext] = None
	root = pianodrill.pitch.to_pitch_class(key) if key is not None else -1
	scale_id = pianodrill.scales.resolve_scale_id(scale) if scale else None

	if root != -1 and scale_id is not None:
		context = pianodrill.progression.KeyContext(root=root, scale=scale_id)

	result = pianodrill.progression.parse_progression(text.strip(), context)

	if result.error is not None:
		return result.error

	if not result.chords:
		return "Progression could not be parsed"

	return None


def export_filename (now: typing.Optional[datetime.datetime] = None) -> str:

	"""Timestamped file name for an exported progression, e.g. ``2024-06-10-14-03-59.json``."""

	return (now or datetime.datetime.now()).strftime("%Y-%m-%d-%H-%M-%S.json")


def _now_ms () -> int:

	return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------


class ProgressionLibrary:

	"""
	Async access to saved progressions.

	Store calls run in a worker thread so a slow disk never stalls the event
	loop. Saving works on a copy: the caller's dict is never modified, and on
	any failure nothing has been written.

	Example:
		```python
		library = ProgressionLibrary(JsonFileStore("progressions.json"))
		saved = await library.save({"name": "Axis", "progression": "I V vi IV"})
		await library.list(order_by="name", direction="next")
		```
	"""

	def __init__ (self, store: KeyValueStore, timeout: float = pianodrill.constants.STORAGE_TIMEOUT_SECONDS) -> None:

		self.store = store
		self.timeout = timeout


	async def _call (self, func: typing.Callable[..., typing.Any], *args: typing.Any) -> typing.Any:

		try:
			return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.timeout)

		except asyncio.TimeoutError as exc:
			raise pianodrill.errors.StorageTimeout(f"Storage did not respond within {self.timeout:g}s") from exc


	async def save (self, progression: typing.Dict[str, typing.Any]) -> typing.Dict[str, typing.Any]:

		"""Validate and store a progression; returns the stored copy.

		Missing ``id``, ``createdAt`` and ``version`` fields are filled in.

		Raises:
			CapacityExceeded, StorageCorrupt: Validation failed.
			StorageTimeout: The store took longer than the timeout.
			StorageUnavailable: The store could not be written.
		"""

		item = copy.deepcopy(progression)

		item.setdefault("id", str(uuid.uuid4()))
		item.setdefault("createdAt", _now_ms())
		item.setdefault("version", pianodrill.constants.PROGRESSION_FORMAT_VERSION)

		validate_progression(item)

		try:
			await self._call(self.store.put, item["id"], item)

		except pianodrill.errors.StorageError:
			logger.exception(f"Failed to save progression {item['name']!r}")
			raise

		logger.info(f"Saved progression {item['name']!r} ({item['id']})")

		return item


	async def load (self, item_id: str) -> typing.Dict[str, typing.Any]:

		"""Fetch one progression, validating it on the way out.

		Raises:
			KeyError: No progression has this id.
			StorageCorrupt: The stored object is not a valid progression.
		"""

		item = await self._call(self.store.get, item_id)

		if item is None:
			raise KeyError(f"Progression with id {item_id} not found")

		validate_progression(item)

		return typing.cast(typing.Dict[str, typing.Any], item)


	async def list (self, order_by: str = "createdAt", direction: str = "prev") -> typing.List[typing.Dict[str, typing.Any]]:

		"""All valid progressions in index order; invalid entries are skipped with a warning."""

		items = await self._call(self.store.scan_by, order_by, direction)
		valid: typing.List[typing.Dict[str, typing.Any]] = []

		for item in items:

			try:
				validate_progression(item)

			except pianodrill.errors.StorageError as exc:
				logger.warning(f"Skipping stored progression {item.get('id')!r}: {exc}")
				continue

			valid.append(item)

		return valid


	async def delete (self, item_id: str) -> None:

		await self._call(self.store.delete, item_id)
		logger.info(f"Deleted progression {item_id}")


	def export_json (self, progression: typing.Dict[str, typing.Any]) -> str:

		"""Serialise a valid progression as indented JSON."""

		validate_progression(progression)

		return json.dumps(progression, indent=2, ensure_ascii=False)


	async def import_json (self, text: str) -> typing.Dict[str, typing.Any]:

		"""Parse and validate exported JSON.

		An id that is already in the library is replaced with a fresh one, so
		importing never overwrites an existing progression. The result is not
		saved; pass it to :meth:`save`.

		Raises:
			StorageCorrupt: The text is not JSON or not a valid progression.
		"""

		try:
			item = json.loads(text)

		except json.JSONDecodeError as exc:
			raise pianodrill.errors.StorageCorrupt(f"Invalid JSON: {exc}") from exc

		validate_progression(item)

		if await self._call(self.store.get, item["id"]) is not None:
			item["id"] = str(uuid.uuid4())
			logger.info(f"Imported progression {item['name']!r} given new id {item['id']}")

		return typing.cast(typing.Dict[str, typing.Any], item)
