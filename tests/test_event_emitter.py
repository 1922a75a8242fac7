import pytest

import pianodrill.event_emitter


def test_on_and_emit () -> None:

	"""Registered callbacks are called in order with the emitted arguments."""

	emitter = pianodrill.event_emitter.EventEmitter()
	received: list = []

	emitter.on("step", lambda i, n: received.append(("a", i, n)))
	emitter.on("step", lambda i, n: received.append(("b", i, n)))
	emitter.emit("step", 1, 4)

	assert received == [("a", 1, 4), ("b", 1, 4)]
	assert emitter.listener_count("step") == 2


def test_emit_without_listeners () -> None:

	"""Emitting an event nobody listens to does nothing."""

	emitter = pianodrill.event_emitter.EventEmitter()

	emitter.emit("status", "hello")

	assert emitter.listener_count("status") == 0


def test_off_only_removes_target_callback () -> None:

	"""off() leaves other callbacks for the same event intact."""

	emitter = pianodrill.event_emitter.EventEmitter()
	a: list = []
	b: list = []

	def cb_a (v: int) -> None:
		a.append(v)

	def cb_b (v: int) -> None:
		b.append(v)

	emitter.on("step", cb_a)
	emitter.on("step", cb_b)
	emitter.off("step", cb_a)
	emitter.emit("step", 7)

	assert a == []
	assert b == [7]


def test_off_raises_for_unregistered_callback () -> None:

	"""off() raises ValueError when the callback was never registered."""

	emitter = pianodrill.event_emitter.EventEmitter()

	with pytest.raises(ValueError, match="step"):
		emitter.off("step", lambda: None)


def test_async_listener_needs_running_loop () -> None:

	"""A coroutine listener cannot be scheduled from plain sync code."""

	emitter = pianodrill.event_emitter.EventEmitter()

	async def listener () -> None:
		return None

	emitter.on("cycle_completed", listener)

	with pytest.raises(ValueError, match="event loop"):
		emitter.emit("cycle_completed")


@pytest.mark.asyncio
async def test_emit_async_awaits_coroutines () -> None:

	"""emit_async calls sync listeners and awaits coroutine listeners."""

	emitter = pianodrill.event_emitter.EventEmitter()
	received: list = []

	async def slow (v: int) -> None:
		received.append(("async", v))

	emitter.on("key_advanced", lambda v: received.append(("sync", v)))
	emitter.on("key_advanced", slow)

	await emitter.emit_async("key_advanced", 7)

	assert received == [("sync", 7), ("async", 7)]
