"""Exception types raised at the edges of the practice core.

The pure theory functions never raise for bad musical input; they return a
sentinel instead. These exceptions are for callers that ask for one (the chord
name parser) and for the storage adapters.
"""


class PianoDrillError (Exception):
	pass


class InvalidChord (PianoDrillError):

	"""A chord symbol could not be parsed."""

	def __init__ (self, text: str, reason: str = "") -> None:

		self.text = text
		message = f"Invalid chord: {text!r}"

		if reason:
			message += f" ({reason})"

		super().__init__(message)


class StorageError (PianoDrillError):
	pass


class StorageUnavailable (StorageError):
	pass


class StorageTimeout (StorageError):
	pass


class StorageCorrupt (StorageError):
	pass


class CapacityExceeded (StorageError):
	pass
