"""Practice timing and layout constants.

- `ADVANCE_DEBOUNCE_MS = 500`: how long a correct chord must be held before the
  chord runner advances to the next step.
- `DEFAULT_OCTAVE = 4`: octave used when voicing chords for display or playback
  (C4 = MIDI 60).
- `CIRCLE_OF_FIFTHS_KEYS`: the key cycle walked by most exercises, spelled with
  sharps.
- `STORAGE_TIMEOUT_SECONDS = 5.0`: upper bound on a single save to the
  progression store.
"""

import typing


ADVANCE_DEBOUNCE_MS = 500

DEFAULT_OCTAVE = 4

MIDI_NOTE_MIN = 0
MIDI_NOTE_MAX = 127

MIN_CHORD_PITCH_CLASSES = 3

CIRCLE_OF_FIFTHS_KEYS: typing.Tuple[str, ...] = (
	"C", "G", "D", "A", "E", "B", "F#", "C#", "G#", "D#", "A#", "F",
)

PROGRESSION_FORMAT_VERSION = "1.0.0"
RECORDING_FORMAT_VERSION = "1.0"

MAX_NAME_LENGTH = 100

STORAGE_TIMEOUT_SECONDS = 5.0

SUGGESTION_LIMIT = 5
