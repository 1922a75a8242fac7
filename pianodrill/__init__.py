"""
Pianodrill - piano practice driven by a MIDI keyboard.

Pianodrill listens to what you play and walks you through scale and
chord-progression exercises, key by key around the Circle of Fifths.

What it does:

- **Names what you play.** Any held voicing is reduced to pitch classes and
  matched against sixteen chord kinds, with the inversion read from the
  lowest note. Ambiguous shapes (A-C-E-G is both Am7 and C6) are reported in
  full, and two-note fragments get "add one note" suggestions.
- **Reads progressions the way musicians write them.** Roman numerals
  (``i bVII bVI V``), lead-sheet symbols (``C | Em7 | G/B``) or a mix, with
  Unicode accidentals, sub/superscripts and stray invisible characters
  cleaned up first.
- **Runs exercises.** Scale runs, interval sprints, circle-of-fifths
  progressions and triad inversions, with optional "start over on a
  mistake", a hold-to-confirm debounce for chords, and pinned inversions.
- **Remembers.** Saved progressions in a JSON store, session recording with
  Standard MIDI File export, and a live terminal status line or WebSocket
  feed for a browser front end.

Minimal example:

	```python
	import pianodrill

	result = pianodrill.parse_progression("I vi IV V7", pianodrill.KeyContext(root=0, scale="major"))
	[element.chord.name() for element in result.chords]
	# ['C Major', 'A Minor', 'F Major', 'G Dominant 7']

	pianodrill.identify_chord({69, 72, 76, 79}).name()   # 'C Major 6'
	```

Run ``python -m pianodrill --list-exercises`` to see the built-in exercises.

Package-level exports: ``ChordToken``, ``KeyContext``, ``parse_progression``,
``parse_chord_name``, ``identify_chord``, ``identify_all``, ``suggest``,
``get_exercise``, ``ScaleRunner``, ``ChordRunner``, ``PracticeSession``.
"""

import pianodrill.chord_names
import pianodrill.chords
import pianodrill.exercises
import pianodrill.identify
import pianodrill.progression
import pianodrill.runner
import pianodrill.session


ChordToken = pianodrill.chords.ChordToken
KeyContext = pianodrill.progression.KeyContext
parse_progression = pianodrill.progression.parse_progression
parse_chord_name = pianodrill.chord_names.parse_chord_name
identify_chord = pianodrill.identify.identify
identify_all = pianodrill.identify.identify_all
suggest = pianodrill.identify.suggest
get_exercise = pianodrill.exercises.get_exercise
ScaleRunner = pianodrill.runner.ScaleRunner
ChordRunner = pianodrill.runner.ChordRunner
PracticeSession = pianodrill.session.PracticeSession
