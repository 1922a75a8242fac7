"""Name the chord being held, and suggest chords the held notes could grow into.

Identification only looks at pitch classes, so any voicing or doubling of a
chord is recognised. The lowest held note decides the inversion.

Candidates are tried root by root from C to B, and for each root in the
declaration order of `pianodrill.chords.CHORD_KINDS`. `identify` returns the
first match in that order: A-C-E-G is reported as C Major 6 before A Minor 7,
while `identify_all` returns both.
"""

import dataclasses
import typing

import pianodrill.chords
import pianodrill.constants
import pianodrill.pitch


@dataclasses.dataclass(frozen=True)
class Suggestion:

	"""A chord that contains every held pitch class, and what it still needs."""

	chord: pianodrill.chords.ChordToken
	missing: typing.Tuple[int, ...]
	complexity: int


	def missing_names (self) -> typing.List[str]:

		return [pianodrill.pitch.spell(pc) for pc in self.missing]


def _valid_notes (midi_notes: typing.Iterable[typing.Any]) -> typing.List[int]:

	return [
		note for note in midi_notes
		if isinstance(note, int) and not isinstance(note, bool)
		and pianodrill.constants.MIDI_NOTE_MIN <= note <= pianodrill.constants.MIDI_NOTE_MAX
	]


def pitch_classes (midi_notes: typing.Iterable[int]) -> typing.FrozenSet[int]:

	"""Deduplicated pitch classes of a collection of MIDI notes."""

	return frozenset(note % 12 for note in _valid_notes(midi_notes))


def _inversion (root: int, kind: pianodrill.chords.ChordKind, lowest_note: int) -> int:

	"""Inversion implied by the lowest note; unusual basses count as root position."""

	bass_interval = (lowest_note % 12 - root) % 12

	if bass_interval == 0:
		return 0

	reduced = [interval % 12 for interval in kind.intervals]

	if bass_interval in reduced:
		return reduced.index(bass_interval) + 1

	return 0


def identify_all (midi_notes: typing.Iterable[int]) -> typing.List[pianodrill.chords.ChordToken]:

	"""Return every chord whose pitch classes are exactly the held pitch classes.

	Parameters:
		midi_notes: Held MIDI note numbers, in any order, duplicates allowed.

	Returns:
		Matching chords in declaration order (root C..B, then kind order), or
		``[]`` when fewer than three distinct pitch classes are held.

	Example:
		```python
		identify_all({69, 72, 76, 79})
		# → [ChordToken(root=0, kind="major6", inversion=3),
		#    ChordToken(root=9, kind="minor7", inversion=0)]
		```
	"""

	notes = _valid_notes(midi_notes)
	held = frozenset(note % 12 for note in notes)

	if len(held) < pianodrill.constants.MIN_CHORD_PITCH_CLASSES:
		return []

	lowest = min(notes)
	matches: typing.List[pianodrill.chords.ChordToken] = []

	for root in range(12):
		for kind_id, kind in pianodrill.chords.CHORD_KINDS.items():

			if kind.size != len(held):
				continue

			if frozenset(pianodrill.chords.chord_tones(root, kind_id)) == held:
				matches.append(
					pianodrill.chords.ChordToken(
						root = root,
						kind = kind_id,
						inversion = _inversion(root, kind, lowest)
					)
				)

	return matches


def identify (midi_notes: typing.Iterable[int]) -> typing.Optional[pianodrill.chords.ChordToken]:

	"""Return the first chord from :func:`identify_all`, or ``None``.

	Example:
		```python
		identify({60, 64, 67})  # → ChordToken(root=0, kind="major", inversion=0)
		identify({64, 67, 72})  # → ChordToken(root=0, kind="major", inversion=1)
		identify({60, 62})      # → None
		```
	"""

	matches = identify_all(midi_notes)

	return matches[0] if matches else None


def suggest (midi_notes: typing.Iterable[int], limit: int = pianodrill.constants.SUGGESTION_LIMIT) -> typing.List[Suggestion]:

	"""Suggest chords that the held notes are part of.

	Every chord containing all held pitch classes plus one or two more is a
	candidate. Candidates are ranked simplest first (fewest tones above the
	root), then by root name alphabetically, then by kind order.

	Example:
		```python
		[s.chord.name() for s in suggest({60, 62})]
		# → ['C Suspended 2', 'G Suspended 4', ...]
		```
	"""

	held = pitch_classes(midi_notes)

	if not held:
		return []

	candidates: typing.List[typing.Tuple[typing.Tuple[int, str, int], Suggestion]] = []

	for root in range(12):
		for order, (kind_id, kind) in enumerate(pianodrill.chords.CHORD_KINDS.items()):

			tones = pianodrill.chords.chord_tones(root, kind_id)
			tone_set = frozenset(tones)

			if not held < tone_set:
				continue

			missing = tuple(pc for pc in tones if pc not in held)

			if not 1 <= len(missing) <= 2:
				continue

			suggestion = Suggestion(
				chord = pianodrill.chords.ChordToken(root=root, kind=kind_id),
				missing = missing,
				complexity = kind.complexity
			)

			candidates.append(((kind.complexity, pianodrill.pitch.spell(root), order), suggestion))

	candidates.sort(key=lambda item: item[0])

	return [suggestion for _, suggestion in candidates[:limit]]
