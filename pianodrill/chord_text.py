"""Text clean-up shared by the chord-name and progression parsers.

Chord symbols arrive from copy-pasted lead sheets, so they carry Unicode
accidentals (``♭``, ``♯``), subscript and superscript letters (``Eₘ⁷``,
``Fᵐᵃʲ⁷``), zero-width characters and exotic spaces. Everything here runs
before any regular expression is applied.
"""

import re
import typing


_CHARACTER_MAP: typing.Dict[str, str] = {
	"♭": "b",
	"♯": "#",
	"ₘ": "m",
	"ᵐ": "m",
	"ᵃ": "a",
	"ʲ": "j",
	"ᵈ": "d",
	"ⁱ": "i",
	"ⁿ": "n",
	"ˢ": "s",
	"ᵘ": "u",
	"⁰": "0",
	"¹": "1",
	"²": "2",
	"³": "3",
	"⁴": "4",
	"⁵": "5",
	"⁶": "6",
	"⁷": "7",
	"⁸": "8",
	"⁹": "9",
	"⁺": "+",
	"∆": "Δ",
	"⁄": "/",
}

_TRANSLATION = str.maketrans(_CHARACTER_MAP)

# Zero-width space, non-joiner, joiner, BOM, soft hyphen, word joiner.
_INVISIBLE = re.compile("[\u200b-\u200d\ufeff\u00ad\u2060]")

# En/em/thin/hair spaces, no-break spaces, line and paragraph separators.
_UNICODE_SPACES = re.compile("[\u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000]")

_RUNS_OF_SPACE = re.compile(r"\s+")


def clean_input_text (text: typing.Any) -> str:

	"""Strip invisible characters and fold every kind of space to one ASCII space.

	Example:
		```python
		clean_input_text("C​  F G ")  # → "C F G"
		```
	"""

	if not isinstance(text, str):
		return ""

	cleaned = _INVISIBLE.sub("", text)
	cleaned = _UNICODE_SPACES.sub(" ", cleaned)
	cleaned = _RUNS_OF_SPACE.sub(" ", cleaned)

	return cleaned.strip()


def normalize_chord_text (text: typing.Any) -> str:

	"""Produce the ASCII form of a chord symbol or progression.

	Example:
		```python
		normalize_chord_text("Eₘ⁷")   # → "Em7"
		normalize_chord_text("Fᵐᵃʲ⁷")  # → "Fmaj7"
		normalize_chord_text("D/F♯")  # → "D/F#"
		normalize_chord_text("B♭m7")  # → "Bbm7"
		```
	"""

	return clean_input_text(clean_input_text(text).translate(_TRANSLATION))


def suggest_fix (original: str, error: typing.Optional[str]) -> typing.Optional[str]:

	"""Offer a hint for a failed parse, or ``None`` when there is nothing to say."""

	if not error or not original:
		return None

	cleaned = clean_input_text(original)

	if cleaned != original.strip():
		return f'Try: "{cleaned}" (removed invisible characters)'

	match = re.search(r"Invalid (?:symbol|chord): '?(.*?)'?(?: \(|$)", error)

	if match is not None:
		token = match.group(1)

		if not token.strip():
			return "Empty token detected. Make sure chords are separated by spaces only."

		if _INVISIBLE.search(token):
			return "Invisible characters detected. Try copying the text again or typing it manually."

	return None


SAMPLE_INPUTS: typing.Dict[str, typing.Tuple[str, ...]] = {
	"roman": (
		"I IV V I",
		"I vi IV V",
		"i bVII bVI V",
		"ii7 V7 I vi",
		"I V vi iii IV I IV V",
	),
	"absolute": (
		"C F G C",
		"C Am F G",
		"A♭ E♭ Fm D♭ B♭m",
		"Ab Eb Fm Db Bbm",
		"Cm Bb Ab G",
		"C Fm G7 Am",
	),
	"mixed": (
		"I IV V C",
		"C F G I",
	),
}
