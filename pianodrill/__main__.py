import argparse
import asyncio
import datetime
import logging
import os
import sys
import typing

import pianodrill.config
import pianodrill.display
import pianodrill.errors
import pianodrill.exercises
import pianodrill.midi_input
import pianodrill.recording
import pianodrill.session
import pianodrill.storage
import pianodrill.web_ui


logger = logging.getLogger(__name__)


def build_parser () -> argparse.ArgumentParser:

	parser = argparse.ArgumentParser(prog="pianodrill", description="Piano scale and chord-progression practice from a MIDI keyboard.")

	parser.add_argument("--config", default=pianodrill.config.DEFAULT_CONFIG_PATH, help="YAML config file (default: %(default)s)")
	parser.add_argument("--device", dest="input_device", help="MIDI input port name")
	parser.add_argument("--exercise", help="Exercise id (see --list-exercises)")
	parser.add_argument("--start-key", dest="start_key", help="First key of the cycle, e.g. G or F#")
	parser.add_argument("--keys", type=int, help="Number of keys to practise (1-12)")
	parser.add_argument("--reject-errors", dest="reject_errors", action="store_true", default=None, help="Start over on a wrong note or chord")
	parser.add_argument("--progression", help="Practise a custom progression, e.g. \"I vi IV V\" or \"C Am F G\"")
	parser.add_argument("--key", default="C", help="Key for --progression (default: %(default)s)")
	parser.add_argument("--scale", default="major", help="Scale for --progression (default: %(default)s)")
	parser.add_argument("--save", metavar="NAME", help="Save --progression to the library under NAME and exit")
	parser.add_argument("--saved", metavar="ID", help="Practise a progression from the library")
	parser.add_argument("--list-saved", action="store_true", help="List saved progressions and exit")
	parser.add_argument("--record", nargs="?", const="", metavar="FILE", help="Record the session to a MIDI file (default: timestamped name)")
	parser.add_argument("--web-ui", dest="web_ui_enabled", action="store_true", default=None, help="Serve state over WebSocket")
	parser.add_argument("--no-display", dest="display_enabled", action="store_false", default=None, help="Disable the terminal status line")
	parser.add_argument("--list-devices", action="store_true", help="List MIDI input ports and exit")
	parser.add_argument("--list-exercises", action="store_true", help="List exercises and exit")
	parser.add_argument("--log-level", dest="log_level", help="DEBUG, INFO, WARNING or ERROR")

	return parser


def choose_exercise (config: pianodrill.config.Config, progression: typing.Optional[str], key: str, scale: str) -> pianodrill.exercises.Exercise:

	"""
	The exercise to run: a custom progression when given, else the configured id.

	Raises:
		ValueError: Unknown exercise id, or a progression that does not parse.
	"""

	if progression:
		return pianodrill.exercises.custom_progression_exercise(progression, key, scale, reject_errors=config.reject_errors)

	exercise = pianodrill.exercises.load_exercise(config.exercise, {"startKey": config.start_key, "keys": config.keys})

	if exercise is None:
		raise ValueError(f"Unknown exercise: {config.exercise!r}. Available: {', '.join(pianodrill.exercises.EXERCISES)}")

	return exercise


def open_library (config: pianodrill.config.Config) -> pianodrill.storage.ProgressionLibrary:

	return pianodrill.storage.ProgressionLibrary(
		pianodrill.storage.JsonFileStore(os.path.expanduser(config.storage_path))
	)


async def save_progression (config: pianodrill.config.Config, name: str, text: str, key: str, scale: str) -> typing.Dict[str, typing.Any]:

	"""
	Validate a progression in its key and save it to the library.

	Raises:
		ValueError: The progression does not parse.
		StorageError: The library rejected or could not store it.
	"""

	error = pianodrill.storage.validate_progression_string(text, key, scale)

	if error is not None:
		raise ValueError(error)

	return await open_library(config).save({
		"name": name,
		"progression": text,
		"metadata": {"key": key, "scaleType": scale},
	})


async def load_saved (config: pianodrill.config.Config, item_id: str) -> pianodrill.exercises.Exercise:

	"""Build a custom exercise from a saved progression.

	Raises:
		KeyError: No progression has this id.
	"""

	item = await open_library(config).load(item_id)
	metadata = item.get("metadata", {})

	return pianodrill.exercises.custom_progression_exercise(
		item["progression"],
		metadata.get("key", "C"),
		metadata.get("scaleType", "major"),
		reject_errors = config.reject_errors
	)


def recording_filename (requested: str) -> str:

	return requested or datetime.datetime.now().strftime("session_%Y%m%d_%H%M%S.mid")


async def run (
	config: pianodrill.config.Config,
	exercise: pianodrill.exercises.Exercise,
	recorder: typing.Optional[pianodrill.recording.RecordingManager] = None
) -> None:

	"""Run a practice session until cancelled."""

	session = pianodrill.session.PracticeSession(
		exercise,
		input_device_name = config.input_device,
		recorder = recorder,
		reject_errors = config.reject_errors or None,
		advance_ms = config.advance_ms
	)

	display = pianodrill.display.Display(session) if config.display_enabled else None
	web_ui = pianodrill.web_ui.WebUI(session, port=config.web_ui_port, octave=config.octave) if config.web_ui_enabled else None

	if display is not None:
		display.start()

	if web_ui is not None:
		await web_ui.start()

	if recorder is not None:
		recorder.start()

	await session.start()

	try:
		await asyncio.Event().wait()

	finally:
		await session.stop()

		if web_ui is not None:
			web_ui.stop()

		if display is not None:
			display.stop()


def main (argv: typing.Optional[typing.List[str]] = None) -> int:

	"""
	Main entry point for the pianodrill application.
	"""

	args = build_parser().parse_args(argv)

	try:
		config = pianodrill.config.load(
			args.config,
			input_device = args.input_device,
			exercise = args.exercise,
			start_key = args.start_key,
			keys = args.keys,
			reject_errors = args.reject_errors,
			web_ui_enabled = args.web_ui_enabled,
			display_enabled = args.display_enabled,
			log_level = args.log_level
		)

	except ValueError as exc:
		print(f"pianodrill: {exc}", file=sys.stderr)
		return 2

	logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO))

	if args.list_devices:
		for name in pianodrill.midi_input.list_input_devices():
			print(name)
		return 0

	if args.list_exercises:
		for exercise in pianodrill.exercises.get_all_exercises():
			print(f"{exercise.id:28} {exercise.name}")
		return 0

	try:
		if args.list_saved:
			for item in asyncio.run(open_library(config).list()):
				print(f"{item['id']}  {item['name']:30} {item['progression']}")
			return 0

		if args.save:
			if not args.progression:
				print("pianodrill: --save needs --progression", file=sys.stderr)
				return 2
			saved = asyncio.run(save_progression(config, args.save, args.progression, args.key, args.scale))
			print(saved["id"])
			return 0

		if args.saved:
			exercise = asyncio.run(load_saved(config, args.saved))
		else:
			exercise = choose_exercise(config, args.progression, args.key, args.scale)

	except (ValueError, KeyError, pianodrill.errors.StorageError) as exc:
		print(f"pianodrill: {exc}", file=sys.stderr)
		return 2

	logger.info(f"Pianodrill starting: {exercise.name}")

	recorder = pianodrill.recording.RecordingManager() if args.record is not None else None

	try:
		asyncio.run(run(config, exercise, recorder))

	except KeyboardInterrupt:
		logger.info("Stopped")

	if recorder is not None:
		recording = recorder.stop(exercise.name, {"exercise": exercise.id})
		if recording is not None and recording["events"]:
			pianodrill.recording.to_midi_file(recording, recording_filename(args.record))

	return 0


if __name__ == "__main__":
	sys.exit(main())
