import typing

import pytest

import pianodrill.__main__
import pianodrill.config
import pianodrill.exercises


def _config_file (tmp_path: typing.Any) -> str:

	"""A config whose library lives in the test's temp directory."""

	path = tmp_path / "pianodrill.yaml"
	path.write_text(f"storage:\n  path: {tmp_path / 'progressions.json'}\n", encoding="utf-8")

	return str(path)


def test_choose_exercise_from_config () -> None:

	"""The configured id, start key and key count pick the exercise."""

	config = pianodrill.config.Config(exercise="i-v-i-circle", start_key="G", keys=2)
	exercise = pianodrill.__main__.choose_exercise(config, None, "C", "major")

	assert exercise.id == "i-v-i-circle"
	assert exercise.key_order() == [7, 2]


def test_choose_exercise_custom_progression () -> None:

	config = pianodrill.config.Config(reject_errors=True)
	exercise = pianodrill.__main__.choose_exercise(config, "ii V I", "Bb", "major")

	assert [step.chord.root for step in exercise.sequence_for(10)] == [0, 5, 10]
	assert exercise.reject_errors


def test_choose_exercise_unknown_id () -> None:

	with pytest.raises(ValueError, match="Available"):
		pianodrill.__main__.choose_exercise(pianodrill.config.Config(exercise="nope"), None, "C", "major")


def test_list_exercises (tmp_path: typing.Any, capsys: pytest.CaptureFixture) -> None:

	"""--list-exercises prints every registered exercise."""

	assert pianodrill.__main__.main(["--config", _config_file(tmp_path), "--list-exercises"]) == 0

	out = capsys.readouterr().out

	for exercise_id in pianodrill.exercises.EXERCISES:
		assert exercise_id in out


def test_bad_progression_exits_with_error (tmp_path: typing.Any, capsys: pytest.CaptureFixture) -> None:

	assert pianodrill.__main__.main(["--config", _config_file(tmp_path), "--progression", "I Q V"]) == 2
	assert "Invalid symbol: Q" in capsys.readouterr().err


def test_invalid_config_exits_with_error (tmp_path: typing.Any, capsys: pytest.CaptureFixture) -> None:

	path = tmp_path / "bad.yaml"
	path.write_text("practice:\n  keys: lots\n", encoding="utf-8")

	assert pianodrill.__main__.main(["--config", str(path), "--list-exercises"]) == 2
	assert "practice.keys" in capsys.readouterr().err


def test_save_and_list_saved (tmp_path: typing.Any, capsys: pytest.CaptureFixture) -> None:

	"""A saved progression shows up in the library listing."""

	config_path = _config_file(tmp_path)

	assert pianodrill.__main__.main(["--config", config_path, "--progression", "i bVII bVI V", "--key", "A", "--scale", "natural_minor", "--save", "Andalusian"]) == 0

	saved_id = capsys.readouterr().out.strip()

	assert pianodrill.__main__.main(["--config", config_path, "--list-saved"]) == 0

	out = capsys.readouterr().out

	assert saved_id in out
	assert "Andalusian" in out


def test_save_rejects_progression_outside_key (tmp_path: typing.Any, capsys: pytest.CaptureFixture) -> None:

	assert pianodrill.__main__.main(["--config", _config_file(tmp_path), "--progression", "I vi", "--scale", "major_pentatonic", "--save", "Nope"]) == 2
	assert "vi" in capsys.readouterr().err


def test_save_needs_progression (tmp_path: typing.Any, capsys: pytest.CaptureFixture) -> None:

	assert pianodrill.__main__.main(["--config", _config_file(tmp_path), "--save", "Empty"]) == 2


@pytest.mark.asyncio
async def test_load_saved_builds_exercise (tmp_path: typing.Any) -> None:

	"""A saved progression practises in its stored key."""

	config = pianodrill.config.Config(storage_path=str(tmp_path / "progressions.json"))
	saved = await pianodrill.__main__.save_progression(config, "Turnaround", "I vi ii V", "F", "major")

	exercise = await pianodrill.__main__.load_saved(config, saved["id"])

	assert exercise.key_cycle == (5,)
	assert [step.chord.root for step in exercise.sequence_for(5)] == [5, 2, 7, 0]


def test_recording_filename () -> None:

	assert pianodrill.__main__.recording_filename("take.mid") == "take.mid"
	assert pianodrill.__main__.recording_filename("").startswith("session_")
