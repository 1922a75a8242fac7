"""Settings from a YAML file, overridable from the command line.

Example ``pianodrill.yaml``::

	midi:
	  input_device: "Digital Piano:Digital Piano MIDI 1 20:0"
	practice:
	  exercise: i-iv-v-i-circle
	  reject_errors: true
	  start_key: G
	  keys: 3
	storage:
	  path: ~/.pianodrill/progressions.json
	web_ui:
	  enabled: false
	  port: 8765
	logging:
	  level: INFO
"""

import dataclasses
import logging
import os
import typing

import yaml

import pianodrill.constants


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "pianodrill.yaml"


@dataclasses.dataclass
class Config:

	"""Flattened settings; field names are ``section_key`` of the YAML layout."""

	input_device: typing.Optional[str] = None

	exercise: str = "major-scale-journey"
	reject_errors: bool = False
	start_key: typing.Optional[str] = None
	keys: typing.Optional[int] = None
	advance_ms: float = pianodrill.constants.ADVANCE_DEBOUNCE_MS
	octave: int = pianodrill.constants.DEFAULT_OCTAVE

	storage_path: str = os.path.join("~", ".pianodrill", "progressions.json")

	web_ui_enabled: bool = False
	web_ui_port: int = 8765

	display_enabled: bool = True

	log_level: str = "INFO"


# (section, key) -> (field, accepted types)
_LAYOUT: typing.Dict[typing.Tuple[str, str], typing.Tuple[str, typing.Tuple[type, ...]]] = {
	("midi", "input_device"): ("input_device", (str, type(None))),
	("practice", "exercise"): ("exercise", (str,)),
	("practice", "reject_errors"): ("reject_errors", (bool,)),
	("practice", "start_key"): ("start_key", (str, type(None))),
	("practice", "keys"): ("keys", (int, type(None))),
	("practice", "advance_ms"): ("advance_ms", (int, float)),
	("practice", "octave"): ("octave", (int,)),
	("storage", "path"): ("storage_path", (str,)),
	("web_ui", "enabled"): ("web_ui_enabled", (bool,)),
	("web_ui", "port"): ("web_ui_port", (int,)),
	("display", "enabled"): ("display_enabled", (bool,)),
	("logging", "level"): ("log_level", (str,)),
}


def load_config (config_path: str = DEFAULT_CONFIG_PATH) -> dict:

	"""
	Load the raw configuration mapping from a YAML file.

	A missing file is not an error: a warning is logged and ``{}`` returned.

	Raises:
		ValueError: If the file is not valid YAML or its top level is not a mapping.
	"""

	if not os.path.exists(config_path):
		logger.warning(f"Config file {config_path} not found. Using defaults.")
		return {}

	try:
		with open(config_path, 'r') as f:
			data = yaml.safe_load(f)

	except yaml.YAMLError as exc:
		raise ValueError(f"Config file {config_path} is not valid YAML: {exc}") from exc

	if data is None:
		return {}

	if not isinstance(data, dict):
		raise ValueError(f"Config file {config_path} must contain a mapping, got {type(data).__name__}")

	return data


def from_mapping (data: typing.Mapping[str, typing.Any]) -> Config:

	"""
	Build a ``Config`` from a nested mapping like the YAML layout.

	Unknown sections and keys are ignored with a warning.

	Raises:
		ValueError: If a known key has a value of the wrong type.
	"""

	config = Config()

	for section, values in data.items():

		if not isinstance(values, dict):
			logger.warning(f"Ignoring config section {section!r}: expected a mapping")
			continue

		for key, value in values.items():

			entry = _LAYOUT.get((section, key))

			if entry is None:
				logger.warning(f"Ignoring unknown config key {section}.{key}")
				continue

			field, types = entry

			# bool is an int subclass; only accept it where bool is asked for.
			if not isinstance(value, types) or (isinstance(value, bool) and bool not in types):
				expected = " or ".join("null" if t is type(None) else t.__name__ for t in types)
				raise ValueError(f"Config {section}.{key} must be {expected}, got {value!r}")

			setattr(config, field, value)

	return config


def apply_overrides (config: Config, **overrides: typing.Any) -> Config:

	"""Return a copy with every non-``None`` override applied (command-line flags)."""

	unknown = [name for name in overrides if name not in {f.name for f in dataclasses.fields(Config)}]

	if unknown:
		raise ValueError(f"Unknown config fields: {', '.join(unknown)}")

	changes = {name: value for name, value in overrides.items() if value is not None}

	return dataclasses.replace(config, **changes)


def load (config_path: str = DEFAULT_CONFIG_PATH, **overrides: typing.Any) -> Config:

	"""Load the YAML file and apply command-line overrides."""

	return apply_overrides(from_mapping(load_config(config_path)), **overrides)
