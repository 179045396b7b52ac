"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    EXIT_CONFLICTS = 3
    INTERNAL_ERROR = 4


class OutputFormats(Enum):
    """Output formats supported by the renderer.

    Args:
        Enum (string): Output formats supported by the renderer.
    """

    TEXT = "text"
    JSON = "json"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    OUTPUT_FORMATS = [OutputFormats.TEXT.value, OutputFormats.JSON.value]
    SCENARIO_EXTENSIONS = (".json", ".yml", ".yaml")
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

    # Rendering tunables (overridable from the YAML "render" section)
    REFERRER_SEPARATOR = ", "
    INDENT = "  "

    ENV_CONFIG = "RANGEGUARD_CONFIG"
    DEFAULT_CONFIG_PATHS = (
        "rangeguard.yml",
        "rangeguard.yaml",
        os.path.join("~", ".config", "rangeguard", "rangeguard.yml"),
    )


# Keys of the YAML "render" section mapped to Constants attributes.
_RENDER_KEYS = {
    "separator": "REFERRER_SEPARATOR",
    "indent": "INDENT",
}


def _candidate_config_paths(explicit: Optional[str] = None):
    """Yield config paths in precedence order."""
    if explicit:
        yield explicit
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        yield env_path
    for path in Constants.DEFAULT_CONFIG_PATHS:
        yield os.path.expanduser(path)


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Return the first readable YAML config as a dict, or an empty dict.

    An explicit ``path`` that does not exist is reported; missing default
    locations are skipped silently.
    """
    for candidate in _candidate_config_paths(path):
        if not os.path.isfile(candidate):
            if candidate == path:
                logger.warning("Config file not found: %s", candidate)
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as exc:
            logger.error("Failed to load config %s: %s", candidate, exc)
            return {}
        if isinstance(data, dict):
            return data
        logger.warning("Ignoring config %s: top level is not a mapping", candidate)
        return {}
    return {}


def apply_config(config: Dict[str, Any]) -> None:
    """Apply the ``render`` section of a loaded config onto Constants."""
    render = config.get("render") if isinstance(config, dict) else None
    if not isinstance(render, dict):
        return
    for key, attr in _RENDER_KEYS.items():
        value = render.get(key)
        if isinstance(value, str):
            setattr(Constants, attr, value)
