"""Configuration for DevFlow, loaded once when the package is first imported.

API keys come from a ``.env`` file at the project root. Everything else comes
from ``config.yaml`` beside this module, or from the YAML file named by the
``DEVFLOW_CONFIG`` environment variable.
"""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"
REQUIRED_KEYS = ("structured_model", "output_path")


def load_config(path: Path) -> dict:
    """Read a DevFlow YAML config file.

    Raises ValueError if the file is not a mapping or lacks a required key.
    """
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a YAML mapping.")
    missing = [key for key in REQUIRED_KEYS if key not in data]
    if missing:
        raise ValueError(f"Config file {path} is missing: {', '.join(missing)}")
    return data


_config = load_config(os.environ.get("DEVFLOW_CONFIG") or DEFAULT_CONFIG_PATH)


def get_config() -> dict:
    return _config
