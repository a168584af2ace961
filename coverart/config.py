import os
import json
from coverart.error_handler import log_error
from coverart.picture import coerce_picture_type

DEFAULT_CONFIG = {
    "format": "ffmetadata",
    "picture_type": 3,
    "description": "",
    "log_dir": "logs",
    "log_level": "INFO",
}

STRING_KEYS = ("format", "description", "log_dir", "log_level")


def validate_config(config):
    """Check value types, raises ValueError for the first bad key."""
    for key in STRING_KEYS:
        if not isinstance(config[key], str):
            raise ValueError(f"Config value {key!r} must be a string, got {config[key]!r}")
    config["picture_type"] = coerce_picture_type(config["picture_type"])
    return config


def load_config(config_path):
    """
    Load configuration from a JSON file, filling in defaults.
    A missing file is not an error, unknown keys are ignored.
    """
    config = dict(DEFAULT_CONFIG)
    if not config_path or not os.path.exists(config_path):
        return config

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            loaded = json.load(f)
    except (IOError, json.JSONDecodeError) as e:
        log_error(e, context={"config_path": config_path})
        raise

    try:
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {config_path} must contain a JSON object")
        config.update({k: v for k, v in loaded.items() if k in DEFAULT_CONFIG})
        return validate_config(config)
    except ValueError as e:
        log_error(e, context={"config_path": config_path})
        raise
