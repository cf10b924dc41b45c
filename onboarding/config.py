"""
Optional YAML configuration for the tunable parts of the onboarding
"""

import os
import yaml

from onboarding.constants import SECRET_NAME, SECRET_VALIDITY_MONTHS

DEFAULT_CONFIG = {
    "SECRET_NAME": SECRET_NAME,
    "SECRET_VALIDITY_MONTHS": SECRET_VALIDITY_MONTHS,
    "SP_SETTLE_TIMEOUT": 60,
    "ROLE_CREATE_SETTLE_TIMEOUT": 60,
    "ROLE_UPDATE_SETTLE_TIMEOUT": 30,
    "POLL_INITIAL_DELAY": 2,
    "POLL_MAX_DELAY": 15,
}


def load_config(config_file_path: str) -> dict:
    """
    Load configuration from a YAML file, falling back to defaults for every
    key it does not set. A missing file is not an error.
    """

    config = dict(DEFAULT_CONFIG)

    if not os.path.exists(config_file_path):
        return config

    with open(config_file_path, 'r') as f:
        try:
            loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Configuration file {config_file_path} is not valid YAML: {e}") from e

    if loaded is None:
        loaded = {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Configuration file {config_file_path} must contain a mapping")

    for key, value in loaded.items():
        if key not in DEFAULT_CONFIG:
            print(f"   Ignoring unknown configuration key: {key}")
            continue
        config[key] = value

    return config
