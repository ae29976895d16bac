# regime_aggregator/utils.py

import os
import copy
import logging

import yaml

from regime_aggregator.config import DEFAULT_REGIME_SETTINGS

logger = logging.getLogger(__name__)


def create_output_dirs(base_path, sub_dirs):
    """
    Creates a list of nested output directories if they do not already exist.
    """
    for sub_dir in sub_dirs:
        full_path = os.path.join(base_path, sub_dir)
        os.makedirs(full_path, exist_ok=True)


def load_settings(settings_yaml):
    """
    Loads regime settings from a YAML file, merged over the package defaults.

    A missing file or a YAML parsing error falls back to DEFAULT_REGIME_SETTINGS.

    Args:
        settings_yaml (str): Path to the YAML settings file.

    Returns:
        dict: Settings with 'regime' and 'output' sections.
    """
    settings = copy.deepcopy(DEFAULT_REGIME_SETTINGS)
    user_settings = {}
    try:
        if settings_yaml and os.path.exists(settings_yaml):
            with open(settings_yaml, "r") as stream:
                user_settings = yaml.safe_load(stream) or {}
            logger.info(f"Loaded regime settings from: {settings_yaml}")
        else:
            logger.warning(f"Regime settings file not found at '{settings_yaml}'. Using package defaults.")
    except yaml.YAMLError as exc:
        logger.error(f"Error parsing YAML: {exc}. Falling back to defaults.")
        user_settings = {}

    for section, values in settings.items():
        values.update(user_settings.get(section) or {})
    return settings
