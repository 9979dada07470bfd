import importlib.util
import logging
import os
from os import getenv

from typing import Any

log = logging.getLogger(__name__)

default_settings_dict = {
    'region': 'us-east-1',
    'host': None,
    'connect_timeout_seconds': 15,
    'read_timeout_seconds': 30,
    'max_retry_attempts': 3,
    'base_backoff_ms': 25,
    'max_pool_connections': 10,
    'extra_headers': None,
    'namespace': None,
    'read_capacity': 100,
    'write_capacity': 20,
    'batch_size': None,
    'backoff': None,
    'store_attribute_with_nil_value': False,
    'sync_retry_max_times': 60,
    'sync_retry_wait_seconds': 2,
    'warn_on_scan': True,
}

OVERRIDE_SETTINGS_PATH = getenv('DYNAMAP_CONFIG', '/etc/dynamap/global_default_settings.py')


def _load_module(name, path):
    # https://docs.python.org/3/library/importlib.html#importing-a-source-file-directly
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)  # type: ignore
    return module


override_settings = {}
if os.path.isfile(OVERRIDE_SETTINGS_PATH):
    override_settings = _load_module('__dynamap_override_settings__', OVERRIDE_SETTINGS_PATH)
    log.info('Override settings for dynamap available %s', OVERRIDE_SETTINGS_PATH)
else:
    log.info('Override settings for dynamap not available %s', OVERRIDE_SETTINGS_PATH)
    log.info('Using Default settings value')


def get_settings_value(key: str) -> Any:
    """
    Fetches the value from the override file.
    If the value is not present, then falls back to the defaults
    """
    if hasattr(override_settings, key):
        return getattr(override_settings, key)

    if key in default_settings_dict:
        return default_settings_dict[key]

    return None
