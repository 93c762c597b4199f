import importlib
import os
from types import ModuleType

ENV_ALIASES = {
    "prod": "config.production",
    "production": "config.production",
    "test": "config.testing",
    "testing": "config.testing",
}


def get_settings_module() -> str:
    # EDUFACE_SETTINGS names a module explicitly; otherwise APP_ENV picks one
    explicit = os.getenv("EDUFACE_SETTINGS", "").strip()
    if explicit:
        return explicit

    env = os.getenv("APP_ENV", "development").strip().lower()
    return ENV_ALIASES.get(env, "config.development")


def load_settings() -> ModuleType:
    return importlib.import_module(get_settings_module())
