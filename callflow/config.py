"""
Configuration management for the call-flow engine.

Handles persistent configuration including:
- OpenAI API key and extraction model
- Cache backend selection and cache directory

Config is stored in config.json next to the project root. Environment
variables always take priority over the file.
"""

import json
import os
from pathlib import Path
from typing import Optional

from callflow.paths import get_config_path, get_default_cache_dir

DEFAULT_MODEL = "gpt-4o"
DEFAULT_CACHE_BACKEND = "json"

ENV_API_KEY = "OPENAI_API_KEY"
ENV_MODEL = "CALLFLOW_OPENAI_MODEL"
ENV_CACHE_DIR = "CALLFLOW_CACHE_DIR"
ENV_CACHE_BACKEND = "CALLFLOW_CACHE_BACKEND"


def load_config() -> dict:
    """Load configuration from config.json."""
    config_path = get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
                return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, IOError):
            return {}
    return {}


def save_config(config: dict) -> None:
    """Save configuration to config.json."""
    config_path = get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def get_api_key() -> Optional[str]:
    """
    Get the OpenAI API key.

    Priority:
    1. Environment variable OPENAI_API_KEY
    2. Stored in config.json
    """
    env_key = os.environ.get(ENV_API_KEY)
    if env_key:
        return env_key

    config = load_config()
    return config.get("openai_api_key")


def set_api_key(api_key: str) -> None:
    """Save the OpenAI API key to config.json."""
    config = load_config()
    config["openai_api_key"] = api_key
    save_config(config)
    # Also set in environment for current session
    os.environ[ENV_API_KEY] = api_key


def ensure_api_key_in_env() -> bool:
    """
    Ensure the API key is loaded into the environment.

    Returns True if an API key is available, False otherwise.
    """
    api_key = get_api_key()
    if api_key:
        os.environ[ENV_API_KEY] = api_key
        return True
    return False


def get_model() -> str:
    """Chat model used for call-flow extraction."""
    return os.environ.get(ENV_MODEL) or load_config().get("openai_model") or DEFAULT_MODEL


def get_cache_dir() -> Path:
    """Directory for the JSON cache store."""
    configured = os.environ.get(ENV_CACHE_DIR) or load_config().get("cache_dir")
    return Path(configured) if configured else get_default_cache_dir()


def get_cache_backend() -> str:
    """Cache backend type: 'json' (default) or 'memory'."""
    backend = os.environ.get(ENV_CACHE_BACKEND) or load_config().get("cache_backend") or DEFAULT_CACHE_BACKEND
    return backend.strip().lower()
