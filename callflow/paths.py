"""
Path utilities for the call-flow engine.

Handles path resolution for both development mode and frozen (PyInstaller) executables.
- In development: paths are relative to the project root
- When frozen: paths are relative to the executable location

External data (cache/, config.json) lives NEXT TO the executable, not bundled inside.
"""

import sys
from pathlib import Path


def get_app_dir() -> Path:
    """
    Get the application directory.

    - In development: the project root (parent of callflow/)
    - When frozen: the directory containing the executable
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    return Path(__file__).parent.parent


def get_package_dir() -> Path:
    """Directory of the callflow package itself (bundled prompts live here)."""
    return Path(__file__).parent


def get_prompts_dir() -> Path:
    """Get the directory containing the bundled extraction prompts."""
    return get_package_dir() / "prompt_templates"


def get_default_cache_dir() -> Path:
    """Get the default directory for persisted call-flow diagrams."""
    return get_app_dir() / "cache" / "call_flows"


def get_config_path() -> Path:
    """Get the path to the config file (stores API key, cache settings)."""
    return get_app_dir() / "config.json"
