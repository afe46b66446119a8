"""
Configuration loader for MCPFlow settings.
"""
import os
import yaml
from pathlib import Path
from typing import Dict, Any

from dotenv import load_dotenv

load_dotenv()


DEFAULT_CONFIG: Dict[str, Any] = {
    "default_path": "example.txt",
    "save_path": "research_results.txt",
    "numeric_default": 10,
    "workspace_root": ".",
    "search_endpoint": "https://api.duckduckgo.com/",
    "http_timeout": 15,
    "max_search_results": 10,
    "model": "gpt-4o-mini",
}


def _coerce(value: str, default: Any) -> Any:
    """Convert an environment string to the type of the default value."""
    if isinstance(default, bool):
        return value.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        return int(value)
    if isinstance(default, float):
        return float(value)
    return value


def load_config() -> Dict[str, Any]:
    """
    Load settings from YAML file with environment variable overrides.

    Returns:
        Dict mapping setting names to values
    """
    config = dict(DEFAULT_CONFIG)

    config_path = Path(
        os.getenv("MCPFLOW_CONFIG")
        or Path(__file__).parent.parent.parent / "config" / "mcpflow.yaml"
    )

    try:
        if config_path.exists():
            with open(config_path, 'r') as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config and 'settings' in yaml_config:
                    # Merge with defaults, preferring YAML values
                    config = {**config, **yaml_config['settings']}
    except (OSError, yaml.YAMLError) as e:
        # If there's any error loading YAML, fall back to defaults
        print(f"Warning: Could not load config from {config_path}: {e}")

    # Apply environment variable overrides
    for key, default in DEFAULT_CONFIG.items():
        env_value = os.getenv(f"MCPFLOW_{key.upper()}")
        if env_value:
            config[key] = _coerce(env_value, default)

    return config


def get_setting(name: str) -> Any:
    """
    Get a single setting, re-reading overrides.

    Args:
        name: Setting key (default_path, save_path, workspace_root, ...)

    Returns:
        The configured value
    """
    return load_config()[name]


def get_model_name() -> str:
    """Get the model name used by the LLM client."""
    return get_setting("model")

