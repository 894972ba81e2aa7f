"""
Configuration handling for the photo organizer.
"""

import json
import os
import re
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, Union


@dataclass
class CaptionProviderConfig:
    """Base class for caption provider configurations."""
    provider_type: str


@dataclass
class ClaudeConfig(CaptionProviderConfig):
    """Claude API configuration."""
    provider_type: str = "claude"
    api_key: str = ""
    api_url: str = "https://api.anthropic.com/v1/messages"
    model: str = "claude-3-5-haiku-latest"
    max_tokens: int = 1024


@dataclass
class OllamaConfig(CaptionProviderConfig):
    """Ollama API configuration."""
    provider_type: str = "ollama"
    api_url: str = "http://localhost:11434/api/generate"
    model: str = ""


@dataclass
class OpenRouterConfig(CaptionProviderConfig):
    """OpenRouter API configuration."""
    provider_type: str = "openrouter"
    api_key: str = ""
    api_url: str = "https://openrouter.ai/api/v1/chat/completions"
    model: str = "anthropic/claude-3-haiku"
    site_url: str = "https://photo-organizer.example.com"
    title: str = "Photo Organizer"


@dataclass
class AppConfig:
    """Main application configuration."""
    provider: Optional[Union[ClaudeConfig, OllamaConfig, OpenRouterConfig]] = None
    storage_dir: str = "~/.photo_organizer"
    thumbnail_max_width: int = 200
    thumbnail_max_height: int = 200
    thumbnail_quality: float = 0.8
    thumbnail_format: str = "image/jpeg"
    thumbnail_workers: int = 2
    clear_time_on_reassign: bool = False  # Drop a stale scheduled time when a photo moves to another day
    max_retries: int = 3
    request_timeout: int = 30
    log_level: str = "INFO"
    log_file: Optional[str] = None
    debug_mode: bool = False

    @property
    def resolved_storage_dir(self) -> str:
        """Storage directory with user home expanded."""
        return os.path.abspath(os.path.expanduser(self.storage_dir))


def _substitute_env_vars(value: Any) -> Any:
    """
    Substitute environment variables in string values.

    Args:
        value: Value to process for environment variables

    Returns:
        Value with environment variables substituted
    """
    if not isinstance(value, str):
        return value

    # Pattern to match ${ENV_VAR} syntax
    pattern = r'\${([^}]+)}'

    def replace_env_var(match):
        env_var = match.group(1)
        env_value = os.environ.get(env_var)
        if env_value is None:
            print(f"Warning: Environment variable {env_var} not found")
            return ""
        return env_value

    return re.sub(pattern, replace_env_var, value)


def _process_config_dict(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Process a configuration dictionary to substitute environment variables.

    Args:
        config_dict: Dictionary containing configuration values

    Returns:
        Processed dictionary with environment variables substituted
    """
    result = {}

    for key, value in config_dict.items():
        if isinstance(value, dict):
            result[key] = _process_config_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _process_config_dict(item) if isinstance(item, dict) else _substitute_env_vars(item)
                for item in value
            ]
        else:
            result[key] = _substitute_env_vars(value)

    return result


def _build_provider_config(provider_type: str, config_dict: Dict[str, Any]):
    """
    Pop provider-specific keys out of the flat config and build the provider config.

    Raises:
        ValueError: If the provider is unknown or a required key is missing
    """
    if provider_type == 'claude':
        if 'claude_api_key' not in config_dict:
            raise ValueError("Missing Claude API key in configuration")
        return ClaudeConfig(
            api_key=config_dict.pop('claude_api_key', ''),
            api_url=config_dict.pop('claude_api_url', ClaudeConfig.api_url),
            model=config_dict.pop('claude_model', ClaudeConfig.model),
            max_tokens=config_dict.pop('claude_max_tokens', ClaudeConfig.max_tokens)
        )
    elif provider_type == 'ollama':
        if 'ollama_model' not in config_dict:
            raise ValueError("Missing Ollama model in configuration")
        return OllamaConfig(
            api_url=config_dict.pop('ollama_api_url', OllamaConfig.api_url),
            model=config_dict.pop('ollama_model', "")
        )
    elif provider_type == 'openrouter':
        if 'openrouter_api_key' not in config_dict:
            raise ValueError("Missing OpenRouter API key in configuration")
        return OpenRouterConfig(
            api_key=config_dict.pop('openrouter_api_key', ''),
            api_url=config_dict.pop('openrouter_api_url', OpenRouterConfig.api_url),
            model=config_dict.pop('openrouter_model', OpenRouterConfig.model),
            site_url=config_dict.pop('openrouter_site_url', OpenRouterConfig.site_url),
            title=config_dict.pop('openrouter_title', OpenRouterConfig.title)
        )
    raise ValueError(f"Unsupported caption provider: {provider_type}")


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load and validate configuration from JSON file.

    A missing file yields the default configuration so the organizer works
    out of the box; the caption provider is optional.

    Args:
        config_path: Path to the configuration JSON file

    Returns:
        AppConfig object

    Raises:
        ValueError: If the configuration is invalid
        RuntimeError: If the configuration file cannot be loaded
    """
    if not config_path:
        return AppConfig()

    config_path = os.path.abspath(os.path.expanduser(config_path))
    if not os.path.exists(config_path):
        return AppConfig()

    try:
        with open(config_path, 'r') as cfg:
            config_dict = json.load(cfg)
    except (json.JSONDecodeError, IOError) as e:
        raise RuntimeError(f"Failed to load configuration from {config_path}: {str(e)}")

    if not isinstance(config_dict, dict):
        raise ValueError("Configuration root must be a JSON object")

    config_dict = _process_config_dict(config_dict)

    provider_type = config_dict.pop('provider', None)
    provider_config = _build_provider_config(provider_type, config_dict) if provider_type else None

    known_fields = set(AppConfig.__dataclass_fields__)
    unknown = sorted(set(config_dict) - known_fields)
    if unknown:
        raise ValueError(f"Unknown configuration field(s): {', '.join(unknown)}")

    return AppConfig(provider=provider_config, **config_dict)


def save_config(config: AppConfig, config_path: str) -> None:
    """
    Save configuration to JSON file.

    Args:
        config: AppConfig object
        config_path: Path to save the configuration

    Raises:
        RuntimeError: If the configuration cannot be saved
    """
    try:
        config_dict = asdict(config)

        provider_config = config_dict.pop('provider', None) or {}
        provider_type = provider_config.pop('provider_type', None)

        if provider_type:
            config_dict['provider'] = provider_type
            for key, value in provider_config.items():
                config_dict[f"{provider_type}_{key}"] = value

        with open(config_path, 'w') as f:
            json.dump(config_dict, f, indent=2)
    except (IOError, TypeError) as e:
        raise RuntimeError(f"Failed to save configuration: {str(e)}")
