"""
Configuration Manager - settings for the bot.

Handles YAML/JSON configuration files layered over built-in defaults,
with environment variable overrides (a `.env` file is honored).
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv
from loguru import logger


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


class ConfigManager:
    """
    Configuration manager for SparkyBot.

    Features:
    - YAML/JSON configuration files
    - Environment variable overrides
    - Default values
    """

    DEFAULT_CONFIG = {
        "app": {
            "name": "SparkyBot",
            "version": "0.1.0",
            "debug": False,
        },
        "skills": {
            "store": "auto",
            "file_path": "config/skills.yaml",
            "db_path": "data/skills.db",
        },
        "supabase": {
            "url": "",
            "key": "",
        },
        "routing": {
            "use_ai": False,
            "ai_timeout_seconds": 20.0,
            "preview_chars": 100,
        },
        "audit": {
            "db_path": "data/audit.db",
        },
        "approval": {
            "ttl_seconds": 86400,
        },
        "llm": {
            "provider": "auto",
            "model": "",
            "temperature": 0.1,
        },
        "web": {
            "host": "0.0.0.0",
            "port": 8080,
        },
    }

    # env var -> (config key, converter)
    ENV_MAPPINGS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
        "SPARKY_DEBUG": ("app.debug", _as_bool),
        "SPARKY_USE_AI_ROUTING": ("routing.use_ai", _as_bool),
        "SPARKY_SKILL_STORE": ("skills.store", str),
        "SUPABASE_URL": ("supabase.url", str),
        "SUPABASE_ANON_KEY": ("supabase.key", str),
        "SUPABASE_SERVICE_KEY": ("supabase.key", str),
        "GEMINI_API_KEY": ("llm.gemini_api_key", str),
        "GOOGLE_API_KEY": ("llm.gemini_api_key", str),
        "OPENAI_API_KEY": ("llm.openai_api_key", str),
        "ANTHROPIC_API_KEY": ("llm.anthropic_api_key", str),
        "PORT": ("web.port", int),
        "SPARKY_WEB_PORT": ("web.port", int),
    }

    def __init__(self, config_path: Optional[str] = None, *, load_env_file: bool = True):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration file
            load_env_file: Read a `.env` file before applying env overrides
        """
        self._config_path = Path(config_path) if config_path else Path("config.yaml")
        self._config: Dict[str, Any] = self._deep_copy(self.DEFAULT_CONFIG)
        self._load_env_file = load_env_file
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._config_path

    async def load(self) -> None:
        """Load configuration from file and environment."""
        self._config = self._deep_copy(self.DEFAULT_CONFIG)

        if self._config_path.exists():
            try:
                content = self._config_path.read_text(encoding="utf-8")
                if self._config_path.suffix in [".yaml", ".yml"]:
                    file_config = yaml.safe_load(content) or {}
                else:
                    file_config = json.loads(content)

                if not isinstance(file_config, dict):
                    raise ValueError("configuration root must be a mapping")

                self._deep_merge(self._config, file_config)
                logger.info(f"Configuration loaded from {self._config_path}")
            except Exception as e:
                logger.warning(f"Failed to load config: {e}, using defaults")
        else:
            logger.info(f"No configuration file at {self._config_path}, using defaults")

        if self._load_env_file:
            load_dotenv()
        self._apply_env_overrides()

        self._loaded = True

    async def save(self) -> None:
        """Save configuration to file."""
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)

            if self._config_path.suffix in [".yaml", ".yml"]:
                content = yaml.dump(self._config, default_flow_style=False, sort_keys=False)
            else:
                content = json.dumps(self._config, indent=2)

            self._config_path.write_text(content, encoding="utf-8")
            logger.debug(f"Configuration saved to {self._config_path}")

        except Exception as e:
            logger.error(f"Failed to save config: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Dot-notation key (e.g., "routing.use_ai")
            default: Default value if not found

        Returns:
            Configuration value
        """
        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-notation key."""
        parts = key.split(".")
        config = self._config

        for part in parts[:-1]:
            if not isinstance(config.get(part), dict):
                config[part] = {}
            config = config[part]

        config[parts[-1]] = value

    def _apply_env_overrides(self) -> None:
        for env_var, (config_key, converter) in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value:
                try:
                    self.set(config_key, converter(value))
                    logger.debug(f"Applied env override: {env_var}")
                except Exception as e:
                    logger.warning(f"Failed to apply {env_var}: {e}")

    def _deep_merge(self, base: dict, override: dict) -> None:
        """Deep merge override into base dict."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _deep_copy(self, obj: Any) -> Any:
        if isinstance(obj, dict):
            return {k: self._deep_copy(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self._deep_copy(item) for item in obj]
        return obj

    @property
    def all(self) -> Dict[str, Any]:
        """Get all configuration."""
        return self._deep_copy(self._config)
