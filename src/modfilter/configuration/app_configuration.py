from __future__ import annotations
from functools import lru_cache
from pathlib import Path
import fcntl
import os
from typing import Any, Dict, Tuple
import yaml

from modfilter.ai.llm_engine import ClientConfig
from modfilter.configuration.ai_settings import AISettings
from modfilter.moderation.blocked_terms import load_blocked_terms_file
from modfilter.util.logger import get_logger

logger = get_logger("app_configuration")


DEFAULT_CONFIG_PATH = Path("./config/app_config.yml")
CONFIG_PATH_ENV = "MODFILTER_CONFIG"


def resolve_config_path() -> Path:
    """Return the YAML config path, honouring ``MODFILTER_CONFIG``."""
    return Path(os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH).resolve()


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches the contents of the YAML file, exposes dictionary-like
    access helpers, and resolves AI-specific settings through :class:`AISettings`.
    Uses fcntl file locks for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.info("[APP CONFIGURATION] Config file %s not found, using defaults.", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping, ignoring it.", self.config_path)
            return {}
        return data

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        The returned dict is the internal cache (shallow reference). Callers
        should not mutate it.
        """
        return self._data

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def ai_settings(self) -> AISettings:
        """Return the AI settings wrapped in an AISettings helper."""
        settings = self._data.get("ai_settings", {})
        if not isinstance(settings, dict):
            settings = {}
        return AISettings(settings)

    @property
    def blocked_terms(self) -> Tuple[str, ...] | None:
        """Return the configured blocklist override.

        ``blocked_terms`` may be an inline list, or a mapping with either
        ``terms`` (list) or ``file`` (path to a term file). Returns None when
        nothing is configured so the bundled baseline applies; an explicit
        empty list disables the blocklist stage.
        """
        value = self._data.get("blocked_terms")
        if value is None:
            return None
        if isinstance(value, list):
            return tuple(str(term) for term in value)
        if isinstance(value, dict):
            if "file" in value:
                path = Path(str(value["file"]))
                if not path.is_absolute():
                    path = self.config_path.parent / path
                try:
                    return load_blocked_terms_file(path)
                except OSError as exc:
                    logger.error("[APP CONFIGURATION] Failed to read blocked terms file %s: %s, using the baseline list.", path, exc)
                    return None
            terms = value.get("terms")
            if isinstance(terms, list):
                return tuple(str(term) for term in terms)
        logger.error("[APP CONFIGURATION] Unsupported blocked_terms value %r, using the baseline list.", value)
        return None

    def client_config(self) -> ClientConfig:
        """Build a ClientConfig from the file; unset values fall back at client construction."""
        ai_settings = self.ai_settings
        sampling: Dict[str, Any] = {}
        if ai_settings.temperature is not None:
            sampling["temperature"] = ai_settings.temperature
        if ai_settings.max_tokens is not None:
            sampling["max_tokens"] = ai_settings.max_tokens

        return ClientConfig(
            api_key=ai_settings.api_key,
            model=ai_settings.model,
            base_url=ai_settings.base_url,
            blocked_terms=self.blocked_terms,
            timeout=ai_settings.timeout,
            **sampling,
        )


@lru_cache()
def get_app_config() -> AppConfig:
    """Return the shared application-wide configuration instance."""
    return AppConfig(resolve_config_path())
