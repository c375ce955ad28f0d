from typing import Any, Dict


class AISettings:
    """Helper exposing typed accessors for the ``ai_settings`` configuration section.

    Unset fields return None so that the client falls back to environment
    variables and built-in defaults.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    @property
    def api_key(self) -> str | None:
        val = self.data.get("api_key")
        return str(val) if val else None

    @property
    def model(self) -> str | None:
        val = self.data.get("model")
        return str(val) if val else None

    @property
    def base_url(self) -> str | None:
        val = self.data.get("base_url")
        return str(val) if val else None

    @property
    def temperature(self) -> float | None:
        val = self.data.get("temperature")
        return float(val) if val is not None else None

    @property
    def max_tokens(self) -> int | None:
        val = self.data.get("max_tokens")
        return int(val) if val is not None else None

    @property
    def timeout(self) -> float | None:
        val = self.data.get("timeout")
        return float(val) if val is not None else None
