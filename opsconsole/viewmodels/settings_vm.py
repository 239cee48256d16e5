from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Callable, Dict, Mapping, Optional

from ..utils.logging import env_forces_debug

MIN_POOL_SIZE = 1
MAX_POOL_SIZE = 4


@dataclass(frozen=True)
class ConsoleSettings:
    """Typed runtime settings that persist via StorageLocal."""

    api_base_url: str = ""
    tenant: str = ""
    admin_upn: str = ""
    request_timeout_s: int = 10
    async_enabled_for_heavy: bool = False
    worker_pool_size: int = 2
    completion_poll_ms: int = 100
    debug_logging: bool = False
    last_action_index: int = 0


def default_settings_payload() -> Dict[str, Any]:
    """Settings dict used when nothing has been persisted yet."""
    return asdict(ConsoleSettings(debug_logging=env_forces_debug()))


class SettingsVM:
    """Keeps console settings state and validation, no I/O here."""

    def __init__(
        self,
        *,
        config: Optional[ConsoleSettings] = None,
        on_save: Optional[Callable[[dict], None]] = None,
    ) -> None:
        self.config = config or ConsoleSettings(debug_logging=env_forces_debug())
        self.on_save = on_save

    # ------------------------------------------------------------------
    # Properties bridging to the typed config
    # ------------------------------------------------------------------
    @property
    def api_base_url(self) -> str:
        return self.config.api_base_url

    @api_base_url.setter
    def api_base_url(self, value: str) -> None:
        self.config = replace(self.config, api_base_url=self._coerce_url(value))

    @property
    def async_enabled_for_heavy(self) -> bool:
        return self.config.async_enabled_for_heavy

    @async_enabled_for_heavy.setter
    def async_enabled_for_heavy(self, value: Any) -> None:
        self.config = replace(self.config, async_enabled_for_heavy=self._coerce_bool(value))

    @property
    def worker_pool_size(self) -> int:
        return self.config.worker_pool_size

    @worker_pool_size.setter
    def worker_pool_size(self, value: Any) -> None:
        self.config = replace(self.config, worker_pool_size=self._coerce_pool_size(value))

    @property
    def debug_logging(self) -> bool:
        return self.config.debug_logging

    @debug_logging.setter
    def debug_logging(self, value: Any) -> None:
        self.config = replace(self.config, debug_logging=self._coerce_bool(value))

    @property
    def last_action_index(self) -> int:
        return self.config.last_action_index

    @last_action_index.setter
    def last_action_index(self, value: Any) -> None:
        coerced = self._coerce_int("last_action_index", value, allow_negative=False)
        self.config = replace(self.config, last_action_index=coerced)

    # ------------------------------------------------------------------
    def is_valid(self) -> bool:
        url = self.config.api_base_url
        if url and not url.startswith(("http://", "https://")):
            return False
        if self.config.request_timeout_s <= 0:
            return False
        if self.config.completion_poll_ms <= 0:
            return False
        return True

    def apply_dict(self, payload: Mapping[str, Any]) -> None:
        """Apply persisted settings to the view-model."""

        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping of flat keys.")

        allowed = {spec.name for spec in fields(ConsoleSettings)}
        unknown = set(payload.keys()) - allowed
        if unknown:
            raise ValueError(f"Unsupported settings keys: {', '.join(sorted(str(key) for key in unknown))}")

        updates: Dict[str, Any] = {
            key: self._coerce_config_value(key, payload[key]) for key in allowed if key in payload
        }
        if updates:
            self.config = replace(self.config, **updates)

    def to_dict(self) -> dict:
        return asdict(self.config)

    def cmd_save(self) -> None:
        if not self.is_valid():
            raise ValueError("Settings invalid")
        if self.on_save:
            self.on_save(self.to_dict())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _coerce_config_value(self, key: str, raw: Any) -> Any:
        if key == "api_base_url":
            return self._coerce_url(raw)
        if key in {"tenant", "admin_upn"}:
            return self._coerce_optional_str(raw)
        if key in {"request_timeout_s", "completion_poll_ms", "last_action_index"}:
            return self._coerce_int(key, raw, allow_negative=False)
        if key == "worker_pool_size":
            return self._coerce_pool_size(raw)
        if key in {"async_enabled_for_heavy", "debug_logging"}:
            return self._coerce_bool(raw)
        raise ValueError(f"Unhandled config field: {key}")

    @staticmethod
    def _coerce_url(value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValueError("api_base_url must be a string.")
        return value.strip().rstrip("/")

    @staticmethod
    def _coerce_optional_str(value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @staticmethod
    def _coerce_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    @staticmethod
    def _coerce_int(name: str, value: Any, *, allow_negative: bool = True) -> int:
        if isinstance(value, bool):
            raise ValueError(f"{name} must be an integer.")
        if isinstance(value, (int, float)):
            coerced = int(value)
        elif isinstance(value, str):
            try:
                coerced = int(value.strip())
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{name} must be an integer.") from exc
        else:
            raise ValueError(f"{name} must be an integer.")
        if not allow_negative and coerced < 0:
            raise ValueError(f"{name} must be non-negative.")
        return coerced

    @classmethod
    def _coerce_pool_size(cls, value: Any) -> int:
        size = cls._coerce_int("worker_pool_size", value)
        return max(MIN_POOL_SIZE, min(MAX_POOL_SIZE, size))


__all__ = ["ConsoleSettings", "SettingsVM", "default_settings_payload"]
