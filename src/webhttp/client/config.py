from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping, Sequence
from typing import Any, cast

import httpx

from webhttp.resilience.retry_policy import RetryPolicy, RetryStrategy

__all__ = ["ClientConfig", "WebHttpConfig"]


@dataclasses.dataclass
class ClientConfig:
    """Transport construction settings."""

    base_url: str = ""
    """Base URL that relative request paths are resolved against."""

    headers: dict[str, str] = dataclasses.field(default_factory=dict)
    """Default headers sent with every request."""

    # If provided, caller owns lifecycle and ``WebHttp.aclose`` leaves it open.
    httpx_client: httpx.AsyncClient | None = None
    """Http client used to send requests."""


def _ensure_mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{field_name} must be a mapping")
    return cast(Mapping[str, Any], value)


def _coerce_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    raise TypeError(f"{field_name} must be a bool")


def _coerce_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise TypeError(f"{field_name} must be an int")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return int(value.strip())
    raise TypeError(f"{field_name} must be an int")


def _coerce_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise TypeError(f"{field_name} must be a float")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise TypeError(f"{field_name} must be a float")


def _coerce_strategy(value: Any, field_name: str) -> RetryStrategy:
    if isinstance(value, RetryStrategy):
        return value
    if isinstance(value, str):
        normalized = value.strip().lower()
        for member in RetryStrategy:
            if member.value == normalized or member.name.lower() == normalized:
                return member
    raise ValueError(f"{field_name} must be a valid {RetryStrategy.__name__}")


def _coerce_status_codes(value: Any, field_name: str) -> frozenset[int]:
    if isinstance(value, (set, frozenset, list, tuple)):
        return frozenset(_coerce_int(code, field_name) for code in value)
    return frozenset({_coerce_int(value, field_name)})


def _optional(coerce: Callable[[Any, str], Any]) -> Callable[[Any, str], Any]:
    def _wrapped(value: Any, field_name: str) -> Any:
        if value is None:
            return None
        return coerce(value, field_name)

    return _wrapped


FieldSpec = tuple[str, Callable[[Any, str], Any], str]


def _extract_fields(payload: Mapping[str, Any], specs: Sequence[FieldSpec]) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for name, coerce, label in specs:
        if name in payload:
            kwargs[name] = coerce(payload[name], label)
    return kwargs


_RETRY_FIELDS: tuple[FieldSpec, ...] = (
    ("max_attempts", _coerce_int, "retry.max_attempts"),
    ("strategy", _coerce_strategy, "retry.strategy"),
    ("initial_delay_ms", _coerce_int, "retry.initial_delay_ms"),
    ("max_delay_ms", _coerce_int, "retry.max_delay_ms"),
    ("backoff_multiplier", _coerce_float, "retry.backoff_multiplier"),
    ("jitter", _coerce_float, "retry.jitter"),
    ("retryable_status_codes", _coerce_status_codes, "retry.retryable_status_codes"),
    ("idempotent_only", _coerce_bool, "retry.idempotent_only"),
)

# camelCase spellings accepted in override mappings
_ALIASES = {
    "disableCrypto": "disable_crypto",
    "disableHeaderInjection": "disable_header_injection",
    "keyRefreshMaxAttempts": "key_refresh_max_attempts",
    "maxAttempts": "max_attempts",
}


def _normalize_keys(payload: Mapping[str, Any]) -> dict[str, Any]:
    return {_ALIASES.get(key, key): value for key, value in payload.items()}


def _build_retry_policy(value: Any, field_name: str, base: RetryPolicy) -> RetryPolicy:
    if isinstance(value, RetryPolicy):
        return value
    data = _normalize_keys(_ensure_mapping(value, field_name))
    unknown = set(data) - {spec[0] for spec in _RETRY_FIELDS}
    if unknown:
        raise ValueError(f"Unknown {field_name} field(s): {', '.join(sorted(unknown))}")
    return dataclasses.replace(base, **_extract_fields(data, _RETRY_FIELDS))


_CONFIG_FIELDS: tuple[FieldSpec, ...] = (
    ("timeout", _optional(_coerce_float), "timeout"),
    ("disable_crypto", _coerce_bool, "disable_crypto"),
    ("disable_header_injection", _coerce_bool, "disable_header_injection"),
    ("key_refresh_max_attempts", _coerce_int, "key_refresh_max_attempts"),
)


@dataclasses.dataclass(frozen=True, slots=True)
class WebHttpConfig:
    """Behavior settings, set per instance and overridable per call.

    Attributes:
        retry: Transport retry policy, passed to the transport unmodified.
        timeout: Request timeout in seconds; ``None`` disables it.
        disable_crypto: Skip the crypto stage.
        disable_header_injection: Skip the header stage.
        key_refresh_max_attempts: How many key-exchange resends one call may
            perform before the missing-key error becomes terminal.
    """

    retry: RetryPolicy = dataclasses.field(default_factory=RetryPolicy)
    timeout: float | None = 60.0
    disable_crypto: bool = False
    disable_header_injection: bool = False
    key_refresh_max_attempts: int = 2

    def __post_init__(self) -> None:
        if self.key_refresh_max_attempts < 0:
            raise ValueError("key_refresh_max_attempts must be >= 0")

    @classmethod
    def from_value(cls, value: WebHttpConfig | Mapping[str, Any] | None) -> WebHttpConfig:
        """Build a config from a mapping of overrides on top of the defaults."""
        if isinstance(value, WebHttpConfig):
            return value
        return cls().merge(value)

    def merge(self, overrides: WebHttpConfig | Mapping[str, Any] | None) -> WebHttpConfig:
        """Return a new config with ``overrides`` applied; ``self`` is unchanged."""
        if overrides is None:
            return self
        if isinstance(overrides, WebHttpConfig):
            return overrides
        data = _normalize_keys(_ensure_mapping(overrides, "config"))
        known = {spec[0] for spec in _CONFIG_FIELDS} | {"retry"}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config field(s): {', '.join(sorted(unknown))}")
        kwargs = _extract_fields(data, _CONFIG_FIELDS)
        if "retry" in data:
            kwargs["retry"] = _build_retry_policy(data["retry"], "retry", self.retry)
        if not kwargs:
            return self
        return dataclasses.replace(self, **kwargs)
