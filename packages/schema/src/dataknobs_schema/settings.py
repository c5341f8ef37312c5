"""Package settings and construction-time defaults.

Settings are consulted only when a schema is built, never while a value is
being validated, so changing them cannot affect schemas that already exist.

Environment variable format:
    DATAKNOBS_SCHEMA_<SETTING>

Examples:
    - DATAKNOBS_SCHEMA_UNKNOWN_KEYS=strict
    - DATAKNOBS_SCHEMA_DATE_FORMATS=%Y-%m-%d,%d/%m/%Y
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, ClassVar, Mapping

from .exceptions import ConfigurationError
from .schema import UnknownKeys

logger = logging.getLogger(__name__)


def parse_unknown_keys(value: UnknownKeys | str) -> UnknownKeys:
    """Convert a policy name to an UnknownKeys value.

    Raises:
        ConfigurationError: If the name is not a known policy
    """
    if isinstance(value, UnknownKeys):
        return value
    try:
        return UnknownKeys(str(value).strip().lower())
    except ValueError as e:
        allowed = ", ".join(policy.value for policy in UnknownKeys)
        raise ConfigurationError(
            f"Invalid unknown key policy '{value}', expected one of: {allowed}",
            context={"unknown_keys": value},
        ) from e


def _parse_date_formats(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [part.strip() for part in value.split(",") if part.strip()]
    formats = tuple(value)
    for fmt in formats:
        if not isinstance(fmt, str) or "%" not in fmt:
            raise ConfigurationError(
                f"Invalid date format: {fmt!r}",
                context={"date_formats": list(formats)},
            )
    return formats


@dataclass(frozen=True)
class SchemaSettings:
    """Defaults applied by the schema builders.

    Attributes:
        unknown_keys: Policy for object keys that are not declared
        date_formats: ``strptime`` formats for date coercion; empty means ISO-8601
    """

    ENV_PREFIX: ClassVar[str] = "DATAKNOBS_SCHEMA_"

    unknown_keys: UnknownKeys = UnknownKeys.PASSTHROUGH
    date_formats: tuple[str, ...] = ()

    def with_overrides(self, **overrides: Any) -> SchemaSettings:
        """Return a copy with the given settings replaced.

        Raises:
            ConfigurationError: If a setting name or value is invalid
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown settings: {', '.join(sorted(unknown))}",
                context={"known_settings": sorted(known)},
            )
        if "unknown_keys" in overrides:
            overrides["unknown_keys"] = parse_unknown_keys(overrides["unknown_keys"])
        if "date_formats" in overrides:
            overrides["date_formats"] = _parse_date_formats(overrides["date_formats"])
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SchemaSettings:
        """Load settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Settings with any environment overrides applied
        """
        environ = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            key = f"{cls.ENV_PREFIX}{f.name.upper()}"
            if key in environ:
                overrides[f.name] = environ[key]
        if overrides:
            logger.debug(f"Applying schema settings from environment: {sorted(overrides)}")
        return cls().with_overrides(**overrides)


_active_settings: SchemaSettings | None = None


def get_settings() -> SchemaSettings:
    """Return the active settings, loading them from the environment on first use."""
    global _active_settings
    if _active_settings is None:
        _active_settings = SchemaSettings.from_env()
    return _active_settings


def configure(**overrides: Any) -> SchemaSettings:
    """Replace the active settings.

    Args:
        **overrides: Settings to change (``unknown_keys``, ``date_formats``)

    Returns:
        The new active settings
    """
    global _active_settings
    _active_settings = get_settings().with_overrides(**overrides)
    return _active_settings


def reset_settings() -> None:
    """Forget the active settings so they are reloaded on next use."""
    global _active_settings
    _active_settings = None
