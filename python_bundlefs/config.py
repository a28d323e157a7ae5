"""Environment-driven configuration."""

import os

DEBUG_ENV_VAR: str = "BUNDLEFS_DEBUG"


def parse_env_bool(value: str) -> bool | None:
    """Parse a string into a boolean.

    :param value: Raw environment variable string.
    :returns: Parsed boolean, or ``None`` if unknown.
    """

    v: str = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return None


def debug_enabled() -> bool:
    """Return whether new filesystems should bypass the bundle.

    Controlled via ``BUNDLEFS_DEBUG``. Unknown values are ignored.

    :returns: ``True`` if debug bypass mode is enabled.
    """

    override: str | None = os.environ.get(DEBUG_ENV_VAR)
    if override is not None and len(override) > 0:
        parsed: bool | None = parse_env_bool(override)
        if parsed is not None:
            return parsed
    return False
