"""User-facing message bundle."""

from __future__ import annotations

MESSAGES: dict[str, str] = {
    "inspection.message": "Mypy: {0}",
    "mypy.file-io-failed": "Mypy: failed to read or write files required for the scan",
    "mypy.exception": "Mypy: the scan failed unexpectedly: {0}",
    "mypy.not-available": "Mypy is not available; check the executable path and config file",
}


def message(key: str, *args: object) -> str:
    """Look up *key* and format it with positional *args*.

    Unknown keys render as the key itself so a missing entry never breaks
    a notification.
    """
    template = MESSAGES.get(key)
    if template is None:
        return key
    return template.format(*args)
