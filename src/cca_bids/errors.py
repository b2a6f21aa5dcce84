from __future__ import annotations

from pathlib import Path


class BidsError(Exception):
    """Base class for every error the CLI reports to the user."""

    exit_code = 1


class ConfigNotFound(BidsError):
    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"config file not found: {self.path}")


class ConfigParseError(BidsError):
    def __init__(self, path: Path | None, reason: str):
        self.path = Path(path) if path is not None else None
        self.reason = reason
        where = f" at {self.path}" if self.path is not None else ""
        super().__init__(f"failed to parse config{where}: {reason}")


class InvalidFlagValue(BidsError, ValueError):
    exit_code = 2

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"invalid value for --{field}: {value!r} is not a decimal number")


class MissingBidField(BidsError):
    def __init__(self, field: str, hint: str | None = None):
        self.field = field
        hint = hint or f"pass --{field} or set it in the [bid] table"
        super().__init__(f"missing {field}: {hint}")


class BidValidationError(BidsError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"bid rejected: {reason}")
