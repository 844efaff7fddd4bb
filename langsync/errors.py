"""Error kinds raised by langsync.

Everything derives from RuntimeError so command entry points can catch a
single type, print it and exit non-zero.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class LangsyncError(RuntimeError):
    """Base class for all langsync errors."""


class ConfigurationError(LangsyncError):
    """A directory root or required setting could not be resolved."""


class ParseError(LangsyncError):
    """A language file does not have the expected structure."""

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        line: Optional[int] = None,
    ) -> None:
        self.path = Path(path) if path is not None else None
        self.line = line
        where = ""
        if self.path is not None:
            where = f"{self.path}"
            if line is not None:
                where += f":{line}"
            where += ": "
        super().__init__(f"{where}{message}")


class MissingParameterError(LangsyncError):
    """An object needed a field that was never set."""


class TransifexError(LangsyncError):
    """The Transifex API answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)
