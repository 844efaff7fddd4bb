"""
In-memory representation of a translation file.

A TranslationFile is an ordered mapping from key to a TranslationUnit
(source/target pair) plus the language and domain it belongs to. Concrete
formats (Contao PHP, XLIFF) subclass it and add parsing and serialization;
nothing in this module touches the file system except save().
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from langsync.errors import MissingParameterError


class SyncMode(Enum):
    """Which value slot a synchronization pass writes."""

    SOURCE = "source"
    TARGET = "target"


@dataclass
class TranslationUnit:
    key: str
    source: Optional[str] = None
    target: Optional[str] = None


class TranslationFile:
    """
    Ordered key → TranslationUnit mapping bound to one (language, domain).

    None in a slot means "no value recorded". The domain is taken from the
    file name (without extension) when the file is created and never changes.
    """

    extension = ""

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        language: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> None:
        self.path = Path(path) if path is not None else None
        self.language = language
        if domain is None and self.path is not None:
            domain = self.path.stem
        self._domain = domain
        self.units: dict[str, TranslationUnit] = {}
        self._existed = False

    @property
    def domain(self) -> Optional[str]:
        return self._domain

    def exists(self) -> bool:
        """True when the file was present on disk when it was loaded."""
        return self._existed

    # ── key access ────────────────────────────────────────────────────────────

    def keys(self) -> list[str]:
        return list(self.units)

    def __contains__(self, key: str) -> bool:
        return key in self.units

    def __len__(self) -> int:
        return len(self.units)

    def get_unit(self, key: str) -> Optional[TranslationUnit]:
        return self.units.get(key)

    def get_value(self, key: str) -> Optional[str]:
        """Best available value: target if recorded, else source."""
        unit = self.units.get(key)
        if unit is None:
            return None
        if unit.target is not None:
            return unit.target
        return unit.source

    def unit_value(self, key: str, mode: SyncMode) -> Optional[str]:
        """The slot a synchronization pass in `mode` reads from this file."""
        unit = self.units.get(key)
        if unit is None:
            return None
        if mode is SyncMode.TARGET:
            return unit.target
        return unit.source

    # ── mutation ──────────────────────────────────────────────────────────────

    def _unit(self, key: str) -> TranslationUnit:
        unit = self.units.get(key)
        if unit is None:
            unit = self.units[key] = TranslationUnit(key)
        return unit

    def set_source(self, key: str, value: Optional[str]) -> None:
        self._unit(key).source = value

    def set_target(self, key: str, value: Optional[str]) -> None:
        self._unit(key).target = value

    def remove(self, key: str) -> None:
        self.units.pop(key, None)

    # ── persistence ───────────────────────────────────────────────────────────

    def serialize(self) -> bytes:
        raise NotImplementedError("Subclasses must implement serialize()")

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """Write the whole file, creating parent directories as needed."""
        target = Path(path) if path is not None else self.path
        if target is None:
            raise MissingParameterError(f"{type(self).__name__} is missing parameter: path")
        data = self.serialize()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        self.path = target
        self._existed = True
        return target

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(domain={self._domain!r}, "
            f"language={self.language!r}, units={len(self.units)})"
        )
