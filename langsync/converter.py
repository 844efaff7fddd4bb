"""
converter.py

Walks the configured languages and domain files and keeps one translation
tree in sync with the other:

  to-xliff    Contao base language (+ existing translations) → XLIFF files
  from-xliff  translated XLIFF targets → Contao language files

Languages are the two-letter directories below the scanned root; the base
language itself is never converted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from langsync.config import ProjectConfig
from langsync.contao import ContaoFile
from langsync.errors import ConfigurationError
from langsync.sync import sync_from
from langsync.translation import SyncMode
from langsync.xliff import XliffFile

logger = logging.getLogger(__name__)

LANGUAGE_CODE_LENGTH = 2


@dataclass
class ConvertStats:
    languages: int = 0
    written: int = 0
    deleted: int = 0


def determine_languages(
    root: Path,
    only: Optional[Iterable[str]] = None,
    log: Optional[logging.Logger] = None,
) -> list[str]:
    """Two-letter sub-directories of `root`, optionally limited to `only`."""
    log = log or logger
    if not root.is_dir():
        raise ConfigurationError(f"The path {root} does not exist.")

    wanted = set(only) if only else None
    log.debug("scanning for languages in: %s", root)
    matches: list[str] = []
    for item in sorted(root.iterdir(), key=lambda p: p.name):
        name = item.name
        if item.is_dir() and len(name) == LANGUAGE_CODE_LENGTH and (wanted is None or name in wanted):
            matches.append(name)
            log.debug("using: %s", name)
        else:
            log.debug("not using: %s", name)
    return matches


def list_domain_files(directory: Path, extension: str, ignored: Iterable[str] = ()) -> list[str]:
    """Names of the `extension` files in `directory` whose name or domain is not ignored."""
    if not directory.is_dir():
        return []
    ignored = set(ignored)
    return sorted(
        p.name
        for p in directory.iterdir()
        if p.is_file() and p.suffix == extension and p.name not in ignored and p.stem not in ignored
    )


def cleanup_obsolete_files(
    directory: Path,
    keep: Iterable[str],
    extension: str,
    log: Optional[logging.Logger] = None,
) -> list[Path]:
    """
    Delete files directly inside `directory` that end with `extension` and are
    not listed in `keep`. Sub-directories are left alone.
    """
    log = log or logger
    if not directory.is_dir():
        return []
    keep = set(keep)
    deleted: list[Path] = []
    for path in sorted(directory.iterdir()):
        if not path.is_file() or path.suffix != extension or path.name in keep:
            continue
        log.debug("the file %s is obsolete, deleting...", path.name)
        path.unlink()
        deleted.append(path)
    return deleted


class AbstractConverter:
    """
    Shared language/domain iteration. Subclasses say where languages are
    scanned, which domain files a language has, and how one domain converts.
    """

    destination_extension = ""

    def __init__(
        self,
        config: ProjectConfig,
        cleanup: bool = False,
        only_languages: Optional[Iterable[str]] = None,
        ignored_resources: Optional[Iterable[str]] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.cleanup = cleanup
        self.only_languages = list(only_languages) if only_languages else None
        ignored = config.skip_files if ignored_resources is None else ignored_resources
        self.ignored_resources = frozenset(ignored)
        self.log = log or logger
        self.stats = ConvertStats()

    # ── hooks ─────────────────────────────────────────────────────────────────

    def language_root(self) -> Path:
        raise NotImplementedError

    def destination_dir(self, language: str) -> Path:
        raise NotImplementedError

    def domain_files(self, language: str) -> list[str]:
        raise NotImplementedError

    def process_domain(self, language: str, file_name: str) -> str:
        """Convert one domain file; returns the destination file name."""
        raise NotImplementedError

    # ── driver ────────────────────────────────────────────────────────────────

    def list_files(self, directory: Path, extension: str) -> list[str]:
        return list_domain_files(directory, extension, self.ignored_resources)

    def languages(self) -> list[str]:
        found = determine_languages(self.language_root(), self.only_languages, self.log)
        return [lang for lang in found if lang != self.config.base_language]

    def process_language(self, language: str) -> None:
        self.log.info("processing language: %s...", language)
        written: list[str] = []
        for file_name in self.domain_files(language):
            self.log.debug("processing file: %s...", file_name)
            written.append(self.process_domain(language, file_name))

        if self.cleanup:
            deleted = cleanup_obsolete_files(
                self.destination_dir(language), written, self.destination_extension, self.log
            )
            self.stats.deleted += len(deleted)

    def convert(self) -> ConvertStats:
        self.stats = ConvertStats()
        for language in self.languages():
            self.process_language(language)
            self.stats.languages += 1
        return self.stats


class ToXliffConverter(AbstractConverter):
    """Update XLIFF files from the Contao base language."""

    destination_extension = XliffFile.extension

    def language_root(self) -> Path:
        return self.config.contao_dir

    def destination_dir(self, language: str) -> Path:
        return self.config.xliff_dir / language

    def domain_files(self, language: str) -> list[str]:
        return self.list_files(self.config.contao_dir / self.config.base_language, ContaoFile.extension)

    def process_domain(self, language: str, file_name: str) -> str:
        base_language = self.config.base_language
        domain = Path(file_name).stem
        dst_file = domain + XliffFile.extension

        base = ContaoFile.load(self.config.contao_dir / base_language / file_name, base_language)
        variant = ContaoFile.load(self.config.contao_dir / language / file_name, language)
        dest = XliffFile.load(self.destination_dir(language) / dst_file, language)

        dest.set_data_type("php")
        dest.set_source_language(base_language)
        dest.set_target_language(language)
        dest.set_original(domain)
        if variant.exists():
            dest.set_date(variant.path.stat().st_mtime)
        else:
            dest.set_date(base.path.stat().st_mtime)

        # Pull translated values first without deleting anything, then make the
        # base file authoritative for source text and for which keys exist.
        sync_from(variant, dest, SyncMode.TARGET, False, self.log)
        sync_from(base, dest, SyncMode.SOURCE, True, self.log)

        if dest.exists() or dest.keys():
            dest.save()
            self.stats.written += 1
        return dst_file


class FromXliffConverter(AbstractConverter):
    """Write translated XLIFF targets back into Contao language files."""

    destination_extension = ContaoFile.extension

    def language_root(self) -> Path:
        return self.config.xliff_dir

    def destination_dir(self, language: str) -> Path:
        return self.config.contao_dir / language

    def domain_files(self, language: str) -> list[str]:
        return self.list_files(self.config.xliff_dir / language, XliffFile.extension)

    def process_domain(self, language: str, file_name: str) -> str:
        domain = Path(file_name).stem
        dst_file = domain + ContaoFile.extension

        src = XliffFile.load(self.config.xliff_dir / language / file_name, language)
        dest = ContaoFile.load(self.destination_dir(language) / dst_file, language)
        dest.project = self.config.project
        dest.last_updated = src.date

        # Untranslated units have no target and are dropped from the PHP file.
        sync_from(src, dest, SyncMode.TARGET, True, self.log)

        if dest.exists() or dest.keys():
            dest.save()
            self.stats.written += 1
        return dst_file
