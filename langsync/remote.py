"""
Push base-language sources to Transifex and pull translations back.

Both directions go through XliffFile and sync_from, so the remote service
sees exactly what to-xliff would produce and downloaded targets merge into
the local XLIFF tree the same way translations from Contao files do.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from langsync.config import ProjectConfig
from langsync.contao import ContaoFile
from langsync.converter import determine_languages, list_domain_files
from langsync.sync import sync_from
from langsync.transifex import Project
from langsync.translation import SyncMode
from langsync.xliff import XliffFile

logger = logging.getLogger(__name__)


def build_source_xliff(base: ContaoFile, base_language: str) -> XliffFile:
    """XLIFF document holding the source text of one base-language file."""
    xliff = XliffFile(None, base_language, base.domain)
    xliff.set_data_type("php")
    xliff.set_source_language(base_language)
    xliff.set_target_language(base_language)
    xliff.set_original(base.domain)
    if base.exists():
        xliff.set_date(base.path.stat().st_mtime)
    sync_from(base, xliff, SyncMode.SOURCE, True)
    return xliff


def upload_sources(config: ProjectConfig, project: Project, log: Optional[logging.Logger] = None) -> int:
    """Create or update one resource per base-language domain; returns the count."""
    log = log or logger
    prefix = config.require("prefix")
    base_dir = config.contao_dir / config.base_language
    existing = {resource.slug for resource in project.resources()}

    uploaded = 0
    for file_name in list_domain_files(base_dir, ContaoFile.extension, config.skip_files):
        base = ContaoFile.load(base_dir / file_name, config.base_language)
        xliff = build_source_xliff(base, config.base_language)
        if not xliff.keys():
            log.debug("skipping empty domain: %s", base.domain)
            continue

        slug = prefix + base.domain
        resource = project.resource(slug)
        resource.name = slug
        resource.set_content(xliff.serialize().decode("utf-8"))
        if slug in existing:
            log.info("updating resource: %s", slug)
            resource.update_content()
        else:
            log.info("creating resource: %s", slug)
            resource.create()
        uploaded += 1
    return uploaded


def download_languages(config: ProjectConfig, only: Optional[Iterable[str]] = None) -> list[str]:
    """Explicitly requested languages, else the languages present in the XLIFF tree."""
    if only:
        languages = list(only)
    else:
        languages = determine_languages(config.xliff_dir)
    return [lang for lang in languages if lang != config.base_language]


def download_translations(
    config: ProjectConfig,
    project: Project,
    languages: Iterable[str],
    mode: str = "default",
    log: Optional[logging.Logger] = None,
) -> int:
    """Merge remote targets into the local XLIFF files; returns files written."""
    log = log or logger
    prefix = config.require("prefix")
    languages = list(languages)

    written = 0
    for resource in project.resources():
        if not resource.slug or not resource.slug.startswith(prefix):
            continue
        domain = resource.slug[len(prefix):]
        if domain in config.skip_files:
            continue

        for language in languages:
            log.info("downloading %s for language %s...", resource.slug, language)
            remote = XliffFile.from_bytes(resource.fetch_translation(language, mode), language, domain)
            path = Path(config.xliff_dir) / language / (domain + XliffFile.extension)
            local = XliffFile.load(path, language)

            local.set_data_type("php")
            local.set_source_language(config.base_language)
            local.set_target_language(language)
            local.set_original(domain)
            if remote.date is not None:
                local.set_date(remote.date)

            # Units new to the local file take their source text from the remote.
            for key in remote.keys():
                if key not in local and remote.unit_value(key, SyncMode.SOURCE):
                    local.set_source(key, remote.unit_value(key, SyncMode.SOURCE))
            sync_from(remote, local, SyncMode.TARGET, False, log)

            if local.exists() or local.keys():
                local.save()
                written += 1
    return written
