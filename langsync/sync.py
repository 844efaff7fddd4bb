"""Key-by-key synchronization of one translation file into another."""

from __future__ import annotations

import logging
from typing import Optional

from langsync.translation import SyncMode, TranslationFile

logger = logging.getLogger(__name__)


def sync_from(
    source: TranslationFile,
    dest: TranslationFile,
    mode: SyncMode,
    remove_obsolete: bool,
    log: Optional[logging.Logger] = None,
) -> None:
    """
    Copy every value of `source` into the `mode` slot of `dest`.

    Keys whose value in `source` is empty are skipped, or removed from `dest`
    when `remove_obsolete` is set. With `remove_obsolete`, keys of `dest` that
    `source` does not define at all are removed as well.
    """
    log = log or logger
    source_keys = source.keys()

    for key in source_keys:
        value = source.unit_value(key, mode)
        if not value:
            if remove_obsolete:
                dest.remove(key)
            continue
        if mode is SyncMode.SOURCE:
            dest.set_source(key, value)
        else:
            dest.set_target(key, value)

    if not remove_obsolete:
        return

    known = set(source_keys)
    for key in dest.keys():
        if key not in known:
            log.debug("Language key %s is not present in the source. Removing it.", key)
            dest.remove(key)
