"""
Project configuration.

Settings come from command line options first and from the
`extra.contao.transifex` section of composer.json second:

    "extra": {
        "contao": {
            "transifex": {
                "project": "my-project",
                "prefix": "core-",
                "languages_cto": "src/Resources/contao/languages",
                "languages_tx": ".tx",
                "skip_files": ["countries", "languages"]
            }
        }
    }

The result is one immutable ProjectConfig built before any file is touched.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from langsync.errors import ConfigurationError

COMPOSER_FILE = "composer.json"
CONFIG_ROOT = "/extra/contao/transifex"
DEFAULT_BASE_LANGUAGE = "en"

USER_ENV = "TRANSIFEX_USER"
PASSWORD_ENV = "TRANSIFEX_PASS"

# field name -> what the error message calls it
DESCRIPTIONS = {
    "project": "transifex project name",
    "prefix": "transifex prefix",
    "contao_dir": "contao language root folder",
    "xliff_dir": "xliff root folder",
    "transifex_user": "transifex user (use --user or TRANSIFEX_USER)",
    "transifex_password": "transifex password (use --password or TRANSIFEX_PASS)",
}


@dataclass(frozen=True)
class ProjectConfig:
    contao_dir: Path
    xliff_dir: Path
    base_language: str = DEFAULT_BASE_LANGUAGE
    project: Optional[str] = None
    prefix: Optional[str] = None
    skip_files: tuple[str, ...] = ()
    transifex_user: Optional[str] = None
    transifex_password: Optional[str] = None

    def require(self, name: str) -> Any:
        """Return setting `name`, failing when it was never configured."""
        value = getattr(self, name)
        if not value:
            raise ConfigurationError(
                f"Error: unable to determine {DESCRIPTIONS.get(name, name)}."
            )
        return value


def get_config_value(data: Mapping[str, Any], pointer: str) -> Any:
    """Walk a `/a/b/c` path through nested dicts; None when any part is missing."""
    node: Any = data
    for part in pointer.strip("/").split("/"):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node


def read_composer_json(path: Path) -> dict:
    if not path.is_file():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc
    return data if isinstance(data, dict) else {}


def _as_tuple(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return tuple(v.strip() for v in value.split(",") if v.strip())
    return tuple(str(v) for v in value)


def load_config(
    composer_path: Optional[Union[str, Path]] = None,
    *,
    project: Optional[str] = None,
    prefix: Optional[str] = None,
    contao_dir: Optional[Union[str, Path]] = None,
    xliff_dir: Optional[Union[str, Path]] = None,
    base_language: Optional[str] = None,
    skip_files: Optional[Union[str, list[str]]] = None,
    user: Optional[str] = None,
    password: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ProjectConfig:
    """
    Build the configuration for one run.

    Explicit arguments win over composer.json. Directories given explicitly
    resolve against the working directory, directories from composer.json
    against the directory holding composer.json.
    """
    composer = Path(composer_path) if composer_path else Path.cwd() / COMPOSER_FILE
    composer_dir = composer.resolve().parent
    data = read_composer_json(composer)
    env = os.environ if environ is None else environ

    def from_composer(name: str) -> Any:
        return get_config_value(data, f"{CONFIG_ROOT}/{name}")

    def directory(explicit: Optional[Union[str, Path]], name: str, field: str) -> Path:
        if explicit:
            return Path(explicit).resolve()
        configured = from_composer(name)
        if not configured:
            raise ConfigurationError(f"Error: unable to determine {DESCRIPTIONS[field]}.")
        return (composer_dir / configured).resolve()

    return ProjectConfig(
        contao_dir=directory(contao_dir, "languages_cto", "contao_dir"),
        xliff_dir=directory(xliff_dir, "languages_tx", "xliff_dir"),
        base_language=base_language or DEFAULT_BASE_LANGUAGE,
        project=project or from_composer("project"),
        prefix=prefix if prefix is not None else from_composer("prefix"),
        skip_files=_as_tuple(skip_files if skip_files is not None else from_composer("skip_files")),
        transifex_user=user or env.get(USER_ENV),
        transifex_password=password or env.get(PASSWORD_ENV),
    )
