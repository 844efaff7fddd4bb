#!/usr/bin/env python3
"""
langsync command line.

Usage:
    langsync to-xliff                  # all languages found in the Contao tree
    langsync to-xliff de,fr --cleanup  # only de and fr, delete obsolete .xlf files
    langsync from-xliff -v             # write XLIFF targets back, verbose
    langsync upload                    # push base-language sources to Transifex
    langsync download de               # pull German translations from Transifex

Directories, project name and prefix default to the values in the
`extra.contao.transifex` section of ./composer.json.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from langsync.config import ProjectConfig, load_config
from langsync.converter import FromXliffConverter, ToXliffConverter
from langsync.errors import LangsyncError
from langsync.remote import download_languages, download_translations, upload_sources
from langsync.transifex import API_URL, Project, Transport


def parse_languages(value: str) -> Optional[list[str]]:
    if value == "all":
        return None
    return [lang.strip() for lang in value.split(",") if lang.strip()]


def configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s", stream=sys.stderr, force=True)


def _add_languages_argument(sub: argparse.ArgumentParser) -> None:
    sub.add_argument(
        "languages",
        nargs="?",
        default="all",
        help='Languages to process as comma delimited list or "all" for all languages.',
    )


def _add_transifex_options(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("-U", "--user", help="Transifex user; defaults to $TRANSIFEX_USER.")
    sub.add_argument("-P", "--password", help="Transifex password; defaults to $TRANSIFEX_PASS.")
    sub.add_argument("--api-url", default=API_URL, help="Transifex API root.")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Report every processed file, removed key and deleted file.",
    )
    common.add_argument("-q", "--quiet", action="store_true", help="Only report warnings and errors.")
    common.add_argument(
        "-c", "--contao",
        metavar="DIR",
        help='Contao language root directory (base to "en", "de" etc.); read from composer.json if empty.',
    )
    common.add_argument(
        "-x", "--xliff",
        metavar="DIR",
        help='XLIFF root directory (base to "en", "de" etc.); read from composer.json if empty.',
    )
    common.add_argument("-p", "--projectname", help="The Transifex project name; read from composer.json if empty.")
    common.add_argument("--prefix", help="The prefix for all resource names; read from composer.json if empty.")
    common.add_argument("-b", "--base-language", default="en", help="The base language to use.")
    common.add_argument("--composer", metavar="PATH", help="composer.json to read settings from.")

    parser = argparse.ArgumentParser(
        prog="langsync",
        description="Keep Contao language files and XLIFF translations in sync.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    to_xliff = commands.add_parser(
        "to-xliff",
        parents=[common],
        help="Update xliff translations from Contao base language.",
    )
    to_xliff.add_argument("--cleanup", action="store_true", help="If set, remove obsolete files.")
    _add_languages_argument(to_xliff)
    to_xliff.set_defaults(handler=run_to_xliff)

    from_xliff = commands.add_parser(
        "from-xliff",
        parents=[common],
        help="Update Contao language files from xliff translations.",
    )
    from_xliff.add_argument("--cleanup", action="store_true", help="If set, remove obsolete files.")
    _add_languages_argument(from_xliff)
    from_xliff.set_defaults(handler=run_from_xliff)

    upload = commands.add_parser("upload", parents=[common], help="Push the base language sources to Transifex.")
    _add_transifex_options(upload)
    upload.set_defaults(handler=run_upload)

    download = commands.add_parser(
        "download",
        parents=[common],
        help="Pull translations from Transifex into the xliff files.",
    )
    _add_transifex_options(download)
    _add_languages_argument(download)
    download.add_argument(
        "--mode",
        default="default",
        help="Transifex download mode (default, reviewed, translator, onlytranslated...).",
    )
    download.set_defaults(handler=run_download)
    return parser


# ── Command handlers ───────────────────────────────────────────────────────────

def _report(stats) -> None:
    print(
        f"Done. {stats.languages} language(s) processed, "
        f"{stats.written} file(s) written, "
        f"{stats.deleted} obsolete file(s) deleted."
    )


def run_to_xliff(args: argparse.Namespace, config: ProjectConfig) -> int:
    converter = ToXliffConverter(config, cleanup=args.cleanup, only_languages=parse_languages(args.languages))
    _report(converter.convert())
    return 0


def run_from_xliff(args: argparse.Namespace, config: ProjectConfig) -> int:
    converter = FromXliffConverter(config, cleanup=args.cleanup, only_languages=parse_languages(args.languages))
    _report(converter.convert())
    return 0


def _project(args: argparse.Namespace, config: ProjectConfig) -> Project:
    transport = Transport(
        config.require("transifex_user"),
        config.require("transifex_password"),
        base_url=args.api_url,
    )
    return Project(transport, config.require("project"))


def run_upload(args: argparse.Namespace, config: ProjectConfig) -> int:
    count = upload_sources(config, _project(args, config))
    print(f"Done. {count} resource(s) uploaded.")
    return 0


def run_download(args: argparse.Namespace, config: ProjectConfig) -> int:
    project = _project(args, config)
    languages = download_languages(config, parse_languages(args.languages))
    count = download_translations(config, project, languages, mode=args.mode)
    print(f"Done. {count} file(s) written.")
    return 0


# ── Entry point ────────────────────────────────────────────────────────────────

def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    try:
        config = load_config(
            args.composer,
            project=args.projectname,
            prefix=args.prefix,
            contao_dir=args.contao,
            xliff_dir=args.xliff,
            base_language=args.base_language,
            user=getattr(args, "user", None),
            password=getattr(args, "password", None),
        )
        return args.handler(args, config)
    except LangsyncError as exc:
        print(str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
