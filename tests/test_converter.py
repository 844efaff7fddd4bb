"""Tests for langsync.converter: language/domain iteration, write rule and cleanup."""

import logging
import os
from dataclasses import replace

import pytest

from langsync.contao import ContaoFile
from langsync.converter import (
    FromXliffConverter,
    ToXliffConverter,
    cleanup_obsolete_files,
    determine_languages,
    list_domain_files,
)
from langsync.errors import ConfigurationError, ParseError
from langsync.xliff import XliffFile


def _units(f):
    return {u.key: (u.source, u.target) for u in f.units.values()}


class TestDetermineLanguages:
    def test_two_letter_directories_only(self, tmp_path):
        for name in ("de", "fr", "abc", "en"):
            (tmp_path / name).mkdir()
        (tmp_path / "xx").write_text("not a directory")
        assert determine_languages(tmp_path) == ["de", "en", "fr"]

    def test_filter(self, tmp_path):
        for name in ("de", "fr"):
            (tmp_path / name).mkdir()
        assert determine_languages(tmp_path, ["fr", "it"]) == ["fr"]

    def test_missing_root(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            determine_languages(tmp_path / "missing")


class TestCleanup:
    def test_only_unlisted_files_with_extension_are_deleted(self, tmp_path):
        for name in ("default.xlf", "stale.xlf", "notes.txt"):
            (tmp_path / name).write_text("x")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "other.xlf").write_text("x")

        deleted = cleanup_obsolete_files(tmp_path, ["default.xlf"], ".xlf")

        assert [p.name for p in deleted] == ["stale.xlf"]
        assert sorted(p.name for p in tmp_path.iterdir()) == ["default.xlf", "notes.txt", "sub"]
        assert (tmp_path / "sub" / "other.xlf").exists()

    def test_missing_directory(self, tmp_path):
        assert cleanup_obsolete_files(tmp_path / "nope", [], ".xlf") == []

    def test_list_domain_files_skips_ignored(self, tmp_path):
        for name in ("default.php", "countries.php", "tl_news.php", "readme.md"):
            (tmp_path / name).write_text("x")
        assert list_domain_files(tmp_path, ".php", ["countries"]) == ["default.php", "tl_news.php"]


class TestToXliff:
    def test_scenario_a_new_file_is_written(self, config, write_php):
        write_php(config.contao_dir / "en" / "default.php", "$GLOBALS['TL_LANG']['MSC']['greeting'] = 'Hello';")
        (config.contao_dir / "de").mkdir()

        stats = ToXliffConverter(config).convert()

        dest = XliffFile.load(config.xliff_dir / "de" / "default.xlf")
        assert _units(dest) == {"MSC.greeting": ("Hello", None)}
        assert dest.data_type == "php"
        assert dest.source_language == "en"
        assert dest.target_language == "de"
        assert dest.original == "default"
        assert stats.languages == 1
        assert stats.written == 1

    def test_base_language_is_not_converted(self, config, write_php):
        write_php(config.contao_dir / "en" / "default.php", "$GLOBALS['TL_LANG']['MSC']['a'] = 'A';")
        ToXliffConverter(config).convert()
        assert not (config.xliff_dir / "en").exists()

    def test_existing_translations_are_pulled_in(self, config, write_php):
        write_php(
            config.contao_dir / "en" / "default.php",
            "$GLOBALS['TL_LANG']['MSC']['greeting'] = 'Hello';",
            "$GLOBALS['TL_LANG']['MSC']['farewell'] = 'Bye';",
        )
        write_php(
            config.contao_dir / "de" / "default.php",
            "$GLOBALS['TL_LANG']['MSC']['greeting'] = 'Hallo';",
            "$GLOBALS['TL_LANG']['MSC']['gone'] = 'Weg';",
        )

        ToXliffConverter(config).convert()

        dest = XliffFile.load(config.xliff_dir / "de" / "default.xlf")
        assert _units(dest) == {
            "MSC.greeting": ("Hello", "Hallo"),
            "MSC.farewell": ("Bye", None),
        }

    def test_scenario_b_translator_work_is_kept(self, config, write_php, write_xliff):
        write_php(
            config.contao_dir / "en" / "default.php",
            "$GLOBALS['TL_LANG']['MSC']['greeting'] = 'Hello';",
            "$GLOBALS['TL_LANG']['MSC']['farewell'] = 'Bye';",
        )
        (config.contao_dir / "de").mkdir()
        write_xliff(
            config.xliff_dir / "de" / "default.xlf",
            {"MSC.greeting": ("Hallo", "Hallo"), "MSC.obsolete": ("X", None)},
        )

        ToXliffConverter(config).convert()

        dest = XliffFile.load(config.xliff_dir / "de" / "default.xlf")
        assert _units(dest) == {
            "MSC.greeting": ("Hello", "Hallo"),
            "MSC.farewell": ("Bye", None),
        }

    def test_empty_result_is_not_created(self, config, write_php):
        write_php(config.contao_dir / "en" / "tl_news.php", "$GLOBALS['TL_LANG']['tl_news']['a'] = '';")
        (config.contao_dir / "de").mkdir()

        stats = ToXliffConverter(config).convert()

        assert not (config.xliff_dir / "de" / "tl_news.xlf").exists()
        assert stats.written == 0

    def test_empty_result_overwrites_existing_file(self, config, write_php, write_xliff):
        write_php(config.contao_dir / "en" / "tl_news.php", "$GLOBALS['TL_LANG']['tl_news']['a'] = '';")
        (config.contao_dir / "de").mkdir()
        path = write_xliff(config.xliff_dir / "de" / "tl_news.xlf", {"tl_news.a": ("A", "Ä")})

        ToXliffConverter(config).convert()

        dest = XliffFile.load(path)
        assert dest.exists()
        assert dest.keys() == []

    def test_date_comes_from_variant_then_base(self, config, write_php):
        base = write_php(config.contao_dir / "en" / "default.php", "$GLOBALS['TL_LANG']['MSC']['a'] = 'A';")
        variant = write_php(config.contao_dir / "de" / "default.php", "$GLOBALS['TL_LANG']['MSC']['a'] = 'Ä';")
        (config.contao_dir / "fr").mkdir()
        os.utime(base, (1500000000, 1500000000))
        os.utime(variant, (1000000000, 1000000000))

        ToXliffConverter(config).convert()

        assert XliffFile.load(config.xliff_dir / "de" / "default.xlf").date == 1000000000
        assert XliffFile.load(config.xliff_dir / "fr" / "default.xlf").date == 1500000000

    def test_only_languages_and_skipped_files(self, config, write_php):
        write_php(config.contao_dir / "en" / "default.php", "$GLOBALS['TL_LANG']['MSC']['a'] = 'A';")
        write_php(config.contao_dir / "en" / "countries.php", "$GLOBALS['TL_LANG']['CNT']['de'] = 'Germany';")
        for lang in ("de", "fr"):
            (config.contao_dir / lang).mkdir()
        config = replace(config, skip_files=("countries",))

        ToXliffConverter(config, only_languages=["fr"]).convert()

        assert sorted(p.name for p in (config.xliff_dir / "fr").iterdir()) == ["default.xlf"]
        assert not (config.xliff_dir / "de").exists()

    def test_scenario_d_cleanup(self, config, write_php, write_xliff):
        write_php(config.contao_dir / "en" / "default.php", "$GLOBALS['TL_LANG']['MSC']['a'] = 'A';")
        (config.contao_dir / "de").mkdir()
        stale = write_xliff(config.xliff_dir / "de" / "stale.xlf", {"x": ("X", None)})

        ToXliffConverter(config).convert()
        assert stale.exists()

        stats = ToXliffConverter(config, cleanup=True).convert()
        assert not stale.exists()
        assert (config.xliff_dir / "de" / "default.xlf").exists()
        assert stats.deleted == 1

    def test_cleanup_keeps_files_of_domains_that_wrote_nothing(self, config, write_php, write_xliff):
        write_php(config.contao_dir / "en" / "tl_news.php", "$GLOBALS['TL_LANG']['tl_news']['a'] = '';")
        (config.contao_dir / "de").mkdir()
        path = write_xliff(config.xliff_dir / "de" / "tl_news.xlf", {"tl_news.a": ("A", None)})

        ToXliffConverter(config, cleanup=True).convert()

        assert path.exists()

    def test_parse_error_aborts_the_run(self, config, write_php):
        write_php(config.contao_dir / "en" / "default.php", "$GLOBALS['TL_LANG']['MSC']['a'] = FOO;")
        (config.contao_dir / "de").mkdir()
        with pytest.raises(ParseError):
            ToXliffConverter(config).convert()

    def test_control_characters_leave_existing_file_readable(self, config, write_php, write_xliff):
        write_php(config.contao_dir / "en" / "default.php", '$GLOBALS[\'TL_LANG\'][\'MSC\'][\'a\'] = "x\\ey";')
        (config.contao_dir / "de").mkdir()
        path = write_xliff(config.xliff_dir / "de" / "default.xlf", {"MSC.a": ("old", "alt")})

        with pytest.raises(ParseError, match="'MSC.a'"):
            ToXliffConverter(config).convert()

        assert XliffFile.load(path).get_unit("MSC.a").target == "alt"

    def test_crlf_values_are_stable(self, config, write_php):
        base = config.contao_dir / "en" / "default.php"
        base.parent.mkdir(parents=True, exist_ok=True)
        base.write_bytes(b"<?php\r\n$GLOBALS['TL_LANG']['MSC']['a'] = 'one\r\ntwo';\r\n")
        (config.contao_dir / "de").mkdir()

        ToXliffConverter(config).convert()
        first = (config.xliff_dir / "de" / "default.xlf").read_bytes()
        ToXliffConverter(config).convert()

        assert (config.xliff_dir / "de" / "default.xlf").read_bytes() == first
        assert XliffFile.load(config.xliff_dir / "de" / "default.xlf").get_unit("MSC.a").source == "one\r\ntwo"

    def test_missing_contao_root(self, config):
        config = replace(config, contao_dir=config.contao_dir / "missing")
        with pytest.raises(ConfigurationError):
            ToXliffConverter(config).convert()

    def test_progress_logging(self, config, write_php, caplog):
        write_php(config.contao_dir / "en" / "default.php", "$GLOBALS['TL_LANG']['MSC']['a'] = 'A';")
        (config.contao_dir / "de").mkdir()
        with caplog.at_level(logging.DEBUG, logger="langsync"):
            ToXliffConverter(config).convert()
        assert "processing language: de..." in caplog.text
        assert "processing file: default.php..." in caplog.text


class TestFromXliff:
    def test_translated_targets_are_written(self, config, write_xliff):
        write_xliff(
            config.xliff_dir / "de" / "default.xlf",
            {"MSC.save": ("Save", "Speichern"), "MSC.cancel": ("Cancel", None), "MSC.list.0": ("One", "Eins")},
        )

        stats = FromXliffConverter(config).convert()

        dest = ContaoFile.load(config.contao_dir / "de" / "default.php", "de")
        assert dest.keys() == ["MSC.save", "MSC.list.0"]
        assert dest.get_value("MSC.save") == "Speichern"
        assert dest.get_value("MSC.list.0") == "Eins"
        assert stats.written == 1
        text = (config.contao_dir / "de" / "default.php").read_text(encoding="utf-8")
        assert "https://www.transifex.com/projects/p/demo/language/de/" in text

    def test_existing_keys_missing_in_xliff_are_dropped(self, config, write_php, write_xliff):
        write_xliff(config.xliff_dir / "de" / "default.xlf", {"MSC.save": ("Save", "Sichern")})
        write_php(
            config.contao_dir / "de" / "default.php",
            "$GLOBALS['TL_LANG']['MSC']['save'] = 'Speichern';",
            "$GLOBALS['TL_LANG']['MSC']['old'] = 'Alt';",
        )

        FromXliffConverter(config).convert()

        dest = ContaoFile.load(config.contao_dir / "de" / "default.php", "de")
        assert dest.keys() == ["MSC.save"]
        assert dest.get_value("MSC.save") == "Sichern"

    def test_untranslated_file_is_not_created(self, config, write_xliff):
        write_xliff(config.xliff_dir / "de" / "default.xlf", {"MSC.save": ("Save", None)})
        FromXliffConverter(config).convert()
        assert not (config.contao_dir / "de" / "default.php").exists()

    def test_cleanup_removes_obsolete_php_files(self, config, write_php, write_xliff):
        write_xliff(config.xliff_dir / "de" / "default.xlf", {"MSC.save": ("Save", "Speichern")})
        stale = write_php(config.contao_dir / "de" / "tl_old.php", "$GLOBALS['TL_LANG']['tl_old']['a'] = 'A';")

        FromXliffConverter(config, cleanup=True).convert()

        assert not stale.exists()
        assert (config.contao_dir / "de" / "default.php").exists()
