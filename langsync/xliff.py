"""
xliff.py

XLIFF 1.2 translation files:

    <xliff version="1.2" xmlns="urn:oasis:names:tc:xliff:document:1.2">
      <file datatype="php" original="default" source-language="en"
            target-language="de" date="2013-07-22T10:11:12Z">
        <body>
          <trans-unit id="MSC.save">
            <source>Save</source>
            <target>Speichern</target>
          </trans-unit>
        </body>
      </file>
    </xliff>

The whole document is read into memory, mutated through the TranslationFile
API and written back in one go.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from langsync.errors import MissingParameterError, ParseError
from langsync.translation import TranslationFile

XLIFF_NS = "urn:oasis:names:tc:xliff:document:1.2"
XLIFF_VERSION = "1.2"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# (attribute on <file>, metadata field)
FILE_ATTRIBUTES = (
    ("datatype", "data_type"),
    ("original", "original"),
    ("source-language", "source_language"),
    ("target-language", "target_language"),
)
REQUIRED_ATTRIBUTES = ("data_type", "original", "source_language")

# Characters XML 1.0 cannot carry, not even as character references.
INVALID_XML_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

ET.register_namespace("", XLIFF_NS)


def _local(tag: str) -> str:
    """Strip the `{namespace}` part of an element tag."""
    return tag.split("}", 1)[1] if tag.startswith("{") else tag


def format_date(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, timezone.utc).strftime(DATE_FORMAT)


def parse_date(text: str) -> Optional[float]:
    """Read an ISO-8601 date; unparseable values are dropped, not fatal."""
    text = text.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        stamp = datetime.fromisoformat(text)
    except ValueError:
        return None
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return stamp.timestamp()


class XliffFile(TranslationFile):
    """An XLIFF document holding source and target text per unit."""

    extension = ".xlf"

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        language: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> None:
        super().__init__(path, language, domain)
        self.data_type: Optional[str] = None
        self.original: Optional[str] = None
        self.source_language: Optional[str] = None
        self.target_language: Optional[str] = None
        self.date: Optional[float] = None

    # ── loading ───────────────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: Union[str, Path], language: Optional[str] = None) -> "XliffFile":
        """Parse `path`; a missing file yields an empty XliffFile without metadata."""
        result = cls(path, language)
        if result.path.is_file():
            result.parse(result.path.read_bytes())
            result._existed = True
        return result

    @classmethod
    def from_bytes(
        cls,
        data: Union[bytes, str],
        language: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> "XliffFile":
        result = cls(None, language, domain)
        result.parse(data)
        return result

    def parse(self, data: Union[bytes, str]) -> None:
        try:
            root = ET.fromstring(data)
        except ET.ParseError as exc:
            raise ParseError(f"XML parsing error: {exc}", self.path) from exc

        if _local(root.tag) != "xliff":
            raise ParseError(f"expected <xliff> root element, got <{_local(root.tag)}>", self.path)

        namespace = root.tag.split("}")[0] + "}" if root.tag.startswith("{") else ""

        def ns_tag(tag: str) -> str:
            return f"{namespace}{tag}"

        file_elem = root.find(ns_tag("file"))
        if file_elem is None:
            return

        for attribute, field in FILE_ATTRIBUTES:
            value = file_elem.get(attribute)
            if value is not None:
                setattr(self, field, value)
        if file_elem.get("date"):
            self.date = parse_date(file_elem.get("date"))
        if self.language is None:
            self.language = self.target_language

        for trans_unit in file_elem.iter(ns_tag("trans-unit")):
            key = trans_unit.get("id") or trans_unit.get("resname")
            if not key:
                continue
            unit = self._unit(key)
            source_elem = trans_unit.find(ns_tag("source"))
            if source_elem is not None:
                unit.source = source_elem.text or ""
            target_elem = trans_unit.find(ns_tag("target"))
            if target_elem is not None:
                unit.target = target_elem.text or ""

    # ── metadata ──────────────────────────────────────────────────────────────

    def set_data_type(self, value: str) -> None:
        self.data_type = value

    def set_original(self, value: str) -> None:
        self.original = value

    def set_source_language(self, value: str) -> None:
        self.source_language = value

    def set_target_language(self, value: str) -> None:
        self.target_language = value

    def set_date(self, timestamp: float) -> None:
        self.date = timestamp

    # ── writing ───────────────────────────────────────────────────────────────

    def _ensure_metadata(self) -> None:
        for field in REQUIRED_ATTRIBUTES:
            if getattr(self, field) is None:
                raise MissingParameterError(f"{type(self).__name__} is missing parameter: {field}")

    def to_element(self) -> ET.Element:
        self._ensure_metadata()

        def ns_tag(tag: str) -> str:
            return f"{{{XLIFF_NS}}}{tag}"

        root = ET.Element(ns_tag("xliff"), {"version": XLIFF_VERSION})
        file_elem = ET.SubElement(root, ns_tag("file"))
        for attribute, field in FILE_ATTRIBUTES:
            value = getattr(self, field)
            if value is not None:
                file_elem.set(attribute, value)
        if self.date is not None:
            file_elem.set("date", format_date(self.date))

        body = ET.SubElement(file_elem, ns_tag("body"))
        for key, unit in self.units.items():
            trans_unit = ET.SubElement(body, ns_tag("trans-unit"), {"id": self._checked(key, key)})
            if unit.source is not None:
                ET.SubElement(trans_unit, ns_tag("source")).text = self._checked(key, unit.source)
            if unit.target is not None:
                ET.SubElement(trans_unit, ns_tag("target")).text = self._checked(key, unit.target)
        return root

    def _checked(self, key: str, text: str) -> str:
        match = INVALID_XML_RE.search(text)
        if match is not None:
            raise ParseError(
                f"unit {key!r} contains U+{ord(match.group()):04X}, which XML cannot represent",
                self.path,
            )
        return text

    def serialize(self) -> bytes:
        root = self.to_element()
        ET.indent(root, space="  ")
        data = ET.tostring(root, encoding="UTF-8", xml_declaration=True) + b"\n"
        # A raw CR would be normalized away by the next parse.
        return data.replace(b"\r", b"&#13;")
