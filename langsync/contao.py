"""
contao.py

Reads and writes Contao language files, i.e. PHP files made of assignments
into the $GLOBALS['TL_LANG'] array:

    $GLOBALS['TL_LANG']['tl_content']['headline'] = array('Headline', 'Help');
    $GLOBALS['TL_LANG']['MSC']['save'] = 'Save';

The files are never executed. A small tokenizer/parser understands the
subset of PHP these files use (string/number/bool/null scalars, string
concatenation, array() and [] literals) and flattens every scalar leaf into
one unit keyed by its dot-joined path below TL_LANG:

    tl_content.headline.0 = Headline
    tl_content.headline.1 = Help
    MSC.save              = Save

Anything else (constants, function calls, variables) is a ParseError.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, NamedTuple, Optional, Union

from langsync.errors import ParseError
from langsync.translation import SyncMode, TranslationFile

NAMESPACE = "TL_LANG"

# Statements that are tolerated and skipped up to their terminating `;`,
# e.g. `if (!defined('TL_ROOT')) die('You can not access this file directly!');`
SKIPPED_STATEMENTS = frozenset({"if", "namespace", "use", "declare"})

# ── Tokenizer ──────────────────────────────────────────────────────────────────

TOKEN_RE = re.compile(
    r"""
      (?P<close_tag>\?>)
    | (?P<comment>//[^\n]*|\#[^\n]*|/\*.*?\*/)
    | (?P<ws>\s+)
    | (?P<sq>'(?:[^'\\]|\\.)*')
    | (?P<dq>"(?:[^"\\]|\\.)*")
    | (?P<var>\$[A-Za-z_][A-Za-z0-9_]*)
    | (?P<number>-?\d+(?:\.\d+)?)
    | (?P<name>[A-Za-z_\\][A-Za-z0-9_\\]*)
    | (?P<arrow>=>)
    | (?P<op>[\[\]()=;,.!])
    """,
    re.VERBOSE | re.DOTALL,
)

OPEN_TAG_RE = re.compile(r"<\?php\b", re.IGNORECASE)

DQ_ESCAPE_RE = re.compile(
    r"\\(?:(?P<simple>[nrtvef\\$\"])|x(?P<hex>[0-9A-Fa-f]{1,2})"
    r"|u\{(?P<uni>[0-9A-Fa-f]+)\}|(?P<oct>[0-7]{1,3}))"
)
DQ_SIMPLE = {
    "n": "\n", "r": "\r", "t": "\t", "v": "\v",
    "e": "\x1b", "f": "\f", "\\": "\\", "$": "$", '"': '"',
}
# `$name` or `{$` inside a double-quoted string means variable interpolation.
INTERPOLATION_RE = re.compile(r"(?<!\\)(?:\\\\)*\$[A-Za-z_{]|\{\$")


class Token(NamedTuple):
    kind: str
    value: str
    line: int


def tokenize(text: str, path: Optional[Path] = None) -> list[Token]:
    """Split PHP source into tokens, starting after the `<?php` open tag."""
    match = OPEN_TAG_RE.search(text)
    if match is None:
        raise ParseError("missing <?php open tag", path)

    tokens: list[Token] = []
    pos = match.end()
    line = text.count("\n", 0, pos) + 1
    while pos < len(text):
        m = TOKEN_RE.match(text, pos)
        if m is None:
            raise ParseError(f"unexpected character {text[pos]!r}", path, line)
        kind = m.lastgroup
        value = m.group()
        if kind == "close_tag":
            break
        if kind not in ("ws", "comment"):
            tokens.append(Token(kind, value, line))
        line += value.count("\n")
        pos = m.end()
    return tokens


def _unquote_single(raw: str) -> str:
    return re.sub(r"\\([\\'])", r"\1", raw[1:-1])


def _unquote_double(raw: str, path: Optional[Path], line: int) -> str:
    body = raw[1:-1]
    if INTERPOLATION_RE.search(body):
        raise ParseError("variable interpolation is not supported", path, line)

    def sub(m: re.Match) -> str:
        if m.group("simple"):
            return DQ_SIMPLE[m.group("simple")]
        if m.group("hex"):
            return chr(int(m.group("hex"), 16))
        if m.group("uni"):
            return chr(int(m.group("uni"), 16))
        return chr(int(m.group("oct"), 8) & 0xFF)

    return DQ_ESCAPE_RE.sub(sub, body)


# ── Parser ─────────────────────────────────────────────────────────────────────

def php_string(value: Any) -> str:
    """Convert a scalar the way PHP casts it to string."""
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    if isinstance(value, float):
        text = repr(value)
        return text[:-2] if text.endswith(".0") else text
    return str(value)


def php_empty(value: Any) -> bool:
    """PHP's empty(): null, false, 0, 0.0, '' and '0' are all empty."""
    return php_string(value) in ("", "0")


def _array_key(value: Any) -> Union[int, str]:
    # PHP casts integer-like string keys, bools and floats to int.
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float):
        return int(value)
    if value is None:
        return ""
    if isinstance(value, str) and re.fullmatch(r"-?(?:0|[1-9]\d*)", value):
        return int(value)
    return value


class Parser:
    """
    Evaluates the statements of one language file.

    `entries` maps each flattened key to its scalar value (None for PHP-empty
    values) in order of first assignment.
    """

    def __init__(self, tokens: list[Token], path: Optional[Path] = None) -> None:
        self._tokens = tokens
        self._pos = 0
        self._path = path
        self.entries: dict[str, Optional[str]] = {}

    def parse(self) -> dict[str, Optional[str]]:
        while not self._at_end():
            tok = self._peek()
            if tok.kind == "var":
                self._assignment()
            elif tok.kind == "name" and tok.value.lower() in SKIPPED_STATEMENTS:
                self._skip_statement()
            elif tok.kind == "op" and tok.value == ";":
                self._pos += 1
            else:
                self._fail(f"unexpected {tok.value!r}", tok)
        return self.entries

    # ── statements ────────────────────────────────────────────────────────────

    def _assignment(self) -> None:
        start = self._next()
        if start.value != "$GLOBALS":
            self._fail(f"unsupported variable {start.value}", start)

        segments: list[Union[int, str]] = []
        while self._accept("op", "["):
            tok = self._peek()
            key = self._term()
            if isinstance(key, dict):
                self._fail("array used as key", tok)
            segments.append(_array_key(key))
            self._expect("op", "]")

        if not segments or segments[0] != NAMESPACE:
            self._fail(f"only $GLOBALS['{NAMESPACE}'] may be assigned", start)
        if len(segments) < 2:
            self._fail(f"cannot replace $GLOBALS['{NAMESPACE}'] as a whole", start)

        self._expect("op", "=")
        value = self._expression()
        self._expect("op", ";")
        self._store([str(s) for s in segments[1:]], value)

    def _skip_statement(self) -> None:
        depth = 0
        while not self._at_end():
            tok = self._next()
            if tok.kind != "op":
                continue
            if tok.value == "(":
                depth += 1
            elif tok.value == ")":
                depth -= 1
            elif tok.value == ";" and depth <= 0:
                return
        self._fail("unterminated statement", self._tokens[-1])

    def _store(self, path: list[str], value: Any) -> None:
        key = ".".join(path)
        # Any assignment replaces everything below that path.
        prefix = key + "."
        for existing in [k for k in self.entries if k.startswith(prefix)]:
            del self.entries[existing]
        if isinstance(value, dict):
            self.entries.pop(key, None)
            for sub_key, sub_value in value.items():
                self._store(path + [str(sub_key)], sub_value)
            return
        self.entries[key] = None if php_empty(value) else php_string(value)

    # ── expressions ───────────────────────────────────────────────────────────

    def _expression(self) -> Any:
        first = self._peek()
        value = self._term()
        if not self._peek_is("op", "."):
            return value
        parts = [value]
        while self._accept("op", "."):
            parts.append(self._term())
        if any(isinstance(p, dict) for p in parts):
            self._fail("cannot concatenate an array", first)
        return "".join(php_string(p) for p in parts)

    def _term(self) -> Any:
        tok = self._next()
        if tok.kind == "sq":
            return _unquote_single(tok.value)
        if tok.kind == "dq":
            return _unquote_double(tok.value, self._path, tok.line)
        if tok.kind == "number":
            return float(tok.value) if "." in tok.value else int(tok.value)
        if tok.kind == "op" and tok.value == "[":
            return self._array("]")
        if tok.kind == "name":
            lowered = tok.value.lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
            if lowered == "null":
                return None
            if lowered == "array" and self._accept("op", "("):
                return self._array(")")
            self._fail(f"unsupported value {tok.value!r}", tok)
        if tok.kind == "var":
            self._fail(f"variables are not supported ({tok.value})", tok)
        self._fail(f"unexpected {tok.value!r}", tok)

    def _array(self, close: str) -> dict:
        result: dict[Union[int, str], Any] = {}
        next_index = 0
        while not self._accept("op", close):
            item = self._expression()
            if self._accept("arrow", "=>"):
                if isinstance(item, dict):
                    self._fail("array used as key", self._peek())
                key = _array_key(item)
                item = self._expression()
            else:
                key = next_index
            result[key] = item
            if isinstance(key, int) and key >= next_index:
                next_index = key + 1
            if not self._accept("op", ","):
                self._expect("op", close)
                break
        return result

    # ── token helpers ─────────────────────────────────────────────────────────

    def _at_end(self) -> bool:
        return self._pos >= len(self._tokens)

    def _peek(self) -> Token:
        if self._at_end():
            last = self._tokens[-1].line if self._tokens else 1
            raise ParseError("unexpected end of file", self._path, last)
        return self._tokens[self._pos]

    def _peek_is(self, kind: str, value: str) -> bool:
        if self._at_end():
            return False
        tok = self._tokens[self._pos]
        return tok.kind == kind and tok.value == value

    def _next(self) -> Token:
        tok = self._peek()
        self._pos += 1
        return tok

    def _accept(self, kind: str, value: str) -> bool:
        if self._peek_is(kind, value):
            self._pos += 1
            return True
        return False

    def _expect(self, kind: str, value: str) -> Token:
        tok = self._peek()
        if tok.kind != kind or tok.value != value:
            self._fail(f"expected {value!r}, got {tok.value!r}", tok)
        self._pos += 1
        return tok

    def _fail(self, message: str, tok: Token):
        raise ParseError(message, self._path, tok.line)


# ── Writer helpers ─────────────────────────────────────────────────────────────

def _quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _segment(segment: str) -> str:
    if re.fullmatch(r"0|[1-9]\d*", segment):
        return f"[{segment}]"
    return f"[{_quote(segment)}]"


# ── File ───────────────────────────────────────────────────────────────────────

class ContaoFile(TranslationFile):
    """
    A Contao language file. Holds a single value per key, so source and
    target slots are the same: both setters write it and a sync pass reads it
    in either mode.
    """

    extension = ".php"

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        language: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> None:
        super().__init__(path, language, domain)
        self.project: Optional[str] = None
        self.last_updated: Optional[float] = None

    @classmethod
    def load(cls, path: Union[str, Path], language: Optional[str] = None) -> "ContaoFile":
        """Parse `path`; a missing file yields an empty ContaoFile."""
        result = cls(path, language)
        if result.path.is_file():
            # Bytes, not text mode, so CRs inside string literals are kept.
            result.parse(result.path.read_bytes().decode("utf-8"))
            result._existed = True
        return result

    def parse(self, text: str) -> None:
        if not text.strip():
            return
        entries = Parser(tokenize(text, self.path), self.path).parse()
        for key, value in entries.items():
            self.set_value(key, value)

    def set_value(self, key: str, value: Optional[str]) -> None:
        self._unit(key).source = value

    def set_source(self, key: str, value: Optional[str]) -> None:
        self.set_value(key, value)

    def set_target(self, key: str, value: Optional[str]) -> None:
        self.set_value(key, value)

    def unit_value(self, key: str, mode: SyncMode) -> Optional[str]:
        unit = self.units.get(key)
        return unit.source if unit is not None else None

    def serialize(self) -> bytes:
        lines = ["<?php", "", "/**"]
        lines.append(" * Translations are managed using Transifex. To create a new translation")
        lines.append(" * or to help to maintain an existing one, please register at transifex.com.")
        if self.project and self.language:
            lines.append(" *")
            lines.append(
                f" * @link https://www.transifex.com/projects/p/{self.project}/language/{self.language}/"
            )
        if self.last_updated is not None:
            stamp = datetime.fromtimestamp(self.last_updated, timezone.utc)
            lines.append(" *")
            lines.append(f" * last-updated: {stamp.isoformat(timespec='seconds')}")
        lines.append(" */")
        lines.append("")
        lines.append("")

        for key, unit in self.units.items():
            if php_empty(unit.source):
                continue
            path = "".join(_segment(s) for s in key.split("."))
            lines.append(f"$GLOBALS[{_quote(NAMESPACE)}]{path} = {_quote(unit.source)};")

        lines.append("")
        return "\n".join(lines).encode("utf-8")
