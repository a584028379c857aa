"""MySQL dump file extractor.

Rebuilds legacy tables from a mysqldump/phpMyAdmin style SQL file. Only
``CREATE TABLE`` and ``INSERT INTO`` statements carry data; every other
statement is skipped.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .base import BaseExtractor, ExtractionResult
from ..exceptions import ParseMalformedError
from ..models.migration import MigrationLog
from ..models.record import ParsedTable, RawRow

logger = logging.getLogger(__name__)

_IDENT = r"(?:`[^`]+`|\"[^\"]+\"|[\w$]+)"
_QUALIFIED_IDENT = rf"{_IDENT}(?:\s*\.\s*{_IDENT})?"

_CREATE_TABLE_RE = re.compile(
    rf"^CREATE\s+(?:TEMPORARY\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(?P<name>{_QUALIFIED_IDENT})\s*\(",
    re.IGNORECASE,
)
_INSERT_RE = re.compile(
    rf"^INSERT\s+(?:(?:LOW_PRIORITY|DELAYED|HIGH_PRIORITY)\s+)?(?:IGNORE\s+)?INTO\s+"
    rf"(?P<name>{_QUALIFIED_IDENT})\s*(?:\((?P<columns>[^)]*)\)\s*)?VALUES?\s*(?P<values>\(.*)$",
    re.IGNORECASE | re.DOTALL,
)
_INSERT_PREFIX_RE = re.compile(r"^INSERT\b", re.IGNORECASE)
_COLUMN_DEF_RE = re.compile(r"(?:^|,)\s*[`\"](?P<name>[^`\"]+)[`\"]\s+[A-Za-z]", re.MULTILINE)

# MySQL string-literal escapes; \% and \_ keep their backslash
_ESCAPES = {
    "0": "\0",
    "'": "'",
    '"': '"',
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "Z": "\x1a",
    "\\": "\\",
    "%": "\\%",
    "_": "\\_",
}


def normalize_identifier(identifier: str) -> str:
    """Strip quoting and any schema qualifier from a table identifier."""
    last = re.split(r"\s*\.\s*(?=[`\"\w$])", identifier.strip())[-1]
    return last.strip("`\"")


def _skip_line(text: str, i: int) -> int:
    end = text.find("\n", i)
    return len(text) if end == -1 else end + 1


def split_statements(text: str) -> List[str]:
    """
    Split a SQL script into statements on top-level semicolons.

    Quoted strings and identifiers are respected, so statements spanning
    several physical lines come back joined. Comments outside quotes are
    dropped, including MySQL ``/*!40101 ... */`` directives.
    """
    statements: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    escape = False
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if quote:
            current.append(ch)
            if escape:
                escape = False
            elif ch == "\\" and quote != "`":
                escape = True
            elif ch == quote:
                quote = None
            i += 1
            continue

        if ch in ("'", '"', "`"):
            quote = ch
            current.append(ch)
            i += 1
        elif ch == "-" and text.startswith("--", i) and (i + 2 >= n or text[i + 2] in " \t\r\n"):
            i = _skip_line(text, i)
        elif ch == "#":
            i = _skip_line(text, i)
        elif ch == "/" and text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
        elif ch == ";":
            statement = "".join(current).strip()
            if statement:
                statements.append(statement)
            current = []
            i += 1
        else:
            current.append(ch)
            i += 1

    leftover = "".join(current).strip()
    if leftover:
        statements.append(leftover)

    return statements


def _skip_whitespace(text: str, i: int) -> int:
    while i < len(text) and text[i].isspace():
        i += 1
    return i


def _read_quoted(text: str, i: int) -> Tuple[str, int]:
    """Read a quoted literal starting at ``text[i]``; return its value and the next offset."""
    quote = text[i]
    start = i
    i += 1
    chars: List[str] = []

    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            chars.append(_ESCAPES.get(nxt, nxt))
            i += 2
        elif ch == quote:
            if i + 1 < len(text) and text[i + 1] == quote:
                chars.append(quote)
                i += 2
            else:
                return "".join(chars), i + 1
        else:
            chars.append(ch)
            i += 1

    raise ParseMalformedError(f"Unterminated string literal at offset {start}")


def parse_values(values: str) -> List[RawRow]:
    """
    Parse the tuple list following ``VALUES``.

    Commas and parentheses inside quotes are data. Quoted cells are
    unescaped, bare ``NULL`` becomes None and every other token is kept as
    literal text.

    Raises:
        ParseMalformedError: when the list breaks off. The rows read before
            the break are attached to the exception as ``rows``.
    """
    rows: List[RawRow] = []
    i = 0
    n = len(values)

    def malformed(message: str) -> ParseMalformedError:
        return ParseMalformedError(f"{message} (after {len(rows)} row(s))", rows=rows)

    while True:
        i = _skip_whitespace(values, i)
        if i >= n:
            break
        if values[i] != "(":
            raise malformed(f"Expected '(' at offset {i}")
        i += 1

        row: RawRow = []
        i = _skip_whitespace(values, i)
        if i < n and values[i] == ")":
            i += 1
        else:
            while True:
                i = _skip_whitespace(values, i)
                if i >= n:
                    raise malformed("Unterminated value tuple")

                if values[i] in ("'", '"'):
                    try:
                        cell, i = _read_quoted(values, i)
                    except ParseMalformedError as e:
                        raise malformed(str(e)) from e
                    row.append(cell)
                else:
                    start = i
                    while i < n and values[i] not in ",)":
                        i += 1
                    token = values[start:i].strip()
                    row.append(None if token.upper() == "NULL" else token)

                i = _skip_whitespace(values, i)
                if i >= n:
                    raise malformed("Unterminated value tuple")
                if values[i] == ",":
                    i += 1
                    continue
                if values[i] == ")":
                    i += 1
                    break
                raise malformed(f"Unexpected {values[i]!r} at offset {i}")

        rows.append(row)

        i = _skip_whitespace(values, i)
        if i < n and values[i] == ",":
            i += 1
        elif i < n:
            raise malformed(f"Unexpected {values[i]!r} at offset {i}")

    return rows


def _column_names(statement: str) -> List[str]:
    """Column names from a CREATE TABLE body, in declaration order."""
    body = statement[statement.index("(") + 1:]
    return [match.group("name") for match in _COLUMN_DEF_RE.finditer(body)]


def _preview(statement: str, width: int = 80) -> str:
    flat = " ".join(statement.split())
    return flat if len(flat) <= width else flat[:width] + "..."


def parse_dump(text: str, log: Optional[MigrationLog] = None) -> ExtractionResult:
    """
    Rebuild legacy tables from dump text.

    Args:
        text: Full dump contents
        log: Migration log receiving ParseMalformed warnings

    Returns:
        ExtractionResult with ``tables`` mapping table name to ParsedTable
    """
    log = log if log is not None else MigrationLog()
    result = ExtractionResult(source_path="")
    tables: Dict[str, ParsedTable] = result.tables

    for statement in split_statements(text):
        result.statements_seen += 1

        create = _CREATE_TABLE_RE.match(statement)
        if create:
            name = normalize_identifier(create.group("name"))
            table = tables.setdefault(name, ParsedTable(name=name))
            table.columns = _column_names(statement)
            continue

        if not _INSERT_PREFIX_RE.match(statement):
            result.statements_skipped += 1
            continue

        insert = _INSERT_RE.match(statement)
        if not insert:
            result.statements_malformed += 1
            log.warning(f"Skipping malformed INSERT statement: {_preview(statement)}")
            continue

        name = normalize_identifier(insert.group("name"))
        table = tables.setdefault(name, ParsedTable(name=name))
        if insert.group("columns") and not table.columns:
            table.columns = [normalize_identifier(c) for c in insert.group("columns").split(",")]

        try:
            table.rows.extend(parse_values(insert.group("values")))
        except ParseMalformedError as e:
            kept = e.rows
            table.rows.extend(kept)
            result.statements_malformed += 1
            log.warning(f"Malformed INSERT INTO {name}, kept {len(kept)} row(s): {e}")

    return result


class MySQLDumpExtractor(BaseExtractor):
    """
    Extractor for MySQL dump files.

    Supports:
    - Multi-line statements (statements are split on top-level semicolons)
    - Extended inserts with many tuples per statement
    - Optional INSERT column lists
    - Backslash and doubled-quote escapes inside string literals
    """

    def extract(self, log: MigrationLog) -> ExtractionResult:
        """Parse the whole dump file."""
        started_at = datetime.now(timezone.utc)
        text = self.read_source(log)

        result = parse_dump(text, log)
        result.source_path = self.source_path
        result.started_at = started_at
        result.completed_at = datetime.now(timezone.utc)

        if not result.tables and result.statements_malformed == 0:
            log.error(f"No CREATE TABLE or INSERT INTO statements found in {self.source_path}")
            raise ParseMalformedError(f"Legacy dump {self.source_path} contains no table data")

        log.info(f"Parsed MySQL dump file: {self.source_path}")
        log.info(f"Found {len(result.tables)} tables")
        logger.debug(f"Dump statements: {result.to_dict()}")
        return result
