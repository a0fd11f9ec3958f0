"""Repair a raw Jira CSV export so it parses as a regular table.

The export wraps the real CSV in banner and footer text, sometimes carries
bytes that are not valid in the declared encoding, and writes multi-line
fields without balancing their quotes on every physical line. This module
turns those bytes into a header plus a list of well-formed CSV records.

Quote repair rules (see `has_open_quote` / `join_wrapped_lines`):

- A quote at the start of a field opens a quoted field; inside it ``""`` is a
  literal quote and a lone quote closes it. Quotes in the middle of an
  unquoted field are literal.
- A line that ends inside an open quoted field continues on the next
  physical line (joined with a newline).
- At most `max_continuation_lines` lines are joined onto one record. If the
  quote is still open after that (or at end of input), the opening line is
  closed with a quote on its own and the following lines are scanned again.
"""
from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import Config
from .csv_schema import ISSUE_KEY_RE, CSVSchema, missing_columns
from .errors import FormatError
from .logging_utils import get_logger

logger = get_logger(__name__)

DELIMITER = ","
QUOTECHAR = '"'


@dataclass
class NormalizedExport:
    header: List[str]
    records: List[str]
    banner_lines: int = 0
    footer_lines: int = 0
    joined_lines: int = 0


def decode_export(data: bytes, encoding: str = "utf-8") -> str:
    """Decode permissively: invalid sequences become U+FFFD, NULs are dropped."""
    text = data.decode(encoding, errors="replace")
    text = text.lstrip("\ufeff").replace("\x00", "")
    return text


def split_physical_lines(text: str) -> List[str]:
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    # A trailing newline does not start another line
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def split_fields(record: str) -> List[str]:
    rows = list(csv.reader(io.StringIO(record), delimiter=DELIMITER, quotechar=QUOTECHAR))
    if not rows:
        return []
    # A record only spans several csv rows when a newline sits outside quotes
    fields = rows[0]
    for extra in rows[1:]:
        if fields and extra:
            fields[-1] = fields[-1] + "\n" + extra[0]
            fields.extend(extra[1:])
    return fields


def render_record(fields: Sequence[str]) -> str:
    """Render fields with minimal quoting (separator, quote or newline => quoted)."""
    buf = io.StringIO()
    writer = csv.writer(buf, delimiter=DELIMITER, quotechar=QUOTECHAR, lineterminator="\n")
    writer.writerow(list(fields))
    return buf.getvalue()[:-1]


def has_open_quote(text: str, delimiter: str = DELIMITER, quotechar: str = QUOTECHAR) -> bool:
    """True when `text` ends inside a quoted field."""
    in_quotes = False
    field_start = True
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if in_quotes:
            if ch == quotechar:
                if i + 1 < n and text[i + 1] == quotechar:
                    i += 1
                else:
                    in_quotes = False
        elif ch == quotechar and field_start:
            in_quotes = True
        field_start = not in_quotes and ch in (delimiter, "\n")
        i += 1
    return in_quotes


def join_wrapped_lines(lines: Sequence[str], max_continuation: int = 20) -> Tuple[List[str], int]:
    """Join physical lines into logical records.

    Returns the records and the number of physical lines that were joined onto
    a previous one.
    """
    records: List[str] = []
    joined = 0
    i = 0
    while i < len(lines):
        buf = lines[i]
        j = i
        while has_open_quote(buf) and j + 1 < len(lines) and j - i < max_continuation:
            j += 1
            buf = buf + "\n" + lines[j]
        if has_open_quote(buf):
            # Runaway quote: close the opening line alone and rescan the rest
            logger.debug(f"Unterminated quote on body line {i + 1}; closing it in place")
            records.append(lines[i] + QUOTECHAR)
            i += 1
            continue
        records.append(buf)
        joined += j - i
        i = j + 1
    return records, joined


def is_blank(fields: Sequence[str]) -> bool:
    return all(not f.strip() for f in fields)


def is_footer_row(fields: Sequence[str]) -> bool:
    """A single free-text field that is not an issue key.

    Truncated data rows (two or more fields, or a lone issue key) are not
    footer; the parser reports their width instead.
    """
    if len(fields) > 1:
        return False
    return not fields or not ISSUE_KEY_RE.match(fields[0].strip())


def strip_footer(rows: List[List[str]]) -> Tuple[List[List[str]], int]:
    """Drop trailing footer rows after the last record."""
    end = len(rows)
    while end > 0 and is_footer_row(rows[end - 1]):
        end -= 1
    return rows[:end], len(rows) - end


def find_header(lines: Sequence[str], max_banner_lines: int, schema: Optional[CSVSchema] = None) -> Optional[int]:
    """Index of the first line carrying every required column, or None."""
    for idx, line in enumerate(lines[: max_banner_lines + 1]):
        if not line.strip():
            continue
        fields = split_fields(line)
        if fields and not missing_columns(fields, schema):
            return idx
    return None


def normalize_export(data: bytes, config: Optional[Config] = None, schema: Optional[CSVSchema] = None) -> NormalizedExport:
    """Turn raw export bytes into a clean header plus records.

    Raises FormatError when no header row with the required columns appears
    within the first `max_banner_lines` lines.
    """
    config = config or Config()
    schema = schema or CSVSchema()

    text = decode_export(data, config.encoding)
    lines = split_physical_lines(text)

    header_idx = find_header(lines, config.max_banner_lines, schema)
    if header_idx is None:
        raise FormatError(
            "No header row with the required columns "
            f"({', '.join(schema.required)}) found in the first "
            f"{config.max_banner_lines + 1} lines"
        )
    header = [h.replace("\ufeff", "").strip() for h in split_fields(lines[header_idx])]
    if header_idx:
        logger.info(f"Skipped {header_idx} banner line(s) before the header")

    records, joined = join_wrapped_lines(lines[header_idx + 1 :], config.max_continuation_lines)
    if joined:
        logger.info(f"Joined {joined} wrapped line(s) into their records")

    rows = [split_fields(r) for r in records]
    rows = [r for r in rows if not is_blank(r)]
    rows, footer = strip_footer(rows)
    if footer:
        logger.info(f"Dropped {footer} footer line(s) after the last record")

    return NormalizedExport(
        header=header,
        records=[render_record(r) for r in rows],
        banner_lines=header_idx,
        footer_lines=footer,
        joined_lines=joined,
    )
