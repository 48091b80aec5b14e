"""Escaping of SQL text embedded in generated PHP source."""

from common.sanitization.sql_definitions import PREFIX_EXPRESSION


def escape_php_string(sql: str) -> str:
    """Escape SQL for a double-quoted PHP string, keeping the prefix expression live."""
    if not sql:
        return ""
    segments = sql.replace("\r\n", "\n").replace("\r", "\n").split(PREFIX_EXPRESSION)
    escaped = [
        segment.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$").replace("\n", "\\n")
        for segment in segments
    ]
    return PREFIX_EXPRESSION.join(escaped)


def escape_heredoc_fragment(text: str) -> str:
    """Escape text placed inside a PHP heredoc so it is not interpolated.

    Line breaks become spaces, so no fragment can start a line that closes
    the heredoc.
    """
    if not text:
        return ""
    text = text.replace("\r\n", " ").replace("\r", " ").replace("\n", " ")
    return text.replace("\\", "\\\\").replace("$", "\\$")


_SQL_LITERAL_ESCAPES = {
    "\\": "\\\\",
    "'": "''",
    "\n": "\\n",
    "\r": "\\r",
    "\0": "\\0",
}


def quote_sql_literal(value: str) -> str:
    """Single-quote a MySQL string literal.

    Backslashes are doubled, quotes doubled, and line breaks and NUL written
    as MySQL escapes, so the literal always stays on one line and terminated.
    """
    return "'" + "".join(_SQL_LITERAL_ESCAPES.get(ch, ch) for ch in value) + "'"
