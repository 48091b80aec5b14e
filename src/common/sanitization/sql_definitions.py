"""Normalization of MySQL dialect artifacts in captured object definitions.

Definitions read back with ``SHOW CREATE ...`` carry ownership and
version markers (``DEFINER=`root`@`localhost```, ``/*!50003 ... */``) that
must not travel into an installer running on another server. Every helper
here is a pure text transform: total on any input, best-effort on
malformed markers, and idempotent.
"""

import re

# PHP expression the emitted installer resolves to the runtime table prefix.
PREFIX_EXPRESSION = "{$this->prefix}"

_VERSIONED_COMMENT_RE = re.compile(r"(?is)/\*!\d{5}\s*(.*?)\s*\*/")
_IDENTIFIER_PART = r"(?:`[^`]+`|'[^']+'|\"[^\"]+\"|[\w.%-]+)"
_DEFINER_RE = re.compile(
    rf"(?is)\bDEFINER\s*=\s*(?:CURRENT_USER(?:\s*\(\s*\))?|{_IDENTIFIER_PART}\s*@\s*{_IDENTIFIER_PART})\s*"
)
_HORIZONTAL_RUN_RE = re.compile(r"[ \t]{2,}")
_ROUTINE_CREATE_RE = re.compile(r"(?i)\bCREATE\s+(?=(?:PROCEDURE|FUNCTION|TRIGGER|EVENT)\b)")
_DELIMITER_LINE_RE = re.compile(r"(?im)^[ \t]*DELIMITER[ \t]+\S.*$\n?")
_VIEW_HEADER_RE = re.compile(
    r"(?is)\bCREATE\s+((?:OR\s+REPLACE\s+)?)"
    r"(?:ALGORITHM\s*=\s*\w+\s+)?"
    rf"(?:DEFINER\s*=\s*{_IDENTIFIER_PART}\s*@\s*{_IDENTIFIER_PART}\s+)?"
    r"(?:SQL\s+SECURITY\s+(?:DEFINER|INVOKER)\s+)?"
    r"VIEW\b"
)
_PREFIX_TOKEN_RE = re.compile(r"(?i)\{wp_\}")
_TIMESTAMP_DEFAULT_RE = re.compile(
    r"(?i)\bDEFAULT\s+'?\s*current_timestamp(?:\s*\(\s*\))?\s*'?(?![\w(])"
)
_TIMESTAMP_LITERAL_RE = re.compile(r"(?i)^'?\s*current_timestamp(?:\s*\(\s*\))?\s*'?$")


def _is_blank(text: str) -> bool:
    return not text or not text.strip()


def _sub_until_stable(pattern: re.Pattern, replacement: str, text: str) -> str:
    while True:
        updated = pattern.sub(replacement, text)
        if updated == text:
            return text
        text = updated


def _collapse_horizontal_whitespace(text: str) -> str:
    return _HORIZONTAL_RUN_RE.sub(" ", text).strip()


def unwrap_versioned_comments(sql: str) -> str:
    """Replace every ``/*!NNNNN ... */`` wrapper with its inner content."""
    if _is_blank(sql):
        return sql
    return _sub_until_stable(_VERSIONED_COMMENT_RE, r"\1", sql)


def remove_definer_clauses(sql: str) -> str:
    """Strip DEFINER clauses (plain or inside versioned comments) and tidy spacing."""
    if _is_blank(sql):
        return sql
    cleaned = unwrap_versioned_comments(sql)
    cleaned = _sub_until_stable(_DEFINER_RE, "", cleaned)
    return _collapse_horizontal_whitespace(cleaned)


def sanitize_routine_definition(sql: str) -> str:
    """Sanitize a procedure, function, trigger or event definition."""
    if _is_blank(sql):
        return sql
    cleaned = remove_definer_clauses(sql)
    cleaned = _ROUTINE_CREATE_RE.sub("CREATE ", cleaned)
    cleaned = _DELIMITER_LINE_RE.sub("", cleaned)
    return _collapse_horizontal_whitespace(cleaned)


def sanitize_view_definition(sql: str) -> str:
    """Reduce a view header to ``CREATE [OR REPLACE] VIEW``."""
    if _is_blank(sql):
        return sql
    cleaned = remove_definer_clauses(sql)
    cleaned = _VIEW_HEADER_RE.sub(
        lambda m: "CREATE " + re.sub(r"\s+", " ", m.group(1).upper()) + "VIEW", cleaned
    )
    return _collapse_horizontal_whitespace(cleaned)


def inject_prefix_token(sql: str, default_prefix: str) -> str:
    """Make a definition prefix-agnostic.

    ``{wp_}`` tokens (any case) and literal occurrences of ``default_prefix``
    become the installer's runtime prefix expression.
    """
    if not sql:
        return sql
    segments = _PREFIX_TOKEN_RE.split(sql)
    if default_prefix:
        segments = [segment.replace(default_prefix, PREFIX_EXPRESSION) for segment in segments]
    return PREFIX_EXPRESSION.join(segments)


def resolve_prefix_token(sql: str, prefix: str) -> str:
    """Substitute a concrete prefix for the runtime prefix expression and tokens."""
    if not sql:
        return sql
    resolved = sql.replace(PREFIX_EXPRESSION, prefix)
    return _PREFIX_TOKEN_RE.sub(lambda _m: prefix, resolved)


def normalize_current_timestamp_default(sql: str) -> str:
    """Rewrite quoted/parenthesized current-timestamp defaults to ``DEFAULT CURRENT_TIMESTAMP``."""
    if not sql:
        return sql
    return _TIMESTAMP_DEFAULT_RE.sub("DEFAULT CURRENT_TIMESTAMP", sql)


def is_current_timestamp_literal(value: str) -> bool:
    """Return True when a raw column default spells "current timestamp"."""
    if not value:
        return False
    return bool(_TIMESTAMP_LITERAL_RE.match(value.strip()))
