"""Parsing of stored procedure parameter lists from ``SHOW CREATE PROCEDURE`` text."""

import re
from typing import List, Optional

from manifest.models import ProcedureParameter

PARAMETER_MODES = {"IN", "OUT", "INOUT"}

_PROCEDURE_NAME_RE = re.compile(r"(?is)\bPROCEDURE\s+(?:`[^`]+`|[\w$.]+)\s*(?=\()")


def _balanced_group(text: str, start: int) -> Optional[str]:
    """Return the text inside the parenthesis opening at ``start``."""
    depth = 0
    quote: Optional[str] = None
    for idx in range(start, len(text)):
        ch = text[idx]
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"', "`"):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return text[start + 1 : idx]
    return None


def _split_top_level(text: str, separator) -> List[str]:
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if depth == 0 and separator(ch):
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def extract_parameter_clause(definition: str) -> Optional[str]:
    """Text between the parentheses following the procedure name, if any."""
    if not definition:
        return None
    match = _PROCEDURE_NAME_RE.search(definition)
    start = definition.find("(", match.end()) if match else definition.find("(")
    if start < 0:
        return None
    return _balanced_group(definition, start)


def parse_procedure_parameters(definition: str) -> List[ProcedureParameter]:
    """Parse ``[IN|OUT|INOUT] name type`` entries from a procedure definition.

    A two-word entry is ``name type`` with mode IN. With three or more words
    the first is the mode and the rest is name then type; types may contain
    spaces and parentheses (``DECIMAL(10, 2)``, ``VARCHAR(64) CHARSET utf8mb4``).
    """
    clause = extract_parameter_clause(definition)
    if not clause or not clause.strip():
        return []

    parameters: List[ProcedureParameter] = []
    for raw in _split_top_level(clause, lambda ch: ch == ","):
        words = _split_top_level(raw, str.isspace)
        if len(words) >= 3 and words[0].upper() in PARAMETER_MODES:
            mode, name, type_text = words[0].upper(), words[1], " ".join(words[2:])
        elif len(words) >= 2:
            mode, name, type_text = "IN", words[0], " ".join(words[1:])
        else:
            mode, name, type_text = "IN", words[0], ""
        parameters.append(ProcedureParameter(mode=mode, name=name.strip("`"), type=type_text))
    return parameters
