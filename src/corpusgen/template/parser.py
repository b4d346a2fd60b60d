"""Placeholder parser for custom templates.

Syntax: literal bytes with ``{{.FieldName}}`` placeholders. A field name is
one or more bytes other than ``}``, taken verbatim (no trimming, case
sensitive). Braces that do not open a well-formed placeholder are literal.

    >>> parse_template(b"A{{.X}}B{{.Y}}C").segments
    ((b'A', 'X'), (b'B', 'Y'))
"""

from __future__ import annotations

from dataclasses import dataclass

OPEN = b"{{."
CLOSE = b"}}"


@dataclass(frozen=True)
class ParsedTemplate:
    segments: tuple[tuple[bytes, str], ...]
    trailer: bytes

    @property
    def field_names(self) -> list[str]:
        """Placeholder names in template order, duplicates kept."""
        return [name for _prefix, name in self.segments]

    @property
    def prefixes(self) -> dict[str, bytes]:
        """Literal text preceding the first occurrence of each name."""
        out: dict[str, bytes] = {}
        for prefix, name in self.segments:
            out.setdefault(name, prefix)
        return out


def _placeholder_end(template: bytes, start: int) -> int:
    """Index of the closing ``}}`` for a placeholder opening at ``start``, or -1."""
    name_start = start + len(OPEN)
    brace = template.find(b"}", name_start)
    if brace <= name_start:
        return -1
    if template[brace : brace + len(CLOSE)] != CLOSE:
        return -1
    return brace


def parse_template(template: bytes) -> ParsedTemplate:
    segments: list[tuple[bytes, str]] = []
    literal = bytearray()
    idx = 0
    total = len(template)

    while idx < total:
        brace = template.find(b"{", idx)
        if brace == -1:
            literal += template[idx:]
            break
        literal += template[idx:brace]

        if template.startswith(OPEN, brace):
            end = _placeholder_end(template, brace)
            if end != -1:
                name = template[brace + len(OPEN) : end].decode()
                segments.append((bytes(literal), name))
                literal.clear()
                idx = end + len(CLOSE)
                continue

        literal += b"{"
        idx = brace + 1

    return ParsedTemplate(segments=tuple(segments), trailer=bytes(literal))
