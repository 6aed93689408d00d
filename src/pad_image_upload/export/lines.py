"""Image references in exported pad lines.

Pad lines carry formatting as an attribute string (``*0*1+5|1+1``): each
operation lists attribute numbers in base 36 that point into the pad's
attribute pool. A line holding an uploaded image has an ``img`` attribute
on its first operation; on export that attribute value replaces the line
content.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterator

IMAGE_ATTRIBUTE = "img"

_OP_PATTERN = re.compile(r"((?:\*[0-9a-z]+)*)(?:\|([0-9a-z]+))?([-+=])([0-9a-z]+)|\?|")


@dataclass(frozen=True)
class Operation:
    """One operation of an attribute string."""

    opcode: str
    chars: int
    lines: int
    attribs: str = ""

    def attribute_numbers(self) -> list[int]:
        return [int(num, 36) for num in self.attribs.split("*") if num]


@dataclass
class AttributePool:
    """Numbered (key, value) attribute pairs shared by a pad's lines."""

    num_to_attrib: dict[int, tuple[str, str]] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "AttributePool":
        """Build a pool from its serialized ``{"numToAttrib": {...}}`` form."""
        return cls(
            num_to_attrib={
                int(num): (attrib[0], attrib[1])
                for num, attrib in data.get("numToAttrib", {}).items()
            }
        )

    def get_attrib(self, num: int) -> tuple[str, str] | None:
        return self.num_to_attrib.get(num)


def iter_operations(attribs: str) -> Iterator[Operation]:
    """Parse an attribute string into operations.

    Raises:
        ValueError: If the string contains characters outside the format
    """
    position = 0
    while position < len(attribs):
        match = _OP_PATTERN.match(attribs, position)
        if match is None or match.group(0) in ("", "?"):
            raise ValueError(f"Invalid attribute string at {position}: {attribs!r}")
        yield Operation(
            opcode=match.group(3),
            chars=int(match.group(4), 36),
            lines=int(match.group(2), 36) if match.group(2) else 0,
            attribs=match.group(1),
        )
        position = match.end()


def attribute_value(op: Operation, key: str, pool: AttributePool) -> str:
    """Return the value of ``key`` on an operation, or an empty string."""
    for num in op.attribute_numbers():
        attrib = pool.get_attrib(num)
        if attrib is not None and attrib[0] == key:
            return attrib[1]
    return ""


def image_for_line(attribute_line: str | None, pool: AttributePool) -> str | None:
    """Return the image reference stored on a line, if any.

    Only the first operation of the line is inspected.
    """
    if not attribute_line:
        return None
    first = next(iter_operations(attribute_line), None)
    if first is None:
        return None
    return attribute_value(first, IMAGE_ATTRIBUTE, pool) or None


def line_content_for_export(
    line_content: str, attribute_line: str | None, pool: AttributePool
) -> str:
    """Content to export for a line: its image reference, or the text unchanged."""
    image = image_for_line(attribute_line, pool)
    return image if image else line_content
