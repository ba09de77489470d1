"""UUIDs stored as 128-bit integers and written in the hyphenated 8-4-4-4-12 form."""

from __future__ import annotations

import re
from dataclasses import dataclass

_HEX_DIGITS = re.compile(r"\+?[0-9a-fA-F]+")
_MAX = 1 << 128


@dataclass(frozen=True)
class HyphenatedUUID:
    """A 128-bit UUID that renders as lowercase hex with hyphens."""

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value < _MAX:
            raise ValueError(f"uuid value out of range: {self.value}")

    def __str__(self) -> str:
        hex_text = f"{self.value:032x}"
        return "-".join(
            (hex_text[:8], hex_text[8:12], hex_text[12:16], hex_text[16:20], hex_text[20:])
        )

    def __int__(self) -> int:
        return self.value

    @classmethod
    def parse(cls, text: str) -> HyphenatedUUID:
        """Parse a UUID written in hex, with or without hyphens anywhere."""
        digits = text.replace("-", "")
        if not _HEX_DIGITS.fullmatch(digits):
            raise ValueError(f"invalid uuid: {text!r}")
        value = int(digits, 16)
        if value >= _MAX:
            raise ValueError(f"uuid does not fit in 128 bits: {text!r}")
        return cls(value)