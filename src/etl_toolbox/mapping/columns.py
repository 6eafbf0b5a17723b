"""Column identifiers shared by bindings and schemas."""

from dataclasses import dataclass
from typing import Optional

from etl_toolbox.exceptions import ConfigurationError


@dataclass(frozen=True)
class ColumnDescriptor:
    """Identifies a column by name, by 0-based index, or both.

    Two descriptors match by index when both carry one; otherwise by
    case-insensitive name when both carry one. Index equality takes
    precedence: descriptors with equal indices match even if their names
    differ. Descriptors carrying neither never match anything.
    """

    name: Optional[str] = None
    index: Optional[int] = None

    def __post_init__(self) -> None:
        if self.index is not None and self.index < 0:
            raise ConfigurationError(
                f"Column index must be non-negative, got {self.index}"
            )

    def matches(self, other: "ColumnDescriptor") -> bool:
        if self.index is not None and other.index is not None:
            if self.index == other.index:
                return True
        if self.name and other.name:
            return self.name.casefold() == other.name.casefold()
        return False

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.index is not None:
            return str(self.index)
        return ""

    def __str__(self) -> str:
        return self.display_name


def column_label_to_index(label: str) -> int:
    """Convert a spreadsheet column label to a 0-based index.

    Example:
        >>> column_label_to_index("A")
        0
        >>> column_label_to_index("ab")
        27
    """
    normalized = (label or "").strip().upper()
    if not normalized or not all("A" <= ch <= "Z" for ch in normalized):
        raise ConfigurationError(f"Invalid spreadsheet column label: {label!r}")

    total = 0
    for ch in normalized:
        total = total * 26 + (ord(ch) - ord("A") + 1)
    return total - 1
