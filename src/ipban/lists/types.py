"""List data structures."""

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Literal

SkipReason = Literal["sentinel", "dns"]


class EntrySet:
    """Immutable set of address entries with case-insensitive membership.

    Entries keep the spelling they were added with; two spellings that
    differ only in case count as one entry (the first one wins).
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[str] = ()):
        folded: dict[str, str] = {}
        for entry in entries:
            folded.setdefault(entry.lower(), entry)
        self._entries = folded

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, str):
            return False
        return value.lower() in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, EntrySet):
            return self._entries.keys() == other._entries.keys()
        if isinstance(other, (set, frozenset)):
            if not all(isinstance(v, str) for v in other):
                return False
            return self._entries.keys() == {v.lower() for v in other}
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._entries))

    def __repr__(self) -> str:
        return f"EntrySet({sorted(self._entries.values())!r})"


@dataclass(frozen=True)
class SkippedEntry:
    """A token that normalization left out of a list."""

    token: str
    reason: SkipReason
    detail: str = ""


@dataclass(frozen=True)
class AddressList:
    """Literal entries plus an optional pattern.

    Attributes:
        entries: Addresses, ranges and resolved host addresses
        pattern: Compiled allow/deny pattern (None if not configured)
        skipped: Tokens dropped during normalization, in input order
    """

    entries: EntrySet = field(default_factory=EntrySet)
    pattern: re.Pattern | None = None
    skipped: tuple[SkippedEntry, ...] = ()

    def matches(self, value: str) -> bool:
        """True if value is a literal entry or matches the pattern."""
        if value in self.entries:
            return True
        return self.pattern is not None and self.pattern.search(value) is not None
