"""List normalizer - turns raw configuration text into address lists.

List text is comma separated. Each token is either a literal address or
address range (kept as written) or a host name (replaced by the addresses
it resolves to). Host names that fail to resolve are skipped; they never
abort the rest of the list. Pattern text is compiled with ``*`` wildcards
and a bad pattern always raises.
"""

import logging
import unicodedata

from .dns import AsyncResolver, Resolver
from .errors import DnsLookupError
from .pattern import compile_pattern
from .ranges import is_address_range, is_sentinel_address
from .types import AddressList, EntrySet, SkippedEntry

logger = logging.getLogger(__name__)


def split_list_text(text: str | None) -> list[str]:
    """Split comma separated text into trimmed, non-empty tokens."""
    if not text:
        return []
    return [token.strip() for token in text.split(",") if token.strip()]


def normalize_user_name(user_name: str) -> str:
    """Canonical form of a user name: trimmed, upper case, NFC."""
    return unicodedata.normalize("NFC", user_name.strip().upper())


def normalize_user_names(text: str | None) -> frozenset[str]:
    """Parse the comma separated user name allow list."""
    return frozenset(normalize_user_name(token) for token in split_list_text(text))


class _ListBuilder:
    """Accumulates entries and skipped tokens for one list."""

    def __init__(self):
        self.entries: list[str] = []
        self.skipped: list[SkippedEntry] = []

    def add_literal(self, token: str) -> bool:
        """Handle a token that needs no DNS. Returns False for host names."""
        if is_sentinel_address(token):
            logger.debug(f"Skipping local address {token}")
            self.skipped.append(SkippedEntry(token, "sentinel"))
            return True
        if is_address_range(token):
            self.entries.append(token)
            return True
        return False

    def add_resolved(self, hostname: str, addresses: list[str]) -> None:
        logger.debug(f"Resolved {hostname} -> {', '.join(addresses) or 'nothing'}")
        for address in addresses:
            if is_sentinel_address(address):
                self.skipped.append(
                    SkippedEntry(hostname, "sentinel", f"resolved to {address}")
                )
                continue
            self.entries.append(address)

    def lookup_failed(self, hostname: str, error: DnsLookupError) -> None:
        logger.warning(f"Ignoring list entry {hostname}: {error.reason}")
        self.skipped.append(SkippedEntry(hostname, "dns", error.reason))

    def build(self, pattern) -> AddressList:
        return AddressList(
            entries=EntrySet(self.entries),
            pattern=pattern,
            skipped=tuple(self.skipped),
        )


def normalize_list(
    literal_text: str | None,
    pattern_text: str | None,
    resolver: Resolver,
) -> AddressList:
    """Build an address list from raw list text and raw pattern text.

    Args:
        literal_text: Comma separated addresses, ranges and host names
        pattern_text: Multi-line pattern text (``*`` matches hex digits)
        resolver: Resolves host names, raising DnsLookupError on failure

    Raises:
        PatternError: pattern_text does not compile
    """
    pattern = compile_pattern(pattern_text, wildcard=True)
    builder = _ListBuilder()

    for token in split_list_text(literal_text):
        if builder.add_literal(token):
            continue
        try:
            addresses = resolver.resolve(token)
        except DnsLookupError as e:
            builder.lookup_failed(token, e)
            continue
        builder.add_resolved(token, addresses or [])

    return builder.build(pattern)


async def normalize_list_async(
    literal_text: str | None,
    pattern_text: str | None,
    resolver: AsyncResolver,
) -> AddressList:
    """Same as normalize_list, awaiting each lookup in turn."""
    pattern = compile_pattern(pattern_text, wildcard=True)
    builder = _ListBuilder()

    for token in split_list_text(literal_text):
        if builder.add_literal(token):
            continue
        try:
            addresses = await resolver.resolve(token)
        except DnsLookupError as e:
            builder.lookup_failed(token, e)
            continue
        builder.add_resolved(token, addresses or [])

    return builder.build(pattern)
