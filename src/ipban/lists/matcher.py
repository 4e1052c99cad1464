"""Matching engine - answers allow/deny queries against normalized lists."""

from typing import TYPE_CHECKING

from .distance import levenshtein
from .dns import AsyncResolver, Resolver
from .normalizer import (
    normalize_list,
    normalize_list_async,
    normalize_user_name,
    normalize_user_names,
)
from .ranges import parse_ip_address
from .types import AddressList

if TYPE_CHECKING:
    from ..config import ConfigSnapshot

DEFAULT_MAX_EDIT_DISTANCE = 2


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class ListMatcher:
    """Allow list, deny list and user name allow list for one configuration.

    Instances are immutable once built and safe to query from any thread.
    A configuration reload builds a new instance instead of changing this one.

    Example:
        matcher = ListMatcher.from_config(snapshot, SocketResolver())

        if matcher.is_allowed("10.0.0.5"):
            # never ban
            ...
    """

    def __init__(
        self,
        allow: AddressList | None = None,
        deny: AddressList | None = None,
        user_names: frozenset[str] = frozenset(),
        max_edit_distance: int = DEFAULT_MAX_EDIT_DISTANCE,
    ):
        self.allow = allow or AddressList()
        self.deny = deny or AddressList()
        self.user_names = frozenset(user_names)
        self.max_edit_distance = max_edit_distance

    @classmethod
    def from_config(cls, snapshot: "ConfigSnapshot", resolver: Resolver) -> "ListMatcher":
        """Normalize the lists of a configuration snapshot.

        Raises:
            PatternError: the allow or deny pattern does not compile
        """
        return cls(
            allow=normalize_list(snapshot.whitelist, snapshot.whitelist_regex, resolver),
            deny=normalize_list(snapshot.blacklist, snapshot.blacklist_regex, resolver),
            user_names=normalize_user_names(snapshot.user_name_whitelist),
            max_edit_distance=snapshot.user_name_max_edit_distance,
        )

    @classmethod
    async def from_config_async(
        cls, snapshot: "ConfigSnapshot", resolver: AsyncResolver
    ) -> "ListMatcher":
        """Async variant of from_config."""
        allow = await normalize_list_async(
            snapshot.whitelist, snapshot.whitelist_regex, resolver
        )
        deny = await normalize_list_async(
            snapshot.blacklist, snapshot.blacklist_regex, resolver
        )
        return cls(
            allow=allow,
            deny=deny,
            user_names=normalize_user_names(snapshot.user_name_whitelist),
            max_edit_distance=snapshot.user_name_max_edit_distance,
        )

    def is_allowed(self, address: str | None) -> bool:
        """Check if an address is allow-listed.

        NOTE: text that is not a valid IP address is reported as allowed
        (fail-open). Callers that pass host aliases rely on this; callers
        that expect malformed input to be banned must validate first.
        """
        if _is_blank(address):
            return False
        if address in self.allow.entries:
            return True
        if parse_ip_address(address) is None:
            return True
        return self.allow.pattern is not None and self.allow.pattern.search(address) is not None

    def is_denied(self, identity: str | None) -> bool:
        """Check if an address, host name or user name is deny-listed."""
        if _is_blank(identity):
            return False
        return self.deny.matches(identity)

    def is_user_name_allowed(self, user_name: str | None) -> bool:
        """Exact (normalized) membership in the user name allow list."""
        if _is_blank(user_name):
            return False
        return normalize_user_name(user_name) in self.user_names

    def is_within_edit_distance_of_allowed_user_names(
        self, user_name: str | None, max_distance: int | None = None
    ) -> bool:
        """Check if a user name is close to any allowed user name.

        Returns True when there is nothing to compare against: the allow
        list is empty or the user name is blank.
        """
        if not self.user_names or _is_blank(user_name):
            return True
        if max_distance is None:
            max_distance = self.max_edit_distance

        user_name = normalize_user_name(user_name)
        for allowed in self.user_names:
            if levenshtein(user_name, allowed) <= max_distance:
                return True
        return False
