"""Reloadable handle publishing the current ListMatcher.

Readers always see one complete matcher: a reload builds a brand new
ListMatcher and publishes it with a single reference swap. Readers never
take a lock.
"""

import logging
import threading
from typing import TYPE_CHECKING

from .dns import AsyncResolver, Resolver, SocketResolver
from .matcher import ListMatcher

if TYPE_CHECKING:
    from ..config import ConfigSnapshot

logger = logging.getLogger(__name__)


class MatcherHandle:
    """Holds the ListMatcher for the current configuration.

    Example:
        handle = MatcherHandle(resolver=SocketResolver())
        handle.reload(load_config("ipban.yaml"))

        if handle.is_denied(ip):
            ...

    If a reload fails (bad pattern), the error propagates and the matcher
    that was published before stays in place.
    """

    def __init__(
        self,
        matcher: ListMatcher | None = None,
        resolver: Resolver | None = None,
    ):
        self._matcher = matcher or ListMatcher()
        self._resolver = resolver or SocketResolver()
        self._publish_lock = threading.Lock()
        self._generation = 0

    @property
    def current(self) -> ListMatcher:
        """The published matcher. Hold on to it for a consistent view."""
        return self._matcher

    @property
    def generation(self) -> int:
        """Number of successful reloads."""
        return self._generation

    def _publish(self, matcher: ListMatcher) -> ListMatcher:
        with self._publish_lock:
            self._matcher = matcher
            self._generation += 1
            generation = self._generation
        logger.info(
            f"Published lists generation {generation}: "
            f"{len(matcher.allow.entries)} allowed, {len(matcher.deny.entries)} denied, "
            f"{len(matcher.user_names)} user names"
        )
        return matcher

    def reload(self, snapshot: "ConfigSnapshot") -> ListMatcher:
        """Build a matcher from snapshot and publish it."""
        return self._publish(ListMatcher.from_config(snapshot, self._resolver))

    async def reload_async(
        self, snapshot: "ConfigSnapshot", resolver: AsyncResolver
    ) -> ListMatcher:
        """Build a matcher with an asyncio resolver and publish it."""
        matcher = await ListMatcher.from_config_async(snapshot, resolver)
        return self._publish(matcher)

    # Queries read the published reference once each

    def is_allowed(self, address: str | None) -> bool:
        return self._matcher.is_allowed(address)

    def is_denied(self, identity: str | None) -> bool:
        return self._matcher.is_denied(identity)

    def is_user_name_allowed(self, user_name: str | None) -> bool:
        return self._matcher.is_user_name_allowed(user_name)

    def is_within_edit_distance_of_allowed_user_names(
        self, user_name: str | None, max_distance: int | None = None
    ) -> bool:
        return self._matcher.is_within_edit_distance_of_allowed_user_names(
            user_name, max_distance
        )
