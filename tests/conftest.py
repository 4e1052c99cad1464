"""Shared test fixtures and fake resolvers."""

import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ipban.lists.errors import DnsLookupError


class FakeResolver:
    """Resolver answering from a dict. Missing names fail like NXDOMAIN."""

    def __init__(self, hosts=None):
        self.hosts = dict(hosts or {})
        self.calls = []

    def resolve(self, hostname):
        self.calls.append(hostname)
        if hostname not in self.hosts:
            raise DnsLookupError(hostname, "Name or service not known")
        return list(self.hosts[hostname])


class FakeAsyncResolver(FakeResolver):
    """Async flavor of FakeResolver."""

    async def resolve(self, hostname):
        return FakeResolver.resolve(self, hostname)


@pytest.fixture
def resolver():
    return FakeResolver(
        {
            "two.example.com": ["192.0.2.10", "2001:db8::10"],
            "one.example.com": ["198.51.100.7"],
            "localhost": ["127.0.0.1", "::1"],
            "empty.example.com": [],
        }
    )


@pytest.fixture
def async_resolver(resolver):
    return FakeAsyncResolver(resolver.hosts)


@pytest.fixture(autouse=True)
def reset_ipban_logger():
    """Undo init_logging() so log records reach caplog again."""
    yield
    logger = logging.getLogger("ipban")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
