"""DNS resolvers used to turn host names in a list into addresses.

A resolver has one operation, ``resolve(hostname) -> list[str]``, and
raises DnsLookupError when the name cannot be resolved. Any other failure
mode (timeouts, bad names) is reported the same way so the normalizer
has a single error to skip on.
"""

import asyncio
import socket
from typing import Iterable, Protocol

from .errors import DnsLookupError


class Resolver(Protocol):
    def resolve(self, hostname: str) -> list[str]: ...


class AsyncResolver(Protocol):
    async def resolve(self, hostname: str) -> list[str]: ...


def addresses_from_addrinfo(infos: Iterable[tuple]) -> list[str]:
    """Extract unique addresses from getaddrinfo results, keeping order."""
    addresses: list[str] = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        address = sockaddr[0]
        if address not in addresses:
            addresses.append(address)
    return addresses


class SocketResolver:
    """Blocking resolver backed by the system's getaddrinfo."""

    def resolve(self, hostname: str) -> list[str]:
        try:
            infos = socket.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
        except (OSError, UnicodeError) as e:
            # UnicodeError: name fails IDNA encoding (e.g. empty label)
            raise DnsLookupError(hostname, str(e)) from e
        return addresses_from_addrinfo(infos)


class LoopResolver:
    """Asyncio resolver, runs getaddrinfo through the running event loop.

    Args:
        timeout: Seconds to wait per lookup (None waits for the system
            resolver's own timeout)
    """

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    async def resolve(self, hostname: str) -> list[str]:
        loop = asyncio.get_running_loop()
        try:
            infos = await asyncio.wait_for(
                loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM),
                self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise DnsLookupError(hostname, f"timed out after {self.timeout}s") from e
        except (OSError, UnicodeError) as e:
            raise DnsLookupError(hostname, str(e)) from e
        return addresses_from_addrinfo(infos)


class NullResolver:
    """Resolver that refuses every lookup (offline validation)."""

    def resolve(self, hostname: str) -> list[str]:
        raise DnsLookupError(hostname, "resolution disabled")
