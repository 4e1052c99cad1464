"""Address range parser - recognizes literal IP addresses and ranges.

Uses parsimonious for PEG parsing. The grammar accepts the token shapes,
``ipaddress`` decides whether the pieces are real addresses:

    10.0.0.1                        single address
    10.0.0.0/24, 2001:db8::/32      network with prefix length
    10.0.0.0/255.255.255.0          network with netmask
    10.0.0.1-10.0.0.9               inclusive span
    10.0.0.1-9                      IPv4 span ending in the same /24

Anything else is not a range (the normalizer then treats it as a host name).
"""

import ipaddress
from dataclasses import dataclass

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address

GRAMMAR = Grammar(r"""
range_token = short_span / span / network / address
short_span  = address ws* "-" ws* octet !~"[0-9A-Fa-f:.%]"
span        = address ws* "-" ws* address
network     = address "/" (netmask / prefix)
netmask     = ~"[0-9]{1,3}(\\.[0-9]{1,3}){3}"
prefix      = ~"[0-9]{1,3}"
octet       = ~"[0-9]{1,3}"
address     = ~"[0-9A-Fa-f:.]+(%[0-9A-Za-z_]+)?"
ws          = " " / "\t"
""")

# Addresses that must never end up in a list: unspecified and loopback,
# for both families. Listing them would allow or deny the local host itself.
SENTINEL_ADDRESSES = frozenset(
    {
        ipaddress.ip_address("0.0.0.0"),
        ipaddress.ip_address("::"),
        ipaddress.ip_address("127.0.0.1"),
        ipaddress.ip_address("::1"),
    }
)


@dataclass(frozen=True)
class AddressRange:
    """Inclusive range of addresses of one family."""

    first: IPAddress
    last: IPAddress

    @property
    def is_single(self) -> bool:
        return self.first == self.last


class RangeVisitor(NodeVisitor):
    """Turns a parsed range token into an AddressRange."""

    grammar = GRAMMAR
    unwrapped_exceptions = (ValueError,)

    def visit_range_token(self, node, visited_children):
        result = visited_children[0]
        if isinstance(result, AddressRange):
            return result
        return AddressRange(result, result)

    def visit_short_span(self, node, visited_children):
        first, _, _, _, octet, _ = visited_children
        if first.version != 4 or octet > 255:
            raise ValueError(f"invalid short range {node.text!r}")
        last = ipaddress.IPv4Address((int(first) & 0xFFFFFF00) | octet)
        if first > last:
            raise ValueError(f"range start after range end in {node.text!r}")
        return AddressRange(first, last)

    def visit_span(self, node, visited_children):
        first, _, _, _, last = visited_children
        if first.version != last.version:
            raise ValueError(f"mixed address families in {node.text!r}")
        if first > last:
            raise ValueError(f"range start after range end in {node.text!r}")
        return AddressRange(first, last)

    def visit_network(self, node, visited_children):
        address, _, mask = visited_children
        # (netmask / prefix) arrives wrapped in a one-element list
        mask = mask[0] if isinstance(mask, list) else mask
        network = ipaddress.ip_network(f"{address}/{mask}", strict=False)
        return AddressRange(network.network_address, network.broadcast_address)

    def visit_address(self, node, visited_children):
        return ipaddress.ip_address(node.text)

    def visit_netmask(self, node, visited_children):
        return node.text

    def visit_prefix(self, node, visited_children):
        return node.text

    def visit_octet(self, node, visited_children):
        return int(node.text)

    def generic_visit(self, node, visited_children):
        return visited_children or node


_VISITOR = RangeVisitor()


def parse_address_range(text: str) -> AddressRange | None:
    """Parse an address or address range, None if text is neither."""
    try:
        return _VISITOR.parse(text.strip())
    except (ParseError, ValueError):
        return None


def is_address_range(text: str) -> bool:
    """True if text is a literal IP address or address range."""
    return parse_address_range(text) is not None


def parse_ip_address(text: str) -> IPAddress | None:
    """Parse a single IP address, None if text is not one."""
    try:
        return ipaddress.ip_address(text)
    except ValueError:
        return None


def is_sentinel_address(text: str) -> bool:
    """True for the unspecified and loopback addresses, in any spelling."""
    return parse_ip_address(text.strip()) in SENTINEL_ADDRESSES
