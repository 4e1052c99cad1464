"""Allow/deny list normalization and matching engine."""

from .distance import levenshtein
from .dns import LoopResolver, NullResolver, SocketResolver
from .errors import DnsLookupError, ListError, PatternError
from .holder import MatcherHandle
from .matcher import DEFAULT_MAX_EDIT_DISTANCE, ListMatcher
from .normalizer import (
    normalize_list,
    normalize_list_async,
    normalize_user_name,
    normalize_user_names,
    split_list_text,
)
from .pattern import (
    HEX_WILDCARD,
    anchor_expression,
    compile_expression,
    compile_pattern,
    join_pattern_lines,
)
from .ranges import AddressRange, is_address_range, is_sentinel_address, parse_address_range
from .types import AddressList, EntrySet, SkippedEntry

__all__ = [
    # Types
    "AddressList",
    "AddressRange",
    "EntrySet",
    "SkippedEntry",
    # Errors
    "ListError",
    "PatternError",
    "DnsLookupError",
    # Pattern compiler
    "HEX_WILDCARD",
    "anchor_expression",
    "compile_expression",
    "compile_pattern",
    "join_pattern_lines",
    # Ranges
    "parse_address_range",
    "is_address_range",
    "is_sentinel_address",
    # DNS
    "SocketResolver",
    "LoopResolver",
    "NullResolver",
    # Normalizer
    "normalize_list",
    "normalize_list_async",
    "normalize_user_name",
    "normalize_user_names",
    "split_list_text",
    # Matching
    "DEFAULT_MAX_EDIT_DISTANCE",
    "ListMatcher",
    "MatcherHandle",
    "levenshtein",
]
