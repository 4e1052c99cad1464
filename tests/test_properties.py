"""
Property-based tests for list normalization and matching.

Uses hypothesis to generate random inputs and verify invariants hold.

Run with: pytest tests/test_properties.py -v
"""

import ipaddress
import sys
from pathlib import Path

from hypothesis import given
from hypothesis import strategies as st

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from conftest import FakeResolver

from ipban.lists import EntrySet, ListMatcher, normalize_list, normalize_user_name

# =============================================================================
# Strategies for generating test data
# =============================================================================

ipv4_address = st.ip_addresses(v=4).map(str)
ipv6_address = st.ip_addresses(v=6).map(str)
any_address = st.one_of(ipv4_address, ipv6_address)

SENTINELS = ["0.0.0.0", "::0", "127.0.0.1", "::1"]


@st.composite
def case_variant(draw, text):
    """Randomly flip the case of each character."""
    flips = draw(st.lists(st.booleans(), min_size=len(text), max_size=len(text)))
    return "".join(c.swapcase() if flip else c for c, flip in zip(text, flips))


@st.composite
def list_text(draw):
    """Comma separated addresses with random sentinels, spacing and case."""
    addresses = draw(st.lists(st.one_of(any_address, st.sampled_from(SENTINELS)), max_size=8))
    tokens = []
    for address in addresses:
        token = draw(case_variant(address))
        pad = draw(st.sampled_from(["", " ", "  ", "\t"]))
        tokens.append(pad + token + pad)
    extra_commas = draw(st.sampled_from(["", ",", ", ,"]))
    return ",".join(tokens) + extra_commas


# =============================================================================
# Normalization invariants
# =============================================================================


@given(list_text())
def test_sentinels_never_listed(text):
    entries = normalize_list(text, None, FakeResolver()).entries
    for entry in entries:
        assert ipaddress.ip_address(entry) not in {
            ipaddress.ip_address(s) for s in SENTINELS
        }


@given(any_address, st.integers(min_value=1, max_value=5), st.data())
def test_case_variants_collapse(address, copies, data):
    tokens = [data.draw(case_variant(address)) for _ in range(copies)]
    entries = normalize_list(",".join(tokens), None, FakeResolver()).entries
    if ipaddress.ip_address(address) in {ipaddress.ip_address(s) for s in SENTINELS}:
        assert len(entries) == 0
    else:
        assert len(entries) == 1
        assert address.upper() in entries


@given(list_text())
def test_normalization_repeatable(text):
    first = normalize_list(text, None, FakeResolver())
    second = normalize_list(text, None, FakeResolver())
    assert first.entries == second.entries
    assert first.skipped == second.skipped


@given(list_text())
def test_literal_lists_never_resolve(text):
    resolver = FakeResolver()
    normalize_list(text, None, resolver)
    assert resolver.calls == []


# =============================================================================
# Query invariants
# =============================================================================


@given(st.lists(ipv4_address, min_size=1, max_size=5))
def test_listed_addresses_allowed_and_denied(addresses):
    text = ",".join(addresses)
    resolver = FakeResolver()
    matcher = ListMatcher(
        allow=normalize_list(text, None, resolver),
        deny=normalize_list(text, None, resolver),
    )
    for address in addresses:
        if address in SENTINELS:
            continue
        assert matcher.is_allowed(address)
        assert matcher.is_denied(address)


@given(st.text(max_size=20))
def test_blank_or_text_never_raises(value):
    matcher = ListMatcher(user_names=frozenset({"ALICE"}))
    matcher.is_allowed(value)
    matcher.is_denied(value)
    matcher.is_user_name_allowed(value)
    matcher.is_within_edit_distance_of_allowed_user_names(value)


@given(st.text(min_size=1, max_size=12).filter(lambda s: s.strip()))
def test_user_name_matches_itself(name):
    matcher = ListMatcher(user_names=frozenset({normalize_user_name(name)}))
    assert matcher.is_user_name_allowed(name)
    assert matcher.is_within_edit_distance_of_allowed_user_names(name, 0)


@given(st.text(max_size=12))
def test_empty_user_list_is_vacuously_near(name):
    assert ListMatcher().is_within_edit_distance_of_allowed_user_names(name, 0)


def test_entry_set_equality_ignores_case():
    assert EntrySet(["2001:DB8::A"]) == EntrySet(["2001:db8::a"])
    assert EntrySet(["2001:DB8::A"]) == {"2001:db8::A"}
    assert hash(EntrySet(["A"])) == hash(EntrySet(["a"]))


def test_entry_set_not_equal_to_mixed_set():
    assert EntrySet(["10.0.0.1"]) != {"10.0.0.1", 1}
    assert EntrySet([]) != {None}
