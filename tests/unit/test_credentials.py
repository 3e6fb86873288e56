"""Tests for mockstudio.core.credentials — parsing and per-call ordering.

Tests cover:
- Parsing of the comma-separated pool and the legacy fallback.
- Redaction of credentials for display.
- build(): permutation property, sticky credential first, empty pool.
- Statistical spread of the first position when no preference is held.
"""

from __future__ import annotations

import random
from collections import Counter

import pytest

from mockstudio.core.credentials import CredentialPool, parse_credentials, redact
from mockstudio.core.errors import ConfigurationError
from mockstudio.core.preferences import InMemoryPreferenceStore


class TestParseCredentials:
    """Test parse_credentials()."""

    def test_trims_and_drops_empty_entries(self):
        assert parse_credentials(" a , ,b,, c ") == ["a", "b", "c"]

    def test_duplicates_collapse_onto_first_occurrence(self):
        assert parse_credentials("a,b,a,c,b") == ["a", "b", "c"]

    def test_legacy_used_only_when_pool_is_empty(self):
        assert parse_credentials("", "legacy") == ["legacy"]
        assert parse_credentials(" , ", " legacy ") == ["legacy"]
        assert parse_credentials("a", "legacy") == ["a"]

    def test_nothing_configured(self):
        assert parse_credentials(None) == []
        assert parse_credentials("", None) == []
        assert parse_credentials("", "   ") == []


class TestRedact:
    """Test redact()."""

    def test_keeps_last_four_characters(self):
        assert redact("AIzaSy-secret-9f3c") == "...9f3c"

    def test_short_credential(self):
        assert redact("ab") == "...ab"


class TestCredentialPoolBuild:
    """Test CredentialPool.build() ordering."""

    def test_empty_pool_raises_configuration_error(self):
        pool = CredentialPool([], InMemoryPreferenceStore())
        with pytest.raises(ConfigurationError):
            pool.build()

    def test_result_is_a_permutation(self, credentials):
        pool = CredentialPool(credentials, InMemoryPreferenceStore(), rng=random.Random(7))
        for _ in range(20):
            ordered = pool.build()
            assert sorted(ordered) == sorted(credentials)
            assert len(set(ordered)) == len(ordered)

    def test_duplicates_are_collapsed(self):
        pool = CredentialPool(["a", "b", "a"], InMemoryPreferenceStore())
        assert len(pool) == 2
        assert sorted(pool.build()) == ["a", "b"]

    def test_preferred_member_goes_first(self, credentials):
        store = InMemoryPreferenceStore(credentials[2])
        pool = CredentialPool(credentials, store, rng=random.Random(3))
        for _ in range(20):
            ordered = pool.build()
            assert ordered[0] == credentials[2]
            assert sorted(ordered) == sorted(credentials)

    def test_preferred_non_member_is_ignored(self, credentials):
        store = InMemoryPreferenceStore("key-not-configured")
        pool = CredentialPool(credentials, store, rng=random.Random(3))
        ordered = pool.build()
        assert "key-not-configured" not in ordered
        assert sorted(ordered) == sorted(credentials)

    def test_build_does_not_modify_store(self, credentials):
        store = InMemoryPreferenceStore(credentials[0])
        CredentialPool(credentials, store).build()
        assert store.get() == credentials[0]

    def test_single_credential(self):
        pool = CredentialPool(["only"], InMemoryPreferenceStore())
        assert pool.build() == ["only"]

    def test_first_position_is_spread_without_preference(self):
        """Over many calls every credential leads roughly equally often."""
        credentials = ["k1", "k2", "k3", "k4"]
        pool = CredentialPool(credentials, InMemoryPreferenceStore(), rng=random.Random(42))

        leaders = Counter(pool.build()[0] for _ in range(4000))

        assert set(leaders) == set(credentials)
        for credential in credentials:
            assert 800 < leaders[credential] < 1200

    def test_rest_is_shuffled_behind_the_preference(self):
        """Credentials after the preferred one are not in a fixed order."""
        credentials = ["pref", "k1", "k2", "k3"]
        pool = CredentialPool(
            credentials, InMemoryPreferenceStore("pref"), rng=random.Random(5)
        )
        tails = {tuple(pool.build()[1:]) for _ in range(200)}
        assert len(tails) > 1


class TestCredentialPoolListing:
    """Test listing() and from_config()."""

    def test_listing_keeps_configuration_order(self, credentials):
        pool = CredentialPool(credentials, InMemoryPreferenceStore(), rng=random.Random(1))
        pool.build()
        assert pool.listing() == credentials

    def test_from_config(self, test_config, credentials):
        pool = CredentialPool.from_config(test_config, InMemoryPreferenceStore())
        assert pool.listing() == credentials
