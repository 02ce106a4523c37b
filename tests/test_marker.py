"""Tests for sync-marker parsing, removal, and merging."""

from __future__ import annotations

from accountswap.config import (
    AUTH_STATUS,
    COMMAND_CONFIGS,
    NEW_STORAGE_MARKER,
    ONBOARDING,
    PROFILE_URL,
    USER_SETTINGS,
    ManagedField,
    StateConfig,
    TARGET_STORAGE_MARKER,
)
from accountswap.keystore import KeyStore
from accountswap.marker import (
    load_marker,
    merge_fields,
    remove_fields,
    resolve_flag,
    save_marker,
)
from accountswap.models import Marker

MARKER_KEY = TARGET_STORAGE_MARKER


class TestMarkerParse:
    """Boundary validation of stored marker documents."""

    def test_none_is_empty(self) -> None:
        assert len(Marker.parse(None)) == 0

    def test_garbage_is_empty(self) -> None:
        assert Marker.parse("{not json").root == {}

    def test_non_object_is_empty(self) -> None:
        assert Marker.parse("[1, 2]").root == {}

    def test_object_is_kept_verbatim(self) -> None:
        marker = Marker.parse('{"a": 1, "weird": "x"}')
        assert marker.root == {"a": 1, "weird": "x"}

    def test_flag_only_returns_zero_or_one(self) -> None:
        marker = Marker({"a": 0, "b": True, "c": "1", "d": 1, "e": 7, "f": -1, "g": 1.0})
        assert marker.flag("a") == 0
        assert marker.flag("b") is None
        assert marker.flag("c") is None
        assert marker.flag("d") == 1
        assert marker.flag("e") is None
        assert marker.flag("f") is None
        assert marker.flag("g") is None
        assert marker.flag("missing") is None

    def test_to_json_is_compact(self) -> None:
        assert Marker({"a": 1}).to_json() == '{"a":1}'


class TestRemoveFields:
    """Dropping managed fields from the marker."""

    def test_removes_entries_entirely(self) -> None:
        marker = Marker({AUTH_STATUS: 1, "other": 1})
        assert remove_fields(marker, [AUTH_STATUS, PROFILE_URL]) is True
        assert marker.root == {"other": 1}
        assert AUTH_STATUS not in marker

    def test_zeroed_entry_is_removed_not_kept(self) -> None:
        marker = Marker({AUTH_STATUS: 0})
        remove_fields(marker, [AUTH_STATUS])
        assert marker.root == {}

    def test_nothing_to_remove_reports_no_change(self) -> None:
        marker = Marker({"other": 1})
        assert remove_fields(marker, [AUTH_STATUS]) is False
        assert marker.root == {"other": 1}

    def test_empty_marker(self) -> None:
        assert remove_fields(Marker(), [AUTH_STATUS]) is False


class TestMergeFields:
    """Registering restored fields into the current marker."""

    def test_snapshot_flag_wins_over_default(self, config: StateConfig) -> None:
        merged = merge_fields(Marker(), Marker({AUTH_STATUS: 1, USER_SETTINGS: 0}), [AUTH_STATUS, USER_SETTINGS], config)
        assert merged.root == {AUTH_STATUS: 1, USER_SETTINGS: 0}

    def test_documented_defaults(self, config: StateConfig) -> None:
        restored = [AUTH_STATUS, PROFILE_URL, ONBOARDING, COMMAND_CONFIGS, USER_SETTINGS]
        merged = merge_fields(Marker(), None, restored, config)
        assert merged.root == {
            AUTH_STATUS: 0,
            PROFILE_URL: 0,
            ONBOARDING: 0,
            COMMAND_CONFIGS: 0,
            USER_SETTINGS: 1,
        }

    def test_missing_entry_in_snapshot_marker_falls_back(self, config: StateConfig) -> None:
        merged = merge_fields(Marker(), Marker({AUTH_STATUS: 1}), [AUTH_STATUS, PROFILE_URL], config)
        assert merged.root[PROFILE_URL] == 0
        assert merged.root[AUTH_STATUS] == 1

    def test_overwrites_prior_value_keeps_unrelated(self, config: StateConfig) -> None:
        current = Marker({AUTH_STATUS: 1, "unrelated": 1, "other": 0})
        merge_fields(current, Marker({AUTH_STATUS: 0}), [AUTH_STATUS], config)
        assert current.root == {AUTH_STATUS: 0, "unrelated": 1, "other": 0}

    def test_new_storage_key_never_registered(self, config: StateConfig) -> None:
        merged = merge_fields(Marker(), Marker({NEW_STORAGE_MARKER: 1}), [NEW_STORAGE_MARKER, AUTH_STATUS], config)
        assert NEW_STORAGE_MARKER not in merged
        assert AUTH_STATUS in merged

    def test_custom_field_set(self) -> None:
        custom = StateConfig(fields=[ManagedField(key="alpha", default_flag=0), ManagedField(key="beta")])
        assert resolve_flag(None, "alpha", custom) == 0
        assert resolve_flag(None, "beta", custom) == 1
        assert resolve_flag(Marker({"alpha": 1}), "alpha", custom) == 1


class TestStoreRoundTrip:
    """Loading and saving the marker row."""

    def test_load_absent_marker(self, make_store, config: StateConfig) -> None:
        with KeyStore.open(make_store()) as store:
            assert load_marker(store, config).root == {}

    def test_load_unparsable_marker(self, make_store, config: StateConfig) -> None:
        with KeyStore.open(make_store({MARKER_KEY: "}}"})) as store:
            assert load_marker(store, config).root == {}

    def test_save_marker(self, make_store, read_rows, config: StateConfig) -> None:
        path = make_store()
        with KeyStore.open(path) as store:
            save_marker(store, Marker({"a": 1}), config)
        assert read_rows(path)[MARKER_KEY] == '{"a":1}'
