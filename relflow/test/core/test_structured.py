"""Tests for relflow.core.structured module."""

from __future__ import annotations

from relflow.core.structured import as_obj_list, as_str_dict, dig, get_int, get_str, get_table


class TestNarrowing:
    def test_as_str_dict(self) -> None:
        assert as_str_dict({"a": 1}) == {"a": 1}
        assert as_str_dict({1: "a"}) is None
        assert as_str_dict([1]) is None

    def test_as_obj_list(self) -> None:
        assert as_obj_list([1, "x"]) == [1, "x"]
        assert as_obj_list({"a": 1}) is None


class TestGetters:
    def test_get_str_strips(self) -> None:
        assert get_str({"k": "  v "}, "k") == "v"

    def test_get_str_rejects_blank_and_non_str(self) -> None:
        assert get_str({"k": "   "}, "k") is None
        assert get_str({"k": 3}, "k") is None
        assert get_str({}, "k") is None

    def test_get_int_rejects_bool(self) -> None:
        assert get_int({"k": 3}, "k") == 3
        assert get_int({"k": True}, "k") is None

    def test_get_table(self) -> None:
        assert get_table({"k": {"x": 1}}, "k") == {"x": 1}
        assert get_table({"k": "x"}, "k") is None


class TestDig:
    def test_nested(self) -> None:
        assert dig({"data": {"action": "build"}}, "data", "action") == "build"

    def test_missing_key(self) -> None:
        assert dig({"data": {}}, "data", "action") is None

    def test_non_mapping_on_path(self) -> None:
        assert dig({"data": "text"}, "data", "action") is None
        assert dig(None, "data") is None

    def test_no_keys_returns_input(self) -> None:
        assert dig(5) == 5
