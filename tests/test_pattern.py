"""Tests for tern.routing.pattern: segment parsing and path matching."""

import pytest

from tern.errors import ConfigurationError
from tern.routing.pattern import (
    constraint_of,
    extract_params,
    match_path,
    parse_pattern,
    parse_segment,
    split_path,
)


class TestSplitPath:
    def test_root_has_no_segments(self) -> None:
        assert split_path("/") == []

    def test_empty_path(self) -> None:
        assert split_path("") == []

    def test_leading_slash_dropped(self) -> None:
        assert split_path("/users/42") == ["users", "42"]

    def test_trailing_slash_is_a_segment(self) -> None:
        assert split_path("/users/") == ["users", ""]

    def test_no_leading_slash(self) -> None:
        assert split_path("users/42") == ["users", "42"]


class TestParseSegment:
    def test_literal(self) -> None:
        seg = parse_segment("users")
        assert not seg.is_param
        assert seg.name is None

    def test_param(self) -> None:
        seg = parse_segment(":id")
        assert seg.is_param
        assert seg.name == "id"
        assert seg.regex is None

    def test_constrained_param(self) -> None:
        seg = parse_segment(":id([0-9]+)")
        assert seg.name == "id"
        assert seg.regex is not None
        assert seg.regex.pattern == "[0-9]+"

    def test_empty_constraint(self) -> None:
        seg = parse_segment(":id()")
        assert seg.name == "id"
        assert seg.regex is None

    def test_constraint_stops_at_first_close_paren(self) -> None:
        assert constraint_of(":id(a)b)") == "a"

    def test_unclosed_constraint_is_plain_param(self) -> None:
        seg = parse_segment(":id(abc")
        assert seg.is_param
        assert seg.regex is None

    def test_invalid_regex_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid constraint"):
            parse_pattern("/user/:id([0-9)")


class TestMatchPath:
    def test_root(self) -> None:
        assert match_path("/", "/")

    def test_literal_exact(self) -> None:
        assert match_path("/about/team", "/about/team")

    def test_literal_mismatch(self) -> None:
        assert not match_path("/about/team", "/about/teams")

    @pytest.mark.parametrize(
        ("pattern", "path"),
        [
            ("/users", "/users/1"),
            ("/users/:id", "/users"),
            ("/", "/users"),
            ("/a/b/c", "/a/b"),
        ],
    )
    def test_segment_count_mismatch(self, pattern: str, path: str) -> None:
        assert not match_path(pattern, path)

    def test_param_matches_any_value(self) -> None:
        result = match_path("/user/:name", "/user/agus")
        assert result.matched
        assert result.params == ("agus",)

    def test_param_rejects_empty_segment(self) -> None:
        assert not match_path("/user/:name", "/user/")

    def test_numeric_constraint_accepts_digits(self) -> None:
        assert match_path("/user/:id([0-9]+)", "/user/9")

    def test_numeric_constraint_rejects_letters(self) -> None:
        assert not match_path("/user/:id([0-9]+)", "/user/agus")

    def test_empty_constraint_matches_anything(self) -> None:
        assert match_path("/user/:id()", "/user/agus")

    def test_constraint_is_unanchored(self) -> None:
        assert match_path("/user/:id([0-9]+)", "/user/abc9")

    def test_anchored_constraint(self) -> None:
        assert not match_path("/user/:id(^[0-9]+$)", "/user/abc9")

    def test_failed_constraint_is_not_an_error(self) -> None:
        result = match_path("/user/:id([0-9]+)", "/user/x")
        assert result.matched is False
        assert result.params == ()

    def test_multiple_params(self) -> None:
        result = match_path("/view/user/:id/view/:name", "/view/user/6/view/agus")
        assert result.params == ("6", "agus")


class TestExtractParams:
    def test_all_params_in_order(self) -> None:
        assert extract_params("/user/:name/:address", "/user/agus/jakarta") == [
            "agus",
            "jakarta",
        ]

    def test_single_name(self) -> None:
        assert extract_params("/user/:name/:address", "/user/agus/jakarta", "name") == ["agus"]

    def test_repeated_name(self) -> None:
        assert extract_params("/:x/and/:x", "/a/and/b", "x") == ["a", "b"]

    def test_unknown_name(self) -> None:
        assert extract_params("/user/:name", "/user/agus", "id") == []

    def test_several_names_return_nothing(self) -> None:
        assert extract_params("/user/:name/:address", "/user/agus/jakarta", "name", "address") == []

    def test_non_matching_path(self) -> None:
        assert extract_params("/user/:name", "/post/agus") == []

    def test_accepts_parsed_segments(self) -> None:
        segments = parse_pattern("/user/:id")
        assert extract_params(segments, "/user/6") == ["6"]
