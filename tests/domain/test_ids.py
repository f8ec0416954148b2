"""Tests for task ids, display ids, and board prefixes."""

import pytest

from kanbanctl.domain.ids import (
    TASK_ID_LENGTH,
    format_display_id,
    generate_task_id,
    normalize_prefix,
    parse_display_id,
    short_id,
    validate_task_id,
)


class TestGenerateTaskId:
    def test_length_and_alphabet(self) -> None:
        task_id = generate_task_id()
        assert len(task_id) == TASK_ID_LENGTH
        assert validate_task_id(task_id)

    def test_unique(self) -> None:
        assert len({generate_task_id() for _ in range(200)}) == 200


class TestValidateTaskId:
    @pytest.mark.parametrize("task_id", ["abcdefghij12345", "000000000000000"])
    def test_valid(self, task_id: str) -> None:
        assert validate_task_id(task_id)

    @pytest.mark.parametrize(
        "task_id",
        ["", "abc", "abcdefghij123456", "ABCDEFGHIJ12345", "abcdefghij-1234"],
    )
    def test_invalid(self, task_id: str) -> None:
        assert not validate_task_id(task_id)


class TestShortId:
    def test_first_eight(self) -> None:
        assert short_id("abcdefghij12345") == "abcdefgh"

    def test_shorter_input_unchanged(self) -> None:
        assert short_id("abc") == "abc"


class TestParseDisplayId:
    def test_upper_cases_prefix(self) -> None:
        assert parse_display_id("wrk-7") == ("WRK", 7)

    def test_alphanumeric_prefix(self) -> None:
        assert parse_display_id("V2-13") == ("V2", 13)

    @pytest.mark.parametrize("ref", ["WRK", "WRK-", "-7", "WRK-x", "2WRK-1", "ABCDEFGHIJK-1"])
    def test_not_display_shaped(self, ref: str) -> None:
        assert parse_display_id(ref) is None

    def test_zero_seq_still_parses(self) -> None:
        assert parse_display_id("WRK-0") == ("WRK", 0)

    def test_format_round_trip(self) -> None:
        assert parse_display_id(format_display_id("OPS", 42)) == ("OPS", 42)


class TestNormalizePrefix:
    def test_upper_cases_and_strips(self) -> None:
        assert normalize_prefix("  web ") == "WEB"

    def test_empty(self) -> None:
        with pytest.raises(ValueError, match="required"):
            normalize_prefix("   ")

    def test_too_long(self) -> None:
        with pytest.raises(ValueError, match="10 characters"):
            normalize_prefix("ABCDEFGHIJK")

    def test_must_start_with_letter(self) -> None:
        with pytest.raises(ValueError, match="start with a letter"):
            normalize_prefix("1ABC")

    def test_rejects_punctuation(self) -> None:
        with pytest.raises(ValueError, match="alphanumeric"):
            normalize_prefix("WE-B")
