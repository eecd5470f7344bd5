"""
test_error_messages.py - error_messages モジュールのテスト

AliasMapError クラス、ErrorCode データクラス、エラーコード定数、
format_error ヘルパーのテストを行う。
"""

from __future__ import annotations

import pytest

from alias_map.error_messages import (
    ERROR_CODE_PATTERN,
    AliasMapError,
    ErrorCategory,
    ErrorCode,
    LOAD_ALIAS_CONFLICT,
    LOAD_FILE_NOT_FOUND,
    LOAD_FILE_TOO_LARGE,
    LOAD_PARSE_ERROR,
    SYS_CONFIG_ERROR,
    VAL_INVALID_DOCUMENT,
    format_error,
)


ALL_CONSTANTS = [
    LOAD_FILE_NOT_FOUND,
    LOAD_PARSE_ERROR,
    LOAD_ALIAS_CONFLICT,
    LOAD_FILE_TOO_LARGE,
    VAL_INVALID_DOCUMENT,
    SYS_CONFIG_ERROR,
]


class TestAliasMapError:

    def test_basic_creation(self):
        err = AliasMapError(code="ALIAS-SYS-001", message="Something went wrong")
        assert err.code == "ALIAS-SYS-001"
        assert err.message == "Something went wrong"
        assert err.details is None
        assert err.suggestion is None
        assert str(err) == "ALIAS-SYS-001: Something went wrong"

    def test_is_exception(self):
        with pytest.raises(AliasMapError):
            raise AliasMapError(code="ALIAS-VAL-001", message="bad")


class TestErrorCode:

    def test_invalid_format_rejected(self):
        with pytest.raises(ValueError):
            ErrorCode(code="MAP-SYS-001", template="x")
        with pytest.raises(ValueError):
            ErrorCode(code="ALIAS-sys-1", template="x")

    @pytest.mark.parametrize("code", ALL_CONSTANTS, ids=lambda c: c.code)
    def test_constants_are_well_formed(self, code):
        assert ERROR_CODE_PATTERN.match(code.code)
        assert isinstance(code.category, ErrorCategory)
        assert code.code.split("-")[1] == code.category.value
        assert code.suggestion


class TestFormatError:

    def test_template_filled(self):
        err = format_error(LOAD_FILE_NOT_FOUND, path="aliases.yaml")
        assert err.code == "ALIAS-LOAD-001"
        assert err.message == "Alias document not found: aliases.yaml"
        assert err.suggestion == LOAD_FILE_NOT_FOUND.suggestion

    def test_suggestion_override_and_details(self):
        err = format_error(
            LOAD_ALIAS_CONFLICT,
            alias="a",
            group_index=2,
            details={"alias": "a"},
            suggestion="use force",
        )
        assert err.message == "Alias 'a' already resolves to a different value (group 2)"
        assert err.details == {"alias": "a"}
        assert err.suggestion == "use force"

    def test_missing_parameter(self):
        err = format_error(LOAD_FILE_TOO_LARGE, size=10)
        assert "missing parameter" in err.message
