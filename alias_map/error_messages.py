"""
error_messages.py - エラーコード体系と AliasMapError

エラーコード形式: ALIAS-{カテゴリ}-{3桁番号}
カテゴリ: LOAD, VAL, SYS

「見つからない」は例外にしない（None / False を返す）。
ここで扱うのはローダーと設定まわりの失敗のみ。

設計原則:
- stdlib のみに依存（循環参照を作らない）
- 状態を持たない純粋関数のみ
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional


# ALIAS-{CATEGORY(2-5大文字)}-{3桁番号}
ERROR_CODE_PATTERN = re.compile(r'^ALIAS-[A-Z]{2,5}-\d{3}$')


class ErrorCategory(enum.Enum):
    """エラーカテゴリ。

    LOAD — ドキュメント/ファイルの読み込み
    VAL  — ドキュメント構造のバリデーション
    SYS  — 設定・環境
    """

    LOAD = "LOAD"
    VAL = "VAL"
    SYS = "SYS"


@dataclass(frozen=True)
class ErrorCode:
    """エラーコード定数。テンプレート文字列とデフォルト suggestion を保持する。

    Attributes:
        code: ALIAS-{CAT}-{NNN} 形式のコード文字列。
        template: ``str.format()`` 対応のメッセージテンプレート。
        suggestion: デフォルトの解決策提案（format_error でオーバーライド可）。
        category: 所属カテゴリ。
    """

    code: str
    template: str
    suggestion: Optional[str] = None
    category: Optional[ErrorCategory] = None

    def __post_init__(self) -> None:
        if not ERROR_CODE_PATTERN.match(self.code):
            raise ValueError(
                f"Invalid error code format: {self.code!r}. "
                f"Expected ALIAS-{{CATEGORY}}-{{NNN}}"
            )


class AliasMapError(Exception):
    """alias_map パッケージの統一エラークラス。

    Attributes:
        code: エラーコード文字列。
        message: 人間可読メッセージ。
        details: 追加情報の dict（任意）。
        suggestion: 解決策の提案（任意）。
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details
        self.suggestion = suggestion
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


# ======================================================================
# エラーコード定数 — LOAD
# ======================================================================

LOAD_FILE_NOT_FOUND = ErrorCode(
    code="ALIAS-LOAD-001",
    template="Alias document not found: {path}",
    suggestion="Verify the file path exists.",
    category=ErrorCategory.LOAD,
)

LOAD_PARSE_ERROR = ErrorCode(
    code="ALIAS-LOAD-002",
    template="Alias document could not be parsed: {reason}",
    suggestion="Check the YAML syntax of the document.",
    category=ErrorCategory.LOAD,
)

LOAD_ALIAS_CONFLICT = ErrorCode(
    code="ALIAS-LOAD-003",
    template="Alias {alias!r} already resolves to a different value (group {group_index})",
    suggestion="Remove the duplicate alias or load with force=True.",
    category=ErrorCategory.LOAD,
)

LOAD_FILE_TOO_LARGE = ErrorCode(
    code="ALIAS-LOAD-004",
    template="Alias document too large: {size} bytes (max {max_size} bytes)",
    suggestion="Split the document or raise ALIAS_MAP_MAX_FILE_BYTES.",
    category=ErrorCategory.LOAD,
)

# ======================================================================
# エラーコード定数 — VAL
# ======================================================================

VAL_INVALID_DOCUMENT = ErrorCode(
    code="ALIAS-VAL-001",
    template="Invalid alias document at {location}: {reason}",
    suggestion="Each group needs a 'value' and a non-empty 'aliases' list.",
    category=ErrorCategory.VAL,
)

# ======================================================================
# エラーコード定数 — SYS
# ======================================================================

SYS_CONFIG_ERROR = ErrorCode(
    code="ALIAS-SYS-001",
    template="Configuration error: {reason}",
    suggestion="Check the ALIAS_MAP_* environment variables.",
    category=ErrorCategory.SYS,
)


def format_error(
    code: ErrorCode,
    *,
    details: Optional[Dict[str, Any]] = None,
    suggestion: Optional[str] = None,
    **kwargs: Any,
) -> AliasMapError:
    """テンプレート文字列にパラメータを埋め込んで AliasMapError を返す。

    Example::

        err = format_error(LOAD_FILE_NOT_FOUND, path="aliases.yaml")
        # str(err) == "ALIAS-LOAD-001: Alias document not found: aliases.yaml"
    """
    try:
        message = code.template.format(**kwargs)
    except KeyError as exc:
        message = f"{code.template} (missing parameter: {exc})"

    resolved_suggestion = suggestion if suggestion is not None else code.suggestion

    return AliasMapError(
        code=code.code,
        message=message,
        details=details,
        suggestion=resolved_suggestion,
    )
