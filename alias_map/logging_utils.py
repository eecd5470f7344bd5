"""
logging_utils.py - 構造化ログ基盤

"alias_map" 名前空間のロガーに、エイリアスや内部キーなどの
コンテキスト付きでイベントを出力する。

主要コンポーネント:
- StructuredFormatter: JSON/テキスト形式のログフォーマッタ
- StructuredLogger: logging.Logger のラッパー（debug/info と bind のみ）
- get_structured_logger(): キャッシュ付きファクトリ関数
- configure_logging(): "alias_map" 名前空間のログ設定
- configure_logging_from_env(): ALIAS_MAP_LOG_LEVEL / ALIAS_MAP_LOG_FORMAT から設定
"""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .error_messages import SYS_CONFIG_ERROR, format_error


LOGGER_NAMESPACE = "alias_map"

ENV_LOG_LEVEL = "ALIAS_MAP_LOG_LEVEL"
ENV_LOG_FORMAT = "ALIAS_MAP_LOG_FORMAT"

_VALID_FORMATS = ("json", "text")
_CORE_FIELDS = ("timestamp", "level", "module", "message")


# ============================================================
# StructuredFormatter
# ============================================================

class StructuredFormatter(logging.Formatter):
    """
    JSON形式またはテキスト形式でログレコードをフォーマットする。

    JSON形式（デフォルト）:
        {"timestamp": "...", "level": "DEBUG", "module": "alias_map.core",
         "message": "alias attached", "alias": "s1", "internal_key": 0, ...}

    テキスト形式（ALIAS_MAP_LOG_FORMAT=text or fmt_type="text"）:
        2025-01-01T00:00:00.000000Z [DEBUG] alias_map.core - alias attached [alias=s1 internal_key=0]
    """

    def __init__(self, fmt_type: Optional[str] = None) -> None:
        super().__init__()
        if fmt_type is None:
            fmt_type = os.environ.get(ENV_LOG_FORMAT, "json")
        self._fmt_type = fmt_type.lower()

    @property
    def fmt_type(self) -> str:
        return self._fmt_type

    @staticmethod
    def _context(record: logging.LogRecord) -> Dict[str, Any]:
        context_data = getattr(record, "context_data", None)
        if isinstance(context_data, dict):
            return context_data
        return {}

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(
            record.created, tz=timezone.utc
        ).isoformat().replace("+00:00", "Z")
        message = record.getMessage()
        context = self._context(record)
        exc_text = None
        if record.exc_info and record.exc_info[1] is not None:
            exc_text = self.formatException(record.exc_info)

        if self._fmt_type == "text":
            line = f"{timestamp} [{record.levelname}] {record.name} - {message}"
            if context:
                line += " [" + " ".join(f"{k}={v}" for k, v in context.items()) + "]"
            if exc_text:
                line += "\n" + exc_text
            return line

        entry: Dict[str, Any] = dict(zip(
            _CORE_FIELDS, (timestamp, record.levelname, record.name, message)
        ))
        # コアフィールドは上書きしない
        for key, value in context.items():
            entry.setdefault(key, value)
        if exc_text:
            entry["exception"] = exc_text

        # alias / value は任意のオブジェクトなので default=repr
        return json.dumps(entry, ensure_ascii=False, default=repr)


# ============================================================
# StructuredLogger
# ============================================================

class StructuredLogger:
    """
    logging.Logger をラップし、キーワード引数を context_data として渡す。

    Usage:
        logger = get_structured_logger("alias_map.core")
        logger.debug("alias attached", alias="s1", internal_key=0)

        # bind() で共通コンテキストを設定
        logger.bind(path="aliases.yaml").debug("alias document parsed", size=120)
    """

    def __init__(self, name: str, **default_context: Any) -> None:
        self._logger = logging.getLogger(name)
        self._default_context: Dict[str, Any] = dict(default_context)

    def bind(self, **kwargs: Any) -> "StructuredLogger":
        """デフォルトコンテキストに kwargs をマージした新しい StructuredLogger を返す。"""
        return StructuredLogger(self._logger.name, **{**self._default_context, **kwargs})

    def _log(self, level: int, msg: str, context: Dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(
            level, msg, extra={"context_data": {**self._default_context, **context}}
        )

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, kwargs)


_logger_cache: Dict[str, StructuredLogger] = {}
_logger_cache_lock = threading.Lock()


def get_structured_logger(name: str) -> StructuredLogger:
    """同じ name に対しては同じ StructuredLogger を返す（キャッシュ）。"""
    with _logger_cache_lock:
        if name not in _logger_cache:
            _logger_cache[name] = StructuredLogger(name)
        return _logger_cache[name]


# ============================================================
# configure_logging
# ============================================================

_configure_lock = threading.Lock()


def _replace_handlers(logger: logging.Logger, handlers: List[logging.Handler]) -> None:
    for h in logger.handlers[:]:
        h.close()
    logger.handlers[:] = handlers


def configure_logging(
    level: str = "INFO",
    fmt: str = "json",
    output: str = "stderr",
) -> None:
    """
    "alias_map" 名前空間にハンドラを1つ設定する（既存ハンドラは閉じて置き換える）。

    Args:
        level: ログレベル（DEBUG/INFO/WARNING/ERROR/CRITICAL）
        fmt: 出力形式（"json" or "text"）
        output: 出力先（"stderr" or ファイルパス）

    Raises:
        AliasMapError: level / fmt が不正な場合（ALIAS-SYS-001）
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise format_error(
            SYS_CONFIG_ERROR,
            reason=f"invalid log level {level!r}",
            details={"level": level},
        )
    if fmt.lower() not in _VALID_FORMATS:
        raise format_error(
            SYS_CONFIG_ERROR,
            reason=f"invalid log format {fmt!r}",
            details={"format": fmt},
        )

    if output == "stderr":
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
    else:
        handler = logging.FileHandler(output, encoding="utf-8")
    handler.setFormatter(StructuredFormatter(fmt_type=fmt))
    handler.setLevel(numeric_level)

    with _configure_lock:
        package_logger = logging.getLogger(LOGGER_NAMESPACE)
        _replace_handlers(package_logger, [handler])
        package_logger.setLevel(numeric_level)
        package_logger.propagate = False


def configure_logging_from_env(output: str = "stderr") -> None:
    """環境変数 ALIAS_MAP_LOG_LEVEL / ALIAS_MAP_LOG_FORMAT から configure_logging() する。"""
    configure_logging(
        level=os.environ.get(ENV_LOG_LEVEL, "INFO"),
        fmt=os.environ.get(ENV_LOG_FORMAT, "json"),
        output=output,
    )


def reset_configuration() -> None:
    """configure_logging() 前の状態に戻す。"""
    with _configure_lock:
        package_logger = logging.getLogger(LOGGER_NAMESPACE)
        _replace_handlers(package_logger, [])
        package_logger.setLevel(logging.NOTSET)
        package_logger.propagate = True
