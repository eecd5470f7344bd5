"""
alias_map - 複数のエイリアスが1つの値を共有するマップ

Usage:
    from alias_map import AliasMap

    am = AliasMap()
    am.set("p1", "X")
    am.add_aliases("p1", "s1")
    am.get("s1")  # → "X"
"""

from __future__ import annotations

from .alias_map import AliasMap
from .error_messages import AliasMapError, ErrorCategory, ErrorCode
from .loader import (
    dump_alias_map,
    dump_alias_map_file,
    load_alias_map,
    load_alias_map_file,
)
from .logging_utils import (
    configure_logging,
    configure_logging_from_env,
    get_structured_logger,
)

__version__ = "0.1.0"

__all__ = [
    "AliasMap",
    "AliasMapError",
    "ErrorCategory",
    "ErrorCode",
    "load_alias_map",
    "load_alias_map_file",
    "dump_alias_map",
    "dump_alias_map_file",
    "configure_logging",
    "configure_logging_from_env",
    "get_structured_logger",
]
