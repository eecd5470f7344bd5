"""
loader.py - エイリアスグループ定義の読み込み / 書き出し

YAML（または同等の dict）で宣言したエイリアスグループから AliasMap を構築する。

ドキュメント形式:
    groups:
      - value: {model: gpt-4o, provider: openai}
        aliases: [chat, default_chat, gpt]
      - value: 42
        aliases: [answer]

各グループの先頭エイリアスを set() し、残りを add_aliases() で追加する。

環境変数:
    ALIAS_MAP_MAX_FILE_BYTES: 読み込むファイルサイズの上限（デフォルト 1 MiB）
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .alias_map import AliasMap
from .error_messages import (
    AliasMapError,
    LOAD_ALIAS_CONFLICT,
    LOAD_FILE_NOT_FOUND,
    LOAD_FILE_TOO_LARGE,
    LOAD_PARSE_ERROR,
    SYS_CONFIG_ERROR,
    VAL_INVALID_DOCUMENT,
    format_error,
)
from .logging_utils import get_structured_logger


ENV_MAX_FILE_BYTES = "ALIAS_MAP_MAX_FILE_BYTES"
DEFAULT_MAX_FILE_BYTES = 1 * 1024 * 1024

_log = get_structured_logger("alias_map.loader")


def _max_file_bytes() -> int:
    raw = os.environ.get(ENV_MAX_FILE_BYTES)
    if raw is None:
        return DEFAULT_MAX_FILE_BYTES
    try:
        return int(raw)
    except ValueError:
        raise format_error(
            SYS_CONFIG_ERROR,
            reason=f"{ENV_MAX_FILE_BYTES} must be an integer, got {raw!r}",
            details={"env": ENV_MAX_FILE_BYTES, "value": raw},
        ) from None


def _invalid(location: str, reason: str) -> AliasMapError:
    return format_error(VAL_INVALID_DOCUMENT, location=location, reason=reason)


def _validate_document(data: Any) -> List[Dict[str, Any]]:
    """
    ドキュメント構造を検証し、groups のリストを返す

    Raises:
        AliasMapError: 構造が不正な場合（ALIAS-VAL-001）
    """
    if not isinstance(data, dict):
        raise _invalid("<root>", "document must be a mapping")

    groups = data.get("groups")
    if not isinstance(groups, list):
        raise _invalid("groups", "'groups' must be a list")

    for index, group in enumerate(groups):
        location = f"groups[{index}]"
        if not isinstance(group, dict):
            raise _invalid(location, "group must be a mapping")
        if "value" not in group:
            raise _invalid(location, "missing 'value'")

        aliases = group.get("aliases")
        if not isinstance(aliases, list) or not aliases:
            raise _invalid(f"{location}.aliases", "'aliases' must be a non-empty list")

        seen = set()
        for alias in aliases:
            try:
                hash(alias)
            except TypeError:
                raise _invalid(
                    f"{location}.aliases", f"alias {alias!r} is not hashable"
                ) from None
            if alias in seen:
                raise _invalid(f"{location}.aliases", f"duplicate alias {alias!r}")
            seen.add(alias)

    return groups


def _conflict(alias: Any, index: int) -> AliasMapError:
    return format_error(
        LOAD_ALIAS_CONFLICT,
        alias=alias,
        group_index=index,
        details={"alias": alias, "group_index": index},
    )


def _apply_groups(target: AliasMap, groups: List[Dict[str, Any]], force: bool) -> None:
    """groups を target に順に適用する。force=False なら最初の衝突で送出"""
    for index, group in enumerate(groups):
        value = group["value"]
        head, *rest = group["aliases"]

        # 等しい値を指しているエイリアスは force でも付け替えない
        if not target.set(head, value):
            if not force:
                raise _conflict(head, index)
            target.set(head, value, force=True)

        for alias in rest:
            if target.add_aliases(head, alias):
                continue
            if not force:
                raise _conflict(alias, index)
            target.remove_alias(alias)
            target.add_aliases(head, alias)


def _staging_copy(source: AliasMap) -> AliasMap:
    staging: AliasMap = AliasMap()
    for value, aliases in source.groups():
        head, *rest = aliases
        staging.set(head, value)
        for alias in rest:
            staging.add_aliases(head, alias)
    return staging


def load_alias_map(
    data: Any,
    *,
    force: bool = False,
    alias_map: Optional[AliasMap] = None,
) -> AliasMap:
    """
    dict ドキュメントから AliasMap を構築する

    失敗した場合、alias_map は変更されない。

    Args:
        data: {"groups": [{"value": ..., "aliases": [...]}, ...]}
        force: True なら既に別の値を指しているエイリアスを後勝ちで付け替える
        alias_map: 既存の AliasMap に追加する場合に指定

    Returns:
        構築（または追記）された AliasMap

    Raises:
        AliasMapError: 構造不正（ALIAS-VAL-001）、
                       エイリアスの衝突で force=False の場合（ALIAS-LOAD-003）
    """
    groups = _validate_document(data)
    target: AliasMap = alias_map if alias_map is not None else AliasMap()

    if not force:
        # 衝突は写しの上で検出し、成功してから本体に適用する
        _apply_groups(_staging_copy(target), groups, force=False)
    _apply_groups(target, groups, force=force)

    _log.info("alias groups loaded", groups=len(groups), values=target.size())
    return target


def load_alias_map_file(
    path: Union[str, Path],
    *,
    force: bool = False,
) -> AliasMap:
    """
    YAML ファイルから AliasMap を構築する

    Raises:
        AliasMapError: ファイルが無い（ALIAS-LOAD-001）、パース失敗（ALIAS-LOAD-002）、
                       サイズ超過（ALIAS-LOAD-004）、その他 load_alias_map() と同じ
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise format_error(LOAD_FILE_NOT_FOUND, path=str(file_path))

    max_bytes = _max_file_bytes()
    file_size = file_path.stat().st_size
    if file_size > max_bytes:
        raise format_error(
            LOAD_FILE_TOO_LARGE,
            size=file_size,
            max_size=max_bytes,
            details={"path": str(file_path)},
        )

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise format_error(
            LOAD_PARSE_ERROR,
            reason=str(e),
            details={"path": str(file_path)},
        ) from e

    _log.bind(path=str(file_path)).debug("alias document parsed", size=file_size)
    return load_alias_map(raw_data, force=force)


def dump_alias_map(alias_map: AliasMap) -> Dict[str, Any]:
    """AliasMap の内容を load_alias_map() で読めるドキュメントに変換する"""
    return {
        "groups": [
            {"value": value, "aliases": aliases}
            for value, aliases in alias_map.groups()
        ]
    }


def dump_alias_map_file(alias_map: AliasMap, path: Union[str, Path]) -> None:
    """AliasMap の内容を YAML ファイルに書き出す"""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(
            dump_alias_map(alias_map),
            f,
            allow_unicode=True,
            sort_keys=False,
        )
    _log.debug("alias document written", path=str(file_path))
