"""
alias_map.py - エイリアスマップ

複数のキー（エイリアス）が1つの値を共有するマップ。
単一エイリアスの削除と、値ごと（全エイリアスごと）の削除を個別に行える。

内部構造:
- _alias_to_key: エイリアス -> 内部キー（int）
- _records: 内部キー -> _AliasRecord(value, aliases)

内部キーはインスタンスごとのカウンタで払い出し、clear() まで再利用しない。
エイリアスが再利用されても、別の値と取り違えることはない。

値型 V には well-defined な __eq__ が必要（set / add_aliases が比較に使う）。
エイリアス型 A は hashable であること。

Usage:
    am = AliasMap()
    am.set("p1", "X")
    am.add_aliases("p1", "s1")
    am.get("s1")                 # → "X"
    am.remove_alias("p1")        # → "X"（s1 は残る）
    am.remove_value("s1")        # → "X"（グループごと削除）
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar

from .logging_utils import get_structured_logger


A = TypeVar("A")
V = TypeVar("V")

_log = get_structured_logger("alias_map.core")


@dataclass
class _AliasRecord(Generic[A, V]):
    """1つの値と、それを指すエイリアス（挿入順、重複なし）"""
    value: V
    aliases: List[A] = field(default_factory=list)


class AliasMap(Generic[A, V]):
    """
    エイリアスマップ

    全ての公開メソッドは1本の RLock で保護される。
    set(force=True) が内部で remove_alias() を呼ぶため re-entrant であること。

    「見つからない」は例外にせず、None / False / 0 で返す。
    """

    def __init__(self) -> None:
        self._alias_to_key: Dict[A, int] = {}
        self._records: Dict[int, _AliasRecord[A, V]] = {}
        self._key_counter: int = 0
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # 内部ヘルパー（ロック取得済みで呼ぶこと）
    # ------------------------------------------------------------------

    def _record_for(self, alias: A) -> Optional[_AliasRecord[A, V]]:
        internal_key = self._alias_to_key.get(alias)
        if internal_key is None:
            return None
        return self._records[internal_key]

    def _create_record(self, alias: A, value: V) -> int:
        internal_key = self._key_counter
        self._key_counter += 1

        self._alias_to_key[alias] = internal_key
        self._records[internal_key] = _AliasRecord(value=value, aliases=[alias])
        _log.debug("value record created", alias=alias, internal_key=internal_key)
        return internal_key

    # ------------------------------------------------------------------
    # 参照
    # ------------------------------------------------------------------

    def get(self, alias: A) -> Optional[V]:
        """エイリアスに対応する値を返す。未登録なら None。"""
        with self._lock:
            record = self._record_for(alias)
            if record is None:
                return None
            return record.value

    def has(self, alias: A) -> bool:
        """エイリアスが登録済みなら True"""
        with self._lock:
            return alias in self._alias_to_key

    def list_aliases(
        self, alias: A, include_provided_alias: bool = True
    ) -> Optional[List[A]]:
        """
        alias と同じ値を指すエイリアスを挿入順で返す

        Args:
            alias: 問い合わせるエイリアス
            include_provided_alias: False なら alias 自身を除外する（O(k)）

        Returns:
            新しいリスト（呼び出し側で変更してもマップには影響しない）。
            未登録なら None。
        """
        with self._lock:
            record = self._record_for(alias)
            if record is None:
                return None
            if include_provided_alias:
                return list(record.aliases)
            return [a for a in record.aliases if a != alias]

    def number_of_aliases_for(
        self, alias: A, include_provided_alias: bool = True
    ) -> int:
        """
        alias のグループのエイリアス数。未登録なら 0。

        include_provided_alias=False なら alias 自身を数えない。
        フラグにかかわらず O(1)。
        """
        with self._lock:
            record = self._record_for(alias)
            if record is None:
                return 0
            count = len(record.aliases)
            if not include_provided_alias:
                count -= 1
            return count

    def size(self) -> int:
        """値の数（エイリアスの総数ではない）"""
        with self._lock:
            return len(self._records)

    def groups(self) -> List[Tuple[V, List[A]]]:
        """
        (value, aliases) のスナップショットを作成順で返す

        dump_alias_map() 用。返されたリストを変更してもマップには影響しない。
        """
        with self._lock:
            return [
                (self._records[key].value, list(self._records[key].aliases))
                for key in sorted(self._records)
            ]

    # ------------------------------------------------------------------
    # 更新
    # ------------------------------------------------------------------

    def set(self, alias: A, value: V, force: bool = False) -> bool:
        """
        alias を value に対応付ける

        「alias が value を指している状態を保証する」操作であり、
        常に上書きするわけではない。

        Args:
            alias: 対応付けるエイリアス
            value: 値
            force: True なら既存の対応を外してから新しい値を作る。
                   外した結果、元の値のエイリアスが0になればその値は削除される。

        Returns:
            この呼び出しの後 get(alias) が value を返すなら True。
            force=False で alias が別の値を指していれば False（状態は変えない）。
        """
        with self._lock:
            record = self._record_for(alias)
            if record is not None:
                if not force:
                    return record.value == value
                self.remove_alias(alias)

            self._create_record(alias, value)
            return True

    def add_aliases(self, existing_key: A, new_key: A, force: bool = False) -> bool:
        """
        既存エイリアス経由で、その値に新しいエイリアスを追加する

        Args:
            existing_key: 登録済みのエイリアス
            new_key: 追加するエイリアス
            force: 受け付けるが、new_key が既に登録済みの場合も動作は変わらない

        Returns:
            existing_key が未登録なら False。
            new_key が登録済みなら、両者の値が等しいかどうか（状態は変えない）。
            それ以外は追加して True。
        """
        with self._lock:
            existing_record = self._record_for(existing_key)
            if existing_record is None:
                return False

            new_record = self._record_for(new_key)
            if new_record is not None:
                # force に関係なく比較のみ
                return new_record.value == existing_record.value

            internal_key = self._alias_to_key[existing_key]
            self._alias_to_key[new_key] = internal_key
            existing_record.aliases.append(new_key)
            _log.debug(
                "alias attached",
                alias=new_key,
                existing_alias=existing_key,
                internal_key=internal_key,
                group_size=len(existing_record.aliases),
            )
            return True

    def modify(self, alias: A, value: V) -> Optional[V]:
        """
        alias のグループ全体の値を置き換え、置き換えられた値を返す

        未登録なら None（変更なし）。
        """
        with self._lock:
            record = self._record_for(alias)
            if record is None:
                return None

            displaced = record.value
            record.value = value
            _log.debug(
                "value modified",
                alias=alias,
                internal_key=self._alias_to_key[alias],
            )
            return displaced

    # ------------------------------------------------------------------
    # 削除
    # ------------------------------------------------------------------

    def remove_alias(self, alias: A) -> Optional[V]:
        """
        エイリアスを1つ削除し、それが指していた値を返す

        最後のエイリアスを削除した場合は値も削除される。
        未登録なら None。
        """
        with self._lock:
            internal_key = self._alias_to_key.pop(alias, None)
            if internal_key is None:
                return None

            record = self._records[internal_key]
            record.aliases.remove(alias)

            if not record.aliases:
                del self._records[internal_key]
                _log.debug(
                    "value record deleted",
                    alias=alias,
                    internal_key=internal_key,
                )
            else:
                _log.debug(
                    "alias removed",
                    alias=alias,
                    internal_key=internal_key,
                    group_size=len(record.aliases),
                )
            return record.value

    def remove_value(self, alias: A) -> Optional[V]:
        """
        alias が指す値を、その全エイリアスごと削除して返す

        未登録なら None。
        """
        with self._lock:
            internal_key = self._alias_to_key.get(alias)
            if internal_key is None:
                return None

            record = self._records.pop(internal_key)
            for member in record.aliases:
                del self._alias_to_key[member]

            _log.debug(
                "value record deleted",
                alias=alias,
                internal_key=internal_key,
                group_size=len(record.aliases),
            )
            return record.value

    def clear(self) -> None:
        """全てのエイリアスと値を削除し、内部キーのカウンタを初期化する"""
        with self._lock:
            self._alias_to_key.clear()
            self._records.clear()
            self._key_counter = 0
            _log.debug("alias map cleared")

    # ------------------------------------------------------------------
    # Python プロトコル
    # ------------------------------------------------------------------

    def __contains__(self, alias: Any) -> bool:
        return self.has(alias)

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"{type(self).__name__}(values={len(self._records)}, "
                f"aliases={len(self._alias_to_key)})"
            )
