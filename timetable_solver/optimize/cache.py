# -*- coding: utf-8 -*-
"""
解のキャッシュ（LRU + TTL）を提供するモジュールです。

- キーは problem_fingerprint() で作る SHA-256 のハッシュ文字列
  （探索アルゴリズム・変数とドメイン・制約のシグネチャから作る）
- 期限（TTL）を過ぎたエントリは取得時に捨てる
- 上限件数に達したら、最も長く参照されていないエントリから追い出す

ワーカースレッドから同時に読み書きされるので、操作はすべてロックの内側で行います。
格納・取得のどちらでも Assignment のコピーを渡すため、
呼び出し側が結果を書き換えてもキャッシュの中身は壊れません。
"""

from __future__ import annotations

import hashlib
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ..config import CACHE_MAX_SIZE, CACHE_TTL_SECONDS
from ..csp.problem import CSPProblem
from ..logging_utils import get_logger
from ..types import Assignment, SolvingStrategy

logger = get_logger()


def problem_fingerprint(problem: CSPProblem, strategy: Union[SolvingStrategy, str]) -> str:
    """
    キャッシュのキーを生成します。

    変数の並び（とそれぞれのドメインの値 ID）と、制約のシグネチャ（ソート済み）、
    探索アルゴリズムを連結してハッシュします。
    変数数と制約数が同じでも、中身が違えば別のキーになります。
    """
    strategy = SolvingStrategy.parse(strategy)
    key_parts = [f"strategy={strategy.value}"]
    for var in problem.variables:
        ids = ",".join(value.id for value in problem.domains[var])
        key_parts.append(f"var={var.id}[{ids}]")
    for signature in sorted(c.signature() for c in problem.constraints):
        key_parts.append(f"con={signature}")

    key_str = "|".join(key_parts)
    return f"csp:{hashlib.sha256(key_str.encode('utf-8')).hexdigest()}"


@dataclass
class _CacheEntry:
    assignment: Assignment
    stored_at: float


class SolutionCache:
    """
    スレッドセーフな LRU + TTL キャッシュ。

    Parameters
    ----------
    max_size : int
        保持する最大件数。
    ttl_seconds : float
        エントリの有効期間（秒）。
    clock : callable
        現在時刻を返す関数（テストで差し替えるため）。
    """

    def __init__(
        self,
        max_size: int = CACHE_MAX_SIZE,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, _CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Assignment]:
        """期限内のエントリがあればそのコピーを返し、最近使ったものとして記録します。"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if self._clock() - entry.stored_at > self.ttl_seconds:
                del self._entries[key]
                self.misses += 1
                logger.debug("[cache] Expired entry dropped: %s", key[:16])
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return entry.assignment.copy()

    def put(self, key: str, assignment: Assignment) -> None:
        """エントリを格納します。上限に達していれば最も古く参照されたものを追い出します。"""
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = _CacheEntry(assignment.copy(), self._clock())
            while len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.warning("[cache] Cache full (max_size=%d); evicted %s", self.max_size, evicted[:16])

    def invalidate(self, key: str) -> bool:
        """キーに対応するエントリを捨てます。捨てたものがあれば True。"""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            logger.info("[cache] Cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
