# -*- coding: utf-8 -*-
"""
探索エンジンの前段で、キャッシュ・分割・並列化を行うモジュールです。

solve() の流れ
--------------
1. キャッシュを引く（ヒットし、かつ今回の問題のハード制約をすべて満たすときだけそのコピーを返す）
2. 大規模な問題なら（変数数・制約数・平均ドメインサイズのいずれかが閾値超え）
   - ドメインを縮小
   - 制約でつながった変数ごとに部分問題へ分割
   - 部分問題をワーカープールで並列に解き、すべて終わるまで待つ
   - すべて解けたときだけ割り当てを合成（1 つでも失敗したら解なし）
3. そうでなければ、変数を静的優先度の順に並べ替えてからそのまま解く
4. 解が見つかればキャッシュに書き戻す

ワーカープールは ThreadPoolExecutor です。
部分問題はそれぞれ自分の変数・制約・ドメインのコピーを持つので、
探索エンジンの中でロックは必要ありません（共有するのはキャッシュだけ）。
"""

from __future__ import annotations

import os
import random
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import List, Optional, Set, Union

from ..config import (
    DEFAULT_STRATEGY,
    LARGE_SCALE_AVG_DOMAIN_THRESHOLD,
    LARGE_SCALE_CONSTRAINT_THRESHOLD,
    LARGE_SCALE_VARIABLE_THRESHOLD,
    MAX_WORKERS,
    SHUTDOWN_TIMEOUT_SECONDS,
)
from ..csp.domains import domain_sizes, order_by_priority, reduce_domains
from ..csp.engine import solve_problem
from ..csp.problem import CSPProblem
from ..csp.scoring import is_solution
from ..logging_utils import get_logger
from ..types import Assignment, SearchStats, SolveResult, SolvingStrategy
from .cache import SolutionCache, problem_fingerprint
from .decompose import decompose_problem

logger = get_logger()


def merge_assignments(results: List[SolveResult]) -> Optional[Assignment]:
    """
    部分問題の結果を 1 つの割り当てにまとめます。

    部分問題同士は変数を共有しないので、単純に足し合わせるだけです。
    1 つでも解が無い部分問題があれば None を返します。
    """
    merged = Assignment()
    for result in results:
        if result.assignment is None:
            return None
        merged.update(result.assignment)
    return merged


class PerformanceOptimizer:
    """
    キャッシュと並列化で探索エンジンをラップするクラスです。

    Parameters
    ----------
    max_workers : int, optional
        ワーカープールのスレッド数。省略時は os.cpu_count()。
    cache : SolutionCache, optional
        解キャッシュ。省略時は既定の設定で新しく作ります。
    variable_threshold, constraint_threshold, domain_threshold
        大規模パスに切り替える閾値（いずれかを「超えた」ら大規模扱い）。
    seed : int, optional
        局所探索の乱数シード（再現性が必要なときに指定）。
    """

    def __init__(
        self,
        max_workers: Optional[int] = MAX_WORKERS,
        cache: Optional[SolutionCache] = None,
        variable_threshold: int = LARGE_SCALE_VARIABLE_THRESHOLD,
        constraint_threshold: int = LARGE_SCALE_CONSTRAINT_THRESHOLD,
        domain_threshold: float = LARGE_SCALE_AVG_DOMAIN_THRESHOLD,
        seed: Optional[int] = None,
    ) -> None:
        self.max_workers = max_workers or os.cpu_count() or 1
        self.cache = cache if cache is not None else SolutionCache()
        self.variable_threshold = variable_threshold
        self.constraint_threshold = constraint_threshold
        self.domain_threshold = domain_threshold
        self.seed = seed

        self._executor: Optional[ThreadPoolExecutor] = None
        self._futures: Set[Future] = set()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # ワーカープール
    # ------------------------------------------------------------------

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers,
                    thread_name_prefix="csp_solver",
                )
                logger.info("[optimizer] Worker pool started (max_workers=%d)", self.max_workers)
            return self._executor

    def _submit(self, *args, **kwargs) -> Future:
        executor = self._get_executor()
        try:
            future = executor.submit(solve_problem, *args, **kwargs)
        except RuntimeError:
            # 取得から投入までの間に shutdown() されたプールは捨てて作り直す
            logger.warning("[optimizer] Worker pool was shut down during submit; restarting")
            with self._lock:
                if self._executor is executor:
                    self._executor = None
            future = self._get_executor().submit(solve_problem, *args, **kwargs)
        with self._lock:
            self._futures.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._futures.discard(future)

    def shutdown(self, timeout: float = SHUTDOWN_TIMEOUT_SECONDS) -> bool:
        """
        ワーカープールを停止します。

        実行中・待機中のタスクを最大 timeout 秒待ち、
        それでも終わらなければ待機中のタスクを取り消して打ち切ります。
        （実行中のスレッドを外から止める手段は無いので、その結果は捨てられます）

        Returns
        -------
        bool
            すべてのタスクが期限内に終わった（強制停止しなかった）なら True。
        """
        with self._lock:
            executor = self._executor
            pending = list(self._futures)
            self._executor = None

        if executor is None:
            return True

        graceful = True
        if pending:
            _done, not_done = wait(pending, timeout=timeout)
            if not_done:
                graceful = False
                logger.warning(
                    "[optimizer] %d task(s) still running after %.1fs; forcing shutdown",
                    len(not_done),
                    timeout,
                )
                for future in not_done:
                    future.cancel()

        executor.shutdown(wait=graceful, cancel_futures=not graceful)
        logger.info("[optimizer] Worker pool stopped (graceful=%s)", graceful)
        return graceful

    def __enter__(self) -> "PerformanceOptimizer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # 求解
    # ------------------------------------------------------------------

    def is_large_scale(self, problem: CSPProblem) -> bool:
        return (
            len(problem.variables) > self.variable_threshold
            or len(problem.constraints) > self.constraint_threshold
            or problem.average_domain_size() > self.domain_threshold
        )

    def solve(
        self,
        problem: CSPProblem,
        strategy: Union[SolvingStrategy, str] = DEFAULT_STRATEGY,
        rng: Optional[random.Random] = None,
    ) -> SolveResult:
        """
        problem を解きます。

        Returns
        -------
        SolveResult
            解が無ければ assignment=None。構造的に正しい問題に対しては例外を出しません
            （ワーカー内で制約の実装が例外を出した場合だけ、そのまま送出します）。
        """
        strategy = SolvingStrategy.parse(strategy)
        rng = rng or random.Random(self.seed)

        key = problem_fingerprint(problem, strategy)
        cached = self.cache.get(key)
        if cached is not None:
            # 署名に現れない制約パラメータの違いでキーが衝突しうるので、返す前に検証する
            if is_solution(problem, cached):
                logger.info("[optimizer] Cache hit (%s)", key[:16])
                return SolveResult(assignment=cached, stats=SearchStats(), strategy=strategy, from_cache=True)
            logger.warning("[optimizer] Cached assignment no longer fits (%s); invalidating", key[:16])
            self.cache.invalidate(key)

        if self.is_large_scale(problem):
            result = self._solve_large_scale(problem, strategy, rng)
        else:
            result = self._solve_standard(problem, strategy, rng)

        if result.assignment is not None:
            self.cache.put(key, result.assignment)
        return result

    def _solve_standard(
        self,
        problem: CSPProblem,
        strategy: SolvingStrategy,
        rng: random.Random,
    ) -> SolveResult:
        order = order_by_priority(problem)
        logger.debug("[optimizer] Standard path: variables reordered by static priority")
        return solve_problem(problem.reordered(order), strategy, rng=rng)

    def _solve_large_scale(
        self,
        problem: CSPProblem,
        strategy: SolvingStrategy,
        rng: random.Random,
    ) -> SolveResult:
        stats = SearchStats()
        stats.start()

        reduced = reduce_domains(problem)
        subproblems = decompose_problem(problem, reduced)
        sizes = domain_sizes(reduced)
        logger.info(
            "[optimizer] Large-scale path: %d variables -> %d subproblem(s), "
            "domain size min=%d max=%d mean=%.1f",
            len(problem.variables),
            len(subproblems),
            sizes["min"],
            sizes["max"],
            sizes["mean"],
        )

        # 乱数は投入前に決めておき、完了順に結果が左右されないようにする
        futures = [
            self._submit(sub, strategy, rng=random.Random(rng.random()))
            for sub in subproblems
        ]
        wait(futures)

        results: List[SolveResult] = []
        try:
            for future in futures:
                if future.cancelled():
                    # shutdown() で取り消された部分問題は解なし扱い
                    logger.warning("[optimizer] Subproblem cancelled by shutdown")
                    results.append(SolveResult(assignment=None, strategy=strategy))
                    continue
                results.append(future.result())
        except Exception:
            logger.exception("[optimizer] Subproblem solve raised an exception")
            raise
        finally:
            stats.stop()

        for result in results:
            stats.absorb(result.stats)

        merged = merge_assignments(results)
        if merged is None:
            failed = sum(1 for r in results if r.assignment is None)
            logger.info(
                "[optimizer] %d of %d subproblem(s) have no solution. %s",
                failed,
                len(results),
                stats.summary(),
            )
        else:
            logger.info("[optimizer] Merged %d subproblem(s). %s", len(results), stats.summary())

        return SolveResult(assignment=merged, stats=stats, strategy=strategy)
