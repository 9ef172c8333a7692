# -*- coding: utf-8 -*-
"""
Simulated Annealing（焼きなまし法）による探索を行うモジュールです。

Min-conflicts と同じく「完全な割り当てを少しずつ直す」局所探索ですが、
conflict 数が増える手も温度に応じた確率で受け入れるため、
局所解で止まりにくくなります。

- 近傍: ランダムに選んだ 1 変数を、ドメイン内の別の値に変える
- 受理: delta <= 0 なら必ず受理、悪化する場合は exp(-delta / T) の確率で受理
- 温度: 1 手ごとに T *= cooling_rate
- 終了: conflict 数が 0 になったら成功、T < min_temp か反復上限で失敗
"""

from __future__ import annotations

import math
import random
from typing import Optional

from ..config import (
    PROGRESS_LOG_INTERVAL,
    SA_COOLING_RATE,
    SA_INITIAL_TEMP,
    SA_MAX_ITERATIONS,
    SA_MIN_TEMP,
)
from ..logging_utils import get_logger
from ..types import Assignment, SearchStats
from .constraints import Domains
from .problem import CSPProblem
from .scoring import count_conflicts
from .search_mc import local_conflicts, random_assignment, related_constraints

logger = get_logger()


def simulated_annealing(
    problem: CSPProblem,
    stats: SearchStats,
    rng: Optional[random.Random] = None,
    domains: Optional[Domains] = None,
    initial_temp: float = SA_INITIAL_TEMP,
    cooling_rate: float = SA_COOLING_RATE,
    min_temp: float = SA_MIN_TEMP,
    max_iterations: int = SA_MAX_ITERATIONS,
) -> Optional[Assignment]:
    """
    Simulated Annealing によって conflict 数 0 の割り当てを探索します。

    Returns
    -------
    Assignment or None
        HARD 制約をすべて満たす完全な割り当て。見つからなければ None。
    """
    rng = rng or random.Random()
    domains = problem.initial_domains() if domains is None else domains

    current = random_assignment(problem, domains, rng)
    if current is None:
        logger.info("[sa] Empty domain found; no complete assignment exists")
        return None

    conflicts = count_conflicts(problem, current)
    movable = [v for v in problem.variables if len(domains[v]) > 1]

    temperature = initial_temp
    iteration = 0
    accept_count = 0
    reject_count = 0

    logger.debug(
        "[sa] Initial temp=%.2f, cooling_rate=%.4f, min_temp=%.2f, conflicts=%.3f",
        initial_temp, cooling_rate, min_temp, conflicts,
    )

    while conflicts > 0 and movable and temperature > min_temp and iteration < max_iterations:
        iteration += 1
        stats.nodes_explored += 1

        var = rng.choice(movable)
        old_value = current[var]
        candidates = [v for v in domains[var] if v != old_value]
        new_value = rng.choice(candidates)

        related = related_constraints(problem, var)
        before = count_conflicts(problem, current, related)
        after = local_conflicts(problem, current, var, new_value, related)
        delta = after - before

        # 受理判定
        if delta <= 0:
            accept = True
        else:
            accept = rng.random() < math.exp(-delta / temperature)

        if accept:
            current.assign(var, new_value)
            conflicts += delta
            if conflicts <= 1e-9:
                conflicts = count_conflicts(problem, current)
            accept_count += 1
        else:
            reject_count += 1

        # 温度を冷却
        temperature *= cooling_rate

        if iteration % PROGRESS_LOG_INTERVAL == 0:
            total = accept_count + reject_count
            logger.info(
                "[sa] iter=%d, T=%.3f, conflicts=%.3f, accept_rate=%.2f",
                iteration, temperature, conflicts, accept_count / total if total else 0.0,
            )
            accept_count = 0
            reject_count = 0

    # 差分の積み重ねによる誤差を避けるため、最後は全体で数え直す
    conflicts = count_conflicts(problem, current)
    if conflicts == 0:
        logger.debug("[sa] Solved after %d iterations", iteration)
        return current

    logger.info("[sa] No solution found (iterations=%d, conflicts=%.3f)", iteration, conflicts)
    return None
