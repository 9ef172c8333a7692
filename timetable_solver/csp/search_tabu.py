# -*- coding: utf-8 -*-
"""
Tabu Search（タブー探索）による局所探索を行うモジュールです。

- 近傍: 1 変数をドメイン内の別の値に変える手すべて
- 選択: conflict 数が最小になる手（同点はランダム）。悪化する手でも選ぶ
- タブー: 変数を元の値に戻す手を tenure 反復のあいだ禁止する
- アスピレーション: タブーの手でも、これまでの最良を更新するなら許す
- 終了: conflict 数が 0 になったら成功、反復上限か打てる手が無くなったら失敗
"""

from __future__ import annotations

import math
import random
from typing import Dict, List, Optional, Tuple

from ..config import PROGRESS_LOG_INTERVAL, TABU_MAX_ITERATIONS, TABU_TENURE
from ..logging_utils import get_logger
from ..types import Assignment, SearchStats, Value, Variable
from .constraints import Domains
from .problem import CSPProblem
from .scoring import count_conflicts
from .search_mc import local_conflicts, random_assignment, related_constraints

logger = get_logger()

Move = Tuple[Variable, Value]


def tabu_search(
    problem: CSPProblem,
    stats: SearchStats,
    rng: Optional[random.Random] = None,
    domains: Optional[Domains] = None,
    tenure: int = TABU_TENURE,
    max_iterations: int = TABU_MAX_ITERATIONS,
) -> Optional[Assignment]:
    """
    Tabu Search によって conflict 数 0 の割り当てを探索します。

    Returns
    -------
    Assignment or None
        HARD 制約をすべて満たす完全な割り当て。見つからなければ None。
    """
    rng = rng or random.Random()
    domains = problem.initial_domains() if domains is None else domains

    current = random_assignment(problem, domains, rng)
    if current is None:
        logger.info("[tabu] Empty domain found; no complete assignment exists")
        return None

    conflicts = count_conflicts(problem, current)
    best = current.copy()
    best_conflicts = conflicts

    # 手 -> その手が再び許される反復
    tabu: Dict[Move, int] = {}
    iteration = 0

    while best_conflicts > 0 and iteration < max_iterations:
        iteration += 1
        stats.nodes_explored += 1

        candidates: List[Move] = []
        candidate_score = math.inf
        for var in problem.variables:
            if len(domains[var]) < 2:
                continue
            related = related_constraints(problem, var)
            before = count_conflicts(problem, current, related)
            for value in domains[var]:
                if value == current[var]:
                    continue
                after = conflicts - before + local_conflicts(problem, current, var, value, related)
                if tabu.get((var, value), 0) > iteration and not after < best_conflicts:
                    continue
                if after < candidate_score:
                    candidates = [(var, value)]
                    candidate_score = after
                elif after == candidate_score:
                    candidates.append((var, value))

        if not candidates:
            logger.info("[tabu] Every move is tabu at iteration=%d", iteration)
            break

        var, value = rng.choice(candidates)
        tabu[(var, current[var])] = iteration + tenure
        tabu = {move: until for move, until in tabu.items() if until > iteration}

        current.assign(var, value)
        conflicts = count_conflicts(problem, current)
        if conflicts < best_conflicts:
            best = current.copy()
            best_conflicts = conflicts

        if iteration % PROGRESS_LOG_INTERVAL == 0:
            logger.info(
                "[tabu] iter=%d, conflicts=%.3f, best=%.3f, tabu=%d",
                iteration, conflicts, best_conflicts, len(tabu),
            )

    if best_conflicts == 0:
        logger.debug("[tabu] Solved after %d iterations", iteration)
        return best

    logger.info("[tabu] No solution found (iterations=%d, best conflicts=%.3f)", iteration, best_conflicts)
    return None
