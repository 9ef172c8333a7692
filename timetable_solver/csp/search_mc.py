# -*- coding: utf-8 -*-
"""
Min-conflicts（最小衝突法）による局所探索を行うモジュールです。

近似アルゴリズムなので、解があっても見つけられないことがあります。

流れ
----
1. 各変数のドメインからランダムに 1 つずつ値を選び、完全な割り当てを作る
2. 最大 MIN_CONFLICTS_STEP_FACTOR × 変数数 ステップ繰り返す
   - conflict 数（HARD 制約の違反スコア合計）が 0 なら成功
   - problem.variables の順に見て、値を変えると conflict 数が「真に」減る
     最初の変数を、conflict 数が最小になる値に付け替える
   - どの変数も改善できなければ局所解で停滞
     （既定では打ち切り。MIN_CONFLICTS_RESTART_ON_STALL なら作り直して続行）
3. ステップを使い切ったら失敗
"""

from __future__ import annotations

import random
from typing import List, Optional, Tuple

from ..config import MIN_CONFLICTS_RESTART_ON_STALL, MIN_CONFLICTS_STEP_FACTOR, PROGRESS_LOG_INTERVAL
from ..logging_utils import get_logger
from ..types import Assignment, SearchStats, Value, Variable
from .constraints import Constraint, Domains
from .problem import CSPProblem
from .scoring import count_conflicts

logger = get_logger()


def random_assignment(
    problem: CSPProblem,
    domains: Domains,
    rng: random.Random,
) -> Optional[Assignment]:
    """
    各変数のドメインから一様ランダムに値を選んだ完全な割り当てを作ります。
    空のドメインがあれば None（完全な割り当ては作れない）。
    """
    assignment = Assignment()
    for var in problem.variables:
        values = domains[var]
        if not values:
            return None
        assignment.assign(var, rng.choice(values))
    return assignment


def related_constraints(problem: CSPProblem, variable: Variable) -> List[Constraint]:
    """variable の値を変えたときに結果が変わり得る制約（スコープが空の制約を含む）。"""
    return list(problem.constraints_for(variable)) + list(problem.unscoped_constraints())


def local_conflicts(
    problem: CSPProblem,
    assignment: Assignment,
    variable: Variable,
    value: Value,
    related: List[Constraint],
) -> float:
    """
    variable を value に付け替えたときの、related 制約だけの conflict 数。

    他の制約の結果は変わらないので、この値の差がそのまま全体の差になります。
    assignment は呼び出し後に元の値へ戻します。
    """
    previous = assignment[variable]
    assignment.assign(variable, value)
    try:
        return count_conflicts(problem, assignment, related)
    finally:
        assignment.assign(variable, previous)


def find_improving_move(
    problem: CSPProblem,
    assignment: Assignment,
    domains: Domains,
) -> Optional[Tuple[Variable, Value]]:
    """
    conflict 数を真に減らせる最初の変数と、その変数で conflict 数が最小になる値を返します。
    同点の値は先に出てきたものを優先します。改善手が無ければ None。
    """
    for var in problem.variables:
        related = related_constraints(problem, var)
        if not related:
            continue
        current = count_conflicts(problem, assignment, related)
        if current == 0:
            continue

        best_value: Optional[Value] = None
        best_score = current
        for value in domains[var]:
            score = local_conflicts(problem, assignment, var, value, related)
            if score < best_score:
                best_value = value
                best_score = score
        if best_value is not None:
            return var, best_value
    return None


def min_conflicts_search(
    problem: CSPProblem,
    stats: SearchStats,
    rng: Optional[random.Random] = None,
    domains: Optional[Domains] = None,
    step_factor: int = MIN_CONFLICTS_STEP_FACTOR,
    restart_on_stall: bool = MIN_CONFLICTS_RESTART_ON_STALL,
) -> Optional[Assignment]:
    """
    Min-conflicts 局所探索。

    Parameters
    ----------
    rng : random.Random, optional
        乱数生成器（テストで結果を固定するために差し替え可能）。
    domains : Domains, optional
        探索に使うドメイン。省略時は problem の初期ドメイン。
    step_factor : int
        ステップ上限 = step_factor × 変数数。
    restart_on_stall : bool
        局所解で停滞したときにランダムな割り当てから作り直すか。

    Returns
    -------
    Assignment or None
        conflict 数 0 の完全な割り当て。見つからなければ None。
    """
    rng = rng or random.Random()
    domains = problem.initial_domains() if domains is None else domains

    current = random_assignment(problem, domains, rng)
    if current is None:
        logger.info("[mc] Empty domain found; no complete assignment exists")
        return None

    max_steps = step_factor * len(problem.variables)
    conflicts = count_conflicts(problem, current)
    logger.debug("[mc] Start: steps=%d, conflicts=%.3f", max_steps, conflicts)

    for step in range(max_steps + 1):
        if conflicts == 0:
            logger.debug("[mc] Solved at step=%d", step)
            return current
        if step == max_steps:
            break

        stats.nodes_explored += 1
        if stats.nodes_explored % PROGRESS_LOG_INTERVAL == 0:
            logger.info("[mc] step=%d, conflicts=%.3f", step, conflicts)

        move = find_improving_move(problem, current, domains)
        if move is None:
            if not restart_on_stall:
                logger.info("[mc] Stalled in local optimum at step=%d (conflicts=%.3f)", step, conflicts)
                break
            logger.debug("[mc] Stalled at step=%d; restarting from a random assignment", step)
            current = random_assignment(problem, domains, rng)
            conflicts = count_conflicts(problem, current)
            continue

        var, value = move
        current.assign(var, value)
        conflicts = count_conflicts(problem, current)

    logger.info("[mc] No solution within step budget (conflicts=%.3f)", conflicts)
    return None
