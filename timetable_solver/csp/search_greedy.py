# -*- coding: utf-8 -*-
"""
貪欲法（Greedy）による探索を行うモジュールです。

バックトラックをしない 1 回きりの割り当てなので非常に速い一方、
解があっても見つけられないことがあります。

流れ
----
1. ヒューリスティックで次に割り当てる変数を選ぶ
   - "mrv"        : 残りドメインが最小
   - "degree"     : 制約でつながる変数の数（degree）が最大
   - "mrv_degree" : MRV で選び、同点なら degree の大きい方
   - "dom_deg"    : |ドメイン| / degree が最小（degree 0 の変数は最後）
   いずれも同点なら problem.variables の並びで先に出てくる変数
2. 値を preference の高い順に最大 max_attempts 個まで試し、
   整合的で（forward checking 有効なら）domain wipeout を起こさない最初の値を割り当てる
3. どの値も割り当てられなければ、その時点で「解なし」
"""

from __future__ import annotations

import math
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..config import GREEDY_FORWARD_CHECKING, GREEDY_HEURISTIC, GREEDY_MAX_ATTEMPTS_PER_VARIABLE
from ..logging_utils import get_logger
from ..types import Assignment, SearchStats, Value, Variable
from .constraints import Domains
from .problem import CSPProblem
from .propagation import forward_check, is_consistent_with
from .scoring import is_solution

logger = get_logger()

# 変数の並べ替えキー（小さいほど先に選ぶ）: (ドメインサイズ, degree) -> キー
_HEURISTICS: Dict[str, Callable[[int, int], Tuple[float, ...]]] = {
    "mrv": lambda size, degree: (size,),
    "degree": lambda size, degree: (-degree,),
    "mrv_degree": lambda size, degree: (size, -degree),
    "dom_deg": lambda size, degree: (size / degree if degree > 0 else math.inf,),
}


def choose_greedy_var(
    problem: CSPProblem,
    assignment: Assignment,
    domains: Domains,
    heuristic: str = GREEDY_HEURISTIC,
) -> Optional[Variable]:
    """
    heuristic に従って、まだ割り当てられていない変数から次の 1 つを選びます。
    すべて割り当て済みなら None。知らない heuristic なら ValueError。
    """
    try:
        key = _HEURISTICS[heuristic]
    except KeyError:
        accepted = ", ".join(_HEURISTICS)
        raise ValueError(f"Unknown greedy heuristic: {heuristic!r} (expected one of: {accepted})") from None

    best: Optional[Variable] = None
    best_key: Optional[Tuple[float, ...]] = None
    for var in problem.variables:
        if assignment.is_assigned(var):
            continue
        k = key(len(domains[var]), len(problem.neighbors(var)))
        if best_key is None or k < best_key:
            best = var
            best_key = k
    return best


def order_values_by_preference(values: Sequence[Value]) -> List[Value]:
    """preference の高い順（同点はドメインの並び順）。"""
    return sorted(values, key=lambda value: -value.preference)


def greedy_search(
    problem: CSPProblem,
    stats: SearchStats,
    domains: Optional[Domains] = None,
    heuristic: str = GREEDY_HEURISTIC,
    forward_checking: bool = GREEDY_FORWARD_CHECKING,
    max_attempts: int = GREEDY_MAX_ATTEMPTS_PER_VARIABLE,
) -> Optional[Assignment]:
    """
    貪欲法で完全な割り当てを 1 回だけ組み立てます。

    値を 1 つ試すごとに nodes_explored を 1 増やします。
    バックトラックはしないので backtracks は常に 0 です。

    Returns
    -------
    Assignment or None
        HARD 制約をすべて満たす完全な割り当て。途中で行き詰まったら None。
    """
    domains = problem.initial_domains() if domains is None else dict(domains)

    if any(not domains[var] for var in problem.variables):
        logger.info("[greedy] Empty domain found; no complete assignment exists")
        return None

    assignment = Assignment()
    while True:
        var = choose_greedy_var(problem, assignment, domains, heuristic)
        if var is None:
            break

        chosen: Optional[Value] = None
        for value in order_values_by_preference(domains[var])[:max_attempts]:
            stats.nodes_explored += 1
            if not is_consistent_with(problem, assignment, var, value):
                continue
            assignment.assign(var, value)
            if not forward_checking:
                chosen = value
                break
            reduced = forward_check(problem, assignment, domains, var, value)
            if reduced is not None:
                domains = reduced
                chosen = value
                break
            assignment.unassign(var)

        if chosen is None:
            logger.info(
                "[greedy] No usable value for %s after %d assignment(s); giving up",
                var.id,
                len(assignment),
            )
            return None

    # 変数を持たない問題でも、スコープが空の制約はここで確認する
    if not is_solution(problem, assignment):
        logger.info("[greedy] Assignment violates a constraint with empty scope")
        return None

    logger.debug("[greedy] Solved with heuristic=%s", heuristic)
    return assignment
