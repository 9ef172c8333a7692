# -*- coding: utf-8 -*-
"""
探索アルゴリズムを選んで 1 つの CSPProblem を解くモジュールです。

solve_problem() は呼び出しごとに新しい SearchStats を作るので、
複数のスレッドから同時に呼ばれてもカウンタが混ざることはありません。
"""

from __future__ import annotations

import random
from typing import Optional, Union

from ..config import DEFAULT_STRATEGY
from ..logging_utils import get_logger
from ..types import SearchStats, SolveResult, SolvingStrategy
from .constraints import Domains
from .problem import CSPProblem
from .search import SearchContext, backtracking_search
from .search_ga import genetic_algorithm
from .search_greedy import greedy_search
from .search_mc import min_conflicts_search
from .search_sa import simulated_annealing
from .search_tabu import tabu_search

logger = get_logger()


def solve_problem(
    problem: CSPProblem,
    strategy: Union[SolvingStrategy, str] = DEFAULT_STRATEGY,
    rng: Optional[random.Random] = None,
    domains: Optional[Domains] = None,
) -> SolveResult:
    """
    指定された探索アルゴリズムで problem を解きます。

    Parameters
    ----------
    problem : CSPProblem
        解くインスタンス。
    strategy : SolvingStrategy or str
        "fc" / "ac3" / "min_conflicts" / "sa" / "greedy" / "ga" / "tabu"。
    rng : random.Random, optional
        局所探索（min_conflicts / sa / ga / tabu）で使う乱数生成器。
    domains : Domains, optional
        局所探索と greedy の初期ドメイン。バックトラック系は problem.domains を使います。

    Returns
    -------
    SolveResult
        解が無ければ assignment=None。探索の失敗は例外になりません。

    Raises
    ------
    ValueError
        知らない strategy が指定された場合。
    """
    strategy = SolvingStrategy.parse(strategy)
    stats = SearchStats()

    logger.info(
        "[engine] Solving %d variables / %d constraints with strategy=%s",
        len(problem.variables),
        len(problem.constraints),
        strategy.value,
    )

    stats.start()
    try:
        if strategy is SolvingStrategy.BACKTRACKING_FORWARD_CHECKING:
            assignment = backtracking_search(SearchContext(problem, stats, use_ac3=False))
        elif strategy is SolvingStrategy.BACKTRACKING_AC3:
            assignment = backtracking_search(SearchContext(problem, stats, use_ac3=True))
        elif strategy is SolvingStrategy.MIN_CONFLICTS:
            assignment = min_conflicts_search(problem, stats, rng=rng, domains=domains)
        elif strategy is SolvingStrategy.SIMULATED_ANNEALING:
            assignment = simulated_annealing(problem, stats, rng=rng, domains=domains)
        elif strategy is SolvingStrategy.GREEDY:
            assignment = greedy_search(problem, stats, domains=domains)
        elif strategy is SolvingStrategy.GENETIC_ALGORITHM:
            assignment = genetic_algorithm(problem, stats, rng=rng, domains=domains)
        else:
            assignment = tabu_search(problem, stats, rng=rng, domains=domains)
    finally:
        stats.stop()

    if assignment is None:
        logger.info("[engine] No solution found. %s", stats.summary())
    else:
        logger.info("[engine] Solution found. %s", stats.summary())

    return SolveResult(assignment=assignment, stats=stats, strategy=strategy)
