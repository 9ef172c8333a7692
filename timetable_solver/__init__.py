# -*- coding: utf-8 -*-
"""
timetable_solver パッケージの入口となるモジュールです。

呼び出し側（時間割アプリなど）からは:

    from timetable_solver import solve

と呼び出されることを想定しています。

ここでは、呼び出し側が用意した
- 変数（割り当てが必要な枠）
- ドメイン（各変数の候補値）
- 制約
を受け取り、
1. CSPProblem として構造をチェック
2. PerformanceOptimizer（キャッシュ・分割・並列化）経由で探索
を順番に呼び出します。

ワーカープールとキャッシュはプロセス全体で 1 つを共有します。
終了時には shutdown() を呼んでください。
"""

from __future__ import annotations

import random
import threading
from typing import Iterable, Mapping, Optional, Sequence, Union

from .config import DEFAULT_STRATEGY, SHUTDOWN_TIMEOUT_SECONDS
from .csp.constraints import (
    AllDifferentConstraint,
    AllowedValuesConstraint,
    CapacityConstraint,
    Constraint,
    PredicateConstraint,
    PreferenceConstraint,
)
from .csp.engine import solve_problem
from .csp.problem import CSPProblem, MalformedProblemError
from .optimize.cache import SolutionCache
from .optimize.optimizer import PerformanceOptimizer
from .types import (
    Assignment,
    AssignmentContext,
    ConstraintPriority,
    ConstraintResult,
    SearchStats,
    SolveResult,
    SolvingStrategy,
    Value,
    ValueType,
    Variable,
    VariableType,
)

# プロセス全体で共有する optimizer（必要になったときに作る）
_OPTIMIZER: Optional[PerformanceOptimizer] = None
_OPTIMIZER_LOCK = threading.Lock()


def get_optimizer() -> PerformanceOptimizer:
    """
    共有の PerformanceOptimizer を返します。
    まだ作られていない（または shutdown 済み）なら新しく作ります。
    """
    global _OPTIMIZER
    with _OPTIMIZER_LOCK:
        if _OPTIMIZER is None:
            _OPTIMIZER = PerformanceOptimizer()
        return _OPTIMIZER


def shutdown(timeout: float = SHUTDOWN_TIMEOUT_SECONDS) -> bool:
    """共有の optimizer のワーカープールを停止します。"""
    global _OPTIMIZER
    with _OPTIMIZER_LOCK:
        optimizer, _OPTIMIZER = _OPTIMIZER, None
    if optimizer is None:
        return True
    return optimizer.shutdown(timeout)


def solve(
    variables: Iterable[Variable],
    constraints: Iterable[Constraint],
    domains: Mapping[Variable, Sequence[Value]],
    strategy: Union[SolvingStrategy, str] = DEFAULT_STRATEGY,
    optimizer: Optional[PerformanceOptimizer] = None,
    rng: Optional[random.Random] = None,
) -> SolveResult:
    """
    時間割の CSP を解くメイン関数です。

    Parameters
    ----------
    variables : iterable of Variable
        割り当てが必要な枠。
    constraints : iterable of Constraint
        制約。
    domains : mapping Variable -> sequence of Value
        各変数の候補値。
    strategy : SolvingStrategy or str
        "fc"（既定） / "ac3" / "min_conflicts" / "sa" / "greedy" / "ga" / "tabu"。
    optimizer : PerformanceOptimizer, optional
        使う optimizer。省略時はプロセス共有のもの。

    Returns
    -------
    SolveResult
        assignment が None なら解なし。

    Raises
    ------
    MalformedProblemError
        問題の構造が不正な場合（探索を始める前に検出）。
    ValueError
        知らない strategy が指定された場合。
    """
    problem = CSPProblem(variables, constraints, domains)
    optimizer = optimizer or get_optimizer()
    return optimizer.solve(problem, strategy, rng=rng)


__all__ = [
    "AllDifferentConstraint",
    "AllowedValuesConstraint",
    "Assignment",
    "AssignmentContext",
    "CSPProblem",
    "CapacityConstraint",
    "Constraint",
    "ConstraintPriority",
    "ConstraintResult",
    "MalformedProblemError",
    "PerformanceOptimizer",
    "PredicateConstraint",
    "PreferenceConstraint",
    "SearchStats",
    "SolutionCache",
    "SolveResult",
    "SolvingStrategy",
    "Value",
    "ValueType",
    "Variable",
    "VariableType",
    "get_optimizer",
    "shutdown",
    "solve",
    "solve_problem",
]
