# -*- coding: utf-8 -*-
"""
割り当ての評価（スコアリング）と診断を行うモジュール。

スコアの内訳
-----------
1. conflict 数（局所探索で最小化する値）
   - HARD 制約の違反スコアの合計
   - 違反スコア 0 で「満たしていない」と報告された結果は 1 として数える
     （conflict 数 0 なら必ず HARD 制約をすべて満たしている）
   - ソフト制約は数えない

2. ソフトペナルティ（診断用）
   - ソフト制約の違反スコアに優先度ごとの重みを掛けた合計
   - HIGH は 3 倍、MEDIUM は 2 倍、LOW は 1 倍

3. 診断
   - collect_violations() で違反している制約の ConstraintResult を一覧にする
     （呼び出し側がメッセージや関係エンティティを表示するため）
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from ..types import Assignment, ConstraintPriority, ConstraintResult
from .constraints import Constraint
from .problem import CSPProblem

# ソフト制約の優先度ごとの重み
SOFT_WEIGHTS: Dict[ConstraintPriority, float] = {
    ConstraintPriority.HIGH: 3.0,
    ConstraintPriority.MEDIUM: 2.0,
    ConstraintPriority.LOW: 1.0,
}


def count_conflicts(
    problem: CSPProblem,
    assignment: Assignment,
    constraints: Optional[Iterable[Constraint]] = None,
) -> float:
    """
    HARD 制約の違反スコアの合計を返します。

    constraints を渡すとその制約だけを数えます
    （局所探索で 1 変数を動かしたときの差分計算に使います）。
    """
    targets = problem.constraints if constraints is None else constraints
    total = 0.0
    for constraint in targets:
        if not constraint.is_hard:
            continue
        result = constraint.validate(assignment)
        if not result.satisfied:
            total += result.violation_score if result.violation_score > 0 else 1.0
    return total


def soft_penalty(problem: CSPProblem, assignment: Assignment) -> float:
    """ソフト制約の違反スコアを優先度で重み付けした合計。"""
    total = 0.0
    for constraint in problem.constraints:
        if constraint.is_hard:
            continue
        result = constraint.validate(assignment)
        if not result.satisfied:
            total += SOFT_WEIGHTS.get(constraint.priority, 1.0) * result.violation_score
    return total


def collect_violations(
    problem: CSPProblem,
    assignment: Assignment,
    include_soft: bool = True,
) -> List[Tuple[Constraint, ConstraintResult]]:
    """違反している制約と、その評価結果の組を制約の並び順で返します。"""
    violations: List[Tuple[Constraint, ConstraintResult]] = []
    for constraint in problem.constraints:
        if not include_soft and not constraint.is_hard:
            continue
        result = constraint.validate(assignment)
        if not result.satisfied:
            violations.append((constraint, result))
    return violations


def is_solution(problem: CSPProblem, assignment: Assignment) -> bool:
    """完全な割り当てで、かつ HARD 制約をすべて満たしているか。"""
    if not assignment.is_complete(problem.variables):
        return False
    return all(
        constraint.validate(assignment).satisfied
        for constraint in problem.constraints
        if constraint.is_hard
    )
