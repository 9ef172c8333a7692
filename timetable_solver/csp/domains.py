# -*- coding: utf-8 -*-
"""
ドメイン（変数ごとの候補値の並び）に関する処理をまとめたモジュールです。

- reduce_domains          : 大規模問題向けの前処理。各変数について、
                            その変数をスコープに含む制約の prune() を順に適用し、
                            単独で不正と分かる値を取り除く
- calculate_priorities    : 変数の静的優先度（ドメインが小さいほど・
                            制約が多く HARD が多いほど高い）
- order_by_priority       : 静的優先度の高い順に変数を並べ替える
- domain_sizes            : ログ用の簡単な統計

reduce_domains は空の割り当てを前提に評価するだけなので、
同じ結果に 2 回適用しても結果は変わりません（不動点）。
"""

from __future__ import annotations

from typing import Dict, List, Optional

from ..config import STATIC_PRIORITY_DOMAIN_WEIGHT, STATIC_PRIORITY_HARD_WEIGHT
from ..logging_utils import get_logger
from ..types import Assignment, Variable
from .constraints import Domains
from .problem import CSPProblem

logger = get_logger()


def reduce_domains(problem: CSPProblem, domains: Optional[Domains] = None) -> Domains:
    """
    各変数のドメインを、その変数を含む制約ごとに prune() して縮小します。

    Parameters
    ----------
    problem : CSPProblem
        対象のインスタンス。
    domains : Domains, optional
        縮小を始めるドメイン。省略時は problem.domains。

    Returns
    -------
    Domains
        縮小後のドメイン（新しい dict）。元のドメインは書き換えません。
    """
    source = problem.domains if domains is None else domains
    empty = Assignment()
    reduced: Domains = {}
    removed = 0

    for var in problem.variables:
        values = tuple(source[var])
        for constraint in problem.constraints_for(var):
            if not values:
                break
            pruned = constraint.prune(empty, {var: values})
            values = tuple(pruned.get(var, values))
        removed += len(source[var]) - len(values)
        reduced[var] = values

    logger.info(
        "[domains] Reduced domains: vars=%d, removed=%d values",
        len(reduced),
        removed,
    )
    return reduced


def calculate_priorities(problem: CSPProblem) -> Dict[Variable, int]:
    """
    変数の静的優先度を計算します。

    priority = DOMAIN_WEIGHT // |domain|      （ドメインが小さいほど高い。空なら DOMAIN_WEIGHT + 1）
             + 関連する制約の数
             + HARD_WEIGHT * 関連する HARD 制約の数
    """
    priorities: Dict[Variable, int] = {}
    for var in problem.variables:
        size = len(problem.domains[var])
        score = STATIC_PRIORITY_DOMAIN_WEIGHT // size if size else STATIC_PRIORITY_DOMAIN_WEIGHT + 1
        related = problem.constraints_for(var)
        score += len(related)
        score += STATIC_PRIORITY_HARD_WEIGHT * sum(1 for c in related if c.is_hard)
        priorities[var] = score
    return priorities


def order_by_priority(problem: CSPProblem) -> List[Variable]:
    """静的優先度の高い順（同点なら入力順）に変数を並べます。"""
    priorities = calculate_priorities(problem)
    return sorted(problem.variables, key=lambda v: -priorities[v])


def domain_sizes(domains: Domains) -> Dict[str, float]:
    """ドメインサイズの min / max / 平均を返します（ログ用）。"""
    sizes = [len(v) for v in domains.values()]
    if not sizes:
        return {"min": 0, "max": 0, "mean": 0.0}
    return {"min": min(sizes), "max": max(sizes), "mean": sum(sizes) / len(sizes)}
