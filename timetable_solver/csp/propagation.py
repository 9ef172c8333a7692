# -*- coding: utf-8 -*-
"""
整合性チェックと制約伝播（propagation）を行うモジュールです。

整合性の意味
------------
「割り当てが整合的」とは、スコープ全体が割り当て済みの制約をすべて評価し、
HARD 制約がひとつも違反していないことを言います。

- ソフト制約の結果は整合性に影響しません（スコア / 診断用）。
- スコープの一部が未割り当ての制約は「まだ判定できない」ので満たしている扱いです。

伝播
----
- forward_check : 値を 1 つ割り当てた直後に、制約を共有する未割り当て変数の
                  ドメインから、もう矛盾する値を取り除く
- ac3           : 制約スコープから作った全アーク (xi, xj) について
                  アーク整合性を取る前処理

どちらもドメインを直接書き換えず、新しい dict を返します（枝ごとのスナップショット）。
ドメインが空になった場合（domain wipeout）は None を返し、呼び出し側の枝を打ち切らせます。
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, List, Optional, Set, Tuple

from ..types import Assignment, Value, Variable
from .constraints import Constraint, Domains
from .problem import CSPProblem

Arc = Tuple[Variable, Variable]


def _holds(constraint: Constraint, assignment: Assignment) -> bool:
    """1 つの制約について、割り当てがその制約と矛盾しないかを判定します。"""
    if not constraint.is_hard:
        return True
    if not assignment.all_assigned(constraint.scope()):
        # スコープの一部が未割り当て → まだ判定しない
        return True
    return constraint.validate(assignment).satisfied


def is_consistent(
    problem: CSPProblem,
    assignment: Assignment,
    constraints: Optional[Iterable[Constraint]] = None,
) -> bool:
    """
    割り当てが整合的かを判定します。

    constraints を省略すると、problem の全制約を対象にします。
    """
    targets = problem.constraints if constraints is None else constraints
    return all(_holds(c, assignment) for c in targets)


def is_consistent_with(
    problem: CSPProblem,
    assignment: Assignment,
    variable: Variable,
    value: Value,
) -> bool:
    """
    整合的な assignment に variable = value を追加しても整合的かを判定します。

    既存の割り当ては整合的である前提なので、variable に関係する制約と
    スコープが空の制約だけを評価すれば十分です。
    assignment 自体は書き換えません。
    """
    trial = assignment.copy()
    trial.assign(variable, value)
    if not is_consistent(problem, trial, problem.constraints_for(variable)):
        return False
    return is_consistent(problem, trial, problem.unscoped_constraints())


def forward_check(
    problem: CSPProblem,
    assignment: Assignment,
    domains: Domains,
    variable: Variable,
    value: Value,
) -> Optional[Domains]:
    """
    variable = value を割り当てた直後の forward checking。

    Parameters
    ----------
    assignment : Assignment
        variable = value をすでに含む割り当て。
    domains : Domains
        親ノードでのドメイン。書き換えません。

    Returns
    -------
    Domains or None
        縮小後のドメイン（variable のドメインは (value,) に固定）。
        いずれかの未割り当て変数のドメインが空になったら None。
    """
    new_domains: Domains = dict(domains)
    new_domains[variable] = (value,)

    trial = assignment.copy()
    for other in problem.neighbors(variable):
        if assignment.is_assigned(other):
            continue
        shared = [c for c in problem.shared_constraints(variable, other) if c.is_hard]
        if not shared:
            continue

        kept: List[Value] = []
        for candidate in new_domains[other]:
            trial.assign(other, candidate)
            if all(_holds(c, trial) for c in shared):
                kept.append(candidate)
        trial.unassign(other)

        if not kept:
            # domain wipeout → この枝は失敗
            return None
        if len(kept) != len(new_domains[other]):
            new_domains[other] = tuple(kept)

    return new_domains


def initial_arcs(problem: CSPProblem) -> List[Arc]:
    """全制約のスコープから、順序付きペア (xi, xj) をすべて作ります（重複なし）。"""
    arcs: dict = {}
    for constraint in problem.constraints:
        scope = constraint.scope()
        for xi in scope:
            for xj in scope:
                if xi != xj:
                    arcs[(xi, xj)] = None
    return list(arcs)


def revise(
    problem: CSPProblem,
    assignment: Assignment,
    domains: Domains,
    xi: Variable,
    xj: Variable,
) -> bool:
    """
    アーク (xi, xj) について xi のドメインを修正します。

    xi の値 x は、xj のドメインのどの値 y と組み合わせても
    (assignment + xi=x + xj=y) が xi に関係する HARD 制約を満たせない場合に取り除かれます。
    取り除いた値があれば domains[xi] を新しいタプルに差し替えて True を返します。
    """
    relevant = [c for c in problem.constraints_for(xi) if c.is_hard]
    if not relevant:
        return False

    trial = assignment.copy()
    kept: List[Value] = []
    for x in domains[xi]:
        trial.assign(xi, x)
        supported = False
        for y in domains[xj]:
            trial.assign(xj, y)
            if all(_holds(c, trial) for c in relevant):
                supported = True
                break
        if supported:
            kept.append(x)

    if len(kept) == len(domains[xi]):
        return False
    domains[xi] = tuple(kept)
    return True


def ac3(
    problem: CSPProblem,
    assignment: Assignment,
    domains: Domains,
) -> Optional[Domains]:
    """
    AC-3 によるアーク整合性の前処理。

    割り当て済みの変数は、そのドメインを割り当て値だけに固定して扱います。
    xi のドメインが修正されたら、xi と制約を共有する xk (xk != xj) について
    アーク (xk, xi) をキューに戻し、依存する変数を再チェックします。

    Returns
    -------
    Domains or None
        アーク整合なドメイン。途中でドメインが空になったら None（インスタンスは解なし）。
    """
    current: Domains = dict(domains)
    for var in assignment:
        current[var] = (assignment[var],)

    queue: Deque[Arc] = deque(initial_arcs(problem))
    pending: Set[Arc] = set(queue)

    while queue:
        arc = queue.popleft()
        pending.discard(arc)
        xi, xj = arc
        if revise(problem, assignment, current, xi, xj):
            if not current[xi]:
                return None
            for xk in problem.neighbors(xi):
                if xk == xj:
                    continue
                back = (xk, xi)
                if back not in pending:
                    pending.add(back)
                    queue.append(back)

    return current
