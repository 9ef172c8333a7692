# -*- coding: utf-8 -*-
"""
制約でつながった変数ごとに問題を分割するモジュールです。

2 つの変数が同じ制約のスコープに含まれていれば同じグループ、という関係で
Union-Find（素集合データ構造）を使ってグループ分けします。
どの制約にも含まれない変数は、それだけで 1 つのグループになります。

グループ同士は変数を共有しないので、それぞれ独立に解いて
結果の割り当てをそのまま足し合わせることができます。
"""

from __future__ import annotations

from typing import Dict, Hashable, Iterable, List, Optional

from ..csp.constraints import Domains
from ..csp.problem import CSPProblem
from ..types import Variable


class DisjointSet:
    """経路圧縮 + ランクによる併合を行う Union-Find。"""

    def __init__(self, items: Iterable[Hashable] = ()) -> None:
        self._parent: Dict[Hashable, Hashable] = {}
        self._rank: Dict[Hashable, int] = {}
        for item in items:
            self.add(item)

    def add(self, item: Hashable) -> None:
        if item not in self._parent:
            self._parent[item] = item
            self._rank[item] = 0

    def find(self, item: Hashable) -> Hashable:
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        # 経路圧縮
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: Hashable, b: Hashable) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return
        if self._rank[ra] < self._rank[rb]:
            ra, rb = rb, ra
        self._parent[rb] = ra
        if self._rank[ra] == self._rank[rb]:
            self._rank[ra] += 1

    def connected(self, a: Hashable, b: Hashable) -> bool:
        return self.find(a) == self.find(b)


def connected_components(problem: CSPProblem) -> List[List[Variable]]:
    """
    変数を制約でつながったグループに分けます。

    グループは「最初の変数が problem.variables に出てくる順」に並び、
    グループ内の変数も problem.variables の順に並びます。
    """
    forest = DisjointSet(problem.variables)
    for constraint in problem.constraints:
        scope = constraint.scope()
        for other in scope[1:]:
            forest.union(scope[0], other)

    groups: Dict[Hashable, List[Variable]] = {}
    for var in problem.variables:
        groups.setdefault(forest.find(var), []).append(var)
    return list(groups.values())


def decompose_problem(
    problem: CSPProblem,
    domains: Optional[Domains] = None,
) -> List[CSPProblem]:
    """
    problem を独立な部分問題のリストに分割します。

    各部分問題は自分の変数・それに関係する制約・ドメインのコピーだけを持つので、
    別々のスレッドで同時に解いても状態を共有しません。
    """
    source = problem.domains if domains is None else domains
    return [
        problem.subproblem(group, {var: tuple(source[var]) for var in group})
        for group in connected_components(problem)
    ]
