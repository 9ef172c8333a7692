# -*- coding: utf-8 -*-
"""
CSP インスタンス（変数・制約・ドメインの組）を表すモジュールです。

CSPProblem は探索を始める前に構造をチェックし、
制約のスコープに問題外の変数が含まれているなど「壊れた」インスタンスは
MalformedProblemError で即座に弾きます。
（中途半端に処理を続けると結果が壊れるため）

探索中に使う補助インデックス:
- constraints_for(var)   : 変数に関係する制約の一覧
- neighbors(var)         : 制約を共有する他の変数の一覧（入力順）
- shared_constraints(a,b): 2 変数が共有する制約の一覧
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..types import Value, Variable
from .constraints import Constraint, Domains


class MalformedProblemError(ValueError):
    """CSP インスタンスの構造が不正なときに送出される例外。"""


class CSPProblem:
    """
    1 回の求解リクエストに対応する CSP インスタンスです。

    Parameters
    ----------
    variables : iterable of Variable
        変数。並び順は MRV などの同点判定（先に出てきたものを優先）に使われます。
    constraints : iterable of Constraint
        制約。
    domains : mapping Variable -> sequence of Value
        各変数の候補値。空のドメインは「解なし」になる正当な入力です。

    Raises
    ------
    MalformedProblemError
        - 制約のスコープに problem に無い変数が含まれる
        - problem に無い変数のドメインが渡された
        - ドメインが与えられていない変数がある
    """

    def __init__(
        self,
        variables: Iterable[Variable],
        constraints: Iterable[Constraint],
        domains: Mapping[Variable, Sequence[Value]],
    ) -> None:
        self.variables: Tuple[Variable, ...] = tuple(dict.fromkeys(variables))
        self.constraints: Tuple[Constraint, ...] = tuple(constraints)
        known = set(self.variables)

        for var in domains:
            if var not in known:
                raise MalformedProblemError(
                    f"Domain given for variable '{var.id}' which is not part of the problem"
                )
        missing = [v.id for v in self.variables if v not in domains]
        if missing:
            raise MalformedProblemError(
                f"No domain given for variable(s): {', '.join(missing)}"
            )
        self.domains: Domains = {
            var: tuple(dict.fromkeys(domains[var])) for var in self.variables
        }

        self._by_variable: Dict[Variable, List[Constraint]] = {v: [] for v in self.variables}
        self._unscoped: List[Constraint] = []
        for constraint in self.constraints:
            scope = constraint.scope()
            if not scope:
                self._unscoped.append(constraint)
            for var in scope:
                if var not in known:
                    raise MalformedProblemError(
                        f"Constraint '{constraint.name}' references variable '{var.id}' "
                        "which is not part of the problem"
                    )
                self._by_variable[var].append(constraint)

        self._neighbors: Dict[Variable, Tuple[Variable, ...]] = {}
        for var in self.variables:
            linked: Dict[Variable, None] = {}
            for constraint in self._by_variable[var]:
                for other in constraint.scope():
                    if other != var:
                        linked[other] = None
            # 入力順に並べ直しておく（探索順を決定的にするため）
            self._neighbors[var] = tuple(v for v in self.variables if v in linked)

    # --- インデックス ---

    def constraints_for(self, variable: Variable) -> List[Constraint]:
        return self._by_variable[variable]

    def unscoped_constraints(self) -> List[Constraint]:
        """スコープが空の制約（常に判定対象になる）。"""
        return self._unscoped

    def neighbors(self, variable: Variable) -> Tuple[Variable, ...]:
        return self._neighbors[variable]

    def shares_constraint(self, a: Variable, b: Variable) -> bool:
        return b in self._neighbors[a]

    def shared_constraints(self, a: Variable, b: Variable) -> List[Constraint]:
        return [c for c in self._by_variable[a] if b in c.scope()]

    # --- 統計 ---

    def average_domain_size(self) -> float:
        if not self.variables:
            return 0.0
        return sum(len(d) for d in self.domains.values()) / len(self.variables)

    def initial_domains(self) -> Domains:
        """探索用のドメインのスナップショット（dict は新規、値はタプルなので共有して安全）。"""
        return dict(self.domains)

    # --- 派生インスタンス ---

    def with_domains(self, domains: Mapping[Variable, Sequence[Value]]) -> "CSPProblem":
        return CSPProblem(self.variables, self.constraints, domains)

    def reordered(self, order: Sequence[Variable]) -> "CSPProblem":
        """変数の並び順だけを変えたインスタンスを返します。"""
        return CSPProblem(order, self.constraints, self.domains)

    def subproblem(
        self,
        variables: Iterable[Variable],
        domains: Optional[Mapping[Variable, Sequence[Value]]] = None,
    ) -> "CSPProblem":
        """
        variables だけからなる部分問題を作ります。
        スコープが variables と交わる制約（およびスコープが空の制約）を引き継ぎます。
        variables は制約でつながった変数をすべて含んでいる必要があります
        （そうでなければ MalformedProblemError）。
        """
        wanted = set(variables)
        chosen = tuple(v for v in self.variables if v in wanted)
        selected = set(chosen)
        source = domains if domains is not None else self.domains
        constraints = [
            c for c in self.constraints
            if not c.scope() or any(v in selected for v in c.scope())
        ]
        return CSPProblem(chosen, constraints, {v: source[v] for v in chosen})

    def __repr__(self) -> str:
        return (
            f"CSPProblem(variables={len(self.variables)}, "
            f"constraints={len(self.constraints)}, "
            f"avg_domain={self.average_domain_size():.1f})"
        )
