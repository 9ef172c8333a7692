# -*- coding: utf-8 -*-
"""
制約（Constraint）の抽象クラスと、汎用的な制約の実装をまとめたモジュールです。

探索エンジンが制約に求めるのは次の 3 つの能力だけです。

- validate(assignment) : 割り当てを評価して ConstraintResult を返す
- scope()              : この制約が見る変数の集合
- prune(assignment, domains)
                       : 単独で不正と分かる値をドメインから取り除く

エンジン側は具体的な制約クラスを一切判定せず、この能力だけを通して扱います。
学校ごとの方針（どの制約を使うか）は呼び出し側が決めます。

ここで用意している汎用制約:
- PredicateConstraint     : スコープ全体が割り当て済みのときに任意の述語で判定
- AllDifferentConstraint  : 同じ資源の二重予約を禁止
- AllowedValuesConstraint : 変数ごとに許可された値だけを認める（空き時間など）
- CapacityConstraint      : 教室の定員が必要席数以上であること
- PreferenceConstraint    : 好ましさの低い値を（ソフトに）減点
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..types import Assignment, ConstraintPriority, ConstraintResult, Value, Variable

# 探索中のドメイン表現: 変数 -> 候補値のタプル（タプルなので枝の間で共有しても壊れない）
Domains = Dict[Variable, Tuple[Value, ...]]


class Constraint(ABC):
    """
    CSP の制約を表す抽象クラスです。

    Parameters
    ----------
    name : str
        制約の名前（ログや診断メッセージに使います）。
    priority : ConstraintPriority
        HARD なら最終解で必ず満たす必要があり、それ以外はスコアとして扱います。
    description : str
        制約の説明。
    """

    def __init__(
        self,
        name: str,
        priority: ConstraintPriority = ConstraintPriority.HARD,
        description: str = "",
    ) -> None:
        self.name = name
        self.priority = priority
        self.description = description

    @abstractmethod
    def validate(self, assignment: Assignment) -> ConstraintResult:
        """割り当てを評価します。"""

    @abstractmethod
    def scope(self) -> Tuple[Variable, ...]:
        """この制約が評価する変数（重複なし・順序あり）を返します。"""

    def prune(self, assignment: Assignment, domains: Mapping[Variable, Sequence[Value]]) -> Domains:
        """
        assignment を前提に、この制約単独で不正と分かる値をドメインから取り除きます。

        既定の実装では、スコープ内の変数 v の各候補値を仮に割り当て、
        それでスコープ全体が割り当て済みになる場合だけ validate() で判定します。
        まだ判定できない値は残すので、解になり得る値を消すことはありません。
        """
        scope = set(self.scope())
        reduced: Domains = {}
        for var, values in domains.items():
            if var not in scope or assignment.is_assigned(var):
                reduced[var] = tuple(values)
                continue
            trial = assignment.copy()
            kept: List[Value] = []
            for value in values:
                trial.assign(var, value)
                if not trial.all_assigned(scope) or self.validate(trial).satisfied:
                    kept.append(value)
            reduced[var] = tuple(kept)
        return reduced

    @property
    def is_hard(self) -> bool:
        return self.priority.is_hard

    def covers(self, variable: Variable) -> bool:
        return variable in self.scope()

    def signature(self) -> str:
        """キャッシュのキーに使う、制約の構造を表す文字列。"""
        scope_ids = ",".join(v.id for v in self.scope())
        return f"{type(self).__name__}:{self.name}:{self.priority.name}:{scope_ids}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.priority.name})"


def _unique(variables: Iterable[Variable]) -> Tuple[Variable, ...]:
    return tuple(dict.fromkeys(variables))


class PredicateConstraint(Constraint):
    """
    任意の述語で判定する制約。

    スコープ内の変数がすべて割り当て済みになったときだけ
    predicate({変数: 値}) を呼び、False なら違反とします。
    一部でも未割り当てなら「まだ判定できない」として満たしている扱いです。
    """

    def __init__(
        self,
        name: str,
        variables: Iterable[Variable],
        predicate: Callable[[Dict[Variable, Value]], bool],
        priority: ConstraintPriority = ConstraintPriority.HARD,
        message: str = "",
        violation_score: float = 1.0,
        description: str = "",
    ) -> None:
        super().__init__(name, priority, description)
        self._scope = _unique(variables)
        self.predicate = predicate
        self.message = message or f"{name} violated"
        self.violation_score = violation_score

    def scope(self) -> Tuple[Variable, ...]:
        return self._scope

    def validate(self, assignment: Assignment) -> ConstraintResult:
        if not assignment.all_assigned(self._scope):
            return ConstraintResult.success()
        values = {var: assignment[var] for var in self._scope}
        if self.predicate(values):
            return ConstraintResult.success()
        return ConstraintResult.violation(
            self.message,
            self.violation_score,
            [var.entity_id or var.id for var in self._scope],
        )

    def signature(self) -> str:
        pred = getattr(self.predicate, "__qualname__", repr(self.predicate))
        return f"{super().signature()}:{pred}"


class AllDifferentConstraint(Constraint):
    """
    スコープ内の変数が同じ資源を重複して使わないことを要求する制約（二重予約の禁止）。

    key で値から「資源のキー」を取り出して比較します。
    既定では Value.id をそのまま使います。
    例えば値が (教室, 時間枠) のペアなら、key でそのペアを返せば
    「同じ教室・同じ時間に 2 つの授業を入れない」制約になります。

    割り当て済みの変数だけを見るため、部分割り当てでも評価できます。
    違反スコアは「重複しているペアの数」です。
    """

    def __init__(
        self,
        name: str,
        variables: Iterable[Variable],
        key: Optional[Callable[[Value], Hashable]] = None,
        priority: ConstraintPriority = ConstraintPriority.HARD,
        description: str = "",
    ) -> None:
        super().__init__(name, priority, description)
        self._scope = _unique(variables)
        self.key = key or (lambda value: value.id)

    def scope(self) -> Tuple[Variable, ...]:
        return self._scope

    def validate(self, assignment: Assignment) -> ConstraintResult:
        seen: Dict[Hashable, List[Variable]] = {}
        for var in self._scope:
            value = assignment.get(var)
            if value is None:
                continue
            seen.setdefault(self.key(value), []).append(var)

        clashes = 0
        affected: List[str] = []
        for key, holders in seen.items():
            if len(holders) > 1:
                n = len(holders)
                clashes += n * (n - 1) // 2
                affected.extend(v.entity_id or v.id for v in holders)

        if clashes == 0:
            return ConstraintResult.success()
        return ConstraintResult.violation(
            f"{self.name}: {clashes} double booking(s)",
            float(clashes),
            affected,
        )


class AllowedValuesConstraint(Constraint):
    """
    変数ごとに「使ってよい値」を限定する単項制約（教員の空き時間など）。

    allowed に載っていない変数には制限をかけません。
    単項なので、prune() で探索前にドメインから直接取り除けます。
    """

    def __init__(
        self,
        name: str,
        allowed: Mapping[Variable, Iterable[str]],
        priority: ConstraintPriority = ConstraintPriority.HARD,
        description: str = "",
    ) -> None:
        super().__init__(name, priority, description)
        self.allowed: Dict[Variable, frozenset] = {
            var: frozenset(ids) for var, ids in allowed.items()
        }
        self._scope = tuple(self.allowed)

    def scope(self) -> Tuple[Variable, ...]:
        return self._scope

    def validate(self, assignment: Assignment) -> ConstraintResult:
        for var, ids in self.allowed.items():
            value = assignment.get(var)
            if value is not None and value.id not in ids:
                return ConstraintResult.violation(
                    f"{value.label or value.id} is not available for {var.label or var.id}",
                    1.0,
                    [var.entity_id or var.id, value.id],
                )
        return ConstraintResult.success()

    def prune(self, assignment: Assignment, domains: Mapping[Variable, Sequence[Value]]) -> Domains:
        reduced: Domains = {}
        for var, values in domains.items():
            ids = self.allowed.get(var)
            if ids is None or assignment.is_assigned(var):
                reduced[var] = tuple(values)
            else:
                reduced[var] = tuple(v for v in values if v.id in ids)
        return reduced

    def signature(self) -> str:
        parts = ";".join(
            f"{var.id}={','.join(sorted(ids))}" for var, ids in self.allowed.items()
        )
        return f"{super().signature()}:{parts}"


class CapacityConstraint(Constraint):
    """
    教室の定員制約。

    required[変数] が必要席数、capacities[値ID] が教室の定員です。
    定員が不明な値（capacities に無い値）は判定対象外として許可します。
    違反スコアは不足席数の割合（不足 / 必要数）です。
    """

    def __init__(
        self,
        name: str,
        required: Mapping[Variable, int],
        capacities: Mapping[str, int],
        priority: ConstraintPriority = ConstraintPriority.HARD,
        description: str = "",
    ) -> None:
        super().__init__(name, priority, description)
        self.required = dict(required)
        self.capacities = dict(capacities)
        self._scope = tuple(self.required)

    def scope(self) -> Tuple[Variable, ...]:
        return self._scope

    def _fits(self, var: Variable, value: Value) -> bool:
        capacity = self.capacities.get(value.id)
        return capacity is None or capacity >= self.required[var]

    def validate(self, assignment: Assignment) -> ConstraintResult:
        for var, seats in self.required.items():
            value = assignment.get(var)
            if value is None or self._fits(var, value):
                continue
            capacity = self.capacities[value.id]
            shortage = seats - capacity
            return ConstraintResult.violation(
                f"{value.label or value.id} holds {capacity} but "
                f"{var.label or var.id} needs {seats}",
                shortage / seats if seats else 1.0,
                [var.entity_id or var.id, value.id],
            )
        return ConstraintResult.success()

    def prune(self, assignment: Assignment, domains: Mapping[Variable, Sequence[Value]]) -> Domains:
        reduced: Domains = {}
        for var, values in domains.items():
            if var not in self.required or assignment.is_assigned(var):
                reduced[var] = tuple(values)
            else:
                reduced[var] = tuple(v for v in values if self._fits(var, v))
        return reduced

    def signature(self) -> str:
        req = ";".join(f"{var.id}={n}" for var, n in self.required.items())
        cap = ";".join(f"{k}={n}" for k, n in sorted(self.capacities.items()))
        return f"{super().signature()}:{req}:{cap}"


class PreferenceConstraint(Constraint):
    """
    好ましさ（Value.preference）が threshold 未満の値を減点するソフト制約。

    違反スコアは各変数の (threshold - preference) の合計です。
    ソフト制約なので、探索で値が弾かれることはありません。
    """

    def __init__(
        self,
        name: str,
        variables: Iterable[Variable],
        threshold: float,
        priority: ConstraintPriority = ConstraintPriority.LOW,
        description: str = "",
    ) -> None:
        super().__init__(name, priority, description)
        self._scope = _unique(variables)
        self.threshold = threshold

    def scope(self) -> Tuple[Variable, ...]:
        return self._scope

    def validate(self, assignment: Assignment) -> ConstraintResult:
        shortfall = 0.0
        affected: List[str] = []
        for var in self._scope:
            value = assignment.get(var)
            if value is not None and value.preference < self.threshold:
                shortfall += self.threshold - value.preference
                affected.append(var.entity_id or var.id)
        if not affected:
            return ConstraintResult.success()
        return ConstraintResult.violation(
            f"{self.name}: {len(affected)} assignment(s) below preference {self.threshold}",
            shortfall,
            affected,
        )

    def signature(self) -> str:
        return f"{super().signature()}:{self.threshold}"
