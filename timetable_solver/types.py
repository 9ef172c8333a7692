# -*- coding: utf-8 -*-
"""
時間割 CSP で使う主なデータ構造（型）をまとめたモジュールです。

dataclass を使うことで、
「この構造体はどんなフィールドを持っているのか」を
分かりやすく表現しています。

- Variable         : 値を割り当てる必要がある「枠」（例: 3組の担当教員）
- Value            : 変数に割り当てる候補（例: 教員 A）
- ConstraintResult : 制約を評価した結果
- Assignment       : 変数 → 値 の割り当て（部分的 / 完全）
- SearchStats      : 探索 1 回分の性能カウンタ
- SolveResult      : 探索結果（割り当て or 解なし + カウンタ）
"""

from __future__ import annotations

import copy
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Type, TypeVar


class VariableType(str, Enum):
    """変数の種類（何を割り当てる枠なのか）。"""

    TEACHER_ASSIGNMENT = "teacher_assignment"
    CLASSROOM_ASSIGNMENT = "classroom_assignment"
    TIME_SLOT_ASSIGNMENT = "time_slot_assignment"
    COURSE_SCHEDULING = "course_scheduling"
    STUDENT_ENROLLMENT = "student_enrollment"
    ROOM_ALLOCATION = "room_allocation"
    TEACHER_SCHEDULE = "teacher_schedule"
    CLASSROOM_SCHEDULE = "classroom_schedule"


class ValueType(str, Enum):
    """値の種類（教員・教室・時間枠・日付など）。"""

    TIME_SLOT = "time_slot"
    CLASSROOM = "classroom"
    TEACHER = "teacher"
    DATE = "date"
    LOCATION = "location"
    DAY_OF_WEEK = "day_of_week"
    TIME_PERIOD = "time_period"
    COURSE_OFFERING = "course_offering"
    SEMESTER = "semester"
    ROOM_TYPE = "room_type"
    EQUIPMENT = "equipment"


class ConstraintPriority(Enum):
    """
    制約の優先度。

    HARD は最終解で絶対に破ってはいけない制約、
    HIGH / MEDIUM / LOW はソフト制約（違反はスコアとして数えるだけ）です。
    level が小さいほど優先度が高くなります。
    """

    HARD = 1
    HIGH = 2
    MEDIUM = 3
    LOW = 4

    @property
    def level(self) -> int:
        return self.value

    @property
    def is_hard(self) -> bool:
        return self is ConstraintPriority.HARD

    @property
    def is_soft(self) -> bool:
        return self is not ConstraintPriority.HARD

    def is_higher_than(self, other: "ConstraintPriority") -> bool:
        return self.level < other.level


class SolvingStrategy(str, Enum):
    """探索エンジンが提供する探索アルゴリズム。"""

    BACKTRACKING_FORWARD_CHECKING = "fc"
    BACKTRACKING_AC3 = "ac3"
    MIN_CONFLICTS = "min_conflicts"
    SIMULATED_ANNEALING = "sa"
    GREEDY = "greedy"
    GENETIC_ALGORITHM = "ga"
    TABU_SEARCH = "tabu"

    @classmethod
    def parse(cls, name: "SolvingStrategy | str") -> "SolvingStrategy":
        """
        文字列（"fc" / "ac3" / "min_conflicts" / "sa" / "greedy" / "ga" / "tabu" や列挙名）から
        SolvingStrategy を返します。知らない名前なら ValueError。
        """
        if isinstance(name, cls):
            return name
        if isinstance(name, str):
            key = name.strip()
            for member in cls:
                if key == member.value or key.upper() == member.name:
                    return member
        accepted = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown solving strategy: {name!r} (expected one of: {accepted})")


# ----------------------------------------------------------------------
# Variable / Value
# ----------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Variable:
    """
    値を割り当てる必要がある「枠」を表すクラスです。

    Attributes
    ----------
    id : str
        安定した識別子。等価性とハッシュはこの id だけで決まります。
    type : VariableType
        何を割り当てる変数か（教員 / 教室 / 時間枠 ...）。
    entity_id : str
        この変数が属するエンティティ（例: 開講クラス）の識別子。
    label : str
        表示用の名前。
    """

    id: str
    type: VariableType
    entity_id: str = ""
    label: str = ""

    @classmethod
    def create(cls, type: VariableType, entity_id: str, label: str = "") -> "Variable":
        """id を "<TYPE>_<entity_id>" の形で自動生成して Variable を作ります。"""
        return cls(
            id=f"{type.name}_{entity_id}",
            type=type,
            entity_id=str(entity_id),
            label=label or str(entity_id),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Variable):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"Variable({self.id!r})"


@dataclass(frozen=True, eq=False)
class Value:
    """
    変数に割り当てる候補値を表すクラスです。

    Attributes
    ----------
    id : str
        識別子。
    type : ValueType
        値の種類（教員 / 教室 / 時間枠 / 日付 ...）。
    payload : Any
        値の実体（教室 ID、時間枠オブジェクトなど）。
    label : str
        表示用の名前。
    preference : float
        好ましさ（大きいほど望ましい）。ソフト制約の評価にだけ使います。
    """

    id: str
    type: ValueType
    payload: Any = None
    label: str = ""
    preference: float = 0.0

    @classmethod
    def create(
        cls,
        type: ValueType,
        payload: Any,
        label: str = "",
        preference: float = 0.0,
    ) -> "Value":
        """id を "<TYPE>_<payload>" の形で自動生成して Value を作ります。"""
        return cls(
            id=f"{type.name}_{payload}",
            type=type,
            payload=payload,
            label=label or str(payload),
            preference=preference,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return self.id == other.id and self.payload == other.payload

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"Value({self.id!r})"


# ----------------------------------------------------------------------
# ConstraintResult
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class ConstraintResult:
    """
    制約を評価した結果です。

    Attributes
    ----------
    satisfied : bool
        制約を満たしているか。
    message : str
        人が読むためのメッセージ。
    violation_score : float
        違反の大きさ（0 以上。満たしていれば 0）。
    affected_entities : tuple[str, ...]
        違反に関係したエンティティ ID（診断用）。
    """

    satisfied: bool
    message: str = "Constraint satisfied"
    violation_score: float = 0.0
    affected_entities: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.violation_score < 0:
            raise ValueError(
                f"violation_score must be non-negative, got {self.violation_score}"
            )
        object.__setattr__(self, "affected_entities", tuple(self.affected_entities))

    @classmethod
    def success(cls) -> "ConstraintResult":
        return cls(True)

    @classmethod
    def violation(
        cls,
        message: str,
        score: float = 1.0,
        affected: Iterable[str] = (),
    ) -> "ConstraintResult":
        return cls(False, message, score, tuple(affected))

    @property
    def violated(self) -> bool:
        return not self.satisfied

    def with_affected_entity(self, entity: str) -> "ConstraintResult":
        return ConstraintResult(
            self.satisfied,
            self.message,
            self.violation_score,
            self.affected_entities + (entity,),
        )

    def with_higher_score(self, score: float) -> "ConstraintResult":
        return ConstraintResult(
            self.satisfied,
            self.message,
            max(self.violation_score, score),
            self.affected_entities,
        )


# ----------------------------------------------------------------------
# Assignment
# ----------------------------------------------------------------------


class AssignmentContext:
    """
    制約ごとの補助情報（例: 「教員 X に今割り当たっている授業一覧」）を
    Assignment と一緒に持ち運ぶための基底クラスです。

    Assignment には context のクラスごとに 1 インスタンスだけ保持され、
    Assignment.copy() のときに copy() で複製されます。
    中身が単純なデータなら既定の deepcopy で十分です。
    """

    def copy(self) -> "AssignmentContext":
        return copy.deepcopy(self)


C = TypeVar("C", bound=AssignmentContext)


class Assignment:
    """
    変数 → 値 の割り当て（部分的 / 完全）を表すクラスです。

    バックトラックでは兄弟ノードを親の状態を壊さずに試す必要があるため、
    copy() は元の割り当てと完全に独立したコピーを返します。
    割り当ての順序は挿入順で保持されます。
    """

    __slots__ = ("_values", "_contexts")

    def __init__(self, values: Optional[Dict[Variable, Value]] = None) -> None:
        self._values: Dict[Variable, Value] = dict(values) if values else {}
        self._contexts: Dict[type, AssignmentContext] = {}

    # --- 割り当て操作 ---

    def assign(self, variable: Variable, value: Value) -> None:
        self._values[variable] = value

    def unassign(self, variable: Variable) -> None:
        self._values.pop(variable, None)

    def update(self, other: "Assignment") -> None:
        """other の割り当てをすべて取り込みます（同じ変数は上書き）。"""
        self._values.update(other._values)
        for cls, ctx in other._contexts.items():
            self._contexts.setdefault(cls, ctx.copy())

    def get(self, variable: Variable) -> Optional[Value]:
        return self._values.get(variable)

    def __getitem__(self, variable: Variable) -> Value:
        return self._values[variable]

    def is_assigned(self, variable: Variable) -> bool:
        return variable in self._values

    def is_complete(self, variables: Iterable[Variable]) -> bool:
        return all(v in self._values for v in variables)

    def all_assigned(self, variables: Iterable[Variable]) -> bool:
        """is_complete の別名。制約のスコープがすべて割り当て済みかの判定に使います。"""
        return self.is_complete(variables)

    def variables(self) -> List[Variable]:
        return list(self._values)

    def values(self) -> List[Value]:
        return list(self._values.values())

    def items(self) -> Iterator[Tuple[Variable, Value]]:
        return iter(self._values.items())

    def as_dict(self) -> Dict[Variable, Value]:
        return dict(self._values)

    # --- 補助情報（型付き context） ---

    def get_context(self, cls: Type[C]) -> Optional[C]:
        ctx = self._contexts.get(cls)
        return ctx  # type: ignore[return-value]

    def set_context(self, ctx: AssignmentContext) -> None:
        self._contexts[type(ctx)] = ctx

    # --- コピー / 比較 ---

    def copy(self) -> "Assignment":
        new = Assignment(self._values)
        new._contexts = {cls: ctx.copy() for cls, ctx in self._contexts.items()}
        return new

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, variable: object) -> bool:
        return variable in self._values

    def __iter__(self) -> Iterator[Variable]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Assignment):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        inner = ", ".join(f"{var.id}={val.id}" for var, val in self._values.items())
        return f"Assignment(size={len(self._values)}, {{{inner}}})"


# ----------------------------------------------------------------------
# 探索結果
# ----------------------------------------------------------------------


@dataclass
class SearchStats:
    """
    探索 1 回分の性能カウンタです。

    solve のたびに新しく作られるため、並列に走る探索同士で共有されることはありません。
    """

    nodes_explored: int = 0
    backtracks: int = 0
    started_at: float = 0.0
    finished_at: float = 0.0

    def start(self) -> None:
        self.nodes_explored = 0
        self.backtracks = 0
        self.started_at = time.perf_counter()
        self.finished_at = self.started_at

    def stop(self) -> None:
        self.finished_at = time.perf_counter()

    @property
    def duration_ms(self) -> float:
        return max(0.0, (self.finished_at - self.started_at) * 1000.0)

    def absorb(self, other: "SearchStats") -> None:
        """部分問題のカウンタを合算します（時間は合算しません）。"""
        self.nodes_explored += other.nodes_explored
        self.backtracks += other.backtracks

    def summary(self) -> str:
        return "Nodes: %d, Backtracks: %d, Time: %dms" % (
            self.nodes_explored,
            self.backtracks,
            int(self.duration_ms),
        )


@dataclass
class SolveResult:
    """
    探索結果を表すクラスです。

    Attributes
    ----------
    assignment : Assignment or None
        見つかった完全な割り当て。解が無ければ None。
    stats : SearchStats
        ノード数・バックトラック数・所要時間。
    strategy : SolvingStrategy
        使った探索アルゴリズム。
    from_cache : bool
        解キャッシュから返した結果かどうか。
    """

    assignment: Optional[Assignment]
    stats: SearchStats = field(default_factory=SearchStats)
    strategy: SolvingStrategy = SolvingStrategy.BACKTRACKING_FORWARD_CHECKING
    from_cache: bool = False

    @property
    def found(self) -> bool:
        return self.assignment is not None
