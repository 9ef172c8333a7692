# -*- coding: utf-8 -*-
"""テストで共通して使う小さな問題の組み立て。"""

from __future__ import annotations

import random
from typing import Dict, List, Sequence, Tuple

import pytest

from timetable_solver.csp.constraints import AllDifferentConstraint, PredicateConstraint
from timetable_solver.csp.problem import CSPProblem
from timetable_solver.types import Value, ValueType, Variable, VariableType


def make_variables(n: int, prefix: str = "v") -> List[Variable]:
    return [Variable.create(VariableType.TIME_SLOT_ASSIGNMENT, f"{prefix}{i}") for i in range(n)]


def make_values(*names) -> Tuple[Value, ...]:
    return tuple(Value.create(ValueType.TIME_SLOT, name) for name in names)


def uniform_domains(variables: Sequence[Variable], values: Sequence[Value]) -> Dict[Variable, Tuple[Value, ...]]:
    return {var: tuple(values) for var in variables}


def queens_problem(n: int = 4) -> CSPProblem:
    """n-queens: 行ごとに 1 変数、値は列番号。"""
    rows = make_variables(n, prefix="row")
    cols = tuple(Value.create(ValueType.TIME_PERIOD, c) for c in range(n))
    constraints = []
    for i in range(n):
        for j in range(i + 1, n):
            constraints.append(
                PredicateConstraint(
                    f"queens_{i}_{j}",
                    [rows[i], rows[j]],
                    lambda vals, a=rows[i], b=rows[j], d=j - i: (
                        vals[a].payload != vals[b].payload
                        and abs(vals[a].payload - vals[b].payload) != d
                    ),
                )
            )
    return CSPProblem(rows, constraints, uniform_domains(rows, cols))


def path_coloring_problem(n: int = 3, colors: Sequence[str] = ("red", "green")) -> CSPProblem:
    """隣り合う変数が違う色になる、直線状のグラフ彩色。"""
    variables = make_variables(n, prefix="node")
    values = make_values(*colors)
    constraints = [
        AllDifferentConstraint(f"edge_{i}", [variables[i], variables[i + 1]])
        for i in range(n - 1)
    ]
    return CSPProblem(variables, constraints, uniform_domains(variables, values))


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def two_groups_problem() -> CSPProblem:
    """5 変数ずつ、互いに独立な 2 つのグループからなる 10 変数の問題。"""
    variables = make_variables(10)
    values = make_values("A", "B", "C", "D", "E")
    constraints = [
        AllDifferentConstraint("group_0", variables[:5]),
        AllDifferentConstraint("group_1", variables[5:]),
    ]
    return CSPProblem(variables, constraints, uniform_domains(variables, values))
