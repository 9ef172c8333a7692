# -*- coding: utf-8 -*-
from __future__ import annotations

import pytest
from conftest import make_values, make_variables, path_coloring_problem, uniform_domains

from timetable_solver.csp.constraints import AllDifferentConstraint, PredicateConstraint
from timetable_solver.csp.engine import solve_problem
from timetable_solver.csp.problem import CSPProblem
from timetable_solver.csp.scoring import is_solution
from timetable_solver.csp.search_greedy import choose_greedy_var, greedy_search, order_values_by_preference
from timetable_solver.types import Assignment, SearchStats, Value, ValueType


@pytest.mark.parametrize(
    "heuristic, expected",
    [("mrv", 0), ("degree", 1), ("mrv_degree", 1), ("dom_deg", 1)],
)
def test_choose_greedy_var_by_heuristic(heuristic, expected):
    # 真ん中の変数だけ degree 2、ドメインサイズは全員 2
    problem = path_coloring_problem(3)
    chosen = choose_greedy_var(problem, Assignment(), problem.initial_domains(), heuristic)
    assert chosen == problem.variables[expected]


def test_choose_greedy_var_prefers_smaller_domain_before_degree():
    problem = path_coloring_problem(3)
    domains = problem.initial_domains()
    domains[problem.variables[2]] = domains[problem.variables[2]][:1]

    assert choose_greedy_var(problem, Assignment(), domains, "mrv_degree") == problem.variables[2]
    assert choose_greedy_var(problem, Assignment(), domains, "degree") == problem.variables[1]


def test_choose_greedy_var_rejects_unknown_heuristic():
    problem = path_coloring_problem(2)
    with pytest.raises(ValueError):
        choose_greedy_var(problem, Assignment(), problem.initial_domains(), "random")


def test_values_are_tried_by_preference():
    low = Value.create(ValueType.CLASSROOM, "annex", preference=0.1)
    high = Value.create(ValueType.CLASSROOM, "main_hall", preference=0.9)
    also_low = Value.create(ValueType.CLASSROOM, "gym", preference=0.1)
    assert order_values_by_preference((low, high, also_low)) == [high, low, also_low]

    (x,) = make_variables(1)
    problem = CSPProblem([x], [], {x: (low, high, also_low)})
    result = solve_problem(problem, "greedy")
    assert result.assignment[x] == high


def test_forward_checking_avoids_a_dead_end():
    x, y = make_variables(2)
    a, b = make_values("A", "B")
    problem = CSPProblem([x, y], [AllDifferentConstraint("diff", [x, y])], {x: (a, b), y: (a,)})

    # degree は同じなので x から割り当てる。x=A は y のドメインを空にする
    with_fc = greedy_search(problem, SearchStats(), heuristic="degree", forward_checking=True)
    without_fc = greedy_search(problem, SearchStats(), heuristic="degree", forward_checking=False)

    assert with_fc is not None and with_fc[x] == b
    assert without_fc is None


def test_greedy_never_backtracks():
    x, y, z = make_variables(3)
    values = make_values("A", "B")
    # 3 変数そろうまで判定できないので、x=A の誤りは y を選ぶ段階まで分からない
    problem = CSPProblem(
        [x, y, z],
        [PredicateConstraint("x_not_a", [x, y, z], lambda vals: vals[x] != values[0])],
        uniform_domains([x, y, z], values),
    )

    greedy = solve_problem(problem, "greedy")
    assert not greedy.found
    assert greedy.stats.backtracks == 0
    # x=A, y=A, y=B の 3 つだけ試して諦める
    assert greedy.stats.nodes_explored == 3

    assert solve_problem(problem, "fc").found


def test_greedy_respects_attempt_limit():
    x, y = make_variables(2)
    values = make_values("A", "B", "C")
    problem = CSPProblem(
        [x, y],
        [PredicateConstraint("x_is_c", [x], lambda vals: vals[x] == values[2])],
        uniform_domains([x, y], values),
    )

    assert greedy_search(problem, SearchStats(), max_attempts=2) is None
    found = greedy_search(problem, SearchStats(), max_attempts=3)
    assert found is not None and is_solution(problem, found)
