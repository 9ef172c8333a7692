# -*- coding: utf-8 -*-
from __future__ import annotations

from conftest import make_values, make_variables, uniform_domains

from timetable_solver.csp.constraints import (
    AllDifferentConstraint,
    PredicateConstraint,
    PreferenceConstraint,
)
from timetable_solver.csp.problem import CSPProblem
from timetable_solver.csp.propagation import (
    ac3,
    forward_check,
    initial_arcs,
    is_consistent,
    is_consistent_with,
)
from timetable_solver.types import Assignment, Value, ValueType


def _numbers(*ns):
    return tuple(Value.create(ValueType.TIME_PERIOD, n) for n in ns)


def test_is_consistent_ignores_soft_and_partial_constraints():
    x, y = make_variables(2)
    low = Value.create(ValueType.TIME_SLOT, "late", preference=0.0)
    soft = PreferenceConstraint("prefer", [x], threshold=1.0)
    hard = AllDifferentConstraint("diff", [x, y])
    problem = CSPProblem([x, y], [soft, hard], uniform_domains([x, y], (low,)))

    assert is_consistent(problem, Assignment({x: low}))
    assert not is_consistent(problem, Assignment({x: low, y: low}))
    assert not is_consistent_with(problem, Assignment({x: low}), y, low)


def test_is_consistent_with_does_not_mutate_assignment():
    x, y = make_variables(2)
    a, b = make_values("A", "B")
    problem = CSPProblem([x, y], [AllDifferentConstraint("diff", [x, y])], uniform_domains([x, y], (a, b)))
    assignment = Assignment({x: a})

    assert is_consistent_with(problem, assignment, y, b)
    assert not assignment.is_assigned(y)


def test_forward_check_prunes_neighbours_without_touching_parent():
    x, y, z = make_variables(3)
    a, b = make_values("A", "B")
    problem = CSPProblem([x, y, z], [AllDifferentConstraint("diff", [x, y])], uniform_domains([x, y, z], (a, b)))
    parent = problem.initial_domains()

    reduced = forward_check(problem, Assignment({x: a}), parent, x, a)
    assert reduced[x] == (a,)
    assert reduced[y] == (b,)
    assert reduced[z] == (a, b)
    assert parent[y] == (a, b)


def test_forward_check_reports_wipeout():
    x, y = make_variables(2)
    (a,) = make_values("A")
    problem = CSPProblem([x, y], [AllDifferentConstraint("diff", [x, y])], uniform_domains([x, y], (a,)))

    assert forward_check(problem, Assignment({x: a}), problem.initial_domains(), x, a) is None


def test_initial_arcs_cover_both_directions():
    x, y = make_variables(2)
    problem = CSPProblem([x, y], [AllDifferentConstraint("diff", [x, y])], uniform_domains([x, y], make_values("A")))
    assert set(initial_arcs(problem)) == {(x, y), (y, x)}


def test_ac3_makes_domains_arc_consistent():
    x, y = make_variables(2)
    one, two, three = _numbers(1, 2, 3)
    less = PredicateConstraint("x_before_y", [x, y], lambda vals: vals[x].payload < vals[y].payload)
    problem = CSPProblem([x, y], [less], uniform_domains([x, y], (one, two, three)))

    reduced = ac3(problem, Assignment(), problem.initial_domains())
    assert reduced[x] == (one, two)
    assert reduced[y] == (two, three)


def test_ac3_propagates_through_chain():
    x, y, z = make_variables(3)
    one, two, three = _numbers(1, 2, 3)
    domains = uniform_domains([x, y, z], (one, two, three))
    constraints = [
        PredicateConstraint("x_lt_y", [x, y], lambda vals: vals[x].payload < vals[y].payload),
        PredicateConstraint("y_lt_z", [y, z], lambda vals: vals[y].payload < vals[z].payload),
    ]
    problem = CSPProblem([x, y, z], constraints, domains)

    reduced = ac3(problem, Assignment(), problem.initial_domains())
    assert reduced == {x: (one,), y: (two,), z: (three,)}


def test_ac3_detects_unsatisfiable_instance():
    x, y = make_variables(2)
    (a,) = make_values("A")
    problem = CSPProblem([x, y], [AllDifferentConstraint("diff", [x, y])], uniform_domains([x, y], (a,)))

    assert ac3(problem, Assignment(), problem.initial_domains()) is None


def test_ac3_fixes_assigned_variables():
    x, y = make_variables(2)
    a, b = make_values("A", "B")
    problem = CSPProblem([x, y], [AllDifferentConstraint("diff", [x, y])], uniform_domains([x, y], (a, b)))

    reduced = ac3(problem, Assignment({x: b}), problem.initial_domains())
    assert reduced == {x: (b,), y: (a,)}
