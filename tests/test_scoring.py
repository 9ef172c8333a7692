# -*- coding: utf-8 -*-
from __future__ import annotations

from conftest import make_values, make_variables, uniform_domains

from timetable_solver.csp.constraints import AllDifferentConstraint, PredicateConstraint, PreferenceConstraint
from timetable_solver.csp.problem import CSPProblem
from timetable_solver.csp.scoring import collect_violations, count_conflicts, is_solution, soft_penalty
from timetable_solver.types import Assignment, ConstraintPriority, Value, ValueType


def _problem():
    x, y = make_variables(2)
    early = Value.create(ValueType.TIME_SLOT, "early", preference=0.0)
    late = Value.create(ValueType.TIME_SLOT, "late", preference=1.0)
    hard = AllDifferentConstraint("diff", [x, y])
    high = PreferenceConstraint("high_pref", [x], threshold=1.0, priority=ConstraintPriority.HIGH)
    low = PreferenceConstraint("low_pref", [y], threshold=1.0)
    problem = CSPProblem([x, y], [hard, high, low], uniform_domains([x, y], (early, late)))
    return problem, (x, y), (early, late)


def test_count_conflicts_only_counts_hard_constraints():
    problem, (x, y), (early, late) = _problem()
    assert count_conflicts(problem, Assignment({x: early, y: early})) == 1.0
    assert count_conflicts(problem, Assignment({x: early, y: late})) == 0.0


def test_soft_penalty_is_weighted_by_priority():
    problem, (x, y), (early, late) = _problem()
    # high_pref: 1.0 * 3, low_pref: 1.0 * 1
    assert soft_penalty(problem, Assignment({x: early, y: early})) == 4.0
    assert soft_penalty(problem, Assignment({x: late, y: early})) == 1.0


def test_collect_violations_lists_hard_and_soft():
    problem, (x, y), (early, late) = _problem()
    violations = collect_violations(problem, Assignment({x: early, y: early}))
    assert [c.name for c, _ in violations] == ["diff", "high_pref", "low_pref"]
    assert all(result.violated for _, result in violations)

    hard_only = collect_violations(problem, Assignment({x: early, y: early}), include_soft=False)
    assert [c.name for c, _ in hard_only] == ["diff"]


def test_is_solution_requires_completeness_and_hard_constraints():
    problem, (x, y), (early, late) = _problem()
    assert not is_solution(problem, Assignment({x: early}))
    assert not is_solution(problem, Assignment({x: early, y: early}))
    # ソフト制約の違反は解であることを妨げない
    assert is_solution(problem, Assignment({x: early, y: late}))


def test_violation_with_zero_score_still_counts_as_a_conflict():
    (x,) = make_variables(1)
    (b,) = make_values("B")
    silent = PredicateConstraint("silent", [x], lambda vals: False, violation_score=0.0)
    partial = PredicateConstraint("partial", [x], lambda vals: False, violation_score=0.25)
    assignment = Assignment({x: b})

    assert count_conflicts(CSPProblem([x], [silent], {x: (b,)}), assignment) == 1.0
    assert count_conflicts(CSPProblem([x], [partial], {x: (b,)}), assignment) == 0.25
    assert not is_solution(CSPProblem([x], [silent], {x: (b,)}), assignment)
