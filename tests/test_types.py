# -*- coding: utf-8 -*-
from __future__ import annotations

import pytest

from timetable_solver.types import (
    Assignment,
    AssignmentContext,
    ConstraintPriority,
    ConstraintResult,
    SearchStats,
    SolveResult,
    SolvingStrategy,
    Value,
    ValueType,
    Variable,
    VariableType,
)


class TeacherLoad(AssignmentContext):
    def __init__(self) -> None:
        self.lessons = {}


def test_variable_create_derives_id_and_equality_by_id():
    var = Variable.create(VariableType.TEACHER_ASSIGNMENT, "section3", "Teacher for section 3")
    assert var.id == "TEACHER_ASSIGNMENT_section3"
    assert var.entity_id == "section3"
    assert var.label == "Teacher for section 3"

    same_id = Variable(id=var.id, type=VariableType.ROOM_ALLOCATION)
    assert var == same_id
    assert hash(var) == hash(same_id)
    assert len({var, same_id}) == 1


def test_value_equality_uses_id_and_payload():
    a = Value.create(ValueType.TEACHER, "A", label="Teacher A")
    assert a.id == "TEACHER_A"
    assert a.label == "Teacher A"
    assert a == Value(id="TEACHER_A", type=ValueType.TEACHER, payload="A")
    assert a != Value(id="TEACHER_A", type=ValueType.TEACHER, payload="B")


def test_constraint_priority_levels():
    assert ConstraintPriority.HARD.is_hard
    assert ConstraintPriority.LOW.is_soft
    assert ConstraintPriority.HARD.is_higher_than(ConstraintPriority.HIGH)
    assert not ConstraintPriority.LOW.is_higher_than(ConstraintPriority.MEDIUM)
    assert [p.level for p in ConstraintPriority] == [1, 2, 3, 4]


def test_constraint_result_factories():
    ok = ConstraintResult.success()
    assert ok.satisfied and ok.violation_score == 0.0 and not ok.violated

    bad = ConstraintResult.violation("double booked", 2.0, ["room1"])
    assert bad.violated
    assert bad.affected_entities == ("room1",)

    widened = bad.with_affected_entity("room2").with_higher_score(5.0)
    assert widened.affected_entities == ("room1", "room2")
    assert widened.violation_score == 5.0
    assert bad.with_higher_score(1.0).violation_score == 2.0


def test_constraint_result_rejects_negative_score():
    with pytest.raises(ValueError):
        ConstraintResult(False, "broken", -1.0)


def test_solving_strategy_parse():
    assert SolvingStrategy.parse("fc") is SolvingStrategy.BACKTRACKING_FORWARD_CHECKING
    assert SolvingStrategy.parse("ac3") is SolvingStrategy.BACKTRACKING_AC3
    assert SolvingStrategy.parse("MIN_CONFLICTS") is SolvingStrategy.MIN_CONFLICTS
    assert SolvingStrategy.parse(SolvingStrategy.SIMULATED_ANNEALING) is SolvingStrategy.SIMULATED_ANNEALING

    with pytest.raises(ValueError) as exc:
        SolvingStrategy.parse("genetic")
    assert "min_conflicts" in str(exc.value)


def test_assignment_copy_is_independent():
    x = Variable.create(VariableType.TIME_SLOT_ASSIGNMENT, "x")
    y = Variable.create(VariableType.TIME_SLOT_ASSIGNMENT, "y")
    a = Value.create(ValueType.TIME_SLOT, "mon1")
    b = Value.create(ValueType.TIME_SLOT, "mon2")

    original = Assignment()
    original.assign(x, a)
    load = TeacherLoad()
    load.lessons["t1"] = 1
    original.set_context(load)

    clone = original.copy()
    clone.assign(y, b)
    clone.assign(x, b)
    clone.get_context(TeacherLoad).lessons["t1"] = 2

    assert original[x] == a
    assert not original.is_assigned(y)
    assert original.get_context(TeacherLoad).lessons["t1"] == 1
    assert clone.is_complete([x, y])
    assert len(clone) == 2 and y in clone


def test_assignment_update_and_order():
    vars_ = [Variable.create(VariableType.TIME_SLOT_ASSIGNMENT, str(i)) for i in range(3)]
    val = Value.create(ValueType.TIME_SLOT, "p1")

    left = Assignment({vars_[0]: val})
    right = Assignment({vars_[2]: val, vars_[1]: val})
    left.update(right)

    assert left.variables() == [vars_[0], vars_[2], vars_[1]]
    assert left.as_dict() == {v: val for v in vars_}
    assert left.get(Variable.create(VariableType.TIME_SLOT_ASSIGNMENT, "9")) is None


def test_search_stats_summary_and_absorb():
    stats = SearchStats(nodes_explored=3, backtracks=1, started_at=0.0, finished_at=0.0125)
    assert stats.summary() == "Nodes: 3, Backtracks: 1, Time: 12ms"

    other = SearchStats(nodes_explored=4, backtracks=2)
    stats.absorb(other)
    assert (stats.nodes_explored, stats.backtracks) == (7, 3)

    stats.start()
    assert (stats.nodes_explored, stats.backtracks) == (0, 0)


def test_solve_result_found():
    assert not SolveResult(assignment=None).found
    assert SolveResult(assignment=Assignment()).found
