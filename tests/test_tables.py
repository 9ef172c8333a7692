# -*- coding: utf-8 -*-
from __future__ import annotations

import pandas as pd
import pytest

from timetable_solver.csp.constraints import AllDifferentConstraint
from timetable_solver.csp.engine import solve_problem
from timetable_solver.csp.problem import CSPProblem
from timetable_solver.tables import assignment_to_frame, build_problem_inputs, load_candidates_csv
from timetable_solver.types import ValueType, VariableType


def _candidates() -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"variable_id": "math_1a", "value_id": "mon1", "variable_type": "time_slot_assignment", "preference": 1.0},
            {"variable_id": "math_1a", "value_id": "mon2", "variable_type": "time_slot_assignment", "preference": 0.5},
            {"variable_id": "art_1a", "value_id": "mon1", "variable_type": "TIME_SLOT_ASSIGNMENT", "preference": None},
            {"variable_id": "math_1a", "value_id": "mon1", "variable_type": "time_slot_assignment", "preference": 0.0},
        ]
    )


def test_build_problem_inputs_keeps_first_seen_order():
    variables, domains = build_problem_inputs(_candidates())

    assert [v.id for v in variables] == ["math_1a", "art_1a"]
    assert all(v.type is VariableType.TIME_SLOT_ASSIGNMENT for v in variables)
    math, art = variables
    assert [value.id for value in domains[math]] == ["mon1", "mon2"]
    assert domains[math][0].preference == 1.0
    assert domains[art][0].preference == 0.0
    assert domains[art][0].type is ValueType.TIME_SLOT


def test_build_problem_inputs_feeds_the_solver():
    variables, domains = build_problem_inputs(_candidates())
    problem = CSPProblem(variables, [AllDifferentConstraint("one_lesson_per_slot", variables)], domains)

    result = solve_problem(problem, "fc")
    assert result.found
    frame = assignment_to_frame(result.assignment)
    assert dict(zip(frame["variable_id"], frame["value_id"])) == {"art_1a": "mon1", "math_1a": "mon2"}


def test_build_problem_inputs_requires_columns():
    with pytest.raises(ValueError):
        build_problem_inputs(pd.DataFrame({"variable_id": ["x"]}))


def test_build_problem_inputs_rejects_unknown_type_names():
    df = pd.DataFrame([{"variable_id": "x", "value_id": "y", "value_type": "spaceship"}])
    with pytest.raises(ValueError):
        build_problem_inputs(df)


def test_load_candidates_csv(tmp_path):
    path = tmp_path / "candidates.csv"
    path.write_text("variable_id,value_id,value_type\n001,room_a,classroom\n001,room_b,classroom\n", encoding="utf-8-sig")

    df = load_candidates_csv(path)
    variables, domains = build_problem_inputs(df)

    assert [v.id for v in variables] == ["001"]
    assert [value.id for value in domains[variables[0]]] == ["room_a", "room_b"]
    assert domains[variables[0]][0].type is ValueType.CLASSROOM


def test_load_candidates_csv_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_candidates_csv(tmp_path / "missing.csv")

    bad = tmp_path / "bad.csv"
    bad.write_text("slot,teacher\n1,a\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_candidates_csv(bad)


def test_assignment_to_frame_columns():
    variables, domains = build_problem_inputs(_candidates())
    problem = CSPProblem(variables, [], domains)
    frame = assignment_to_frame(solve_problem(problem, "fc").assignment)

    assert list(frame.columns) == [
        "variable_id", "variable_type", "entity_id",
        "value_id", "value_type", "value_label", "payload", "preference",
    ]
    assert len(frame) == 2
    assert set(frame["variable_type"]) == {"time_slot_assignment"}
