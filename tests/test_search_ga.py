# -*- coding: utf-8 -*-
from __future__ import annotations

import random

from conftest import make_values, make_variables, path_coloring_problem, uniform_domains

from timetable_solver.csp.constraints import PredicateConstraint
from timetable_solver.csp.problem import CSPProblem
from timetable_solver.csp.search_ga import Individual, crossover, genetic_algorithm, mutate, tournament_selection
from timetable_solver.csp.search_tabu import tabu_search
from timetable_solver.types import Assignment, SearchStats


def test_crossover_takes_each_value_from_a_parent(rng):
    problem = path_coloring_problem(6, colors=("red", "green", "blue"))
    red, green, _blue = problem.domains[problem.variables[0]]
    left = Assignment({var: red for var in problem.variables})
    right = Assignment({var: green for var in problem.variables})

    child = crossover(problem, left, right, rng)

    assert child.is_complete(problem.variables)
    assert set(child.values()) <= {red, green}
    assert left == Assignment({var: red for var in problem.variables})


def test_mutate_changes_every_variable_with_a_choice(rng):
    v = make_variables(3)
    a, b = make_values("A", "B")
    problem = CSPProblem(v, [], {v[0]: (a, b), v[1]: (a, b), v[2]: (a,)})
    assignment = Assignment({var: a for var in v})

    mutate(problem, assignment, problem.initial_domains(), 1.0, rng)

    assert assignment[v[0]] == b
    assert assignment[v[1]] == b
    assert assignment[v[2]] == a


def test_tournament_selection_returns_fewest_conflicts(rng):
    population = [Individual(Assignment(), float(c)) for c in (3, 1, 2)]
    assert tournament_selection(population, rng, tournament_size=3).conflicts == 1.0


def test_genetic_algorithm_stops_early_when_stuck():
    v = make_variables(2)
    problem = CSPProblem(
        v,
        [PredicateConstraint("never", v, lambda vals: False)],
        uniform_domains(v, make_values("A", "B")),
    )
    stats = SearchStats()

    found = genetic_algorithm(
        problem, stats, rng=random.Random(3),
        population_size=4, generations=100, elite_size=1, stall_generations=5,
    )

    assert found is None
    # 初期個体 4 + 5 世代 x 子 3
    assert stats.nodes_explored == 4 + 5 * 3


def test_tabu_search_gives_up_when_no_move_is_left():
    (x,) = make_variables(1)
    a, b = make_values("A", "B")
    problem = CSPProblem([x], [PredicateConstraint("never", [x], lambda vals: False)], {x: (a, b)})
    stats = SearchStats()

    # 1 手目で値を変えると、元の値に戻す手は tenure のあいだタブーになる
    found = tabu_search(problem, stats, rng=random.Random(1), tenure=5, max_iterations=100)

    assert found is None
    assert stats.nodes_explored == 2
