# -*- coding: utf-8 -*-
from __future__ import annotations

import threading

import pytest
from conftest import make_values, make_variables, uniform_domains

from timetable_solver.csp.constraints import AllDifferentConstraint
from timetable_solver.csp.problem import CSPProblem
from timetable_solver.optimize.cache import SolutionCache, problem_fingerprint
from timetable_solver.types import Assignment


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _assignment(tag: str) -> Assignment:
    (var,) = make_variables(1)
    (value,) = make_values(tag)
    return Assignment({var: value})


def test_get_returns_copy_and_counts_hits():
    cache = SolutionCache(max_size=2)
    stored = _assignment("A")
    cache.put("k", stored)

    first = cache.get("k")
    assert first == stored
    first.unassign(first.variables()[0])
    assert cache.get("k") == stored
    assert cache.get("missing") is None
    assert (cache.hits, cache.misses) == (2, 1)


def test_least_recently_used_entry_is_evicted():
    cache = SolutionCache(max_size=2)
    cache.put("a", _assignment("A"))
    cache.put("b", _assignment("B"))
    assert cache.get("a") is not None

    cache.put("c", _assignment("C"))

    assert "b" not in cache
    assert "a" in cache and "c" in cache
    assert len(cache) == 2


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = SolutionCache(max_size=10, ttl_seconds=3600, clock=clock)
    cache.put("k", _assignment("A"))

    clock.now = 3600.0
    assert cache.get("k") is not None
    clock.now = 3600.5
    assert cache.get("k") is None
    assert len(cache) == 0


def test_invalidate_and_clear():
    cache = SolutionCache()
    cache.put("a", _assignment("A"))
    cache.put("b", _assignment("B"))

    assert cache.invalidate("a")
    assert not cache.invalidate("a")
    cache.clear()
    assert len(cache) == 0


def test_max_size_must_be_positive():
    with pytest.raises(ValueError):
        SolutionCache(max_size=0)


def test_concurrent_puts_respect_capacity():
    cache = SolutionCache(max_size=50)

    def writer(offset: int) -> None:
        for i in range(200):
            cache.put(f"{offset}-{i}", _assignment(str(i)))
            cache.get(f"{offset}-{i // 2}")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 50


def test_fingerprint_distinguishes_same_shaped_problems():
    x, y = make_variables(2)
    a, b = make_values("A", "B")
    problem = CSPProblem([x, y], [AllDifferentConstraint("diff", [x, y])], uniform_domains([x, y], (a, b)))
    same = CSPProblem([x, y], [AllDifferentConstraint("diff", [x, y])], uniform_domains([x, y], (a, b)))
    other_domain = CSPProblem([x, y], [AllDifferentConstraint("diff", [x, y])], uniform_domains([x, y], (a,)))
    other_name = CSPProblem([x, y], [AllDifferentConstraint("rooms", [x, y])], uniform_domains([x, y], (a, b)))

    key = problem_fingerprint(problem, "fc")
    assert key == problem_fingerprint(same, "fc")
    assert key != problem_fingerprint(problem, "ac3")
    assert key != problem_fingerprint(other_domain, "fc")
    assert key != problem_fingerprint(other_name, "fc")
