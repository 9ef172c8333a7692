# -*- coding: utf-8 -*-
"""
Genetic Algorithm（遺伝的アルゴリズム）による探索を行うモジュールです。

GAの特徴:
- 複数の完全な割り当て（個体）を同時に進化させる
- 交叉と突然変異で新しい個体を生成
- 上位の個体（エリート）はそのまま次の世代に残す

個体の良さは conflict 数（HARD 制約の違反スコア合計）で測り、小さいほど良い個体です。
conflict 数 0 の個体が現れたら成功、世代数を使い切るか改善が止まったら失敗です。
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional

from ..config import (
    GA_CROSSOVER_RATE,
    GA_ELITE_SIZE,
    GA_GENERATIONS,
    GA_MUTATION_RATE,
    GA_POPULATION_SIZE,
    GA_STALL_GENERATIONS,
    GA_TOURNAMENT_SIZE,
)
from ..logging_utils import get_logger
from ..types import Assignment, SearchStats
from .constraints import Domains
from .problem import CSPProblem
from .scoring import count_conflicts
from .search_mc import random_assignment

logger = get_logger()


@dataclass
class Individual:
    """遺伝的アルゴリズムの個体"""
    assignment: Assignment
    conflicts: float


def create_initial_population(
    problem: CSPProblem,
    domains: Domains,
    rng: random.Random,
    population_size: int,
) -> Optional[List[Individual]]:
    """
    ランダムな完全割り当てから初期個体群を作ります（conflict 数の小さい順）。
    空のドメインがあれば None。
    """
    population = []
    for _ in range(population_size):
        assignment = random_assignment(problem, domains, rng)
        if assignment is None:
            return None
        population.append(Individual(assignment, count_conflicts(problem, assignment)))
    population.sort(key=lambda ind: ind.conflicts)
    return population


def tournament_selection(
    population: List[Individual],
    rng: random.Random,
    tournament_size: int = GA_TOURNAMENT_SIZE,
) -> Individual:
    """
    トーナメント選択: ランダムに選んだ個体の中で最良のものを返す
    """
    tournament = rng.sample(population, min(tournament_size, len(population)))
    return min(tournament, key=lambda ind: ind.conflicts)


def crossover(
    problem: CSPProblem,
    parent1: Assignment,
    parent2: Assignment,
    rng: random.Random,
) -> Assignment:
    """
    一様交叉: 変数ごとに 50% の確率でどちらかの親の値を受け継ぐ
    """
    child = Assignment()
    for var in problem.variables:
        source = parent1 if rng.random() < 0.5 else parent2
        child.assign(var, source[var])
    return child


def mutate(
    problem: CSPProblem,
    assignment: Assignment,
    domains: Domains,
    mutation_rate: float,
    rng: random.Random,
) -> None:
    """
    突然変異: 各変数を mutation_rate の確率でドメイン内の別の値に変える（インプレース）
    """
    for var in problem.variables:
        if rng.random() >= mutation_rate:
            continue
        candidates = [v for v in domains[var] if v != assignment[var]]
        if candidates:
            assignment.assign(var, rng.choice(candidates))


def genetic_algorithm(
    problem: CSPProblem,
    stats: SearchStats,
    rng: Optional[random.Random] = None,
    domains: Optional[Domains] = None,
    population_size: int = GA_POPULATION_SIZE,
    generations: int = GA_GENERATIONS,
    mutation_rate: float = GA_MUTATION_RATE,
    crossover_rate: float = GA_CROSSOVER_RATE,
    elite_size: int = GA_ELITE_SIZE,
    tournament_size: int = GA_TOURNAMENT_SIZE,
    stall_generations: int = GA_STALL_GENERATIONS,
) -> Optional[Assignment]:
    """
    Genetic Algorithm によって conflict 数 0 の割り当てを探索します。

    評価した個体 1 つにつき nodes_explored を 1 増やします。

    Returns
    -------
    Assignment or None
        HARD 制約をすべて満たす完全な割り当て。見つからなければ None。
    """
    rng = rng or random.Random()
    domains = problem.initial_domains() if domains is None else domains
    population_size = max(population_size, 1)

    population = create_initial_population(problem, domains, rng, population_size)
    if population is None:
        logger.info("[ga] Empty domain found; no complete assignment exists")
        return None
    stats.nodes_explored += len(population)

    best = population[0]
    no_improvement_count = 0

    logger.debug(
        "[ga] Population=%d, generations=%d, best initial conflicts=%.3f",
        population_size, generations, best.conflicts,
    )

    for generation in range(generations):
        if best.conflicts == 0:
            break

        # エリート保存
        new_population = list(population[:elite_size])

        while len(new_population) < population_size:
            parent1 = tournament_selection(population, rng, tournament_size)
            if rng.random() < crossover_rate:
                parent2 = tournament_selection(population, rng, tournament_size)
                child = crossover(problem, parent1.assignment, parent2.assignment, rng)
            else:
                child = parent1.assignment.copy()
            mutate(problem, child, domains, mutation_rate, rng)

            stats.nodes_explored += 1
            new_population.append(Individual(child, count_conflicts(problem, child)))

        population = sorted(new_population, key=lambda ind: ind.conflicts)

        # ベスト更新チェック
        if population[0].conflicts < best.conflicts:
            best = population[0]
            no_improvement_count = 0
        else:
            no_improvement_count += 1

        if (generation + 1) % 10 == 0:
            logger.info(
                "[ga] Generation %d/%d: best=%.3f, avg=%.3f, no_improvement=%d",
                generation + 1, generations,
                population[0].conflicts,
                sum(ind.conflicts for ind in population) / len(population),
                no_improvement_count,
            )

        if no_improvement_count >= stall_generations:
            logger.info("[ga] Early stopping: no improvement for %d generations", stall_generations)
            break

    if best.conflicts == 0:
        logger.debug("[ga] Solved")
        return best.assignment

    logger.info("[ga] No solution found (best conflicts=%.3f)", best.conflicts)
    return None
