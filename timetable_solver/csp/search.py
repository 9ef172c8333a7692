# -*- coding: utf-8 -*-
"""
バックトラック探索を行うモジュールです。

再帰ではなく、明示的なスタック（フレームの列）で深さ優先探索を行います。
変数が数千個あっても Python の再帰上限に引っかかりません。

ざっくり流れ
------------
1. ノードを開く（nodes_explored を 1 増やす）
   - 割り当てが完全ならそれが解（最初に見つかった解を返す）
   - AC-3 モードなら、ここで AC-3 を実行してドメインを縮める（空になれば失敗）
   - MRV で次に割り当てる変数を選び、LCV で値の順番を決めてフレームにする
2. スタック先頭のフレームから次の値を取り出し、整合性をチェック
3. 整合的なら割り当てをコピーして値を入れ、
   - forward checking モードなら制約を共有する変数のドメインを縮める
     （domain wipeout ならその値は失敗）
   - 子ノードを開いてスタックに積む
4. 値を試し尽くしたフレームはスタックから降ろし、親の値が失敗したとして
   バックトラック回数を 1 増やす
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from ..config import PROGRESS_LOG_INTERVAL
from ..logging_utils import get_logger
from ..types import Assignment, SearchStats, Value, Variable
from .constraints import Domains
from .problem import CSPProblem
from .propagation import ac3, forward_check, is_consistent_with

logger = get_logger()


@dataclass
class SearchContext:
    """
    探索全体で共有する情報をまとめたクラスです。
    """

    problem: CSPProblem
    stats: SearchStats
    use_ac3: bool = False


@dataclass
class _Frame:
    """スタック上の 1 ノード（どの変数にどの値を試している途中か）。"""

    assignment: Assignment
    domains: Domains
    variable: Variable
    values: List[Value]
    index: int = 0


def choose_next_var(
    problem: CSPProblem,
    assignment: Assignment,
    domains: Domains,
) -> Optional[Variable]:
    """
    次に割り当てる変数を選びます。

    MRV（Minimum Remaining Values）:
    - まだ割り当てられていない変数のうち、現在のドメインが最も小さいもの
    - 同じなら、problem.variables の並びで先に出てくるもの
    （割り当て済みの変数はドメインサイズ 1 とみなされ、選ばれることはありません）
    """
    best: Optional[Variable] = None
    best_size = -1
    for var in problem.variables:
        if assignment.is_assigned(var):
            continue
        size = len(domains[var])
        if best is None or size < best_size:
            best = var
            best_size = size
            if size == 0:
                break
    return best


def order_values_lcv(
    problem: CSPProblem,
    assignment: Assignment,
    variable: Variable,
    values: Sequence[Value],
) -> List[Value]:
    """
    LCV（Least Constraining Value）で値の順序付けを行う。

    ヒューリスティック：
      - 各値について「制約を共有している未割り当ての他変数の数」を数え、
        少ない順に並べる。
      - 実際のドメイン縮小はシミュレーションしない近似なので、
        同じ変数の値はすべて同じ数になり、結果として入力順が保たれる（安定ソート）。
    """
    sharing = sum(
        1 for other in problem.neighbors(variable) if not assignment.is_assigned(other)
    )
    scored = [(sharing, i, value) for i, value in enumerate(values)]
    scored.sort(key=lambda t: (t[0], t[1]))
    return [value for _, _, value in scored]


def _open_node(
    ctx: SearchContext,
    assignment: Assignment,
    domains: Domains,
) -> Union[Assignment, _Frame, None]:
    """
    ノードを開きます。

    Returns
    -------
    Assignment : 完全な割り当て（解）
    _Frame     : これから値を試すフレーム
    None       : このノードは失敗（AC-3 でのドメイン空など）
    """
    problem = ctx.problem
    ctx.stats.nodes_explored += 1

    if ctx.stats.nodes_explored % PROGRESS_LOG_INTERVAL == 0:
        logger.info(
            "[search] nodes_explored = %d, backtracks = %d, depth = %d",
            ctx.stats.nodes_explored,
            ctx.stats.backtracks,
            len(assignment),
        )

    if assignment.is_complete(problem.variables):
        return assignment

    if ctx.use_ac3:
        reduced = ac3(problem, assignment, domains)
        if reduced is None:
            logger.debug("[search] AC-3 wipeout at depth %d", len(assignment))
            return None
        domains = reduced

    var = choose_next_var(problem, assignment, domains)
    if var is None:
        return None

    values = order_values_lcv(problem, assignment, var, domains[var])
    return _Frame(assignment=assignment, domains=domains, variable=var, values=values)


def backtracking_search(ctx: SearchContext) -> Optional[Assignment]:
    """
    バックトラック探索のエントリポイント。

    ctx.use_ac3 が False なら forward checking 版、True なら AC-3 版として動きます。
    AC-3 版では値を入れた後の追加の絞り込みは行わず、次のノードを開くときの
    AC-3 に任せます。

    Returns
    -------
    Assignment or None
        最初に見つかった完全な割り当て。解が無ければ None。
    """
    problem = ctx.problem
    opened = _open_node(ctx, Assignment(), problem.initial_domains())
    if opened is None or isinstance(opened, Assignment):
        return opened

    stack: List[_Frame] = [opened]
    while stack:
        frame = stack[-1]

        if frame.index >= len(frame.values):
            # この変数の値を試し尽くした → 親の値は失敗
            stack.pop()
            if stack:
                ctx.stats.backtracks += 1
            continue

        value = frame.values[frame.index]
        frame.index += 1

        if not is_consistent_with(problem, frame.assignment, frame.variable, value):
            continue

        child = frame.assignment.copy()
        child.assign(frame.variable, value)

        if ctx.use_ac3:
            child_domains: Optional[Domains] = dict(frame.domains)
            child_domains[frame.variable] = (value,)
        else:
            child_domains = forward_check(problem, child, frame.domains, frame.variable, value)
            if child_domains is None:
                # domain wipeout → 次の値へ
                ctx.stats.backtracks += 1
                continue

        opened = _open_node(ctx, child, child_domains)
        if isinstance(opened, Assignment):
            return opened
        if opened is None:
            ctx.stats.backtracks += 1
            continue
        stack.append(opened)

    return None
