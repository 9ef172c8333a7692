# -*- coding: utf-8 -*-
"""
表形式（pandas.DataFrame / CSV）と CSP の入出力を相互に変換するモジュールです。

候補表の形式（1 行 = 「この変数はこの値を取り得る」）:

    variable_id, value_id [, variable_type, entity_id, variable_label,
                             value_type, value_label, payload, preference]

- variable_id / value_id は必須
- 変数・値の並びは、表に最初に出てきた順を保ちます
- 同じ (variable_id, value_id) が複数回出てきたら最初の行だけ使います
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Tuple, Type, TypeVar, Union

import pandas as pd

from .types import Assignment, Value, ValueType, Variable, VariableType

REQUIRED_COLUMNS = ("variable_id", "value_id")

DEFAULT_VARIABLE_TYPE = VariableType.COURSE_SCHEDULING
DEFAULT_VALUE_TYPE = ValueType.TIME_SLOT

E = TypeVar("E", VariableType, ValueType)


def _cell(row: Dict[str, Any], column: str, default: Any = None) -> Any:
    value = row.get(column, default)
    if value is None:
        return default
    if not isinstance(value, (list, tuple)) and pd.isna(value):
        return default
    return value


def _parse_enum(enum_cls: Type[E], raw: Any, default: E) -> E:
    if raw is None:
        return default
    key = str(raw).strip()
    for member in enum_cls:
        if key == member.value or key.upper() == member.name:
            return member
    raise ValueError(f"Unknown {enum_cls.__name__}: {raw!r}")


def build_problem_inputs(df: pd.DataFrame) -> Tuple[List[Variable], Dict[Variable, List[Value]]]:
    """
    候補表から、変数のリストとドメインを作ります。

    Parameters
    ----------
    df : pandas.DataFrame
        候補表。

    Returns
    -------
    (variables, domains)
        variables は表に出てきた順、domains は 変数 -> 値のリスト。

    Raises
    ------
    ValueError
        必須列が無い場合、または知らない種類名が書かれている場合。
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Candidate table must have columns: {', '.join(missing)}")

    variables: Dict[str, Variable] = {}
    domains: Dict[Variable, Dict[str, Value]] = {}

    for row in df.to_dict("records"):
        var_id = str(row["variable_id"]).strip()
        value_id = str(row["value_id"]).strip()

        var = variables.get(var_id)
        if var is None:
            var = Variable(
                id=var_id,
                type=_parse_enum(VariableType, _cell(row, "variable_type"), DEFAULT_VARIABLE_TYPE),
                entity_id=str(_cell(row, "entity_id", var_id)),
                label=str(_cell(row, "variable_label", var_id)),
            )
            variables[var_id] = var
            domains[var] = {}

        if value_id in domains[var]:
            continue
        domains[var][value_id] = Value(
            id=value_id,
            type=_parse_enum(ValueType, _cell(row, "value_type"), DEFAULT_VALUE_TYPE),
            payload=_cell(row, "payload", value_id),
            label=str(_cell(row, "value_label", value_id)),
            preference=float(_cell(row, "preference", 0.0)),
        )

    return list(variables.values()), {var: list(vals.values()) for var, vals in domains.items()}


def load_candidates_csv(path: Union[str, Path]) -> pd.DataFrame:
    """
    候補表の CSV を読み込みます（UTF-8、BOM 付きでも可）。

    Raises
    ------
    FileNotFoundError
        ファイルが無い場合。
    ValueError
        必須列が無い場合。
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Candidate CSV not found: {p}")

    df = pd.read_csv(p, encoding="utf-8-sig", dtype={"variable_id": str, "value_id": str})

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Candidate CSV must have columns: {', '.join(missing)}")

    df = df.dropna(subset=list(REQUIRED_COLUMNS))
    return df.reset_index(drop=True)


def assignment_to_frame(assignment: Assignment) -> pd.DataFrame:
    """割り当てを 1 行 = 1 変数の DataFrame にします（割り当て順）。"""
    rows = [
        {
            "variable_id": var.id,
            "variable_type": var.type.value,
            "entity_id": var.entity_id,
            "value_id": value.id,
            "value_type": value.type.value,
            "value_label": value.label,
            "payload": value.payload,
            "preference": value.preference,
        }
        for var, value in assignment.items()
    ]
    columns = [
        "variable_id", "variable_type", "entity_id",
        "value_id", "value_type", "value_label", "payload", "preference",
    ]
    return pd.DataFrame(rows, columns=columns)
