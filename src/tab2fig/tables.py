"""Turn supported inputs into a ``pandas.DataFrame``.

``as_table`` is a single-dispatch function; register additional input types
with ``@as_table.register``.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import singledispatch
from typing import Any

import numpy as np
import pandas as pd

from tab2fig.errors import UsageError


@singledispatch
def as_table(x: Any) -> pd.DataFrame:
    msg = (
        f"Cannot build a table from {type(x).__name__}; "
        "pass a DataFrame, dict, list of records or array"
    )
    raise UsageError(msg)


def _has_meaningful_index(frame: pd.DataFrame) -> bool:
    index = frame.index
    if isinstance(index, pd.MultiIndex):
        return True
    if index.name is not None:
        return True
    return not (isinstance(index, pd.RangeIndex) and index.start == 0 and index.step == 1)


@as_table.register
def _(x: pd.DataFrame) -> pd.DataFrame:
    frame = x.copy()
    if not _has_meaningful_index(frame):
        return frame
    if isinstance(frame.index, pd.MultiIndex):
        return frame.reset_index()
    name = frame.index.name or "rowname"
    frame.index.name = name
    return frame.reset_index()


@as_table.register
def _(x: pd.Series) -> pd.DataFrame:
    return as_table(x.to_frame(name=x.name if x.name is not None else "x"))


@as_table.register
def _(x: dict) -> pd.DataFrame:
    try:
        return pd.DataFrame(x)
    except ValueError as exc:
        msg = f"Cannot build a table from dict: {exc}"
        raise UsageError(msg) from exc


@as_table.register
def _(x: list) -> pd.DataFrame:
    if not all(isinstance(record, Mapping) for record in x):
        msg = "Lists must contain mappings (one per row)"
        raise UsageError(msg)
    return pd.DataFrame.from_records(x)


@as_table.register
def _(x: np.ndarray) -> pd.DataFrame:
    if x.ndim == 1:
        return pd.DataFrame({"x": x})
    if x.ndim != 2:
        msg = f"Arrays must be 1-D or 2-D, got {x.ndim}-D"
        raise UsageError(msg)
    return pd.DataFrame(x, columns=[f"V{j + 1}" for j in range(x.shape[1])])
