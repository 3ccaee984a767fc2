"""
Representations of "missing" and how to turn coded sentinels into real NaN.
"""

import logging
from typing import Callable, Dict, Iterable, List

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

NA_STRINGS = ("", "NA", "N/A", "na", "n/a", "NaN", "nan", "null", "NULL", "None", "?", "-")
NA_NUMBERS = (-99, -999, -9999, 999, 9999)


def missing_value_properties() -> pd.DataFrame:
    """
    Tabulate how each Python/pandas missing marker behaves.

    Returns
    -------
    pd.DataFrame
        One row per marker (``np.nan``, ``None``, ``pd.NA``, ``pd.NaT``)
    """
    markers = {
        "np.nan": np.nan,
        "None": None,
        "pd.NA": pd.NA,
        "pd.NaT": pd.NaT,
    }

    rows = []
    for name, value in markers.items():
        rows.append({
            "repr": name,
            "type": type(value).__name__,
            "isna": bool(pd.isna(value)),
            "equals_itself": _safe_bool(lambda: value == value),
            "plus_one": _safe_repr(lambda: value + 1),
            "in_float_series_dtype": str(pd.Series([1.0, value]).dtype),
            "in_object_series_dtype": str(pd.Series(["a", value]).dtype),
        })
    return pd.DataFrame(rows)


def _safe_bool(func: Callable):
    try:
        result = func()
    except (TypeError, ValueError):
        return "error"
    # pd.NA == pd.NA is pd.NA, which has no truth value
    if result is pd.NA:
        return "NA"
    return bool(result)


def _safe_repr(func: Callable) -> str:
    try:
        return repr(func())
    except (TypeError, ValueError) as e:
        return f"{type(e).__name__}: {e}"


def propagation_demo(values: Iterable[float]) -> Dict[str, float]:
    """Show how missing values propagate through aggregation."""
    series = pd.Series(list(values), dtype=float)
    return {
        "n": int(series.size),
        "n_missing": int(series.isna().sum()),
        "sum_skipna": float(series.sum()),
        "sum_keepna": float(series.sum(skipna=False)),
        "mean_skipna": float(series.mean()),
        "mean_keepna": float(series.mean(skipna=False)),
        "numpy_sum": float(np.sum(series.to_numpy())),
        "numpy_nansum": float(np.nansum(series.to_numpy())),
    }


def detect_sentinels(df: pd.DataFrame,
                     numbers: Iterable = NA_NUMBERS,
                     strings: Iterable = NA_STRINGS,
                     zero_columns: Iterable[str] = None) -> pd.DataFrame:
    """
    Count suspicious in-band values that probably encode "missing".

    Zeros are only flagged in ``zero_columns``, since zero is a legitimate
    value for most variables (number of pregnancies, for instance).

    Parameters
    ----------
    df : pd.DataFrame
        Data to scan
    numbers : iterable
        Numeric sentinel candidates
    strings : iterable
        Text sentinel candidates (matched after stripping whitespace)
    zero_columns : iterable of str, optional
        Columns in which a zero means "not measured"

    Returns
    -------
    pd.DataFrame
        Columns ``column, sentinel, count`` for every sentinel that occurs
    """
    zero_columns = set(zero_columns or [])
    missing_cols = zero_columns - set(df.columns)
    if missing_cols:
        raise KeyError(f"Columns not found: {sorted(missing_cols)}")

    rows = []
    for col in df.columns:
        series = df[col]
        if pd.api.types.is_numeric_dtype(series):
            candidates = list(numbers)
            if col in zero_columns:
                candidates = [0] + candidates
            for value in candidates:
                count = int((series == value).sum())
                if count:
                    rows.append({"column": col, "sentinel": value, "count": count})
        elif pd.api.types.is_object_dtype(series) or pd.api.types.is_string_dtype(series):
            stripped = series.dropna().astype(str).str.strip()
            for value in strings:
                count = int((stripped == value).sum())
                if count:
                    rows.append({"column": col, "sentinel": value, "count": count})

    return pd.DataFrame(rows, columns=["column", "sentinel", "count"])


def replace_with_na(df: pd.DataFrame, replace: Dict[str, object]) -> pd.DataFrame:
    """
    Replace specific values in specific columns with NaN.

    Parameters
    ----------
    df : pd.DataFrame
        Input data (not modified)
    replace : dict
        Mapping column -> value or list of values to treat as missing

    Returns
    -------
    pd.DataFrame
        Copy of ``df`` with the sentinels set to NaN
    """
    unknown = [col for col in replace if col not in df.columns]
    if unknown:
        raise KeyError(f"Columns not found: {unknown}")

    out = df.copy()
    for col, values in replace.items():
        values = _as_list(values)
        hits = out[col].isin(values)
        if hits.any():
            logger.debug(f"{col}: {int(hits.sum())} sentinel values replaced")
        out[col] = out[col].mask(hits)
    return out


def replace_with_na_all(df: pd.DataFrame, values=None,
                        condition: Callable[[pd.Series], pd.Series] = None) -> pd.DataFrame:
    """
    Replace values with NaN in every column.

    Either ``values`` (a value or list of values) or ``condition`` (a callable
    returning a boolean mask for a column) must be given.
    """
    if values is None and condition is None:
        raise ValueError("Provide either values or condition.")

    out = df.copy()
    for col in out.columns:
        hits = pd.Series(False, index=out.index)
        if values is not None:
            hits |= out[col].isin(_as_list(values))
        if condition is not None:
            try:
                hits |= condition(out[col]).fillna(False).astype(bool)
            except TypeError:
                # condition does not apply to this dtype (e.g. a numeric test on text)
                logger.debug(f"Condition skipped for column {col} ({out[col].dtype})")
        out[col] = out[col].mask(hits)
    return out


def zeros_to_na(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    """Treat zeros as missing in measurement columns where zero is impossible."""
    return replace_with_na(df, {col: 0 for col in columns})


def _as_list(values) -> List:
    if isinstance(values, (list, tuple, set)):
        return list(values)
    return [values]
