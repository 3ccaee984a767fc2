"""
Numeric summaries of missingness and the shadow ("nabular") representation.
"""

from typing import List, Tuple, Union

import numpy as np
import pandas as pd

Table = Union[pd.DataFrame, pd.Series]

SHADOW_SUFFIX = "_NA"
SHADOW_LEVELS = ["!NA", "NA"]


def n_miss(data: Table) -> int:
    """Total number of missing values."""
    return int(data.isna().to_numpy().sum())


def n_complete(data: Table) -> int:
    """Total number of observed values."""
    return int(data.size - n_miss(data))


def prop_miss(data: Table) -> float:
    """Proportion of missing values (0.0 for empty input)."""
    if data.size == 0:
        return 0.0
    return n_miss(data) / data.size


def prop_complete(data: Table) -> float:
    if data.size == 0:
        return 0.0
    return n_complete(data) / data.size


def pct_miss(data: Table) -> float:
    return 100 * prop_miss(data)


def pct_complete(data: Table) -> float:
    return 100 * prop_complete(data)


def miss_var_summary(df: pd.DataFrame) -> pd.DataFrame:
    """
    Number and percentage of missing values per variable.

    Returns
    -------
    pd.DataFrame
        Columns ``variable, n_miss, pct_miss``, most-missing first
    """
    counts = df.isna().sum()
    total = len(df)
    table = pd.DataFrame({
        'variable': counts.index,
        'n_miss': counts.to_numpy(dtype=int),
        'pct_miss': (counts.to_numpy() / total * 100) if total else np.zeros(len(counts)),
    })
    return table.sort_values('n_miss', ascending=False, kind='stable').reset_index(drop=True)


def miss_case_summary(df: pd.DataFrame) -> pd.DataFrame:
    """
    Number and percentage of missing values per case (row).

    Returns
    -------
    pd.DataFrame
        Columns ``case, n_miss, pct_miss``, most-missing first
    """
    counts = df.isna().sum(axis=1)
    n_vars = df.shape[1]
    table = pd.DataFrame({
        'case': counts.index,
        'n_miss': counts.to_numpy(dtype=int),
        'pct_miss': (counts.to_numpy() / n_vars * 100) if n_vars else np.zeros(len(counts)),
    })
    return table.sort_values('n_miss', ascending=False, kind='stable').reset_index(drop=True)


def miss_var_table(df: pd.DataFrame) -> pd.DataFrame:
    """How many variables have 0, 1, 2, ... missing values."""
    counts = df.isna().sum().value_counts().sort_index()
    n_vars = df.shape[1]
    return pd.DataFrame({
        'n_miss_in_var': counts.index.astype(int),
        'n_vars': counts.to_numpy(dtype=int),
        'pct_vars': counts.to_numpy() / n_vars * 100 if n_vars else [],
    })


def miss_case_table(df: pd.DataFrame) -> pd.DataFrame:
    """How many cases have 0, 1, 2, ... missing values."""
    counts = df.isna().sum(axis=1).value_counts().sort_index()
    n_cases = len(df)
    return pd.DataFrame({
        'n_miss_in_case': counts.index.astype(int),
        'n_cases': counts.to_numpy(dtype=int),
        'pct_cases': counts.to_numpy() / n_cases * 100 if n_cases else [],
    })


PATTERN_COLUMNS = ('count', 'n_miss')


def missing_patterns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Distinct missingness patterns with their frequencies.

    Cells are coded 1 = observed, 0 = missing, as in mice's ``md.pattern``.
    The ``n_miss`` column gives the number of missing variables in the
    pattern. Data columns may not be named ``count`` or ``n_miss``.

    Returns
    -------
    pd.DataFrame
        One row per pattern, most frequent first, with a ``count`` column
    """
    clash = [col for col in PATTERN_COLUMNS if col in df.columns]
    if clash:
        raise ValueError(f"Columns {clash} clash with the pattern table's own columns; rename them first")

    observed = df.notna().astype(int)
    patterns = (
        observed.groupby(list(observed.columns), sort=False)
        .size()
        .rename('count')
        .reset_index()
    )
    patterns['n_miss'] = df.shape[1] - patterns[list(df.columns)].sum(axis=1)
    return patterns.sort_values(['count', 'n_miss'], ascending=[False, True],
                                kind='stable').reset_index(drop=True)


def get_missing_statistics(df: pd.DataFrame) -> dict:
    """
    Calculate statistics about missing data.

    Parameters
    ----------
    df : pd.DataFrame
        Data with potential missing values

    Returns
    -------
    stats : dict
        Dictionary with missing data statistics
    """
    mask = df.isna()

    stats = {
        'total_missing': int(mask.to_numpy().sum()),
        'missing_rate': prop_miss(df),
        'missing_per_column': mask.sum(axis=0),
        'missing_per_row': mask.sum(axis=1),
        'columns_with_missing': int((mask.sum(axis=0) > 0).sum()),
        'rows_with_missing': int((mask.sum(axis=1) > 0).sum()),
        'complete_rows': int((~mask.any(axis=1)).sum()),
    }

    return stats


def add_n_miss(df: pd.DataFrame, label: str = 'n_miss_all') -> pd.DataFrame:
    """Append a column counting missing values in each row."""
    out = df.copy()
    out[label] = df.isna().sum(axis=1)
    return out


def where_na(df: pd.DataFrame) -> List[Tuple[object, str]]:
    """Locations of missing values as (row label, column) pairs."""
    stacked = df.isna().stack()
    return [(row, col) for (row, col), missing in stacked.items() if missing]


def shadow_matrix(df: pd.DataFrame) -> pd.DataFrame:
    """
    Shadow of ``df``: one categorical ``<col>_NA`` column per input column
    with levels ``"!NA"`` (observed) and ``"NA"`` (missing).
    """
    shadow = pd.DataFrame(index=df.index)
    for col in df.columns:
        flags = np.where(df[col].isna(), 'NA', '!NA')
        shadow[f'{col}{SHADOW_SUFFIX}'] = pd.Categorical(flags, categories=SHADOW_LEVELS)
    return shadow


def bind_shadow(df: pd.DataFrame, only_miss: bool = False) -> pd.DataFrame:
    """
    Append the shadow matrix to the data ("nabular" form).

    Parameters
    ----------
    df : pd.DataFrame
        Input data
    only_miss : bool
        If True, only add shadow columns for variables with missing values
    """
    source = df
    if only_miss:
        source = df.loc[:, df.isna().any()]
    return pd.concat([df, shadow_matrix(source)], axis=1)
