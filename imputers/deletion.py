"""
Deletion strategies: keep only the rows that are fully observed.
"""

import logging
from typing import Iterable

import pandas as pd

logger = logging.getLogger(__name__)


def complete_cases(df: pd.DataFrame, columns: Iterable[str] = None) -> pd.Series:
    """Boolean Series, True for rows with no missing value (in ``columns`` if given)."""
    subset = _subset(df, columns)
    return subset.notna().all(axis=1)


def listwise_deletion(df: pd.DataFrame, columns: Iterable[str] = None) -> pd.DataFrame:
    """
    Drop every row that has a missing value.

    Parameters
    ----------
    df : pd.DataFrame
        Data with missing values
    columns : iterable of str, optional
        Only consider missingness in these columns (like ``tidyr::drop_na(col)``)

    Returns
    -------
    pd.DataFrame
        The retained rows, original index preserved
    """
    keep = complete_cases(df, columns)
    dropped = int((~keep).sum())
    if len(df):
        logger.info(f"Listwise deletion dropped {dropped} of {len(df)} rows ({dropped / len(df):.1%})")
    return df.loc[keep]


def _subset(df: pd.DataFrame, columns) -> pd.DataFrame:
    if columns is None:
        return df
    columns = [columns] if isinstance(columns, str) else list(columns)
    unknown = [c for c in columns if c not in df.columns]
    if unknown:
        raise KeyError(f"Columns not found: {unknown}")
    return df[columns]
