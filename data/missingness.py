"""
Amputation of complete data under different mechanisms (MCAR, MAR, MNAR).

Used in the mechanisms section to show what each kind of missingness looks
like when we know the ground truth.

Input that already has gaps is accepted: thresholds and scales are computed
on the observed values, and the returned mask marks only the cells amputed
here. On complete input the mask therefore equals the NaN positions of the
result.
"""

import numpy as np
import pandas as pd
from typing import Sequence, Tuple, Union

ArrayLike = Union[np.ndarray, pd.DataFrame]


def _as_array(X: ArrayLike) -> Tuple[np.ndarray, bool]:
    if isinstance(X, pd.DataFrame):
        return X.to_numpy(dtype=float, copy=True), True
    return np.asarray(X, dtype=float).copy(), False


def _wrap(X_missing: np.ndarray, mask: np.ndarray, like: ArrayLike, is_frame: bool):
    if not is_frame:
        return X_missing, mask
    return (
        pd.DataFrame(X_missing, index=like.index, columns=like.columns),
        pd.DataFrame(mask, index=like.index, columns=like.columns),
    )


def _resolve_columns(X: ArrayLike, columns: Sequence = None) -> np.ndarray:
    """Translate column names or indices into positional indices."""
    n_features = X.shape[1]
    if columns is None:
        return np.arange(n_features)

    positions = []
    for col in columns:
        positions.append(_resolve_column(X, col))
    return np.array(positions, dtype=int)


def _resolve_column(X: ArrayLike, col) -> int:
    if isinstance(X, pd.DataFrame) and not isinstance(col, (int, np.integer)):
        if col not in X.columns:
            raise KeyError(f"Column not found: {col}")
        return X.columns.get_loc(col)
    col = int(col)
    if not 0 <= col < X.shape[1]:
        raise IndexError(f"Column index {col} out of range for {X.shape[1]} columns")
    return col


def _check_rate(missing_rate: float):
    if not 0.0 <= missing_rate <= 1.0:
        raise ValueError(f"missing_rate must be between 0 and 1, got {missing_rate}")


def create_mcar(X: ArrayLike, missing_rate: float, seed: int = None,
                columns: Sequence = None) -> Tuple[ArrayLike, ArrayLike]:
    """
    Create Missing Completely At Random (MCAR) pattern.

    Every cell of the selected columns has the same chance of going missing,
    independent of any value in the table.

    Parameters
    ----------
    X : np.ndarray or pd.DataFrame
        Complete data
    missing_rate : float
        Proportion of values to make missing (0 to 1)
    seed : int, optional
        Random seed
    columns : sequence, optional
        Columns (names or indices) to ampute. Default: all.

    Returns
    -------
    X_missing : np.ndarray or pd.DataFrame
        Data with missing values
    mask : np.ndarray or pd.DataFrame
        Boolean mask indicating missing positions (True = missing)
    """
    _check_rate(missing_rate)
    rng = np.random.default_rng(seed)
    values, is_frame = _as_array(X)
    n_samples, n_features = values.shape

    mask = np.zeros((n_samples, n_features), dtype=bool)
    cols = _resolve_columns(X, columns)
    mask[:, cols] = rng.random((n_samples, len(cols))) < missing_rate
    mask &= ~np.isnan(values)

    values[mask] = np.nan
    return _wrap(values, mask, X, is_frame)


def create_mar(X: ArrayLike, missing_rate: float, seed: int = None,
               dependency_col=0, threshold_quantile: float = 0.5,
               columns: Sequence = None) -> Tuple[ArrayLike, ArrayLike]:
    """
    Create Missing At Random (MAR) pattern.
    Missing values depend on observed values in another column.

    Parameters
    ----------
    X : np.ndarray or pd.DataFrame
        Complete data
    missing_rate : float
        Target proportion of missing values
    seed : int, optional
        Random seed
    dependency_col : int or str
        Column (index or name) that determines missingness. Never amputed.
    threshold_quantile : float
        Quantile threshold for dependency (default: 0.5 = median)
    columns : sequence, optional
        Columns to ampute. Default: all but the dependency column.

    Returns
    -------
    X_missing : np.ndarray or pd.DataFrame
        Data with missing values
    mask : np.ndarray or pd.DataFrame
        Boolean mask indicating missing positions
    """
    _check_rate(missing_rate)
    rng = np.random.default_rng(seed)
    values, is_frame = _as_array(X)
    n_samples, n_features = values.shape

    dep = _resolve_column(X, dependency_col)
    driver = values[:, dep]
    if np.isnan(driver).all():
        raise ValueError(f"Dependency column {dependency_col} has no observed values")
    threshold = np.nanquantile(driver, threshold_quantile)

    # Rows above the threshold are three times as likely to lose values;
    # rows with an unknown driver get the flat rate
    prob = np.where(driver > threshold, missing_rate * 1.5, missing_rate * 0.5)
    prob = np.where(np.isnan(driver), missing_rate, prob)
    prob = np.clip(prob, 0, 1)

    mask = np.zeros((n_samples, n_features), dtype=bool)
    for col in _resolve_columns(X, columns):
        if col == dep:
            continue
        mask[:, col] = rng.random(n_samples) < prob
    mask &= ~np.isnan(values)

    values[mask] = np.nan
    return _wrap(values, mask, X, is_frame)


def create_mnar(X: ArrayLike, missing_rate: float, seed: int = None,
                threshold_quantile: float = 0.7,
                columns: Sequence = None) -> Tuple[ArrayLike, ArrayLike]:
    """
    Create Missing Not At Random (MNAR) pattern.
    Missing values depend on the values themselves (high values are more
    likely to be missing).

    Parameters
    ----------
    X : np.ndarray or pd.DataFrame
        Complete data
    missing_rate : float
        Target proportion of missing values
    seed : int, optional
        Random seed
    threshold_quantile : float
        Quantile threshold - values above this are more likely to be missing
    columns : sequence, optional
        Columns to ampute. Default: all.

    Returns
    -------
    X_missing : np.ndarray or pd.DataFrame
        Data with missing values
    mask : np.ndarray or pd.DataFrame
        Boolean mask indicating missing positions
    """
    _check_rate(missing_rate)
    rng = np.random.default_rng(seed)
    values, is_frame = _as_array(X)
    n_samples, n_features = values.shape

    mask = np.zeros((n_samples, n_features), dtype=bool)

    for col in _resolve_columns(X, columns):
        column = values[:, col]
        if np.isnan(column).all():
            continue
        threshold = np.nanquantile(column, threshold_quantile)
        scale = np.nanstd(column)
        if scale < 1e-12:
            # Constant column: self-masking degenerates to MCAR
            prob = np.full(n_samples, missing_rate)
        else:
            prob = 1 / (1 + np.exp(-5 * (column - threshold) / scale))
            prob = prob * (missing_rate * 2)
        prob = np.clip(np.nan_to_num(prob), 0, 1)

        mask[:, col] = rng.random(n_samples) < prob

    values[mask] = np.nan
    return _wrap(values, mask, X, is_frame)


def generate_missing_data(X: ArrayLike, mechanism: str, missing_rate: float,
                          seed: int = None, **kwargs) -> Tuple[ArrayLike, ArrayLike]:
    """
    Generate missing data with specified mechanism.

    Parameters
    ----------
    X : np.ndarray or pd.DataFrame
        Complete data
    mechanism : str
        Missing data mechanism ('MCAR', 'MAR', 'MNAR'), case-insensitive
    missing_rate : float
        Proportion of missing values
    seed : int, optional
        Random seed
    **kwargs : dict
        Additional parameters for specific mechanisms

    Returns
    -------
    X_missing, mask
    """
    mechanism = mechanism.upper()

    if mechanism == 'MCAR':
        return create_mcar(X, missing_rate, seed, **kwargs)
    elif mechanism == 'MAR':
        return create_mar(X, missing_rate, seed, **kwargs)
    elif mechanism == 'MNAR':
        return create_mnar(X, missing_rate, seed, **kwargs)
    else:
        raise ValueError(f"Unknown mechanism: {mechanism}. Use 'MCAR', 'MAR', or 'MNAR'.")
