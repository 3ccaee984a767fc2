"""
Metrics for evaluating imputation quality against amputed ground truth.
"""

import logging
from typing import Dict

import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error, mean_absolute_error, r2_score as sklearn_r2

logger = logging.getLogger(__name__)


def _paired(y_true, y_pred):
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    mask = ~(np.isnan(y_true) | np.isnan(y_pred))
    return y_true[mask], y_pred[mask]


def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Calculate Root Mean Squared Error.

    Parameters
    ----------
    y_true : np.ndarray
        True values
    y_pred : np.ndarray
        Predicted values

    Returns
    -------
    float
        RMSE value (NaN when no pair is observed)
    """
    y_true, y_pred = _paired(y_true, y_pred)
    if len(y_true) == 0:
        return np.nan

    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Calculate Mean Absolute Error."""
    y_true, y_pred = _paired(y_true, y_pred)
    if len(y_true) == 0:
        return np.nan

    return float(mean_absolute_error(y_true, y_pred))


def nrmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Calculate Normalized RMSE (NRMSE).
    Normalized by the range of true values.
    """
    y_true, y_pred = _paired(y_true, y_pred)
    if len(y_true) == 0:
        return np.nan

    rmse_val = np.sqrt(mean_squared_error(y_true, y_pred))
    y_range = np.ptp(y_true)

    if y_range < 1e-10:
        return float(rmse_val)  # Avoid division by zero

    return float(rmse_val / y_range)


def r2_score(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Calculate R² (coefficient of determination)."""
    y_true, y_pred = _paired(y_true, y_pred)
    if len(y_true) < 2:
        return np.nan

    return float(sklearn_r2(y_true, y_pred))


def mean_bias(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Average signed error of the imputed values (positive = overestimate)."""
    y_true, y_pred = _paired(y_true, y_pred)
    if len(y_true) == 0:
        return np.nan
    return float(np.mean(y_pred - y_true))


METRICS = {
    'rmse': rmse,
    'mae': mae,
    'nrmse': nrmse,
    'r2': r2_score,
    'bias': mean_bias,
}


def calculate_metrics(y_true: np.ndarray, y_pred: np.ndarray,
                      metrics: list = None) -> Dict[str, float]:
    """
    Calculate multiple metrics at once.

    Parameters
    ----------
    y_true : np.ndarray
        True values
    y_pred : np.ndarray
        Predicted values
    metrics : list, optional
        Names from ``METRICS``. Default: ['rmse', 'mae']

    Returns
    -------
    results : dict
        Dictionary with metric names as keys and values as floats
    """
    if metrics is None:
        metrics = ['rmse', 'mae']

    results = {}

    for metric in metrics:
        metric = metric.lower()
        if metric not in METRICS:
            logger.warning(f"Unknown metric '{metric}'")
            continue
        results[metric] = METRICS[metric](y_true, y_pred)

    return results


def calculate_imputation_error(X_true, X_imputed, missing_mask,
                               metrics: list = None) -> Dict[str, float]:
    """
    Calculate imputation error only on originally missing values.

    Parameters
    ----------
    X_true : np.ndarray or pd.DataFrame
        Original complete data
    X_imputed : np.ndarray or pd.DataFrame
        Imputed data
    missing_mask : np.ndarray or pd.DataFrame
        Boolean mask indicating which values were missing (True = was missing)
    metrics : list, optional
        List of metrics to calculate

    Returns
    -------
    results : dict
        Dictionary with metric values
    """
    X_true = np.asarray(X_true, dtype=float)
    X_imputed = np.asarray(X_imputed, dtype=float)
    missing_mask = np.asarray(missing_mask, dtype=bool)

    return calculate_metrics(X_true[missing_mask], X_imputed[missing_mask], metrics)


def variance_ratio(X_true: pd.DataFrame, X_imputed: pd.DataFrame) -> pd.Series:
    """
    Per-column variance after imputation divided by the true variance.

    Single-value imputation pushes this below 1.
    """
    return X_imputed.var(numeric_only=True) / X_true.var(numeric_only=True)
