"""
Simple statistical imputers (mean, median, mode, constant).

Each replaces every missing value in a column with one number, so the
imputed column has less spread than the real one. The workshop uses them to
show exactly that.
"""

import logging
import warnings

import numpy as np
from scipy import stats
from .base import BaseImputer

logger = logging.getLogger(__name__)


class _ColumnStatisticImputer(BaseImputer):
    """Fill each column with one statistic computed on its observed values."""

    def __init__(self, name: str):
        super().__init__(name=name)
        self.statistics_ = None

    def _column_statistic(self, observed: np.ndarray) -> float:
        raise NotImplementedError

    def _fit(self, X: np.ndarray):
        self.statistics_ = np.full(X.shape[1], np.nan)
        for col_idx in range(X.shape[1]):
            observed = X[:, col_idx]
            observed = observed[~np.isnan(observed)]
            if len(observed) == 0:
                label = self.columns_[col_idx] if self.columns_ is not None else col_idx
                logger.warning(f"{self.name}: column {label} is entirely missing, left as NaN")
                continue
            self.statistics_[col_idx] = self._column_statistic(observed)

    def _transform(self, X: np.ndarray) -> np.ndarray:
        X_imputed = X.copy()

        for col_idx in range(X.shape[1]):
            mask = np.isnan(X[:, col_idx])
            X_imputed[mask, col_idx] = self.statistics_[col_idx]

        return X_imputed


class MeanImputer(_ColumnStatisticImputer):
    """Impute missing values with column mean."""

    def __init__(self):
        super().__init__(name="MeanImputer")

    def _column_statistic(self, observed):
        return float(np.mean(observed))


class MedianImputer(_ColumnStatisticImputer):
    """Impute missing values with column median."""

    def __init__(self):
        super().__init__(name="MedianImputer")

    def _column_statistic(self, observed):
        return float(np.median(observed))


class ModeImputer(_ColumnStatisticImputer):
    """Impute missing values with column mode (most frequent value)."""

    def __init__(self):
        super().__init__(name="ModeImputer")

    def _column_statistic(self, observed):
        # Ties resolve to the smallest value
        return float(stats.mode(observed, keepdims=False).mode)


class ConstantImputer(_ColumnStatisticImputer):
    """Impute missing values with a fixed value."""

    def __init__(self, fill_value: float = 0.0):
        super().__init__(name="ConstantImputer")
        self.fill_value = fill_value

    def _fit(self, X: np.ndarray):
        if np.isnan(self.fill_value):
            warnings.warn("fill_value is NaN; nothing will be imputed")
        self.statistics_ = np.full(X.shape[1], float(self.fill_value))

    def __repr__(self):
        return f"ConstantImputer(fill_value={self.fill_value})"
