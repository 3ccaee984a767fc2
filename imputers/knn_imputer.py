"""
Nearest-neighbour (hot deck) imputation.

A missing cell takes the average of the same variable in the k rows closest
to it, distance measured on the variables both rows have observed. Unlike
mean imputation the filled values follow the other variables, but they are
still single best guesses and understate uncertainty.
"""

import logging

import numpy as np
from sklearn.impute import KNNImputer
from .base import BaseImputer

logger = logging.getLogger(__name__)


class KNNImputerWrapper(BaseImputer):
    """
    Donor-based imputation with sklearn's KNNImputer.

    Parameters
    ----------
    n_neighbors : int
        Number of donor rows averaged for each missing cell
    weights : str
        'uniform' or 'distance'
    **kwargs
        Passed on to sklearn.impute.KNNImputer
    """

    def __init__(self, n_neighbors: int = 5, weights: str = "uniform", **kwargs):
        super().__init__(name="KNNImputer")
        if n_neighbors < 1:
            raise ValueError(f"n_neighbors must be at least 1, got {n_neighbors}")
        self.n_neighbors = n_neighbors
        self.weights = weights
        self.kwargs = kwargs
        self.n_donors_ = None
        # Entirely missing columns stay NaN instead of being dropped
        self.imputer_ = KNNImputer(
            n_neighbors=n_neighbors,
            weights=weights,
            keep_empty_features=True,
            **kwargs
        )

    def _fit(self, X: np.ndarray):
        self.n_donors_ = int((~np.isnan(X)).all(axis=1).sum())
        if self.n_donors_ < self.n_neighbors:
            logger.warning(f"{self.name}: only {self.n_donors_} complete rows for "
                           f"n_neighbors={self.n_neighbors}; donors will be partly observed rows")
        self.imputer_.fit(X)

    def _transform(self, X: np.ndarray) -> np.ndarray:
        return self.imputer_.transform(X)

    def __repr__(self):
        return f"KNNImputer(n_neighbors={self.n_neighbors}, weights='{self.weights}')"
