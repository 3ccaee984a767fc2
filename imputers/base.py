"""
Base class for all imputers.
Provides a common interface for fit, transform, and fit_transform methods.

DataFrames go in and come out with index and columns intact; only numeric
columns are imputed and anything else (species names, labels) is passed
through untouched. Plain arrays are treated as all-numeric.
"""

from abc import ABC, abstractmethod
import numpy as np
import pandas as pd


class BaseImputer(ABC):
    """Abstract base class for imputers."""

    def __init__(self, name: str = "BaseImputer"):
        self.name = name
        self.is_fitted_ = False
        self.columns_ = None

    @abstractmethod
    def _fit(self, X: np.ndarray):
        """Learn whatever is needed from the numeric matrix X."""

    @abstractmethod
    def _transform(self, X: np.ndarray) -> np.ndarray:
        """Return a copy of the numeric matrix X with NaN filled."""

    def fit(self, X, y=None):
        """
        Fit the imputer on the data.

        Parameters
        ----------
        X : np.ndarray or pd.DataFrame
            Data with missing values (NaN)
        y : array-like, optional
            Not used, present for API consistency

        Returns
        -------
        self
        """
        values, columns = self._validate_input(X)
        self.columns_ = columns
        self._fit(values)
        self.is_fitted_ = True
        return self

    def transform(self, X):
        """
        Impute missing values in X.

        Parameters
        ----------
        X : np.ndarray or pd.DataFrame
            Data with missing values

        Returns
        -------
        X_imputed : np.ndarray or pd.DataFrame
            Data with imputed values, same container as the input
        """
        if not self.is_fitted_:
            raise ValueError("Imputer must be fitted before transform.")

        values, columns = self._validate_input(X)
        if columns is not None and self.columns_ is not None and list(columns) != list(self.columns_):
            raise ValueError(f"Columns {list(columns)} differ from fitted columns {list(self.columns_)}")
        return self._restore(X, self._transform(values), columns)

    def fit_transform(self, X, y=None):
        """Fit and transform in one step."""
        return self.fit(X, y).transform(X)

    def _validate_input(self, X):
        """Extract the float matrix to impute and its column labels (None for arrays)."""
        if isinstance(X, pd.DataFrame):
            numeric = X.select_dtypes(include=[np.number])
            # Own copy: sklearn writes into the matrix it is given
            return numeric.to_numpy(dtype=float, na_value=np.nan, copy=True), numeric.columns
        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            raise ValueError(f"Expected a 2D array, got shape {X.shape}")
        return X, None

    @staticmethod
    def _restore(original, imputed: np.ndarray, columns):
        if columns is None:
            return imputed
        out = original.copy()
        out[columns] = pd.DataFrame(imputed, index=original.index, columns=columns)
        return out

    def __repr__(self):
        return f"{self.name}()"
