"""
MICE (Multivariate Imputation by Chained Equations) multiple imputation.

Two engines are available:

* ``method="norm"``: scikit-learn's IterativeImputer with a BayesianRidge
  model and ``sample_posterior=True``; every imputation uses its own seed, so
  the m completed datasets differ wherever a value was missing.
* ``method="pmm"``: statsmodels' MICEData, which fills each gap with an
  observed donor value chosen by predictive mean matching.
"""

import logging
from typing import List

import numpy as np
import pandas as pd
from sklearn.experimental import enable_iterative_imputer  # noqa: F401
from sklearn.impute import IterativeImputer
from sklearn.linear_model import BayesianRidge
from statsmodels.imputation.mice import MICEData

from evaluation.pooling import fit_each, MultipleFit
from .base import BaseImputer

logger = logging.getLogger(__name__)

METHODS = ('norm', 'pmm')


class MultipleImputation:
    """
    The m completed versions of one incomplete dataset.

    Parameters
    ----------
    original : pd.DataFrame
        The incomplete data
    imputations : list of pd.DataFrame
        Completed datasets, same shape, index and columns as ``original``
    method : str
        Engine that produced the imputations
    """

    def __init__(self, original: pd.DataFrame, imputations: List[pd.DataFrame], method: str = 'norm'):
        self.original = original
        self.imputations = list(imputations)
        self.method = method
        self.where = original.isna()

    @property
    def m(self) -> int:
        return len(self.imputations)

    def complete(self, action=1, include: bool = False) -> pd.DataFrame:
        """
        Extract completed data.

        Parameters
        ----------
        action : int or str
            Imputation number (1-based, 0 = the original data) or ``"long"``
            for all imputations stacked with ``.imp`` and ``.id`` columns
        include : bool
            With ``"long"``, also stack the original data as ``.imp == 0``
        """
        if action == 'long':
            frames = []
            numbered = list(enumerate(self.imputations, start=1))
            if include:
                numbered.insert(0, (0, self.original))
            for number, data in numbered:
                frame = data.copy()
                frame.insert(0, '.id', data.index)
                frame.insert(0, '.imp', number)
                frames.append(frame)
            return pd.concat(frames, ignore_index=True)

        if not isinstance(action, (int, np.integer)):
            raise ValueError(f"action must be an imputation number or 'long', got {action!r}")
        if action == 0:
            return self.original.copy()
        if not 1 <= action <= self.m:
            raise IndexError(f"Imputation {action} out of range 1..{self.m}")
        return self.imputations[action - 1].copy()

    def imputed_values(self, column: str) -> pd.DataFrame:
        """Values drawn for the missing cells of ``column``; one column per imputation."""
        if column not in self.original.columns:
            raise KeyError(f"Column not found: {column}")
        rows = self.where.index[self.where[column]]
        return pd.DataFrame(
            {i: data.loc[rows, column] for i, data in enumerate(self.imputations, start=1)},
            index=rows,
        )

    def with_model(self, formula: str, family: str = 'gaussian') -> MultipleFit:
        """Fit a statsmodels formula model on each completed dataset."""
        return fit_each(self.imputations, formula, family)

    def __repr__(self):
        n_missing = int(self.where.to_numpy().sum())
        return f"MultipleImputation(m={self.m}, method='{self.method}', imputed_cells={n_missing})"


class MICEImputerWrapper(BaseImputer):
    """Multiple imputation by chained equations, returning m completed datasets."""

    def __init__(self, m: int = 5, max_iter: int = 10, method: str = 'norm',
                 random_state: int = None, k_pmm: int = 20, **kwargs):
        super().__init__(name="MICEImputer")
        if m < 1:
            raise ValueError(f"m must be at least 1, got {m}")
        if method not in METHODS:
            raise ValueError(f"Unknown method: {method}. Use one of {METHODS}.")
        self.m = m
        self.max_iter = max_iter
        self.method = method
        self.random_state = random_state
        self.k_pmm = k_pmm
        self.kwargs = kwargs
        self.imputers_ = []

    def _seed(self, i: int):
        return None if self.random_state is None else self.random_state + i

    def _fit(self, X: np.ndarray):
        if self.method == 'pmm':
            # MICEData estimates its models on the data it imputes
            return
        self.imputers_ = []
        for i in range(self.m):
            imputer = IterativeImputer(
                estimator=BayesianRidge(),
                sample_posterior=True,
                max_iter=self.max_iter,
                random_state=self._seed(i),
                keep_empty_features=True,
                **self.kwargs
            )
            imputer.fit(X)
            self.imputers_.append(imputer)

    def _transform(self, X: np.ndarray) -> np.ndarray:
        """Stack of shape (m, n_samples, n_features)."""
        if self.method == 'pmm':
            return self._transform_pmm(X)
        return np.stack([imputer.transform(X) for imputer in self.imputers_])

    def _transform_pmm(self, X: np.ndarray) -> np.ndarray:
        if self.random_state is None:
            return self._run_mice_data(X)

        # MICEData draws from the global numpy stream; seed it and put the
        # caller's state back afterwards
        state = np.random.get_state()
        np.random.seed(self.random_state)
        try:
            return self._run_mice_data(X)
        finally:
            np.random.set_state(state)

    def _run_mice_data(self, X: np.ndarray) -> np.ndarray:
        # Positional names keep arbitrary column labels out of the formulas
        frame = pd.DataFrame(X, columns=[f"x{i}" for i in range(X.shape[1])])
        mice_data = MICEData(frame, k_pmm=self.k_pmm)

        completed = []
        for i in range(self.m):
            mice_data.update_all(self.max_iter)
            completed.append(mice_data.data.to_numpy(dtype=float, copy=True))
            logger.debug(f"PMM imputation {i + 1}/{self.m} done")
        return np.stack(completed)

    def transform(self, X) -> MultipleImputation:
        """
        Impute missing values m times.

        Parameters
        ----------
        X : pd.DataFrame or np.ndarray
            Data with missing values

        Returns
        -------
        MultipleImputation
        """
        if not self.is_fitted_:
            raise ValueError("Imputer must be fitted before transform.")

        values, columns = self._validate_input(X)
        original = X if isinstance(X, pd.DataFrame) else pd.DataFrame(values)
        if columns is None:
            columns = original.columns

        stack = self._transform(values)
        completed = [self._restore(original, imputed, columns) for imputed in stack]
        logger.info(f"Created {self.m} imputations with method '{self.method}'")
        return MultipleImputation(original, completed, method=self.method)

    def __repr__(self):
        return f"MICEImputer(m={self.m}, max_iter={self.max_iter}, method='{self.method}')"
