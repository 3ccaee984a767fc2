"""
Analysis of multiply imputed data: fit one model per completed dataset and
combine the results with Rubin's rules.
"""

import logging
from typing import Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
import statsmodels.formula.api as smf
from scipy import stats

logger = logging.getLogger(__name__)

FAMILIES = {
    'gaussian': None,
    'binomial': sm.families.Binomial,
    'poisson': sm.families.Poisson,
}

# Lower bound on lambda when computing degrees of freedom, as in mice::pool
_MIN_LAMBDA = 1e-4


def fit_model(data: pd.DataFrame, formula: str, family: str = 'gaussian'):
    """
    Fit a statsmodels formula model on one completed dataset.

    ``np`` is available inside the formula (``np.log10(bw)``).
    """
    if family not in FAMILIES:
        raise ValueError(f"Unknown family: {family}. Use one of {list(FAMILIES)}.")

    if family == 'gaussian':
        return smf.ols(formula, data=data).fit()
    return smf.glm(formula, data=data, family=FAMILIES[family]()).fit()


class MultipleFit:
    """The same model fitted to each of m completed datasets."""

    def __init__(self, fits: Sequence, formula: str = None, family: str = 'gaussian'):
        self.fits = list(fits)
        self.formula = formula
        self.family = family

    @property
    def m(self) -> int:
        return len(self.fits)

    def estimates(self) -> pd.DataFrame:
        """Per-imputation coefficients, one row per imputation (1-based)."""
        table = pd.DataFrame([fit.params for fit in self.fits])
        table.index = pd.RangeIndex(1, self.m + 1, name='imputation')
        return table

    def pool(self) -> pd.DataFrame:
        return pool(self.fits)

    def pool_r_squared(self) -> pd.Series:
        return pool_r_squared(self.fits)

    def __repr__(self):
        return f"MultipleFit(formula={self.formula!r}, m={self.m})"


def fit_each(datasets: Sequence[pd.DataFrame], formula: str, family: str = 'gaussian') -> MultipleFit:
    """Fit ``formula`` on every dataset (``with(imp, lm(...))`` in mice)."""
    fits = []
    for i, data in enumerate(datasets, start=1):
        fits.append(fit_model(data, formula, family))
        logger.debug(f"Fitted imputation {i}: {formula}")
    return MultipleFit(fits, formula=formula, family=family)


def _complete_data_df(fit) -> float:
    df_resid = getattr(fit, 'df_resid', None)
    if df_resid is None or not np.isfinite(df_resid):
        return np.inf
    return float(df_resid)


def barnard_rubin_df(lam: np.ndarray, m: int, dfcom: float) -> np.ndarray:
    """
    Degrees of freedom for pooled estimates (Barnard & Rubin, 1999).

    Parameters
    ----------
    lam : np.ndarray
        Proportion of total variance due to missingness, per term
    m : int
        Number of imputations
    dfcom : float
        Residual degrees of freedom of the complete-data model

    Returns
    -------
    np.ndarray
        Adjusted degrees of freedom per term
    """
    lam = np.maximum(np.asarray(lam, dtype=float), _MIN_LAMBDA)
    df_old = (m - 1) / lam ** 2
    if not np.isfinite(dfcom):
        return df_old
    df_obs = (dfcom + 1) / (dfcom + 3) * dfcom * (1 - lam)
    return df_old * df_obs / (df_old + df_obs)


def pool(fits: Sequence, conf_level: float = 0.95) -> pd.DataFrame:
    """
    Combine estimates from multiply imputed analyses with Rubin's rules.

    Parameters
    ----------
    fits : sequence
        Fitted statsmodels results, one per imputed dataset (at least 2)
    conf_level : float
        Confidence level of the reported interval

    Returns
    -------
    pd.DataFrame
        Indexed by term with columns ``estimate, std_error, statistic, df,
        p_value, conf_low, conf_high, ubar, b, t, riv, lambda, fmi, m``
    """
    fits = list(fits)
    m = len(fits)
    if m < 2:
        raise ValueError(f"Pooling needs at least 2 fitted models, got {m}")

    params = pd.DataFrame([fit.params for fit in fits])
    variances = pd.DataFrame([fit.bse ** 2 for fit in fits])

    q_bar = params.mean(axis=0)
    u_bar = variances.mean(axis=0)
    b = params.var(axis=0, ddof=1)
    t = u_bar + (1 + 1 / m) * b

    riv = (1 + 1 / m) * b / u_bar
    lam = (1 + 1 / m) * b / t
    dfcom = _complete_data_df(fits[0])
    df = pd.Series(barnard_rubin_df(lam.to_numpy(), m, dfcom), index=q_bar.index)
    fmi = (riv + 2 / (df + 3)) / (1 + riv)

    se = np.sqrt(t)
    statistic = q_bar / se
    p_value = 2 * stats.t.sf(np.abs(statistic), df)
    crit = stats.t.ppf(1 - (1 - conf_level) / 2, df)

    pooled = pd.DataFrame({
        'estimate': q_bar,
        'std_error': se,
        'statistic': statistic,
        'df': df,
        'p_value': p_value,
        'conf_low': q_bar - crit * se,
        'conf_high': q_bar + crit * se,
        'ubar': u_bar,
        'b': b,
        't': t,
        'riv': riv,
        'lambda': lam,
        'fmi': fmi,
    })
    pooled['m'] = m
    pooled.index.name = 'term'
    return pooled


def pool_r_squared(fits: Sequence, adjusted: bool = False) -> pd.Series:
    """
    Pool R-squared across imputations via Fisher's z transformation.

    Returns
    -------
    pd.Series
        ``est, lo95, hi95, fmi``
    """
    fits = list(fits)
    m = len(fits)
    if m < 2:
        raise ValueError(f"Pooling needs at least 2 fitted models, got {m}")

    attr = 'rsquared_adj' if adjusted else 'rsquared'
    if not all(hasattr(fit, attr) for fit in fits):
        raise ValueError("R-squared can only be pooled for linear (OLS) models")

    r = np.sqrt(np.clip([getattr(fit, attr) for fit in fits], 0, 1))
    z = np.arctanh(np.clip(r, 0, 1 - 1e-12))
    n = int(fits[0].nobs)

    z_bar = z.mean()
    u_bar = 1 / (n - 3)
    b = z.var(ddof=1)
    t = u_bar + (1 + 1 / m) * b
    half_width = stats.norm.ppf(0.975) * np.sqrt(t)

    riv = (1 + 1 / m) * b / u_bar
    return pd.Series({
        'est': np.tanh(z_bar) ** 2,
        'lo95': np.tanh(max(z_bar - half_width, 0.0)) ** 2,
        'hi95': np.tanh(z_bar + half_width) ** 2,
        'fmi': riv / (1 + riv),
    })


def compare_estimates(pooled: pd.DataFrame, reference_fit, label: str = 'complete_case') -> pd.DataFrame:
    """Put pooled estimates next to those of a single (e.g. complete-case) fit."""
    reference = pd.DataFrame({
        f'{label}_estimate': reference_fit.params,
        f'{label}_std_error': reference_fit.bse,
    })
    combined = pooled[['estimate', 'std_error']].rename(columns={
        'estimate': 'pooled_estimate',
        'std_error': 'pooled_std_error',
    })
    return combined.join(reference, how='outer')
