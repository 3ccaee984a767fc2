"""
Visualization utilities for missing data.

Every plotting function returns the matplotlib Figure, saves it when
``save_path`` is given and only calls ``plt.show()`` when ``show=True``.
"""

import logging
from typing import List, Sequence

import matplotlib.pyplot as plt
import missingno as msno
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.colors import ListedColormap
from matplotlib.patches import Patch
from scipy.cluster.hierarchy import leaves_list, linkage
from upsetplot import UpSet

logger = logging.getLogger(__name__)

PRESENT_COLOR = '#cfd8dc'
MISSING_COLOR = '#37474f'
STATUS_PALETTE = {'Not Missing': '#1f77b4', 'Missing': '#d62728'}


def _finish(fig, save_path: str = None, show: bool = False):
    if save_path:
        fig.savefig(save_path, dpi=300, bbox_inches='tight')
        logger.info(f"Plot saved to {save_path}")
    if show:
        plt.show()
    return fig


def cluster_rows(mask: pd.DataFrame) -> np.ndarray:
    """
    Row order that groups similar missingness patterns together.

    Average-linkage hierarchical clustering on the Hamming distance between
    rows of the missing-value mask.
    """
    if len(mask) < 2:
        return np.arange(len(mask))
    Z = linkage(mask.to_numpy(dtype=float), method='average', metric='hamming')
    return leaves_list(Z)


def vis_miss(df: pd.DataFrame,
             sort_miss: bool = False,
             cluster: bool = False,
             show_pct: bool = True,
             save_path: str = None,
             show: bool = False,
             figsize: tuple = (10, 6)):
    """
    Plot the whole table as a grid of present/missing cells.

    Parameters
    ----------
    df : pd.DataFrame
        Data with missing values
    sort_miss : bool
        Order columns from most to least missing
    cluster : bool
        Order rows by hierarchical clustering of their missingness
    show_pct : bool
        Add the percentage missing to each column label
    save_path : str, optional
        Path to save the figure
    show : bool
        Call ``plt.show()``
    figsize : tuple
        Figure size
    """
    mask = df.isna()

    if sort_miss:
        order = mask.sum().sort_values(ascending=False, kind='stable').index
        mask = mask[order]
    if cluster:
        mask = mask.iloc[cluster_rows(mask)]

    fig, ax = plt.subplots(figsize=figsize)
    ax.imshow(mask.to_numpy(dtype=float), aspect='auto', interpolation='none',
              cmap=ListedColormap([PRESENT_COLOR, MISSING_COLOR]), vmin=0, vmax=1)

    labels = list(mask.columns)
    if show_pct:
        pct = mask.mean() * 100
        labels = [f"{col} ({pct[col]:.1f}%)" for col in mask.columns]
    ax.set_xticks(range(len(labels)))
    ax.set_xticklabels(labels, rotation=45, ha='left')
    ax.xaxis.tick_top()
    ax.set_ylabel('Observations')

    overall = mask.to_numpy().mean() * 100 if mask.size else 0.0
    ax.legend(handles=[
        Patch(color=PRESENT_COLOR, label=f'Present ({100 - overall:.1f}%)'),
        Patch(color=MISSING_COLOR, label=f'Missing ({overall:.1f}%)'),
    ], loc='upper center', bbox_to_anchor=(0.5, -0.05), ncol=2, frameon=False)

    fig.tight_layout()
    return _finish(fig, save_path, show)


def gg_miss_var(df: pd.DataFrame,
                show_pct: bool = False,
                facet: str = None,
                save_path: str = None,
                show: bool = False,
                figsize: tuple = (8, 6)):
    """
    Horizontal bar of missing values per variable.

    Parameters
    ----------
    df : pd.DataFrame
        Data with missing values
    show_pct : bool
        Plot percentages instead of counts
    facet : str, optional
        Column whose levels get one panel each
    """
    value_name = 'pct_miss' if show_pct else 'n_miss'

    if facet is None:
        groups = [(None, df)]
    else:
        if facet not in df.columns:
            raise KeyError(f"Column not found: {facet}")
        groups = list(df.groupby(facet, dropna=False, sort=True))

    fig, axes = plt.subplots(1, len(groups), figsize=figsize, sharey=True, squeeze=False)

    for ax, (level, group) in zip(axes[0], groups):
        data = group.drop(columns=[facet]) if facet is not None else group
        counts = data.isna().sum()
        values = counts / len(data) * 100 if show_pct and len(data) else counts
        table = pd.DataFrame({'variable': values.index, value_name: values.to_numpy()})
        if facet is None:
            table = table.sort_values(value_name, ascending=False, kind='stable')

        sns.barplot(data=table, y='variable', x=value_name, color=MISSING_COLOR, ax=ax)
        ax.set_xlabel('% missing' if show_pct else 'Number missing')
        ax.set_ylabel('Variable')
        if facet is not None:
            ax.set_title(f"{facet} = {level}")

    fig.tight_layout()
    return _finish(fig, save_path, show)


def gg_miss_case(df: pd.DataFrame,
                 order_cases: bool = True,
                 save_path: str = None,
                 show: bool = False,
                 figsize: tuple = (8, 6)):
    """Number of missing values in each case (row)."""
    counts = df.isna().sum(axis=1).to_numpy()
    if order_cases:
        counts = np.sort(counts)[::-1]

    fig, ax = plt.subplots(figsize=figsize)
    ax.barh(np.arange(len(counts)), counts, height=1.0, color=MISSING_COLOR)
    ax.invert_yaxis()
    ax.set_xlabel('Number missing')
    ax.set_ylabel('Cases')
    fig.tight_layout()
    return _finish(fig, save_path, show)


def missing_combinations(df: pd.DataFrame, nsets: int = None) -> pd.Series:
    """
    Counts of each combination of co-missing variables, indexed by boolean
    membership (the input format of ``upsetplot.UpSet``).

    Complete cases are left out. ``nsets`` keeps only the most-missing
    variables.
    """
    mask = df.isna()
    counts = mask.sum()
    columns = counts[counts > 0].sort_values(ascending=False, kind='stable').index
    if nsets is not None:
        columns = columns[:nsets]
    if len(columns) == 0:
        raise ValueError("No missing values to plot")

    combos = mask[list(columns)].value_counts()
    if not isinstance(combos.index, pd.MultiIndex):
        combos.index = pd.MultiIndex.from_arrays([combos.index], names=list(columns))
    return combos[[any(index) for index in combos.index]]


def gg_miss_upset(df: pd.DataFrame,
                  nsets: int = None,
                  min_subset_size: int = 1,
                  save_path: str = None,
                  show: bool = False,
                  figsize: tuple = (10, 6)):
    """
    UpSet plot of which variables go missing together.

    Parameters
    ----------
    df : pd.DataFrame
        Data with missing values
    nsets : int, optional
        Number of (most-missing) variables to include
    min_subset_size : int
        Hide combinations seen fewer times than this
    """
    combos = missing_combinations(df, nsets)
    combos = combos[combos >= min_subset_size]
    if combos.empty:
        raise ValueError("No missing values to plot")

    fig = plt.figure(figsize=figsize)
    UpSet(combos, subset_size='sum', sort_by='cardinality', show_counts=True).plot(fig=fig)
    return _finish(fig, save_path, show)


def shadow_shift(series: pd.Series, prop_below: float = 0.1) -> pd.Series:
    """
    Replace missing values with a value ``prop_below`` of the range below
    the observed minimum, so they can be drawn on the same axis.
    """
    observed = series.dropna()
    if observed.empty:
        return series.fillna(0.0)
    low, high = observed.min(), observed.max()
    span = high - low if high > low else abs(low) or 1.0
    return series.fillna(low - prop_below * span)


def geom_miss_point(df: pd.DataFrame, x: str, y: str,
                    prop_below: float = 0.1,
                    save_path: str = None,
                    show: bool = False,
                    figsize: tuple = (7, 6)):
    """
    Scatter plot that keeps rows with a missing x or y.

    Missing values are drawn just below the observed minimum of their axis
    and coloured red, so the missing rows show up as bands along the margins.
    """
    for col in (x, y):
        if col not in df.columns:
            raise KeyError(f"Column not found: {col}")

    status = np.where(df[x].isna() | df[y].isna(), 'Missing', 'Not Missing')
    data = pd.DataFrame({
        x: shadow_shift(df[x], prop_below),
        y: shadow_shift(df[y], prop_below),
        'missing': status,
    })

    fig, ax = plt.subplots(figsize=figsize)
    sns.scatterplot(data=data, x=x, y=y, hue='missing', palette=STATUS_PALETTE,
                    hue_order=['Not Missing', 'Missing'], alpha=0.7, ax=ax)
    ax.set_title(f"{y} vs {x}")
    fig.tight_layout()
    return _finish(fig, save_path, show)


def msno_matrix(df: pd.DataFrame, sort: str = None, save_path: str = None,
                show: bool = False, figsize: tuple = (12, 6)):
    """missingno's nullity matrix with its row-completeness sparkline."""
    ax = msno.matrix(df, sort=sort, figsize=figsize, fontsize=10)
    return _finish(ax.get_figure(), save_path, show)


def msno_bar(df: pd.DataFrame, save_path: str = None, show: bool = False,
             figsize: tuple = (12, 6)):
    ax = msno.bar(df, figsize=figsize, fontsize=10)
    return _finish(ax.get_figure(), save_path, show)


def msno_heatmap(df: pd.DataFrame, save_path: str = None, show: bool = False,
                 figsize: tuple = (10, 8)):
    """Nullity correlation heatmap (needs at least two partially missing columns)."""
    ax = msno.heatmap(df, figsize=figsize, fontsize=10)
    return _finish(ax.get_figure(), save_path, show)


def msno_dendrogram(df: pd.DataFrame, save_path: str = None, show: bool = False,
                    figsize: tuple = (12, 6)):
    """Hierarchical clustering of variables by nullity correlation."""
    ax = msno.dendrogram(df, figsize=figsize, fontsize=10)
    return _finish(ax.get_figure(), save_path, show)


def plot_imputed_distributions(original: pd.DataFrame,
                               imputations: Sequence[pd.DataFrame],
                               columns: List[str] = None,
                               save_path: str = None,
                               show: bool = False):
    """
    Density of observed values (blue) against the values imputed in each
    completed dataset (red), one panel per column.
    """
    mask = original.isna()
    if columns is None:
        columns = [c for c in original.select_dtypes(include=[np.number]).columns if mask[c].any()]
    if not columns:
        raise ValueError("No incomplete numeric columns to plot")

    n_cols = min(3, len(columns))
    n_rows = int(np.ceil(len(columns) / n_cols))
    fig, axes = plt.subplots(n_rows, n_cols, figsize=(5 * n_cols, 4 * n_rows), squeeze=False)

    for ax, col in zip(axes.flat, columns):
        sns.kdeplot(original[col].dropna(), ax=ax, color=STATUS_PALETTE['Not Missing'],
                    linewidth=2, label='observed', warn_singular=False)
        for i, completed in enumerate(imputations):
            sns.kdeplot(completed.loc[mask[col], col], ax=ax, color=STATUS_PALETTE['Missing'],
                        linewidth=1, alpha=0.6, label='imputed' if i == 0 else None,
                        warn_singular=False)
        ax.set_title(col)
        ax.legend()

    for ax in list(axes.flat)[len(columns):]:
        ax.set_visible(False)

    fig.tight_layout()
    return _finish(fig, save_path, show)


def plot_pooled_estimates(pooled: pd.DataFrame,
                          complete_case=None,
                          save_path: str = None,
                          show: bool = False,
                          figsize: tuple = (8, 5)):
    """
    Coefficient plot of pooled estimates with their confidence intervals,
    optionally next to a complete-case fit (statsmodels results).
    """
    terms = list(pooled.index)
    positions = np.arange(len(terms))

    fig, ax = plt.subplots(figsize=figsize)
    ax.errorbar(pooled['estimate'], positions,
                xerr=[pooled['estimate'] - pooled['conf_low'], pooled['conf_high'] - pooled['estimate']],
                fmt='o', color=STATUS_PALETTE['Missing'], capsize=4, label='multiple imputation')

    if complete_case is not None:
        ci = complete_case.conf_int().loc[terms]
        est = complete_case.params.loc[terms]
        ax.errorbar(est, positions + 0.2, xerr=[est - ci[0], ci[1] - est],
                    fmt='s', color=STATUS_PALETTE['Not Missing'], capsize=4, label='complete cases')

    ax.axvline(0, color='grey', linestyle='--', linewidth=1)
    ax.set_yticks(positions)
    ax.set_yticklabels(terms)
    ax.set_xlabel('Estimate (95% CI)')
    ax.legend()
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    return _finish(fig, save_path, show)


def plot_results(summary: pd.DataFrame,
                 metric: str = 'rmse',
                 hue: str = 'mechanism',
                 save_path: str = None,
                 show: bool = False,
                 figsize: tuple = (12, 6)):
    """
    Boxplot comparison of imputation methods from an experiment summary
    (one row per method / condition).
    """
    data = summary.dropna(subset=[metric])

    fig, ax = plt.subplots(figsize=figsize)
    sns.boxplot(data=data, x='method', y=metric, hue=hue if hue in data.columns else None, ax=ax)
    ax.set_title(f'{metric.upper()} Comparison Across Methods')
    ax.set_xlabel('Method')
    ax.set_ylabel(metric.upper())
    plt.setp(ax.get_xticklabels(), rotation=45, ha='right')
    fig.tight_layout()

    return _finish(fig, save_path, show)
