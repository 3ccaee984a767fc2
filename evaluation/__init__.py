"""
Diagnostics, pooling, metrics and plots for missing data.
"""

from .metrics import calculate_metrics, rmse, mae, nrmse, r2_score, mean_bias, calculate_imputation_error, variance_ratio
from .statistical_tests import (
    little_mcar_test, compare_by_missingness, missingness_association, nullity_correlation,
    wilcoxon_test, friedman_test, rank_methods,
)
from .pooling import fit_model, fit_each, MultipleFit, pool, pool_r_squared, compare_estimates, barnard_rubin_df
from .visualization import (
    vis_miss, gg_miss_var, gg_miss_case, gg_miss_upset, missing_combinations, geom_miss_point,
    shadow_shift, cluster_rows, msno_matrix, msno_bar, msno_heatmap, msno_dendrogram,
    plot_imputed_distributions, plot_pooled_estimates, plot_results,
)

__all__ = [
    'calculate_metrics',
    'rmse',
    'mae',
    'nrmse',
    'r2_score',
    'mean_bias',
    'calculate_imputation_error',
    'variance_ratio',
    'little_mcar_test',
    'compare_by_missingness',
    'missingness_association',
    'nullity_correlation',
    'wilcoxon_test',
    'friedman_test',
    'rank_methods',
    'fit_model',
    'fit_each',
    'MultipleFit',
    'pool',
    'pool_r_squared',
    'compare_estimates',
    'barnard_rubin_df',
    'vis_miss',
    'gg_miss_var',
    'gg_miss_case',
    'gg_miss_upset',
    'missing_combinations',
    'geom_miss_point',
    'shadow_shift',
    'cluster_rows',
    'msno_matrix',
    'msno_bar',
    'msno_heatmap',
    'msno_dendrogram',
    'plot_imputed_distributions',
    'plot_pooled_estimates',
    'plot_results',
]
