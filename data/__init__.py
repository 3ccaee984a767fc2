"""
Data utilities: sample datasets, missing-value sentinels, missingness
summaries and amputation under different mechanisms.
"""

from .missingness import generate_missing_data, create_mcar, create_mar, create_mnar
from .dataset_loader import load_dataset_configs, load_dataset, load_all_datasets, prepare_dataset, zero_coded_columns
from .sentinels import (
    NA_NUMBERS, NA_STRINGS, missing_value_properties, propagation_demo,
    detect_sentinels, replace_with_na, replace_with_na_all, zeros_to_na,
)
from .summaries import (
    n_miss, n_complete, prop_miss, prop_complete, pct_miss, pct_complete,
    miss_var_summary, miss_case_summary, miss_var_table, miss_case_table,
    missing_patterns, get_missing_statistics, add_n_miss, where_na,
    shadow_matrix, bind_shadow,
)

__all__ = [
    'generate_missing_data',
    'create_mcar',
    'create_mar',
    'create_mnar',
    'load_dataset_configs',
    'load_dataset',
    'load_all_datasets',
    'prepare_dataset',
    'zero_coded_columns',
    'NA_NUMBERS',
    'NA_STRINGS',
    'missing_value_properties',
    'propagation_demo',
    'detect_sentinels',
    'replace_with_na',
    'replace_with_na_all',
    'zeros_to_na',
    'n_miss',
    'n_complete',
    'prop_miss',
    'prop_complete',
    'pct_miss',
    'pct_complete',
    'miss_var_summary',
    'miss_case_summary',
    'miss_var_table',
    'miss_case_table',
    'missing_patterns',
    'get_missing_statistics',
    'add_n_miss',
    'where_na',
    'shadow_matrix',
    'bind_shadow',
]
