"""
Utilities for loading the workshop's sample datasets.

This module provides functions to:
- Load dataset configuration from a YAML file
- Fetch datasets from the Rdatasets archive (through statsmodels)
- Fall back to a local CSV copy when one is configured
- Apply per-dataset cleanup (dropping row-name columns, zero sentinels)
"""

import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd
import yaml
from statsmodels.datasets import get_rdataset

from .sentinels import zeros_to_na

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / "config" / "datasets_config.yaml"

# Row-name columns that Rdatasets CSVs carry
ROWNAME_COLUMNS = ("rownames", "Unnamed: 0")


def load_dataset_configs(config_path: str = None) -> Dict:
    """
    Load dataset configuration from the YAML file.

    Args:
        config_path: Path to YAML file with the dataset configuration

    Returns:
        Dictionary keyed by dataset name

    Raises:
        FileNotFoundError: If the configuration file does not exist
    """
    config_path = Path(config_path) if config_path else DEFAULT_CONFIG
    if not config_path.is_absolute() and not config_path.exists():
        # Paths in the workshop config are relative to the repository root
        config_path = DEFAULT_CONFIG.parent.parent / config_path

    if not config_path.exists():
        raise FileNotFoundError(f"Dataset configuration not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    dataset_configs = {}
    for name, cfg in config['datasets'].items():
        dataset_configs[name] = {
            'name': cfg.get('name', name),
            'package': cfg['package'],
            'item': cfg['item'],
            'description': cfg.get('description', ''),
            'sentinel_zero_columns': list(cfg.get('sentinel_zero_columns', [])),
            'zeros_as_missing': bool(cfg.get('zeros_as_missing', False)),
            'drop_columns': list(cfg.get('drop_columns', [])),
            'local_path': cfg.get('local_path'),
        }

    return dataset_configs


def zero_coded_columns(name: str = 'pima_raw', config_path: str = None) -> List[str]:
    """Columns of dataset ``name`` where a zero stands for a missing measurement."""
    configs = load_dataset_configs(config_path)
    if name not in configs:
        raise KeyError(f"Unknown dataset: {name}")
    return configs[name]['sentinel_zero_columns']


def _read_source(config: Dict, cache) -> pd.DataFrame:
    local_path = config.get('local_path')
    if local_path:
        local_path = Path(local_path)
        if not local_path.is_absolute():
            local_path = DEFAULT_CONFIG.parent.parent / local_path
        if local_path.exists():
            logger.info(f"Reading {config['name']} from {local_path}")
            return pd.read_csv(local_path)
        logger.warning(f"Local copy {local_path} not found, fetching from Rdatasets")

    logger.info(f"Fetching {config['package']}/{config['item']} from Rdatasets")
    return get_rdataset(config['item'], config['package'], cache=cache).data


def prepare_dataset(df: pd.DataFrame, config: Dict) -> pd.DataFrame:
    """
    Apply the configured cleanup to a raw table.

    Drops the row-name column and any configured columns; if the dataset sets
    ``zeros_as_missing`` the zero-coded measurement columns become NaN.
    """
    df = df.drop(columns=[c for c in ROWNAME_COLUMNS if c in df.columns])
    if config.get('drop_columns'):
        df = df.drop(columns=config['drop_columns'])
    if config.get('zeros_as_missing') and config.get('sentinel_zero_columns'):
        df = zeros_to_na(df, config['sentinel_zero_columns'])
    return df.reset_index(drop=True)


def load_dataset(dataset_name: str, config_path: str = None, cache=True) -> pd.DataFrame:
    """
    Load one of the configured sample datasets.

    Args:
        dataset_name: Key in the datasets configuration (e.g. 'pima')
        config_path: Path to the YAML configuration (default: bundled config)
        cache: Passed to statsmodels' ``get_rdataset`` (True, False or a path)

    Returns:
        The dataset as a DataFrame

    Raises:
        KeyError: If the dataset is not configured
    """
    configs = load_dataset_configs(config_path)
    if dataset_name not in configs:
        raise KeyError(f"Unknown dataset: {dataset_name}. Available: {sorted(configs)}")

    config = configs[dataset_name]
    df = prepare_dataset(_read_source(config, cache), config)
    logger.info(f"Loaded {dataset_name} - {df.shape[0]} rows, {df.shape[1]} columns")
    return df


def load_all_datasets(config_path: str = None, cache=True) -> Dict[str, pd.DataFrame]:
    """
    Load every configured dataset; failures are logged and skipped.

    Returns:
        Dictionary with dataset name as key and DataFrame as value
    """
    datasets = {}

    for dataset_name in load_dataset_configs(config_path):
        try:
            datasets[dataset_name] = load_dataset(dataset_name, config_path, cache)
        except Exception as e:
            logger.error(f"{dataset_name} failed: {e}")

    return datasets
