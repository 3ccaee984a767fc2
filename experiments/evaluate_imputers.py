#!/usr/bin/env python3
"""
Amputation experiment: how well do the workshop's imputers recover values
deleted under MCAR, MAR and MNAR?

The complete cases of the configured dataset are amputed at each missing
rate and seed, every enabled imputer fills the gaps, and the error on the
deleted cells is summarised.

Usage:
  python experiments/evaluate_imputers.py --config config/workshop_config.yaml
"""

import sys
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import yaml

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from data import generate_missing_data, load_dataset
from imputers import (
    listwise_deletion, MeanImputer, MedianImputer, KNNImputerWrapper, MICEImputerWrapper,
    MultipleImputation,
)
from evaluation import calculate_imputation_error, friedman_test, rank_methods, plot_results


def setup_logging(log_dir: Path, experiment_name: str):
    """Setup logging configuration."""
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / f"{experiment_name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    return logging.getLogger(__name__)


def create_imputers(config: dict) -> Dict:
    """
    Create imputer instances based on configuration.

    Parameters
    ----------
    config : dict
        Imputers section of the workshop config

    Returns
    -------
    imputers : dict
        Dictionary of imputer instances
    """
    imputers = {}

    if config.get('mean', {}).get('enabled', False):
        imputers['mean'] = MeanImputer()

    if config.get('median', {}).get('enabled', False):
        imputers['median'] = MedianImputer()

    if config.get('knn', {}).get('enabled', False):
        params = config['knn'].get('params', {})
        imputers['knn'] = KNNImputerWrapper(**params)

    if config.get('mice', {}).get('enabled', False):
        params = config['mice'].get('params', {})
        imputers['mice'] = MICEImputerWrapper(**params)

    return imputers


def average_imputations(imputation: MultipleImputation) -> pd.DataFrame:
    """Cell-wise mean of the m completed datasets (a point estimate for scoring)."""
    stacked = np.stack([data.to_numpy(dtype=float) for data in imputation.imputations])
    return pd.DataFrame(stacked.mean(axis=0), index=imputation.original.index,
                        columns=imputation.original.columns)


def run_single_experiment(X_complete: pd.DataFrame,
                          mechanism: str,
                          missing_rate: float,
                          seed: int,
                          imputers: Dict,
                          metrics: List[str],
                          logger: logging.Logger,
                          mechanism_kwargs: dict = None) -> Dict:
    """
    Ampute once and score every imputer on the deleted cells.

    Returns
    -------
    results : dict
        ``{method: {'metrics': {...}, 'mean_shift': float}}``
    """
    logger.info(f"Running: mechanism={mechanism}, rate={missing_rate}, seed={seed}")

    kwargs = mechanism_kwargs if mechanism.upper() == 'MAR' else {}
    X_missing, mask = generate_missing_data(X_complete, mechanism, missing_rate, seed, **(kwargs or {}))

    results = {}

    for name, imputer in imputers.items():
        if hasattr(imputer, 'random_state'):
            imputer.random_state = seed
        try:
            X_imputed = imputer.fit_transform(X_missing)
            if isinstance(X_imputed, MultipleImputation):
                X_imputed = average_imputations(X_imputed)

            metrics_dict = calculate_imputation_error(X_complete, X_imputed, mask, metrics)
            # Bias of the column means after imputation, averaged over columns
            mean_shift = float((X_imputed.mean() - X_complete.mean()).abs().mean())

            results[name] = {'metrics': metrics_dict, 'mean_shift': mean_shift}
            logger.info(f"    {name} - RMSE: {metrics_dict.get('rmse', np.nan):.4f}")

        except Exception as e:
            logger.error(f"  Error with {name}: {e}")
            results[name] = {'metrics': {m: np.nan for m in metrics}, 'mean_shift': np.nan, 'error': str(e)}

    # Deletion has nothing to score cell-wise, only the shift in the means
    kept = listwise_deletion(X_missing)
    results['listwise_deletion'] = {
        'metrics': {m: np.nan for m in metrics},
        'mean_shift': float((kept.mean() - X_complete.mean()).abs().mean()) if len(kept) else np.nan,
    }

    return results


def create_summary(all_results: Dict, metrics: List[str]) -> pd.DataFrame:
    """Create summary DataFrame from all results."""
    summary_data = []

    for mechanism in all_results:
        for rate in all_results[mechanism]:
            for seed in all_results[mechanism][rate]:
                exp_results = all_results[mechanism][rate][seed]

                for method in exp_results:
                    row = {
                        'mechanism': mechanism,
                        'missing_rate': rate,
                        'seed': seed,
                        'method': method,
                        'mean_shift': exp_results[method]['mean_shift'],
                    }
                    for metric in metrics:
                        row[metric] = exp_results[method]['metrics'].get(metric, np.nan)

                    summary_data.append(row)

    return pd.DataFrame(summary_data)


def perform_statistical_tests(summary: pd.DataFrame, logger: logging.Logger) -> Dict:
    """Friedman test and rankings on RMSE across all conditions."""
    scored = summary.dropna(subset=['rmse'])
    wide = scored.pivot_table(index=['mechanism', 'missing_rate', 'seed'], columns='method', values='rmse')
    method_results = {method: wide[method].to_numpy() for method in wide.columns}

    statistic, p_value = friedman_test(method_results)
    rankings = rank_methods(method_results)

    logger.info("\nMethod Rankings (by mean RMSE):")
    logger.info(rankings.to_string())

    return {
        'friedman': {
            'statistic': float(statistic),
            'p_value': float(p_value),
            'significant': bool(p_value < 0.05) if not np.isnan(p_value) else False,
        },
        'rankings': rankings.to_dict('records'),
    }


def run_experiments(config_path: str = 'config/workshop_config.yaml', datasets: Dict = None):
    """
    Run the amputation experiment.

    Parameters
    ----------
    config_path : str
        Path to the workshop configuration file
    datasets : dict, optional
        Pre-loaded datasets by name (skips downloading)
    """
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    exp_config = config['experiment']
    experiment_name = f"imputers_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    logger = setup_logging(Path(exp_config['logs_dir']), experiment_name)

    logger.info("=" * 80)
    logger.info("Starting imputation experiment")
    logger.info("=" * 80)

    results_dir = Path(exp_config['results_dir']) / experiment_name
    results_dir.mkdir(parents=True, exist_ok=True)

    imputers = create_imputers(config['imputers'])
    logger.info(f"Created {len(imputers)} imputers: {list(imputers.keys())}")

    metrics = config['evaluation']['metrics']
    missingness = config['missingness']

    dataset_name = exp_config['dataset']
    if datasets and dataset_name in datasets:
        df = datasets[dataset_name]
    else:
        df = load_dataset(dataset_name, config['workshop'].get('datasets_config'),
                          cache=config['workshop'].get('cache', True))

    columns = exp_config.get('columns') or list(df.select_dtypes('number').columns)
    X_complete = listwise_deletion(df[columns]).astype(float)
    logger.info(f"Complete cases: {X_complete.shape}")

    mar_kwargs = {}
    if missingness.get('mar_dependency'):
        mar_kwargs['dependency_col'] = missingness['mar_dependency']

    all_results = {}
    for mechanism in missingness['mechanisms']:
        all_results[mechanism] = {}
        for missing_rate in missingness['rates']:
            all_results[mechanism][missing_rate] = {}
            for seed in missingness['seeds']:
                all_results[mechanism][missing_rate][seed] = run_single_experiment(
                    X_complete, mechanism, missing_rate, seed, imputers, metrics, logger, mar_kwargs
                )

    summary = create_summary(all_results, metrics)
    summary_file = results_dir / 'summary.csv'
    summary.to_csv(summary_file, index=False)
    logger.info(f"Saved summary to {summary_file}")

    if 'rmse' in metrics:
        statistical_results = perform_statistical_tests(summary, logger)
        stats_file = results_dir / 'statistical_tests.json'
        with open(stats_file, 'w') as f:
            json.dump(statistical_results, f, indent=2)
        logger.info(f"Saved statistical tests to {stats_file}")

        fig = plot_results(summary, metric='rmse', save_path=str(results_dir / 'rmse_by_method.png'))
        plt.close(fig)

    logger.info("Experiment completed. Results saved to: %s", results_dir)
    return summary


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Score imputers on amputed data')
    parser.add_argument('--config', type=str, default='config/workshop_config.yaml',
                        help='Path to workshop config')

    args = parser.parse_args()

    run_experiments(args.config)
