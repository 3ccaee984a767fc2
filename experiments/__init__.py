"""
Command line runners: the rendered workshop report and the amputation experiment.
"""

from .evaluate_imputers import run_experiments, run_single_experiment, create_imputers, create_summary
from .run_workshop import main as run_workshop

__all__ = [
    'run_experiments',
    'run_single_experiment',
    'create_imputers',
    'create_summary',
    'run_workshop',
]
