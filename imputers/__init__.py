"""
Imputers Module
Provides deletion and a unified interface for single and multiple imputation.
"""

from .base import BaseImputer
from .deletion import listwise_deletion, complete_cases
from .simple import MeanImputer, MedianImputer, ModeImputer, ConstantImputer
from .knn_imputer import KNNImputerWrapper
from .mice_imputer import MICEImputerWrapper, MultipleImputation

__all__ = [
    'BaseImputer',
    'listwise_deletion',
    'complete_cases',
    'MeanImputer',
    'MedianImputer',
    'ModeImputer',
    'ConstantImputer',
    'KNNImputerWrapper',
    'MICEImputerWrapper',
    'MultipleImputation',
]
