"""
Workshop exercises and their reference solutions.

Each exercise in the notebook has a blank cell. Learners put their result in
a variable and call ``check_answer`` to compare it with the reference
solution computed on the same data.
"""

from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np
import pandas as pd

from data.dataset_loader import zero_coded_columns
from data.sentinels import zeros_to_na
from data.summaries import miss_var_summary
from evaluation.statistical_tests import compare_by_missingness, little_mcar_test
from imputers.deletion import listwise_deletion
from imputers.mice_imputer import MICEImputerWrapper
from imputers.simple import MeanImputer


@dataclass(frozen=True)
class Exercise:
    name: str
    section: str
    dataset: str
    prompt: str
    solution: Callable
    hint: str = ""


@dataclass(frozen=True)
class ExerciseResult:
    name: str
    passed: bool
    message: str

    def __bool__(self):
        return self.passed


def _pooled_slope(df: pd.DataFrame) -> float:
    imputation = MICEImputerWrapper(m=5, max_iter=10, random_state=1).fit_transform(
        df.drop(columns=['species'], errors='ignore'))
    pooled = imputation.with_model('sws ~ np.log10(bw) + odi').pool()
    return float(pooled.loc['np.log10(bw)', 'estimate'])


EXERCISES: Dict[str, Exercise] = {ex.name: ex for ex in [
    Exercise(
        name='recode_zeros',
        section='sentinels',
        dataset='pima_raw',
        prompt=("In the raw Pima table a zero in glucose, pressure, triceps, insulin or mass "
                "means 'not measured'. Return a copy with those zeros replaced by NaN."),
        solution=lambda df: zeros_to_na(df, zero_coded_columns('pima_raw')),
        hint="replace_with_na(df, {'glucose': 0, ...}) or zeros_to_na(df, columns)",
    ),
    Exercise(
        name='count_missing',
        section='summaries',
        dataset='pima',
        prompt="Return a Series with the number of missing values in each column.",
        solution=lambda df: df.isna().sum(),
        hint="DataFrame.isna() gives a boolean table; sum it.",
    ),
    Exercise(
        name='most_missing_variable',
        section='summaries',
        dataset='pima',
        prompt="Which variable has the most missing values? Return its name.",
        solution=lambda df: miss_var_summary(df).loc[0, 'variable'],
        hint="miss_var_summary sorts variables by n_miss.",
    ),
    Exercise(
        name='mcar_p_value',
        section='mechanisms',
        dataset='pima',
        prompt="Run Little's MCAR test on the Pima data and return the p-value.",
        solution=lambda df: little_mcar_test(df)['p_value'],
        hint="little_mcar_test returns a dict.",
    ),
    Exercise(
        name='glucose_by_insulin_missing',
        section='mechanisms',
        dataset='pima',
        prompt=("Is glucose different for women whose insulin was not recorded? "
                "Return the p-value of a Welch t-test."),
        solution=lambda df: compare_by_missingness(df, 'glucose', 'insulin')['p_value'],
        hint="compare_by_missingness(df, variable, by)",
    ),
    Exercise(
        name='complete_cases_left',
        section='deletion',
        dataset='pima',
        prompt="How many rows are left after listwise deletion?",
        solution=lambda df: len(listwise_deletion(df)),
        hint="listwise_deletion(df) or df.dropna()",
    ),
    Exercise(
        name='mean_impute',
        section='single_imputation',
        dataset='mammalsleep',
        prompt="Mean-impute every numeric column of mammalsleep. Keep the species column.",
        solution=lambda df: MeanImputer().fit_transform(df),
        hint="MeanImputer().fit_transform(df)",
    ),
    Exercise(
        name='pooled_body_weight_slope',
        section='multiple_imputation',
        dataset='mammalsleep',
        prompt=("Create 5 imputations of mammalsleep (without species, random_state=1), fit "
                "sws ~ np.log10(bw) + odi on each and pool. Return the pooled slope of np.log10(bw)."),
        solution=_pooled_slope,
        hint="MICEImputerWrapper(m=5, random_state=1).fit_transform(...).with_model(...).pool()",
    ),
]}


def get_exercise(name: str) -> Exercise:
    if name not in EXERCISES:
        raise KeyError(f"Unknown exercise: {name}. Available: {sorted(EXERCISES)}")
    return EXERCISES[name]


def _compare(answer, reference, rtol: float) -> str:
    """Empty string when the answer matches, otherwise what went wrong."""
    try:
        if isinstance(reference, pd.DataFrame):
            if not isinstance(answer, pd.DataFrame):
                return f"Expected a DataFrame, got {type(answer).__name__}"
            pd.testing.assert_frame_equal(answer, reference, check_dtype=False, rtol=rtol)
        elif isinstance(reference, pd.Series):
            if not isinstance(answer, pd.Series):
                return f"Expected a Series, got {type(answer).__name__}"
            pd.testing.assert_series_equal(answer, reference, check_dtype=False,
                                           check_names=False, rtol=rtol)
        elif isinstance(reference, (float, np.floating)):
            if np.isnan(reference):
                return "" if answer is not None and np.isnan(float(answer)) else "Expected NaN"
            if not np.isclose(float(answer), float(reference), rtol=rtol, atol=0):
                return f"Expected about {reference:.6g}, got {answer}"
        elif answer != reference:
            return f"Expected {reference!r}, got {answer!r}"
    except AssertionError as e:
        return str(e)
    except (TypeError, ValueError) as e:
        return f"Could not compare answer: {e}"
    return ""


def check_answer(name: str, answer, data: pd.DataFrame, rtol: float = 1e-6) -> ExerciseResult:
    """
    Check a learner's answer against the reference solution.

    Parameters
    ----------
    name : str
        Exercise name (see ``EXERCISES``)
    answer : object
        The learner's result
    data : pd.DataFrame
        The dataset the exercise runs on
    rtol : float
        Relative tolerance for numbers

    Returns
    -------
    ExerciseResult
    """
    exercise = get_exercise(name)
    reference = exercise.solution(data)
    problem = _compare(answer, reference, rtol)
    if problem:
        message = f"Not quite. {problem}"
        if exercise.hint:
            message += f"\nHint: {exercise.hint}"
        return ExerciseResult(name, False, message)
    return ExerciseResult(name, True, "Correct!")
