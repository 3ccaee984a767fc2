"""
Unit tests for deletion and the single-imputation imputers
"""

import logging

import numpy as np
import pandas as pd
import pytest

from imputers import (
    listwise_deletion,
    complete_cases,
    MeanImputer,
    MedianImputer,
    ModeImputer,
    ConstantImputer,
    KNNImputerWrapper,
)


class TestDeletion:
    """Tests for listwise_deletion and complete_cases"""

    def test_only_complete_rows_left(self, pima_like):
        kept = listwise_deletion(pima_like)

        assert kept.notna().all().all()
        assert len(kept) == len(pima_like.dropna())
        assert kept.index.isin(pima_like.index).all()

    def test_subset_of_columns(self, pima_like):
        kept = listwise_deletion(pima_like, columns=["glucose", "mass"])

        assert len(kept) == len(pima_like) - pima_like[["glucose", "mass"]].isna().any(axis=1).sum()
        assert kept["insulin"].isna().any()

    def test_single_column_name(self, pima_like):
        kept = listwise_deletion(pima_like, columns="glucose")
        assert len(kept) == len(pima_like) - 3

    def test_complete_cases_mask(self, pima_like):
        mask = complete_cases(pima_like)
        assert mask.dtype == bool
        assert mask.sum() == len(pima_like.dropna())

    def test_unknown_column(self, pima_like):
        with pytest.raises(KeyError):
            listwise_deletion(pima_like, columns=["nope"])


class TestSimpleImputers:
    """Tests for mean, median, mode and constant imputation"""

    def test_mean_fills_with_observed_mean(self, mammalsleep_like):
        out = MeanImputer().fit_transform(mammalsleep_like)

        missing = mammalsleep_like["sws"].isna()
        assert out["sws"].isna().sum() == 0
        assert np.allclose(out.loc[missing, "sws"], mammalsleep_like["sws"].mean())
        pd.testing.assert_series_equal(out.loc[~missing, "sws"], mammalsleep_like.loc[~missing, "sws"])

    def test_text_column_passed_through(self, mammalsleep_like):
        out = MeanImputer().fit_transform(mammalsleep_like)

        assert list(out.columns) == list(mammalsleep_like.columns)
        pd.testing.assert_series_equal(out["species"], mammalsleep_like["species"])

    def test_input_not_modified(self, mammalsleep_like):
        before = mammalsleep_like.copy()
        MeanImputer().fit_transform(mammalsleep_like)
        pd.testing.assert_frame_equal(mammalsleep_like, before)

    def test_median(self):
        df = pd.DataFrame({"a": [1.0, 2.0, 10.0, np.nan]})
        assert MedianImputer().fit_transform(df)["a"].iloc[3] == 2.0

    def test_mode(self):
        df = pd.DataFrame({"a": [1.0, 1.0, 2.0, np.nan]})
        assert ModeImputer().fit_transform(df)["a"].iloc[3] == 1.0

    def test_constant(self):
        df = pd.DataFrame({"a": [1.0, np.nan], "b": [np.nan, 2.0]})
        out = ConstantImputer(fill_value=-1.0).fit_transform(df)
        assert out.to_numpy().tolist() == [[1.0, -1.0], [-1.0, 2.0]]

    def test_array_in_array_out(self):
        X = np.array([[1.0, np.nan], [3.0, 4.0]])
        out = MeanImputer().fit_transform(X)

        assert isinstance(out, np.ndarray)
        assert out[0, 1] == 4.0

    def test_variance_shrinks(self, mammalsleep_like):
        out = MeanImputer().fit_transform(mammalsleep_like)
        assert out["sws"].var() < mammalsleep_like["sws"].var()

    def test_all_missing_column_left_missing(self, caplog):
        df = pd.DataFrame({"a": [1.0, np.nan], "b": [np.nan, np.nan]})
        with caplog.at_level(logging.WARNING):
            out = MeanImputer().fit_transform(df)

        assert out["b"].isna().all()
        assert "entirely missing" in caplog.text

    def test_transform_before_fit(self):
        with pytest.raises(ValueError):
            MeanImputer().transform(pd.DataFrame({"a": [1.0]}))

    def test_transform_other_columns(self):
        imputer = MeanImputer().fit(pd.DataFrame({"a": [1.0, np.nan]}))
        with pytest.raises(ValueError):
            imputer.transform(pd.DataFrame({"b": [1.0, np.nan]}))

    def test_fit_on_one_transform_another(self):
        imputer = MeanImputer().fit(pd.DataFrame({"a": [2.0, 4.0]}))
        out = imputer.transform(pd.DataFrame({"a": [np.nan, 1.0]}))
        assert out["a"].tolist() == [3.0, 1.0]

    def test_matrix_is_writeable_copy(self, pima_like):
        with pd.option_context("mode.copy_on_write", True):
            values, columns = MeanImputer()._validate_input(pima_like)

        assert values.flags.writeable
        assert "diabetes" not in columns
        values[:] = 0.0
        assert pima_like["glucose"].notna().any() and (pima_like["glucose"].dropna() != 0.0).all()


class TestKNNImputer:
    """Tests for KNNImputerWrapper"""

    def test_fills_numeric_columns(self, mammalsleep_like):
        out = KNNImputerWrapper(n_neighbors=3).fit_transform(mammalsleep_like)

        numeric = out.drop(columns="species")
        assert numeric.isna().sum().sum() == 0
        assert out.shape == mammalsleep_like.shape

    def test_observed_values_unchanged(self, mammalsleep_like):
        out = KNNImputerWrapper(n_neighbors=3).fit_transform(mammalsleep_like)
        observed = mammalsleep_like["gt"].notna()
        np.testing.assert_allclose(out.loc[observed, "gt"], mammalsleep_like.loc[observed, "gt"])

    def test_imputations_within_observed_range(self, mammalsleep_like):
        out = KNNImputerWrapper(n_neighbors=3).fit_transform(mammalsleep_like)
        missing = mammalsleep_like["sws"].isna()

        assert out.loc[missing, "sws"].min() >= mammalsleep_like["sws"].min()
        assert out.loc[missing, "sws"].max() <= mammalsleep_like["sws"].max()

    def test_counts_complete_donors(self, mammalsleep_like):
        imputer = KNNImputerWrapper(n_neighbors=3).fit(mammalsleep_like)
        assert imputer.n_donors_ == int(mammalsleep_like.drop(columns="species").notna().all(axis=1).sum())

    def test_invalid_neighbours(self):
        with pytest.raises(ValueError):
            KNNImputerWrapper(n_neighbors=0)
