"""
Unit tests for data.missingness (amputation under MCAR, MAR and MNAR)
"""

import numpy as np
import pandas as pd
import pytest

from data.missingness import create_mcar, create_mar, create_mnar, generate_missing_data


class TestMCAR:
    """Tests for create_mcar"""

    def test_rate_close_to_target(self, complete_df):
        _, mask = create_mcar(complete_df, 0.3, seed=0)
        assert mask.to_numpy().mean() == pytest.approx(0.3, abs=0.05)

    def test_mask_matches_values(self, complete_df):
        X_missing, mask = create_mcar(complete_df, 0.2, seed=0)

        pd.testing.assert_frame_equal(X_missing.isna(), mask)
        observed = ~mask.to_numpy()
        np.testing.assert_array_equal(X_missing.to_numpy()[observed], complete_df.to_numpy()[observed])

    def test_keeps_labels(self, complete_df):
        X_missing, mask = create_mcar(complete_df, 0.2, seed=0)
        assert list(X_missing.columns) == list(complete_df.columns)
        assert X_missing.index.equals(complete_df.index)

    def test_reproducible(self, complete_df):
        _, mask1 = create_mcar(complete_df, 0.2, seed=7)
        _, mask2 = create_mcar(complete_df, 0.2, seed=7)
        pd.testing.assert_frame_equal(mask1, mask2)

    def test_input_not_modified(self, complete_df):
        before = complete_df.copy()
        create_mcar(complete_df, 0.5, seed=0)
        pd.testing.assert_frame_equal(complete_df, before)

    def test_selected_columns_only(self, complete_df):
        _, mask = create_mcar(complete_df, 0.5, seed=0, columns=["a"])
        assert mask["a"].any()
        assert not mask[["b", "c", "d"]].to_numpy().any()

    def test_array_input(self, complete_df):
        X_missing, mask = create_mcar(complete_df.to_numpy(), 0.2, seed=0)
        assert isinstance(X_missing, np.ndarray)
        assert mask.dtype == bool

    def test_extreme_rates(self, complete_df):
        _, none = create_mcar(complete_df, 0.0, seed=0)
        _, everything = create_mcar(complete_df, 1.0, seed=0)
        assert not none.to_numpy().any()
        assert everything.to_numpy().all()


class TestMAR:
    """Tests for create_mar"""

    def test_dependency_column_never_missing(self, complete_df):
        _, mask = create_mar(complete_df, 0.3, seed=0, dependency_col="a")
        assert not mask["a"].any()

    def test_missingness_follows_driver(self, complete_df):
        _, mask = create_mar(complete_df, 0.3, seed=0, dependency_col="a")

        high = complete_df["a"] > complete_df["a"].median()
        rate_high = mask.loc[high, ["b", "c", "d"]].to_numpy().mean()
        rate_low = mask.loc[~high, ["b", "c", "d"]].to_numpy().mean()
        assert rate_high > rate_low + 0.1

    def test_dependency_by_index(self, complete_df):
        _, mask = create_mar(complete_df.to_numpy(), 0.3, seed=0, dependency_col=2)
        assert not mask[:, 2].any()

    def test_unknown_dependency(self, complete_df):
        with pytest.raises(KeyError):
            create_mar(complete_df, 0.3, seed=0, dependency_col="zzz")
        with pytest.raises(IndexError):
            create_mar(complete_df, 0.3, seed=0, dependency_col=10)


class TestMNAR:
    """Tests for create_mnar"""

    def test_high_values_go_missing(self, complete_df):
        _, mask = create_mnar(complete_df, 0.3, seed=0)

        for col in complete_df.columns:
            missing_mean = complete_df.loc[mask[col], col].mean()
            observed_mean = complete_df.loc[~mask[col], col].mean()
            assert missing_mean > observed_mean

    def test_constant_column(self):
        X = pd.DataFrame({"a": np.ones(500)})
        _, mask = create_mnar(X, 0.2, seed=0)
        assert mask["a"].mean() == pytest.approx(0.2, abs=0.06)


class TestIncompleteInput:
    """Amputation of tables that already have gaps"""

    @pytest.fixture
    def measurements(self, pima_like):
        return pima_like.drop(columns="diabetes")

    def test_mnar_amputes_incomplete_column(self, measurements):
        X_missing, mask = create_mnar(measurements, 0.3, seed=0)

        assert mask["insulin"].any()
        assert not (mask & measurements.isna()).to_numpy().any()
        pd.testing.assert_frame_equal(X_missing.isna(), mask | measurements.isna())

    @pytest.mark.parametrize("mechanism", ["MCAR", "MAR", "MNAR"])
    def test_mask_marks_new_gaps_only(self, measurements, mechanism):
        X_missing, mask = generate_missing_data(measurements, mechanism, 0.2, seed=3)

        new_gaps = X_missing.isna() & ~measurements.isna()
        pd.testing.assert_frame_equal(new_gaps, mask)

    def test_mar_driver_with_gaps(self, measurements):
        _, mask = create_mar(measurements, 0.3, seed=0, dependency_col="insulin",
                             columns=["pregnant", "pedigree", "age"])
        driver = measurements["insulin"]
        high = driver > driver.quantile(0.5)
        low = driver.notna() & ~high
        cols = ["pregnant", "pedigree", "age"]

        rate_high = mask.loc[high, cols].to_numpy().mean()
        rate_low = mask.loc[low, cols].to_numpy().mean()
        assert rate_high > rate_low + 0.1

    def test_mar_driver_all_missing(self, measurements):
        X = measurements.assign(insulin=np.nan)
        with pytest.raises(ValueError):
            create_mar(X, 0.3, seed=0, dependency_col="insulin")


class TestGenerateMissingData:
    """Tests for the generate_missing_data dispatcher"""

    @pytest.mark.parametrize("mechanism", ["MCAR", "mar", "Mnar"])
    def test_dispatch(self, complete_df, mechanism):
        X_missing, mask = generate_missing_data(complete_df, mechanism, 0.2, seed=1)
        assert mask.to_numpy().any()
        assert X_missing.isna().to_numpy().sum() == mask.to_numpy().sum()

    def test_kwargs_forwarded(self, complete_df):
        _, mask = generate_missing_data(complete_df, "MAR", 0.3, seed=1, dependency_col="d")
        assert not mask["d"].any()

    def test_unknown_mechanism(self, complete_df):
        with pytest.raises(ValueError):
            generate_missing_data(complete_df, "NMAR", 0.2)

    def test_invalid_rate(self, complete_df):
        with pytest.raises(ValueError):
            generate_missing_data(complete_df, "MCAR", 1.5)
