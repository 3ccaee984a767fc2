"""
Unit tests for evaluation.visualization (Agg backend, see conftest)
"""

import numpy as np
import pandas as pd
import pytest
from matplotlib.figure import Figure

from evaluation import visualization as viz
from evaluation.pooling import fit_model
from imputers import MeanImputer, MICEImputerWrapper, listwise_deletion


class TestMissingMaps:
    """Tests for vis_miss, gg_miss_var and gg_miss_case"""

    def test_vis_miss(self, pima_like):
        assert isinstance(viz.vis_miss(pima_like), Figure)

    def test_vis_miss_sorted_and_clustered(self, pima_like):
        fig = viz.vis_miss(pima_like, sort_miss=True, cluster=True)
        labels = [t.get_text() for t in fig.axes[0].get_xticklabels()]
        assert labels[0].startswith("insulin")

    def test_save_path(self, pima_like, tmp_path):
        path = tmp_path / "vis_miss.png"
        viz.vis_miss(pima_like, save_path=str(path))
        assert path.exists()

    def test_cluster_rows_is_permutation(self, pima_like):
        order = viz.cluster_rows(pima_like.isna())
        assert sorted(order) == list(range(len(pima_like)))

    def test_gg_miss_var(self, pima_like):
        fig = viz.gg_miss_var(pima_like, show_pct=True)
        assert fig.axes[0].get_xlabel() == "% missing"

    def test_gg_miss_var_facet(self, pima_like):
        fig = viz.gg_miss_var(pima_like, facet="diabetes")
        assert len(fig.axes) == pima_like["diabetes"].nunique()

    def test_gg_miss_var_unknown_facet(self, pima_like):
        with pytest.raises(KeyError):
            viz.gg_miss_var(pima_like, facet="nope")

    def test_gg_miss_case(self, mammalsleep_like):
        assert isinstance(viz.gg_miss_case(mammalsleep_like), Figure)


class TestUpset:
    """Tests for missing_combinations and gg_miss_upset"""

    def test_combinations_count_incomplete_rows(self, pima_like):
        combos = viz.missing_combinations(pima_like)

        assert combos.sum() == pima_like.isna().any(axis=1).sum()
        assert set(combos.index.names) == set(pima_like.columns[pima_like.isna().any()])

    def test_nsets(self, pima_like):
        combos = viz.missing_combinations(pima_like, nsets=1)

        assert combos.index.names == ["insulin"]
        assert combos.sum() == pima_like["insulin"].isna().sum()

    def test_upset_plot(self, pima_like):
        assert isinstance(viz.gg_miss_upset(pima_like), Figure)

    def test_upset_needs_missing_values(self, complete_df):
        with pytest.raises(ValueError):
            viz.gg_miss_upset(complete_df)

    def test_upset_min_subset_size_filters_everything(self, pima_like):
        too_many = len(pima_like) + 1
        with pytest.raises(ValueError, match="No missing values"):
            viz.gg_miss_upset(pima_like, min_subset_size=too_many)

    def test_upset_min_subset_size(self, pima_like):
        assert isinstance(viz.gg_miss_upset(pima_like, min_subset_size=5), Figure)


class TestMissPoint:
    """Tests for shadow_shift and geom_miss_point"""

    def test_shadow_shift(self):
        shifted = viz.shadow_shift(pd.Series([0.0, 10.0, np.nan]), prop_below=0.1)
        assert shifted.tolist() == [0.0, 10.0, -1.0]

    def test_shadow_shift_all_missing(self):
        assert viz.shadow_shift(pd.Series([np.nan, np.nan])).tolist() == [0.0, 0.0]

    def test_geom_miss_point(self, pima_like):
        fig = viz.geom_miss_point(pima_like, x="insulin", y="glucose")
        assert fig.axes[0].get_title() == "glucose vs insulin"

    def test_geom_miss_point_unknown_column(self, pima_like):
        with pytest.raises(KeyError):
            viz.geom_miss_point(pima_like, x="insulin", y="nope")


class TestMissingno:
    """Tests for the missingno wrappers"""

    @pytest.mark.parametrize("plot", ["msno_matrix", "msno_bar", "msno_heatmap", "msno_dendrogram"])
    def test_returns_figure(self, mammalsleep_like, plot):
        assert isinstance(getattr(viz, plot)(mammalsleep_like), Figure)


class TestImputationPlots:
    """Tests for plot_imputed_distributions, plot_pooled_estimates and plot_results"""

    def test_imputed_distributions(self, mammalsleep_like):
        data = mammalsleep_like.drop(columns="species")
        imputation = MICEImputerWrapper(m=2, max_iter=3, random_state=0).fit_transform(data)

        fig = viz.plot_imputed_distributions(data, imputation.imputations)
        visible = [ax for ax in fig.axes if ax.get_visible()]
        assert len(visible) == int(data.isna().any().sum())

    def test_imputed_distributions_single_imputation(self, mammalsleep_like):
        data = mammalsleep_like.drop(columns="species")
        fig = viz.plot_imputed_distributions(data, [MeanImputer().fit_transform(data)], columns=["sws"])
        assert fig.axes[0].get_title() == "sws"

    def test_imputed_distributions_complete_data(self, complete_df):
        with pytest.raises(ValueError):
            viz.plot_imputed_distributions(complete_df, [complete_df])

    def test_pooled_estimates(self, mammalsleep_like):
        data = mammalsleep_like.drop(columns="species")
        formula = "sws ~ np.log10(bw) + odi"
        pooled = MICEImputerWrapper(m=2, max_iter=3, random_state=0).fit_transform(data).with_model(formula).pool()

        fig = viz.plot_pooled_estimates(pooled, fit_model(listwise_deletion(data), formula))
        labels = [t.get_text() for t in fig.axes[0].get_yticklabels()]
        assert labels == list(pooled.index)

    def test_plot_results(self):
        summary = pd.DataFrame({
            "mechanism": ["MCAR", "MCAR", "MAR", "MAR"],
            "method": ["mean", "knn", "mean", "knn"],
            "rmse": [1.0, 0.7, 1.2, 0.8],
        })
        fig = viz.plot_results(summary, metric="rmse")
        assert fig.axes[0].get_ylabel() == "RMSE"
