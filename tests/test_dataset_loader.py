"""
Unit tests for data.dataset_loader (no network: local CSVs and a patched fetcher)
"""

from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest
import yaml

import data.dataset_loader as loader
from data.dataset_loader import (
    load_dataset_configs, load_dataset, load_all_datasets, prepare_dataset, zero_coded_columns,
)


@pytest.fixture
def toy_csv(tmp_path):
    path = tmp_path / "toy.csv"
    pd.DataFrame({
        "rownames": [1, 2, 3, 4],
        "x": [0.0, 1.5, 2.5, 0.0],
        "y": [0.0, 3.0, 4.0, 5.0],
        "label": ["a", "b", "c", "d"],
    }).to_csv(path, index=False)
    return path


@pytest.fixture
def config_file(tmp_path, toy_csv):
    config = {
        "datasets": {
            "toy": {
                "name": "Toy",
                "package": "pkg",
                "item": "toy",
                "sentinel_zero_columns": ["x"],
                "zeros_as_missing": True,
                "drop_columns": ["label"],
                "local_path": str(toy_csv),
            },
            "remote": {
                "package": "pkg",
                "item": "remote",
            },
        }
    }
    path = tmp_path / "datasets.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(config, f)
    return path


class TestLoadDatasetConfigs:
    """Tests for load_dataset_configs"""

    def test_bundled_config(self):
        configs = load_dataset_configs()

        assert {"pima", "pima_raw", "mammalsleep"} <= set(configs)
        assert configs["pima"]["item"] == "PimaIndiansDiabetes2"
        assert configs["pima_raw"]["zeros_as_missing"] is False
        assert "insulin" in configs["pima_raw"]["sentinel_zero_columns"]

    def test_defaults_filled(self, config_file):
        remote = load_dataset_configs(config_file)["remote"]

        assert remote["name"] == "remote"
        assert remote["drop_columns"] == []
        assert remote["zeros_as_missing"] is False
        assert remote["local_path"] is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_dataset_configs(tmp_path / "nope.yaml")

    def test_relative_path_from_repository_root(self):
        configs = load_dataset_configs("config/datasets_config.yaml")
        assert "mammalsleep" in configs


class TestZeroCodedColumns:
    """Tests for zero_coded_columns"""

    def test_bundled_pima(self):
        assert zero_coded_columns("pima_raw") == ["glucose", "pressure", "triceps", "insulin", "mass"]

    def test_from_config_file(self, config_file):
        assert zero_coded_columns("toy", config_file) == ["x"]
        assert zero_coded_columns("remote", config_file) == []

    def test_unknown_dataset(self, config_file):
        with pytest.raises(KeyError):
            zero_coded_columns("nope", config_file)


class TestPrepareDataset:
    """Tests for prepare_dataset"""

    def test_drops_rownames_and_recodes(self):
        raw = pd.DataFrame({"Unnamed: 0": [0, 1], "x": [0.0, 2.0], "y": [0.0, 1.0]})
        config = {"sentinel_zero_columns": ["x"], "zeros_as_missing": True, "drop_columns": []}

        out = prepare_dataset(raw, config)

        assert list(out.columns) == ["x", "y"]
        assert out["x"].isna().tolist() == [True, False]
        assert out["y"].tolist() == [0.0, 1.0]

    def test_zeros_kept_when_not_requested(self):
        raw = pd.DataFrame({"x": [0.0, 2.0]})
        out = prepare_dataset(raw, {"sentinel_zero_columns": ["x"], "zeros_as_missing": False})
        assert out["x"].isna().sum() == 0


class TestLoadDataset:
    """Tests for load_dataset and load_all_datasets"""

    def test_local_copy(self, config_file):
        df = load_dataset("toy", config_file)

        assert list(df.columns) == ["x", "y"]
        assert df["x"].isna().tolist() == [True, False, False, True]
        assert df["y"].iloc[0] == 0.0

    def test_unknown_dataset(self, config_file):
        with pytest.raises(KeyError):
            load_dataset("nope", config_file)

    def test_remote_fetch(self, config_file, monkeypatch):
        calls = []

        def fake_get_rdataset(item, package, cache=False):
            calls.append((item, package, cache))
            return SimpleNamespace(data=pd.DataFrame({"rownames": [1, 2], "v": [1.0, np.nan]}))

        monkeypatch.setattr(loader, "get_rdataset", fake_get_rdataset)
        df = load_dataset("remote", config_file, cache=False)

        assert calls == [("remote", "pkg", False)]
        assert list(df.columns) == ["v"]

    def test_load_all_skips_failures(self, config_file, monkeypatch):
        def failing_get_rdataset(item, package, cache=False):
            raise ConnectionError("offline")

        monkeypatch.setattr(loader, "get_rdataset", failing_get_rdataset)
        datasets = load_all_datasets(config_file)

        assert list(datasets) == ["toy"]
