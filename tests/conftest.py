"""
Missing data workshop - Pytest Configuration
Shared fixtures: small synthetic tables shaped like the workshop datasets
"""

import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

# Add project root to path
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))

PIMA_ZERO_COLUMNS = ["glucose", "pressure", "triceps", "insulin", "mass"]


# ==================== DATA FIXTURES ====================

@pytest.fixture
def pima_like():
    """Pima-shaped table with NaN in the measurement columns (MAR on glucose for insulin)"""
    rng = np.random.default_rng(0)
    n = 200

    age = rng.integers(21, 70, n).astype(float)
    glucose = np.clip(rng.normal(120, 30, n), 50, 200)
    mass = np.clip(rng.normal(32, 6, n), 18, 60)
    df = pd.DataFrame({
        "pregnant": rng.integers(0, 10, n).astype(float),
        "glucose": glucose,
        "pressure": np.clip(rng.normal(72, 12, n), 30, 120),
        "triceps": np.clip(0.8 * mass + rng.normal(3, 5, n), 5, 60),
        "insulin": np.clip(1.2 * glucose + rng.normal(0, 40, n), 15, 600),
        "mass": mass,
        "pedigree": rng.uniform(0.08, 2.4, n),
        "age": age,
        "diabetes": np.where(glucose + rng.normal(0, 20, n) > 140, "pos", "neg"),
    })

    # Insulin missing far more often for low glucose
    p_insulin = np.where(glucose < 120, 0.7, 0.2)
    insulin_missing = rng.random(n) < p_insulin
    df.loc[insulin_missing, "insulin"] = np.nan
    # Triceps mostly missing together with insulin
    df.loc[insulin_missing & (rng.random(n) < 0.6), "triceps"] = np.nan
    df.loc[rng.random(n) < 0.05, "pressure"] = np.nan
    df.loc[[3, 57, 140], "glucose"] = np.nan
    df.loc[[10, 99], "mass"] = np.nan
    return df


@pytest.fixture
def pima_raw_like(pima_like):
    """Same table with the missing measurements coded as 0"""
    raw = pima_like.copy()
    raw[PIMA_ZERO_COLUMNS] = raw[PIMA_ZERO_COLUMNS].fillna(0.0)
    return raw


@pytest.fixture
def mammalsleep_like():
    """Mammal-sleep-shaped table: species names plus incomplete sleep measurements"""
    rng = np.random.default_rng(1)
    n = 62

    log_bw = rng.normal(0.5, 1.5, n)
    odi = rng.integers(1, 6, n).astype(float)
    sws = np.clip(10 - 1.5 * log_bw - 0.6 * odi + rng.normal(0, 1.5, n), 1, 20)
    ps = np.clip(0.25 * sws + rng.normal(0, 0.6, n), 0.1, 7)
    df = pd.DataFrame({
        "species": [f"species_{i}" for i in range(n)],
        "bw": 10 ** log_bw,
        "brw": 10 ** (0.75 * log_bw + 1 + rng.normal(0, 0.2, n)),
        "sws": sws,
        "ps": ps,
        "ts": sws + ps,
        "mls": np.clip(15 + 5 * log_bw + rng.normal(0, 5, n), 2, 100),
        "gt": np.clip(100 + 80 * log_bw + rng.normal(0, 40, n), 12, 650),
        "pi": rng.integers(1, 6, n).astype(float),
        "sei": rng.integers(1, 6, n).astype(float),
        "odi": odi,
    })

    df.loc[rng.choice(n, 12, replace=False), "sws"] = np.nan
    df.loc[rng.choice(n, 10, replace=False), "ps"] = np.nan
    df.loc[df["sws"].isna() & df["ps"].isna(), "ts"] = np.nan
    df.loc[rng.choice(n, 4, replace=False), "mls"] = np.nan
    df.loc[rng.choice(n, 4, replace=False), "gt"] = np.nan
    return df


@pytest.fixture
def complete_df():
    """Complete, correlated numeric table for amputation and imputation tests"""
    rng = np.random.default_rng(2)
    n = 300
    cov = np.array([
        [1.0, 0.6, 0.4, 0.2],
        [0.6, 1.0, 0.5, 0.3],
        [0.4, 0.5, 1.0, 0.4],
        [0.2, 0.3, 0.4, 1.0],
    ])
    values = rng.multivariate_normal(np.zeros(4), cov, size=n)
    return pd.DataFrame(values, columns=["a", "b", "c", "d"])


@pytest.fixture
def workshop_datasets(pima_like, pima_raw_like, mammalsleep_like):
    """Datasets by name, as loaded by the report and the experiment"""
    return {
        "pima": pima_like,
        "pima_raw": pima_raw_like,
        "mammalsleep": mammalsleep_like,
    }


@pytest.fixture(autouse=True)
def close_figures():
    """Close every figure a test leaves open"""
    yield
    plt.close("all")
