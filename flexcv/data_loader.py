"""Data generation, loading and cleaning for the three course datasets."""
import os

import numpy as np
import pandas as pd
import streamlit as st
from loguru import logger

from flexcv.constants import (
    CHILD_GROWTH_FILE,
    DATA_DIR,
    EXCLUDED_BOROUGH,
    GROWTH_BREAKPOINT,
    GROWTH_COLUMNS,
    HOUSING_COLUMNS,
    HOUSING_FILE,
    HOUSING_RENAMES,
    SIMULATED_N_ROWS,
    SIMULATED_NOISE_SD,
)
from flexcv.cv_helpers import add_breakpoint_term
from flexcv.errors import ConfigurationError, InsufficientDataError

CHILD_GROWTH_PATH = os.path.join(DATA_DIR, CHILD_GROWTH_FILE)
HOUSING_PATH = os.path.join(DATA_DIR, HOUSING_FILE)


def true_curve(x):
    """Noiseless quadratic behind the simulated data."""
    return 1 - 10 * (np.asarray(x, dtype=float) - 0.3) ** 2


def simulate_quadratic(n_rows=SIMULATED_N_ROWS, noise_sd=SIMULATED_NOISE_SD, seed=None):
    """Uniform x on [0, 1] with y = 1 - 10 (x - 0.3)^2 plus Gaussian noise."""
    if n_rows < 2:
        raise InsufficientDataError(f"Need at least 2 rows, got {n_rows}")
    if noise_sd < 0:
        raise ConfigurationError(f"noise_sd must be non-negative, got {noise_sd}")

    rng = np.random.RandomState(seed)
    x = rng.uniform(0, 1, size=n_rows)
    y = true_curve(x) + rng.normal(0, noise_sd, size=n_rows)
    return pd.DataFrame({"id": np.arange(1, n_rows + 1), "x": x, "y": y})


def read_child_growth(source, breakpoint=GROWTH_BREAKPOINT):
    """Read the child-growth table and add the weight breakpoint column."""
    df = pd.read_csv(source, sep=None, engine="python")
    df.columns = [c.strip().lower() for c in df.columns]

    missing = [c for c in GROWTH_COLUMNS if c not in df.columns]
    if missing:
        raise ConfigurationError(f"Child-growth file is missing column(s): {', '.join(missing)}")

    df = df[GROWTH_COLUMNS].apply(pd.to_numeric, errors="coerce")
    n_raw = len(df)
    df = df.dropna(subset=["weight", "height"]).reset_index(drop=True)
    if len(df) < n_raw:
        logger.warning("Dropped {} child-growth rows missing weight or height", n_raw - len(df))

    df = add_breakpoint_term(df, "weight", breakpoint)
    logger.info("Loaded child-growth table: {} rows, breakpoint={}", len(df), breakpoint)
    return df


def _parse_price(series):
    if not pd.api.types.is_numeric_dtype(series):
        series = series.astype(str).str.replace(r"[$,\s]", "", regex=True)
    return pd.to_numeric(series, errors="coerce")


def _rename_housing_columns(df):
    """Map the first available raw column onto each course column name."""
    renames = {}
    for target, candidates in HOUSING_RENAMES.items():
        if target in df.columns:
            continue
        present = [c for c in candidates if c in df.columns]
        if present:
            renames[present[0]] = target
    return df.rename(columns=renames)


def read_housing(source, drop_borough=EXCLUDED_BOROUGH):
    """Read listings, drop one borough and keep the columns used in the course."""
    df = pd.read_csv(source)
    df = _rename_housing_columns(df)

    if "rating" not in df.columns and "review_scores_rating" in df.columns:
        score = pd.to_numeric(df["review_scores_rating"], errors="coerce")
        # older exports score out of 100, newer ones out of 5
        df["rating"] = score / 20 if score.max() > 5 else score

    missing = [c for c in HOUSING_COLUMNS if c not in df.columns]
    if missing:
        raise ConfigurationError(f"Housing file is missing column(s): {', '.join(missing)}")

    df["price"] = _parse_price(df["price"])
    n_raw = len(df)
    if drop_borough:
        df = df[df["borough"] != drop_borough]
    df = df[HOUSING_COLUMNS].reset_index(drop=True)
    logger.info(
        "Loaded housing table: {} of {} rows kept (dropped borough: {})",
        len(df), n_raw, drop_borough or "none",
    )
    return df


@st.cache_data
def load_simulated(n_rows=SIMULATED_N_ROWS, noise_sd=SIMULATED_NOISE_SD, seed=None):
    """Cached simulated table."""
    return simulate_quadratic(n_rows, noise_sd, seed)


@st.cache_data
def load_child_growth(breakpoint=GROWTH_BREAKPOINT, path=CHILD_GROWTH_PATH):
    """Load the child-growth table from the data directory."""
    return read_child_growth(path, breakpoint)


@st.cache_data
def load_housing(drop_borough=EXCLUDED_BOROUGH, path=HOUSING_PATH):
    """Load the housing table from the data directory."""
    return read_housing(path, drop_borough)


def dataset_source(path, label, key):
    """Return the configured file if it exists, otherwise a sidebar upload (or None)."""
    if os.path.exists(path):
        return path
    st.sidebar.header("Data")
    st.sidebar.caption(f"No file at `{path}`.")
    return st.sidebar.file_uploader(f"Upload {label} (CSV)", type=["csv", "txt"], key=key)
