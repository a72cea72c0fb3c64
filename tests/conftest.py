# tests/conftest.py
import io

import numpy as np
import pandas as pd
import pytest
from loguru import logger

from flexcv.data_loader import simulate_quadratic


@pytest.fixture(autouse=True)
def disable_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


@pytest.fixture
def simulated():
    return simulate_quadratic(n_rows=100, noise_sd=0.3, seed=0)


@pytest.fixture
def growth_frame():
    """Heights that rise steeply up to 7 kg and more slowly after."""
    rng = np.random.RandomState(3)
    n = 120
    weight = rng.uniform(2, 15, size=n)
    height = 45 + 6 * weight - 4 * np.maximum(weight - 7, 0) + rng.normal(0, 2, size=n)
    return pd.DataFrame({
        "age": rng.randint(1, 60, size=n),
        "sex": rng.choice([1, 2], size=n),
        "weight": weight,
        "height": height,
        "armc": rng.uniform(12, 18, size=n),
    })


@pytest.fixture
def growth_csv(growth_frame):
    buf = io.StringIO()
    growth_frame.to_csv(buf, index=False)
    buf.seek(0)
    return buf
