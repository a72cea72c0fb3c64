import numpy as np
import pandas as pd
import pytest

from flexcv.cv_helpers import holdout_splits, resolve_train_size
from flexcv.errors import ConfigurationError, InsufficientDataError


def test_split_count_and_sizes(simulated):
    splits = holdout_splits(simulated, n_splits=100, train_size=0.8, seed=1)

    assert len(splits) == 100
    for s in splits:
        assert len(s.train_index) == 80
        assert len(s.test_index) == 20


def test_train_and_test_are_disjoint_and_cover_table(simulated):
    for s in holdout_splits(simulated, n_splits=25, train_size=0.8, seed=2):
        train, test = set(s.train_index), set(s.test_index)
        assert not train & test
        assert len(train) + len(test) <= len(simulated)
        assert train | test == set(range(len(simulated)))


def test_subsets_match_row_identity(simulated):
    s = holdout_splits(simulated, n_splits=1, train_size=0.8, seed=3)[0]

    train, test = s.train(simulated), s.test(simulated)
    assert set(train["id"]).isdisjoint(test["id"])
    assert len(train) + len(test) == len(simulated)


def test_single_split():
    df = pd.DataFrame({"x": np.arange(10.0), "y": np.arange(10.0)})
    assert len(holdout_splits(df, n_splits=1, train_size=0.5, seed=0)) == 1


def test_same_seed_same_splits(simulated):
    a = holdout_splits(simulated, n_splits=5, train_size=0.8, seed=42)
    b = holdout_splits(simulated, n_splits=5, train_size=0.8, seed=42)

    for sa, sb in zip(a, b):
        np.testing.assert_array_equal(sa.train_index, sb.train_index)
        np.testing.assert_array_equal(sa.test_index, sb.test_index)


def test_splits_differ_from_each_other(simulated):
    a, b = holdout_splits(simulated, n_splits=2, train_size=0.8, seed=42)
    assert not np.array_equal(a.train_index, b.train_index)


def test_split_ids_are_ordered(simulated):
    splits = holdout_splits(simulated, n_splits=3, train_size=0.8, seed=0)
    assert [s.split_id for s in splits] == ["Split001", "Split002", "Split003"]


def test_default_fraction_is_three_quarters(simulated):
    s = holdout_splits(simulated, n_splits=1, seed=0)[0]
    assert len(s.train_index) == 75


def test_integer_train_size(simulated):
    s = holdout_splits(simulated, n_splits=1, train_size=60, seed=0)[0]
    assert len(s.train_index) == 60
    assert len(s.test_index) == 40


@pytest.mark.parametrize("train_size", [100, 1.0])
def test_full_table_train_size_is_insufficient(simulated, train_size):
    with pytest.raises(InsufficientDataError):
        holdout_splits(simulated, n_splits=3, train_size=train_size)


@pytest.mark.parametrize("train_size", [101, 0, -5, 1.5, -0.2, 0.0, "0.8", True])
def test_invalid_train_size(simulated, train_size):
    with pytest.raises(ConfigurationError):
        holdout_splits(simulated, n_splits=3, train_size=train_size)


@pytest.mark.parametrize("n_splits", [0, -1, 2.5])
def test_invalid_split_count(simulated, n_splits):
    with pytest.raises(ConfigurationError):
        holdout_splits(simulated, n_splits=n_splits)


def test_one_row_table_is_insufficient():
    df = pd.DataFrame({"x": [1.0], "y": [2.0]})
    with pytest.raises(InsufficientDataError):
        holdout_splits(df, n_splits=1, train_size=0.5)


def test_fraction_rounding_to_zero_rows():
    with pytest.raises(InsufficientDataError):
        resolve_train_size(10, 0.05)


def test_fraction_rounds_down():
    assert resolve_train_size(10, 0.79) == 7
