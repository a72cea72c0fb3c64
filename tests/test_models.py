import numpy as np
import pandas as pd
import pytest

from flexcv.cv_helpers import (
    LinearFit,
    PiecewiseLinearFit,
    SmoothFit,
    WigglyFit,
    add_breakpoint_term,
    default_models,
    growth_models,
    regression_metrics,
    rmse_score,
)
from flexcv.errors import ConfigurationError, FittingError, InsufficientDataError


class _FixedModel:
    name = "fixed"

    def __init__(self, predictions):
        self.predictions = np.asarray(predictions, dtype=float)

    def predict(self, df):
        return self.predictions


@pytest.fixture
def hinge():
    x = np.linspace(0, 14, 29)
    return pd.DataFrame({"weight": x, "height": 1 + 2 * x + 3 * np.maximum(x - 7, 0)})


# ---------------------------------------------------------------------------
# breakpoint term
# ---------------------------------------------------------------------------
def test_breakpoint_term_values():
    df = pd.DataFrame({"weight": [3.0, 7.0, 7.5, 10.0]})
    out = add_breakpoint_term(df, "weight", 7)

    np.testing.assert_allclose(out["weight_excess"], [0.0, 0.0, 0.5, 3.0])
    assert "weight_excess" not in df.columns


def test_breakpoint_term_custom_name():
    df = pd.DataFrame({"weight": [8.0]})
    assert add_breakpoint_term(df, "weight", 7, name="hinge")["hinge"].iloc[0] == 1.0


def test_breakpoint_term_unknown_column():
    with pytest.raises(ConfigurationError):
        add_breakpoint_term(pd.DataFrame({"a": [1]}), "weight", 7)


# ---------------------------------------------------------------------------
# fitters
# ---------------------------------------------------------------------------
def test_linear_fit_recovers_line():
    df = pd.DataFrame({"x": np.arange(10.0), "y": 1 + 2 * np.arange(10.0)})
    model = LinearFit().fit(df, "x", "y")

    np.testing.assert_allclose(model.predict(pd.DataFrame({"x": [20.0]})), [41.0])
    assert model.n_train == 10


def test_piecewise_fit_recovers_hinge(hinge):
    model = PiecewiseLinearFit(breakpoint=7).fit(hinge, "weight", "height")

    pred = model.predict(pd.DataFrame({"weight": [3.0, 10.0]}))
    np.testing.assert_allclose(pred, [7.0, 30.0], atol=1e-8)


def test_linear_fit_cannot_follow_hinge(hinge):
    model = LinearFit().fit(hinge, "weight", "height")
    assert rmse_score(model, hinge, "height") > 1.0


def test_hinge_term_only_enters_piecewise_design(hinge):
    linear_design = LinearFit().design(hinge, "weight")
    piecewise_design = PiecewiseLinearFit(7).design(hinge, "weight")

    assert linear_design.shape == (len(hinge), 1)
    assert piecewise_design.shape == (len(hinge), 2)
    np.testing.assert_allclose(piecewise_design[:, 1], np.maximum(hinge["weight"] - 7, 0))


def test_fit_does_not_mutate_training_table(hinge):
    before = hinge.copy()
    PiecewiseLinearFit(7).fit(hinge, "weight", "height")
    pd.testing.assert_frame_equal(hinge, before)


def test_smooth_fit_follows_quadratic():
    x = np.linspace(0, 1, 60)
    df = pd.DataFrame({"x": x, "y": 1 - 10 * (x - 0.3) ** 2})
    model = SmoothFit().fit(df, "x", "y")

    assert rmse_score(model, df, "y") < 0.05


def test_wiggly_fit_chases_noise_in_sample(simulated):
    smooth = SmoothFit().fit(simulated, "x", "y")
    wiggly = WigglyFit(n_splines=40).fit(simulated, "x", "y")

    assert rmse_score(wiggly, simulated, "y") < rmse_score(smooth, simulated, "y")


def test_parameter_counts():
    assert LinearFit().n_params == 2
    assert PiecewiseLinearFit().n_params == 3
    assert SmoothFit(n_splines=10).n_params == 10
    assert WigglyFit(n_splines=20).n_params == 20


@pytest.mark.parametrize("fitter, n_rows", [
    (LinearFit(), 1),
    (PiecewiseLinearFit(7), 2),
    (SmoothFit(), 9),
    (WigglyFit(), 19),
])
def test_too_few_rows(fitter, n_rows):
    df = pd.DataFrame({"x": np.linspace(0, 14, n_rows), "y": np.arange(n_rows, dtype=float)})
    with pytest.raises(InsufficientDataError):
        fitter.fit(df, "x", "y")


def test_constant_predictor():
    df = pd.DataFrame({"x": [5.0] * 20, "y": np.arange(20.0)})
    with pytest.raises(InsufficientDataError):
        LinearFit().fit(df, "x", "y")


def test_piecewise_without_rows_past_breakpoint_is_singular():
    df = pd.DataFrame({"weight": np.arange(7.0), "height": np.arange(7.0) * 2})
    with pytest.raises(FittingError):
        PiecewiseLinearFit(7).fit(df, "weight", "height")


def test_missing_rows_are_dropped_before_fitting():
    df = pd.DataFrame({"x": [0.0, 1.0, 2.0, np.nan], "y": [1.0, 3.0, 5.0, 7.0]})
    model = LinearFit().fit(df, "x", "y")
    assert model.n_train == 3


def test_unknown_columns():
    df = pd.DataFrame({"x": np.arange(5.0), "y": np.arange(5.0)})
    with pytest.raises(ConfigurationError):
        LinearFit().fit(df, "x", "height")


@pytest.mark.parametrize("kwargs", [{"n_splines": 3}, {"lams": []}, {"lams": [-1.0]}])
def test_invalid_spline_settings(kwargs):
    with pytest.raises(ConfigurationError):
        SmoothFit(**kwargs)


def test_invalid_wiggly_penalty():
    with pytest.raises(ConfigurationError):
        WigglyFit(lam=-1.0)


def test_heavy_smoothing_penalty_keeps_the_slope():
    x = np.linspace(0, 1, 50)
    df = pd.DataFrame({"x": x, "y": 3 * x})
    model = SmoothFit(lams=[1e6]).fit(df, "x", "y")

    low, high = model.predict(pd.DataFrame({"x": [0.25, 0.75]}))
    assert (high - low) / 0.5 == pytest.approx(3.0, abs=0.05)


def test_predict_rejects_missing_predictor():
    df = pd.DataFrame({"x": np.arange(10.0), "y": 1 + 2 * np.arange(10.0)})
    model = LinearFit().fit(df, "x", "y")

    with pytest.raises(ConfigurationError, match="missing or non-numeric"):
        model.predict(pd.DataFrame({"x": [1.0, np.nan]}))


def test_model_sets():
    assert list(default_models()) == ["linear", "smooth", "wiggly"]
    models = growth_models(breakpoint=6.5)
    assert list(models) == ["linear", "piecewise", "smooth"]
    assert models["piecewise"].breakpoint == 6.5


# ---------------------------------------------------------------------------
# scoring
# ---------------------------------------------------------------------------
def test_rmse_formula():
    test = pd.DataFrame({"y": [1.0, 2.0, 3.0]})
    assert rmse_score(_FixedModel([1.0, 2.0, 5.0]), test, "y") == pytest.approx(np.sqrt(4 / 3))


def test_rmse_is_deterministic(simulated):
    model = SmoothFit().fit(simulated.iloc[:80], "x", "y")
    test = simulated.iloc[80:]

    assert rmse_score(model, test, "y") == rmse_score(model, test, "y")


def test_rmse_empty_test_subset():
    with pytest.raises(InsufficientDataError):
        rmse_score(_FixedModel([]), pd.DataFrame({"y": []}), "y")


def test_rmse_non_finite_predictions():
    with pytest.raises(FittingError):
        rmse_score(_FixedModel([1.0, np.nan]), pd.DataFrame({"y": [1.0, 2.0]}), "y")


def test_rmse_missing_response_column():
    with pytest.raises(ConfigurationError):
        rmse_score(_FixedModel([1.0]), pd.DataFrame({"x": [1.0]}), "y")


def test_regression_metrics():
    metrics = regression_metrics([1.0, 2.0, 3.0], [1.0, 2.0, 5.0])

    assert metrics["mse"] == pytest.approx(4 / 3)
    assert metrics["rmse"] == pytest.approx(np.sqrt(4 / 3))
    assert metrics["mae"] == pytest.approx(2 / 3)
    assert metrics["r2"] == pytest.approx(1 - 4 / 2)
