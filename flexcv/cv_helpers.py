"""Repeated holdout resampling, model fitters, RMSE scoring and aggregation."""
from dataclasses import dataclass

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from loguru import logger
from pygam import LinearGAM, s
from scipy import stats
from sklearn.linear_model import LinearRegression
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score
from sklearn.model_selection import ShuffleSplit

from flexcv.constants import DEFAULT_N_SPLITS, DEFAULT_TRAIN_FRACTION, GROWTH_BREAKPOINT
from flexcv.errors import (
    ConfigurationError,
    CrossValidationError,
    FittingError,
    FlexCVError,
    InsufficientDataError,
)

_VARIANCE_TOL = 1e-10
_SPLINE_ORDER = 3


# ---------------------------------------------------------------------------
# Splits
# ---------------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class Split:
    """One train/test partition, stored as positional row indices."""

    split_id: str
    train_index: np.ndarray
    test_index: np.ndarray

    def train(self, df):
        return df.iloc[self.train_index]

    def test(self, df):
        return df.iloc[self.test_index]


def resolve_train_size(n_rows, train_size):
    """Turn a fraction or row count into a validated number of training rows."""
    if n_rows < 2:
        raise InsufficientDataError(f"Need at least 2 rows to split, got {n_rows}")

    if isinstance(train_size, (bool, np.bool_)):
        raise ConfigurationError(f"train_size must be a fraction or a row count, got {train_size!r}")
    if isinstance(train_size, (int, np.integer)):
        n_train = int(train_size)
        if n_train < 1:
            raise ConfigurationError(f"train_size must be positive, got {n_train}")
        if n_train > n_rows:
            raise ConfigurationError(
                f"train_size {n_train} is larger than the table ({n_rows} rows)"
            )
    elif isinstance(train_size, (float, np.floating)):
        if not 0.0 < train_size <= 1.0:
            raise ConfigurationError(f"train_size fraction must be in (0, 1], got {train_size}")
        n_train = int(np.floor(train_size * n_rows))
        if n_train < 1:
            raise InsufficientDataError(
                f"train_size {train_size} of {n_rows} rows leaves no training rows"
            )
    else:
        raise ConfigurationError(f"train_size must be a fraction or a row count, got {train_size!r}")

    if n_train == n_rows:
        raise InsufficientDataError(
            f"train_size covers all {n_rows} rows, leaving an empty test subset"
        )
    return n_train


def holdout_splits(df, n_splits=DEFAULT_N_SPLITS, train_size=DEFAULT_TRAIN_FRACTION, seed=None):
    """Draw ``n_splits`` independent random train/test partitions of ``df``.

    Each split samples its training rows without replacement; the test rows
    are the complement. Rows can appear in the training set of many splits.
    """
    if isinstance(n_splits, (bool, np.bool_)) or not isinstance(n_splits, (int, np.integer)):
        raise ConfigurationError(f"n_splits must be an integer, got {n_splits!r}")
    if n_splits < 1:
        raise ConfigurationError(f"n_splits must be at least 1, got {n_splits}")

    n_rows = len(df)
    n_train = resolve_train_size(n_rows, train_size)

    splitter = ShuffleSplit(
        n_splits=int(n_splits),
        train_size=n_train,
        test_size=n_rows - n_train,
        random_state=seed,
    )
    width = max(3, len(str(n_splits)))
    splits = [
        Split(f"Split{i + 1:0{width}d}", np.sort(train_idx), np.sort(test_idx))
        for i, (train_idx, test_idx) in enumerate(splitter.split(np.arange(n_rows)))
    ]
    logger.info(
        "Generated {} holdout splits ({} train / {} test rows, seed={})",
        len(splits), n_train, n_rows - n_train, seed,
    )
    return splits


# ---------------------------------------------------------------------------
# Model fitters
# ---------------------------------------------------------------------------
def add_breakpoint_term(df, column, breakpoint=GROWTH_BREAKPOINT, name=None):
    """Return a copy of ``df`` with ``max(0, column - breakpoint)`` added."""
    if column not in df.columns:
        raise ConfigurationError(f"Column '{column}' not found")
    out = df.copy()
    out[name or f"{column}_excess"] = np.maximum(out[column].to_numpy(dtype=float) - breakpoint, 0.0)
    return out


def _check_columns(df, *columns):
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ConfigurationError(f"Column(s) not found: {', '.join(missing)}")


class FittedModel:
    """A trained estimator bound to the columns and design it was fit with."""

    def __init__(self, fitter, estimator, predictor, response, n_train):
        self.fitter = fitter
        self.estimator = estimator
        self.predictor = predictor
        self.response = response
        self.n_train = n_train

    @property
    def name(self):
        return self.fitter.name

    def predict(self, df):
        _check_columns(df, self.predictor)
        x = pd.to_numeric(df[self.predictor], errors="coerce").to_numpy(dtype=float, na_value=np.nan)
        bad = ~np.isfinite(x)
        if bad.any():
            raise ConfigurationError(
                f"{self.name}: predictor '{self.predictor}' has {int(bad.sum())} missing or "
                f"non-numeric value(s) in the rows to predict"
            )
        X = self.fitter.design(pd.DataFrame({self.predictor: x}), self.predictor)
        try:
            return np.asarray(self.estimator.predict(X), dtype=float)
        except (ValueError, np.linalg.LinAlgError) as exc:
            raise FittingError(f"{self.name}: prediction failed: {exc}") from exc

    def __repr__(self):
        return f"FittedModel({self.fitter!r}, predictor={self.predictor!r}, n_train={self.n_train})"


class RegressionFit:
    """Common fitting procedure shared by every model variant.

    Subclasses say how to build the design matrix and the estimator; this
    class validates the training subset, runs the fit and checks the result.
    """

    name = "regression"

    @property
    def n_params(self):
        raise NotImplementedError

    def design(self, df, predictor):
        return df[[predictor]].to_numpy(dtype=float)

    def build_estimator(self):
        raise NotImplementedError

    def run_fit(self, estimator, X, y):
        estimator.fit(X, y)

    def check_fit(self, estimator, X):
        pass

    def fit(self, train, predictor, response):
        _check_columns(train, predictor, response)
        data = train[[predictor, response]].apply(pd.to_numeric, errors="coerce").dropna()

        if len(data) < self.n_params:
            raise InsufficientDataError(
                f"{self.name}: {len(data)} training rows for {self.n_params} free parameters"
            )
        x = data[predictor].to_numpy(dtype=float)
        if np.var(x) <= _VARIANCE_TOL * max(1.0, float(np.mean(x)) ** 2):
            raise InsufficientDataError(f"{self.name}: predictor '{predictor}' is constant in training rows")

        X = self.design(data, predictor)
        y = data[response].to_numpy(dtype=float)
        estimator = self.build_estimator()
        try:
            self.run_fit(estimator, X, y)
        except (ValueError, np.linalg.LinAlgError) as exc:
            raise FittingError(f"{self.name}: fit failed: {exc}") from exc
        self.check_fit(estimator, X)
        return FittedModel(self, estimator, predictor, response, len(data))

    def __repr__(self):
        return f"{type(self).__name__}()"


class LinearFit(RegressionFit):
    """Ordinary least squares of response on the predictor."""

    name = "linear"

    @property
    def n_params(self):
        return 2

    def build_estimator(self):
        return LinearRegression()

    def check_fit(self, estimator, X):
        if estimator.rank_ < X.shape[1] or not np.all(np.isfinite(estimator.coef_)):
            raise FittingError(f"{self.name}: singular design matrix")


class PiecewiseLinearFit(LinearFit):
    """OLS on the predictor plus its excess beyond a fixed breakpoint.

    The slope is free to change at ``breakpoint``. The excess term is built
    here, so it only ever enters this model's design.
    """

    name = "piecewise"

    def __init__(self, breakpoint=GROWTH_BREAKPOINT):
        self.breakpoint = float(breakpoint)

    @property
    def n_params(self):
        return 3

    def design(self, df, predictor):
        x = df[predictor].to_numpy(dtype=float)
        return np.column_stack([x, np.maximum(x - self.breakpoint, 0.0)])

    def __repr__(self):
        return f"PiecewiseLinearFit(breakpoint={self.breakpoint})"


class SmoothFit(RegressionFit):
    """Penalized cubic regression spline.

    The penalty is on the second derivative of the curve, so a large
    smoothing parameter pulls the fit towards a straight line rather than
    towards zero. The parameter is picked from ``lams`` by GCV.
    """

    name = "smooth"

    def __init__(self, n_splines=10, lams=None):
        if n_splines <= _SPLINE_ORDER:
            raise ConfigurationError(f"n_splines must be greater than {_SPLINE_ORDER}, got {n_splines}")
        lams = np.logspace(-3, 3, 11) if lams is None else np.asarray(lams, dtype=float)
        if lams.size == 0 or np.any(lams < 0):
            raise ConfigurationError("lams must be a non-empty sequence of non-negative values")
        self.n_splines = n_splines
        self.lams = lams

    @property
    def n_params(self):
        return self.n_splines

    def terms(self):
        return s(0, n_splines=self.n_splines, spline_order=_SPLINE_ORDER)

    def build_estimator(self):
        return LinearGAM(self.terms())

    def run_fit(self, estimator, X, y):
        estimator.gridsearch(X, y, lam=self.lams, objective="GCV", progress=False)

    def check_fit(self, estimator, X):
        if not np.all(np.isfinite(estimator.coef_)):
            raise FittingError(f"{self.name}: non-finite spline coefficients")

    def __repr__(self):
        return f"{type(self).__name__}(n_splines={self.n_splines})"


class WigglyFit(SmoothFit):
    """A smooth fit with a large basis and a near-zero penalty. Overfits on purpose."""

    name = "wiggly"

    def __init__(self, n_splines=20, lam=1e-3):
        super().__init__(n_splines=n_splines, lams=[lam])
        self.lam = lam

    def build_estimator(self):
        return LinearGAM(self.terms(), lam=self.lam)

    def run_fit(self, estimator, X, y):
        estimator.fit(X, y)


def default_models():
    """Linear, smooth and wiggly fits, in comparison order."""
    return {"linear": LinearFit(), "smooth": SmoothFit(), "wiggly": WigglyFit()}


def growth_models(breakpoint=GROWTH_BREAKPOINT):
    """Linear, piecewise-linear and smooth fits for the child-growth data."""
    return {
        "linear": LinearFit(),
        "piecewise": PiecewiseLinearFit(breakpoint),
        "smooth": SmoothFit(),
    }


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------
def regression_metrics(y_true, y_pred):
    """Compute regression metrics."""
    return {
        "mse": mean_squared_error(y_true, y_pred),
        "rmse": np.sqrt(mean_squared_error(y_true, y_pred)),
        "mae": mean_absolute_error(y_true, y_pred),
        "r2": r2_score(y_true, y_pred),
    }


def rmse_score(model, test, response):
    """Root-mean-squared prediction error of ``model`` over every row of ``test``."""
    if len(test) == 0:
        raise InsufficientDataError("Cannot score against an empty test subset")
    _check_columns(test, response)

    actual = pd.to_numeric(test[response], errors="coerce").to_numpy(dtype=float)
    if not np.all(np.isfinite(actual)):
        raise ConfigurationError(f"Response '{response}' has missing values in the test subset")
    predicted = model.predict(test)
    if not np.all(np.isfinite(predicted)):
        raise FittingError(f"{model.name}: non-finite predictions")
    return float(np.sqrt(mean_squared_error(actual, predicted)))


# ---------------------------------------------------------------------------
# Cross-validation and aggregation
# ---------------------------------------------------------------------------
def _evaluate_split(df, split, models, predictor, response):
    train = split.train(df)
    test = split.test(df)
    row = {"split": split.split_id}
    for name, fitter in models.items():
        try:
            row[name] = rmse_score(fitter.fit(train, predictor, response), test, response)
        except FlexCVError as exc:
            raise CrossValidationError(
                f"{split.split_id} / {name}: {exc}", split_id=split.split_id, model=name
            ) from exc
    return row


def _evaluate_or_skip(df, split, models, predictor, response, on_error):
    try:
        return _evaluate_split(df, split, models, predictor, response)
    except CrossValidationError as exc:
        if on_error == "raise":
            logger.error("Cross-validation failed at {} ({}): {}", exc.split_id, exc.model, exc)
            raise
        logger.warning("Skipping {}: {} failed ({})", exc.split_id, exc.model, exc.__cause__)
        return None


def cross_validate(df, splits, models, predictor, response, n_jobs=1, on_error="raise"):
    """Fit every model on each split's train rows and score it on the test rows.

    Returns a wide frame with a ``split`` column and one RMSE column per model.
    With ``on_error="skip"`` a split whose fit or score fails is dropped as a
    whole; with ``"raise"`` the first failure aborts the run.
    """
    if on_error not in ("raise", "skip"):
        raise ConfigurationError(f"on_error must be 'raise' or 'skip', got {on_error!r}")
    if not models:
        raise ConfigurationError("No models to compare")
    if not splits:
        raise ConfigurationError("No splits to evaluate")
    _check_columns(df, predictor, response)

    logger.info(
        "Cross-validating {} model(s) [{}] on {} splits: {} ~ {}",
        len(models), ", ".join(models), len(splits), response, predictor,
    )
    rows = Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(_evaluate_or_skip)(df, split, models, predictor, response, on_error)
        for split in splits
    )
    rows = [r for r in rows if r is not None]
    if not rows:
        raise CrossValidationError("Every split failed; no scores to report")
    if len(rows) < len(splits):
        logger.warning("{} of {} splits skipped", len(splits) - len(rows), len(splits))

    scores = pd.DataFrame(rows, columns=["split", *models])
    logger.info("Cross-validation finished: {} scored splits", len(scores))
    return scores


def scores_to_long(scores):
    """Reshape wide per-split scores into (split, model, rmse) rows."""
    model_cols = [c for c in scores.columns if c != "split"]
    long = scores.melt(id_vars="split", value_vars=model_cols, var_name="model", value_name="rmse")
    return long.reset_index(drop=True)


def summarize_scores(long):
    """Mean, spread and count of RMSE per model, in the order models appear."""
    if long.empty:
        raise InsufficientDataError("No scores to summarize")
    summary = long.groupby("model", sort=False)["rmse"].agg(
        mean_rmse="mean",
        std_rmse="std",
        sem_rmse=lambda s: stats.sem(s) if len(s) > 1 else np.nan,
        n_splits="size",
    )
    return summary.reset_index()


def best_model(summary):
    """Name of the model with the lowest mean RMSE."""
    return summary.loc[summary["mean_rmse"].idxmin(), "model"]


def fit_curves(df, models, predictor, response, n_points=200):
    """Fit each model on the full table and evaluate it on an even grid."""
    _check_columns(df, predictor, response)
    x = pd.to_numeric(df[predictor], errors="coerce").dropna()
    grid = pd.DataFrame({predictor: np.linspace(x.min(), x.max(), n_points)})

    frames = []
    for name, fitter in models.items():
        fitted = fitter.fit(df, predictor, response)
        frames.append(grid.assign(model=name, fitted=fitted.predict(grid)))
    return pd.concat(frames, ignore_index=True)[["model", predictor, "fitted"]]


def compare_models(df, models, predictor, response, n_splits=DEFAULT_N_SPLITS,
                   train_size=DEFAULT_TRAIN_FRACTION, seed=None, n_jobs=1, on_error="raise"):
    """Run the whole comparison: splits, per-split scores, long form and summary."""
    splits = holdout_splits(df, n_splits=n_splits, train_size=train_size, seed=seed)
    scores = cross_validate(df, splits, models, predictor, response, n_jobs=n_jobs, on_error=on_error)
    long = scores_to_long(scores)
    return {
        "splits": splits,
        "scores": scores,
        "long": long,
        "summary": summarize_scores(long),
    }
