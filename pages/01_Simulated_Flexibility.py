"""Chapter 1: Model Flexibility on Simulated Data -- linear vs smooth vs wiggly under repeated holdout."""
import streamlit as st
import numpy as np
import pandas as pd
import plotly.graph_objects as go

from flexcv.constants import (
    DEFAULT_N_SPLITS, SIMULATED_N_ROWS, SIMULATED_NOISE_SD,
    SIMULATED_SEED, SIMULATED_TRAIN_FRACTION,
)
from flexcv.cv_helpers import best_model, compare_models, default_models, fit_curves, regression_metrics
from flexcv.data_loader import simulate_quadratic, true_curve
from flexcv.errors import FlexCVError
from flexcv.logger import configure_logging
from flexcv.plotting import apply_common_layout, fit_facets, mean_score_bar, model_label, score_violin
from flexcv.ui_components import (
    chapter_header, concept_box, formula_box, insight_box, warning_box,
    error_box, code_example, summary_table, quiz, takeaways, navigation,
)

configure_logging()

# ── Header ───────────────────────────────────────────────────────────────────
chapter_header(1, "How Flexible Should a Model Be?", part="I")
st.markdown(
    "We are going to cheat a little. Instead of starting with real data, where nobody "
    "knows the true relationship, we make up data where we *do* know it: a parabola "
    "with some noise sprinkled on top. Then we ask three models of increasing "
    "flexibility to recover it, and we use **repeated holdout** to find out which one "
    "actually predicts new points best. Spoiler: it is not the most flexible one."
)

# ── Sidebar controls ─────────────────────────────────────────────────────────
st.sidebar.header("Simulation")
n_rows = st.sidebar.slider("Rows", 20, 500, SIMULATED_N_ROWS, step=10, key="sim_rows")
noise_sd = st.sidebar.slider("Noise SD", 0.0, 1.0, SIMULATED_NOISE_SD, step=0.05, key="sim_noise")
seed = st.sidebar.number_input("Seed", 0, 10_000, SIMULATED_SEED, key="sim_seed")

st.sidebar.header("Resampling")
n_splits = st.sidebar.slider("Number of splits", 10, 200, DEFAULT_N_SPLITS, step=10, key="sim_splits")
train_fraction = st.sidebar.slider(
    "Training fraction", 0.5, 0.95, SIMULATED_TRAIN_FRACTION, step=0.05, key="sim_frac",
)


@st.cache_data
def run_simulation(n_rows, noise_sd, seed, n_splits, train_fraction):
    data = simulate_quadratic(n_rows, noise_sd, seed)
    models = default_models()
    curves = fit_curves(data, models, "x", "y")
    in_sample = pd.DataFrame([
        {"model": name, **regression_metrics(data["y"], fitter.fit(data, "x", "y").predict(data))}
        for name, fitter in models.items()
    ])
    result = compare_models(
        data, models, "x", "y",
        n_splits=n_splits, train_size=train_fraction, seed=seed,
    )
    return data, curves, in_sample, result["long"], result["summary"]


# ── 1.1 The data ─────────────────────────────────────────────────────────────
st.header("1.1  A Parabola in Disguise")

formula_box(
    "The data-generating process",
    r"y = 1 - 10\,(x - 0.3)^2 + \varepsilon, \qquad x \sim \mathrm{Uniform}(0, 1),\quad \varepsilon \sim \mathcal{N}(0, \sigma^2)",
    "Every row is one draw of x and a noisy y. The curve is fixed; only the noise changes between draws.",
)

try:
    data, curves, in_sample, long, summary = run_simulation(
        n_rows, noise_sd, int(seed), n_splits, float(train_fraction),
    )
except FlexCVError as exc:
    error_box(exc)
    st.stop()

grid = np.linspace(0, 1, 200)
fig = go.Figure()
fig.add_trace(go.Scatter(
    x=data["x"], y=data["y"], mode="markers", name="Simulated rows",
    marker=dict(color="#2A9D8F", size=6, opacity=0.6),
))
fig.add_trace(go.Scatter(
    x=grid, y=true_curve(grid), mode="lines", name="True curve",
    line=dict(color="#264653", width=2, dash="dash"),
))
apply_common_layout(fig, title=f"{n_rows} simulated rows (noise SD = {noise_sd})")
fig.update_xaxes(title_text="x")
fig.update_yaxes(title_text="y")
st.plotly_chart(fig, use_container_width=True)

with st.expander("Show the table"):
    st.dataframe(data, use_container_width=True, hide_index=True)

st.divider()

# ── 1.2 Three models ─────────────────────────────────────────────────────────
st.header("1.2  Three Levels of Flexibility")

col1, col2, col3 = st.columns(3)
with col1:
    concept_box(
        "Linear",
        "One slope, one intercept. It cannot bend, so it cannot follow a parabola no "
        "matter how much data it sees. This is <b>underfitting</b>.",
    )
with col2:
    concept_box(
        "Smooth spline",
        "A curve built from a handful of cubic pieces, with a penalty on wiggliness. "
        "The penalty is chosen automatically from the data, so the curve bends only "
        "as much as the evidence supports.",
    )
with col3:
    concept_box(
        "Wiggly spline",
        "The same family with far more pieces and almost no penalty. It chases every "
        "noisy point. This is <b>overfitting</b>, done on purpose so we can see it.",
    )

st.plotly_chart(
    fit_facets(data, curves, "x", "y", title="Each model fit to the full simulated table"),
    use_container_width=True,
)

warning_box(
    "Looking at these fits tells you how well each model describes the data it was "
    "trained on. The wiggly model will look great here. That is exactly why in-sample "
    "fit is a terrible way to choose a model."
)

st.markdown("**In-sample fit** (trained and scored on the same rows):")
st.dataframe(
    in_sample.assign(model=in_sample["model"].map(model_label))
    .rename(columns={"model": "Model", "rmse": "RMSE", "mae": "MAE", "r2": "R-squared"})
    [["Model", "RMSE", "MAE", "R-squared"]]
    .style.format({"RMSE": "{:.4f}", "MAE": "{:.4f}", "R-squared": "{:.4f}"}),
    use_container_width=True, hide_index=True,
)

st.divider()

# ── 1.3 Repeated holdout ─────────────────────────────────────────────────────
st.header("1.3  Repeated Holdout: Many Honest Exams")

concept_box(
    "The procedure",
    f"Randomly pick {train_fraction:.0%} of the rows for training and keep the rest for "
    f"testing. Fit every model on the training rows only, then measure its prediction "
    f"error (RMSE) on the test rows it never saw. Do that {n_splits} times with fresh "
    f"random splits. Every model sees exactly the same splits, so the comparison is fair.",
)

formula_box(
    "Root-mean-squared error on one test subset",
    r"\mathrm{RMSE} = \sqrt{\frac{1}{n_{\text{test}}}\sum_{i \in \text{test}} \left(y_i - \hat{y}_i\right)^2}",
    "Same units as y. Lower is better.",
)

st.plotly_chart(
    score_violin(long, title=f"Test RMSE across {n_splits} random splits"),
    use_container_width=True,
)

col_a, col_b = st.columns([1, 1])
with col_a:
    st.subheader("Mean RMSE per model")
    summary_table(summary)
with col_b:
    st.plotly_chart(mean_score_bar(summary, title="Mean test RMSE (±1 SE)"), use_container_width=True)

winner = best_model(summary)
means = summary.set_index("model")["mean_rmse"]
insight_box(
    f"The best mean test RMSE belongs to the **{model_label(winner)}** model "
    f"({means[winner]:.3f}). The linear model averages {means['linear']:.3f}: its error "
    f"is dominated by bias, the gap between a straight line and a parabola, and no "
    f"amount of resampling makes that go away. The wiggly model's violin is usually "
    f"wider than the smooth one. That spread is variance: its answer depends heavily "
    f"on which rows happened to land in training."
)

if means["linear"] <= means["smooth"]:
    st.caption(
        "With these settings the linear model is not clearly worst. Try more rows or "
        "less noise: with very noisy or tiny samples the curvature is hard to detect."
    )

st.divider()

code_example("""
from flexcv.cv_helpers import compare_models, default_models
from flexcv.data_loader import simulate_quadratic

data = simulate_quadratic(n_rows=100, noise_sd=0.3, seed=42)
result = compare_models(
    data, default_models(), predictor="x", response="y",
    n_splits=100, train_size=0.8, seed=42,
)
print(result["summary"])
""")

st.divider()

quiz(
    "Across 100 random splits the wiggly spline has a mean RMSE close to the smooth "
    "spline but a much wider spread. What does the spread tell you?",
    [
        "The wiggly model has high bias",
        "The wiggly model's accuracy depends a lot on which rows it was trained on",
        "The test subsets were too large",
        "The smooth model is overfitting",
    ],
    correct_idx=1,
    explanation="Spread across splits is the variance side of the bias-variance tradeoff. "
                "A flexible model reacts to the particular noise in its training rows, so "
                "its test error swings from split to split.",
    key="ch1_quiz1",
)

takeaways([
    "In-sample fit rewards flexibility without limit; held-out error does not.",
    "Repeated holdout scores each model on many random train/test splits and averages the test RMSE.",
    "A linear model on curved data is consistently worst: that error is bias.",
    "An over-flexible model can average nearly as well as a smooth one but varies more between splits: that is variance.",
])

navigation(
    prev_label="Home",
    prev_page="app.py",
    next_label="Ch 2: Child Growth",
    next_page="02_Child_Growth.py",
)
