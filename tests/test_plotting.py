import pandas as pd

from flexcv.cv_helpers import default_models, fit_curves, scores_to_long, summarize_scores
from flexcv.plotting import fit_facets, mean_score_bar, score_violin


def _long():
    scores = pd.DataFrame({
        "split": ["Split001", "Split002"],
        "linear": [0.8, 0.9],
        "smooth": [0.3, 0.32],
    })
    return scores_to_long(scores)


def test_fit_facets_has_data_and_curve_per_model(simulated):
    curves = fit_curves(simulated, default_models(), "x", "y", n_points=20)
    fig = fit_facets(simulated, curves, "x", "y", title="Fits")

    assert len(fig.data) == 6
    assert [t.name for t in fig.data[1::2]] == ["Linear", "Smooth spline", "Wiggly spline"]
    assert fig.layout.template.layout.paper_bgcolor == "white"


def test_score_violin_one_trace_per_model():
    fig = score_violin(_long())
    assert [t.type for t in fig.data] == ["violin", "violin"]


def test_mean_score_bar():
    summary = summarize_scores(_long())
    fig = mean_score_bar(summary)

    assert len(fig.data) == 1
    assert list(fig.data[0].y) == list(summary["mean_rmse"])
