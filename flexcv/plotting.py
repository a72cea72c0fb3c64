"""Shared Plotly plotting helpers."""
import plotly.express as px
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from flexcv.constants import COLUMN_LABELS, MODEL_COLORS, MODEL_LABELS


def apply_common_layout(fig, title=None, height=500):
    """Apply common layout settings to a Plotly figure."""
    fig.update_layout(
        template="plotly_white",
        height=height,
        title=title,
        title_x=0.5,
        margin=dict(t=60, b=40, l=60, r=40),
    )
    return fig


def _labels(extra=None):
    lab = {**(extra or {})}
    for k, v in COLUMN_LABELS.items():
        lab.setdefault(k, v)
    lab.setdefault("model", "Model")
    return lab


def model_label(name):
    return MODEL_LABELS.get(name, name)


def fit_facets(df, curves, x, y, title=None, height=420, opacity=0.5):
    """Scatter of the data with each model's fitted curve, one facet per model."""
    models = list(dict.fromkeys(curves["model"]))
    fig = make_subplots(
        rows=1, cols=len(models),
        subplot_titles=[model_label(m) for m in models],
        shared_yaxes=True,
    )
    for col, name in enumerate(models, start=1):
        fig.add_trace(go.Scatter(
            x=df[x], y=df[y], mode="markers", name="Data",
            marker=dict(color="gray", size=5, opacity=opacity),
            showlegend=col == 1,
        ), row=1, col=col)
        curve = curves[curves["model"] == name]
        fig.add_trace(go.Scatter(
            x=curve[x], y=curve["fitted"], mode="lines", name=model_label(name),
            line=dict(color=MODEL_COLORS.get(name, "#E63946"), width=3),
        ), row=1, col=col)
        fig.update_xaxes(title_text=COLUMN_LABELS.get(x, x), row=1, col=col)
    fig.update_yaxes(title_text=COLUMN_LABELS.get(y, y), row=1, col=1)
    return apply_common_layout(fig, title, height)


def score_violin(long, title=None, height=500):
    """Distribution of per-split RMSE for each model."""
    fig = px.violin(
        long, x="model", y="rmse", color="model",
        color_discrete_map=MODEL_COLORS,
        box=True, points="all",
        category_orders={"model": list(dict.fromkeys(long["model"]))},
        labels=_labels(),
        title=title,
    )
    fig.update_traces(meanline_visible=True, jitter=0.3, marker=dict(size=3, opacity=0.5))
    fig.update_layout(showlegend=False)
    return apply_common_layout(fig, title, height)


def mean_score_bar(summary, title=None, height=400):
    """Mean RMSE per model with one-standard-error bars."""
    fig = go.Figure(go.Bar(
        x=[model_label(m) for m in summary["model"]],
        y=summary["mean_rmse"],
        error_y=dict(type="data", array=summary["sem_rmse"].fillna(0)),
        marker_color=[MODEL_COLORS.get(m, "#264653") for m in summary["model"]],
        text=[f"{v:.3f}" for v in summary["mean_rmse"]],
        textposition="outside",
    ))
    fig.update_xaxes(title_text="Model")
    fig.update_yaxes(title_text=COLUMN_LABELS["mean_rmse"])
    return apply_common_layout(fig, title, height)


def scatter_chart(df, x, y, color=None, title=None, labels=None, height=500, opacity=0.6):
    """Create a scatter plot with course labels."""
    fig = px.scatter(df, x=x, y=y, color=color, labels=_labels(labels), title=title, opacity=opacity)
    return apply_common_layout(fig, title, height)


def box_chart(df, x, y, color=None, title=None, labels=None, height=500):
    """Create a box plot."""
    fig = px.box(df, x=x, y=y, color=color or x, labels=_labels(labels), title=title)
    return apply_common_layout(fig, title, height)
