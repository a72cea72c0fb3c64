"""Model Flexibility & Cross-Validation App -- Main Entry Point."""
import streamlit as st

st.set_page_config(
    page_title="Model Flexibility & Cross-Validation",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded",
)

from flexcv.constants import SIMULATED_N_ROWS, SIMULATED_NOISE_SD, SIMULATED_SEED
from flexcv.data_loader import load_simulated
from flexcv.logger import configure_logging

configure_logging()

st.title("Model Flexibility & Cross-Validation")
st.subheader("How much should a model be allowed to bend?")

st.markdown("""
Every regression model makes a bet about how flexible the truth is. A straight line bets that
nothing bends. A spline bets that things bend smoothly. A spline with no penalty bets that every
wiggle in the data is real. Only one of those bets pays off on data the model has never seen,
and the way to find out which is to **hold data back**.

This short course does that with **repeated holdout**: split the rows at random into a training
part and a test part, fit each model on the training part, measure its error on the test part,
and repeat a hundred times. The distribution of those test errors tells you both how good a
model is on average and how much it depends on the luck of the split.

### Course Outline
""")

parts = {
    "Part I: Simulated Data (Ch 1)": "Linear vs smooth vs wiggly fits on a noisy parabola",
    "Part II: Real Measurements (Ch 2)": "Child growth: piecewise-linear hinge vs smooth spline",
    "Part III: Data Wrangling (Ch 3)": "Filtering and subsetting a housing listings table",
}

for part, desc in parts.items():
    st.markdown(f"**{part}** -- {desc}")

st.divider()
st.markdown("**Pick a chapter from the sidebar to get started.**")

st.subheader("Simulated Data Preview")
df = load_simulated(SIMULATED_N_ROWS, SIMULATED_NOISE_SD, SIMULATED_SEED)
st.dataframe(df.head(20), use_container_width=True, hide_index=True)

col1, col2, col3 = st.columns(3)
col1.metric("Rows", f"{len(df):,}")
col2.metric("Noise SD", f"{SIMULATED_NOISE_SD}")
col3.metric("True curve", "1 - 10(x - 0.3)²")
