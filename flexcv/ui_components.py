"""Shared UI components: concept boxes, quizzes, result tables, navigation."""
import streamlit as st

from flexcv.constants import MODEL_LABELS, PART_TITLES


def chapter_header(number, title, part=None):
    """Render a chapter header with part label."""
    if part:
        st.caption(f"Part {part}: {PART_TITLES.get(part, '')}")
    st.title(f"Chapter {number}: {title}")
    st.divider()


def concept_box(title, content):
    """Render a highlighted concept/theory box."""
    st.markdown(f"""
<div style="background-color: #EBF5FB; padding: 20px; border-radius: 10px; border-left: 5px solid #2E86C1; margin: 10px 0;">
<h4 style="color: #2E86C1; margin-top: 0;">{title}</h4>
<p style="color: #1B4F72;">{content}</p>
</div>
""", unsafe_allow_html=True)


def formula_box(title, formula, explanation=""):
    """Render a formula with explanation."""
    st.markdown(f"**{title}**")
    st.latex(formula)
    if explanation:
        st.caption(explanation)


def insight_box(text):
    """Render a key insight callout."""
    st.info(f"**Key Insight:** {text}")


def warning_box(text):
    """Render a warning/common mistake box."""
    st.warning(f"**Common Mistake:** {text}")


def error_box(exc):
    """Report a failed analysis, naming the split and model when known."""
    where = ""
    if getattr(exc, "split_id", None):
        where = f" (split `{exc.split_id}`, model `{exc.model}`)"
    st.error(f"**Analysis stopped{where}:** {exc}")


def code_example(code, language="python"):
    """Render a collapsible code example."""
    with st.expander("Show Code"):
        st.code(code, language=language)


def summary_table(summary):
    """Render the per-model RMSE summary with readable labels."""
    table = summary.assign(model=summary["model"].map(lambda m: MODEL_LABELS.get(m, m)))
    table = table.rename(columns={
        "model": "Model",
        "mean_rmse": "Mean RMSE",
        "std_rmse": "SD",
        "sem_rmse": "SE of mean",
        "n_splits": "Splits",
    })
    st.dataframe(
        table.style.format({"Mean RMSE": "{:.4f}", "SD": "{:.4f}", "SE of mean": "{:.4f}"}),
        use_container_width=True, hide_index=True,
    )


def quiz(question, options, correct_idx, explanation="", key="quiz"):
    """Render a multiple-choice quiz question. Returns True if answered correctly."""
    st.subheader("Quick Quiz")
    answer = st.radio(question, options, key=key, index=None)
    if answer is not None:
        if options.index(answer) == correct_idx:
            st.success("Correct!")
            if explanation:
                st.caption(explanation)
            return True
        else:
            st.error(f"Not quite. The correct answer is: **{options[correct_idx]}**")
            if explanation:
                st.caption(explanation)
            return False
    return None


def takeaways(points):
    """Render key takeaways as a list."""
    st.subheader("Key Takeaways")
    for p in points:
        st.markdown(f"- {p}")


def navigation(prev_label=None, next_label=None, prev_page=None, next_page=None):
    """Render prev/next navigation buttons."""
    col1, col2, col3 = st.columns([1, 2, 1])
    with col1:
        if prev_label:
            page = prev_page if prev_page == "app.py" else f"pages/{prev_page}"
            st.page_link(page, label=f"← {prev_label}")
    with col3:
        if next_label:
            st.page_link(f"pages/{next_page}", label=f"{next_label} →")
