"""Chapter 3: Housing Wrangling -- filter, rename and subset before any modeling."""
import streamlit as st

from flexcv.constants import EXCLUDED_BOROUGH, HOUSING_COLUMNS, HOUSING_FILE
from flexcv.data_loader import HOUSING_PATH, dataset_source, load_housing, read_housing
from flexcv.errors import FlexCVError
from flexcv.logger import configure_logging
from flexcv.plotting import box_chart
from flexcv.ui_components import (
    chapter_header, concept_box, insight_box, warning_box,
    error_box, code_example, takeaways, navigation,
)

configure_logging()

chapter_header(3, "Wrangling a Housing Dataset", part="III")
st.markdown(
    "Not every session ends with a model. Most real analyses spend far more time "
    "getting the table into shape than fitting anything. This chapter takes a file of "
    "short-term rental listings and does the unglamorous part: pick the rows we care "
    "about, give columns sensible names, and throw away everything else."
)

source = dataset_source(HOUSING_PATH, HOUSING_FILE, key="housing_upload")
if source is None:
    st.warning(
        f"No housing data found. Put `{HOUSING_FILE}` in the data directory or upload a "
        f"listings CSV with price, review scores, borough, neighborhood and room type."
    )
    st.stop()

drop_borough = st.sidebar.text_input("Borough to drop", EXCLUDED_BOROUGH, key="housing_drop")

try:
    if isinstance(source, str):
        housing = load_housing(drop_borough, source)
    else:
        housing = read_housing(source, drop_borough)
except FlexCVError as exc:
    error_box(exc)
    st.stop()

# ── 3.1 Steps ────────────────────────────────────────────────────────────────
st.header("3.1  Three Small Steps")

concept_box(
    "Filter, rename, select",
    f"We drop listings in <b>{drop_borough or 'no borough'}</b>, turn the raw review score "
    f"(out of 100) into a five-star <code>rating</code>, rename the neighbourhood columns to "
    f"<code>borough</code> and <code>neighborhood</code>, and keep only "
    f"{', '.join(HOUSING_COLUMNS)}.",
)

c1, c2, c3 = st.columns(3)
c1.metric("Listings kept", f"{len(housing):,}")
c2.metric("Boroughs", housing["borough"].nunique())
c3.metric("Room types", housing["room_type"].nunique())

st.dataframe(housing.head(25), use_container_width=True, hide_index=True)

warning_box(
    "Prices in listing files are often text like \"$1,200.00\". Averaging those as strings "
    "fails quietly or loudly depending on your tools. Convert them to numbers first."
)

# ── 3.2 A quick look ─────────────────────────────────────────────────────────
st.header("3.2  A Quick Look")

priced = housing[housing["price"] > 0]
cap = priced["price"].quantile(0.99) if len(priced) else 0
fig = box_chart(
    priced[priced["price"] <= cap], "borough", "price", color="room_type",
    title="Nightly price by borough and room type (top 1% trimmed)",
    labels={"price": "Price per night", "borough": "Borough", "room_type": "Room type"},
)
st.plotly_chart(fig, use_container_width=True)

insight_box(
    "There is no model in this chapter, and that is fine. A clean, well-named table is "
    "the starting point for every model in the previous chapters."
)

code_example("""
from flexcv.data_loader import read_housing

housing = read_housing("data/listings.csv", drop_borough="Staten Island")
housing.groupby("borough")["price"].median()
""")

takeaways([
    "Wrangling is mostly filter, rename and select.",
    "Derived columns such as a five-star rating should be computed once, right after loading.",
    "Coerce text prices to numbers before doing anything numeric with them.",
])

navigation(
    prev_label="Ch 2: Child Growth",
    prev_page="02_Child_Growth.py",
)
