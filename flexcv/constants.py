"""Shared constants: model colors, labels, analysis defaults, data locations."""
import os

REPO_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DATA_DIR = os.environ.get("FLEXCV_DATA_DIR", os.path.join(REPO_DIR, "data"))
CHILD_GROWTH_FILE = "child_growth.csv"
HOUSING_FILE = "listings.csv"

LOG_LEVEL = os.environ.get("FLEXCV_LOG_LEVEL", "INFO")

# Resampling
DEFAULT_N_SPLITS = 100
DEFAULT_TRAIN_FRACTION = 0.75

# Simulated quadratic data
SIMULATED_N_ROWS = 100
SIMULATED_NOISE_SD = 0.3
SIMULATED_TRAIN_FRACTION = 0.8
SIMULATED_SEED = 42

# Child growth
GROWTH_BREAKPOINT = 7.0
GROWTH_COLUMNS = ["age", "sex", "weight", "height", "armc"]
GROWTH_PREDICTOR = "weight"
GROWTH_RESPONSE = "height"

# Housing
EXCLUDED_BOROUGH = "Staten Island"
# target column -> source columns in order of preference
HOUSING_RENAMES = {
    "borough": ["neighbourhood_group_cleansed", "neighbourhood_group"],
    "neighborhood": ["neighbourhood_cleansed", "neighbourhood"],
}
HOUSING_COLUMNS = ["price", "rating", "borough", "neighborhood", "room_type"]

MODEL_COLORS = {
    "linear": "#264653",
    "piecewise": "#F4A261",
    "smooth": "#2A9D8F",
    "wiggly": "#E63946",
}

MODEL_LABELS = {
    "linear": "Linear",
    "piecewise": "Piecewise linear",
    "smooth": "Smooth spline",
    "wiggly": "Wiggly spline",
}

COLUMN_LABELS = {
    "x": "x",
    "y": "y",
    "age": "Age (months)",
    "weight": "Weight (kg)",
    "height": "Height (cm)",
    "armc": "Arm circumference (cm)",
    "weight_excess": "Weight beyond breakpoint (kg)",
    "rmse": "RMSE",
    "mean_rmse": "Mean RMSE",
}

PART_TITLES = {
    "I": "Simulated Data",
    "II": "Real Measurements",
    "III": "Data Wrangling",
}
