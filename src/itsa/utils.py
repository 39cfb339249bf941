"""
ITSA Model Utilities.

Contains parameter definitions, enums, and helper functions for the ITSA Model node.
"""

import knime.extension as knext
import pandas as pd


# =============================================================================
# Helper Functions
# =============================================================================


def is_numeric(col: knext.Column) -> bool:
    """Filter for numeric columns (double, int32, int64)."""
    return col.ktype in (knext.double(), knext.int32(), knext.int64())


def format_p_value(p) -> str:
    """
    Format p-value to avoid scientific notation.

    Returns 'NaN' for missing values, otherwise formats to 4 decimal places.
    """
    if pd.isna(p):
        return "NaN"
    return f"{p:.4f}"


def optional_column(value):
    """Normalize an optional column selection; unset selections become None."""
    if value is None or value == "" or value == "<none>":
        return None
    return value


# =============================================================================
# Working Dataset Columns
# =============================================================================


RESPONSE = "response"
INTERRUPTION = "interruption"
COVARIATE_ONE = "covariate_one"
COVARIATE_TWO = "covariate_two"

INTERRUPTION_TERM = f"C({INTERRUPTION})"


# =============================================================================
# Enum Definitions
# =============================================================================


class AnovaType(knext.EnumParameterOptions):
    """ANOVA sum of squares type options."""

    TYPE_I = (
        "Type I",
        "Sequential sum of squares. The interruption factor enters the model first, "
        "so covariates are tested after accounting for the time periods.",
    )
    TYPE_II = (
        "Type II",
        "Partial sum of squares. Tests each term after accounting for the other terms.",
    )
    TYPE_III = (
        "Type III",
        "Marginal sum of squares. Tests each term's unique contribution.",
    )


# =============================================================================
# Parameter Definitions
# =============================================================================


# --- Core Analysis Parameters ---

time_column_param = knext.ColumnParameter(
    label="Time Variable",
    description=(
        "Select the column holding the time of each observation. "
        "Must be numeric (such as a year) or a date. Used to order the plot."
    ),
)

response_column_param = knext.ColumnParameter(
    label="Response Variable (Dependent)",
    description=(
        "Select the continuous numeric column to analyze (dependent variable). "
        "Its levels are compared between the time periods."
    ),
    column_filter=is_numeric,
)

interruption_column_param = knext.ColumnParameter(
    label="Interruption Variable",
    description=(
        "Select the column marking the interruption (treatment/condition) period of each "
        "observation, for example 0 before and 1 during the interruption. "
        "Values are treated as categorical."
    ),
)

covariate_one_param = knext.ColumnParameter(
    label="First Covariate",
    description=(
        "Optional control variable added to the model (ANCOVA). "
        "Numeric columns enter as continuous terms, string columns as categorical terms."
    ),
    include_none_column=True,
)

covariate_two_param = knext.ColumnParameter(
    label="Second Covariate",
    description=(
        "Optional second control variable. Only used when a first covariate is selected; "
        "otherwise it is ignored."
    ),
    include_none_column=True,
)

alpha_param = knext.DoubleParameter(
    label="Significance Level (α)",
    description=(
        "Threshold for rejecting the null hypothesis of no variation between time periods. "
        "Common values: 0.05 (5%), 0.01 (1%), 0.10 (10%)."
    ),
    default_value=0.05,
    min_value=0.001,
    max_value=0.5,
)

anova_type_param = knext.EnumParameter(
    label="Sum of Squares Type",
    description=(
        "Method for calculating sum of squares:\n\n"
        "• Type I: Sequential (default, interruption factor first)\n"
        "• Type II: Partial\n"
        "• Type III: Marginal"
    ),
    enum=AnovaType,
    default_value=AnovaType.TYPE_I.name,
)


# --- Output Parameters ---

produce_plot_param = knext.BoolParameter(
    label="Produce Interruption Plot",
    description=(
        "Render the Time Series Interruption Plot: the response over time with the "
        "interruption periods overlaid on a secondary axis."
    ),
    default_value=True,
)
