"""
ITSA Model Core Module.

Main computation function and utilities for Interrupted Time Series Analysis.
"""

from .itsa_core import (
    ItsaFit,
    run_itsa_model,
    prepare_itsa_data,
    compute_group_means,
    build_itsa_formula,
    fit_itsa_model,
    derive_verdict,
    derive_bias_warning,
    SIGNIFICANT_RESULT,
    NOT_SIGNIFICANT_RESULT,
    BIAS_WARNING,
)
from .diagnostics import run_shapiro_test, run_levene_test
from .plotting import plot_itsa
from .report import (
    format_group_means_table,
    format_anova_table,
    format_summary_table,
    format_residual_table,
    format_itsa_report,
)
from .utils import (
    # Enums
    AnovaType,
    # Parameters
    time_column_param,
    response_column_param,
    interruption_column_param,
    covariate_one_param,
    covariate_two_param,
    alpha_param,
    anova_type_param,
    produce_plot_param,
    # Helpers
    is_numeric,
    format_p_value,
    optional_column,
)

__all__ = [
    "ItsaFit",
    "run_itsa_model",
    "prepare_itsa_data",
    "compute_group_means",
    "build_itsa_formula",
    "fit_itsa_model",
    "derive_verdict",
    "derive_bias_warning",
    "SIGNIFICANT_RESULT",
    "NOT_SIGNIFICANT_RESULT",
    "BIAS_WARNING",
    "run_shapiro_test",
    "run_levene_test",
    "plot_itsa",
    "format_group_means_table",
    "format_anova_table",
    "format_summary_table",
    "format_residual_table",
    "format_itsa_report",
    "AnovaType",
    "time_column_param",
    "response_column_param",
    "interruption_column_param",
    "covariate_one_param",
    "covariate_two_param",
    "alpha_param",
    "anova_type_param",
    "produce_plot_param",
    "is_numeric",
    "format_p_value",
    "optional_column",
]
