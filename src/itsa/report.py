"""
Output formatting for ITSA results.

Builds the output tables of the ITSA Model node and the printed text report.
"""

import pandas as pd

from .utils import INTERRUPTION_TERM, format_p_value


# =============================================================================
# Output Tables
# =============================================================================


def format_group_means_table(group_means: pd.DataFrame) -> pd.DataFrame:
    """
    Format the per-period summary of the response.

    Returns
    -------
    pd.DataFrame
        Table with columns: Interruption, Count, Mean, Std_Dev
    """
    return pd.DataFrame(
        {
            "Interruption": group_means["level"].astype(str).values,
            "Count": group_means["count"].astype("int64").values,
            "Mean": group_means["mean"].astype(float).values,
            "Std_Dev": group_means["standard_deviation"].astype(float).values,
        }
    )


def term_conclusion(term: str, p_value, alpha: float) -> str:
    """Plain reading of one ANOVA row at the chosen alpha."""
    if term == "Residual":
        return "Unexplained"
    if term == "Intercept":
        return "Baseline level"
    if pd.isna(p_value):
        return "Not tested"

    significant = p_value < alpha
    if term == INTERRUPTION_TERM:
        return "Time periods differ" if significant else "No difference between time periods"
    return "Significant covariate" if significant else "Not significant covariate"


def format_anova_table(anova_table: pd.DataFrame, alpha: float) -> pd.DataFrame:
    """
    Format the AN(C)OVA table for output.

    The interruption row reads as a comparison of time periods, covariate
    rows as control terms; a Type III intercept row is kept as the baseline.

    Returns
    -------
    pd.DataFrame
        Table with columns: Source, Sum_Sq, DF, Mean_Sq, F-Statistic, P-Value, Conclusion
    """
    dof = anova_table["df"].fillna(0)
    mean_sq = anova_table["sum_sq"].where(dof > 0) / dof.where(dof > 0)

    return pd.DataFrame(
        {
            "Source": [str(term) for term in anova_table.index],
            "Sum_Sq": anova_table["sum_sq"].astype(float).values,
            "DF": dof.astype("int64").values,
            "Mean_Sq": mean_sq.astype(float).values,
            "F-Statistic": anova_table["F"].astype(float).values,
            "P-Value": [format_p_value(p) for p in anova_table["PR(>F)"]],
            "Conclusion": [
                term_conclusion(str(term), p, alpha) for term, p in anova_table["PR(>F)"].items()
            ],
        }
    )


def format_summary_table(fit) -> pd.DataFrame:
    """
    Collect the verdict and diagnostics of a run as Metric/Value rows.
    """
    rows = [
        ("Alpha", str(fit.alpha)),
        ("Result", fit.itsa_result),
        ("Shapiro-Wilk P-Value", format_p_value(fit.shapiro_test)),
        ("Levene P-Value", format_p_value(fit.levenes_test)),
        ("Warning", fit.bias_warning),
    ]
    return pd.DataFrame(rows, columns=["Metric", "Value"])


def format_residual_table(fit, time: pd.Series) -> pd.DataFrame:
    """
    Fitted values and residuals of every row the model used, with its time.
    """
    index = fit.residuals.index
    return pd.DataFrame(
        {
            "Time": time.loc[index].astype(str).values,
            "Fitted": fit.fitted_values.loc[index].values,
            "Residual": fit.residuals.values,
        }
    )


# =============================================================================
# Text Report
# =============================================================================


def format_itsa_report(fit) -> str:
    """Human-readable report of an ITSA run."""
    lines = [
        "",
        "Mean Values of Dependent Variable Between Time Periods:",
        fit.group_means.to_string(index=False),
        "",
        "",
        "Analysis of Variances:",
        fit.aov_result.to_string(),
        "",
        f"Result: {fit.itsa_result} ( < {fit.alpha} )",
        "",
    ]
    if fit.bias_warning:
        lines.append(fit.bias_warning)
    return "\n".join(lines)


def print_itsa_report(fit) -> None:
    """Print the report with display options scoped to this call."""
    with pd.option_context("display.precision", 4, "display.width", 120, "display.max_columns", None):
        print(format_itsa_report(fit))
