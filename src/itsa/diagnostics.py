"""
Residual diagnostics for the ITSA model.

Shapiro-Wilk (normality of residuals) and Levene (equal residual variance
across time periods) tests using scipy.
"""

import numpy as np
import pandas as pd
from scipy import stats
from typing import Dict

# Fixed threshold for the bias warning, independent of the analysis alpha
DIAGNOSTIC_THRESHOLD = 0.05


def run_shapiro_test(residuals) -> Dict:
    """
    Shapiro-Wilk test of residual normality.

    Parameters
    ----------
    residuals : array-like
        Model residuals

    Returns
    -------
    dict
        Dictionary with test results
    """
    values = np.asarray(residuals, dtype=float)
    values = values[~np.isnan(values)]

    result = stats.shapiro(values)

    return {
        "test": "Shapiro-Wilk",
        "statistic": float(result.statistic),
        "p_value": float(result.pvalue),
        "n": len(values),
    }


def run_levene_test(residuals: pd.Series, groups: pd.Series) -> Dict:
    """
    Levene test of equal residual variance across groups.

    Uses median centering (Brown-Forsythe variant). Residuals are matched to
    their group by index, so rows the model dropped are left out here too.

    Parameters
    ----------
    residuals : pd.Series
        Model residuals, indexed by the rows of the working dataset
    groups : pd.Series
        Group label of every row of the working dataset

    Returns
    -------
    dict
        Dictionary with test results
    """
    df = pd.DataFrame({"residual": residuals, "group": groups.reindex(residuals.index)}).dropna()

    samples = [grp["residual"].values for _, grp in df.groupby("group", observed=True)]
    result = stats.levene(*samples, center="median")

    return {
        "test": "Levene",
        "statistic": float(result.statistic),
        "p_value": float(result.pvalue),
        "n": len(df),
        "n_groups": len(samples),
    }


def round_p_value(p) -> float:
    """Round a p-value to 4 decimal places, keeping NaN as NaN."""
    if pd.isna(p):
        return float("nan")
    return round(float(p), 4)


def fails_diagnostic(p) -> bool:
    """Whether a diagnostic p-value falls below the fixed bias threshold."""
    return bool(pd.notna(p) and p < DIAGNOSTIC_THRESHOLD)
