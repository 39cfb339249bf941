"""
ITSA Model Core Computation Module.

Sets up an Interrupted Time Series Analysis (ITSA) for short time series:
the response is compared between the time periods marked by an interruption
variable with an AN(C)OVA fitted through statsmodels OLS, and the residuals
are checked for normality and equal variance.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import knime.extension as knext
import pandas as pd
import statsmodels.api as sm
from statsmodels.formula.api import ols

from .diagnostics import fails_diagnostic, round_p_value, run_levene_test, run_shapiro_test
from .plotting import plot_itsa
from .report import print_itsa_report
from .utils import COVARIATE_ONE, COVARIATE_TWO, INTERRUPTION, INTERRUPTION_TERM, RESPONSE


SIGNIFICANT_RESULT = "Significant variation between time periods with chosen alpha"
NOT_SIGNIFICANT_RESULT = "No significant variation between time periods with chosen alpha"
BIAS_WARNING = (
    "Warning: Result may be biased by abnormality in residuals or heterogenous variances, "
    "please check post-estimation function"
)

ANOVA_TYPES = {"TYPE_I": 1, "TYPE_II": 2, "TYPE_III": 3}


# =============================================================================
# Result Object
# =============================================================================


@dataclass(frozen=True, eq=False)
class ItsaFit:
    """
    Results of one ITSA model run.

    A new object is returned by every call to ``run_itsa_model``; it holds
    everything a post-estimation step needs.
    """

    aov_result: pd.DataFrame
    alpha: float
    itsa_result: str
    group_means: pd.DataFrame
    residuals: pd.Series
    fitted_values: pd.Series
    shapiro_test: float
    levenes_test: float
    itsa_plot: Optional[Any] = None

    @property
    def bias_warning(self) -> str:
        return derive_bias_warning(self.shapiro_test, self.levenes_test)

    @property
    def is_significant(self) -> bool:
        return self.itsa_result == SIGNIFICANT_RESULT

    def to_dict(self) -> Dict[str, Any]:
        """Result fields by name; ``itsa_plot`` only when a plot was produced."""
        out = {f.name: getattr(self, f.name) for f in fields(self)}
        if self.itsa_plot is None:
            del out["itsa_plot"]
        return out


# =============================================================================
# Data Preparation
# =============================================================================


def validate_itsa_arguments(data, time_col, response_col, interrupt_col) -> None:
    """
    Check that the required arguments are defined.

    Raises
    ------
    ValueError
        Naming the first missing argument
    """
    if data is None:
        raise ValueError("data not defined")

    if response_col is None:
        raise ValueError("dependent variable not defined")

    if interrupt_col is None:
        raise ValueError("independent variable not defined")

    if time_col is None:
        raise ValueError("time variable not defined")


def prepare_itsa_data(
    df: pd.DataFrame,
    response_col: str,
    interrupt_col: str,
    covariate_one_col: Optional[str] = None,
    covariate_two_col: Optional[str] = None,
) -> tuple:
    """
    Build the working dataset for the ITSA model.

    No rows are dropped here; missing values are left for the group summary
    and the model to handle.

    Parameters
    ----------
    df : pd.DataFrame
        Input data
    response_col : str
        Name of the response (dependent) variable column
    interrupt_col : str
        Name of the interruption variable column, coerced to categorical
    covariate_one_col : str, optional
        Name of the first covariate column
    covariate_two_col : str, optional
        Name of the second covariate column, only used with ``covariate_one_col``

    Returns
    -------
    tuple
        (work_df, warnings_list) - Working dataframe and any warnings generated

    Raises
    ------
    ValueError
        If columns are not found or the interruption variable has fewer than 2 levels
    """
    warnings = []

    if covariate_two_col is not None and covariate_one_col is None:
        warnings.append(f"Second covariate '{covariate_two_col}' ignored because no first covariate was given.")
        covariate_two_col = None

    requested = [response_col, interrupt_col, covariate_one_col, covariate_two_col]
    for col in requested:
        if col is not None and col not in df.columns:
            raise ValueError(f"Column '{col}' not found in input data.")

    work_df = pd.DataFrame(
        {
            RESPONSE: df[response_col].values,
            INTERRUPTION: pd.Categorical(df[interrupt_col].values),
        },
        index=df.index,
    )

    if covariate_one_col is not None:
        work_df[COVARIATE_ONE] = df[covariate_one_col].values

        if covariate_two_col is not None:
            work_df[COVARIATE_TWO] = df[covariate_two_col].values

    n_levels = len(work_df[INTERRUPTION].cat.categories)
    if n_levels < 2:
        raise ValueError(
            f"Interruption variable '{interrupt_col}' has only {n_levels} level(s). "
            "At least 2 time periods are required for ITSA."
        )
    if n_levels > 2:
        warnings.append(
            f"Interruption variable '{interrupt_col}' has {n_levels} levels; "
            "a two-period interruption design is expected."
        )

    return work_df, warnings


# =============================================================================
# Group Summary
# =============================================================================


def compute_group_means(work_df: pd.DataFrame) -> pd.DataFrame:
    """
    Count, mean and standard deviation of the response per time period.

    Missing responses are excluded from all three statistics.

    Returns
    -------
    pd.DataFrame
        Table with columns: level, count, mean, standard_deviation
    """
    grouped = work_df.groupby(INTERRUPTION, observed=False, sort=True)[RESPONSE]
    summary = grouped.agg(["count", "mean", "std"]).reset_index()
    summary.columns = ["level", "count", "mean", "standard_deviation"]
    summary["count"] = summary["count"].astype(int)
    return summary


# =============================================================================
# Model Fitting
# =============================================================================


def build_itsa_formula(work_df: pd.DataFrame) -> str:
    """
    Build the additive formula regressing the response on every other column.

    The interruption factor is always the first term. Categorical covariates
    are wrapped in ``C()``.

    Examples
    --------
    >>> work_df = pd.DataFrame({"response": [8.2], "interruption": [0], "covariate_one": [3.1]})
    >>> build_itsa_formula(work_df)
    'response ~ C(interruption) + covariate_one'
    """
    terms = [INTERRUPTION_TERM]
    for col in (COVARIATE_ONE, COVARIATE_TWO):
        if col not in work_df.columns:
            continue
        column = work_df[col]
        if not pd.api.types.is_numeric_dtype(column) or pd.api.types.is_bool_dtype(column):
            terms.append(f"C({col})")
        else:
            terms.append(col)

    return f"{RESPONSE} ~ {' + '.join(terms)}"


def fit_itsa_model(work_df: pd.DataFrame, anova_type: str = "TYPE_I") -> tuple:
    """
    Fit the AN(C)OVA model and build its ANOVA table.

    Returns
    -------
    tuple
        (model, anova_table, formula)
    """
    if anova_type not in ANOVA_TYPES:
        raise ValueError(f"Unknown sum of squares type '{anova_type}'. Expected one of: {list(ANOVA_TYPES)}")

    formula = build_itsa_formula(work_df)
    model = ols(formula, data=work_df).fit()

    anova_table = sm.stats.anova_lm(model, typ=ANOVA_TYPES[anova_type])

    return model, anova_table, formula


def interruption_p_value(anova_table: pd.DataFrame) -> float:
    """P-value of the interruption term, looked up by name."""
    return anova_table.loc[INTERRUPTION_TERM, "PR(>F)"]


# =============================================================================
# Verdict
# =============================================================================


def derive_verdict(p_value: float, alpha: float) -> str:
    """Classify the interruption effect against alpha."""
    if pd.notna(p_value) and p_value < alpha:
        return SIGNIFICANT_RESULT
    return NOT_SIGNIFICANT_RESULT


def derive_bias_warning(shapiro_p: float, levene_p: float) -> str:
    """Warning text when either diagnostic falls below 0.05, else an empty string."""
    if fails_diagnostic(shapiro_p) or fails_diagnostic(levene_p):
        return BIAS_WARNING
    return ""


# =============================================================================
# Main ITSA Function
# =============================================================================


def run_itsa_model(
    data: Optional[pd.DataFrame] = None,
    time_col: Optional[str] = None,
    response_col: Optional[str] = None,
    interrupt_col: Optional[str] = None,
    covariate_one_col: Optional[str] = None,
    covariate_two_col: Optional[str] = None,
    alpha: float = 0.05,
    produce_plot: bool = True,
    anova_type: str = "TYPE_I",
    print_report: bool = True,
) -> ItsaFit:
    """
    Run an Interrupted Time Series Analysis.

    Compares the response between the time periods of the interruption
    variable, optionally controlling for one or two covariates.

    Parameters
    ----------
    data : pd.DataFrame
        Input data
    time_col : str
        Name of the time column, numeric (such as a year) or datetime
    response_col : str
        Name of the continuous response (dependent) variable column
    interrupt_col : str
        Name of the interruption treatment/condition column
    covariate_one_col : str, optional
        First covariate control variable
    covariate_two_col : str, optional
        Second covariate control variable, ignored without ``covariate_one_col``
    alpha : float, default=0.05
        Significance level for the verdict
    produce_plot : bool, default=True
        Whether to render the Time Series Interruption Plot
    anova_type : str, default="TYPE_I"
        Sum of squares type ("TYPE_I", "TYPE_II", or "TYPE_III")
    print_report : bool, default=True
        Whether to print the text report to standard output

    Returns
    -------
    ItsaFit
        Group means, ANOVA table, verdict, residuals, fitted values,
        diagnostic p-values and the plot (when produced)

    Raises
    ------
    ValueError
        If a required argument is not defined, a column is missing, or the
        interruption variable has fewer than 2 levels
    """
    # Step 1: Check variable specifications
    validate_itsa_arguments(data, time_col, response_col, interrupt_col)

    if time_col not in data.columns:
        raise ValueError(f"Column '{time_col}' not found in input data.")

    # Step 2: Build working dataset
    work_df, data_warnings = prepare_itsa_data(data, response_col, interrupt_col, covariate_one_col, covariate_two_col)
    for warning_msg in data_warnings:
        knext.LOGGER.warning(warning_msg)

    # Step 3: Group means
    group_means = compute_group_means(work_df)

    # Step 4: Fit AN(C)OVA
    model, anova_table, formula = fit_itsa_model(work_df, anova_type)
    knext.LOGGER.debug(f"ITSA model fitted: {formula} (n={int(model.nobs)})")

    residuals = model.resid
    fitted_values = model.fittedvalues

    # Step 5: Residual diagnostics
    shapiro_p = round_p_value(run_shapiro_test(residuals)["p_value"])
    levene_p = round_p_value(run_levene_test(residuals, work_df[INTERRUPTION])["p_value"])

    # Step 6: Verdict
    result = derive_verdict(interruption_p_value(anova_table), alpha)

    # Step 7: Plot
    itsa_plot = None
    if produce_plot:
        itsa_plot = plot_itsa(data[time_col], work_df[RESPONSE], work_df[INTERRUPTION])
    else:
        knext.LOGGER.info("No plot forced")
        if print_report:
            print("No plot forced")

    fit = ItsaFit(
        aov_result=anova_table,
        alpha=alpha,
        itsa_result=result,
        group_means=group_means,
        residuals=residuals,
        fitted_values=fitted_values,
        shapiro_test=shapiro_p,
        levenes_test=levene_p,
        itsa_plot=itsa_plot,
    )

    if fit.bias_warning:
        knext.LOGGER.warning(fit.bias_warning)

    if print_report:
        print_itsa_report(fit)

    return fit
