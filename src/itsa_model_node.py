"""
ITSA Model Node for KNIME.

This module provides a KNIME node for Interrupted Time Series Analysis:
it tests whether a continuous outcome differs between the time periods
marked by an interruption variable, optionally controlling for covariates,
and checks the model residuals for normality and equal variance.
"""

import knime.extension as knext
import pandas as pd

from .itsa import (
    # Core function
    run_itsa_model,
    # Output formatting
    format_group_means_table,
    format_anova_table,
    format_summary_table,
    format_residual_table,
    # Parameters
    time_column_param,
    response_column_param,
    interruption_column_param,
    covariate_one_param,
    covariate_two_param,
    alpha_param,
    anova_type_param,
    produce_plot_param,
    optional_column,
)


# =============================================================================
# Category Definition
# =============================================================================

itsa_category = knext.category(
    path="/community",
    level_id="utd_development",
    name="University of Texas at Dallas Development",
    description="Statistical analysis tools developed by the University of Texas at Dallas",
    icon="./icons/utd.png",
)


# =============================================================================
# Node Definition
# =============================================================================


@knext.node(
    name="ITSA Model",
    node_type=knext.NodeType.MANIPULATOR,
    icon_path="./icons/itsa.png",
    category=itsa_category,
)
@knext.input_table(
    name="Input Data",
    description="Table with a time column, a numeric response variable and an interruption variable.",
)
@knext.output_table(
    name="Group Means",
    description="Count, mean and standard deviation of the response in each time period.",
)
@knext.output_table(
    name="ANOVA Results",
    description="Analysis of (co)variance table for the interruption factor and covariates.",
)
@knext.output_table(
    name="ITSA Summary",
    description="Verdict at the chosen alpha, residual diagnostics and any bias warning.",
)
@knext.output_table(
    name="Residuals",
    description="Fitted values and residuals of the model, by time.",
)
@knext.output_view(
    name="Time Series Interruption Plot",
    description="The response over time with the interruption periods overlaid.",
)
class ItsaModelNode:
    """Tests whether a continuous outcome changes between the time periods of an interruption.

This node sets up an Interrupted Time Series Analysis (ITSA) for short time series. The response is compared between the periods marked by the interruption variable with an analysis of variance (or covariance, when covariates are selected). Residuals are checked with the Shapiro-Wilk and Levene tests; a warning is raised when either suggests the result may be biased.
    """

    # --- Core Parameters ---
    time_column = time_column_param
    response_column = response_column_param
    interruption_column = interruption_column_param
    covariate_one = covariate_one_param
    covariate_two = covariate_two_param
    alpha = alpha_param
    anova_type = anova_type_param

    # --- Output ---
    produce_plot = produce_plot_param

    def configure(self, cfg_ctx, input_spec):
        """Configure the node's four output table schemas."""
        group_means_schema = knext.Schema.from_columns([
            knext.Column(knext.string(), "Interruption"),
            knext.Column(knext.int64(), "Count"),
            knext.Column(knext.double(), "Mean"),
            knext.Column(knext.double(), "Std_Dev"),
        ])

        anova_schema = knext.Schema.from_columns([
            knext.Column(knext.string(), "Source"),
            knext.Column(knext.double(), "Sum_Sq"),
            knext.Column(knext.int64(), "DF"),
            knext.Column(knext.double(), "Mean_Sq"),
            knext.Column(knext.double(), "F-Statistic"),
            knext.Column(knext.string(), "P-Value"),
            knext.Column(knext.string(), "Conclusion"),
        ])

        summary_schema = knext.Schema.from_columns([
            knext.Column(knext.string(), "Metric"),
            knext.Column(knext.string(), "Value"),
        ])

        residual_schema = knext.Schema.from_columns([
            knext.Column(knext.string(), "Time"),
            knext.Column(knext.double(), "Fitted"),
            knext.Column(knext.double(), "Residual"),
        ])

        return group_means_schema, anova_schema, summary_schema, residual_schema

    def execute(self, exec_ctx, input_table):
        """Execute the ITSA model."""
        df = input_table.to_pandas()

        frames, view = self._run(exec_ctx, df)

        tables = [knext.Table.from_pandas(frame) for frame in frames]
        return (*tables, view)

    def _run(self, exec_ctx, df: pd.DataFrame):
        """Run the analysis on a pandas frame and build the output frames and view."""
        covariate_one = optional_column(self.covariate_one)
        covariate_two = optional_column(self.covariate_two)

        fit = run_itsa_model(
            data=df,
            time_col=self.time_column,
            response_col=self.response_column,
            interrupt_col=self.interruption_column,
            covariate_one_col=covariate_one,
            covariate_two_col=covariate_two,
            alpha=self.alpha,
            produce_plot=self.produce_plot,
            anova_type=self.anova_type,
            print_report=False,
        )

        # Propagate warnings to KNIME console
        if covariate_two is not None and covariate_one is None:
            exec_ctx.set_warning(f"Second covariate '{covariate_two}' ignored because no first covariate was selected.")
        if len(fit.group_means) > 2:
            exec_ctx.set_warning(
                f"Interruption variable has {len(fit.group_means)} levels; a two-period interruption design is expected."
            )
        if fit.bias_warning:
            exec_ctx.set_warning(fit.bias_warning)

        frames = (
            format_group_means_table(fit.group_means),
            format_anova_table(fit.aov_result, fit.alpha),
            format_summary_table(fit),
            format_residual_table(fit, df[self.time_column]),
        )

        if fit.itsa_plot is not None:
            view = knext.view_matplotlib(fit.itsa_plot)
        else:
            view = knext.view_html("<p>No plot forced</p>")

        return frames, view
