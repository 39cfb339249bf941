import unittest

import numpy as np
import pandas as pd

from src.itsa import (
    BIAS_WARNING,
    format_anova_table,
    format_group_means_table,
    format_itsa_report,
    format_p_value,
    format_residual_table,
    format_summary_table,
    optional_column,
    run_itsa_model,
)
from src.itsa.report import term_conclusion

from itsa_examples import example_data


class TestOutputTables(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.df = example_data()
        cls.fit = run_itsa_model(
            data=cls.df,
            time_col="year",
            response_col="depv",
            interrupt_col="interruption",
            covariate_one_col="cov1",
            alpha=0.01,
            produce_plot=False,
            print_report=False,
        )

    def test_group_means_table(self):
        table = format_group_means_table(self.fit.group_means)
        self.assertEqual(list(table.columns), ["Interruption", "Count", "Mean", "Std_Dev"])
        self.assertEqual(list(table["Interruption"]), ["0", "1"])
        self.assertEqual(list(table["Count"]), [9, 7])

    def test_anova_table(self):
        table = format_anova_table(self.fit.aov_result, self.fit.alpha)
        self.assertEqual(
            list(table.columns), ["Source", "Sum_Sq", "DF", "Mean_Sq", "F-Statistic", "P-Value", "Conclusion"]
        )
        self.assertEqual(list(table["Source"]), ["C(interruption)", "covariate_one", "Residual"])
        self.assertEqual(table["Conclusion"].iloc[-1], "Unexplained")
        self.assertEqual(list(table["DF"]), [1, 1, 13])

        first = self.fit.aov_result.iloc[0]
        self.assertAlmostEqual(table["Mean_Sq"].iloc[0], first["sum_sq"] / first["df"])
        expected = "Time periods differ" if first["PR(>F)"] < 0.01 else "No difference between time periods"
        self.assertEqual(table["Conclusion"].iloc[0], expected)
        self.assertIn(table["Conclusion"].iloc[1], ("Significant covariate", "Not significant covariate"))

    def test_anova_table_type_iii_intercept(self):
        fit = run_itsa_model(
            data=self.df,
            time_col="year",
            response_col="depv",
            interrupt_col="interruption",
            anova_type="TYPE_III",
            produce_plot=False,
            print_report=False,
        )
        table = format_anova_table(fit.aov_result, 0.05)
        self.assertEqual(list(table["Source"]), ["Intercept", "C(interruption)", "Residual"])
        self.assertEqual(list(table["Conclusion"]), ["Baseline level", "Time periods differ", "Unexplained"])

    def test_summary_table(self):
        table = format_summary_table(self.fit)
        self.assertEqual(list(table.columns), ["Metric", "Value"])
        values = dict(zip(table["Metric"], table["Value"]))
        self.assertEqual(values["Alpha"], "0.01")
        self.assertEqual(values["Result"], self.fit.itsa_result)
        self.assertEqual(values["Shapiro-Wilk P-Value"], f"{self.fit.shapiro_test:.4f}")
        self.assertEqual(values["Warning"], self.fit.bias_warning)

    def test_residual_table(self):
        table = format_residual_table(self.fit, self.df["year"])
        self.assertEqual(len(table), 16)
        self.assertEqual(table["Time"].iloc[0], "2001")
        np.testing.assert_allclose(table["Fitted"] + table["Residual"], self.df["depv"])

    def test_report_text(self):
        report = format_itsa_report(self.fit)
        self.assertIn("Mean Values of Dependent Variable Between Time Periods:", report)
        self.assertIn("covariate_one", report)
        self.assertIn(f"( < {self.fit.alpha} )", report)
        self.assertEqual(BIAS_WARNING in report, bool(self.fit.bias_warning))


class TestFormatting(unittest.TestCase):
    def test_format_p_value(self):
        self.assertEqual(format_p_value(0.000123), "0.0001")
        self.assertEqual(format_p_value(0.5), "0.5000")
        self.assertEqual(format_p_value(np.nan), "NaN")
        self.assertEqual(format_p_value(None), "NaN")

    def test_term_conclusion(self):
        self.assertEqual(term_conclusion("C(interruption)", 0.001, 0.05), "Time periods differ")
        self.assertEqual(term_conclusion("C(interruption)", 0.05, 0.05), "No difference between time periods")
        self.assertEqual(term_conclusion("covariate_one", 0.01, 0.05), "Significant covariate")
        self.assertEqual(term_conclusion("covariate_two", 0.3, 0.05), "Not significant covariate")
        self.assertEqual(term_conclusion("Intercept", 0.001, 0.05), "Baseline level")
        self.assertEqual(term_conclusion("Residual", np.nan, 0.05), "Unexplained")
        self.assertEqual(term_conclusion("covariate_one", np.nan, 0.05), "Not tested")

    def test_optional_column(self):
        self.assertIsNone(optional_column(None))
        self.assertIsNone(optional_column(""))
        self.assertIsNone(optional_column("<none>"))
        self.assertEqual(optional_column("cov1"), "cov1")


if __name__ == "__main__":
    unittest.main()
