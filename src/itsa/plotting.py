"""
Time Series Interruption Plot.

Draws the response over time with the interruption periods overlaid on a
secondary axis.
"""

import matplotlib as mpl
import numpy as np
import pandas as pd
from matplotlib.figure import Figure
from typing import Tuple


PLOT_STYLE = {
    "axes.grid": False,
    "legend.frameon": False,
    "font.size": 10,
}


def interruption_codes(interruption: pd.Series) -> np.ndarray:
    """Numeric codes of the interruption levels, NaN where the level is missing."""
    categorical = pd.Series(pd.Categorical(interruption))
    codes = categorical.cat.codes.to_numpy(dtype=float)
    return np.where(codes < 0, np.nan, codes)


def plot_itsa(
    time: pd.Series,
    response: pd.Series,
    interruption: pd.Series,
    figsize: Tuple[int, int] = (10, 6),
) -> Figure:
    """
    Build the Time Series Interruption Plot.

    Parameters
    ----------
    time : pd.Series
        Time of each observation (numeric or datetime)
    response : pd.Series
        Response variable levels
    interruption : pd.Series
        Interruption level of each observation

    Returns
    -------
    matplotlib.figure.Figure
    """
    # rcParams are restored when the context exits, also on error
    with mpl.rc_context(PLOT_STYLE):
        fig = Figure(figsize=figsize)
        ax = fig.add_subplot(111)

        (response_line,) = ax.plot(np.asarray(time), np.asarray(response, dtype=float), color="black", linewidth=1.5)
        ax.set_ylabel("Response Variable Levels")
        ax.set_title("Time Series Interruption Plot")

        ax2 = ax.twinx()
        (interruption_line,) = ax2.plot(np.asarray(time), interruption_codes(interruption), color="darkgrey", linewidth=1.5)
        ax2.set_yticks([])

        ax.legend(
            [response_line, interruption_line],
            ["Response var", "Interruption"],
            loc="upper left",
            bbox_to_anchor=(1.02, 1.0),
            fontsize=9,
        )
        fig.tight_layout()

    return fig
