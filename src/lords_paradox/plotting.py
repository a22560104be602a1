"""
Lord Plot
=========

Scatter of follow-up vs. baseline outcome stratified by exposure, with
marginal density curves of each outcome hanging off the scatter:

    +------+---------------------------+
    | Y1   |                           |
    | dens |   scatter, identity line, |
    |      |   group regression lines, |
    |      |   means and ellipses      |
    +------+---------------------------+
    |      |        Y0 density         |
    +------+---------------------------+
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd
from matplotlib.figure import Figure
from matplotlib.patches import Ellipse
from scipy import stats

from .config import BASELINE_OUTCOME, FOLLOW_UP_OUTCOME, SCENARIO_CONFIGS
from .dgp.sampler import SimulatedDataset

logger = logging.getLogger(__name__)

GROUP_COLORS: Dict[str, str] = {"Female": "#C83296", "Male": "#009632"}
GROUP_LINESTYLES: Dict[str, str] = {"Female": "--", "Male": "-"}
BASELINE_COLOR = "#C80032"
FOLLOW_UP_COLOR = "#64197D"

AXIS_LIMITS: Tuple[float, float] = (40.0, 120.0)
DENSITY_BANDWIDTH = 2.5
ELLIPSE_LEVEL = 0.995


def _kde_counts(values: np.ndarray, grid: np.ndarray, bandwidth: float) -> np.ndarray:
    """Kernel density scaled to counts, with a fixed bandwidth in data units."""
    if len(values) < 2 or np.std(values, ddof=1) == 0:
        return np.zeros_like(grid)
    kde = stats.gaussian_kde(values, bw_method=bandwidth / np.std(values, ddof=1))
    return kde(grid) * len(values)


def _covariance_ellipse(x: np.ndarray, y: np.ndarray, level: float, **kwargs) -> Ellipse:
    """Ellipse at the given level, scaled by the F distribution."""
    n = len(x)
    cov = np.cov(x, y)
    eigenvalues, eigenvectors = np.linalg.eigh(cov)
    order = eigenvalues.argsort()[::-1]
    eigenvalues, eigenvectors = eigenvalues[order], eigenvectors[:, order]
    radius = np.sqrt(2 * stats.f.ppf(level, 2, n - 1))
    angle = np.degrees(np.arctan2(eigenvectors[1, 0], eigenvectors[0, 0]))
    width, height = 2 * radius * np.sqrt(eigenvalues)
    return Ellipse((x.mean(), y.mean()), width, height, angle=angle, **kwargs)


def plot_lords_paradox(
    dataset: SimulatedDataset,
    path: Optional[Union[str, Path]] = None,
    limits: Tuple[float, float] = AXIS_LIMITS,
    figsize: Tuple[float, float] = (10.0, 10.0),
    dpi: int = 300,
) -> Figure:
    """
    Draw the Lord plot for one dataset.

    Args:
        dataset: Simulated dataset; only its own data is plotted
        path: Save the figure as PNG here if given
        limits: Axis range for both outcomes
        figsize: Figure size in inches
        dpi: Resolution used when saving

    Returns:
        The matplotlib Figure
    """
    config = SCENARIO_CONFIGS[dataset.scenario]
    data = dataset.data
    exposure = config.exposure
    groups = [config.exposure_labels[k] for k in sorted(config.exposure_labels)]

    fig = Figure(figsize=figsize)
    grid = fig.add_gridspec(6, 6, wspace=0.0, hspace=0.0)
    ax_left = fig.add_subplot(grid[0:5, 0])
    ax_scatter = fig.add_subplot(grid[0:5, 1:6], sharey=ax_left)
    ax_bottom = fig.add_subplot(grid[5, 1:6], sharex=ax_scatter)

    line_x = np.linspace(*limits, 200)
    for group in groups:
        subset: pd.DataFrame = data[data[exposure] == group]
        if subset.empty:
            logger.warning(f"No {group} units in {dataset.scenario.value}; skipping group")
            continue
        x = subset[BASELINE_OUTCOME].to_numpy()
        y = subset[FOLLOW_UP_OUTCOME].to_numpy()
        color = GROUP_COLORS.get(group, "gray")
        linestyle = GROUP_LINESTYLES.get(group, "-")

        ax_scatter.scatter(x, y, s=2, color=color, alpha=0.5, linewidths=0, label=group)
        if len(x) > 2:
            ax_scatter.add_patch(
                _covariance_ellipse(x, y, ELLIPSE_LEVEL, facecolor=color, alpha=0.1)
            )
            ax_scatter.add_patch(
                _covariance_ellipse(
                    x, y, ELLIPSE_LEVEL, fill=False, edgecolor=color, linestyle=linestyle, linewidth=1.5
                )
            )
            slope, intercept = np.polyfit(x, y, 1)
            ax_scatter.plot(line_x, intercept + slope * line_x, color=color, linestyle=linestyle)
        ax_scatter.scatter([x.mean()], [y.mean()], s=80, color=color, zorder=5)

        ax_bottom.plot(line_x, -_kde_counts(x, line_x, DENSITY_BANDWIDTH), color=BASELINE_COLOR, linestyle=linestyle)
        ax_bottom.fill_between(line_x, -_kde_counts(x, line_x, DENSITY_BANDWIDTH), 0, color=BASELINE_COLOR, alpha=0.1)
        ax_left.plot(-_kde_counts(y, line_x, DENSITY_BANDWIDTH), line_x, color=FOLLOW_UP_COLOR, linestyle=linestyle)
        ax_left.fill_betweenx(line_x, -_kde_counts(y, line_x, DENSITY_BANDWIDTH), 0, color=FOLLOW_UP_COLOR, alpha=0.1)

    ax_scatter.plot(limits, limits, color="black", linewidth=0.5)
    ax_scatter.set_xlim(*limits)
    ax_scatter.set_ylim(*limits)
    ax_scatter.legend(loc="upper left", frameon=False)
    ax_scatter.tick_params(labelleft=False, labelbottom=False)
    ax_scatter.set_title(config.description)

    ax_left.set_ylabel("$Y_1$: Follow-up weight (Kg)", fontweight="bold")
    ax_left.set_xticks([])
    ax_bottom.set_xlabel("$Y_0$: Baseline weight (Kg)", fontweight="bold")
    ax_bottom.set_yticks([])
    for ax in (ax_left, ax_bottom):
        for side in ("top", "right"):
            ax.spines[side].set_visible(False)

    if path is not None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=dpi)
        logger.info(f"Saved Lord plot for {dataset.scenario.value} to {path}")

    return fig
