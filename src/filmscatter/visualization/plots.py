"""
Diagnostic plots for film analysis and scattering results.

These plots let users check visually that each Gaussian fit follows the
measured profile and that measured widths track the Highland prediction.
"""

from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import matplotlib.pyplot as plt
import pandas as pd

from ..comparison.runs import SavedRun
from ..imaging.analyzer import FilmAnalysis
from ..physics.scattering import ScatteringResults


def plot_radial_profile(
    analysis: FilmAnalysis,
    title: str = "Radial Profile",
    ax: Optional[plt.Axes] = None,
) -> plt.Axes:
    """
    Plot a film's radial profile with the fitted Gaussian overlay.

    Args:
        analysis: FilmAnalysis from analyze_film or analyze_grid.
        title: Axes title.
        ax: Matplotlib axes to plot on (creates new if None).

    Returns:
        The matplotlib Axes object.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 4))

    if not analysis.profile:
        ax.text(0.5, 0.5, "No profile data available",
                transform=ax.transAxes, ha='center', va='center')
        return ax

    radii = [p.radius for p in analysis.profile]
    intensities = [p.intensity for p in analysis.profile]

    ax.plot(radii, intensities, 'b.', ms=4, label="Measured")

    if analysis.sigma > 0:
        fits = [p.fit for p in analysis.profile]
        ax.plot(radii, fits, 'r-', linewidth=1.5, label="Gaussian fit")
        ax.axvline(analysis.sigma, color='green', linestyle='--', alpha=0.7,
                   label=f"σ = {analysis.sigma:.3f} mm")

    ax.set_xlabel("Radius (mm)")
    ax.set_ylabel("Intensity (255 - brightness)")
    ax.set_title(f"{title}\nFit: {analysis.fit.confidence.value}, "
                 f"R² = {analysis.fit.r_squared:.3f}")
    ax.legend(loc='upper right')
    ax.grid(True, alpha=0.3)

    return ax


def plot_scattering_results(
    results: ScatteringResults,
    title: str = "Scattering Results",
    ax: Optional[plt.Axes] = None,
) -> plt.Axes:
    """
    Plot corrected sigma against distance with the Highland expectation.

    Args:
        results: ScatteringResults for the experiment.
        title: Axes title.
        ax: Matplotlib axes to plot on.

    Returns:
        The matplotlib Axes object.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 5))

    summaries = sorted(results.summaries, key=lambda s: s.distance)
    if not summaries:
        ax.text(0.5, 0.5, "No samples",
                transform=ax.transAxes, ha='center', va='center')
        return ax

    distances = np.array([s.distance for s in summaries])
    corrected = np.array([s.sigma_corrected for s in summaries])
    theory = np.array([s.theoretical_sigma for s in summaries])

    ax.plot(distances, corrected, 'bo-', ms=5, lw=1.5, label="σ corrected (measured)")
    ax.plot(distances, theory, 'r--', lw=1.5, label="σ theoretical (Highland)")

    ax.set_xlabel("Distance L (mm)")
    ax.set_ylabel("σ (mm)")
    ax.set_title(
        f"{title}\n"
        f"θ_rms = {results.theta_rms:.4e} rad | "
        f"θ_Highland = {results.theoretical_theta:.4e} rad"
    )
    ax.legend(loc='upper left')
    ax.grid(True, alpha=0.3)

    return ax


def plot_run_comparison(
    series: pd.DataFrame,
    runs: Sequence[SavedRun],
    ax: Optional[plt.Axes] = None,
) -> plt.Axes:
    """
    Plot corrected sigma per distance for several saved runs.

    Args:
        series: Output of build_comparison_series (distance index, one
                column per run id).
        runs: The runs, used for legend labels.
        ax: Matplotlib axes to plot on.

    Returns:
        The matplotlib Axes object.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(10, 5))

    if series.empty:
        ax.text(0.5, 0.5, "No runs selected",
                transform=ax.transAxes, ha='center', va='center')
        return ax

    names = {run.id: run.material_name for run in runs}

    for run_id in series.columns:
        column = series[run_id].dropna()
        ax.plot(column.index, column.values, 'o-', ms=4, lw=1.5,
                label=names.get(run_id, run_id))

    ax.set_xlabel("Distance L (mm)")
    ax.set_ylabel("σ corrected (mm)")
    ax.set_title("Run Comparison")
    ax.legend(loc='upper left', fontsize=8)
    ax.grid(True, alpha=0.3)

    return ax


def save_figure(
    fig: plt.Figure,
    output_path: str | Path,
    dpi: int = 150,
) -> Path:
    """Save a figure and close it."""
    output_path = Path(output_path)
    fig.savefig(output_path, dpi=dpi, bbox_inches='tight')
    plt.close(fig)
    return output_path
