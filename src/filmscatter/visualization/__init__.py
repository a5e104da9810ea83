"""
Visualization module for film analysis and scattering results.

Provides diagnostic plots:
- Radial profile with the fitted Gaussian overlay
- Corrected sigma vs. distance against the Highland expectation
- Corrected sigma across saved runs
"""

from .plots import (
    plot_radial_profile,
    plot_scattering_results,
    plot_run_comparison,
    save_figure,
)

__all__ = [
    "plot_radial_profile",
    "plot_scattering_results",
    "plot_run_comparison",
    "save_figure",
]
