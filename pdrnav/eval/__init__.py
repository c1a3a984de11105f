"""
Evaluation and Visualization Module.

Plots of trajectories, step detection and heading for PDR runs.
"""

from .plots import plot_heading, plot_navigation_result, plot_step_detection, save_figure

__all__ = [
    "plot_navigation_result",
    "plot_step_detection",
    "plot_heading",
    "save_figure",
]
