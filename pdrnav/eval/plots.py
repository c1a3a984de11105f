"""
Visualization of PDR navigation runs.

All functions return matplotlib Figure objects for flexible display/saving.
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np

from pdrnav.navigation.map_matching import MapMatcher
from pdrnav.navigation.types import NavigationResult
from pdrnav.sensors.pdr import PeakValleyDetector


def plot_navigation_result(
    result: NavigationResult,
    map_matcher: Optional[MapMatcher] = None,
    title: str = "PDR Trajectory",
) -> plt.Figure:
    """
    Plot the north/east trace of a navigation run.

    East is drawn on the horizontal axis and north on the vertical axis, so
    the figure reads like a floor plan.

    Args:
        result: Navigation run to draw.
        map_matcher: Optional floor plan; walls are drawn as black segments
            and rooms as shaded rectangles.
        title: Plot title.

    Returns:
        fig: Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=(10, 8))

    if map_matcher is not None:
        for room in map_matcher.rooms:
            ax.add_patch(
                plt.Rectangle(
                    (room.center_east - room.width / 2.0, room.center_north - room.height / 2.0),
                    room.width,
                    room.height,
                    color="lightgray",
                    alpha=0.5,
                    zorder=1,
                )
            )
        for i, wall in enumerate(map_matcher.walls):
            ax.plot(
                [wall.start_east, wall.end_east],
                [wall.start_north, wall.end_north],
                "k-",
                linewidth=3,
                label="Walls" if i == 0 else None,
                zorder=2,
            )

    ax.plot(result.east, result.north, "b.-", linewidth=1.5, markersize=4, label="PDR", zorder=5)
    ax.plot(result.east[0], result.north[0], "go", markersize=10, label="Start", zorder=6)
    ax.plot(result.east[-1], result.north[-1], "ro", markersize=10, label="End", zorder=6)

    ax.set_xlabel("East (m)", fontsize=12)
    ax.set_ylabel("North (m)", fontsize=12)
    ax.set_title(
        f"{title} ({result.step_count} steps, {result.total_distance:.1f} m)",
        fontsize=14,
        fontweight="bold",
    )
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)
    ax.axis("equal")

    plt.tight_layout()
    return fig


def plot_step_detection(
    filtered_signal: np.ndarray,
    detector: PeakValleyDetector,
    sample_rate_hz: float = 50.0,
    title: str = "Step Detection",
) -> plt.Figure:
    """
    Plot the filtered acceleration magnitude with detected peaks and valleys.

    Args:
        filtered_signal: Low-pass filtered magnitude, shape (N,).
        detector: Detector that ran over `filtered_signal`.
        sample_rate_hz: Sampling rate for the time axis.
        title: Plot title.
    """
    filtered_signal = np.asarray(filtered_signal, dtype=float)
    t = np.arange(filtered_signal.size) / sample_rate_hz

    fig, ax = plt.subplots(figsize=(12, 5))
    ax.plot(t, filtered_signal, "k-", linewidth=1.2, label="Filtered magnitude")

    peaks = np.asarray(detector.peak_indices, dtype=int)
    valleys = np.asarray(detector.valley_indices, dtype=int)
    ax.plot(t[peaks], filtered_signal[peaks], "r^", markersize=8, label="Peaks")
    ax.plot(t[valleys], filtered_signal[valleys], "bv", markersize=8, label="Valleys")
    ax.axhline(detector.threshold, color="gray", linestyle="--", alpha=0.6)
    ax.axhline(-detector.threshold, color="gray", linestyle="--", alpha=0.6)

    ax.set_xlabel("Time (s)", fontsize=12)
    ax.set_ylabel("Acceleration (m/s²)", fontsize=12)
    ax.set_title(f"{title} ({detector.step_count} steps)", fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def plot_heading(
    heading: np.ndarray,
    corners: Optional[np.ndarray] = None,
    raw_heading_deg: Optional[np.ndarray] = None,
    sample_rate_hz: float = 50.0,
    title: str = "Heading",
) -> plt.Figure:
    """
    Plot the filtered heading, optionally with the raw heading and shaded
    corner intervals.

    Args:
        heading: Filtered heading in radians, shape (N,).
        corners: (K, 2) [start, end] sample intervals of turns.
        raw_heading_deg: Unfiltered (unwrapped) heading in degrees, shape (N,).
        sample_rate_hz: Sampling rate for the time axis.
        title: Plot title.
    """
    heading = np.asarray(heading, dtype=float)
    t = np.arange(heading.size) / sample_rate_hz

    fig, ax = plt.subplots(figsize=(12, 5))
    if raw_heading_deg is not None:
        ax.plot(t, raw_heading_deg, color="gray", linewidth=1, alpha=0.7, label="Raw")
    ax.plot(t, np.rad2deg(heading), "b-", linewidth=2, label="Filtered")

    if corners is not None:
        for i, (start, end) in enumerate(np.asarray(corners, dtype=int).reshape(-1, 2)):
            ax.axvspan(
                t[start], t[min(end, heading.size - 1)],
                color="orange", alpha=0.2, label="Corners" if i == 0 else None,
            )

    ax.set_xlabel("Time (s)", fontsize=12)
    ax.set_ylabel("Heading (deg)", fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    return fig


def save_figure(
    fig: plt.Figure,
    out_dir: Union[str, Path],
    name: str,
    formats: Tuple[str, ...] = ("svg", "png"),
) -> List[Path]:
    """
    Save figure in multiple formats.

    Args:
        fig: Matplotlib figure to save
        out_dir: Output directory
        name: Base filename (without extension)
        formats: Tuple of format extensions

    Returns:
        paths: List of saved file paths
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for fmt in formats:
        filepath = out_dir / f"{name}.{fmt}"
        fig.savefig(filepath, dpi=150, bbox_inches="tight")
        paths.append(filepath)

    return paths
