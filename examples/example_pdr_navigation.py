"""
Example: Step-and-heading pedestrian navigation.

Runs the PDR pipeline on a recording directory (acc.txt, gyr.txt, ori.txt)
or, by default, on a synthetic corridor walk with two turns.

Can run with:
    - Synthetic walk (default): python example_pdr_navigation.py
    - Recording: python example_pdr_navigation.py --data data/walk_01
    - Particle tracking: python example_pdr_navigation.py --tracker particle
    - Custom parameters: python example_pdr_navigation.py --config pdr.json

The JSON config holds any subset of PDRConfig fields, e.g.
    {"step_length_model": "kim", "k": 0.55, "initial_north": 40.0}
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from pdrnav.data import ArraySensorSource, TextResultSink, TextSensorSource  # noqa: E402
from pdrnav.eval import plot_heading, plot_navigation_result, plot_step_detection, save_figure  # noqa: E402
from pdrnav.navigation import MapMatcher, NavigationResult, ParticleFilterTracker, PDRConfig, PDRNavigator  # noqa: E402
from pdrnav.sensors import SensorData  # noqa: E402
from pdrnav.utils import GRAVITY  # noqa: E402

logger = logging.getLogger("example_pdr_navigation")


def generate_synthetic_walk(
    segments: Sequence[Tuple[float, int]] = ((128.5, 16), (90.0, 16), (0.0, 16)),
    step_freq: float = 1.8,
    sample_rate_hz: float = 50.0,
    amplitude: float = 2.0,
    turn_duration: float = 0.5,
    noise_std: float = 0.05,
    seed: Optional[int] = 0,
) -> SensorData:
    """
    Corridor walk: straight segments joined by quick turns.

    Args:
        segments: (heading in degrees, number of steps) per straight segment.
        step_freq: Step frequency in Hz.
        sample_rate_hz: Sampling rate.
        amplitude: Vertical acceleration amplitude of a step in m/s².
        turn_duration: Duration of each turn in seconds.
        noise_std: Accelerometer noise std in m/s².
        seed: Random seed.

    Returns:
        SensorData with orientation in degrees and gyro in rad/s.
    """
    rng = np.random.default_rng(seed)
    dt = 1.0 / sample_rate_hz

    yaw_parts = []
    for i, (heading, n_steps) in enumerate(segments):
        n_walk = int(round(n_steps / step_freq * sample_rate_hz))
        yaw_parts.append(np.full(n_walk, heading))
        if i + 1 < len(segments):
            n_turn = max(int(round(turn_duration * sample_rate_hz)), 2)
            yaw_parts.append(np.linspace(heading, segments[i + 1][0], n_turn + 2)[1:-1])
    yaw_deg = np.concatenate(yaw_parts)
    n = yaw_deg.size

    t = np.arange(n) * dt
    accel = np.zeros((n, 3))
    accel[:, 2] = GRAVITY + amplitude * np.sin(2 * np.pi * step_freq * t)
    accel += rng.normal(0.0, noise_std, size=(n, 3))

    gyro = np.zeros((n, 3))
    gyro[:, 2] = np.gradient(np.deg2rad(yaw_deg), dt)

    orientation = np.column_stack((np.zeros(n), np.zeros(n), yaw_deg))
    return SensorData(accel, gyro, orientation, sample_rate_hz, meta={"source": "synthetic"})


def load_config(path: Optional[str]) -> PDRConfig:
    if path is None:
        return PDRConfig()
    with open(path) as f:
        return PDRConfig.from_dict(json.load(f))


def run(
    data: SensorData,
    config: PDRConfig,
    tracker: str = "dead-reckoning",
    map_matcher: Optional[MapMatcher] = None,
) -> Tuple[NavigationResult, PDRNavigator]:
    """Run the dead-reckoning navigator, and the particle tracker on top if asked."""
    navigator = PDRNavigator(config)
    result = navigator.navigate(data)
    if tracker == "particle":
        particle_tracker = ParticleFilterTracker(config, map_matcher)
        result = particle_tracker.track(
            result.step_lengths, result.step_orientations, result.step_indices
        )
        print(f"  Resampling events: {particle_tracker.resample_count}")
    return result, navigator


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Pedestrian dead reckoning on a recording or a synthetic walk"
    )
    parser.add_argument("--data", type=str, default=None,
                        help="Recording directory with acc.txt, gyr.txt and ori.txt")
    parser.add_argument("--config", type=str, default=None,
                        help="JSON file with PDRConfig fields")
    parser.add_argument("--tracker", choices=["dead-reckoning", "particle"],
                        default="dead-reckoning", help="Position tracking strategy")
    parser.add_argument("--output", type=str, default=None,
                        help="Write the result table to this file")
    parser.add_argument("--plot", type=str, default=None,
                        help="Save trajectory, step and heading figures to this directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)

    print("\n" + "=" * 70)
    print("Pedestrian Dead Reckoning: step-and-heading navigation")
    print("=" * 70)

    if args.data is not None:
        print(f"Using recording: {args.data}")
        source = TextSensorSource(args.data)
    else:
        print("Using synthetic corridor walk (48 steps, two turns)")
        walk = generate_synthetic_walk(sample_rate_hz=config.sample_rate_hz)
        source = ArraySensorSource(walk.accel, walk.gyro, walk.orientation)
    data = source.load(config.sample_rate_hz)
    print(f"  Samples:  {data.n_samples} ({data.time[-1]:.1f} s at {data.sample_rate_hz:.0f} Hz)")
    print(f"  Tracker:  {args.tracker}")
    print(f"  Model:    {config.step_length_model.value}, K = {config.k}")

    result, navigator = run(data, config, args.tracker)

    print()
    print(result.summary())

    if args.output is not None:
        TextResultSink(args.output).write(result)
        print(f"  [OK] Saved: {args.output}")

    if args.plot is not None:
        figs_dir = Path(args.plot)
        figures = {
            "pdr_trajectory": plot_navigation_result(result, title=f"PDR ({args.tracker})"),
            "pdr_steps": plot_step_detection(
                navigator.filtered_signal, navigator.step_detector.detector, data.sample_rate_hz
            ),
            "pdr_heading": plot_heading(
                navigator.heading,
                navigator.heading_estimator.corners,
                navigator.heading_estimator.unwrapped_heading_deg,
                data.sample_rate_hz,
            ),
        }
        for name, fig in figures.items():
            for path in save_figure(fig, figs_dir, name, formats=("png",)):
                print(f"  [OK] Saved: {path}")
        plt.close("all")


if __name__ == "__main__":
    main()
