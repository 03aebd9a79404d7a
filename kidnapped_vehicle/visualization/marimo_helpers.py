"""
Marimo UI widget helpers for particle filter parameter controls.

Provides standardized widget creation functions for the kidnapped vehicle
filter parameters: particle count, GPS/process noise, landmark noise, sensor
range and the association and resampling strategies. All widgets are designed
to work with Marimo's reactive execution model.

Example:
    import marimo as mo
    from kidnapped_vehicle.visualization.marimo_helpers import (
        create_particle_filter_controls,
        config_from_controls,
    )

    # Create reactive controls
    pf_controls = create_particle_filter_controls()

    # Use in dependent cell
    config = config_from_controls(pf_controls)
"""

import marimo as mo

from kidnapped_vehicle.localization.association import CandidateFilter
from kidnapped_vehicle.localization.resampling import RESAMPLERS
from kidnapped_vehicle.utils.config import FilterConfig


def create_parameter_slider(
    name: str,
    min_val: float,
    max_val: float,
    default: float,
    step: float | None = None,
) -> mo.ui.slider:
    """
    Create a standardized parameter slider with consistent styling.

    Args:
        name: Slider label (e.g., "σ_x (m)")
        min_val: Minimum slider value
        max_val: Maximum slider value
        default: Default/initial value
        step: Step size (default: (max-min)/100)

    Returns:
        Marimo slider widget with show_value=True
    """
    if step is None:
        step = (max_val - min_val) / 100

    return mo.ui.slider(
        min_val,
        max_val,
        value=default,
        step=step,
        label=name,
        show_value=True,
    )


def create_end_frame_slider(
    max_frames: int = 2443, default: int = 500, step: int = 50
) -> mo.ui.slider:
    """
    Create slider for the number of timesteps to replay.

    Example:
        end_frame = create_end_frame_slider()
        reader = Reader(data_dir, end_frame.value)
    """
    return mo.ui.slider(
        step,
        max_frames,
        value=default,
        step=step,
        label="End Frame",
        show_value=True,
    )


def create_particle_filter_controls(
    num_particles_default: int = 100,
    max_particles: int = 500,
) -> dict[str, mo.ui.slider]:
    """
    Create sliders for Particle Filter parameters.

    Args:
        num_particles_default: Default number of particles
        max_particles: Maximum particles allowed

    Returns:
        Dictionary with particle count, noise and sensor range sliders
    """
    return {
        "num_particles": mo.ui.slider(
            10,
            max_particles,
            value=num_particles_default,
            step=10,
            label="Number of Particles",
            show_value=True,
        ),
        "sigma_x": create_parameter_slider("GPS Noise σ_x (m)", 0.01, 1.0, 0.3, 0.01),
        "sigma_y": create_parameter_slider("GPS Noise σ_y (m)", 0.01, 1.0, 0.3, 0.01),
        "sigma_theta": create_parameter_slider(
            "GPS Noise σ_θ (rad)", 0.001, 0.1, 0.01, 0.001
        ),
        "landmark_x": create_parameter_slider(
            "Landmark Noise σ_x (m)", 0.01, 1.0, 0.3, 0.01
        ),
        "landmark_y": create_parameter_slider(
            "Landmark Noise σ_y (m)", 0.01, 1.0, 0.3, 0.01
        ),
        "sensor_range": create_parameter_slider(
            "Sensor Range (m)", 5.0, 100.0, 50.0, 1.0
        ),
    }


def create_strategy_selectors(
    candidate_filter: str = "particle_range", resampling: str = "multinomial"
) -> dict[str, mo.ui.dropdown]:
    """
    Create dropdowns for the association candidate filter and resampling scheme.

    Example:
        strategies = create_strategy_selectors()
        pf = ParticleFilter(
            100,
            candidate_filter=strategies["candidate_filter"].value,
            resampling=strategies["resampling"].value,
        )
    """
    return {
        "candidate_filter": mo.ui.dropdown(
            [f.value for f in CandidateFilter],
            label="Candidate Landmarks",
            value=candidate_filter,
        ),
        "resampling": mo.ui.dropdown(
            list(RESAMPLERS), label="Resampling", value=resampling
        ),
    }


def config_from_controls(controls: dict, strategies: dict | None = None, seed=None):
    """
    Build a ``FilterConfig`` from the widgets of
    :func:`create_particle_filter_controls` and
    :func:`create_strategy_selectors`.
    """
    params = dict(
        num_particles=int(controls["num_particles"].value),
        sensor_range=controls["sensor_range"].value,
        sigma_pos=(
            controls["sigma_x"].value,
            controls["sigma_y"].value,
            controls["sigma_theta"].value,
        ),
        sigma_landmark=(controls["landmark_x"].value, controls["landmark_y"].value),
        seed=seed,
    )
    if strategies is not None:
        params["candidate_filter"] = strategies["candidate_filter"].value
        params["resampling"] = strategies["resampling"].value
    return FilterConfig(**params)


def create_time_scrubber(max_timesteps: int, default: int = 0) -> mo.ui.slider:
    """
    Create a time scrubber slider for trajectory playback.

    Example:
        time_slider = create_time_scrubber(len(pf.states))
        # In dependent cell:
        trajectory_up_to_now = pf.states[:time_slider.value+1]
    """
    return mo.ui.slider(
        0,
        max_timesteps - 1,
        value=default,
        step=1,
        label="Trajectory Progress",
        show_value=True,
    )


def build_control_panel(widgets: dict):
    """
    Build a standardized vertical control panel from widgets.

    Args:
        widgets: Dictionary of {label: widget}; labels starting with "##"
            become section headers

    Returns:
        Marimo vstack containing labeled widgets
    """
    elements = []
    for label, widget in widgets.items():
        if label.startswith("##"):  # Section header
            elements.append(mo.md(label))
        else:
            elements.append(widget)

    return mo.vstack(elements)
