import marimo

__generated_with = "0.16.5"
app = marimo.App(width="full")


@app.cell(hide_code=True)
def _(mo):
    mo.md(
        r"""
    # Kidnapped Vehicle: Particle Filter Localization

    **Learning Objectives**:
    - Understand the particle filter estimation cycle on a known landmark map
    - See how the particle count and the noise parameters affect accuracy
    - Compare association and resampling strategies

    **Session Structure**:
    1. **Scenario**: Generate a landmark map and a vehicle trajectory
    2. **Particle Filter**: Replay the run with predict, update and resample
    3. **Evaluation**: Inspect the pose error of the best particle
    """
    )
    return


@app.cell(hide_code=True)
def _():
    # Standard library
    import os
    import sys

    # Data manipulation and visualization
    import matplotlib.pyplot as plt
    import numpy as np
    import plotly.graph_objects as go
    return go, np, os, plt, sys


@app.cell
def _(os, sys):
    # Setup project environment: navigate to project root
    if os.path.basename(os.getcwd()) == "notebooks":
        os.chdir("..")
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())

    # Import project modules
    from kidnapped_vehicle.data.simulator import (
        constant_controls,
        random_map,
        simulate_run,
    )
    from kidnapped_vehicle.localization.PF import ParticleFilter
    from kidnapped_vehicle.utils.metrics import compute_ate, compute_trajectory_stats
    from kidnapped_vehicle.visualization import marimo_helpers as mh
    return (
        ParticleFilter,
        compute_ate,
        constant_controls,
        compute_trajectory_stats,
        mh,
        random_map,
        simulate_run,
    )


@app.cell(hide_code=True)
def _(mo):
    mo.md(
        r"""
    ## Part 1: Scenario

    The vehicle drives a circuit through a field of landmarks. Ground truth is
    obtained by integrating the noise-free motion model; observations are the
    landmarks within sensor range, expressed in the vehicle frame.
    """
    )
    return


@app.cell
def _(mh, mo):
    end_frame_slider = mh.create_end_frame_slider(max_frames=1000, default=300)
    pf_controls = mh.create_particle_filter_controls()
    strategies = mh.create_strategy_selectors()

    mo.hstack(
        [
            mh.build_control_panel({"## Run": None, "end_frame": end_frame_slider}),
            mh.build_control_panel({"## Particle Filter": None, **pf_controls}),
            mh.build_control_panel({"## Strategies": None, **strategies}),
        ],
        justify="start",
    )
    return end_frame_slider, pf_controls, strategies


@app.cell
def _(
    constant_controls,
    end_frame_slider,
    mh,
    np,
    pf_controls,
    random_map,
    simulate_run,
    strategies,
):
    config = mh.config_from_controls(pf_controls, strategies, seed=42)

    rng = np.random.default_rng(7)
    landmarks = random_map(40, width=250.0, height=160.0, rng=rng)
    controls = constant_controls(end_frame_slider.value, velocity=8.0, yaw_rate=0.12)
    scenario = simulate_run(
        landmarks,
        initial_pose=(125.0, 10.0, 0.0),
        controls=controls,
        delta_t=config.delta_t,
        sensor_range=config.sensor_range,
    )
    return config, landmarks, scenario


@app.cell(hide_code=True)
def _(go, landmarks, scenario):
    fig_map = go.Figure()
    fig_map.add_trace(
        go.Scatter(
            x=scenario.groundtruth_data[:, 0],
            y=scenario.groundtruth_data[:, 1],
            mode="lines",
            name="Ground Truth",
            line=dict(color="#1f77b4", width=2),
        )
    )
    fig_map.add_trace(
        go.Scatter(
            x=landmarks.positions[:, 0],
            y=landmarks.positions[:, 1],
            mode="markers+text",
            name="Landmarks",
            text=[str(i) for i in landmarks.ids],
            textposition="top center",
            marker=dict(size=10, color="black", symbol="star"),
        )
    )
    fig_map.update_layout(
        title="Landmark Map and Vehicle Trajectory",
        xaxis_title="X (m)",
        yaxis_title="Y (m)",
        yaxis=dict(scaleanchor="x", scaleratio=1),
        height=500,
    )
    fig_map
    return


@app.cell(hide_code=True)
def _(mo):
    mo.md(
        r"""
    ## Part 2: Particle Filter

    Each timestep runs **predict → transform → associate → weight → resample**.
    The best particle (highest weight) is the pose estimate.
    """
    )
    return


@app.cell
def _(ParticleFilter, config, scenario):
    pf = ParticleFilter.from_config(config)
    summary = pf.run(scenario, config)
    pf.build_dataframes()
    summary
    return (pf,)


@app.cell
def _(pf, plt):
    plt.figure(figsize=(10, 5))
    pf.plot_data()
    plt.gca()
    return


@app.cell
def _(mh, pf):
    time_slider = mh.create_time_scrubber(len(pf.states), default=len(pf.states) - 1)
    time_slider
    return (time_slider,)


@app.cell(hide_code=True)
def _(go, landmarks, pf, scenario, time_slider):
    # Trajectory playback up to the selected timestep
    step = time_slider.value
    fig_playback = go.Figure()
    fig_playback.add_trace(
        go.Scatter(
            x=scenario.groundtruth_data[: step + 1, 0],
            y=scenario.groundtruth_data[: step + 1, 1],
            mode="lines",
            name="Ground Truth",
            line=dict(color="#1f77b4", width=2),
        )
    )
    fig_playback.add_trace(
        go.Scatter(
            x=pf.states[: step + 1, 1],
            y=pf.states[: step + 1, 2],
            mode="lines",
            name="Best Particle",
            line=dict(color="#d62728", width=2, dash="dash"),
        )
    )
    fig_playback.add_trace(
        go.Scatter(
            x=landmarks.positions[:, 0],
            y=landmarks.positions[:, 1],
            mode="markers",
            name="Landmarks",
            marker=dict(size=8, color="black", symbol="star"),
        )
    )
    fig_playback.update_layout(
        title=f"Trajectory up to step {step}",
        xaxis_title="X (m)",
        yaxis_title="Y (m)",
        yaxis=dict(scaleanchor="x", scaleratio=1),
        height=450,
    )
    fig_playback
    return


@app.cell(hide_code=True)
def _(mo):
    mo.md(r"""## Part 3: Evaluation""")
    return


@app.cell
def _(compute_ate, compute_trajectory_stats, mo, pf):
    ate = compute_ate(pf.states_df, pf.gt, verbose=False)
    stats = compute_trajectory_stats(pf.states_df, pf.gt)
    mo.md(
        f"""
    - **ATE (RMSE)**: {ate:.3f} m
    - **Max error**: {stats['max_error']:.3f} m
    - **Mean yaw error**: {stats['mean_yaw_error']:.4f} rad
    """
    )
    return


@app.cell
def _(pf):
    pf.errors_df.plot(subplots=True, figsize=(10, 6), title="Best particle error")
    return


@app.cell
def _():
    import marimo as mo
    return (mo,)


if __name__ == "__main__":
    app.run()
