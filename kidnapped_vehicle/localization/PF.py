#!/usr/bin/env python3
"""
Implementation of Particle Filter Localization with unknown correspondences.
See Probabilistic Robotics:
    1. Page 252, Table 8.2 for main algorithm.
    2. Page 124, Table 5.3 for motion model.
    3. Page 179, Table 6.4 for measurement model.

"""

import logging

import matplotlib.pyplot as plt
import numpy as np

from kidnapped_vehicle.data.landmarks import Map, as_observation_array
from kidnapped_vehicle.errors import UninitializedFilterError
from kidnapped_vehicle.localization.association import (
    CandidateFilter,
    associate_particles,
)
from kidnapped_vehicle.localization.geometry import transform_observations
from kidnapped_vehicle.localization.measurement_model import particle_weights
from kidnapped_vehicle.localization.motion_model import sample_motion
from kidnapped_vehicle.localization.particles import initialize_particles
from kidnapped_vehicle.localization.resampling import (
    effective_sample_size,
    get_resampler,
)
from kidnapped_vehicle.utils.config import (
    FilterConfig,
    check_num_particles,
    check_positive,
    check_std,
)
from kidnapped_vehicle.utils.data_utils import build_timeseries, write_particles
from kidnapped_vehicle.utils.metrics import check_errors, get_error

logger = logging.getLogger(__name__)

# Share of N below which the effective sample size is reported as collapsed
ESS_WARNING_RATIO = 0.1


class ParticleFilter:
    """
    Monte Carlo Localization of a vehicle in a known landmark map.

    This implementation follows the Monte Carlo Localization (MCL) algorithm from
    Probabilistic Robotics (Thrun et al.), Chapter 8, Table 8.2. The particle filter
    represents the posterior belief bel(x_t) by a set of weighted particles, where
    each particle represents a hypothesis of the vehicle's pose.

    Mathematical Foundation
    ----------------------
    The particle filter approximates the posterior distribution:

        p(x_t | z_{1:t}, u_{1:t}) ≈ {x_t^[1], x_t^[2], ..., x_t^[N]}

    Algorithm Steps (one timestep, in this order):
        1. **Prediction**: Sample new poses from motion model p(x_t | u_t, x_{t-1}^[m])
        2. **Transform**: Map every observation into the map frame for each particle
        3. **Association**: Match each transformed observation to its nearest landmark
        4. **Update**: Compute importance weights w_t^[m] = p(z_t | x_t^[m])
        5. **Resampling**: Draw N particles with replacement proportional to weights

    Motion Model (CTRV)
    -------------------
    For |ω| > 1e-4:

        x_t = x_{t-1} + v/ω * (sin(θ_{t-1} + ω Δt) - sin(θ_{t-1})) + ε_x
        y_t = y_{t-1} + v/ω * (cos(θ_{t-1}) - cos(θ_{t-1} + ω Δt)) + ε_y
        θ_t = θ_{t-1} + ω Δt + ε_θ

    and the straight-line equations otherwise.

    Measurement Model
    ----------------
    Observations (x_c, y_c) arrive in the vehicle frame and are transformed into
    the map frame with the particle pose:

        x_m = x_p + x_c cos(θ_p) - y_c sin(θ_p)
        y_m = y_p + x_c sin(θ_p) + y_c cos(θ_p)

    Each transformed observation is associated with the nearest candidate
    landmark (μ_x, μ_y) and scored with a bivariate Gaussian:

        p = 1 / (2π σ_x σ_y) * exp(-((x_m - μ_x)² / (2σ_x²) + (y_m - μ_y)² / (2σ_y²)))

    The particle weight is the product of p over all observations, accumulated
    in log space and scaled so that the best particle weighs 1.0. Weights are
    fully overwritten at every update, never accumulated across timesteps.

    Parameters
    ----------
    num_particles : int
        Number of particles N in the filter. Typical values: 100-200.
    rng : numpy.random.Generator or int, optional
        Random source (or seed) for initialization, motion noise and
        resampling. Default: fresh OS entropy.
    candidate_filter : str or CandidateFilter, optional
        Which landmarks may be associated with an observation:
        ``"particle_range"`` (within sensor range of the particle, default),
        ``"observation_range"`` (within sensor range of the observation) or
        ``"none"`` (all landmarks).
    resampling : str, optional
        ``"multinomial"`` (default) or ``"systematic"``.

    Attributes
    ----------
    particles : ParticleSet
        Current particle set, ``None`` until :meth:`initialization`.
    associations : ndarray, shape (N, M)
        Landmark index of each observation for each particle, from the latest
        update and kept aligned with the particles through resampling.
    states : ndarray, shape (T, 4)
        Best particle trajectory [step, x, y, θ].
    particles_log : ndarray, shape (T*N, 3)
        Historical record of all particles for visualization.
    errors : ndarray, shape (T, 4)
        Best particle error [step, |Δx|, |Δy|, |Δθ|] recorded by :meth:`run`.

    Raises
    ------
    ConfigurationError
        If ``num_particles`` is not positive or a strategy name is unknown.

    Examples
    --------
    Driving the filter one timestep at a time:

    >>> from kidnapped_vehicle.data.landmarks import Landmark, Map
    >>> landmarks = Map([Landmark(1, 5.0, 3.0), Landmark(2, 2.0, 1.0)])
    >>> pf = ParticleFilter(num_particles=100, rng=0)
    >>> pf.initialization(0.0, 0.0, 0.0, std=[0.3, 0.3, 0.01])
    >>> pf.step(
    ...     delta_t=0.1, velocity=1.0, yaw_rate=0.0,
    ...     observations=[[4.9, 3.0], [1.9, 1.0]], landmarks=landmarks,
    ...     std_pos=[0.3, 0.3, 0.01], sensor_range=50.0, std_landmark=[0.3, 0.3],
    ... )
    >>> x, y, theta = pf.estimate()

    Replaying a recorded run:

    >>> from kidnapped_vehicle.data.reader import Reader
    >>> pf = ParticleFilter(num_particles=100, rng=42)
    >>> summary = pf.run(Reader("data"))
    >>> summary["passed"]
    True

    References
    ----------
    .. [1] Thrun, S., Burgard, W., & Fox, D. (2005). Probabilistic Robotics.
           MIT Press. Chapter 8: Monte Carlo Localization.
    .. [2] Doucet, A., Godsill, S., & Andrieu, C. (2000). On sequential Monte
           Carlo sampling methods for Bayesian filtering. Statistics and
           Computing, 10(3), 197-208.
    """

    def __init__(
        self,
        num_particles,
        rng=None,
        candidate_filter="particle_range",
        resampling="multinomial",
    ):
        self.num_particles = check_num_particles(num_particles)
        self.rng = np.random.default_rng(rng)
        self.candidate_filter = CandidateFilter.parse(candidate_filter)
        self.resampling = resampling
        self.resampler = get_resampler(resampling)

        self.particles = None
        self.associations = None
        self.landmarks = None
        self.timestep = 0
        self.states = np.empty((0, 4))
        self.errors = np.empty((0, 4))
        self.groundtruth_data = None
        self.particles_log = np.empty((0, 3))

    @classmethod
    def from_config(cls, config):
        """Build a filter from a :class:`FilterConfig`."""
        return cls(
            config.num_particles,
            rng=config.seed,
            candidate_filter=config.candidate_filter,
            resampling=config.resampling,
        )

    @property
    def is_initialized(self):
        return self.particles is not None

    def _check_initialized(self):
        if not self.is_initialized:
            raise UninitializedFilterError(
                "ParticleFilter.initialization() must be called before "
                "prediction, update or resampling"
            )

    def initialization(self, x, y, theta, std):
        """
        Initialize particle filter with initial particle distribution.

        Creates the initial particle set by sampling around a prior pose,
        typically a GPS fix:

            x_0^[m] ~ N(x, σ_x²)
            y_0^[m] ~ N(y, σ_y²)
            θ_0^[m] ~ N(θ, σ_θ²)

        Parameters
        ----------
        x, y, theta : float
            Prior pose (m, m, rad).
        std : array_like, shape (3,)
            Prior standard deviations [σ_x, σ_y, σ_θ].

        Notes
        -----
        Initial weights are set to 1.0. Calling this again discards the
        current particle set and its history.
        """
        self.particles = initialize_particles(
            self.num_particles, x, y, theta, std, self.rng
        )
        self.associations = None
        self.timestep = 0
        self.states = np.empty((0, 4))
        self.errors = np.empty((0, 4))
        self.particles_log = self.particles.poses.copy()
        logger.info(
            f"Initialized {self.num_particles} particles around "
            f"({x:.3f}, {y:.3f}, {theta:.3f})"
        )

    def motion_update(self, delta_t, std_pos, velocity, yaw_rate):
        """
        Propagate particles through motion model with noise (prediction step).

        Parameters
        ----------
        delta_t : float
            Time elapsed since the previous timestep (s).
        std_pos : array_like, shape (3,)
            Process noise standard deviations [σ_x, σ_y, σ_θ].
        velocity : float
            Linear velocity v (m/s).
        yaw_rate : float
            Yaw rate ω (rad/s).

        Notes
        -----
        - Each particle gets its own noise realization on every call
        - θ is not wrapped
        """
        self._check_initialized()
        self.particles.poses = sample_motion(
            self.particles.poses, delta_t, velocity, yaw_rate, std_pos, self.rng
        )

        # Update particles log
        self.particles_log = np.vstack([self.particles_log, self.particles.poses])

    def measurement_update(self, sensor_range, std_landmark, observations, landmarks):
        """
        Update particle weights from landmark observations (update step).

        For every particle: transform the observations into the map frame,
        associate each with its nearest candidate landmark, and set the
        weight to the product of the Gaussian observation likelihoods.

        Parameters
        ----------
        sensor_range : float
            Sensor range (m).
        std_landmark : array_like, shape (2,)
            Landmark measurement noise [σ_x, σ_y] (m).
        observations : sequence of Observation or array_like, shape (M, 2)
            Vehicle-frame observations of the current timestep.
        landmarks : Map or sequence of Landmark
            Known landmark map.

        Raises
        ------
        NoCandidateLandmarkError
            If a particle has no candidate landmark for an observation. The
            particle set is left unchanged.

        Notes
        -----
        - Weights are overwritten, not multiplied into the previous weights
        - Without observations every weight is set to 1.0
        - Weights are scaled so that the best particle weighs 1.0
        """
        self._check_initialized()
        sensor_range = check_positive("sensor_range", sensor_range)
        std_landmark = check_std("std_landmark", std_landmark, 2)
        if not isinstance(landmarks, Map):
            landmarks = Map(landmarks)
        points = as_observation_array(observations)

        poses = self.particles.poses
        map_points = transform_observations(points, poses)
        associations = associate_particles(
            map_points, poses, landmarks, sensor_range, self.candidate_filter
        )
        matched = landmarks.positions[associations].reshape(map_points.shape)
        weights = particle_weights(map_points, matched, std_landmark)

        self.particles.weights = weights
        self.associations = associations
        self.landmarks = landmarks

    def importance_sampling(self):
        """
        Resample particles according to importance weights (resampling step).

        Draws N particles with replacement, each with probability proportional
        to its weight, and replaces the particle set with value copies of the
        selected particles.

        Raises
        ------
        DegenerateWeightError
            If all weights are zero (or any is negative or not finite). The
            particle set is left unchanged.
        """
        self._check_initialized()
        weights = self.particles.weights
        indexes = self.resampler(weights, self.rng)

        ess = effective_sample_size(weights)
        if ess < ESS_WARNING_RATIO * self.num_particles:
            logger.warning(
                f"⚠ Effective sample size collapsed to {ess:.1f} of "
                f"{self.num_particles} particles at step {self.timestep}"
            )
        else:
            logger.debug(f"Effective sample size {ess:.1f} at step {self.timestep}")

        particles = self.particles.take(indexes)
        if self.associations is not None:
            self.associations = self.associations[indexes]
        self.particles = particles

    def state_update(self):
        """
        Record the best particle pose of the current timestep.

        The best particle is the one with the highest weight; it is also the
        particle that carries the diagnostic associations.
        """
        self._check_initialized()
        best = self.best_particle()
        self.states = np.append(
            self.states,
            np.array([[self.timestep, best.x, best.y, best.theta]]),
            axis=0,
        )

    def step(
        self,
        delta_t,
        velocity,
        yaw_rate,
        observations,
        landmarks,
        std_pos,
        sensor_range,
        std_landmark,
    ):
        """
        Run one full timestep: predict, update, resample, record.

        Returns
        -------
        Particle
            Best particle of the new generation, with its associations.
        """
        self.motion_update(delta_t, std_pos, velocity, yaw_rate)
        self.measurement_update(sensor_range, std_landmark, observations, landmarks)
        self.importance_sampling()
        self.timestep += 1
        self.set_associations()
        self.state_update()
        return self.best_particle()

    def best_particle(self):
        """Highest weight particle (value copy)."""
        self._check_initialized()
        return self.particles[self.particles.best_index()]

    def estimate(self):
        """Weighted mean pose [x, y, θ] of the particle set."""
        self._check_initialized()
        return self.particles.weighted_mean_pose()

    def set_associations(self, index=None):
        """
        Attach the latest associations to one particle for reporting.

        Parameters
        ----------
        index : int, optional
            Particle position in the set. Default: the best particle.

        Notes
        -----
        Associations are diagnostics only and do not affect estimation.
        """
        self._check_initialized()
        if self.associations is None:
            return
        if index is None:
            index = self.particles.best_index()
        matched = self.associations[index]
        self.particles.set_associations(
            index,
            self.landmarks.ids[matched],
            self.landmarks.positions[matched, 0],
            self.landmarks.positions[matched, 1],
        )

    def write(self, filename):
        """Write the particle poses, one ``x,y,theta`` line per particle."""
        self._check_initialized()
        write_particles(self.particles, filename)

    def run(self, reader, config=None, observation_noise=True):
        """
        Replay a recorded run and grade it against ground truth.

        Follows the reference driver: the filter is initialized on the first
        timestep from the ground truth pose perturbed with GPS noise, and
        afterwards predicts with the previous timestep's control. Observation
        noise is added to the recorded observations when
        ``observation_noise`` is True.

        Parameters
        ----------
        reader : Reader or Scenario
            Recorded run with ``map``, ``control_data``, ``groundtruth_data``
            and ``observations``.
        config : FilterConfig, optional
            Noise, range and time step parameters. Default: ``FilterConfig()``
            with this filter's particle count.
        observation_noise : bool, optional
            Whether to perturb observations with ``config.sigma_landmark``.

        Returns
        -------
        dict
            'mean_error' (cumulative mean [x, y, yaw] error of the best
            particle), 'passed' and 'timesteps'.

        Raises
        ------
        ValueError
            If the run has no timesteps.
        """
        if len(reader) == 0:
            raise ValueError("Cannot run the particle filter on a run without timesteps")
        if config is None:
            config = FilterConfig(num_particles=self.num_particles)
        sigma_pos = np.asarray(config.sigma_pos)
        sigma_landmark = np.asarray(config.sigma_landmark)
        self.groundtruth_data = np.asarray(reader.groundtruth_data)

        errors = []
        for i, (_, groundtruth, observations) in enumerate(reader.timesteps()):
            if i == 0:
                gps = groundtruth + self.rng.normal(0.0, sigma_pos)
                self.initialization(*gps, std=sigma_pos)
            else:
                velocity, yaw_rate = reader.control_data[i - 1]
                self.motion_update(config.delta_t, sigma_pos, velocity, yaw_rate)
                self.timestep = i

            observations = np.asarray(observations, dtype=float).reshape(-1, 2)
            if observation_noise:
                observations = observations + self.rng.normal(
                    0.0, sigma_landmark, size=observations.shape
                )

            self.measurement_update(
                config.sensor_range, sigma_landmark, observations, reader.map
            )
            self.importance_sampling()
            self.set_associations()
            self.state_update()

            best = self.best_particle()
            error = get_error(groundtruth, (best.x, best.y, best.theta))
            errors.append(error)
            self.errors = np.append(self.errors, [[i, *error]], axis=0)
            logger.debug(
                f"Step {i}: best weight {best.weight:.3e}, error {np.round(error, 4)}"
            )

        mean_error = np.mean(errors, axis=0)
        passed = check_errors(mean_error)
        logger.info(
            f"Finished {len(errors)} timesteps, mean error "
            f"x={mean_error[0]:.4f} y={mean_error[1]:.4f} yaw={mean_error[2]:.4f}"
        )
        return {"mean_error": mean_error, "passed": passed, "timesteps": len(errors)}

    def plot_data(self):
        """
        Visualize current particle filter state and estimation results.

        Plot Elements
        ------------
        - **Ground Truth**: true trajectory, when available (blue line)
        - **Estimate**: best particle trajectory (red line)
        - **Particles**: current pose hypotheses (orange dots)
        - **Particle Log**: historical particle positions (black dots)
        - **Landmarks**: map landmarks with ids (black stars)
        - **Associations**: best particle observation matches (green lines)
        """
        # Clear all
        plt.cla()

        # Ground truth data
        if self.groundtruth_data is not None and len(self.groundtruth_data):
            plt.plot(
                self.groundtruth_data[:, 0],
                self.groundtruth_data[:, 1],
                "b",
                label="Vehicle Ground truth",
            )

        # States
        if len(self.states):
            plt.plot(
                self.states[:, 1], self.states[:, 2], "r", label="Best Particle Estimate"
            )

        # Particles
        if self.is_initialized:
            plt.scatter(
                self.particles.x,
                self.particles.y,
                s=40,
                c="orange",
                alpha=0.8,
                label="Particles",
            )
        if len(self.particles_log):
            plt.scatter(
                self.particles_log[:, 0],
                self.particles_log[:, 1],
                s=0.5,
                c="k",
                alpha=0.5,
                label="Particles log",
            )

        # Landmark locations and ids
        if self.landmarks is not None:
            for landmark in self.landmarks:
                plt.text(landmark.x, landmark.y, str(landmark.id), alpha=0.5, fontsize=10)
            plt.scatter(
                self.landmarks.positions[:, 0],
                self.landmarks.positions[:, 1],
                s=200,
                c="k",
                alpha=0.2,
                marker="*",
                label="Landmark Locations",
            )

            # Associations of the best particle
            if self.is_initialized:
                best = self.best_particle()
                for sense_x, sense_y in zip(best.sense_x, best.sense_y):
                    plt.plot([best.x, sense_x], [best.y, sense_y], "g", alpha=0.4)

        plt.title("Particle Filter Localization with Unknown Correspondences")
        plt.legend(loc="center left", bbox_to_anchor=(1, 0.5))

    def build_dataframes(self):
        self.states_df = build_timeseries(self.states, cols=["step", "x", "y", "theta"])
        self.errors_df = build_timeseries(
            self.errors, cols=["step", "x_error", "y_error", "yaw_error"]
        )
        if self.groundtruth_data is not None:
            gt = np.column_stack(
                (np.arange(len(self.groundtruth_data)), self.groundtruth_data)
            )
            self.gt = build_timeseries(gt, cols=["step", "x", "y", "theta"])


if __name__ == "__main__":
    from kidnapped_vehicle.data.reader import Reader

    logging.basicConfig(level=logging.INFO)

    # Dataset
    data_dir = "data"
    # Number of particles
    num_particles = 100
    # GPS / process noise (in meters / rad): [noise_x, noise_y, noise_theta]
    # Landmark measurement noise (in meters): [noise_x, noise_y]
    config = FilterConfig(
        num_particles=num_particles,
        sigma_pos=(0.3, 0.3, 0.01),
        sigma_landmark=(0.3, 0.3),
    )

    pf = ParticleFilter.from_config(config)
    pf.run(Reader(data_dir), config)
    pf.plot_data()
    plt.show()
