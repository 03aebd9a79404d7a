import numpy as np

from kidnapped_vehicle.localization.particles import Particle, ParticleSet
from kidnapped_vehicle.utils.data_utils import (
    build_timeseries,
    get_associations,
    get_sense_x,
    get_sense_y,
    read_particles,
    write_particles,
)


def test_build_timeseries_indexes_by_step():
    data = np.array([[0, 6.27, 1.87, 0.0], [1, 6.30, 1.88, 0.01]])
    frame = build_timeseries(data, cols=["step", "x", "y", "theta"])

    assert frame.index.name == "step"
    assert frame.index.tolist() == [0, 1]
    assert frame.loc[1, "y"] == 1.88


def test_build_timeseries_empty():
    frame = build_timeseries(np.empty((0, 4)), cols=["step", "x", "y", "theta"])
    assert frame.empty


def test_write_particles_format(tmp_path):
    particles = ParticleSet([[1.5, 2.0, 0.25], [-3.0, 4.0, 1.0]])
    filename = tmp_path / "particles.txt"

    write_particles(particles, filename)

    assert filename.read_text() == "1.5,2.0,0.25\n-3.0,4.0,1.0"
    np.testing.assert_allclose(read_particles(filename), particles.poses)


def test_association_strings():
    particle = Particle(
        0, 0.0, 0.0, 0.0, associations=[1, 4], sense_x=[2.5, 3.0], sense_y=[-1.0, 0.5]
    )
    assert get_associations(particle) == "1 4"
    assert get_sense_x(particle) == "2.5 3.0"
    assert get_sense_y(particle) == "-1.0 0.5"


def test_association_strings_empty():
    assert get_associations(Particle(0, 0.0, 0.0, 0.0)) == ""
