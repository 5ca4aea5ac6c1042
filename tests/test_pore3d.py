"""Periodic 3D pores of Lennard-Jones sites."""
import numpy as np
import pytest
import unyt
from pytest import approx
from porepack.pore import Pore3D, PoreProfile, minimum_image, lennard_jones_12_6, external_potential_3d, MAX_POTENTIAL
from porepack.grid import Axis
from porepack.state import State
from porepack.exceptions import ConfigurationError
from tools import hard_spheres, T, RHO_DILUTE

COORDINATES = np.array([[3.1, 4.2, 5.3],
                        [9.7, 1.1, 8.9]])
SIGMA_SS = np.array([3.0, 3.4])
EPSILON_K_SS = np.array([50.0, 30.0])

def box_axes(n=(8, 10, 12), size=(12.0, 10.0, 14.0)):
    return [Axis.cartesian(ni, Li) for ni, Li in zip(n, size)]

def test_minimum_image():
    assert(minimum_image(19.9, 20.0)**2 == approx(0.01))
    assert(minimum_image(-19.9, 20.0)**2 == approx(0.01))
    assert(minimum_image(4.0, 20.0) == approx(4.0))
    assert(minimum_image(np.array([11.0, -11.0]), 20.0) == approx(np.array([-9.0, 9.0])))

def test_lennard_jones():
    u = [lennard_jones_12_6(d2, 2.0, 1.0, 14.0) for d2 in (0.0, 4 * 2**(1 / 3), 4.0, 225.0)]
    assert(np.isinf(u[0]))
    assert(u[1] == approx(-1.0)) # Minimum
    assert(u[2] == approx(0.0, abs=1e-12))
    assert(u[3] == 0)

def test_threaded_equals_serial():
    fluid = hard_spheres()
    axes = box_axes()
    args = (fluid, axes, np.array([12.0, 10.0, 14.0]), COORDINATES, SIGMA_SS, EPSILON_K_SS, 14.0, MAX_POTENTIAL, T)
    serial = external_potential_3d(*args)
    threaded = external_potential_3d(*args, n_threads=4)
    assert(serial.shape == (1, 8, 10, 12))
    assert np.array_equal(serial, threaded)

def test_translation_rolls_potential():
    fluid = hard_spheres()
    axes = box_axes()
    size = np.array([12.0, 10.0, 14.0])
    V = external_potential_3d(fluid, axes, size, COORDINATES, SIGMA_SS, EPSILON_K_SS, 14.0, MAX_POTENTIAL, T)
    shifted = COORDINATES + np.array([axes[0].dz, 0.0, 0.0])
    V_shifted = external_potential_3d(fluid, axes, size, shifted, SIGMA_SS, EPSILON_K_SS, 14.0, MAX_POTENTIAL, T)
    assert(V_shifted == approx(np.roll(V, 1, axis=1), rel=1e-8, abs=1e-12))

def test_site_on_grid_point():
    fluid = hard_spheres()
    axes = box_axes()
    site = np.array([[axes[0].z[2], axes[1].z[3], axes[2].z[4]]])
    V = external_potential_3d(fluid, axes, np.array([12.0, 10.0, 14.0]), site, SIGMA_SS[:1], EPSILON_K_SS[:1], 14.0,
                              MAX_POTENTIAL, T)
    assert(V[0, 2, 3, 4] == MAX_POTENTIAL)
    assert np.all(V <= MAX_POTENTIAL)
    assert np.all(np.isfinite(V))

def test_cutoff_radius():
    fluid = hard_spheres()
    axes = box_axes(n=(4, 4, 4), size=(40.0, 40.0, 40.0))
    site = np.array([[0.0, 0.0, 0.0]])
    # Every grid point is further than 1 Å from the site
    V = external_potential_3d(fluid, axes, np.full(3, 40.0), site, SIGMA_SS[:1], EPSILON_K_SS[:1], 1.0,
                              MAX_POTENTIAL, T)
    assert np.all(V == 0)

@pytest.mark.parametrize('inpt', [{'system_size' : [10.0, 10.0], 'n_grid' : [8, 8, 8], 'coordinates' : COORDINATES},
                                  {'system_size' : [10.0, 10.0, 10.0], 'n_grid' : [8, 0, 8], 'coordinates' : COORDINATES},
                                  {'system_size' : [10.0, -1.0, 10.0], 'n_grid' : [8, 8, 8], 'coordinates' : COORDINATES},
                                  {'system_size' : [10.0, 10.0, 10.0], 'n_grid' : [8, 8, 8], 'coordinates' : COORDINATES.T},
                                  {'system_size' : [10.0, 10.0, 10.0], 'n_grid' : [8, 8, 8], 'coordinates' : COORDINATES[:1]}])
def test_invalid_specification(inpt):
    with pytest.raises(ConfigurationError):
        Pore3D(hard_spheres(), inpt['system_size'], inpt['n_grid'], inpt['coordinates'], SIGMA_SS, EPSILON_K_SS)

def test_units():
    pore = Pore3D(hard_spheres(), unyt.unyt_array([1.2, 1.0, 1.4], 'nm'), [8, 10, 12],
                  unyt.unyt_array(COORDINATES / 10, 'nm'), SIGMA_SS, EPSILON_K_SS)
    assert(pore.system_size == approx(np.array([12.0, 10.0, 14.0])))
    assert(pore.coordinates == approx(COORDINATES))

def test_initialize():
    fluid = hard_spheres()
    pore = Pore3D(fluid, [12.0, 10.0, 14.0], [8, 10, 12], COORDINATES, SIGMA_SS, EPSILON_K_SS, potential_cutoff=20.0)
    profile = pore.initialize(State(fluid, T, RHO_DILUTE))
    assert isinstance(profile, PoreProfile)
    assert(profile.grid.periodic is True)
    assert(profile.profile.density.shape == (1, 8, 10, 12))
    assert(np.max(profile.profile.external_potential) <= 20.0)
    assert(profile.grand_potential is None and profile.interfacial_tension is None)

def test_solve_dilute():
    fluid = hard_spheres()
    pore = Pore3D(fluid, [16.0, 16.0, 16.0], [16, 16, 16], np.array([[8.0, 8.0, 8.0]]), [3.0], [50.0])
    bulk = State(fluid, T, RHO_DILUTE)
    profile = pore.initialize(bulk).solve()
    rho = profile.profile.density
    assert np.all(np.isfinite(rho))
    # Far from the site, the fluid is close to the bulk
    assert(rho[0, 0, 0, 0] == approx(RHO_DILUTE, rel=5e-2))
    # Close to the site, the fluid is depleted
    assert(rho[0, 7, 7, 7] < 1e-3 * RHO_DILUTE)
    assert(profile.grand_potential.units == unyt.Unit('J'))
    assert(profile.interfacial_tension.units == unyt.Unit('J'))
    assert np.isfinite(profile.grand_potential.value)
    assert np.isfinite(profile.interfacial_tension.value)
    assert(profile.grand_potential.value < 0)

@pytest.mark.parametrize('shift', [[12.0, 0.0, 0.0], [0.0, -10.0, 0.0], [24.0, 10.0, -28.0]])
def test_periodic_images(shift):
    fluid = hard_spheres()
    axes = box_axes()
    size = np.array([12.0, 10.0, 14.0])
    V = external_potential_3d(fluid, axes, size, COORDINATES, SIGMA_SS, EPSILON_K_SS, 14.0, MAX_POTENTIAL, T)
    V_image = external_potential_3d(fluid, axes, size, COORDINATES + np.array(shift), SIGMA_SS, EPSILON_K_SS, 14.0,
                                    MAX_POTENTIAL, T)
    assert(V_image == approx(V, rel=1e-8, abs=1e-12))
