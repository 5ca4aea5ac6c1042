"""Bulk properties of the hard sphere functionals, and their functional derivative for homogeneous profiles."""
import numpy as np
import pytest
from pytest import approx
from porepack.hardsphere import Rosenfeld, WhiteBear
from porepack.Functional import Contributions
from porepack.Convolver import ConvolverFFT
from porepack.grid import Axis, Grid, Geometry
from porepack.exceptions import ConfigurationError
from tools import T, packing_fraction_density

ETA = 0.3

def percus_yevick(eta):
    z = (1 + eta + eta**2) / (1 - eta)**3
    beta_mu_res = - np.log(1 - eta) + eta * (14 - 13 * eta + 5 * eta**2) / (2 * (1 - eta)**3)
    return z, beta_mu_res

def carnahan_starling(eta):
    z = (1 + eta + eta**2 - eta**3) / (1 - eta)**3
    beta_mu_res = (8 * eta - 9 * eta**2 + 3 * eta**3) / (1 - eta)**3
    return z, beta_mu_res

@pytest.mark.parametrize('inpt', [{'functional' : Rosenfeld, 'eos' : percus_yevick},
                                  {'functional' : WhiteBear, 'eos' : carnahan_starling}])
def test_bulk_equation_of_state(inpt):
    func = inpt['functional'](3.0)
    rho = np.array([packing_fraction_density(ETA)])
    z, beta_mu_res = inpt['eos'](ETA)
    assert(func.pressure(rho, T) == approx(T * rho[0] * z, rel=1e-8))
    assert(func.chemical_potential(rho, T, Contributions.residual)[0] == approx(T * beta_mu_res, rel=1e-8))
    assert(func.pressure(rho, T, Contributions.ideal) == approx(T * rho[0]))

@pytest.mark.parametrize('functional', [Rosenfeld, WhiteBear])
def test_gibbs_duhem(functional):
    func = functional([3.0, 4.0])
    rho = np.array([packing_fraction_density(0.1), 0.5 * packing_fraction_density(0.1, 4.0)])
    for i in range(2):
        drho = np.zeros(2)
        drho[i] = 1e-6 * rho[i]
        dp = func.pressure(rho + drho, T) - func.pressure(rho - drho, T)
        dmu = func.chemical_potential(rho + drho, T) - func.chemical_potential(rho - drho, T)
        assert(dp == approx(np.sum(rho * dmu), rel=1e-6))

def test_ideal_chemical_potential():
    func = Rosenfeld(3.0)
    rho = np.array([1e-3])
    assert(func.chemical_potential(rho, T, Contributions.ideal)[0] == approx(T * np.log(1e-3)))
    assert(func.chemical_potential(rho, T)[0]
           == approx(T * np.log(1e-3) + func.chemical_potential(rho, T, Contributions.residual)[0]))

def test_segment_number_scales_weights():
    rho = np.array([packing_fraction_density(0.1)])
    chain = Rosenfeld(3.0, m=2.0)
    # The packing fraction of a dimer at density rho equals that of monomers at density 2 rho
    n3 = chain.bulk_weighted_densities(rho, T)[3]
    assert(n3 == approx(0.2))

def uniform_functional_derivative(func, grid, rho):
    convolver = ConvolverFFT.plan(grid, func.weight_functions(T), 1)
    density = np.ones((func.ncomps, *grid.shape)) * rho.reshape((-1,) + (1,) * len(grid.shape))
    return func.functional_derivative(density, T, convolver)

@pytest.mark.parametrize('inpt', [{'functional' : Rosenfeld, 'grid' : Grid(Axis.cartesian(128, 20.0, 6.0))},
                                  {'functional' : WhiteBear, 'grid' : Grid(Axis.cartesian(128, 20.0, 6.0))},
                                  {'functional' : Rosenfeld, 'grid' : Grid(Axis.spherical(128, 20.0))},
                                  {'functional' : WhiteBear, 'grid' : Grid(Axis.spherical(128, 20.0))},
                                  {'functional' : WhiteBear, 'grid' : Grid.periodic_box(Axis.cartesian(8, 12.0),
                                                                                         Axis.cartesian(10, 12.0),
                                                                                         Axis.cartesian(12, 12.0))}])
def test_uniform_functional_derivative(inpt):
    func = inpt['functional']([3.0, 3.5])
    rho = np.array([packing_fraction_density(0.1), packing_fraction_density(0.1, 3.5)])
    dF = uniform_functional_derivative(func, inpt['grid'], rho)
    beta_mu_res = func.chemical_potential(rho, T, Contributions.residual) / T
    assert(dF.shape == (2, *inpt['grid'].shape))
    for i in range(2):
        assert(dF[i] == approx(np.full(inpt['grid'].shape, beta_mu_res[i]), rel=1e-8))

def test_uniform_weighted_densities_polar():
    func = Rosenfeld(3.0)
    grid = Grid(Axis.polar(512, 30.0))
    convolver = ConvolverFFT.plan(grid, func.weight_functions(T), 0)
    rho = packing_fraction_density(ETA)
    n = convolver.weighted_densities(np.full((1, 512), rho))
    interior = grid.axes[0].z < 25
    assert(n[3][interior] == approx(ETA, rel=1e-3))
    assert(n[2][interior] == approx(rho * np.pi * 9.0, rel=1e-3))
    assert(n[5][0, interior] == approx(0.0, abs=1e-3))
    with pytest.raises(ValueError):
        convolver.functional_derivative(n)

@pytest.mark.parametrize('n_grid', [400, 800])
def test_step_profile_polar(n_grid):
    # Bulk density inside r = 32, empty outside
    func = Rosenfeld(3.0)
    grid = Grid(Axis.polar(n_grid, 40.0))
    r = grid.axes[0].z
    rho = packing_fraction_density(ETA)
    density = np.where(r < 32.0, rho, 0.0)[np.newaxis, :]
    convolver = ConvolverFFT.plan(grid, func.weight_functions(T), 1)
    n = convolver.weighted_densities(density)
    interior = r < 20
    assert(n[3][interior] == approx(ETA, rel=1e-3))
    assert(n[2][interior] == approx(rho * np.pi * 9.0, rel=1e-3))
    # Further than one radius from the fluid
    assert(n[3][r > 33.6] == approx(0.0, abs=1e-3))

    dF = func.functional_derivative(density, T, convolver)
    beta_mu_res = func.chemical_potential(np.array([rho]), T, Contributions.residual)[0] / T
    assert(dF[0][r < 10] == approx(beta_mu_res, rel=1e-3))

def test_grand_potential_density_of_bulk():
    func = WhiteBear(3.0)
    grid = Grid(Axis.cartesian(64, 10.0, 6.0))
    rho = np.array([packing_fraction_density(0.2)])
    convolver = ConvolverFFT.plan(grid, func.weight_functions(T), 1)
    density = np.full((1, 64), rho[0])
    omega = func.grand_potential_density(T, density, convolver, np.zeros((1, 64)), func.chemical_potential(rho, T))
    assert(omega == approx(np.full(64, - func.pressure(rho, T)), rel=1e-8))

@pytest.mark.parametrize('inpt', [{'sigma' : [3.0, -1.0], 'epsilon_k' : None, 'm' : None},
                                  {'sigma' : [3.0, 3.0], 'epsilon_k' : [100.0], 'm' : None},
                                  {'sigma' : 3.0, 'epsilon_k' : None, 'm' : [1.0, 2.0]},
                                  {'sigma' : 3.0, 'epsilon_k' : None, 'm' : 0.0}])
def test_invalid_parameters(inpt):
    with pytest.raises(ConfigurationError):
        Rosenfeld(inpt['sigma'], epsilon_k=inpt['epsilon_k'], m=inpt['m'])

def test_fluid_parameters():
    func = WhiteBear([3.0, 4.0], epsilon_k=[100.0, 200.0], m=[1.0, 1.5])
    assert(func.ncomps == 2)
    assert(func.sigma_ff() == approx(np.array([3.0, 4.0])))
    assert(func.epsilon_k_ff() == approx(np.array([100.0, 200.0])))
    assert(func.m() == approx(np.array([1.0, 1.5])))
    assert(func.hard_sphere_diameter(T) == approx(np.array([3.0, 4.0])))
    # Weights are cached per temperature
    assert(func.weight_functions(T) is func.weight_functions(T))

def test_from_thermopack():
    func = Rosenfeld.from_thermopack('C1')
    assert(func.ncomps == 1)
    assert(func.m()[0] == approx(1.0, rel=1e-2))
    assert(func.sigma_ff()[0] == approx(3.70, rel=1e-2))
    assert(func.epsilon_k_ff()[0] == approx(150.0, rel=1e-2))
    d = func.hard_sphere_diameter(T)
    assert(0.8 * func.sigma_ff()[0] < d[0] < func.sigma_ff()[0])
