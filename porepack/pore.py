"""
Pores: The specification of a solid confining a fluid, and the density profile of the confined fluid.

A pore specification (Pore1D or Pore3D) is turned into a PoreProfile by calling `initialize` with a bulk State. This
builds the grid, evaluates the external potential of the solid on it, plans the convolver and sets up the initial
density. The PoreProfile is then solved, giving the grand potential and interfacial tension of the confined fluid.

    pore = Pore1D(functional, Geometry.CARTESIAN, 20, LJ93(3.0, 100, 0.08))
    profile = pore.initialize(State(functional, 300, 0.01)).solve()
    profile.grand_potential, profile.interfacial_tension

Module constants:
    POTENTIAL_OFFSET : A slit is extended beyond the wall by POTENTIAL_OFFSET times the largest segment diameter
    DEFAULT_GRID_POINTS : Default number of grid points of 1D pores
    MAX_POTENTIAL : Default cap of the reduced external potential
    CUTOFF_RADIUS : Default cutoff radius of the solid-fluid interaction in 3D pores [Å]
"""
import abc
import copy
import warnings
import numpy as np
import numba
from numba import njit, prange
from porepack.grid import Axis, Grid, Geometry
from porepack.Convolver import ConvolverFFT
from porepack.profile import DFTProfile
from porepack.exceptions import ConfigurationError
from porepack.units import reduced_length, reduced_energy, integrated_energy_quantity, integrated_density_quantity, \
    density_quantity

POTENTIAL_OFFSET = 2.0
DEFAULT_GRID_POINTS = 2048
MAX_POTENTIAL = 50.0
CUTOFF_RADIUS = 14.0


class PoreSpecification(metaclass=abc.ABCMeta):

    @abc.abstractmethod
    def initialize(self, bulk, external_potential=None):
        """
        Build an unsolved PoreProfile.

        Args:
            bulk (State) : The bulk state the pore is in equilibrium with
            external_potential (ndarray, optional) : Reduced external potential (V / k_B T) to use instead of the
                                                    potential of the pore. Used verbatim.

        Returns:
            PoreProfile : The initialised profile
        """
        pass

    def adsorption_isotherm(self, bulk_states, solver=None):
        """
        Solve the pore for a sequence of bulk states, at the same temperature. The pore is initialised once, and every
        following state starts from the converged density of the previous one.

        Args:
            bulk_states (Iterable[State]) : The bulk states
            solver (DFTSolver, optional) : The solver

        Returns:
            list[PoreProfile] : One solved profile per bulk state
        """
        profiles = []
        for bulk in bulk_states:
            if len(profiles) == 0:
                profile = self.initialize(bulk)
            else:
                profile = profiles[-1].copy().update_bulk(bulk)
            profiles.append(profile.solve(solver))
        return profiles


class Pore1D(PoreSpecification):
    """
    A slit (CARTESIAN), cylindrical (POLAR) or spherical (SPHERICAL) pore. Only half the slit is discretised, from the
    centre of the pore to beyond the wall, all quantities of a slit are per area of one wall.
    """

    def __init__(self, functional, geometry, pore_size, potential, n_grid=None, potential_cutoff=None):
        """
        Args:
            functional (HelmholtzEnergyFunctional) : The fluid, must also provide the FluidParameters
            geometry (Geometry) : Geometry of the pore
            pore_size (float or unyt_quantity) : Width of a slit, or radius of a cylinder or sphere [Å]
            potential (ExternalPotential) : The fluid-solid interaction
            n_grid (int, optional) : Number of grid points, defaults to DEFAULT_GRID_POINTS
            potential_cutoff (float, optional) : Cap of the reduced external potential, defaults to MAX_POTENTIAL
        """
        self.functional = functional
        self.geometry = Geometry(geometry)
        self.pore_size = reduced_length(pore_size)
        self.potential = potential
        self.n_grid = DEFAULT_GRID_POINTS if n_grid is None else n_grid
        self.potential_cutoff = MAX_POTENTIAL if potential_cutoff is None else potential_cutoff

        if self.pore_size <= 0:
            raise ConfigurationError(f'Pore size must be positive, got {pore_size}.')
        if int(self.n_grid) != self.n_grid or self.n_grid <= 0:
            raise ConfigurationError(f'Number of grid points must be a positive integer, got {n_grid}.')

    def axis(self):
        if self.geometry == Geometry.CARTESIAN:
            offset = POTENTIAL_OFFSET * np.max(self.functional.sigma_ff())
            return Axis.cartesian(self.n_grid, 0.5 * self.pore_size, offset)
        elif self.geometry == Geometry.POLAR:
            return Axis.polar(self.n_grid, self.pore_size)
        return Axis.spherical(self.n_grid, self.pore_size)

    def initialize(self, bulk, external_potential=None):
        grid = Grid(self.axis())
        if external_potential is None:
            external_potential = external_potential_1d(self.pore_size, bulk.t, self.potential, self.functional,
                                                       grid.axes[0], self.potential_cutoff)
        else:
            external_potential = np.array(external_potential, dtype=float)

        convolver = ConvolverFFT.plan(grid, self.functional.weight_functions(bulk.t), 1)
        return PoreProfile(DFTProfile(grid, convolver, bulk, external_potential), self)

    def __repr__(self):
        return f'Pore1D with geometry : {self.geometry.name}, pore size : {self.pore_size} Å, ' \
               f'N : {self.n_grid}, potential : {self.potential}'


class Pore3D(PoreSpecification):
    """
    A periodic box containing solid interaction sites, e.g. the atoms of a crystalline adsorbent.
    """

    def __init__(self, functional, system_size, n_grid, coordinates, sigma_ss, epsilon_k_ss, potential_cutoff=None,
                 cutoff_radius=None, n_threads=None):
        """
        Args:
            functional (HelmholtzEnergyFunctional) : The fluid, must also provide the FluidParameters
            system_size (list[float] or unyt_array) : Box lengths [Å]
            n_grid (list[int]) : Number of grid points along each axis
            coordinates (2d array or unyt_array) : Positions of the solid sites, shape (n_sites, 3) [Å]
            sigma_ss (1d array) : Diameter of each solid site [Å]
            epsilon_k_ss (1d array) : Energy parameter of each solid site [K]
            potential_cutoff (float, optional) : Cap of the reduced external potential, defaults to MAX_POTENTIAL
            cutoff_radius (float, optional) : The fluid-solid interaction vanishes beyond this distance [Å],
                                            defaults to CUTOFF_RADIUS
            n_threads (int, optional) : Number of threads used to evaluate the external potential, all available
                                        threads if None
        """
        self.functional = functional
        self.system_size = np.asarray(reduced_length(system_size), dtype=float)
        self.n_grid = np.asarray(n_grid, dtype=int)
        self.coordinates = np.atleast_2d(reduced_length(coordinates)).astype(float)
        self.sigma_ss = np.atleast_1d(reduced_length(sigma_ss)).astype(float)
        self.epsilon_k_ss = np.atleast_1d(reduced_energy(epsilon_k_ss)).astype(float)
        self.potential_cutoff = MAX_POTENTIAL if potential_cutoff is None else potential_cutoff
        self.cutoff_radius = CUTOFF_RADIUS if cutoff_radius is None else reduced_length(cutoff_radius)
        self.n_threads = n_threads

        if self.system_size.shape != (3,) or self.n_grid.shape != (3,):
            raise ConfigurationError('System size and number of grid points must be given for three axes.')
        if any(self.system_size <= 0) or any(self.n_grid <= 0):
            raise ConfigurationError(f'System size ({self.system_size}) and number of grid points ({self.n_grid}) '
                                     f'must be positive.')
        if self.coordinates.ndim != 2 or self.coordinates.shape[1] != 3:
            raise ConfigurationError(f'Coordinates must have shape (n_sites, 3), got {self.coordinates.shape}.')
        n_sites = len(self.coordinates)
        if len(self.sigma_ss) != n_sites or len(self.epsilon_k_ss) != n_sites:
            raise ConfigurationError(f'Got {n_sites} sites, but {len(self.sigma_ss)} diameters and '
                                     f'{len(self.epsilon_k_ss)} energy parameters.')

    def grid(self):
        return Grid.periodic_box(*[Axis.cartesian(n, L) for n, L in zip(self.n_grid, self.system_size)])

    def initialize(self, bulk, external_potential=None):
        grid = self.grid()
        if external_potential is None:
            external_potential = external_potential_3d(self.functional, grid.axes, self.system_size, self.coordinates,
                                                       self.sigma_ss, self.epsilon_k_ss, self.cutoff_radius,
                                                       self.potential_cutoff, bulk.t, self.n_threads)
        else:
            external_potential = np.array(external_potential, dtype=float)

        convolver = ConvolverFFT.plan(grid, self.functional.weight_functions(bulk.t), 1)
        return PoreProfile(DFTProfile(grid, convolver, bulk, external_potential), self)

    def __repr__(self):
        return f'Pore3D with system size : {self.system_size} Å, N : {self.n_grid}, {len(self.coordinates)} sites'


class PoreProfile:
    """
    The density profile of a fluid in a pore.

    Attributes:
        profile (DFTProfile) : The underlying density profile
        pore (PoreSpecification) : The pore this profile was initialised from
        grand_potential (unyt_quantity or None) : Grand potential of the fluid in the pore
        interfacial_tension (unyt_quantity or None) : Grand potential in excess of the bulk, Omega + p V

    The grand potential and interfacial tension are per area of wall for slits (J / m^2), per length for cylinders
    (J / m), and total for spheres and 3D pores (J). Both are None until the profile has been solved, and are reset
    when the bulk state is changed.
    """

    def __init__(self, profile, pore):
        self.profile = profile
        self.pore = pore
        self.grand_potential = None
        self.interfacial_tension = None

    @property
    def grid(self):
        return self.profile.grid

    @property
    def bulk(self):
        return self.profile.bulk

    @property
    def density(self):
        return density_quantity(self.profile.density)

    @property
    def moles(self):
        """
        Number of particles of each segment in the pore, per area for slits and per length for cylinders.
        """
        return integrated_density_quantity(self.grid.integrate(self.profile.density), self.grid.dimension)

    def solve_inplace(self, solver=None, debug=False):
        """
        Solve the profile, and compute the grand potential and interfacial tension. If anything fails, the density
        and both derived values are left unchanged.

        Args:
            solver (DFTSolver, optional) : The solver, defaults to DFTSolver.default()
            debug (bool) : Passed on to DFTProfile.solve
        """
        density = np.copy(self.profile.density)
        try:
            self.profile.solve(solver, debug)
            omega = self.grid.integrate(self.profile.grand_potential_density())
            gamma = omega + self.bulk.reduced_pressure() * self.grid.volume()
        except Exception:
            self.profile.density = density
            raise

        self.grand_potential = integrated_energy_quantity(omega, self.grid.dimension)
        self.interfacial_tension = integrated_energy_quantity(gamma, self.grid.dimension)

    def solve(self, solver=None):
        self.solve_inplace(solver, False)
        return self

    def update_bulk(self, bulk):
        """
        Rebind the profile to a new bulk state. The current density is kept as initial guess for the next solve.
        The external potential and weights are not recomputed, so the temperature should not change.

        Args:
            bulk (State) : The new bulk state

        Returns:
            PoreProfile : self
        """
        if bulk.t != self.profile.temperature:
            warnings.warn(f'Bulk temperature changed from {self.profile.temperature} K to {bulk.t} K, the external '
                          f'potential and weights are those of {self.profile.temperature} K.', RuntimeWarning,
                          stacklevel=2)
        self.profile.bulk = bulk
        self.profile.chemical_potential = bulk.reduced_chemical_potential()
        self.grand_potential = None
        self.interfacial_tension = None
        return self

    def copy(self):
        """
        Copy of this profile, sharing the grid, convolver and external potential, but not the density.
        """
        profile = copy.copy(self.profile)
        profile.density = np.copy(self.profile.density)
        new = PoreProfile(profile, self.pore)
        new.grand_potential = self.grand_potential
        new.interfacial_tension = self.interfacial_tension
        return new

    def __repr__(self):
        return f'PoreProfile of {self.pore}\ngrand potential : {self.grand_potential}, ' \
               f'interfacial tension : {self.interfacial_tension}'


def external_potential_1d(pore_size, t, potential, fluid_parameters, axis, potential_cutoff=None):
    """
    Evaluate the reduced external potential of a 1D pore.

    For a slit, the potential of the two walls at distances pore_size / 2 + z and pore_size / 2 - z is summed. Points
    beyond the wall, and all values above the cutoff, are set to the cutoff.

    Args:
        pore_size (float) : Width of a slit, or radius of a cylinder or sphere [Å]
        t (float) : Temperature [K]
        potential (ExternalPotential) : The fluid-solid interaction
        fluid_parameters (FluidParameters) : The fluid
        axis (Axis) : The axis, the geometry of the axis determines the geometry of the pore
        potential_cutoff (float, optional) : Cap of the reduced potential, defaults to MAX_POTENTIAL

    Returns:
        2d array : Reduced external potential, indexed as V[<segment idx>][<position idx>]
    """
    cutoff = MAX_POTENTIAL if potential_cutoff is None else potential_cutoff
    z = axis.z
    if axis.geometry == Geometry.CARTESIAN:
        effective_size = pore_size / 2
        V = potential.calculate_cartesian_potential(effective_size + z, fluid_parameters) \
            + potential.calculate_cartesian_potential(effective_size - z, fluid_parameters)
    elif axis.geometry == Geometry.POLAR:
        effective_size = pore_size
        V = potential.calculate_cylindrical_potential(z, pore_size, fluid_parameters)
    else:
        effective_size = pore_size
        V = potential.calculate_spherical_potential(z, pore_size, fluid_parameters)

    V = np.array(V, dtype=float) / t
    V[:, z > effective_size] = cutoff
    return np.minimum(V, cutoff)


@njit(cache=True)
def minimum_image(r, length):
    """
    Shift distance components of a periodic box into [-length / 2, length / 2].
    """
    return r - length * np.rint(r / length)


@njit(cache=True)
def lennard_jones_12_6(d2, sigma, epsilon, cutoff_radius):
    """
    12-6 Lennard-Jones potential at a squared distance, zero beyond the cutoff radius and infinite at zero distance.

    Args:
        d2 (float) : Squared distance [Å^2]
        sigma (float) : Diameter [Å]
        epsilon (float) : Energy parameter [K]
        cutoff_radius (float) : Cutoff radius [Å]

    Returns:
        float : The potential [k_B K]
    """
    if d2 > cutoff_radius**2:
        return 0.0
    if d2 == 0:
        return np.inf
    s6 = (sigma**2 / d2)**3
    return 4 * epsilon * (s6**2 - s6)


@njit(parallel=True, cache=True)
def _site_potential(x, y, z, coordinates, system_size, sigma_sf, epsilon_k_sf, m, cutoff_radius, t):
    # Slabs of constant x are written to disjoint parts of V, and are evaluated in parallel.
    n_segments = len(m)
    V = np.zeros((n_segments, len(x), len(y), len(z)))
    for ix in prange(len(x)):
        for iy in range(len(y)):
            for iz in range(len(z)):
                for s in range(coordinates.shape[0]):
                    dx = minimum_image(x[ix] - coordinates[s, 0], system_size[0])
                    dy = minimum_image(y[iy] - coordinates[s, 1], system_size[1])
                    dz = minimum_image(z[iz] - coordinates[s, 2], system_size[2])
                    d2 = dx**2 + dy**2 + dz**2
                    for i in range(n_segments):
                        V[i, ix, iy, iz] += lennard_jones_12_6(d2, sigma_sf[i, s], epsilon_k_sf[i, s], cutoff_radius)
                for i in range(n_segments):
                    V[i, ix, iy, iz] *= m[i] / t
    return V


def external_potential_3d(fluid_parameters, axes, system_size, coordinates, sigma_ss, epsilon_k_ss, cutoff_radius,
                          potential_cutoff, t, n_threads=None):
    """
    Evaluate the reduced external potential of a periodic box of solid sites, using the minimum image convention.

    Every grid point is independent, the evaluation is compiled with numba and runs in parallel over slabs of
    constant x on `n_threads` threads (all available threads if None).

    Args:
        fluid_parameters (FluidParameters) : The fluid
        axes (tuple[Axis]) : The x, y and z axes
        system_size (1d array) : Box lengths [Å]
        coordinates (2d array) : Site positions, shape (n_sites, 3) [Å]
        sigma_ss (1d array) : Site diameters [Å]
        epsilon_k_ss (1d array) : Site energy parameters [K]
        cutoff_radius (float) : Cutoff radius of the interaction [Å]
        potential_cutoff (float) : Cap of the reduced potential
        t (float) : Temperature [K]
        n_threads (int, optional) : Number of threads

    Returns:
        4d array : Reduced external potential, shape (segments, Nx, Ny, Nz)
    """
    sigma_sf = 0.5 * (np.asarray(sigma_ss, dtype=float)[np.newaxis, :] + fluid_parameters.sigma_ff()[:, np.newaxis])
    epsilon_k_sf = np.sqrt(np.asarray(epsilon_k_ss, dtype=float)[np.newaxis, :]
                           * fluid_parameters.epsilon_k_ff()[:, np.newaxis])
    args = ([np.ascontiguousarray(ax.z, dtype=float) for ax in axes]
            + [np.ascontiguousarray(coordinates, dtype=float), np.asarray(system_size, dtype=float),
               sigma_sf, epsilon_k_sf, fluid_parameters.m(), float(cutoff_radius), float(t)])

    if n_threads is None:
        V = _site_potential(*args)
    else:
        n_threads_prev = numba.get_num_threads()
        numba.set_num_threads(max(1, min(n_threads, numba.config.NUMBA_NUM_THREADS)))
        try:
            V = _site_potential(*args)
        finally:
            numba.set_num_threads(n_threads_prev)

    return np.minimum(V, potential_cutoff)
