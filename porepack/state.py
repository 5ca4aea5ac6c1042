"""
The bulk state that a pore is in equilibrium with.

A State holds the temperature and densities in reduced units (attributes `t` and `rho`), and exposes the physical
properties as unyt quantities.
"""
import numpy as np
from scipy.optimize import root_scalar
from porepack.Functional import Contributions
from porepack.exceptions import ConfigurationError
from porepack.units import reduced_temperature, reduced_density, reduced_pressure, temperature_quantity, \
    density_quantity, energy_quantity, pressure_quantity

class State:

    def __init__(self, functional, temperature, density=None, pressure=None):
        """Constructor
        Give either the density of every component, or the pressure of a pure fluid.

        Args:
            functional (HelmholtzEnergyFunctional) : The model
            temperature (float or unyt_quantity) : Temperature [K]
            density (float, list[float] or unyt_array, optional) : Density of each component [Å^-3]
            pressure (float or unyt_quantity, optional) : Pressure [k_B K / Å^3]

        Raises:
            ConfigurationError : If the state is over- or under-specified, or not physical.
            UnitConversionError : If a value has the wrong dimension.
        """
        if (density is None) == (pressure is None):
            raise ConfigurationError('Exactly one of density and pressure must be given.')

        self.functional = functional
        self.t = reduced_temperature(temperature)
        if self.t <= 0:
            raise ConfigurationError(f'Temperature must be positive, got {temperature}.')

        if density is not None:
            rho = np.atleast_1d(reduced_density(density)).astype(float)
            if len(rho) != functional.ncomps:
                raise ConfigurationError(f'Got {len(rho)} densities for a functional with {functional.ncomps} components.')
        else:
            if functional.ncomps != 1:
                raise ConfigurationError('A state can only be specified by pressure for a pure fluid.')
            rho = np.array([self.density_from_pressure(functional, self.t, reduced_pressure(pressure))])

        if any(rho <= 0):
            raise ConfigurationError(f'Densities must be positive, got {rho}.')
        self.rho = rho

    @staticmethod
    def density_from_pressure(functional, t, p):
        """
        Solve p(rho) = p for a pure fluid. The pressure is bracketed below by the ideal gas, and above by a packing
        fraction of 0.9.

        Args:
            functional (HelmholtzEnergyFunctional) : The model
            t (float) : Temperature [K]
            p (float) : Pressure [k_B K / Å^3]

        Returns:
            float : Density [Å^-3]
        """
        if p <= 0:
            raise ConfigurationError(f'Pressure must be positive, got {p}.')
        d = functional.hard_sphere_diameter(t)[0]
        m = functional.m()[0]
        rho_max = 0.9 * 6 / (np.pi * m * d**3)
        rho_hi = min(p / t, rho_max)
        rho_lo = 1e-3 * rho_hi
        f = lambda rho: functional.pressure(np.array([rho]), t) - p
        if f(rho_hi) < 0:
            raise ConfigurationError(f'No fluid density gives the pressure {p} at temperature {t}.')
        sol = root_scalar(f, bracket=(rho_lo, rho_hi), method='brentq', xtol=1e-16, rtol=1e-12)
        return sol.root

    @property
    def temperature(self):
        return temperature_quantity(self.t)

    @property
    def density(self):
        return density_quantity(self.rho)

    def reduced_chemical_potential(self, contributions=Contributions.total):
        """
        Returns:
            1d array : Chemical potential of each component [k_B K]
        """
        return self.functional.chemical_potential(self.rho, self.t, contributions)

    def reduced_pressure(self, contributions=Contributions.total):
        """
        Returns:
            float : Pressure [k_B K / Å^3]
        """
        return self.functional.pressure(self.rho, self.t, contributions)

    def chemical_potential(self, contributions=Contributions.total):
        return energy_quantity(self.reduced_chemical_potential(contributions))

    def pressure(self, contributions=Contributions.total):
        return pressure_quantity(self.reduced_pressure(contributions))

    def __repr__(self):
        return f'State with T : {self.t} K, rho : {self.rho} 1/Å^3'
