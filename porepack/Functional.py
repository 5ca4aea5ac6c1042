import abc
from enum import IntEnum
import numpy as np
from scipy.special import xlogy

class Contributions(IntEnum):
    total = 0
    residual = 1
    ideal = 2

class FluidParameters(metaclass=abc.ABCMeta):
    """
    Parameters of the fluid used to compute the interaction with a solid. All arrays have one entry per segment.
    """

    @abc.abstractmethod
    def sigma_ff(self):
        """
        Returns:
            1d array : Segment diameters [Å]
        """
        pass

    @abc.abstractmethod
    def epsilon_k_ff(self):
        """
        Returns:
            1d array : Segment energy parameters, epsilon / k_B [K]
        """
        pass

    @abc.abstractmethod
    def m(self):
        """
        Returns:
            1d array : Number of segments of each component
        """
        pass

class HelmholtzEnergyFunctional(metaclass=abc.ABCMeta):
    """
    Parent class for weighted density functionals.

    All quantities are in the reference units of porepack.units, that is: densities in [Å^-3], temperatures in [K] and
    energies (including chemical potentials) in [k_B K].
    """

    def __init__(self, ncomps):
        self.ncomps = ncomps

    @abc.abstractmethod
    def weight_functions(self, t):
        """Weights
        Returns the weights for weighted densities in a 2D list, ordered as
        weight[<weight idx>][<segment idx>].

        Args:
            t (float) : Temperature [K]
        """
        pass

    @abc.abstractmethod
    def reduced_helmholtz_energy_density(self, n, t, dphidn=False):
        r"""Profile Property
        Returns the reduced, residual helmholtz energy density, $\phi = a^{res} / k_B T$ [Å^-3] as a function of the
        weighted densities.

        Args:
            n (list[ndarray]) : Weighted densities, indexed like the weights
            t (float) : Temperature [K]
            dphidn (bool) : Also return the partial derivatives wrt. the weighted densities

        Returns:
            ndarray : phi
            Optional list[ndarray] : d phi / d n
        """
        pass

    def bulk_weighted_densities(self, rho, t):
        """
        Weighted densities of a homogeneous fluid, for which no convolutions are needed. Vector weighted densities vanish.

        Args:
            rho (1d array) : Density of each component [Å^-3]
            t (float) : Temperature [K]
        """
        weights = self.weight_functions(t)
        n = []
        for comp_weights in weights:
            if comp_weights[0].is_vector_valued:
                n.append(np.zeros(1))
            else:
                n.append(sum(rho_i * w.real_integral() for rho_i, w in zip(rho, comp_weights)))
        return n

    def residual_chemical_potential(self, rho, t):
        """Bulk Property
        Compute the residual chemical potential

        Args:
            rho (1d array) : Density [Å^-3]
            t (float) : Temperature [K]

        Returns:
            1d array : The residual chemical potentials [k_B K]
        """
        rho = np.atleast_1d(rho)
        weights = self.weight_functions(t)
        _, dphidn = self.reduced_helmholtz_energy_density(self.bulk_weighted_densities(rho, t), t, dphidn=True)
        beta_mu = np.zeros(self.ncomps)
        for a, comp_weights in enumerate(weights):
            if comp_weights[0].is_vector_valued:
                continue
            for i, w in enumerate(comp_weights):
                beta_mu[i] += dphidn[a] * w.real_integral()
        return t * beta_mu

    def chemical_potential(self, rho, t, contributions=Contributions.total):
        """Bulk Property
        Compute the chemical potential, using a de Broglie wavelength of 1 Å for the ideal part.

        Args:
            rho (1d array) : Density [Å^-3]
            t (float) : Temperature [K]
            contributions (Contributions) : Which contributions to include

        Returns:
            1d array : The chemical potentials [k_B K]
        """
        rho = np.atleast_1d(rho)
        mu_id = t * np.log(rho)
        if contributions == Contributions.ideal:
            return mu_id
        mu_res = self.residual_chemical_potential(rho, t)
        if contributions == Contributions.residual:
            return mu_res
        return mu_id + mu_res

    def pressure(self, rho, t, contributions=Contributions.total):
        """Bulk Property
        Compute the pressure from p / k_B T = sum_i rho_i (1 + mu_res_i / k_B T) - phi

        Args:
            rho (1d array) : Density [Å^-3]
            t (float) : Temperature [K]
            contributions (Contributions) : Which contributions to include

        Returns:
            float : Pressure [k_B K / Å^3]
        """
        rho = np.atleast_1d(rho)
        p_id = t * np.sum(rho)
        if contributions == Contributions.ideal:
            return p_id
        phi = self.reduced_helmholtz_energy_density(self.bulk_weighted_densities(rho, t), t)
        p_res = np.sum(rho * self.residual_chemical_potential(rho, t)) - t * phi
        if contributions == Contributions.residual:
            return float(p_res)
        return float(p_id + p_res)

    def functional_derivative(self, density, t, convolver):
        """Profile Property
        Compute the residual functional derivative, (delta F_res / delta rho_i) / k_B T

        Args:
            density (ndarray) : Density profiles, shape (segments, *grid.shape) [Å^-3]
            t (float) : Temperature [K]
            convolver (ConvolverFFT) : Convolver planned with self.weight_functions(t)

        Returns:
            ndarray : Functional derivative, same shape as density
        """
        n = convolver.weighted_densities(density)
        _, dphidn = self.reduced_helmholtz_energy_density(n, t, dphidn=True)
        return convolver.functional_derivative(dphidn)

    def grand_potential_density(self, t, density, convolver, external_potential, chemical_potential):
        """Profile Property
        Compute the Grand Potential density, as defined in sec. 2.7 of R. Roth - Introduction to Density Functional
        Theory of Classical Systems: Theory and Applications.

        Args:
            t (float) : Temperature [K]
            density (ndarray) : Density profiles, shape (segments, *grid.shape) [Å^-3]
            convolver (ConvolverFFT) : Convolver planned with self.weight_functions(t)
            external_potential (ndarray) : Reduced external potential (V / k_B T), same shape as density
            chemical_potential (1d array) : Chemical potential of each segment [k_B K]

        Returns:
            ndarray : The Grand Potential density [k_B K / Å^3], shape grid.shape
        """
        phi = self.reduced_helmholtz_energy_density(convolver.weighted_densities(density), t)
        beta_mu = np.asarray(chemical_potential) / t
        omega = phi
        for i in range(len(density)):
            omega = omega + xlogy(density[i], density[i]) - density[i] + density[i] * (external_potential[i] - beta_mu[i])
        return t * omega
