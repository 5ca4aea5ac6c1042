"""
Fluid-solid interaction potentials of solid walls, used to compute the external potential in 1D pores.

The classes here are intended to be used as templates to generate the external potential of a pore: Given the fluid
parameters (a FluidParameters, e.g. the functional) each potential returns one value per segment and grid point, in
[k_B K]. The fluid-solid parameters are computed with the Lorentz-Berthelot mixing rules

    sigma_sf = (sigma_ss + sigma_ff) / 2 ,  epsilon_sf = sqrt(epsilon_ss * epsilon_ff)

and the potential of each segment is multiplied by its segment number.

Three geometries are supported, and not every potential implements all of them:
    cartesian : z is the distance from the wall
    cylindrical : r is the distance from the axis of a cylinder of radius `pore_size`
    spherical : r is the distance from the centre of a sphere of radius `pore_size`
"""
import abc
import numpy as np
from scipy.special import gamma, hyp2f1
from porepack.units import reduced_length, reduced_energy, reduced_density

class ExternalPotential(metaclass=abc.ABCMeta):

    def calculate_cartesian_potential(self, z, fluid_parameters):
        """
        Args:
            z (1d array) : Distance from the wall [Å]
            fluid_parameters (FluidParameters) : The fluid

        Returns:
            2d array : Potential [k_B K], indexed as V[<segment idx>][<position idx>]
        """
        raise NotImplementedError(f'{type(self).__name__} is not implemented for cartesian geometry.')

    def calculate_cylindrical_potential(self, r, pore_size, fluid_parameters):
        """
        Args:
            r (1d array) : Distance from the axis [Å]
            pore_size (float) : Radius of the cylinder [Å]
            fluid_parameters (FluidParameters) : The fluid

        Returns:
            2d array : Potential [k_B K], indexed as V[<segment idx>][<position idx>]
        """
        raise NotImplementedError(f'{type(self).__name__} is not implemented for cylindrical geometry.')

    def calculate_spherical_potential(self, r, pore_size, fluid_parameters):
        """
        Args:
            r (1d array) : Distance from the centre [Å]
            pore_size (float) : Radius of the sphere [Å]
            fluid_parameters (FluidParameters) : The fluid

        Returns:
            2d array : Potential [k_B K], indexed as V[<segment idx>][<position idx>]
        """
        raise NotImplementedError(f'{type(self).__name__} is not implemented for spherical geometry.')

    @abc.abstractmethod
    def __repr__(self): pass


class SolidWall(ExternalPotential):
    """
    Parent class of potentials parametrised by the solid parameters sigma_ss and epsilon_k_ss.
    """

    def __init__(self, sigma_ss, epsilon_k_ss=0.0):
        self.sigma_ss = reduced_length(sigma_ss)
        self.epsilon_k_ss = reduced_energy(epsilon_k_ss)

    def mixed_parameters(self, fluid_parameters):
        """
        Returns:
            tuple[2d array] : sigma_sf, epsilon_k_sf and m as column vectors, to broadcast against positions
        """
        sigma_sf = 0.5 * (self.sigma_ss + fluid_parameters.sigma_ff())
        epsilon_k_sf = np.sqrt(self.epsilon_k_ss * fluid_parameters.epsilon_k_ff())
        return sigma_sf[:, np.newaxis], epsilon_k_sf[:, np.newaxis], fluid_parameters.m()[:, np.newaxis]


class HardWall(SolidWall):
    """
    Infinite potential where the distance to the wall is less than sigma_sf, zero elsewhere.
    """

    def __init__(self, sigma_ss):
        super().__init__(sigma_ss)

    def _potential(self, distance, fluid_parameters):
        sigma_sf, _, _ = self.mixed_parameters(fluid_parameters)
        return np.where(distance[np.newaxis, :] < sigma_sf, np.inf, 0.0)

    def calculate_cartesian_potential(self, z, fluid_parameters):
        return self._potential(z, fluid_parameters)

    def calculate_cylindrical_potential(self, r, pore_size, fluid_parameters):
        return self._potential(pore_size - r, fluid_parameters)

    def calculate_spherical_potential(self, r, pore_size, fluid_parameters):
        return self._potential(pore_size - r, fluid_parameters)

    def __repr__(self):
        return f'HardWall(sigma_ss={self.sigma_ss})'


class LJ93(SolidWall):
    r"""
    12-6 Lennard-Jones interaction integrated over a solid of homogeneous density rho_s. For a planar wall

    $$V(z) = 2 \pi \rho_s \epsilon \sigma^3 \left[\frac{2}{45}\left(\frac{\sigma}{z}\right)^9 - \frac{1}{3}\left(\frac{\sigma}{z}\right)^3\right]$$

    In cylindrical and spherical geometry, the solid fills the space outside the pore.
    """

    def __init__(self, sigma_ss, epsilon_k_ss, rho_s):
        super().__init__(sigma_ss, epsilon_k_ss)
        self.rho_s = reduced_density(rho_s)

    def calculate_cartesian_potential(self, z, fluid_parameters):
        sigma, epsilon, m = self.mixed_parameters(fluid_parameters)
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            V = 2 * np.pi * self.rho_s * epsilon * sigma**3 * ((2 / 45) * (sigma / z)**9 - (1 / 3) * (sigma / z)**3)
        return m * np.where(z > 0, V, np.inf)

    @staticmethod
    def cylinder_integral(n, r, R):
        r"""
        $\int |r - r'|^{-n} dr'$ over the space outside a cylinder of radius R, for a point at distance r < R from the
        axis. Integrating along the axis first leaves an integral over the plane outside a disk.
        """
        k = (n - 1) / 2
        c_n = np.sqrt(np.pi) * gamma(k) / gamma(n / 2)
        return c_n * np.pi * R**(3 - n) / (k - 1) * hyp2f1(k, k - 1, 1, (r / R)**2)

    def calculate_cylindrical_potential(self, r, pore_size, fluid_parameters):
        sigma, epsilon, m = self.mixed_parameters(fluid_parameters)
        inside = r < pore_size
        r_in = np.where(inside, r, 0)
        J12 = self.cylinder_integral(12, r_in, pore_size)
        J6 = self.cylinder_integral(6, r_in, pore_size)
        V = 4 * epsilon * self.rho_s * (sigma**12 * J12 - sigma**6 * J6)
        return m * np.where(inside, V, np.inf)

    def calculate_spherical_potential(self, r, pore_size, fluid_parameters):
        sigma, epsilon, m = self.mixed_parameters(fluid_parameters)
        R = pore_size
        inside = r < R
        r_in = np.where(inside, r, 0.5 * R)
        rep = ((9 * R - r_in) / (R - r_in)**9 - (9 * R + r_in) / (R + r_in)**9) / 90
        att = ((3 * R - r_in) / (R - r_in)**3 - (3 * R + r_in) / (R + r_in)**3) / 3
        V = np.pi * self.rho_s * epsilon / r_in * (sigma**12 * rep - sigma**6 * att)
        return m * np.where(inside, V, np.inf)

    def __repr__(self):
        return f'LJ93(sigma_ss={self.sigma_ss}, epsilon_k_ss={self.epsilon_k_ss}, rho_s={self.rho_s})'


class SimpleLJ93(SolidWall):
    r"""
    $V(z) = \epsilon [(\sigma / z)^9 - (\sigma / z)^3]$, with the solid density absorbed in epsilon.
    """

    def calculate_cartesian_potential(self, z, fluid_parameters):
        sigma, epsilon, m = self.mixed_parameters(fluid_parameters)
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            V = epsilon * ((sigma / z) ** 9 - (sigma / z) ** 3)
        return m * np.where(z > 0, V, np.inf)

    def __repr__(self):
        return f'SimpleLJ93(sigma_ss={self.sigma_ss}, epsilon_k_ss={self.epsilon_k_ss})'


class CustomLJ93(ExternalPotential):
    """
    9-3 wall where the fluid-solid parameters of every segment are given directly, rather than by mixing rules.
    """

    def __init__(self, rho_s, sigma_sf, epsilon_k_sf):
        self.rho_s = reduced_density(rho_s)
        self.sigma_sf = np.atleast_1d(reduced_length(sigma_sf)).astype(float)
        self.epsilon_k_sf = np.atleast_1d(reduced_energy(epsilon_k_sf)).astype(float)

    def calculate_cartesian_potential(self, z, fluid_parameters):
        sigma = self.sigma_sf[:, np.newaxis]
        epsilon = self.epsilon_k_sf[:, np.newaxis]
        m = fluid_parameters.m()[:, np.newaxis]
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            V = 2 * np.pi * self.rho_s * epsilon * sigma**3 * ((2 / 45) * (sigma / z)**9 - (1 / 3) * (sigma / z)**3)
        return m * np.where(z > 0, V, np.inf)

    def __repr__(self):
        return f'CustomLJ93(rho_s={self.rho_s}, sigma_sf={self.sigma_sf}, epsilon_k_sf={self.epsilon_k_sf})'


class Steele(SolidWall):
    """
    Steele 10-4-3 potential of a stack of graphitic planes with spacing delta [Å].
    """

    def __init__(self, sigma_ss, epsilon_k_ss, rho_s, delta=3.35):
        super().__init__(sigma_ss, epsilon_k_ss)
        self.rho_s = reduced_density(rho_s)
        self.delta = reduced_length(delta)

    def calculate_cartesian_potential(self, z, fluid_parameters):
        sigma, epsilon, m = self.mixed_parameters(fluid_parameters)
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            V = 2 * np.pi * self.rho_s * epsilon * sigma**2 * self.delta \
                * ((2 / 5) * (sigma / z)**10 - (sigma / z)**4 - sigma**4 / (3 * self.delta * (z + 0.61 * self.delta)**3))
        return m * np.where(z > 0, V, np.inf)

    def __repr__(self):
        return f'Steele(sigma_ss={self.sigma_ss}, epsilon_k_ss={self.epsilon_k_ss}, rho_s={self.rho_s}, delta={self.delta})'
