"""
Fundamental measure theory for hard spheres (Rosenfeld, and White Bear in "introduction to DFT").

The functionals double as the fluid parameter source for the fluid-solid interaction: they carry a diameter, an energy
parameter and a segment number for every component. The parameters can be given directly, or taken from the PC-SAFT
parameter database in thermopack, in which case the temperature dependent hard sphere diameter of PC-SAFT is used.
"""
import abc
import numpy as np
from thermopack.pcsaft import pcsaft
from porepack.Functional import HelmholtzEnergyFunctional, FluidParameters
from porepack.WeightFunction import get_FMT_weights
from porepack.exceptions import ConfigurationError
from porepack.units import reduced_length, reduced_energy

class FMT_Functional(HelmholtzEnergyFunctional, FluidParameters):
    """
    Parent class for hard-sphere FMT functionals
    """

    def __init__(self, sigma, epsilon_k=None, m=None):
        """
        Args:
            sigma (float or list[float]) : Hard sphere diameters [Å]
            epsilon_k (float or list[float], optional) : Energy parameters [K], used for the fluid-solid interaction.
                                                        Defaults to zero.
            m (float or list[float], optional) : Segment numbers. Defaults to one.
        """
        self._sigma = np.atleast_1d(reduced_length(sigma)).astype(float)
        ncomps = len(self._sigma)
        self._epsilon_k = np.zeros(ncomps) if epsilon_k is None else np.atleast_1d(reduced_energy(epsilon_k)).astype(float)
        self._m = np.ones(ncomps) if m is None else np.atleast_1d(m).astype(float)

        if (len(self._epsilon_k) != ncomps) or (len(self._m) != ncomps):
            raise ConfigurationError(f'Got {ncomps} diameters, {len(self._epsilon_k)} energy parameters and '
                                     f'{len(self._m)} segment numbers.')
        if any(self._sigma <= 0) or any(self._m <= 0):
            raise ConfigurationError('Diameters and segment numbers must be positive.')

        super().__init__(ncomps)
        self.eos = None
        self.computed_weights = {} # lazy evaluation in weight_functions(t)

    @classmethod
    def from_thermopack(cls, comps, parameter_ref='default'):
        """Constructor
        Initialise a hard sphere functional with PC-SAFT parameters.

        Args:
            comps (str) : Comma separated component identifiers, following thermopack convention.
            parameter_ref (str) : Reference for parameter set to use (see ThermoPack).
        """
        eos = pcsaft(comps, parameter_reference=parameter_ref)
        ncomps = len(comps.split(','))
        params = [eos.get_pure_fluid_param(i + 1) for i in range(ncomps)]
        func = cls([p[1] * 1e10 for p in params], [p[2] for p in params], [p[0] for p in params])
        func.eos = eos
        return func

    def __repr__(self):
        return f'{type(self).__name__} with sigma : {self._sigma}, epsilon_k : {self._epsilon_k}, m : {self._m}'

    def sigma_ff(self):
        return self._sigma.copy()

    def epsilon_k_ff(self):
        return self._epsilon_k.copy()

    def m(self):
        return self._m.copy()

    def hard_sphere_diameter(self, t):
        """
        The length unit used everywhere is Å, so must convert from SI when calling thermopack

        Args:
            t (float) : Temperature [K]

        Returns:
            1d array : Hard sphere diameters [Å]
        """
        if self.eos is None:
            return self._sigma.copy()
        d, _ = self.eos.hard_sphere_diameters(t)
        return np.asarray(d) * 1e10

    def weight_functions(self, t):
        if t not in self.computed_weights.keys():
            self.computed_weights[t] = get_FMT_weights(self.hard_sphere_diameter(t) / 2, self._m)
        return self.computed_weights[t]

    def reduced_helmholtz_energy_density(self, n, t, dphidn=False):
        n0, n1, n2, n3, nv1, nv2 = n
        # Prevent division by zero where the density vanishes
        n0, n1, n2, n3 = (n0 + 1e-12, n1 + 1e-12, n2 + 1e-12, n3 + 1e-12)
        nv1_nv2 = np.sum(nv1 * nv2, axis=0)
        nv2_nv2 = np.sum(nv2 * nv2, axis=0)
        return self.fmt_energy_density(n0, n1, n2, n3, nv1, nv2, nv1_nv2, nv2_nv2, dphidn)

    @abc.abstractmethod
    def fmt_energy_density(self, n0, n1, n2, n3, nv1, nv2, nv1_nv2, nv2_nv2, dphidn): pass

class Rosenfeld(FMT_Functional):

    def fmt_energy_density(self, n0, n1, n2, n3, nv1, nv2, nv1_nv2, nv2_nv2, dphidn):
        """
        Compute the reduced helmholtz energy density (i.e. f / k_b T)

        Args:
            n0, n1, n2, n3 (ndarray) : Scalar weighted densities
            nv1, nv2 (ndarray) : Vector weighted densities, with a leading axis for the vector components
            nv1_nv2, nv2_nv2 (ndarray) : Scalar products of the vector weighted densities
            dphidn (bool) : Return derivatives
        Returns:
             ndarray : Reduced Helmholtz energy density [Å^{-3}]
             Optional list[ndarray] : Derivatives wrt. weighted densities
        """
        phi1 = - n0 * np.log(1 - n3)
        phi2 = (n1 * n2 - nv1_nv2) / (1 - n3)
        phi3 = (n2 ** 3 - 3 * n2 * nv2_nv2) / (24 * np.pi * (1 - n3) ** 2)

        if dphidn is False:
            return phi1 + phi2 + phi3

        dphidn0 = - np.log(1 - n3)
        dphidn1 = n2 / (1 - n3)
        dphidn2 = n1 / (1 - n3) + (n2 ** 2 - nv2_nv2) / (8 * np.pi * (1 - n3) ** 2)
        dphidn3 = n0 / (1 - n3) + (n1 * n2 - nv1_nv2) / (1 - n3) ** 2 \
                  + (n2 ** 3 - 3 * n2 * nv2_nv2) / (12 * np.pi * (1 - n3) ** 3)
        dphidnv1 = - nv2 / (1 - n3)
        dphidnv2 = - nv1 / (1 - n3) - n2 * nv2 / (4 * np.pi * (1 - n3) ** 2)

        return (phi1 + phi2 + phi3), [dphidn0, dphidn1, dphidn2, dphidn3, dphidnv1, dphidnv2]

class WhiteBear(FMT_Functional):

    def fmt_energy_density(self, n0, n1, n2, n3, nv1, nv2, nv1_nv2, nv2_nv2, dphidn):
        """
        Compute the reduced helmholtz energy density (i.e. f / k_b T), see Rosenfeld.fmt_energy_density for arguments.
        """
        phi1 = - n0 * np.log(1 - n3)
        phi2 = (n1 * n2 - nv1_nv2) / (1 - n3)
        phi3 = (n2**3 - 3 * n2 * nv2_nv2) * (n3 + (1 - n3)**2 * np.log(1 - n3)) / (36 * np.pi * n3 ** 2 * (1 - n3)**2)

        if dphidn is False:
            return phi1 + phi2 + phi3

        dphidn0 = - np.log(1 - n3)
        dphidn1 = n2 / (1 - n3)

        dphidn2 = n1 / (1 - n3) + (n2 ** 2 - nv2_nv2) * (n3 + (1 - n3) ** 2 * np.log(1 - n3)) / (12 * np.pi * n3 ** 2 * (1 - n3) ** 2)
        dphidnv2 = - nv1 / (1 - n3) - n2 * nv2 * (n3 + (1 - n3) ** 2 * np.log(1 - n3)) \
                   / (6 * np.pi * n3 ** 2 * (1 - n3) ** 2)

        dphidn3 = n0 / (1 - n3) + (n1 * n2 - nv1_nv2) / (1 - n3) ** 2 \
                  - (n2 ** 3 - 3 * n2 * nv2_nv2) * ((((n3 * (n3**2 - 5 * n3 + 2)) / (36 * np.pi * n3**3 * (1 - n3)**3))
                                                      + np.log(1 - n3) / (18 * np.pi * n3**3)))
        dphidnv1 = - nv2 / (1 - n3)

        return phi1 + phi2 + phi3, [dphidn0, dphidn1, dphidn2, dphidn3, dphidnv1, dphidnv2]
