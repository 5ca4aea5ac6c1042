import warnings
import numpy as np
from porepack.exceptions import ConfigurationError, SolverError
from porepack.solvers import DFTSolver

class DFTProfile:
    """
    Class for holding a density profile, together with everything that is needed to solve for it: the grid, the
    convolver, the bulk state it is in equilibrium with, and the external potential.

    The density and external potential are arrays of shape (segments, *grid.shape). The external potential is reduced,
    i.e. V / k_B T. The chemical potential is in [k_B K], and is fixed by the bulk state.
    """

    def __init__(self, grid, convolver, bulk, external_potential, density=None):
        """
        Args:
            grid (Grid) : The spacial discretisation
            convolver (ConvolverFFT) : Convolver planned for `grid` with the weights of the functional
            bulk (State) : The bulk state
            external_potential (ndarray) : Reduced external potential
            density (ndarray, optional) : Initial density [Å^-3]. Defaults to the ideal gas profile rho_b exp(-V / k_B T)

        Raises:
            ConfigurationError : If the external potential has the wrong shape or is not finite.
        """
        self.grid = grid
        self.convolver = convolver
        self.bulk = bulk
        self.functional = bulk.functional
        self.temperature = bulk.t
        self.chemical_potential = bulk.reduced_chemical_potential()

        shape = (self.functional.ncomps, *grid.shape)
        external_potential = np.asarray(external_potential, dtype=float)
        if external_potential.shape != shape:
            raise ConfigurationError(f'External potential has shape {external_potential.shape}, expected {shape}.')
        if not np.all(np.isfinite(external_potential)):
            raise ConfigurationError('External potential must be finite, cap it at a maximum value.')
        self.external_potential = external_potential

        rho_b = bulk.rho.reshape((-1,) + (1,) * len(grid.shape))
        if density is None:
            self.density = rho_b * np.exp(- external_potential)
        else:
            self.density = np.array(density, dtype=float)

    def equilibrium_density(self, density):
        r"""
        Compute $\rho_i(r) = \exp [\beta \mu_i - \beta V_i^{ext}(r) - \delta \beta F^{res} / \delta \rho_i(r)]$,
        the fixpoint of the Euler-Lagrange equation, for an input density.

        Args:
            density (ndarray) : Input density [Å^-3]

        Returns:
            ndarray : Output density [Å^-3]
        """
        dF = self.functional.functional_derivative(density, self.temperature, self.convolver)
        beta_mu = (self.chemical_potential / self.temperature).reshape((-1,) + (1,) * len(self.grid.shape))
        return np.exp(beta_mu - self.external_potential - dF)

    def solve(self, solver=None, debug=False):
        """
        Solve for the equilibrium density. The density is only updated if the solver converges, unless `debug` is set,
        in which case the last iterate is kept and a warning is issued.

        Args:
            solver (DFTSolver, optional) : The solver, defaults to DFTSolver.default()
            debug (bool) : Print progress, and do not raise on failed convergence

        Returns:
            EquilibriumResult : Result of the solver

        Raises:
            SolverError : If the solver did not converge
        """
        if solver is None:
            solver = DFTSolver.default()
        result = solver.solve(self, debug)
        if result.converged is False:
            if debug is False:
                raise SolverError(result)
            warnings.warn(f'Density profile did not converge, keeping last iterate.\n{result}', RuntimeWarning, stacklevel=2)
        self.density = result.density
        return result

    def grand_potential_density(self):
        """
        Returns:
            ndarray : The Grand Potential density [k_B K / Å^3], shape grid.shape
        """
        return self.functional.grand_potential_density(self.temperature, self.density, self.convolver,
                                                       self.external_potential, self.chemical_potential)

    def __repr__(self):
        return f'DFTProfile on {self.grid}\nbulk : {self.bulk}'
