"""
This is where the Picard and Anderson solvers are implemented. A DFTSolver is a sequence of such solver steps, each
step starting from the result of the previous one. See DFTProfile.solve for usage.

The solvers iterate on the density scaled by the bulk density, x_i(r) = rho_i(r) / rho_i^b, using the fixpoint

    x_i(r) = exp[beta mu_i^res - beta V_i^ext(r) - (delta beta F^res / delta rho_i)(r)]
"""
import copy
import warnings
from collections import deque
import numpy as np

class EquilibriumResult:

    def __init__(self, density, converged, res, i, solver, bad_convergence, max_iter, tol):
        self.density = density
        self.converged = converged
        self.residual = res
        self.tol = tol
        self.iterations = i
        self.max_iter = max_iter
        self.solver = solver
        self.bad_convergence = bad_convergence
        if converged is True:
            self.message = 'Finished with convergence.'
        elif self.bad_convergence is True:
            self.message = 'Exited due to bad convergence'
        elif self.iterations >= self.max_iter:
            self.message = f'Exited after reaching max number of iterations ({self.max_iter}).'
        else:
            self.message = 'Exited without convergence.'

    def __repr__(self):
        r = 'EquilibriumResult\n'
        r += f'Solver     : {self.solver}\n'
        r += f'density    : shape {np.shape(self.density)}\n'
        r += f'converged  : {self.converged}\n'
        r += f'residual   : {self.residual} / Tolerance : {self.tol}\n'
        r += f'iterations : {self.iterations} / Max iterations : {self.max_iter}\n'
        r += f'message    : {self.message}'
        return r

    def __str__(self):
        return self.__repr__()

def rms(x):
    return np.linalg.norm(x) / np.sqrt(x.size)

def picard(fixpoint, x0, max_iter=500, tol=1e-8, mixing_alpha=0.05, verbose=False):
    """
    Do a series of Picard steps, if a step fails, reduce the mixing parameter and retry

    Args:
        fixpoint (callable) : The fixpoint function x -> f(x)
        x0 (ndarray) : Initial value
        max_iter (int) : Maximum number of iterations
        tol (float) : tolerance for convergence
        mixing_alpha (float) : Picard iteration mixing parameter
        verbose (bool) : Whether to print info

    Returns:
        EquilibriumResult : The value after iterations
    """
    converged = False
    bad_convergence = False
    i = 0
    res = np.nan
    # If we hit a divergent state, we will fall back to this value, and reduce mixing.
    x_fallback = copy.deepcopy(x0)
    while (converged is False) and (i < max_iter):
        x_next = fixpoint(x0)
        if not np.all(np.isfinite(x_next)):
            if mixing_alpha > 1e-3:
                mixing_alpha /= 2
                if verbose > 0:
                    print(f'Picard Mixing appears to be too agressive after {i} iterations. Reducing to : {mixing_alpha}')
                x0 = copy.deepcopy(x_fallback)
                continue
            warnings.warn('Could not converge Picard!', RuntimeWarning, stacklevel=2)
            bad_convergence = True
            break

        res = rms(x0 - x_next)
        if verbose > 0:
            print(f'Picard iteration {i}, residual : {res}')
        if res < tol:
            converged = True
            x0 = x_next
            break

        x_fallback = x0
        x0 = x0 * (1 - mixing_alpha) + x_next * mixing_alpha
        i += 1

    return EquilibriumResult(x0, converged, res, i, 'Picard', bad_convergence, max_iter, tol)

def anderson(residual, x0, tol=1e-10, m_max=50, max_iter=200, beta_mix=0.05, ensure_positive=True, verbose=False):
    """
    Anderson mixing for the root of `residual`, where residual(x) = f(x) - x for a fixpoint function f.

    Args:
        residual (callable) : The residual function
        x0 (ndarray) : Initial value
        tol (float) : tolerance for convergence
        m_max (int) : Maximum number of previous iterations to mix
        max_iter (int) : Maximum number of iterations
        beta_mix (float) : Mixing parameter
        ensure_positive (bool) : Take the absolute value after every step
        verbose (bool) : Whether to print info

    Returns:
        EquilibriumResult : The value after iterations
    """
    prev_res = deque([])
    prev_x = deque([])

    converged = False
    bad_convergence = False
    x = np.copy(x0)
    res_norm = np.nan
    k = 0
    for k in range(max_iter):

        if len(prev_res) > m_max:
            prev_res.popleft()
            prev_x.popleft()

        res = residual(x)

        if not np.all(np.isfinite(res)):
            bad_convergence = True
            if verbose > 0:
                print('Anderson mixing failed using parameters:')
                print(f'tol : {tol}, beta_mix : {beta_mix}, m_max : {m_max}')
            if len(prev_x) > 0:
                x = prev_x[-1]
            break

        res_norm = rms(res)
        if verbose > 0:
            print(f'Anderson iteration {k}, residual : {res_norm}')
        if res_norm < tol:
            converged = True
            break

        prev_res.append(res.flatten())
        prev_x.append(np.copy(x))

        m = len(prev_res)

        # calculate alpha, minimising |sum_i alpha_i res_i| with sum_i alpha_i = 1. The least squares problem is
        # posed on the residual differences rather than their Gram matrix, which squares the condition number.
        alpha = np.ones(1)
        if m > 1:
            R = np.array(prev_res).T
            gamma = np.linalg.lstsq(R[:, :-1] - R[:, -1:], - R[:, -1], rcond=None)[0]
            alpha = np.append(gamma, 1 - np.sum(gamma))

        x = np.zeros_like(x)
        for i in range(m):
            x += alpha[i] * (prev_x[i] + beta_mix * prev_res[i].reshape(x.shape))

        if ensure_positive:
            x = abs(x)

    return EquilibriumResult(x, converged, res_norm, k + 1, 'Anderson', bad_convergence, max_iter, tol)


class DFTSolver:
    """
    A sequence of solver steps. Steps are added by chaining:

        solver = DFTSolver().picard_iteration(tol=1e-5).anderson_mixing(tol=1e-10)

    The solver has converged if the last step converged.
    """

    def __init__(self, verbose=False):
        self.verbose = verbose
        self.steps = []

    @staticmethod
    def default(verbose=False):
        return DFTSolver(verbose).picard_iteration().anderson_mixing()

    def picard_iteration(self, max_iter=500, tol=1e-5, mixing_alpha=0.05):
        self.steps.append(('picard', {'max_iter' : max_iter, 'tol' : tol, 'mixing_alpha' : mixing_alpha}))
        return self

    def anderson_mixing(self, max_iter=1000, tol=1e-10, m_max=50, beta_mix=0.15):
        self.steps.append(('anderson', {'max_iter' : max_iter, 'tol' : tol, 'm_max' : m_max, 'beta_mix' : beta_mix}))
        return self

    def solve(self, profile, debug=False):
        """
        Iterate the density of a DFTProfile towards equilibrium. The profile itself is not modified.

        Args:
            profile (DFTProfile) : The profile to solve, the current density is used as initial guess
            debug (bool) : Print progress

        Returns:
            EquilibriumResult : Result of the last solver step, with the density in [Å^-3]
        """
        verbose = self.verbose or debug
        steps = self.steps if len(self.steps) > 0 else DFTSolver.default().steps
        rho_b = profile.bulk.rho.reshape((-1,) + (1,) * len(profile.grid.shape))
        shape = profile.density.shape

        def fixpoint(x):
            return (profile.equilibrium_density(x.reshape(shape) * rho_b) / rho_b).flatten()

        x = (profile.density / rho_b).flatten()
        sol = None
        for name, kwargs in steps:
            if name == 'picard':
                sol = picard(fixpoint, x, verbose=verbose, **kwargs)
            else:
                sol = anderson(lambda x_k: fixpoint(x_k) - x_k, x, verbose=verbose, **kwargs)
            if sol.bad_convergence is True:
                break
            x = sol.density

        sol.density = sol.density.reshape(shape) * rho_b
        return sol

    def __repr__(self):
        return f'DFTSolver with steps : {self.steps}'
