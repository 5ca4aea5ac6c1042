import numpy as np
import pytest
from pytest import approx
from porepack.solvers import picard, anderson, DFTSolver, EquilibriumResult, rms

def test_picard():
    sol = picard(np.cos, np.array([1.0]), max_iter=10000, tol=1e-12, mixing_alpha=0.5)
    assert sol.converged
    assert(sol.density[0] == approx(0.7390851332, rel=1e-9))
    assert(sol.solver == 'Picard')

def test_picard_max_iter():
    sol = picard(np.cos, np.array([1.0]), max_iter=3, tol=1e-12)
    assert not sol.converged
    assert(sol.iterations == 3)
    assert('max number of iterations' in sol.message)

def test_picard_reduces_mixing():
    # Diverges for the first evaluations far from the fixpoint
    calls = {'n' : 0}
    def fixpoint(x):
        calls['n'] += 1
        if calls['n'] < 3:
            return np.full_like(x, np.nan)
        return 0.5 * x + 1
    sol = picard(fixpoint, np.array([0.0, 1.0]), max_iter=5000, tol=1e-10, mixing_alpha=0.5)
    assert sol.converged
    assert(sol.density == approx(np.array([2.0, 2.0])))

def test_picard_bad_convergence():
    with pytest.warns(RuntimeWarning):
        sol = picard(lambda x: np.full_like(x, np.inf), np.array([1.0]), mixing_alpha=0.05)
    assert sol.bad_convergence
    assert not sol.converged

def test_anderson():
    A = np.array([[0.5, 0.1, 0.0],
                  [0.2, 0.3, 0.1],
                  [0.0, 0.1, 0.4]])
    b = np.array([1.0, 2.0, 3.0])
    fixpoint = lambda x: A @ x + b
    sol = anderson(lambda x: fixpoint(x) - x, np.ones(3), tol=1e-12, beta_mix=0.5)
    assert sol.converged
    assert(sol.density == approx(np.linalg.solve(np.eye(3) - A, b), rel=1e-10))
    assert(sol.iterations < 50)

def test_anderson_small_residuals():
    # The mixing weights must not degrade as the residuals approach a tight tolerance
    A = np.array([[0.5, 0.1, 0.0],
                  [0.2, 0.3, 0.1],
                  [0.0, 0.1, 0.4]])
    b = 1e-8 * np.array([1.0, 2.0, 3.0])
    sol = anderson(lambda x: A @ x + b - x, 1e-8 * np.ones(3), tol=1e-18, beta_mix=0.5)
    assert sol.converged
    assert(sol.density == approx(np.linalg.solve(np.eye(3) - A, b), rel=1e-8))
    assert(sol.iterations < 20)

def test_anderson_bad_convergence():
    sol = anderson(lambda x: np.full_like(x, np.nan), np.ones(3))
    assert sol.bad_convergence
    assert not sol.converged

def test_rms():
    assert(rms(np.array([3.0, 4.0, 0.0, 0.0])) == approx(2.5))

def test_solver_steps():
    solver = DFTSolver().picard_iteration(tol=1e-3).anderson_mixing(m_max=10)
    assert([name for name, _ in solver.steps] == ['picard', 'anderson'])
    assert(solver.steps[0][1]['tol'] == 1e-3)
    assert(solver.steps[1][1]['m_max'] == 10)
    default = DFTSolver.default()
    assert(default.steps[0][1] == {'max_iter' : 500, 'tol' : 1e-5, 'mixing_alpha' : 0.05})
    assert(default.steps[1][1] == {'max_iter' : 1000, 'tol' : 1e-10, 'm_max' : 50, 'beta_mix' : 0.15})

@pytest.mark.parametrize('inpt', [{'converged' : True, 'bad' : False, 'i' : 5, 'message' : 'convergence'},
                                  {'converged' : False, 'bad' : True, 'i' : 5, 'message' : 'bad convergence'},
                                  {'converged' : False, 'bad' : False, 'i' : 10, 'message' : 'max number'},
                                  {'converged' : False, 'bad' : False, 'i' : 5, 'message' : 'without convergence'}])
def test_result_message(inpt):
    result = EquilibriumResult(np.zeros(2), inpt['converged'], 1e-3, inpt['i'], 'Picard', inpt['bad'], 10, 1e-8)
    assert(inpt['message'] in result.message)
