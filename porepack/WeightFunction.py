"""
The weight functions are implemented as callable classes, with an __mul__ implemented such that for example

2 * Heaviside(R) # Returns a new callable

See the Analytical class for more info.
"""

import numpy as np
from scipy.special import spherical_jn

class Analytical:
    """
    Parent class for analytical functions
    Intended to be used for the fourier transformed weight functions
        The (fourier transform) of the weight function is implemented in the self.lamb attribute, and called from the __call__ method.

    For vector valued weights, self.lamb holds the radial part only: the full transform is i * k_hat * lamb(|k|).
    Whether a weight is vector valued is used by the Convolver to select the appropriate transforms.

    Example:
        f = Analytical(lambda x : x**2 - x, 0)
        g = 2 * f
        f(3) # Returns 6 (= 3**2 - 3)
        g(3) # Returns 12 (= 2 * (3**2 - 3))
    """
    def __init__(self, lamb, integral, is_vector_valued=False):
        self.lamb = lamb
        self.integral = integral
        self.is_vector_valued = is_vector_valued

    def __call__(self, k):
        return self.lamb(k)

    def __mul__(self, prefactor):
        return Analytical(lambda k : prefactor * self(k), prefactor * self.real_integral(), self.is_vector_valued)

    def __rmul__(self, prefactor):
        return self.__mul__(prefactor)

    def __truediv__(self, other):
        return self * (1 / other)

    def is_odd(self):
        return self.is_vector_valued

    def is_even(self):
        return not self.is_odd()

    def real_integral(self):
        """
        The integral of the weight function over all space, i.e. the weighted density of a homogeneous density of one.
        """
        return self.integral

class Heaviside(Analytical):
    r"""
    3D Fourier transform of $\theta(R - r)$
    """
    def __init__(self, kernel):
        self.R = kernel
        super().__init__(lambda k: (4/3) * np.pi * self.R**3 * (spherical_jn(0, 2 * np.pi * k * self.R) + spherical_jn(2, 2 * np.pi * k * self.R)), 4 * np.pi * self.R**3 / 3)

class Delta(Analytical):
    r"""
    3D Fourier transform of $\delta(r - R)$
    """
    def __init__(self, kernel):
        self.R = kernel
        super().__init__(lambda k: 4 * np.pi * self.R**2 * spherical_jn(0, 2 * np.pi * k * self.R), 4 * np.pi * self.R**2)

class DeltaVec(Analytical):
    r"""
    3D Fourier transform of $\hat{\vec{r}}\delta(r - R)$, where $\hat{\vec{r}} = \vec{r} / |\vec{r}|$ is the unit vector
    pointing away from the origin.
    """
    def __init__(self, kernel):
        self.R = kernel
        super().__init__(lambda k: - 2 * np.pi * k * 4.0 / 3.0 * np.pi * self.R ** 3 \
                        * (spherical_jn(0, 2 * np.pi * k * self.R) + spherical_jn(2, 2 * np.pi * k * self.R)),
                         0., is_vector_valued=True)


def get_FMT_weights(R, ms=None):
    """
    Return a list of `Analytical` weight functions, organised as

    w[<weight index>][<segment index>], where
    w[0:4] are the scalar weight functions, and
    w[4:6] are the vector weight functions $\vec{w}_1$ and $\vec{w}_2$

    Args:
        R (1d array) : Hard sphere radii [Å]
        ms (1d array, optional) : Number of segments, multiplies the weights of each component
    """
    if ms is None:
        ms = np.ones_like(R)
    w = [[None for _ in range(len(R))] for _ in range(6)]
    for i in range(len(R)):
        w[0][i] = ms[i] * (1 / (4 * np.pi * R[i] ** 2)) * Delta(R[i])
        w[1][i] = ms[i] * (1 / (4 * np.pi * R[i])) * Delta(R[i])
        w[2][i] = ms[i] * Delta(R[i])
        w[3][i] = ms[i] * Heaviside(R[i])
        w[4][i] = ms[i] * (1 / (4 * np.pi * R[i])) * DeltaVec(R[i])
        w[5][i] = ms[i] * DeltaVec(R[i])
    return w
