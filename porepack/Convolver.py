"""
This is the module that handles all the special treatment of functions depending on geometry, symmetry, etc.

The ConvolverFFT is planned once for a Grid and a set of weight functions, and then computes the weighted densities
of a density profile, and the convolutions of the partial derivatives of a Helmholtz energy density with the weights
(the functional derivative).

By looking at the geometry of the grid, as well as whether the weight and the function being convolved are vector
valued, the convolver determines what series of transforms to use to compute the convolution:
    Cartesian (slit) : cosine / sine transforms, the profile is mirrored about z = 0.
    Spherical : sine transforms of r * f(r).
    Polar : discrete Hankel transforms of order zero and one.
    Periodic 3D : fast fourier transforms.

Vector valued functions carry a leading axis with one entry per dimension (one for 1D grids, three for 3D grids).
"""

from scipy.fft import dst, idst, dct, idct
from scipy.special import j0, j1, jn_zeros, struve
import numpy as np
from porepack.grid import Geometry

class ConvolverFFT:

    def __init__(self, grid, weight_functions, derivative_order=1):
        """
        Use ConvolverFFT.plan to construct.

        Args:
            grid (Grid) : The grid of the density profiles
            weight_functions (list[list[Analytical]]) : Weights, indexed as w[<weight index>][<segment index>]
            derivative_order (int) : 0 if only weighted densities are required, 1 to also compute functional derivatives
        """
        self.grid = grid
        self.weight_functions = weight_functions
        self.derivative_order = derivative_order
        self.n_segments = len(weight_functions[0])

        if grid.periodic is True:
            k = grid.fft_frequencies()
            k_abs = np.sqrt(sum(kd**2 for kd in k))
            with np.errstate(divide='ignore', invalid='ignore'):
                self.k_hat = [np.where(k_abs > 0, kd / k_abs, 0.0) for kd in k]
            k_grids = {'abs' : k_abs}
        elif grid.geometry == Geometry.POLAR:
            self.hankel = HankelTransform(grid.axes[0])
            k_grids = {'hankel' : self.hankel.k}
        else:
            k_grids = {'cos' : grid.axes[0].k_cos, 'sin' : grid.axes[0].k_sin}

        # The weights are evaluated once on every fourier space grid they are needed on.
        self.transformed_weights = [[{name : w(k) for name, k in k_grids.items()} for w in weights]
                                    for weights in weight_functions]

    @staticmethod
    def plan(grid, weight_functions, derivative_order=1):
        return ConvolverFFT(grid, weight_functions, derivative_order)

    def weighted_densities(self, density):
        """
        Compute the weighted densities n_a = sum_i w_ai * rho_i

        Args:
            density (ndarray) : Density profiles, shape (segments, *grid.shape)

        Returns:
            list[ndarray] : One weighted density per weight function. Vector weighted densities have a leading
                            axis with one entry per dimension.
        """
        weighted_densities = []
        for wi, weights in enumerate(self.weight_functions):
            n = 0
            for ci, w in enumerate(weights):
                n = n + self.convolve(wi, ci, density[ci])
            weighted_densities.append(n)
        return weighted_densities

    def functional_derivative(self, partial_derivatives):
        """
        Convolve the partial derivatives of a Helmholtz energy density wrt. the weighted densities with the weights,
        to get the functional derivative wrt. the density of each segment. Vector weights are odd, so the reflected
        convolution changes sign.

        Args:
            partial_derivatives (list[ndarray]) : d phi / d n_a, indexed like the weights

        Returns:
            ndarray : Functional derivative, shape (segments, *grid.shape)
        """
        if self.derivative_order < 1:
            raise ValueError('Convolver was planned without functional derivatives (derivative_order = 0).')

        dF = np.zeros((self.n_segments, *self.grid.shape))
        for wi, weights in enumerate(self.weight_functions):
            for ci, w in enumerate(weights):
                dF[ci] += self.convolve(wi, ci, partial_derivatives[wi]) * (-1 if w.is_odd() else 1)
        return dF

    def convolve(self, wi, ci, f):
        """
        Convolve the weight w[wi][ci] with f. Dispatches on geometry. If the weight is vector valued, `f` may be either
        a scalar profile (giving a vector profile) or a vector profile (giving the scalar product).
        """
        w = self.weight_functions[wi][ci]
        w_k = self.transformed_weights[wi][ci]
        f_is_vector = (np.ndim(f) > len(self.grid.shape))
        if f_is_vector and w.is_even():
            raise NotImplementedError('Convolution of a scalar weight with a vector field is not implemented.')

        if self.grid.periodic is True:
            return self.convolve_periodic(w, w_k, f, f_is_vector)
        elif self.grid.geometry == Geometry.CARTESIAN:
            return self.convolve_cartesian(w, w_k, f, f_is_vector)
        elif self.grid.geometry == Geometry.POLAR:
            return self.convolve_polar(w, w_k, f, f_is_vector)
        return self.convolve_spherical(w, w_k, f, f_is_vector)

    @staticmethod
    def convolve_cartesian(w, w_k, f, f_is_vector):
        """
        Convolutions for a slit with mirror symmetry about z = 0.

        Args:
            w (Analytical) : The weight
            w_k (dict) : The weight evaluated on the cosine ('cos') and sine ('sin') fourier grids
            f (ndarray) : The discrete function, vector fields have shape (1, N)
            f_is_vector (bool) : Whether f is a vector field (odd)
        Returns:
            ndarray : The convolved function, with shape (1, N) if the result is a vector field
        """

        # Determine the forward transform (ft) and the inverse transform (inv_ft) to be used, based on
        # the even/oddness of the functions.
        # The grid on which to evaluate the weight is determined by the forward transform.
        # Whether or not the transformed function must be "rolled" is determined by whether the forward
        # and inverse transforms are equivalent.
        if not f_is_vector:
            ft = dct
            if w.is_even():
                k = 'cos'
                inv_ft = idct
                roll = 0
            else:
                k = 'sin'
                inv_ft = idst
                roll = -1
                remove_idx = -1
        else:
            f = f[0]
            ft = dst
            k = 'cos'
            inv_ft = lambda x, type=2: - idct(x, type=type)
            roll = +1
            remove_idx = 0

        if roll == 0:
            f_transformed = ft(f, type=2)
        else:
            f_transformed = np.roll(ft(f, type=2), roll)
            f_transformed[remove_idx] = 0

        conv = inv_ft(f_transformed * w_k[k], type=2)
        if w.is_odd() and not f_is_vector:
            return conv[np.newaxis]
        return conv

    def convolve_spherical(self, w, w_k, f, f_is_vector):
        """
        Convolutions for spherical geometry. See convolve_cartesian for arguments.
        """
        axis = self.grid.axes[0]
        r = axis.z
        k_sin = axis.k_sin
        k_cos = axis.k_cos
        w_sin = w_k['sin']
        w_cos = w_k['cos']

        if f_is_vector:
            f = f[0]
            with np.errstate(divide='ignore', invalid='ignore'):
                cos_term = np.roll((1 / k_cos) * dct(f * r, type=2), -1)
            cos_term[-1] = 0
            sin_term = dst(f, type=2) / (np.pi * k_sin**2)
            return (1 / r) * idst((cos_term - sin_term) * w_sin * k_sin, type=2)

        # Shift the profile, such that the shifted profile vanishes at the edge of the domain
        f_inf = f[-1]
        f_delta = f - f_inf

        # Note : The argument to the transforms is f(r) * r, which is odd if f(r) is even
        if w.is_even():
            delta_term = (1 / r) * idst(dst(f_delta * r, type=2) * w_sin, type=2)
            inf_term = w.real_integral() * f_inf
            return delta_term + inf_term

        odd_term = dst(f_delta * r, type=2) * w_sin / k_sin
        even_term = np.roll(dst(f_delta * r, type=2) / k_sin, +1) * w_cos * k_cos
        even_term[0] = 0

        # idst is divided by 2 because of the transform prefactor. The constant term vanishes for vector weights.
        delta_term = (1 / (np.pi * r**2)) * idst(odd_term, type=2) / 2 - (1 / r) * idct(even_term, type=2)
        return delta_term[np.newaxis]

    def convolve_polar(self, w, w_k, f, f_is_vector):
        """
        Convolutions for polar (cylindrical) geometry, using the 2D fourier transform of radially symmetric functions.
        A vector weight has the transform i * k_hat * lamb(k). Convolving it with a scalar profile gives a radial
        vector field, with radial component - H1^-1[lamb * H0[f]]. Its scalar product with a radial vector field
        r_hat * h(r) is H0^-1[lamb * H1[h]].
        """
        lamb = w_k['hankel']
        if w.is_even():
            return self.hankel.inverse0(lamb * self.hankel.forward0(f))
        elif not f_is_vector:
            return - self.hankel.inverse1(lamb * self.hankel.forward0(f))[np.newaxis]
        return self.hankel.inverse0(lamb * self.hankel.forward1(f[0]))

    def convolve_periodic(self, w, w_k, f, f_is_vector):
        """
        Convolutions on a periodic 3D grid. Vector weights have the transform i * k_hat * lamb(|k|).
        """
        lamb = w_k['abs']
        if w.is_even():
            return np.fft.ifftn(np.fft.fftn(f) * lamb).real
        elif not f_is_vector:
            f_k = np.fft.fftn(f)
            return np.array([np.fft.ifftn(f_k * 1j * kd * lamb).real for kd in self.k_hat])
        return sum(np.fft.ifftn(np.fft.fftn(fd) * 1j * kd * lamb).real for fd, kd in zip(f, self.k_hat))


class HankelTransform:
    """
    Discrete 2D fourier transforms of radially symmetric functions on a polar axis, as dense matrices.

        H_n[f](k) = 2 pi int f(r) J_n(2 pi k r) r dr
        H_n^-1[F](r) = 2 pi int F(k) J_n(2 pi k r) k dk

    Profiles are piecewise constant on the cells of the axis and vanish beyond it, so the forward transforms are
    integrated exactly cell by cell. The inverse transforms are Fourier-Bessel series on [0, extent], evaluated at the
    wave numbers k_m = j_m / (2 pi extent), where j_m are the zeros of J_0,

        H_0^-1[F](r) = sum_m F(k_m) J_0(2 pi k_m r) / (pi extent^2 J_1(j_m)^2)

    The series is exact for functions vanishing beyond `extent`, i.e. for the convolution of a profile with a weight
    of radius up to extent - L. The order one inverse is the derivative of the order zero series.
    """

    def __init__(self, axis, extent=None, n_modes=None):
        """
        Args:
            axis (Axis) : Polar axis
            extent (float, optional) : Radius of the Fourier-Bessel series, defaults to twice the axis length
            n_modes (int, optional) : Number of terms in the series, defaults to resolving the grid spacing
        """
        self.extent = 2 * axis.L if extent is None else extent
        if n_modes is None:
            n_modes = int(np.ceil(axis.N * self.extent / axis.L))
        zeros = jn_zeros(0, n_modes)
        self.k = zeros / (2 * np.pi * self.extent)

        a = 2 * np.pi * self.k[:, np.newaxis]
        x = a * axis.edges[np.newaxis, :]
        # int_0^e J_0(a r) r dr = e J_1(a e) / a
        I0 = x * j1(x) / a**2
        # int_0^e J_1(a r) r dr = pi a e (J_1(a e) H_0(a e) - J_0(a e) H_1(a e)) / (2 a^2), H_n are Struve functions
        I1 = np.pi * x * (j1(x) * struve(0, x) - j0(x) * struve(1, x)) / (2 * a**2)
        self._forward0 = 2 * np.pi * np.diff(I0, axis=1)
        self._forward1 = 2 * np.pi * np.diff(I1, axis=1)

        kr = 2 * np.pi * np.outer(axis.z, self.k)
        weights = 1 / (np.pi * self.extent**2 * j1(zeros)**2)
        self._inverse0 = j0(kr) * weights
        self._inverse1 = j1(kr) * weights

    def forward0(self, f):
        return self._forward0 @ f

    def forward1(self, f):
        return self._forward1 @ f

    def inverse0(self, F):
        return self._inverse0 @ F

    def inverse1(self, F):
        return self._inverse1 @ F
