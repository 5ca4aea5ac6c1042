"""
Here we find one of the fundamental structures in the DFT-code: The Grid.

The Grid is "Dumb" in the sense that it does not perform calculations. It only holds information about the Geometry
(symmetry) of the domain, as well as the real- and fourier-space gridpoints for the discretisation.

A Grid is built from one or three Axis objects. A single Axis gives a 1D grid, where the Geometry of the axis determines
whether the coordinate is a cartesian distance from the centre of a slit, or the radial coordinate of a cylinder or
sphere. Three cartesian axes give a periodic 3D box.

HOWEVER: The *whole point* of the Grid structure is that other code can be Geometry and domain-size agnostic.
        That means: If you find yourself writing
            if grid.geometry == Geometry.CARTESIAN:
                ...
            elif grid.geometry == Geometry.SPHERICAL:
                ...
        You are likely doing something wrong. Whatever you are trying to do can probably be handled by calling a method
        in the grid, that does whatever you want to do, and correctly handles the cases for different geometries.
        Computing the volume of the pore, or integrating a profile, are done with Grid.volume() and Grid.integrate().
"""
from enum import IntEnum
import numpy as np
from porepack.exceptions import ConfigurationError


class Geometry(IntEnum):
    CARTESIAN = 1
    POLAR = 2
    SPHERICAL = 3


class Axis:
    """
    Cell-centred discretisation of one coordinate, starting at zero.

    The nominal `length` is the half-width of a slit, or the radius of a cylinder or sphere. The axis can be extended
    by `potential_offset` beyond the nominal length, such that the region where the external potential diverges is
    included in the domain. The extension does not count towards the volume.
    """

    def __init__(self, geometry, n_grid, length, potential_offset=0.0):
        if int(n_grid) != n_grid or n_grid <= 0:
            raise ConfigurationError(f'Number of grid points must be a positive integer, got {n_grid}.')
        if length <= 0:
            raise ConfigurationError(f'Axis length must be positive, got {length}.')

        self.geometry = Geometry(geometry)
        self.N = int(n_grid)
        self.length = length
        self.potential_offset = potential_offset
        self.L = length + potential_offset

        self.dz = self.L / self.N
        self.edges = np.linspace(0, self.L, self.N + 1)
        self.z = np.linspace(self.dz / 2, self.L - self.dz / 2, self.N)

        self.k_cos = np.linspace(0.0, self.N - 1, self.N) / (2 * self.L)
        self.k_sin = np.linspace(1.0, self.N, self.N) / (2 * self.L)

    @staticmethod
    def cartesian(n_grid, length, potential_offset=0.0):
        return Axis(Geometry.CARTESIAN, n_grid, length, potential_offset)

    @staticmethod
    def polar(n_grid, length):
        return Axis(Geometry.POLAR, n_grid, length)

    @staticmethod
    def spherical(n_grid, length):
        return Axis(Geometry.SPHERICAL, n_grid, length)

    def integration_weights(self):
        """
        The volume of each cell, per unit area (cartesian) or per unit length (polar).

        Returns:
            1d array : Integration weights [Å], [Å^2] or [Å^3]
        """
        if self.geometry == Geometry.CARTESIAN:
            return np.full(self.N, self.dz)
        elif self.geometry == Geometry.POLAR:
            return np.pi * np.diff(self.edges**2)
        return (4 / 3) * np.pi * np.diff(self.edges**3)

    def volume(self):
        """
        Nominal volume of the axis, excluding the potential offset.

        Returns:
            float : Length [Å], area [Å^2] or volume [Å^3], for cartesian, polar and spherical geometry respectively.
        """
        if self.geometry == Geometry.CARTESIAN:
            return self.length
        elif self.geometry == Geometry.POLAR:
            return np.pi * self.length**2
        return (4 / 3) * np.pi * self.length**3

    def __repr__(self):
        return f'Axis with geometry : {self.geometry.name}, N : {self.N}, length : {self.length}, offset : {self.potential_offset}'


class Grid:
    """
    Spacial discretisation of a pore, either one Axis (1D) or three cartesian axes forming a periodic box (3D).

    Attributes:
        axes (tuple[Axis]) : The axes spanning the grid
        geometry (Geometry) : Geometry of the axis for 1D grids, CARTESIAN for the periodic box
        periodic (bool) : Whether the grid is a periodic 3D box
        shape (tuple[int]) : Number of points along each axis
        dimension (int) : Number of spacial dimensions that Grid.integrate() integrates over. 1 for a slit
                        (integrals are per area), 2 for a cylinder (per length) and 3 for spheres and boxes.
    """

    def __init__(self, axis):
        self.axes = (axis,)
        self.geometry = axis.geometry
        self.periodic = False
        self.shape = (axis.N,)
        self.dimension = int(axis.geometry)

    @staticmethod
    def periodic_box(x, y, z):
        """
        Build a periodic 3D grid from three cartesian axes.

        Args:
            x, y, z (Axis) : Cartesian axes without potential offset

        Returns:
            Grid : Periodic grid
        """
        for ax in (x, y, z):
            if ax.geometry != Geometry.CARTESIAN or ax.potential_offset != 0:
                raise ConfigurationError('A periodic grid requires cartesian axes without potential offset.')
        grid = Grid(x)
        grid.axes = (x, y, z)
        grid.periodic = True
        grid.shape = (x.N, y.N, z.N)
        grid.dimension = 3
        return grid

    @property
    def lengths(self):
        return np.array([ax.L for ax in self.axes])

    def integration_weights(self):
        """
        Returns:
            ndarray : Integration weight of every grid point, broadcastable against Grid.shape
        """
        if self.periodic is False:
            return self.axes[0].integration_weights()
        return np.prod([ax.dz for ax in self.axes])

    def integrate(self, f):
        """
        Integrate one or more profiles over the grid. The trailing dimensions of `f` must equal Grid.shape, any leading
        dimensions (e.g. segments) are kept.

        Args:
            f (ndarray) : Profile(s) to integrate

        Returns:
            float or ndarray : The integral(s)
        """
        axes = tuple(range(-len(self.shape), 0))
        return np.sum(np.asarray(f) * self.integration_weights(), axis=axes)

    def volume(self):
        """
        Returns:
            float : Nominal volume of the domain (see Axis.volume) or the volume of the periodic box.
        """
        if self.periodic is False:
            return self.axes[0].volume()
        return float(np.prod(self.lengths))

    def fft_frequencies(self):
        """
        Fourier-space grid of a periodic box.

        Returns:
            list[ndarray] : The wave vector components [1 / Å], each of shape Grid.shape
        """
        freqs = [np.fft.fftfreq(ax.N, ax.dz) for ax in self.axes]
        return np.meshgrid(*freqs, indexing='ij')

    def __repr__(self):
        if self.periodic is True:
            return f'Periodic grid with shape : {self.shape}, lengths : {tuple(self.lengths)}'
        return f'Grid with {self.axes[0]}'
