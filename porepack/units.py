"""
The reference unit system used for all numerical work.

    length      : Å
    temperature : K
    energy      : k_B * K (energies are given as temperatures, i.e. epsilon / k_B)
    density     : particles / Å^3
    pressure    : k_B * K / Å^3

Every public entry point accepts either plain numbers, which are taken to already be in the reference units, or
`unyt` quantities, which are converted. Conversion failures (e.g. passing a pressure where a length is expected)
raise porepack.exceptions.UnitConversionError.
"""
import numpy as np
import unyt
from scipy.constants import Boltzmann
from porepack.exceptions import UnitConversionError

LENGTH = 'angstrom'
TEMPERATURE = 'K'
DENSITY = '1/angstrom**3'

ANGSTROM = 1e-10 # [m]
REFERENCE_ENERGY = Boltzmann # [J]
REFERENCE_PRESSURE = Boltzmann / ANGSTROM**3 # [Pa]

def to_reduced(value, unit, scale=1.0):
    """
    Express `value` in the reference unit system.

    Args:
        value (float, array_like or unyt_array) : Value to convert. Plain numbers are returned unchanged.
        unit (str) : The unit that `value` is converted to before scaling
        scale (float) : Size of the reference unit, expressed in `unit`

    Returns:
        float or ndarray : The reduced value

    Raises:
        UnitConversionError : If `value` has dimensions incompatible with `unit`.
    """
    if isinstance(value, unyt.unyt_array):
        try:
            reduced = value.to_value(unit) / scale
        except unyt.exceptions.UnitConversionError as err:
            raise UnitConversionError(value, unit) from err
        return float(reduced) if np.ndim(reduced) == 0 else reduced
    if np.ndim(value) == 0:
        return float(value)
    return np.asarray(value, dtype=float)

def reduced_length(value):
    return to_reduced(value, LENGTH)

def reduced_temperature(value):
    return to_reduced(value, TEMPERATURE)

def reduced_density(value):
    return to_reduced(value, DENSITY)

def reduced_pressure(value):
    return to_reduced(value, 'Pa', REFERENCE_PRESSURE)

def reduced_energy(value):
    """
    Energies may be given either as a temperature (epsilon / k_B) or as an energy.
    """
    if isinstance(value, unyt.unyt_array) and value.units.dimensions == unyt.dimensions.temperature:
        return to_reduced(value, TEMPERATURE)
    return to_reduced(value, 'J', REFERENCE_ENERGY)

def temperature_quantity(t):
    return unyt.unyt_quantity(t, TEMPERATURE)

def density_quantity(rho):
    return unyt.unyt_array(rho, DENSITY)

def energy_quantity(e):
    return unyt.unyt_array(np.asarray(e) * REFERENCE_ENERGY, 'J')

def pressure_quantity(p):
    return unyt.unyt_quantity(p * REFERENCE_PRESSURE, 'Pa')

def integrated_energy_quantity(value, dimension):
    """
    Convert a reduced energy density integrated over a `dimension`-dimensional grid to a quantity.
    A 1D grid integrates over a length, so the result is an energy per area, a 2D (polar) grid gives an
    energy per length, and a 3D grid gives an energy.

    Args:
        value (float) : Reduced integral
        dimension (int) : Number of integrated dimensions (1, 2 or 3)

    Returns:
        unyt_quantity : Value in J / m^2, J / m or J
    """
    unit = {1: 'J/m**2', 2: 'J/m', 3: 'J'}[dimension]
    return unyt.unyt_quantity(value * REFERENCE_ENERGY / ANGSTROM**(3 - dimension), unit)

def integrated_density_quantity(value, dimension):
    """
    Same as integrated_energy_quantity, for a density. The result is a number of particles per area, per length or
    a plain number.
    """
    unit = {1: '1/angstrom**2', 2: '1/angstrom', 3: 'dimensionless'}[dimension]
    return unyt.unyt_array(value, unit)
