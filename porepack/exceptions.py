"""
Exceptions raised by porepack.

All exceptions inherit from PorepackError, and additionally from the builtin exception that best describes them, such
that code catching e.g. ValueError keeps working.
"""

class PorepackError(Exception):
    """Base class for exceptions"""
    pass

class ConfigurationError(PorepackError, ValueError):
    """
    Raised for invalid pore or grid specifications: non-positive sizes or grid point counts, arrays with
    mismatched shapes, or external potentials that are not finite.
    """
    pass

class UnitConversionError(PorepackError, ValueError):
    """
    Raised when a quantity can not be expressed in the reference unit system.

    Attributes:
        quantity : The quantity that failed to convert
        unit (str) : The reference unit it was converted to
    """

    def __init__(self, quantity, unit, message=None):
        self.quantity = quantity
        self.unit = unit
        if message is None:
            message = f'Can not convert {quantity} to {unit}.'
        self.message = message
        super().__init__(self.message)

class SolverError(PorepackError, RuntimeError):
    """
    Raised when the density profile solver does not converge.

    Attributes:
        result (EquilibriumResult) : The result of the last solver run, holding residual and iteration count.
    """

    def __init__(self, result, message=None):
        self.result = result
        if message is None:
            message = f'Density profile did not converge.\n{result}'
        self.message = message
        super().__init__(self.message)
