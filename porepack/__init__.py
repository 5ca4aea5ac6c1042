from . import grid
from . import profile
from . import pore
from . import state
from . import external_potential
from . import hardsphere
from . import solvers
from . import exceptions

Axis = grid.Axis
Grid = grid.Grid
Geometry = grid.Geometry
DFTProfile = profile.DFTProfile
Pore1D = pore.Pore1D
Pore3D = pore.Pore3D
PoreProfile = pore.PoreProfile
State = state.State
DFTSolver = solvers.DFTSolver
Rosenfeld = hardsphere.Rosenfeld
WhiteBear = hardsphere.WhiteBear
