"""D2Q9 lattice Boltzmann BGK simulation on a periodic grid."""

from d2q9bgk.diagnostics import average_velocity, reynolds_number, total_density
from d2q9bgk.lattice import LatticeState, initialize, obstacle_mask
from d2q9bgk.lbm import LBM
