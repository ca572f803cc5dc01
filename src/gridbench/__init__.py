"""
gridbench - Docstore compression benchmark grid.

Sweep datasets, compression algorithms and block sizes against an indexing
service, one ledger row per combination.
"""

from gridbench.driver import SweepDriver, SweepReport
from gridbench.models.grid import Algorithm, Dataset, GridPoint, RunRecord
from gridbench.sweep import SweepPlan, generate_grid_points

__version__ = "0.1.0"
__all__ = [
    "Algorithm",
    "Dataset",
    "GridPoint",
    "RunRecord",
    "SweepDriver",
    "SweepPlan",
    "SweepReport",
    "__version__",
    "generate_grid_points",
]
