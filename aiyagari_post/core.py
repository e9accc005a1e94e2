"""
Value objects shared by every tool in aiyagari_post.  An Economy carries the
grids and state-space sizes of a solved Aiyagari model with severance pay, and
a Solution carries that model's policy grids, its joint (asset, income)
transition matrix, and its stationary distribution.  Both are built once by
whatever code solved the model and are treated as read-only afterward.

Composite states order assets fastest: state s = iy * aSize + ia.  The joint
transition matrix is column-stochastic, so tran_matrix[s_next, s_now] is the
probability of moving from s_now to s_next and distributions evolve as
dstn_next = tran_matrix @ dstn_now.
"""

# Set logging and define basic functions
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from aiyagari_post.metric import MetricObject
from aiyagari_post.utilities import grid_to_composite, make_grid_exp_mult

__all__ = [
    "Economy",
    "Solution",
    "Policy",
    "init_severance_economy",
    "disable_logging",
    "enable_logging",
    "warnings",
    "quiet",
    "verbose",
    "set_verbosity_level",
]

logging.basicConfig(format="%(message)s")
_log = logging.getLogger("aiyagari_post")
_log.setLevel(logging.ERROR)


def disable_logging():
    _log.disabled = True


def enable_logging():
    _log.disabled = False


def warnings():
    _log.setLevel(logging.WARNING)


def quiet():
    _log.setLevel(logging.ERROR)


def verbose():
    _log.setLevel(logging.INFO)


def set_verbosity_level(level):
    _log.setLevel(level)


def _frozen_array(values, dtype=np.float64):
    arr = np.array(values, dtype=dtype)
    arr.setflags(write=False)
    return arr


def check_income_state(iy, ySize):
    """
    Raise a ValueError unless iy is an income state in [0, ySize - 1].
    """
    if not 0 <= iy < ySize:
        raise ValueError("Income state must be in [0, %d], got %s" % (ySize - 1, iy))


# Default parameters to make an Economy using Economy.from_params
init_severance_economy = {
    "aMin": 0.0,  # Minimum admissible asset level (borrowing limit)
    "aMax": 50.0,  # Maximum asset gridpoint
    "aCount": 100,  # Number of points in the asset grid
    "aNestFac": 3,  # Exponential nesting factor for the asset grid
    "aGrid": None,  # Explicit asset grid; overrides the four entries above
    "ySizeRaw": 2,  # Number of raw income categories (0 is unemployed)
    "SevDur": 3,  # Number of periods of decaying severance after a job loss
    "ySize": None,  # Number of expanded income states (None --> ySizeRaw + SevDur)
}


@dataclass(frozen=True, eq=False)
class Economy(MetricObject):
    """
    Grid definitions and state-space sizes of a solved severance economy.

    Parameters
    ----------
    aGrid : np.array
        Strictly increasing grid of asset levels, with at least two points.
    ySize : int
        Number of expanded (severance-encoding) income states.
    ySizeRaw : int
        Number of raw income categories; raw category 0 is unemployment and
        categories above 0 are employment levels.
    SevDur : int
        Number of periods over which severance pay decays after a job loss.
    aMin : float
        Minimum admissible asset level, used to truncate interpolated
        policies.
    """

    aGrid: np.ndarray
    ySize: int
    ySizeRaw: int
    SevDur: int
    aMin: float = 0.0

    distance_criteria = ["aGrid", "ySize", "ySizeRaw", "SevDur", "aMin"]

    def __post_init__(self):
        aGrid = _frozen_array(self.aGrid)
        if aGrid.ndim != 1:
            raise ValueError("aGrid must be one-dimensional, got shape %s" % (aGrid.shape,))
        if aGrid.size < 2:
            raise ValueError("aGrid needs at least two gridpoints to interpolate")
        if np.any(np.diff(aGrid) <= 0.0):
            raise ValueError("aGrid must be strictly increasing")
        if int(self.ySize) < 1 or int(self.ySizeRaw) < 1:
            raise ValueError(
                "ySize and ySizeRaw must be positive, got %d and %d"
                % (self.ySize, self.ySizeRaw)
            )
        if int(self.SevDur) < 0:
            raise ValueError("SevDur can't be negative, got %d" % self.SevDur)
        object.__setattr__(self, "aGrid", aGrid)
        object.__setattr__(self, "ySize", int(self.ySize))
        object.__setattr__(self, "ySizeRaw", int(self.ySizeRaw))
        object.__setattr__(self, "SevDur", int(self.SevDur))
        object.__setattr__(self, "aMin", float(self.aMin))

    @property
    def aSize(self):
        return self.aGrid.size

    @property
    def state_count(self):
        """Number of composite (asset, income) states."""
        return self.aSize * self.ySize

    @classmethod
    def from_params(cls, **params):
        """
        Build an Economy from a parameter dictionary shaped like
        init_severance_economy.  Missing entries take their default values.
        When no explicit aGrid is given, a multi-exponentially spaced grid is
        made from aMin, aMax, aCount and aNestFac.
        """
        pars = deepcopy(init_severance_economy)
        pars.update(params)
        unknown = set(pars) - set(init_severance_economy)
        if unknown:
            raise ValueError("Unknown economy parameters: %s" % sorted(unknown))

        aGrid = pars["aGrid"]
        if aGrid is None:
            aGrid = make_grid_exp_mult(
                pars["aMin"], pars["aMax"], pars["aCount"], timestonest=pars["aNestFac"]
            )
        ySize = pars["ySize"]
        if ySize is None:
            ySize = pars["ySizeRaw"] + pars["SevDur"]
        return cls(
            aGrid=aGrid,
            ySize=ySize,
            ySizeRaw=pars["ySizeRaw"],
            SevDur=pars["SevDur"],
            aMin=pars["aMin"],
        )


@dataclass(frozen=True, eq=False)
class Solution(MetricObject):
    """
    Policy grids and joint dynamics of a solved model.

    Parameters
    ----------
    aPol_Grid : np.array
        Next period assets at each (asset gridpoint, income state), shape
        (aSize, ySize).
    cPol_Grid : np.array
        Consumption at each (asset gridpoint, income state), shape
        (aSize, ySize).
    tran_matrix : np.array
        Column-stochastic transition matrix over composite states, shape
        (aSize*ySize, aSize*ySize).
    erg_dstn : np.array
        Stationary mass at each (asset gridpoint, income state), shape
        (aSize, ySize).
    """

    aPol_Grid: np.ndarray
    cPol_Grid: np.ndarray
    tran_matrix: np.ndarray
    erg_dstn: np.ndarray = field(repr=False)

    distance_criteria = ["aPol_Grid", "cPol_Grid", "tran_matrix", "erg_dstn"]

    def __post_init__(self):
        aPol = _frozen_array(self.aPol_Grid)
        cPol = _frozen_array(self.cPol_Grid)
        tran = _frozen_array(self.tran_matrix)
        dstn = _frozen_array(self.erg_dstn)

        if aPol.ndim != 2:
            raise ValueError(
                "aPol_Grid must be an (aSize, ySize) array, got shape %s" % (aPol.shape,)
            )
        if cPol.shape != aPol.shape or dstn.shape != aPol.shape:
            raise ValueError(
                "Grid dimensions of aPol_Grid %s, cPol_Grid %s and erg_dstn %s do not match"
                % (aPol.shape, cPol.shape, dstn.shape)
            )
        if tran.shape != (aPol.size, aPol.size):
            raise ValueError(
                "tran_matrix must be square over the %d composite states, got shape %s"
                % (aPol.size, tran.shape)
            )
        if np.any(dstn < 0.0):
            raise ValueError("erg_dstn can't hold negative mass")

        object.__setattr__(self, "aPol_Grid", aPol)
        object.__setattr__(self, "cPol_Grid", cPol)
        object.__setattr__(self, "tran_matrix", tran)
        object.__setattr__(self, "erg_dstn", dstn)

    @property
    def aSize(self):
        return self.aPol_Grid.shape[0]

    @property
    def ySize(self):
        return self.aPol_Grid.shape[1]

    @property
    def vec_erg_dstn(self):
        """Stationary distribution flattened to composite-state order."""
        return grid_to_composite(self.erg_dstn)

    def check_economy(self, economy):
        """
        Make sure this solution was computed on the grids of economy.

        Parameters
        ----------
        economy : Economy
            The economy whose grids the solution should be defined over.

        Returns
        -------
        None
        """
        if self.aPol_Grid.shape != (economy.aSize, economy.ySize):
            raise ValueError(
                "Solution is defined over a %s grid but the economy has aSize=%d, "
                "ySize=%d (%d composite states)"
                % (
                    self.aPol_Grid.shape,
                    economy.aSize,
                    economy.ySize,
                    economy.state_count,
                )
            )


class Policy(Enum):
    """
    The two policy variables a Solution tabulates.
    """

    ASSET = "asset"
    CONSUMPTION = "consumption"

    @classmethod
    def parse(cls, policy):
        """
        Accept a Policy or its name ("asset" or "consumption").
        """
        if isinstance(policy, cls):
            return policy
        try:
            return cls(str(policy).lower())
        except ValueError:
            raise ValueError(
                "Unknown policy variable %r; use Policy.ASSET or Policy.CONSUMPTION"
                % (policy,)
            ) from None

    def grid_of(self, solution):
        """
        Return the policy grid of solution that this variable names.
        """
        if self is Policy.ASSET:
            return solution.aPol_Grid
        return solution.cPol_Grid
