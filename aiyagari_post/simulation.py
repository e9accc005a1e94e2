"""
Forward simulation of individual asset and consumption paths from the policy
grids of a solved model.  Paths can be driven by a history of expanded income
states, or computed for an agent held in one income state forever.
"""
import logging

import numpy as np
import pandas as pd

from aiyagari_post.core import Policy, check_income_state
from aiyagari_post.interpolation import PolicyFunc2D, iterate_with_floor
from aiyagari_post.severance import expand_income_path

__all__ = [
    "simulate_policy_path",
    "simulate_fixed_state",
    "simulate_raw_history",
]

_log = logging.getLogger("aiyagari_post")


def simulate_policy_path(income_path, a0, c0, solution, economy):
    """
    Simulate assets and consumption along a path of expanded income states.
    Next period's assets and this period's consumption come from the policy
    grids, interpolated linearly in assets at each period's income state.

    Parameters
    ----------
    income_path : np.array
        Expanded income states, e.g. the output of expand_income_path.
    a0 : float
        Initial asset level.
    c0 : float
        Initial consumption level.
    solution : Solution
        Supplies aPol_Grid and cPol_Grid.
    economy : Economy
        Supplies aGrid.

    Returns
    -------
    a_path : np.array
        Asset levels, length len(income_path) + 1, starting at a0.
    c_path : np.array
        Consumption levels, length len(income_path) + 1, starting at c0.
    """
    solution.check_economy(economy)
    income_path = np.asarray(income_path, dtype=float).flatten()
    fractional = np.flatnonzero(income_path != np.round(income_path))
    if fractional.size > 0:
        raise ValueError(
            "Income states must be integers; positions %s are not"
            % fractional.tolist()
        )
    income_path = income_path.astype(int)
    bad =np.flatnonzero((income_path < 0) | (income_path >= economy.ySize))
    if bad.size > 0:
        raise ValueError(
            "Income states must be in [0, %d]; positions %s are not"
            % (economy.ySize - 1, bad.tolist())
        )

    aFunc = PolicyFunc2D(solution.aPol_Grid, economy.aGrid)
    cFunc = PolicyFunc2D(solution.cPol_Grid, economy.aGrid)

    T = income_path.size
    a_path = np.empty(T + 1)
    c_path = np.empty(T + 1)
    a_path[0] = a0
    c_path[0] = c0
    for t in range(T):
        a_path[t + 1] = aFunc(a_path[t], income_path[t])
        c_path[t + 1] = cFunc(a_path[t], income_path[t])
    return a_path, c_path


def simulate_fixed_state(iy, T, x0, solution, economy, policy=Policy.ASSET):
    """
    Path of one policy variable for an agent who stays in income state iy
    forever.  Each period's value is the policy at income iy, interpolated at
    the previous period's value and truncated at the economy's lower asset
    bound.

    Parameters
    ----------
    iy : int
        The expanded income state.
    T : int
        Number of periods in the returned path, including x0.
    x0 : float
        Initial value; can't be below economy.aMin.
    solution : Solution
        Supplies the policy grid.
    economy : Economy
        Supplies aGrid and aMin.
    policy : Policy or str
        Which policy grid to iterate.

    Returns
    -------
    path : np.array
        The path of length T, with path[0] == x0.
    """
    solution.check_economy(economy)
    check_income_state(iy, economy.ySize)
    if x0 < economy.aMin:
        raise ValueError(
            "x0=%s is below the lower bound aMin=%s" % (x0, economy.aMin)
        )
    grid = Policy.parse(policy).grid_of(solution)
    return iterate_with_floor(x0, economy.aGrid, grid[:, iy], economy.aMin, T)


def simulate_raw_history(raw_path, a0, c0, solution, economy):
    """
    Expand a raw employment history and simulate the agent along it.

    Parameters
    ----------
    raw_path : np.array
        Raw income categories (0 is unemployment).
    a0 : float
        Initial asset level.
    c0 : float
        Initial consumption level.
    solution : Solution
        The solved model.
    economy : Economy
        The economy the model was solved on.

    Returns
    -------
    history : pd.DataFrame
        One row per period with columns income_state, asset and consumption.
        Row t holds the income state faced in period t alongside a_path[t]
        and c_path[t]; the last row repeats the final income state (0 for
        an empty history).
    """
    income_path = expand_income_path(raw_path, economy)
    a_path, c_path = simulate_policy_path(income_path, a0, c0, solution, economy)
    if income_path.size > 0:
        states = np.append(income_path, income_path[-1])
    else:
        states = np.zeros(1, dtype=int)
    _log.info(
        "Simulated %d periods from %d raw observations" % (income_path.size, len(raw_path))
    )
    return pd.DataFrame(
        {"income_state": states, "asset": a_path, "consumption": c_path}
    )
