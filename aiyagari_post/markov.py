"""
Long-run behavior of an agent confined to one income state, computed from the
joint (asset, income) Markov chain of a solved model.  The chain is restricted
to the composite states of the chosen income state, with every other
transition and all other mass set to zero, and the restricted chain is then
pushed forward many periods.  The policy variable's average over whatever
mass survives is the long-run value conditional on staying in that state.
"""
import logging
from collections import namedtuple
from dataclasses import replace

import numpy as np
import pandas as pd

from aiyagari_post.core import Policy, check_income_state
from aiyagari_post.parallel import multi_thread_map
from aiyagari_post.simulation import simulate_fixed_state
from aiyagari_post.utilities import calc_weighted_avg

__all__ = [
    "CONVERGENCE_DEPTH",
    "init_long_run",
    "LongRunResult",
    "income_block",
    "extract_column",
    "extract_block",
    "restrict",
    "long_run_stats",
    "long_run_value",
    "long_run_table",
    "compare_long_run",
]

_log = logging.getLogger("aiyagari_post")

# Number of periods the restricted chain is pushed forward in one step.  Long
# enough for the within-state sub-chain of typical asset grids to settle into
# its conditional distribution; raise it for slowly mixing grids.
CONVERGENCE_DEPTH = 2500

# Default parameters for long_run_stats and friends
init_long_run = {
    "tol": 1e-8,  # Convergence tolerance on the long-run average
    "max_iter": 100,  # Maximum number of CONVERGENCE_DEPTH-period pushes
    "depth": None,  # Periods per push (None --> CONVERGENCE_DEPTH)
    "mass_floor": np.finfo(float).tiny,  # Surviving mass at or below this is zero
}

LongRunResult = namedtuple("LongRunResult", ["value", "iterations", "converged", "mass"])


def income_block(iy, aSize):
    """
    Slice of the composite states that belong to income state iy.
    """
    return slice(iy * aSize, (iy + 1) * aSize)


def extract_column(solution, iy):
    """
    Stationary distribution with all mass outside income state iy set to zero.

    Parameters
    ----------
    solution : Solution
        Supplies erg_dstn.
    iy : int
        The income state to keep.

    Returns
    -------
    dstn : np.array
        An (aSize, ySize) array equal to erg_dstn in column iy and zero
        elsewhere.
    """
    check_income_state(iy, solution.ySize)
    dstn = np.zeros(solution.erg_dstn.shape)
    dstn[:, iy] = solution.erg_dstn[:, iy]
    return dstn


def extract_block(solution, iy, jy):
    """
    Transition matrix with every entry set to zero except the transitions
    from income state iy to income state jy.

    Parameters
    ----------
    solution : Solution
        Supplies tran_matrix.
    iy : int
        Income state of origin (columns of tran_matrix).
    jy : int
        Income state of destination (rows of tran_matrix).

    Returns
    -------
    tran_matrix : np.array
        A composite-state matrix equal to tran_matrix on the (jy, iy) block
        and zero elsewhere.
    """
    check_income_state(iy, solution.ySize)
    check_income_state(jy, solution.ySize)
    rows = income_block(jy, solution.aSize)
    cols = income_block(iy, solution.aSize)
    tran = np.zeros(solution.tran_matrix.shape)
    tran[rows, cols] = solution.tran_matrix[rows, cols]
    return tran


def restrict(solution, iy, jy=None):
    """
    Restrict the joint chain of a solution to income state iy, or to the
    transitions from iy to jy.  Nothing is renormalized: the restricted
    distribution keeps exactly the mass erg_dstn has in column iy.

    Parameters
    ----------
    solution : Solution
        The solved model.
    iy : int
        Income state whose mass is kept (and the origin of kept transitions).
    jy : int or None
        Destination income state of kept transitions; defaults to iy.

    Returns
    -------
    restricted : Solution
        A copy of solution with erg_dstn and tran_matrix restricted.
    """
    if jy is None:
        jy = iy
    return replace(
        solution,
        tran_matrix=extract_block(solution, iy, jy),
        erg_dstn=extract_column(solution, iy),
    )


def long_run_stats(
    solution,
    iy,
    policy=Policy.ASSET,
    tol=init_long_run["tol"],
    max_iter=init_long_run["max_iter"],
    depth=init_long_run["depth"],
    mass_floor=init_long_run["mass_floor"],
):
    """
    Long-run average of a policy variable for an agent who stays in income
    state iy, with convergence diagnostics.

    The restricted chain is raised to the power depth, the restricted
    stationary mass is pushed forward by it, and the policy variable is
    averaged over the surviving mass.  Pushes repeat until the average moves
    by less than tol or max_iter pushes have been made.

    Parameters
    ----------
    solution : Solution
        The solved model.
    iy : int
        The income state.
    policy : Policy or str
        Which policy variable to average.
    tol : float
        Convergence tolerance on the change in the average between pushes.
    max_iter : int
        Maximum number of pushes after the first.
    depth : int or None
        Periods per push; None uses CONVERGENCE_DEPTH.
    mass_floor : float
        Surviving mass at or below this counts as vanished, which makes the
        long-run value 0.

    Returns
    -------
    result : LongRunResult
        value, the number of pushes made after the first, whether the average
        converged, and the restricted mass left after the first push.
    """
    policy = Policy.parse(policy)
    if depth is None:
        depth = CONVERGENCE_DEPTH
    if depth < 1:
        raise ValueError("depth must be at least 1, got %d" % depth)

    restricted = restrict(solution, iy)
    # The restricted matrix is zero outside the (iy, iy) block, so its powers
    # are the powers of that block.
    block = income_block(iy, solution.aSize)
    T_big = np.linalg.matrix_power(restricted.tran_matrix[block, block], depth)
    x = policy.grid_of(solution)[:, iy]

    dstn = T_big @ restricted.erg_dstn[:, iy]
    mass = float(np.sum(dstn))
    if mass <= mass_floor:
        _log.info("Mass in income state %d vanishes; long-run value is 0" % iy)
        return LongRunResult(0.0, 0, True, mass)
    value = calc_weighted_avg(x, dstn)

    converged = False
    iterations = 0
    for it in range(1, max_iter + 1):
        # Rescale before each push so that repeated pushes
        # don't underflow; the average ignores scale
        dstn = T_big @ (dstn / np.sum(dstn))
        if np.sum(dstn) <= mass_floor:
            _log.info("Mass in income state %d vanishes; long-run value is 0" % iy)
            return LongRunResult(0.0, it, True, mass)
        iterations = it
        value_new = calc_weighted_avg(x, dstn)
        diff = abs(value_new - value)
        value = value_new
        _log.debug(
            "Income state %d, push %d: %s = %.10g (change %.3g)"
            % (iy, it, policy.value, value, diff)
        )
        if diff < tol:
            converged = True
            break

    if not converged:
        _log.warning(
            "Long-run %s in income state %d did not converge to tol=%g in %d pushes"
            % (policy.value, iy, tol, max_iter)
        )
    return LongRunResult(value, iterations, converged, float(mass))


def long_run_value(
    solution,
    iy,
    policy=Policy.ASSET,
    tol=init_long_run["tol"],
    max_iter=init_long_run["max_iter"],
    depth=init_long_run["depth"],
    mass_floor=init_long_run["mass_floor"],
):
    """
    Long-run average of a policy variable for an agent who stays in income
    state iy.  See long_run_stats for the parameters; this returns only the
    value.
    """
    return long_run_stats(
        solution, iy, policy, tol=tol, max_iter=max_iter, depth=depth, mass_floor=mass_floor
    ).value


def long_run_table(
    solution,
    income_states=None,
    tol=init_long_run["tol"],
    max_iter=init_long_run["max_iter"],
    depth=init_long_run["depth"],
    mass_floor=init_long_run["mass_floor"],
    num_jobs=None,
):
    """
    Long-run asset and consumption values for several income states, computed
    in parallel.

    Parameters
    ----------
    solution : Solution
        The solved model.
    income_states : [int] or None
        Income states to evaluate; defaults to all of them.
    tol, max_iter, depth, mass_floor :
        Passed to long_run_stats.
    num_jobs : int or None
        Number of parallel jobs; see multi_thread_map.

    Returns
    -------
    table : pd.DataFrame
        Indexed by income_state, with columns mass (stationary mass in the
        income state), asset, consumption, iterations (the larger of the two
        policies' push counts) and converged (whether both converged).
    """
    if income_states is None:
        income_states = range(solution.ySize)
    income_states = [int(iy) for iy in income_states]
    for iy in income_states:
        check_income_state(iy, solution.ySize)

    # Worker processes import this module afresh, so pass the depth explicitly
    if depth is None:
        depth = CONVERGENCE_DEPTH

    policies = [Policy.ASSET, Policy.CONSUMPTION]
    arg_list = [
        (solution, iy, policy, tol, max_iter, depth, mass_floor)
        for iy in income_states
        for policy in policies
    ]
    results = multi_thread_map(long_run_stats, arg_list, num_jobs)

    rows = []
    for n, iy in enumerate(income_states):
        asset, cons = results[2 * n], results[2 * n + 1]
        rows.append(
            {
                "income_state": iy,
                "mass": float(np.sum(solution.erg_dstn[:, iy])),
                "asset": asset.value,
                "consumption": cons.value,
                "iterations": max(asset.iterations, cons.iterations),
                "converged": asset.converged and cons.converged,
            }
        )
    return pd.DataFrame(rows).set_index("income_state")


def compare_long_run(iy, x0, T, solution, economy, policy=Policy.ASSET, **kwds):
    """
    Two answers to "where does an agent who stays in income state iy end up":
    the last value of a fixed-state simulation from x0, and the long-run
    average over the restricted Markov chain.

    Parameters
    ----------
    iy : int
        The income state.
    x0 : float
        Initial value for the simulation.
    T : int
        Length of the simulated path.
    solution : Solution
        The solved model.
    economy : Economy
        The economy the model was solved on.
    policy : Policy or str
        Which policy variable to compare.
    **kwds :
        Passed to long_run_value.

    Returns
    -------
    comparison : dict
        Entries "simulated" and "markov".
    """
    path = simulate_fixed_state(iy, T, x0, solution, economy, policy)
    return {
        "simulated": float(path[-1]),
        "markov": long_run_value(solution, iy, policy, **kwds),
    }
