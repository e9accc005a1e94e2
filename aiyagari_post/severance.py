"""
Tools for turning raw employment histories into paths over the expanded
income states of a severance economy.  A worker who loses a job keeps a share
of their income for SevDur periods, decaying linearly to zero; each step of
that decay is its own income state in the solved model.

Raw categories: 0 is unemployment, r > 0 is employment at level r.
Expanded states: 0 is unemployment with no severance left, and the employed
level r sits at r + SevDur (capped at ySize - 1).
"""
import logging

import numpy as np

__all__ = [
    "steady_state_index",
    "transition_index",
    "expand_income_path",
    "count_job_losses",
    "draw_raw_income_path",
]

_log = logging.getLogger("aiyagari_post")


def steady_state_index(r, economy):
    """
    Expanded income state of a worker who has been in raw category r for
    longer than the severance period.

    Parameters
    ----------
    r : int
        Raw income category.
    economy : Economy
        Supplies SevDur and ySize.

    Returns
    -------
    iy : int
        The expanded income state.
    """
    if r == 0:
        return 0
    return min(r + economy.SevDur, economy.ySize - 1)


def transition_index(r, t, economy):
    """
    Expanded income state t periods after losing a job at raw level r.
    Lags beyond the severance period land in unemployment.

    Parameters
    ----------
    r : int
        Raw income category held before the job loss.
    t : int
        Periods since the job loss, starting at 1.
    economy : Economy
        Supplies SevDur and ySize.

    Returns
    -------
    iy : int
        The expanded income state.
    """
    if t > economy.SevDur:
        return 0
    return min((1 - t) + r * economy.SevDur, economy.ySize - 1)


def count_job_losses(raw_path):
    """
    Number of steps in raw_path that go from employment to unemployment.
    """
    raw = np.asarray(raw_path, dtype=int)
    if raw.size < 2:
        return 0
    return int(np.sum((raw[:-1] > 0) & (raw[1:] == 0)))


def _clamp_raw_path(raw_path, economy):
    raw = np.array(raw_path, dtype=int).flatten()
    if np.any(raw < 0):
        raise ValueError(
            "Raw income categories can't be negative; found one at positions %s"
            % np.flatnonzero(raw < 0).tolist()
        )
    top = economy.ySizeRaw - 1
    too_high = np.flatnonzero(raw > top)
    if too_high.size > 0:
        _log.warning(
            "Raw income categories above %d at positions %s were set to %d"
            % (top, too_high.tolist(), top)
        )
        raw[too_high] = top
    return raw


def expand_income_path(raw_path, economy):
    """
    Expand a raw employment history into a path over expanded income states.
    Every employment-to-unemployment step becomes SevDur severance states
    followed by unemployment, so the output has
    len(raw_path) + SevDur * count_job_losses(raw_path) entries.

    Raw categories above ySizeRaw - 1 are set to ySizeRaw - 1 and a warning
    naming their positions is logged.

    Parameters
    ----------
    raw_path : np.array
        Sequence of raw income categories.
    economy : Economy
        Supplies ySizeRaw, SevDur and ySize.

    Returns
    -------
    path : np.array
        Integer array of expanded income states.
    """
    raw = _clamp_raw_path(raw_path, economy)
    if raw.size == 0:
        return np.zeros(0, dtype=int)

    path = [steady_state_index(raw[0], economy)]
    for prev, cur in zip(raw[:-1], raw[1:]):
        if prev > 0 and cur == 0:
            path.extend(
                transition_index(prev, t, economy)
                for t in range(1, economy.SevDur + 1)
            )
            path.append(steady_state_index(0, economy))
        else:
            path.append(steady_state_index(cur, economy))
    return np.array(path, dtype=int)


def draw_raw_income_path(MrkvArray, T, init_state=0, seed=0):
    """
    Draw a raw employment history from a Markov chain over raw categories.

    Parameters
    ----------
    MrkvArray : np.array
        Row-stochastic transition matrix: MrkvArray[i, j] is the probability
        of moving from raw category i to raw category j.
    T : int
        Length of the history, including the initial state.
    init_state : int
        Raw category in the first period.
    seed : int
        Seed for the random number generator.

    Returns
    -------
    raw_path : np.array
        Integer array of raw income categories of length T.
    """
    MrkvArray = np.asarray(MrkvArray, dtype=float)
    if MrkvArray.ndim != 2 or MrkvArray.shape[0] != MrkvArray.shape[1]:
        raise ValueError(
            "MrkvArray must be a square matrix, got shape %s" % (MrkvArray.shape,)
        )
    if np.any(MrkvArray < 0.0) or not np.allclose(MrkvArray.sum(axis=1), 1.0):
        raise ValueError("Rows of MrkvArray must be probability distributions")
    state_count = MrkvArray.shape[0]
    if not 0 <= init_state < state_count:
        raise ValueError(
            "init_state must be in [0, %d], got %d" % (state_count - 1, init_state)
        )
    if T < 1:
        raise ValueError("T must be at least 1, got %d" % T)

    RNG = np.random.default_rng(seed)
    # Inverse-CDF draws against each row's cumulative distribution
    cum_probs = np.cumsum(MrkvArray, axis=1)
    draws = RNG.random(T - 1)
    raw_path = np.empty(T, dtype=int)
    raw_path[0] = init_state
    for t in range(1, T):
        row = cum_probs[raw_path[t - 1]]
        raw_path[t] = min(np.searchsorted(row, draws[t - 1], side="right"), state_count - 1)
    return raw_path
