"""
General purpose functions: grid construction, weighted averages, and
flattening of (asset, income) grids into composite-state vectors.
"""
import numpy as np  # Python's numeric library, abbreviated "np"


def make_grid_exp_mult(ming, maxg, ng, timestonest=20):
    """
    Make a multi-exponentially spaced grid.

    Parameters
    ----------
    ming : float
        Minimum value of the grid
    maxg : float
        Maximum value of the grid
    ng : int
        The number of grid points
    timestonest : int
        the number of times to nest the exponentiation

    Returns
    -------
    points : np.array
        A multi-exponentially spaced grid
    """
    if ng < 2:
        raise ValueError("A grid needs at least two points, got ng=%d" % ng)
    if maxg <= ming:
        raise ValueError("maxg must exceed ming, got %s <= %s" % (maxg, ming))
    if timestonest > 0:
        Lming = ming
        Lmaxg = maxg
        for j in range(timestonest):
            Lming = np.log(Lming + 1)
            Lmaxg = np.log(Lmaxg + 1)
        grid = np.linspace(Lming, Lmaxg, ng)
        for j in range(timestonest):
            grid = np.exp(grid) - 1
    else:
        grid = np.linspace(ming, maxg, ng)
    # Pin the endpoints against roundoff from the nested exp/log
    grid[0] = ming
    grid[-1] = maxg
    return grid


def calc_weighted_avg(data, weights):
    """
    Mass-weighted average of data, where weights need not sum to one.

    Parameters
    ----------
    data : numpy.array
        Values of some variable at each state.
    weights : numpy.array
        Non-negative mass at each state, the same shape as data.

    Returns
    -------
    weighted_avg : float
        sum(data * weights) / sum(weights).
    """
    data = np.asarray(data, dtype=float)
    weights = np.asarray(weights, dtype=float)
    if data.shape != weights.shape:
        raise ValueError(
            "data and weights must have the same shape, got %s and %s"
            % (data.shape, weights.shape)
        )
    return float(np.sum(data * weights) / np.sum(weights))


def grid_to_composite(grid):
    """
    Flatten an (aSize, ySize) grid into a vector over composite states
    s = iy * aSize + ia.
    """
    return np.asarray(grid).flatten(order="F")
