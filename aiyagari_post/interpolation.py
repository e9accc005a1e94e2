"""
Interpolation tools for discretized policy functions.  The scalar routines
locate a query value on a sorted grid and linearly interpolate with a lower
bound; their inner loops are compiled with numba.  PolicyFunc2D wraps a policy
grid tabulated over (asset gridpoint, income state) as a callable function.
"""
import numpy as np
from numba import njit

from aiyagari_post.metric import MetricObject


@njit
def _locate(x, xs):  # pragma: no cover
    """
    Index of the largest i with xs[i] <= x, clamped to [0, n-2].
    """
    nx = np.searchsorted(xs, x, side="right") - 1
    return min(max(nx, 0), xs.size - 2)


@njit
def _interp_floor(x, xs, ys, lb):  # pragma: no cover
    nx = _locate(x, xs)
    slope = (ys[nx + 1] - ys[nx]) / (xs[nx + 1] - xs[nx])
    y = ys[nx] + slope * (x - xs[nx])
    if y < lb:
        y = lb
    return y, nx


@njit
def _iterate_floor(x0, xs, ys, lb, T):  # pragma: no cover
    out = np.empty(T)
    out[0] = x0
    for t in range(1, T):
        out[t] = _interp_floor(out[t - 1], xs, ys, lb)[0]
    return out


def _as_grid(xs, strict=False):
    """
    Copy xs into a float64 array and make sure it is a usable sorted grid.
    """
    grid = np.array(xs, dtype=np.float64)
    if grid.ndim != 1 or grid.size < 2:
        raise ValueError(
            "A grid must be one-dimensional with at least two points, got shape %s"
            % (grid.shape,)
        )
    steps = np.diff(grid)
    if strict and np.any(steps <= 0.0):
        raise ValueError("Grid must be strictly increasing")
    if np.any(steps < 0.0):
        raise ValueError("Grid must be sorted in ascending order")
    return grid


def _as_values(ys, grid):
    vals = np.array(ys, dtype=np.float64)
    if vals.shape != grid.shape:
        raise ValueError(
            "Grid dimensions of x and f(x) do not match: %s and %s"
            % (grid.shape, vals.shape)
        )
    return vals


def locate_interval(x, xs):
    """
    Find the gridpoint interval that brackets x.

    Parameters
    ----------
    x : float
        Query value.
    xs : np.array
        Grid sorted in ascending order, with at least two points.

    Returns
    -------
    i : int
        The largest index with xs[i] <= x, clamped to [0, len(xs)-2] so that
        xs[i+1] always exists.  Values below the grid return 0 and values at
        or above its top return len(xs)-2.
    """
    return int(_locate(float(x), _as_grid(xs)))


def interp_with_floor(x, xs, ys, lb):
    """
    Linearly interpolate ys over xs at x, truncating the result at lb.  Points
    outside the grid are extrapolated along the boundary segment, so only the
    lower bound limits the output.

    Parameters
    ----------
    x : float
        Query value.
    xs : np.array
        Strictly increasing grid.
    ys : np.array
        Function values at each point of xs.
    lb : float
        Lower bound on the returned value.

    Returns
    -------
    y : float
        The interpolated value, or lb if the interpolated value is below it.
    nx : int
        Index of the lower gridpoint of the interval used.
    """
    grid = _as_grid(xs, strict=True)
    vals = _as_values(ys, grid)
    y, nx = _interp_floor(float(x), grid, vals, float(lb))
    return float(y), int(nx)


def iterate_with_floor(x0, xs, ys, lb, T):
    """
    Apply interp_with_floor repeatedly, feeding each output back as the next
    input.  Returns an array of length T whose first entry is x0.
    """
    if T < 1:
        raise ValueError("T must be at least 1, got %d" % T)
    grid = _as_grid(xs, strict=True)
    vals = _as_values(ys, grid)
    return _iterate_floor(float(x0), grid, vals, float(lb), int(T))


class PolicyFunc2D(MetricObject):
    """
    A policy function tabulated over (asset gridpoint, income state).  Linear
    in assets, exact at each income node and linear between nodes; inputs
    outside either grid are evaluated at the nearest boundary, so the function
    is flat beyond the grids.

    Parameters
    ----------
    f_values : numpy.array
        An array of size (x_n, y_n) such that f_values[i,j] = f(x_list[i],y_list[j])
    x_list : numpy.array
        The asset grid, with length designated x_n.
    y_list : numpy.array
        The income-state nodes, with length y_n.  Defaults to 0, 1, ..., y_n-1.
    """

    distance_criteria = ["x_list", "y_list", "f_values"]

    def __init__(self, f_values, x_list, y_list=None):
        self.f_values = np.array(f_values, dtype=np.float64)
        self.x_list = _as_grid(x_list, strict=True)
        if self.f_values.ndim != 2:
            raise ValueError("f_values must be two-dimensional")
        if y_list is None:
            y_list = np.arange(self.f_values.shape[1], dtype=np.float64)
        self.y_list = np.array(y_list, dtype=np.float64).flatten()
        if self.f_values.shape != (self.x_list.size, self.y_list.size):
            raise ValueError("Grid dimensions of x, y and f(x, y) do not match")
        if self.y_list.size > 1 and np.any(np.diff(self.y_list) <= 0.0):
            raise ValueError("Income nodes must be strictly increasing")
        self.x_n = self.x_list.size
        self.y_n = self.y_list.size

    def __call__(self, x, y):
        """
        Evaluates the interpolated function at the given input.

        Parameters
        ----------
        x : np.array or float
            Asset levels at which to evaluate the function.
        y : np.array or float
            Income states at which to evaluate the function; broadcast
            against x.

        Returns
        -------
        fxy : np.array or float
            The interpolated function evaluated at x,y, with the broadcast
            shape of x and y.
        """
        xa, ya = np.broadcast_arrays(
            np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)
        )
        f = self._evaluate(xa.flatten(), ya.flatten()).reshape(xa.shape)
        if f.ndim == 0:
            return float(f)
        return f

    def _evaluate(self, x, y):
        """
        Returns the level of the interpolated function at each value in x,y.
        Only called internally by PolicyFunc2D.__call__.
        """
        x = np.clip(x, self.x_list[0], self.x_list[-1])
        x_pos = np.clip(np.searchsorted(self.x_list, x), 1, self.x_n - 1)
        alpha = (x - self.x_list[x_pos - 1]) / (
            self.x_list[x_pos] - self.x_list[x_pos - 1]
        )
        if self.y_n == 1:
            return (1 - alpha) * self.f_values[x_pos - 1, 0] + alpha * self.f_values[
                x_pos, 0
            ]

        y = np.clip(y, self.y_list[0], self.y_list[-1])
        y_pos = np.clip(np.searchsorted(self.y_list, y), 1, self.y_n - 1)
        beta = (y - self.y_list[y_pos - 1]) / (
            self.y_list[y_pos] - self.y_list[y_pos - 1]
        )
        f = (
            (1 - alpha) * (1 - beta) * self.f_values[x_pos - 1, y_pos - 1]
            + (1 - alpha) * beta * self.f_values[x_pos - 1, y_pos]
            + alpha * (1 - beta) * self.f_values[x_pos, y_pos - 1]
            + alpha * beta * self.f_values[x_pos, y_pos]
        )
        return f
