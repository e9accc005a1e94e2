from typing import Any, Callable, List
from joblib import Parallel, delayed
import logging
import multiprocessing

_log = logging.getLogger("aiyagari_post")


def multi_thread_map_fake(func: Callable, arg_list: List, num_jobs=None) -> List[Any]:
    """
    Calls func on each tuple of arguments in arg_list in an ordinary,
    single-threaded loop.  This function exists so as to easily disable
    multithreading, as it uses the same syntax as multi_thread_map.

    Parameters
    ----------
    func : callable
        The function to evaluate.
    arg_list : [tuple]
        One tuple of positional arguments per call.
    num_jobs : None
        Dummy input to match syntax of multi_thread_map.  Does nothing.

    Returns
    -------
    results : list
        The return value of each call, in the order of arg_list.
    """
    return [func(*args) for args in arg_list]


def multi_thread_map(func: Callable, arg_list: List, num_jobs=None) -> List[Any]:
    """
    Calls func on each tuple of arguments in arg_list using joblib.  The calls
    must be independent of each other, e.g. one per income state.

    Parameters
    ----------
    func : callable
        The function to evaluate; it must be picklable.
    arg_list : [tuple]
        One tuple of positional arguments per call.
    num_jobs : int or None
        Number of parallel jobs.  Default is the smaller of the number of
        calls and the number of available cores.

    Returns
    -------
    results : list
        The return value of each call, in the order of arg_list.
    """
    if len(arg_list) <= 1:
        return multi_thread_map_fake(func, arg_list)

    if num_jobs is None:
        num_jobs = min(len(arg_list), multiprocessing.cpu_count())

    _log.debug("Dispatching %d tasks to %d jobs" % (len(arg_list), num_jobs))
    return Parallel(n_jobs=num_jobs)(delayed(func)(*args) for args in arg_list)
