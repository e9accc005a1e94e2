import numpy as np


def distance_lists(list_a, list_b):
    """
    If both inputs are lists, then the distance between them is the maximum
    distance between corresponding elements in the lists.  If they differ in
    length, the distance is the difference in lengths.
    """
    len_a = len(list_a)
    len_b = len(list_b)
    if len_a == len_b:
        if len_a == 0:
            return 0.0
        return np.max([distance_metric(list_a[n], list_b[n]) for n in range(len_a)])
    return np.abs(len_a - len_b)


def distance_arrays(arr_a, arr_b):
    """
    If both inputs are arrays of the same shape, return the maximum absolute
    difference between corresponding elements.  Arrays with a different number
    of dimensions are 10000 times the difference in dimensions apart; arrays
    with the same number of dimensions but different shapes are the summed
    difference in size along each dimension apart.
    """
    shape_A = arr_a.shape
    shape_B = arr_b.shape
    if shape_A == shape_B:
        if arr_a.size == 0:
            return 0.0
        return np.max(np.abs(arr_a - arr_b))

    if len(shape_A) != len(shape_B):
        return 10000 * np.abs(len(shape_A) - len(shape_B))

    dim_diffs = np.abs(np.array(shape_A) - np.array(shape_B))
    return np.sum(dim_diffs)


def distance_metric(thing_a, thing_b):
    """
    A "universal distance" metric between two model objects.

    Parameters
    ----------
    thing_a : object
        A number, list, array, or MetricObject.
    thing_b : object
        Another object of the same kind.

    Returns
    -------
    distance : float
        The "distance" between thing_a and thing_b; 1000.0 when they cannot
        be compared.
    """
    if isinstance(thing_a, (int, float)) and isinstance(thing_b, (int, float)):
        return np.abs(thing_a - thing_b)

    if isinstance(thing_a, list) and isinstance(thing_b, list):
        return distance_lists(thing_a, thing_b)

    if isinstance(thing_a, np.ndarray) and isinstance(thing_b, np.ndarray):
        return distance_arrays(thing_a, thing_b)

    if isinstance(thing_a, MetricObject) and isinstance(thing_a, type(thing_b)):
        return thing_a.distance(thing_b)

    # Failsafe: the inputs are very far apart
    return 1000.0


class MetricObject:
    """
    A superclass for the value objects in aiyagari_post.  Subclasses name the
    attributes that matter for comparison in distance_criteria.
    """

    distance_criteria = []

    def distance(self, other):
        """
        Maximum distance between this object and another across the attributes
        named in distance_criteria.

        Parameters
        ----------
        other : object
            Another object to compare this instance to.

        Returns
        -------
        (unnamed) : float
            The "universal distance" between the two objects, or 1000.0 if
            they do not share the compared attributes.
        """
        if len(self.distance_criteria) == 0:
            return 0.0
        try:
            return np.max(
                [
                    distance_metric(getattr(self, attr_name), getattr(other, attr_name))
                    for attr_name in self.distance_criteria
                ]
            )
        except (AttributeError, ValueError):
            return 1000.0
