"""
Unit tests for aiyagari_post.metric.
"""

# Bring in modules we need
import unittest

import numpy as np

from aiyagari_post.core import Economy
from aiyagari_post.metric import MetricObject, distance_metric


class testDistanceMetric(unittest.TestCase):
    def setUp(self):
        self.list_a = [1.0, 2.1, 3]
        self.list_b = [3.1, 4, -1.4]
        self.list_c = [8.6, 9]

    def test_list(self):
        # same length
        self.assertAlmostEqual(distance_metric(self.list_a, self.list_b), 4.4)
        # different length
        self.assertEqual(distance_metric(self.list_b, self.list_c), 1.0)
        # sanity check, same objects
        self.assertEqual(distance_metric(self.list_b, self.list_b), 0.0)

    def test_array(self):
        arr_a = np.array([[1.0, 2.0], [3.0, 4.0]])
        arr_b = np.array([[1.0, 2.5], [3.0, 3.0]])
        self.assertAlmostEqual(distance_metric(arr_a, arr_b), 1.0)
        # different shapes, same number of dimensions
        self.assertEqual(distance_metric(arr_a, np.ones((2, 5))), 3)
        # different number of dimensions
        self.assertEqual(distance_metric(arr_a, np.ones(4)), 10000)
        self.assertEqual(distance_metric(np.zeros(0), np.zeros(0)), 0.0)

    def test_incomparable(self):
        self.assertEqual(distance_metric("a", 1.0), 1000.0)

    def test_objects(self):
        economy = Economy(aGrid=[0.0, 1.0], ySize=1, ySizeRaw=1, SevDur=0)
        self.assertEqual(distance_metric(economy, economy), 0.0)
        self.assertEqual(MetricObject().distance(economy), 0.0)
        self.assertEqual(economy.distance(MetricObject()), 1000.0)
