"""
Unit tests for the income-state restriction of the joint Markov chain and the
long-run values computed from it.
"""

import unittest

import numpy as np
import pandas as pd

from aiyagari_post import markov
from aiyagari_post.core import Policy, Solution
from aiyagari_post.markov import (
    compare_long_run,
    extract_block,
    extract_column,
    income_block,
    long_run_stats,
    long_run_table,
    long_run_value,
    restrict,
)
from aiyagari_post.utilities import calc_weighted_avg

from toy_model import make_one_state_model, make_toy_model


class testRestrict(unittest.TestCase):
    def setUp(self):
        self.economy, self.solution = make_toy_model()
        self.aSize = self.economy.aSize

    def test_column(self):
        dstn = extract_column(self.solution, 4)
        np.testing.assert_array_equal(dstn[:, 4], self.solution.erg_dstn[:, 4])
        self.assertEqual(np.count_nonzero(dstn[:, :4]), 0)

    def test_block(self):
        tran = extract_block(self.solution, 4, 3)
        rows = income_block(3, self.aSize)
        cols = income_block(4, self.aSize)
        np.testing.assert_array_equal(tran[rows, cols], self.solution.tran_matrix[rows, cols])
        tran[rows, cols] = 0.0
        self.assertEqual(np.count_nonzero(tran), 0)

    def test_mass_preserved(self):
        for iy in range(self.economy.ySize):
            restricted = restrict(self.solution, iy)
            np.testing.assert_array_equal(
                restricted.erg_dstn[:, iy], self.solution.erg_dstn[:, iy]
            )
            self.assertAlmostEqual(
                np.sum(restricted.erg_dstn), np.sum(self.solution.erg_dstn[:, iy]), places=14
            )
            self.assertLessEqual(np.sum(restricted.erg_dstn), np.sum(self.solution.erg_dstn))

    def test_zero_outside_block(self):
        restricted = restrict(self.solution, 0)
        block = income_block(0, self.aSize)
        tran = np.array(restricted.tran_matrix)
        np.testing.assert_array_equal(tran[block, block], self.solution.tran_matrix[block, block])
        tran[block, block] = 0.0
        self.assertEqual(np.count_nonzero(tran), 0)

    def test_cross_block(self):
        restricted = restrict(self.solution, 4, 3)
        np.testing.assert_array_equal(
            restricted.tran_matrix, extract_block(self.solution, 4, 3)
        )
        np.testing.assert_array_equal(restricted.erg_dstn, extract_column(self.solution, 4))
        # Policies are carried through untouched
        np.testing.assert_array_equal(restricted.aPol_Grid, self.solution.aPol_Grid)

    def test_idempotent(self):
        once = restrict(self.solution, 2)
        twice = restrict(once, 2)
        self.assertEqual(once.distance(twice), 0.0)

    def test_bad_income_state(self):
        self.assertRaises(ValueError, restrict, self.solution, 5)
        self.assertRaises(ValueError, restrict, self.solution, 0, -1)


class testOneStateModel(unittest.TestCase):
    def setUp(self):
        self.economy, self.solution = make_one_state_model()

    def test_restrict_is_noop(self):
        restricted = restrict(self.solution, 0)
        self.assertEqual(restricted.distance(self.solution), 0.0)

    def test_long_run_is_stationary_average(self):
        for policy in [Policy.ASSET, Policy.CONSUMPTION]:
            target = calc_weighted_avg(
                policy.grid_of(self.solution), self.solution.erg_dstn
            )
            self.assertAlmostEqual(long_run_value(self.solution, 0, policy), target, places=8)


class testLongRunValue(unittest.TestCase):
    def setUp(self):
        self.economy, self.solution = make_toy_model()

    def test_employed_state(self):
        result = long_run_stats(self.solution, 4, Policy.ASSET)
        self.assertTrue(result.converged)
        self.assertGreater(result.mass, 0.0)
        aGrid = self.economy.aGrid
        self.assertTrue(aGrid[0] <= result.value <= aGrid[-1] + 1.5)
        self.assertEqual(result.value, long_run_value(self.solution, 4, "asset"))

    def test_unemployed_state(self):
        # aPol = max(0.9a - 0.1, 0) when unemployed, so assets run down to zero
        value = long_run_value(self.solution, 0, Policy.ASSET)
        self.assertAlmostEqual(value, 0.0, places=6)
        cons = long_run_value(self.solution, 0, Policy.CONSUMPTION)
        self.assertAlmostEqual(cons, 0.2, places=6)

    def test_vanishing_mass(self):
        # Severance states never repeat, so their restricted chains die out
        for iy in [1, 2, 3]:
            result = long_run_stats(self.solution, iy, Policy.CONSUMPTION)
            self.assertEqual(result.value, 0.0)
            self.assertTrue(result.converged)
            self.assertEqual(result.iterations, 0)

    def test_short_depth(self):
        value_long = long_run_value(self.solution, 4, Policy.ASSET)
        value_short = long_run_value(self.solution, 4, Policy.ASSET, depth=200, tol=1e-12)
        self.assertAlmostEqual(value_long, value_short, places=6)

    def test_module_depth_is_overridable(self):
        original = markov.CONVERGENCE_DEPTH
        try:
            markov.CONVERGENCE_DEPTH = 1
            result = long_run_stats(self.solution, 4, Policy.ASSET, max_iter=0)
        finally:
            markov.CONVERGENCE_DEPTH = original
        restricted = restrict(self.solution, 4)
        dstn = restricted.tran_matrix @ restricted.vec_erg_dstn
        target = np.sum(self.solution.aPol_Grid.flatten(order="F") * dstn) / np.sum(dstn)
        self.assertAlmostEqual(result.value, target)

    def test_not_converged(self):
        with self.assertLogs("aiyagari_post", level="WARNING"):
            result = long_run_stats(
                self.solution, 4, Policy.ASSET, tol=0.0, max_iter=2, depth=1
            )
        self.assertFalse(result.converged)
        self.assertEqual(result.iterations, 2)

    def test_bad_inputs(self):
        self.assertRaises(ValueError, long_run_value, self.solution, 4, Policy.ASSET, depth=0)
        self.assertRaises(ValueError, long_run_value, self.solution, 4, "income")


class testLongRunTable(unittest.TestCase):
    def setUp(self):
        self.economy, self.solution = make_toy_model()

    def test_table(self):
        table = long_run_table(self.solution, num_jobs=1)
        self.assertEqual(table.index.tolist(), list(range(self.economy.ySize)))
        self.assertEqual(
            list(table.columns), ["mass", "asset", "consumption", "iterations", "converged"]
        )
        self.assertAlmostEqual(table["mass"].sum(), 1.0)
        self.assertAlmostEqual(
            table.loc[4, "asset"], long_run_value(self.solution, 4, Policy.ASSET)
        )
        self.assertEqual(table.loc[2, "consumption"], 0.0)

    def test_subset(self):
        table = long_run_table(self.solution, income_states=[0, 4], num_jobs=1)
        self.assertEqual(table.index.tolist(), [0, 4])
        self.assertRaises(ValueError, long_run_table, self.solution, [7])

    def test_parallel_matches_serial(self):
        serial = long_run_table(self.solution, num_jobs=1)
        parallel = long_run_table(self.solution, num_jobs=2)
        pd.testing.assert_frame_equal(serial, parallel, check_exact=False)

    def test_depth_override_reaches_workers(self):
        original = markov.CONVERGENCE_DEPTH
        try:
            markov.CONVERGENCE_DEPTH = 1
            serial = long_run_table(self.solution, [0, 4], max_iter=0, num_jobs=1)
            parallel = long_run_table(self.solution, [0, 4], max_iter=0, num_jobs=2)
        finally:
            markov.CONVERGENCE_DEPTH = original
        explicit = long_run_table(self.solution, [0, 4], max_iter=0, depth=1, num_jobs=1)
        pd.testing.assert_frame_equal(serial, parallel, check_exact=False)
        pd.testing.assert_frame_equal(serial, explicit, check_exact=False)


class testCompareLongRun(unittest.TestCase):
    def test_compare(self):
        economy, solution = make_toy_model()
        out = compare_long_run(0, 5.0, 300, solution, economy, Policy.ASSET)
        self.assertEqual(set(out), {"simulated", "markov"})
        # Both methods send an agent stuck in unemployment to the borrowing limit
        self.assertAlmostEqual(out["simulated"], 0.0)
        self.assertAlmostEqual(out["markov"], 0.0, places=6)


class testSolutionChecks(unittest.TestCase):
    def test_dimension_mismatch(self):
        economy, solution = make_toy_model()
        self.assertRaises(
            ValueError,
            Solution,
            aPol_Grid=solution.aPol_Grid,
            cPol_Grid=solution.cPol_Grid,
            tran_matrix=solution.tran_matrix[:-1, :-1],
            erg_dstn=solution.erg_dstn,
        )
        self.assertRaises(
            ValueError,
            Solution,
            aPol_Grid=solution.aPol_Grid,
            cPol_Grid=solution.cPol_Grid,
            tran_matrix=solution.tran_matrix,
            erg_dstn=solution.erg_dstn[:, :-1],
        )
