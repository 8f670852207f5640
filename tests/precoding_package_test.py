#!/usr/bin/env python
# -*- coding: utf-8 -*-

# pylint: disable=E1101,E0611
"""
Tests for the modules in the precoding package.

Each module has several doctests that we run in addition to the unittests
defined here.
"""

# xxxxxxxxxx Add the parent folder to the python path. xxxxxxxxxxxxxxxxxxxx
import sys
import os

try:
    parent_dir = os.path.split(os.path.abspath(os.path.dirname(__file__)))[0]
    sys.path.append(parent_dir)
except NameError:  # pragma: no cover
    sys.path.append('../')
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx

import unittest
import doctest
import math
import tempfile
import warnings
import numpy as np

from pyprecoding.channels.multiuser import SinglecarrierChannel
from pyprecoding.network.network import (CellAssignment,
                                         setup_triangular3site_network)
from pyprecoding.precoding import (algorithms, bisection, errors,
                                   precodingbase, settings)
from pyprecoding.precoding.algorithms import (
    WeightedMaxSINR, Shi2011WMMSE, Komulainen2013WMMSE,
    Razaviyayn2013MaxMinWMMSE, Komulainen2013WMMSEState,
    Razaviyayn2013MaxMinWMMSEState)
from pyprecoding.precoding.bisection import (bisector_function,
                                             bisection_bounds, bisect,
                                             optimal_mu)
from pyprecoding.precoding.precodingbase import (
    AlgorithmState, PrecodingResults, InvalidConfigurationError,
    InfeasibleBisectionError, BisectionWarning, calculate_logdet_rates,
    calculate_MMSE_rates, calculate_allocated_power, initial_precoders,
    unity_MSE_weights, zero_receivers)
from pyprecoding.precoding.settings import PrecodingSettings


# UPDATE THIS CLASS if another module is added to the precoding package
# noinspection PyMethodMayBeStatic
class PrecodingDoctestsTestCase(unittest.TestCase):
    """Test case that run all the doctests in the modules of the precoding
    package."""
    def test_errors(self):
        """Run doctests in the errors module."""
        doctest.testmod(errors)

    def test_settings(self):
        """Run doctests in the settings module."""
        doctest.testmod(settings)

    def test_bisection(self):
        """Run doctests in the bisection module."""
        doctest.testmod(bisection)

    def test_precodingbase(self):
        """Run doctests in the precodingbase module."""
        doctest.testmod(precodingbase)

    def test_algorithms(self):
        """Run doctests in the algorithms module."""
        doctest.testmod(algorithms)


def _random_channel(RS, Ns, Ms, K, I):  # noqa: E741
    channel = SinglecarrierChannel()
    channel.randomize(Ns, Ms, K, I, RS)
    return channel


def _orthogonal_channel(K, N):
    """Channel where user `k` only receives from base station `k`."""
    channel = SinglecarrierChannel()
    channel.init_from_channel_matrix(np.eye(K * N), N, N, K, K)
    return channel


def _power_per_BS(allocated_power, cell_assignment):
    """Sum the allocated power (K x d [x iters]) of the users of each BS."""
    return np.array([
        np.sum(allocated_power[cell_assignment.served_MS_ids(i)], axis=(0, 1))
        for i in range(cell_assignment.num_BSs)
    ])


def _single_user_capacities(channel, Ps, sigma2s, cell_assignment):
    """Rate of each user without interference and with the full power of
    its base station."""
    return np.array([
        math.log2(1 + Ps[cell_assignment.serving_BS_id(k)] * np.linalg.norm(
            channel.get_Hki(k, cell_assignment.serving_BS_id(k)))**2 /
                  sigma2s[k]) for k in range(channel.K)
    ])


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Errors and Settings xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class ErrorsTestCase(unittest.TestCase):
    def test_hierarchy(self):
        self.assertTrue(issubclass(InvalidConfigurationError, ValueError))
        self.assertTrue(issubclass(InfeasibleBisectionError, RuntimeError))
        self.assertTrue(issubclass(BisectionWarning, RuntimeWarning))

        # The base module exposes the same classes
        self.assertIs(precodingbase.InvalidConfigurationError,
                      errors.InvalidConfigurationError)
        self.assertIs(precodingbase.InfeasibleBisectionError,
                      errors.InfeasibleBisectionError)


class PrecodingSettingsTestCase(unittest.TestCase):
    def test_defaults(self):
        s = PrecodingSettings()
        self.assertEqual(s.initial_precoders, 'dft')
        self.assertEqual(s.max_iters, 20)
        self.assertAlmostEqual(s.stop_crit, 1e-3)
        self.assertEqual(s.output_protocol, 'all_iterations')
        self.assertAlmostEqual(s.bisection_Gamma_cond, 1e10)
        self.assertAlmostEqual(s.bisection_singular_Gamma_mu_lower_bound,
                               1e-14)
        self.assertEqual(s.bisection_max_iters, 50)
        self.assertAlmostEqual(s.bisection_tolerance, 1e-3)
        self.assertAlmostEqual(s.maxmin_weight_step, 0.5)

    def test_unknown_option(self):
        with self.assertRaises(InvalidConfigurationError):
            PrecodingSettings(max_iter=10)

    def test_invalid_values(self):
        invalid_options = [
            {'initial_precoders': 'random'},
            {'max_iters': 0},
            {'max_iters': 1.5},
            {'max_iters': True},
            {'max_iters': 'ten'},
            {'stop_crit': -1e-3},
            {'output_protocol': 'some_iterations'},
            {'bisection_Gamma_cond': 0.5},
            {'bisection_singular_Gamma_mu_lower_bound': -1.0},
            {'bisection_max_iters': 0},
            {'bisection_tolerance': -0.1},
            {'maxmin_weight_step': 0.0},
            {'maxmin_weight_step': 1.5},
        ]
        for options in invalid_options:
            with self.assertRaises(InvalidConfigurationError):
                PrecodingSettings(**options)

        # Setting an invalid value in an existing object also fails
        s = PrecodingSettings()
        with self.assertRaises(InvalidConfigurationError):
            s.max_iters = -3
        self.assertEqual(s.max_iters, 20)

    def test_replace(self):
        s = PrecodingSettings(max_iters=10)
        s2 = s.replace(stop_crit=0, initial_precoders='white')
        self.assertEqual(s2.max_iters, 10)
        self.assertEqual(s2.stop_crit, 0.0)
        self.assertEqual(s2.initial_precoders, 'white')
        # The original object is not changed
        self.assertEqual(s.initial_precoders, 'dft')
        self.assertNotEqual(s, s2)

        with self.assertRaises(InvalidConfigurationError):
            s.replace(output_protocol='nothing')

    def test_json_serialization(self):
        s = PrecodingSettings(max_iters=7, output_protocol='final_iteration')
        s2 = PrecodingSettings.from_json(s.to_json())
        self.assertEqual(s, s2)
        self.assertEqual(PrecodingSettings.from_dict(s.to_dict()), s)

    def _write_config_file(self, contents):
        fd, filename = tempfile.mkstemp(suffix='.ini')
        with os.fdopen(fd, 'w') as f:
            f.write(contents)
        self.addCleanup(os.remove, filename)
        return filename

    def test_load_from_config_file(self):
        filename = self._write_config_file(
            "max_iters = 7\n"
            "stop_crit = 0.01\n"
            "initial_precoders = white\n")
        s = PrecodingSettings.load_from_config_file(filename)
        self.assertEqual(s.max_iters, 7)
        self.assertAlmostEqual(s.stop_crit, 0.01)
        self.assertEqual(s.initial_precoders, 'white')
        # Missing options take their default values
        self.assertEqual(s.bisection_max_iters, 50)
        self.assertEqual(s.output_protocol, 'all_iterations')

    def test_load_from_config_file_section(self):
        filename = self._write_config_file(
            "[simulation]\n"
            "Ndrops = 10\n"
            "[precoding]\n"
            "max_iters = 3\n"
            "output_protocol = final_iteration\n")
        s = PrecodingSettings.load_from_config_file(filename, 'precoding')
        self.assertEqual(s.max_iters, 3)
        self.assertEqual(s.output_protocol, 'final_iteration')

        with self.assertRaises(InvalidConfigurationError):
            PrecodingSettings.load_from_config_file(filename, 'algorithms')

    def test_load_from_config_file_errors(self):
        filename = self._write_config_file("max_iter = 3\n")
        with self.assertRaises(InvalidConfigurationError):
            PrecodingSettings.load_from_config_file(filename)

        filename = self._write_config_file("max_iters = 0\n")
        with self.assertRaises(InvalidConfigurationError):
            PrecodingSettings.load_from_config_file(filename)

        filename = self._write_config_file("initial_precoders = random\n")
        with self.assertRaises(InvalidConfigurationError):
            PrecodingSettings.load_from_config_file(filename)


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Bisection xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class BisectionTestCase(unittest.TestCase):
    def setUp(self):
        """Called before each test."""
        self.settings = PrecodingSettings()

    def test_bisector_function(self):
        f = bisector_function(np.array([1.0, 2.0]), np.array([4.0, 9.0]))
        self.assertAlmostEqual(f(0.0), 4.0 + 9.0 / 4.0)
        self.assertAlmostEqual(f(1.0), 1.0 + 1.0)
        # Decreasing
        self.assertGreater(f(0.5), f(0.6))

    def test_bisection_bounds(self):
        eigenvalues = np.array([1.0, 2.0])
        d = np.array([4.0, 1.0])
        mu_lower, mu_upper = bisection_bounds(eigenvalues, d, 1.0,
                                              self.settings)
        self.assertEqual(mu_lower, 0.0)
        self.assertAlmostEqual(mu_upper, 2 * math.sqrt(2) - 1)

        # Singular Gamma
        mu_lower, mu_upper = bisection_bounds(np.array([0.0, 2.0]), d, 2.0,
                                              self.settings)
        self.assertEqual(mu_lower, 1e-14)
        self.assertAlmostEqual(mu_upper, 2.0)

        # Badly conditioned Gamma
        s = PrecodingSettings(bisection_Gamma_cond=10.,
                              bisection_singular_Gamma_mu_lower_bound=1e-6)
        mu_lower, _ = bisection_bounds(np.array([0.1, 2.0]), d, 1.0, s)
        self.assertEqual(mu_lower, 1e-6)

    def test_bisect(self):
        def f(mu):
            return 1.0 / (1.0 + mu)**2

        P = 0.25
        tolerance = 1e-8
        mu, no_iters = bisect(f, P, 0.0, 10.0, tolerance, 200)
        self.assertGreater(no_iters, 0)
        self.assertLess(no_iters, 200)
        # Feasible and tight
        self.assertLessEqual(f(mu), P)
        self.assertLess((P - f(mu)) / P, tolerance)
        self.assertAlmostEqual(mu, 1.0, places=6)

        # Nothing to do if the upper point is already tight
        mu, no_iters = bisect(f, P, 0.0, 1.0, tolerance, 200)
        self.assertEqual(mu, 1.0)
        self.assertEqual(no_iters, 0)

    def test_bisect_max_iters(self):
        def f(mu):
            return 1.0 / (1.0 + mu)**2

        with self.assertWarns(BisectionWarning):
            mu, no_iters = bisect(f, 0.25, 0.0, 10.0, 0.0, 5)
        self.assertEqual(no_iters, 5)
        # The returned point is still feasible
        self.assertLessEqual(f(mu), 0.25)
        self.assertGreater(mu, 1.0)

    def test_optimal_mu_no_bisection(self):
        Gamma = 10 * np.eye(2)
        bis_M = np.eye(2)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            mu, (eigenvalues, eigenvectors) = optimal_mu(
                Gamma, bis_M, 1.0, self.settings)
        self.assertEqual(mu, 0.0)
        np.testing.assert_array_almost_equal(eigenvalues, [10.0, 10.0])
        np.testing.assert_array_almost_equal(
            eigenvectors.dot(np.diag(eigenvalues)).dot(eigenvectors.conj().T),
            Gamma)

    def test_optimal_mu(self):
        Gamma = np.diag([1.0, 2.0]).astype(complex)
        bis_M = np.diag([4.0, 9.0]).astype(complex)
        P = 1.0
        mu, (eigenvalues, _) = optimal_mu(Gamma, bis_M, P, self.settings)

        f = bisector_function(np.array([1.0, 2.0]), np.array([4.0, 9.0]))
        self.assertGreater(mu, 0.0)
        self.assertLessEqual(f(mu), P)
        self.assertLess((P - f(mu)) / P, self.settings.bisection_tolerance)
        np.testing.assert_array_almost_equal(eigenvalues, [1.0, 2.0])

    def test_optimal_mu_singular_Gamma(self):
        # Rank one Gamma of a base station with 4 antennas. Its null space
        # eigenvalues are only round-off noise.
        RS = np.random.RandomState(42)
        a = RS.randn(4, 1) + 1j * RS.randn(4, 1)
        norm2 = np.linalg.norm(a)**2
        Gamma = a.dot(a.conj().T)
        b = 3 * a
        bis_M = b.dot(b.conj().T)
        P = 1.0

        mu, (eigenvalues, eigenvectors) = optimal_mu(Gamma, bis_M, P,
                                                     self.settings)
        self.assertEqual(np.sum(eigenvalues == 0), 3)
        self.assertAlmostEqual(eigenvalues[-1], norm2)

        # Power of the precoder built without the null space of Gamma
        inv_diag = np.zeros(4)
        inv_diag[-1] = 1.0 / (eigenvalues[-1] + mu)
        V = (eigenvectors * inv_diag).dot(eigenvectors.conj().T).dot(b)
        power = np.linalg.norm(V)**2
        self.assertLessEqual(power, P * (1 + 1e-9))
        self.assertGreater(power, P * (1 - self.settings.bisection_tolerance))
        # The optimal multiplier is 2 * ||a||^2
        self.assertAlmostEqual(mu / norm2, 2.0, places=2)

    def test_optimal_mu_round_off_eigenvalues(self):
        # Tiny negative eigenvalues must not make the bisector function
        # negative in the null space of Gamma
        Gamma = np.array([[4.0, 0.0], [0.0, -1e-16]])
        bis_M = np.array([[64.0, 0.0], [0.0, -3e-15]])
        mu, (eigenvalues, _) = optimal_mu(Gamma, bis_M, 1.0, self.settings)
        self.assertEqual(eigenvalues[0], 0.0)
        self.assertAlmostEqual(eigenvalues[1], 4.0)
        f = bisector_function(np.array([4.0]), np.array([64.0]))
        self.assertLessEqual(f(mu), 1.0)
        self.assertLess(1.0 - f(mu), self.settings.bisection_tolerance)

    def test_optimal_mu_infeasible(self):
        # With a negative eigenvalue the upper bound is not feasible
        Gamma = np.diag([-1.0, 5.0])
        bis_M = np.eye(2)
        with self.assertRaises(InfeasibleBisectionError):
            optimal_mu(Gamma, bis_M, 1.0, self.settings)


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Rates and initialization xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class RatesTestCase(unittest.TestCase):
    def test_diagonal_weights(self):
        W = [np.diag([3.0, 1.5]), np.diag([7.0, 1.0]), np.eye(2) * 2]
        state = AlgorithmState([], [], W)
        logdet_rates = calculate_logdet_rates(state)
        MMSE_rates = calculate_MMSE_rates(state)
        self.assertEqual(logdet_rates.shape, (3, 2))

        # Both rates agree (up to the order of the streams)
        np.testing.assert_array_almost_equal(np.sort(logdet_rates, axis=1),
                                             np.sort(MMSE_rates, axis=1))
        np.testing.assert_array_almost_equal(
            np.sum(logdet_rates, axis=1),
            [math.log2(4.5), math.log2(7.0), 2.0])

    def test_full_weights(self):
        # For non-diagonal weights the log-det rate sum is log2(det(W))
        A = np.array([[2.0, 1.0j], [-1.0j, 3.0]])
        state = AlgorithmState([], [], [A])
        logdet_rates = calculate_logdet_rates(state)
        self.assertAlmostEqual(np.sum(logdet_rates),
                               math.log2(np.linalg.det(A).real))

        # The MMSE rates never exceed the log-det rates
        MMSE_rates = calculate_MMSE_rates(state)
        self.assertLessEqual(np.sum(MMSE_rates), np.sum(logdet_rates) + 1e-12)

    def test_clipping(self):
        state = AlgorithmState([], [], [np.diag([0.5, 4.0])])
        np.testing.assert_array_almost_equal(calculate_logdet_rates(state),
                                             [[0.0, 2.0]])
        np.testing.assert_array_almost_equal(calculate_MMSE_rates(state),
                                             [[0.0, 2.0]])

    def test_different_number_of_streams(self):
        state = AlgorithmState([], [], [np.diag([2.0, 4.0]), 16 * np.eye(1)])
        np.testing.assert_array_equal(state.ds, [2, 1])
        logdet_rates = calculate_logdet_rates(state)
        self.assertEqual(logdet_rates.shape, (2, 2))
        self.assertEqual(logdet_rates[1, 1], 0.0)
        self.assertAlmostEqual(logdet_rates[1, 0], 4.0)

        # The state is not modified
        np.testing.assert_array_equal(state.W[0], np.diag([2.0, 4.0]))
        np.testing.assert_array_equal(calculate_logdet_rates(state),
                                      logdet_rates)

    def test_allocated_power(self):
        V = [np.array([[3.0, 1.0], [4.0, 1.0j]]), np.array([[0.0], [2.0]])]
        state = AlgorithmState([], V, [np.eye(2), np.eye(1)])
        np.testing.assert_array_almost_equal(calculate_allocated_power(state),
                                             [[25.0, 2.0], [4.0, 0.0]])


class InitializationTestCase(unittest.TestCase):
    def setUp(self):
        """Called before each test."""
        self.K = 3
        self.I = 2
        self.Ns = np.array([2, 2, 3])
        self.Ms = np.array([4, 3])
        self.ds = np.array([2, 1, 1])
        self.Ps = np.array([2.0, 0.5])
        self.sigma2s = np.array([0.1, 0.1, 0.1])
        self.cell_assignment = CellAssignment([0, 0, 1], self.I)
        self.channel = _random_channel(np.random.RandomState(10), self.Ns,
                                       self.Ms, self.K, self.I)

    def _initial_precoders(self, strategy):
        return initial_precoders(self.channel, self.Ps, self.sigma2s,
                                 self.ds, self.cell_assignment, strategy)

    def test_power_budget(self):
        for strategy in ['dft', 'white', 'eigendirection']:
            V = self._initial_precoders(strategy)
            self.assertEqual(len(V), self.K)
            for k in range(self.K):
                i = self.cell_assignment.serving_BS_id(k)
                self.assertEqual(V[k].shape, (self.Ms[i], self.ds[k]))

            state = AlgorithmState([], V, unity_MSE_weights(self.ds))
            np.testing.assert_array_almost_equal(
                _power_per_BS(calculate_allocated_power(state),
                              self.cell_assignment), self.Ps)

    def test_dft(self):
        V = self._initial_precoders('dft')
        # Orthogonal columns with the same power
        gram = V[0].conj().T.dot(V[0])
        np.testing.assert_array_almost_equal(gram, 0.5 * np.eye(2))

    def test_eigendirection(self):
        V = self._initial_precoders('eigendirection')
        gram = V[0].conj().T.dot(V[0])
        np.testing.assert_array_almost_equal(gram, 0.5 * np.eye(2))

        # The direction is the dominant right singular vector (user 1 gets
        # half of the power budget of base station 0)
        H10 = self.channel.get_Hki(1, 0)
        s = np.linalg.svd(H10, compute_uv=False)
        self.assertAlmostEqual(np.linalg.norm(V[1]), 1.0)
        self.assertAlmostEqual(np.linalg.norm(H10.dot(V[1])), s[0])

    def test_zeros(self):
        V = self._initial_precoders('zeros')
        for k in range(self.K):
            self.assertFalse(np.any(V[k]))

    def test_unknown_strategy(self):
        with self.assertRaises(InvalidConfigurationError):
            self._initial_precoders('random')

    def test_zero_receivers_and_unity_weights(self):
        U = zero_receivers(self.channel, self.ds)
        self.assertEqual([Uk.shape for Uk in U], [(2, 2), (2, 1), (3, 1)])
        self.assertFalse(any(np.any(Uk) for Uk in U))

        W = unity_MSE_weights(self.ds)
        np.testing.assert_array_equal(W[0], np.eye(2))
        np.testing.assert_array_equal(W[2], np.eye(1))


class PrecodingResultsTestCase(unittest.TestCase):
    def test_mapping(self):
        results = PrecodingResults(
            {
                'objective': np.array([1.0, 2.0]),
                'logdet_rates': np.ones([2, 1, 2])
            }, 2, 0.5, False)
        self.assertEqual(len(results), 2)
        self.assertEqual(set(results), {'objective', 'logdet_rates'})
        self.assertIn('objective', results)
        with self.assertRaises(KeyError):
            results['MMSE_rates']
        with self.assertRaises(TypeError):
            results['objective'] = 3  # pylint: disable=E1137

    def test_json_serialization(self):
        results = PrecodingResults(
            {
                'objective': np.array([1.0, 2.5]),
                'allocated_power': np.arange(4.0).reshape(2, 1, 2)
            }, 2, 0.25, True)
        results2 = PrecodingResults.from_json(results.to_json())
        np.testing.assert_array_equal(results2['objective'], [1.0, 2.5])
        np.testing.assert_array_equal(results2['allocated_power'],
                                      results['allocated_power'])
        self.assertEqual(results2.iters, 2)
        self.assertEqual(results2.conv_crit, 0.25)
        self.assertTrue(results2.converged)


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Algorithms xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
class CoordinatedPrecodingBaseTestCase(unittest.TestCase):
    def setUp(self):
        """Called before each test."""
        self.channel = _random_channel(np.random.RandomState(42), 2, 2, 2, 2)
        self.Ps = np.array([1.0, 1.0])
        self.sigma2s = np.array([0.1, 0.1])
        self.ds = np.array([1, 1])
        self.cell_assignment = CellAssignment([0, 1], 2)

    def test_invalid_dimensions(self):
        with self.assertRaises(InvalidConfigurationError):
            Shi2011WMMSE(self.channel, [1.0], self.sigma2s, self.ds,
                         self.cell_assignment)
        with self.assertRaises(InvalidConfigurationError):
            Shi2011WMMSE(self.channel, self.Ps, [0.1], self.ds,
                         self.cell_assignment)
        with self.assertRaises(InvalidConfigurationError):
            Shi2011WMMSE(self.channel, self.Ps, self.sigma2s, [1, 1, 1],
                         self.cell_assignment)
        with self.assertRaises(InvalidConfigurationError):
            Shi2011WMMSE(self.channel, self.Ps, [-0.1, 0.1], self.ds,
                         self.cell_assignment)
        with self.assertRaises(InvalidConfigurationError):
            Shi2011WMMSE(self.channel, self.Ps, self.sigma2s, self.ds,
                         CellAssignment([0, 1, 1], 2))
        with self.assertRaises(InvalidConfigurationError):
            Shi2011WMMSE(self.channel, self.Ps, self.sigma2s, [1, 3],
                         self.cell_assignment)
        with self.assertRaises(InvalidConfigurationError):
            Shi2011WMMSE(self.channel, self.Ps, self.sigma2s, [0, 1],
                         self.cell_assignment)

    def test_properties(self):
        alg = Komulainen2013WMMSE(self.channel, self.Ps, self.sigma2s,
                                  self.ds, self.cell_assignment)
        self.assertIs(alg.channel, self.channel)
        self.assertIs(alg.cell_assignment, self.cell_assignment)
        self.assertEqual(alg.K, 2)
        self.assertEqual(alg.I, 2)
        self.assertEqual(alg.settings, PrecodingSettings())
        self.assertEqual(repr(alg), "Komulainen2013WMMSE(K=2, I=2, ds=[1, 1])")

        with self.assertRaises(RuntimeError):
            alg.state  # pylint: disable=W0104

        alg.solve()
        self.assertIsInstance(alg.state, Komulainen2013WMMSEState)

    def test_single_iteration(self):
        alg = Shi2011WMMSE(self.channel, self.Ps, self.sigma2s, self.ds,
                           self.cell_assignment,
                           PrecodingSettings(max_iters=1))
        results = alg.solve()
        self.assertEqual(results.iters, 1)
        self.assertTrue(math.isnan(results.conv_crit))
        self.assertFalse(results.converged)
        self.assertEqual(results['objective'].shape, (1, ))

        # No BS update is performed after the last iteration
        V = initial_precoders(self.channel, self.Ps, self.sigma2s, self.ds,
                              self.cell_assignment, 'dft')
        for k in range(2):
            np.testing.assert_array_almost_equal(alg.state.V[k], V[k])

    def test_output_protocols(self):
        s = PrecodingSettings(max_iters=4, stop_crit=0)
        alg = Shi2011WMMSE(self.channel, self.Ps, self.sigma2s, self.ds,
                           self.cell_assignment, s)
        results = alg.solve()
        self.assertEqual(results.iters, 4)
        self.assertFalse(results.converged)
        self.assertEqual(set(results), {
            'objective', 'logdet_rates', 'MMSE_rates', 'allocated_power'
        })
        self.assertEqual(results['objective'].shape, (4, ))
        self.assertEqual(results['logdet_rates'].shape, (2, 1, 4))
        self.assertEqual(results['MMSE_rates'].shape, (2, 1, 4))
        self.assertEqual(results['allocated_power'].shape, (2, 1, 4))
        np.testing.assert_array_almost_equal(
            results['objective'],
            np.sum(results['logdet_rates'], axis=(0, 1)))

        alg.settings = s.replace(output_protocol='final_iteration')
        final_results = alg.solve()
        self.assertIsInstance(final_results['objective'], float)
        self.assertEqual(final_results['logdet_rates'].shape, (2, 1))
        self.assertAlmostEqual(final_results['objective'],
                               results['objective'][-1])
        np.testing.assert_array_almost_equal(final_results['MMSE_rates'],
                                             results['MMSE_rates'][:, :, -1])

    def test_solve_is_repeatable(self):
        alg = Komulainen2013WMMSE(self.channel, self.Ps, self.sigma2s,
                                  self.ds, self.cell_assignment,
                                  PrecodingSettings(max_iters=5))
        results1 = alg.solve()
        results2 = alg.solve()
        np.testing.assert_array_equal(results1['objective'],
                                      results2['objective'])

    def test_from_network(self):
        network = setup_triangular3site_network(3, 1, 2, 2)
        network.assign_cells_by_id()
        RS = np.random.RandomState(3)
        network.draw_user_drop(RS)
        channel = network.draw_channel(RS)

        alg = Shi2011WMMSE.from_network(channel, network,
                                        PrecodingSettings(max_iters=3))
        self.assertIsInstance(alg, Shi2011WMMSE)
        self.assertIs(alg.cell_assignment, network.get_cell_assignment())
        results = alg.solve()
        self.assertLessEqual(results.iters, 3)
        self.assertTrue(np.all(results['objective'] > 0))

    def test_channel_is_not_modified(self):
        big_H = self.channel.big_H.copy()
        Razaviyayn2013MaxMinWMMSE(self.channel, self.Ps, self.sigma2s,
                                  self.ds, self.cell_assignment,
                                  PrecodingSettings(max_iters=3)).solve()
        np.testing.assert_array_equal(self.channel.big_H, big_H)


class WeightedMaxSINRTestCase(unittest.TestCase):
    def test_orthogonal_channels(self):
        channel = _orthogonal_channel(2, 2)
        s = PrecodingSettings(initial_precoders='eigendirection',
                              stop_crit=1e-6)
        alg = WeightedMaxSINR(channel, [1.0, 1.0], [0.1, 0.1], [1, 1],
                              CellAssignment([0, 1], 2), s)
        results = alg.solve()
        # Without interference the rate does not change
        self.assertTrue(results.converged)
        self.assertEqual(results.iters, 2)
        self.assertLess(results.conv_crit, s.stop_crit)
        np.testing.assert_array_almost_equal(
            results['objective'], 2 * math.log2(11.0) * np.ones(2))

    def test_zero_precoders(self):
        channel = _random_channel(np.random.RandomState(0), 2, 2, 2, 2)
        s = PrecodingSettings(initial_precoders='zeros')
        alg = WeightedMaxSINR(channel, [1.0, 1.0], [0.1, 0.1], [1, 1],
                              CellAssignment([0, 1], 2), s)
        with self.assertRaises(InvalidConfigurationError):
            alg.solve()

    def test_power_budget(self):
        channel = _random_channel(np.random.RandomState(1), 2, 3, 3, 2)
        ca = CellAssignment([0, 1, 1], 2)
        Ps = np.array([1.0, 2.0])
        alg = WeightedMaxSINR(channel, Ps, [0.1, 0.1, 0.1], [2, 1, 1], ca,
                              PrecodingSettings(max_iters=5, stop_crit=0))
        results = alg.solve()
        power = _power_per_BS(results['allocated_power'], ca)
        np.testing.assert_array_almost_equal(power,
                                             np.outer(Ps, np.ones(5)))
        self.assertTrue(np.all(np.isfinite(results['objective'])))


class Shi2011WMMSETestCase(unittest.TestCase):
    def test_orthogonal_channels(self):
        channel = _orthogonal_channel(2, 2)
        s = PrecodingSettings(initial_precoders='eigendirection',
                              stop_crit=1e-6)
        alg = Shi2011WMMSE(channel, [1.0, 1.0], [0.1, 0.1], [1, 1],
                           CellAssignment([0, 1], 2), s)
        results = alg.solve()
        self.assertTrue(results.converged)
        self.assertEqual(results.iters, 2)
        self.assertLess(results.conv_crit, s.stop_crit)
        np.testing.assert_array_almost_equal(
            results['objective'], 2 * math.log2(11.0) * np.ones(2))

    def test_zero_precoders(self):
        channel = _random_channel(np.random.RandomState(0), 2, 2, 2, 2)
        s = PrecodingSettings(initial_precoders='zeros')
        alg = Shi2011WMMSE(channel, [1.0, 1.0], [0.1, 0.1], [1, 1],
                           CellAssignment([0, 1], 2), s)
        results = alg.solve()
        # Zero precoders stay zero. The relative change of a zero objective
        # is undefined, thus the algorithm never converges.
        self.assertFalse(results.converged)
        self.assertEqual(results.iters, s.max_iters)
        self.assertTrue(math.isnan(results.conv_crit))
        np.testing.assert_array_equal(results['objective'],
                                      np.zeros(s.max_iters))
        self.assertFalse(np.any(results['allocated_power']))

    def test_power_budget(self):
        channel = _random_channel(np.random.RandomState(2), 2, 2, 4, 2)
        ca = CellAssignment([0, 0, 1, 1], 2)
        Ps = np.array([1.0, 3.0])
        alg = Shi2011WMMSE(channel, Ps, 0.1 * np.ones(4), [1, 2, 2, 1], ca,
                           PrecodingSettings(max_iters=6, stop_crit=0))
        results = alg.solve()
        self.assertEqual(results.iters, 6)
        power = _power_per_BS(results['allocated_power'], ca)
        np.testing.assert_array_almost_equal(power,
                                             np.outer(Ps, np.ones(6)))


class Komulainen2013WMMSETestCase(unittest.TestCase):
    def setUp(self):
        """Called before each test."""
        self.channel = _random_channel(np.random.RandomState(1234), 2, 2, 2,
                                       2)
        self.ca = CellAssignment([0, 1], 2)
        self.Ps = np.array([1.0, 1.0])
        self.settings = PrecodingSettings(max_iters=20,
                                          stop_crit=0,
                                          bisection_tolerance=1e-10,
                                          bisection_max_iters=200)

    def test_monotone_sum_rate(self):
        alg = Komulainen2013WMMSE(self.channel, self.Ps, [0.1, 0.1], [1, 1],
                                  self.ca, self.settings)
        results = alg.solve()
        self.assertEqual(results.iters, 20)
        self.assertFalse(results.converged)

        objective = results['objective']
        self.assertTrue(np.all(np.diff(objective) >= -1e-8))

        # The power budget is respected in every iteration
        power = _power_per_BS(results['allocated_power'], self.ca)
        self.assertTrue(np.all(power <= self.Ps[:, np.newaxis] * (1 + 1e-9)))

    def test_orthogonal_channels(self):
        channel = _orthogonal_channel(2, 2)
        s = self.settings.replace(initial_precoders='eigendirection',
                                  stop_crit=1e-6)
        alg = Komulainen2013WMMSE(channel, self.Ps, [0.1, 0.1], [1, 1],
                                  self.ca, s)
        results = alg.solve()
        self.assertTrue(results.converged)
        self.assertLess(results.iters, s.max_iters)
        self.assertLess(results.conv_crit, s.stop_crit)
        np.testing.assert_array_almost_equal(results['objective'][-1],
                                             2 * math.log2(11.0))
        power = _power_per_BS(results['allocated_power'], self.ca)
        self.assertTrue(np.all(power <= 1.0 + 1e-9))

    def test_more_antennas_than_receive_streams(self):
        # Single antenna users, thus Gamma of each base station is singular
        sigma2s = np.array([0.1, 0.1])
        for seed in range(5):
            channel = _random_channel(np.random.RandomState(seed), 1, 4, 2,
                                      2)
            alg = Komulainen2013WMMSE(channel, self.Ps, sigma2s, [1, 1],
                                      self.ca, self.settings.replace(
                                          max_iters=8))
            results = alg.solve()
            power = _power_per_BS(results['allocated_power'], self.ca)
            self.assertTrue(np.all(power <= 1.0 + 1e-6))

            capacities = _single_user_capacities(channel, self.Ps, sigma2s,
                                                 self.ca)
            user_rates = np.sum(results['logdet_rates'], axis=1)
            self.assertTrue(
                np.all(user_rates <= capacities[:, np.newaxis] + 1e-9))
            self.assertTrue(np.all(np.diff(results['objective']) >= -1e-6))

    def test_diagonal_weights(self):
        alg = Komulainen2013WMMSE(self.channel, self.Ps, [0.1, 0.1], [2, 2],
                                  self.ca, PrecodingSettings(max_iters=4))
        alg.solve()
        state = alg.state
        for Wk, W_diag_k in zip(state.W, state.W_diag):
            np.testing.assert_array_almost_equal(
                W_diag_k, np.diag(np.diag(W_diag_k)))
            self.assertTrue(np.all(np.diag(W_diag_k) >= 1.0))
            self.assertEqual(W_diag_k.shape, Wk.shape)

    def test_zero_precoders(self):
        alg = Komulainen2013WMMSE(self.channel, self.Ps, [0.1, 0.1], [1, 1],
                                  self.ca,
                                  PrecodingSettings(initial_precoders='zeros',
                                                    max_iters=5))
        results = alg.solve()
        self.assertFalse(results.converged)
        self.assertEqual(results.iters, 5)
        np.testing.assert_array_equal(results['objective'], np.zeros(5))
        self.assertFalse(np.any(results['allocated_power']))

    def test_state(self):
        W = [np.eye(2), 2 * np.eye(1)]
        state = Komulainen2013WMMSEState([], [], W)
        np.testing.assert_array_equal(state.W_diag[1], W[1])
        self.assertIsNot(state.W_diag[0], W[0])
        np.testing.assert_array_equal(state.ds, [2, 1])


class Razaviyayn2013MaxMinWMMSETestCase(unittest.TestCase):
    def setUp(self):
        """Called before each test."""
        self.channel = _random_channel(np.random.RandomState(77), 2, 2, 3, 2)
        self.ca = CellAssignment([0, 1, 1], 2)

    def test_objective_is_worst_user_rate(self):
        alg = Razaviyayn2013MaxMinWMMSE(
            self.channel, [1.0, 1.0], [0.1, 0.1, 0.1], [1, 1, 1], self.ca,
            PrecodingSettings(max_iters=8, stop_crit=0))
        results = alg.solve()
        self.assertEqual(results.iters, 8)

        user_rates = np.sum(results['logdet_rates'], axis=1)
        np.testing.assert_array_almost_equal(results['objective'],
                                             np.min(user_rates, axis=0))

        # The priorities are positive and sum to the number of users
        alpha = alg.state.alpha
        self.assertIsInstance(alg.state, Razaviyayn2013MaxMinWMMSEState)
        self.assertTrue(np.all(alpha > 0))
        self.assertAlmostEqual(np.sum(alpha), 3.0)

        power = _power_per_BS(results['allocated_power'], self.ca)
        self.assertTrue(np.all(power <= 1.0 + 1e-9))

    def test_orthogonal_channels(self):
        channel = _orthogonal_channel(2, 2)
        s = PrecodingSettings(initial_precoders='eigendirection',
                              stop_crit=1e-6,
                              bisection_tolerance=1e-10,
                              bisection_max_iters=200)
        alg = Razaviyayn2013MaxMinWMMSE(channel, [1.0, 1.0], [0.1, 0.1],
                                        [1, 1], CellAssignment([0, 1], 2), s)
        results = alg.solve()
        self.assertTrue(results.converged)
        self.assertLess(results.iters, s.max_iters)
        self.assertLess(results.conv_crit, s.stop_crit)
        # Both users get the same rate
        np.testing.assert_array_almost_equal(results['objective'][-1],
                                             math.log2(11.0))
        np.testing.assert_array_almost_equal(alg.state.alpha, [1.0, 1.0])

    def test_more_antennas_than_receive_streams(self):
        ca = CellAssignment([0, 1], 2)
        Ps = np.array([1.0, 1.0])
        sigma2s = np.array([0.1, 0.1])
        s = PrecodingSettings(max_iters=8,
                              stop_crit=0,
                              bisection_tolerance=1e-10,
                              bisection_max_iters=200)
        for seed in range(5):
            channel = _random_channel(np.random.RandomState(seed), 1, 4, 2,
                                      2)
            alg = Razaviyayn2013MaxMinWMMSE(channel, Ps, sigma2s, [1, 1], ca,
                                            s)
            results = alg.solve()
            power = _power_per_BS(results['allocated_power'], ca)
            self.assertTrue(np.all(power <= 1.0 + 1e-6))

            capacities = _single_user_capacities(channel, Ps, sigma2s, ca)
            self.assertTrue(
                np.all(results['objective'] <= np.min(capacities) + 1e-9))

    def test_priorities_favor_worst_user(self):
        alg = Razaviyayn2013MaxMinWMMSE(
            self.channel, [1.0, 1.0], [0.1, 0.1, 0.1], [1, 1, 1], self.ca,
            PrecodingSettings(maxmin_weight_step=1.0))
        W = [np.eye(1) * 2.0, np.eye(1) * 4.0, np.eye(1) * 16.0]
        alg._state = Razaviyayn2013MaxMinWMMSEState([], [], W)
        alg._update_priorities()

        # Rates 1, 2 and 4 give priorities proportional to 4, 2 and 1
        np.testing.assert_array_almost_equal(alg.state.alpha,
                                             3.0 * np.array([4, 2, 1]) / 7.0)

    def test_state(self):
        state = Razaviyayn2013MaxMinWMMSEState([], [], [np.eye(1)] * 4)
        np.testing.assert_array_equal(state.alpha, np.ones(4))


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
if __name__ == "__main__":
    unittest.main()
