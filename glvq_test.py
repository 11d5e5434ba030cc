#!/usr/bin/python3
"""
Tests the generalized learning vector quantization implementation
"""

# Copyright (C) 2026
# glvq-clarans contributors

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU General Public License for more details.

# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import unittest
import warnings

import numpy as np
from sklearn.base import clone

from functions import euclidean
from glvq import (GLVQ, Codebook, DegenerateDistanceError, PrototypePosition,
                  predict, predict_distribution, train, update)

__author__ = 'glvq-clarans contributors'
__copyright__ = 'Copyright 2026, glvq-clarans contributors'
__license__ = 'GPLv3'
__version__ = '1.0.0'
__maintainer__ = 'glvq-clarans contributors'


def _two_pairs():
    X = np.array([[0., 0.], [0., 1.], [10., 10.], [10., 11.]])
    y = np.array([0, 0, 1, 1])
    return X, y


class TestCodebook(unittest.TestCase):

    def test_random_shape_and_range(self):
        codebook = Codebook.random(3, 2, 5, np.random.RandomState(0))
        self.assertEqual(codebook.prototypes.shape, (3, 2, 5))
        self.assertEqual(len(codebook), 6)
        self.assertTrue(np.all(codebook.prototypes >= 0.))
        self.assertTrue(np.all(codebook.prototypes < 100.))

    def test_winner_ties_go_to_lowest_slot(self):
        codebook = Codebook([[[1., 0.], [-1., 0.], [0., 5.]],
                             [[9., 9.], [8., 8.], [7., 7.]]])
        pos, d = codebook.winner(np.array([0., 0.]), 0)
        self.assertEqual(pos, PrototypePosition(0, 0))
        self.assertAlmostEqual(d, 1.)

    def test_single_slot_winner(self):
        codebook = Codebook([[[3., 4.]], [[0., 1.]]])
        pos, d = codebook.winner(np.array([0., 0.]), 0)
        self.assertEqual(pos, PrototypePosition(0, 0))
        self.assertAlmostEqual(d, 5.)
        with self.assertRaises(ValueError):
            codebook.winner(np.array([0., 0., 0.]), 1)

    def test_runner_up_skips_target_and_breaks_ties_row_major(self):
        codebook = Codebook([[[0., 0.]],
                             [[3., 0.]],
                             [[0., 3.]]])
        pos, d = codebook.runner_up(np.array([0., 0.]), 0)
        self.assertEqual(pos, PrototypePosition(1, 0))
        self.assertAlmostEqual(d, 3.)
        pos, _ = codebook.runner_up(np.array([0., 0.]), 1)
        self.assertEqual(pos, PrototypePosition(0, 0))

    def test_frozen_codebook_rejects_writes(self):
        codebook = Codebook.random(2, 1, 2, 0).freeze()
        self.assertTrue(codebook.frozen)
        with self.assertRaises(RuntimeError):
            codebook.set(PrototypePosition(0, 0), [1., 1.])

    def test_set_checks_length(self):
        codebook = Codebook.random(2, 1, 2, 0)
        with self.assertRaises(ValueError):
            codebook.set(PrototypePosition(0, 0), [1., 1., 1.])

    def test_from_samples_uses_own_class(self):
        X, y = _two_pairs()
        codebook = Codebook.from_samples(X, y, 2, 3, np.random.RandomState(1))
        for proto in codebook.prototypes[0]:
            self.assertTrue(any(np.allclose(proto, x) for x in X[y == 0]))
        for proto in codebook.prototypes[1]:
            self.assertTrue(any(np.allclose(proto, x) for x in X[y == 1]))


class TestUpdate(unittest.TestCase):

    def test_winner_approaches_and_runner_up_retreats(self):
        codebook = Codebook([[[2., 2.], [6., 6.]],
                             [[4., 0.], [-5., -5.]]])
        x = np.array([1., 1.])
        for epoch in [0, 1, 5]:
            w1_before = euclidean(x, codebook.get(PrototypePosition(0, 0)))
            w2_before = euclidean(x, codebook.get(PrototypePosition(1, 0)))
            update(codebook, x, 0, epoch, 0.1)
            w1_after = euclidean(x, codebook.get(PrototypePosition(0, 0)))
            w2_after = euclidean(x, codebook.get(PrototypePosition(1, 0)))
            self.assertLessEqual(w1_after, w1_before)
            self.assertGreaterEqual(w2_after, w2_before)
        # prototypes that are neither winner nor runner-up stay untouched
        np.testing.assert_allclose(codebook.get(PrototypePosition(0, 1)), [6., 6.])
        np.testing.assert_allclose(codebook.get(PrototypePosition(1, 1)), [-5., -5.])

    def test_first_epoch_step_matches_closed_form(self):
        codebook = Codebook([[[3., 0.]], [[0., 1.]]])
        x = np.array([0., 0.])
        mu = update(codebook, x, 0, 0, 0.5)
        d1, d2 = 3., 1.
        self.assertAlmostEqual(mu, (d1 - d2) / (d1 + d2))
        # at epoch 0 the sigmoid is flat: f(mu) = 0.5, f'(mu) = 0.25
        factor1 = 0.25 * d2 / (d1 + d2) ** 2
        factor2 = 0.25 * d1 / (d1 + d2) ** 2
        np.testing.assert_allclose(codebook.get(PrototypePosition(0, 0)),
                                   np.array([3., 0.]) + 0.5 * (x - [3., 0.]) * factor1)
        np.testing.assert_allclose(codebook.get(PrototypePosition(1, 0)),
                                   np.array([0., 1.]) - 0.5 * (x - [0., 1.]) * factor2)

    def test_degenerate_instance_raises(self):
        codebook = Codebook([[[1., 1.]], [[1., 1.]]])
        with self.assertRaises(DegenerateDistanceError):
            update(codebook, np.array([1., 1.]), 0, 3, 0.1)
        np.testing.assert_allclose(codebook.prototypes, [[[1., 1.]], [[1., 1.]]])


class TestGLVQ(unittest.TestCase):

    def test_codebook_size(self):
        rng = np.random.RandomState(3)
        X = rng.randn(30, 4)
        y = np.repeat([0, 1, 2], 10)
        model = GLVQ(K=3, T=2, random_state=0).fit(X, y)
        self.assertEqual(model.prototypes_.shape, (3, 3, 4))
        self.assertEqual(len(model.codebook_), 9)
        np.testing.assert_array_equal(model.prototype_labels_, [0, 0, 0, 1, 1, 1, 2, 2, 2])
        self.assertTrue(model.codebook_.frozen)
        self.assertEqual(len(model._loss), 2)

    def test_two_pairs(self):
        X, y = _two_pairs()
        # the default uniform init on [0, 100) may place both prototypes on the
        # same side of the data, so start from class samples instead
        model = GLVQ(K=1, T=50, eta=0.1, init='samples', random_state=0)
        model.fit(X, y)
        np.testing.assert_array_equal(model.predict(X), y)
        self.assertEqual(model.score(X, y), 1.)

    def test_string_labels(self):
        X, y = _two_pairs()
        labels = np.array(['A', 'A', 'B', 'B'])[y]
        model = GLVQ(T=10, eta=0.1, init='samples', random_state=1).fit(X, labels)
        np.testing.assert_array_equal(model.predict(X), labels)

    def test_prototype_query_is_one_hot(self):
        rng = np.random.RandomState(4)
        X = rng.rand(20, 3) * 100.
        y = np.repeat([0, 1], 10)
        model = GLVQ(K=2, T=3, random_state=2).fit(X, y)
        probs = model.predict_proba(model.prototypes_.reshape(-1, 3))
        np.testing.assert_allclose(probs, np.repeat(np.eye(2), 2, axis=0))
        self.assertEqual(predict(model.codebook_, model.prototypes_[1, 0]), 1)
        np.testing.assert_allclose(predict_distribution(model.codebook_, model.prototypes_[0, 1]), [1., 0.])

    def test_predict_ties_go_to_lowest_class(self):
        codebook = Codebook([[[1., 0.], [5., 5.]],
                             [[-1., 0.], [9., 9.]]])
        x = np.array([0., 0.])
        self.assertEqual(predict(codebook, x), 0)
        np.testing.assert_allclose(predict_distribution(codebook, x), [1., 0.])

    def test_reproducible(self):
        X, y = _two_pairs()
        a = GLVQ(T=5, random_state=7).fit(X, y)
        b = clone(a).fit(X, y)
        np.testing.assert_allclose(a.prototypes_, b.prototypes_)

    def test_explicit_init_and_tracking(self):
        X, y = _two_pairs()
        init = np.array([[[1., 1.]], [[9., 9.]]])
        model = GLVQ(T=4, eta=0.1, init=init, track_path=True, track_metrics=True).fit(X, y)
        path = model.get_prototype_path()
        self.assertEqual(path.shape, (5, 2, 1, 2))
        np.testing.assert_allclose(path[0], init)
        log = model.get_training_log()
        self.assertEqual(len(log["loss"]), 4)
        np.testing.assert_array_equal(log["skipped"], [0, 0, 0, 0])
        # init is not modified by training
        np.testing.assert_allclose(init, [[[1., 1.]], [[9., 9.]]])

    def test_degenerate_instances_are_skipped_with_warning(self):
        X = np.array([[1., 1.], [5., 5.]])
        y = np.array([0, 1])
        init = np.array([[[1., 1.]], [[1., 1.]]])
        model = GLVQ(T=1, init=init)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            model.fit(X, y)
        self.assertEqual(model.n_skipped_, 1)
        self.assertTrue(any(issubclass(w.category, RuntimeWarning) for w in caught))

    def test_degenerate_instances_can_raise(self):
        X = np.array([[1., 1.], [5., 5.]])
        y = np.array([0, 1])
        init = np.array([[[1., 1.]], [[1., 1.]]])
        with self.assertRaises(DegenerateDistanceError):
            GLVQ(T=1, init=init, degenerate_warn=False).fit(X, y)

    def test_invalid_configuration(self):
        X, y = _two_pairs()
        for params in [{'K': 0}, {'T': 0}, {'eta': 0.}, {'init': 'kmeans'}, {'K': 1.5}]:
            with self.assertRaises(ValueError):
                GLVQ(**params).fit(X, y)
        with self.assertRaises(ValueError):
            GLVQ().fit(X, np.zeros(4))
        with self.assertRaises(ValueError):
            GLVQ(init=np.zeros((2, 2, 2))).fit(X, y)

    def test_shape_mismatch(self):
        X, y = _two_pairs()
        model = GLVQ(T=1, random_state=0).fit(X, y)
        with self.assertRaises(ValueError):
            model.predict(np.zeros((2, 3)))
        with self.assertRaises(ValueError):
            predict(model.codebook_, np.zeros(5))

    def test_predict_before_fit(self):
        with self.assertRaises(RuntimeError):
            GLVQ().predict(np.zeros((1, 2)))


class TestTrain(unittest.TestCase):

    def test_train_returns_frozen_codebook(self):
        X, y = _two_pairs()
        codebook = train(X, y, n_classes=3, n_features=2, n_codebook=2, eta=0.1, T=3, random_state=0)
        self.assertIsInstance(codebook, Codebook)
        self.assertEqual(codebook.prototypes.shape, (3, 2, 2))
        self.assertTrue(codebook.frozen)

    def test_train_checks_labels_and_features(self):
        X, y = _two_pairs()
        with self.assertRaises(ValueError):
            train(X, y, n_classes=2, n_features=3)
        with self.assertRaises(ValueError):
            train(X, np.array([0, 1, 2, 1]), n_classes=2, n_features=2)
        with self.assertRaises(ValueError):
            train(X, y.astype(float), n_classes=2, n_features=2)


if __name__ == '__main__':
    unittest.main()
