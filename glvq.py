# glvq.py
"""
Implements generalized learning vector quantization (GLVQ) on vectorial data
with several prototypes ("codebook slots") per class, inspired by

Sato, A., & Yamada, K. (1996). Generalized learning vector quantization.
Advances in Neural Information Processing Systems, 8, 423-429.

This variant trains strictly online and squashes the relative distance
difference mu with a sigmoid whose slope is the raw epoch index, i.e.
f(mu) = 1 / (1 + exp(-mu * t)). The cost therefore starts flat (t = 0) and
sharpens over the course of training, instead of using a fixed slope.
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

from __future__ import annotations

import warnings
from collections import namedtuple

import numpy as np
from scipy.special import expit
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.utils import check_random_state
from tqdm.auto import tqdm

from functions import argmin_first, check_data, check_vector, euclidean, pairwise_distances

__author__ = 'glvq-clarans contributors'
__copyright__ = 'Copyright 2026, glvq-clarans contributors'
__license__ = 'GPLv3'
__version__ = '1.0.0'
__maintainer__ = 'glvq-clarans contributors'

_INIT_RANGE = 100.

PrototypePosition = namedtuple('PrototypePosition', ['label', 'slot'])
PrototypePosition.__doc__ = "(class index, codebook slot) address of one prototype."


class DegenerateDistanceError(FloatingPointError):
    """ Raised when an instance coincides with both its winner and its
    runner-up prototype, so that d1 + d2 == 0 and mu is undefined.
    """


class Codebook:
    """ The prototype store of a GLVQ model: one prototype per
    (class index, codebook slot), kept as an array of shape
    (n_classes, n_codebook, n_features).

    The trainer mutates prototypes in place through `set`; once training
    ends the codebook is frozen and only read by the predictor.
    """

    def __init__(self, prototypes):
        prototypes = np.array(prototypes, dtype=float)
        if prototypes.ndim != 3:
            raise ValueError('Prototypes must be given as an array of shape '
                             '(n_classes, n_codebook, n_features), got %d dimension(s)!' % prototypes.ndim)
        if min(prototypes.shape) < 1:
            raise ValueError('Codebook must not be empty, got shape %s!' % str(prototypes.shape))
        if not np.all(np.isfinite(prototypes)):
            raise ValueError('Prototypes contain NaN or infinite values!')
        self._prototypes = prototypes

    @classmethod
    def random(cls, n_classes, n_codebook, n_features, random_state=None, high=_INIT_RANGE):
        """ Draws every coordinate independently and uniformly from [0, high). """
        rng = check_random_state(random_state)
        return cls(rng.uniform(0., high, size=(n_classes, n_codebook, n_features)))

    @classmethod
    def from_samples(cls, X, y, n_classes, n_codebook, random_state=None):
        """ Places the prototypes of each class on randomly chosen training
        instances of that class (with replacement if the class has fewer
        instances than slots).
        """
        rng = check_random_state(random_state)
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)
        prototypes = np.zeros((n_classes, n_codebook, X.shape[1]))
        for l in range(n_classes):
            inClass_l = np.where(y == l)[0]
            if len(inClass_l) == 0:
                raise ValueError('Cannot initialize prototypes from samples: class %d has no instances!' % l)
            chosen = rng.choice(inClass_l, size=n_codebook, replace=len(inClass_l) < n_codebook)
            prototypes[l] = X[chosen]
        return cls(prototypes)

    # ---------- Shape ----------
    @property
    def n_classes(self):
        return self._prototypes.shape[0]

    @property
    def n_codebook(self):
        return self._prototypes.shape[1]

    @property
    def n_features(self):
        return self._prototypes.shape[2]

    @property
    def prototypes(self):
        return self._prototypes

    def __len__(self):
        return self.n_classes * self.n_codebook

    def __repr__(self):
        return 'Codebook(n_classes=%d, n_codebook=%d, n_features=%d, frozen=%s)' % (
            self.n_classes, self.n_codebook, self.n_features, self.frozen)

    # ---------- Access ----------
    @property
    def frozen(self):
        return not self._prototypes.flags.writeable

    def freeze(self):
        self._prototypes.flags.writeable = False
        return self

    def get(self, position):
        return self._prototypes[position.label, position.slot].copy()

    def set(self, position, vector):
        if self.frozen:
            raise RuntimeError('Codebook is frozen; prototypes are read-only after training.')
        self._prototypes[position.label, position.slot] = check_vector(vector, self.n_features, name='prototype')

    # ---------- Distances ----------
    def distances(self, X):
        """ Euclidean distances of every row in X to every prototype,
        returned with shape (n, n_classes, n_codebook).
        """
        X = check_data(np.atleast_2d(X), self.n_features)
        D = pairwise_distances(X, self._prototypes.reshape(-1, self.n_features))
        return D.reshape(len(X), self.n_classes, self.n_codebook)

    def winner(self, x, target):
        """ Closest prototype of class `target`; ties go to the lowest slot. """
        if self.n_codebook == 1:
            return PrototypePosition(int(target), 0), euclidean(x, self._prototypes[target, 0])
        d = pairwise_distances(x, self._prototypes[target])[0]
        slot = argmin_first(d)
        return PrototypePosition(int(target), slot), float(d[slot])

    def runner_up(self, x, target):
        """ Closest prototype over all classes other than `target`; ties go
        to the lowest (class, slot) in row-major order.
        """
        if self.n_classes < 2:
            raise ValueError('A runner-up prototype needs at least two classes!')
        d = self.distances(x)[0]
        d[target, :] = np.inf
        label, slot = divmod(argmin_first(d.ravel()), self.n_codebook)
        return PrototypePosition(label, slot), float(d[label, slot])

    def nearest(self, X):
        """ Class index of the globally closest prototype for every row of X;
        ties go to the lowest class, then the lowest slot.
        """
        D = self.distances(X)
        closest = np.argmin(D.reshape(len(D), -1), axis=1)
        return closest // self.n_codebook


# =============================================================================
# Training
# =============================================================================


def update(codebook, x, target, epoch, eta):
    """ Applies one online GLVQ step for instance `x` of class index `target`.

    Moves the winner (closest own-class prototype) towards x and the
    runner-up (closest prototype of any other class) away from x. Both
    gradients are computed from the prototypes before this step.

    Returns
    -------
    float
        The relative distance difference mu = (d1 - d2) / (d1 + d2).

    Raises
    ------
    DegenerateDistanceError
        If d1 + d2 == 0.
    """
    pos1, d1 = codebook.winner(x, target)
    pos2, d2 = codebook.runner_up(x, target)
    total = d1 + d2
    if total == 0.:
        raise DegenerateDistanceError(
            'Instance coincides with prototypes %s and %s (d1 + d2 == 0)' % (tuple(pos1), tuple(pos2)))

    mu = (d1 - d2) / total
    fmu = expit(mu * epoch)
    fmu_deriv = fmu * (1. - fmu)
    mu_d1_deriv = d2 / total ** 2
    mu_d2_deriv = d1 / total ** 2

    w1 = codebook.get(pos1)
    w2 = codebook.get(pos2)
    grad1 = (x - w1) * fmu_deriv * mu_d1_deriv
    grad2 = (x - w2) * fmu_deriv * mu_d2_deriv
    codebook.set(pos1, w1 + eta * grad1)
    codebook.set(pos2, w2 - eta * grad2)
    return mu


def train(X, y, n_classes, n_features, n_codebook=1, eta=0.001, T=100, **kwargs):
    """ Trains a codebook on integer class indices y in [0, n_classes).

    Further keyword arguments are passed on to `GLVQ`. Returns the frozen
    Codebook.
    """
    X = check_data(X, n_features)
    y = np.asarray(y)
    if y.ndim != 1 or len(y) != len(X):
        raise ValueError('Expected %d labels, got shape %s!' % (len(X), str(y.shape)))
    if not np.issubdtype(y.dtype, np.integer):
        raise ValueError('Class labels must be integers in [0, %d)!' % n_classes)
    if np.any(y < 0) or np.any(y >= n_classes):
        raise ValueError('Class labels must lie in [0, %d)!' % n_classes)
    model = GLVQ(K=n_codebook, T=T, eta=eta, **kwargs)
    model.classes_ = np.arange(n_classes)
    model._fit_indexed(X, y, n_classes)
    return model.codebook_


# =============================================================================
# Prediction
# =============================================================================


def predict(codebook, X):
    """ Class index of the nearest prototype, for a single vector or each
    row of a 2-D batch.
    """
    X = np.asarray(X, dtype=float)
    single = X.ndim == 1
    if single:
        X = check_vector(X, codebook.n_features)
    labels = codebook.nearest(X)
    return int(labels[0]) if single else labels


def predict_distribution(codebook, X):
    """ One-hot vector of length n_classes with 1.0 at the nearest
    prototype's class (one row per instance for a 2-D batch).

    This is a hard nearest-prototype decision, not a calibrated probability
    estimate.
    """
    X = np.asarray(X, dtype=float)
    single = X.ndim == 1
    if single:
        X = check_vector(X, codebook.n_features)
    labels = codebook.nearest(X)
    probs = np.zeros((len(labels), codebook.n_classes))
    probs[np.arange(len(labels)), labels] = 1.
    return probs[0] if single else probs


class GLVQ(BaseEstimator, ClassifierMixin):
    """ A generalized learning vector quantization model represents every
    class by K prototype vectors and classifies a point by the label of its
    closest prototype. Training runs T online passes over the data, pulling
    the closest correct prototype towards each instance and pushing the
    closest wrong one away, weighted by the derivative of the epoch-annealed
    sigmoid of mu = (d1 - d2) / (d1 + d2).

    Attributes
    ----------
    K: int (optional, default=1)
        The number of prototypes per class.
    T: int (optional, default=100)
        The number of epochs in training.
    eta: float (optional, default=0.001)
        The learning rate.
    init: str or array_like (optional, default='uniform')
        'uniform' draws every prototype coordinate from [0, init_range),
        'samples' places prototypes on random training instances of their
        class, an array of shape (n_classes, K, n_features) is used as is.
    init_range: float (optional, default=100.)
        Upper bound of the uniform initialization.
    random_state: int, RandomState or None (optional, default=None)
        Seed of the single generator used during fit().
    degenerate_warn: bool (optional, default=True)
        If True, instances with d1 + d2 == 0 are skipped with a warning;
        if False, the DegenerateDistanceError is raised.
    verbose: bool (optional, default=False)
        If True, shows a progress bar over epochs.
    track_path: bool (optional, default=False)
        If True, stores a copy of the prototypes after every epoch.
    track_metrics: bool (optional, default=False)
        If True, stores the number of skipped instances per epoch.
    classes_: array_like
        The sorted class labels. This is not set by the user but during
        fit().
    codebook_: Codebook
        The trained, frozen codebook. This is not set by the user but during
        fit().
    _loss: list
        The summed annealed cost f(mu) over all updated instances, per
        epoch. This is not set by the user but during fit().

    """

    def __init__(self, K=1, T=100, eta=0.001, *, init='uniform', init_range=_INIT_RANGE,
                 random_state=None, degenerate_warn=True, verbose=False,
                 track_path=False, track_metrics=False):
        self.K = K
        self.T = T
        self.eta = eta
        self.init = init
        self.init_range = init_range
        self.random_state = random_state
        self.degenerate_warn = degenerate_warn
        self.verbose = verbose
        self.track_path = track_path
        self.track_metrics = track_metrics

    # ---------- Tracking ----------
    def _init_tracking(self):
        self._loss = []
        self._w_history = [] if self.track_path else None
        self._log = {"skipped": []} if self.track_metrics else None

    def _snapshot(self, codebook, skipped):
        if self.track_path:
            self._w_history.append(codebook.prototypes.copy())
        if self.track_metrics and skipped is not None:
            self._log["skipped"].append(int(skipped))

    # ---------- Utilities ----------
    def _check_params(self):
        if isinstance(self.K, bool) or not isinstance(self.K, (int, np.integer)) or self.K < 1:
            raise ValueError("K must be an integer >= 1, got %r" % (self.K,))
        if isinstance(self.T, bool) or not isinstance(self.T, (int, np.integer)) or self.T < 1:
            raise ValueError("T must be an integer >= 1, got %r" % (self.T,))
        if not np.isscalar(self.eta) or not self.eta > 0:
            raise ValueError("eta must be a positive number, got %r" % (self.eta,))
        if isinstance(self.init, str):
            if self.init not in ('uniform', 'samples'):
                raise ValueError("init must be 'uniform', 'samples' or an array, got %r" % self.init)
            if self.init == 'uniform' and not self.init_range > 0:
                raise ValueError("init_range must be positive, got %r" % (self.init_range,))

    def _init_codebook(self, X, y, L, rng):
        if isinstance(self.init, str):
            if self.init == 'samples':
                return Codebook.from_samples(X, y, L, self.K, rng)
            return Codebook.random(L, self.K, X.shape[1], rng, high=self.init_range)
        codebook = Codebook(self.init)
        if codebook.prototypes.shape != (L, self.K, X.shape[1]):
            raise ValueError('init must have shape %s, got %s!' % (str((L, self.K, X.shape[1])),
                                                                    str(codebook.prototypes.shape)))
        return codebook

    def _check_fitted(self):
        if getattr(self, "codebook_", None) is None:
            raise RuntimeError("Model has not been trained yet (fit has not been called).")

    # ---------- Fit ----------
    def fit(self, X, y):
        """ Fits the prototypes to the given feature matrix X (m x n_features)
        and labels y.
        """
        X = check_data(X)
        y = np.asarray(y)
        if y.ndim != 1 or len(y) != len(X):
            raise ValueError('Expected %d labels, got shape %s!' % (len(X), str(y.shape)))
        self.classes_, y_idx = np.unique(y, return_inverse=True)
        if len(self.classes_) < 2:
            raise ValueError('GLVQ needs at least two classes, got %d!' % len(self.classes_))
        return self._fit_indexed(X, y_idx, len(self.classes_))

    def _fit_indexed(self, X, y, L):
        """ Training loop on class indices y in [0, L). """
        self._check_params()
        if L < 2:
            raise ValueError('GLVQ needs at least two classes, got %d!' % L)
        self._m, self.n_features_in_ = X.shape
        rng = check_random_state(self.random_state)
        codebook = self._init_codebook(X, y, L, rng)

        self._init_tracking()
        self._snapshot(codebook, None)
        self.n_skipped_ = 0
        epochs = tqdm(range(self.T), desc="GLVQ", disable=not self.verbose)
        for t in epochs:
            cost = 0.
            skipped = 0
            for i in range(self._m):
                try:
                    mu = update(codebook, X[i], y[i], t, self.eta)
                except DegenerateDistanceError as e:
                    if not self.degenerate_warn:
                        raise
                    warnings.warn("Skipped instance %d in epoch %d: %s" % (i, t, e), RuntimeWarning)
                    skipped += 1
                    continue
                cost += expit(mu * t)
            self.n_skipped_ += skipped
            self._loss.append(cost)
            self._snapshot(codebook, skipped)
            if self.verbose:
                epochs.set_postfix(cost=cost, skipped=skipped)

        self.codebook_ = codebook.freeze()
        self.prototypes_ = codebook.prototypes
        self.prototype_labels_ = np.repeat(self.classes_, self.K)
        return self

    # ---------- Inference ----------
    def predict(self, X):
        """ Predicts the label of the closest prototype for every row of X. """
        self._check_fitted()
        X = check_data(X, self.codebook_.n_features)
        return self.classes_[self.codebook_.nearest(X)]

    def predict_proba(self, X):
        """ One-hot class membership of the closest prototype, in the order
        of classes_. Not a calibrated probability estimate.
        """
        self._check_fitted()
        X = check_data(X, self.codebook_.n_features)
        return predict_distribution(self.codebook_, X)

    # ---------- Getters ----------
    def get_prototype_path(self):
        if getattr(self, "_w_history", None) is None:
            return None
        return np.stack(self._w_history, axis=0)

    def get_training_log(self):
        if getattr(self, "_log", None) is None:
            return None
        return {"loss": np.array(self._loss, dtype=float),
                "skipped": np.array(self._log["skipped"], dtype=int)}
