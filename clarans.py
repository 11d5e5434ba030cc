# clarans.py
"""
Implements CLARANS (Clustering Large Applications based on RANdomized
Search), a k-medoids optimizer based on

Ng, R. T., & Han, J. (2002). CLARANS: A method for clustering objects for
spatial data mining. IEEE Transactions on Knowledge and Data Engineering,
14(5), 1003-1016. doi:10.1109/TKDE.2002.1033770

A configuration of k medoids is a node in a graph whose neighbors differ in
exactly one medoid. Each restart seeds a node k-means++ style and walks to
random neighbors as long as they strictly lower the total distortion; after
max_neighbor failed attempts in a row the node counts as a local minimum.
The best local minimum over num_local restarts is returned.
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

import numpy as np
from joblib import Parallel, delayed
from sklearn.base import BaseEstimator, ClusterMixin
from sklearn.utils import check_random_state
from tqdm.auto import tqdm

from functions import check_data, pairwise_distances, resolve_metric

__author__ = 'glvq-clarans contributors'
__copyright__ = 'Copyright 2026, glvq-clarans contributors'
__license__ = 'GPLv3'
__version__ = '1.0.0'
__maintainer__ = 'glvq-clarans contributors'

_MIN_NEIGHBOR_CAP = 100


class MedoidConfiguration:
    """ One node of the CLARANS search graph.

    Attributes
    ----------
    medoids: array_like
        k distinct row indices into the data.
    labels: array_like
        For every data point, the slot (0..k-1) of its nearest medoid.
    distances: array_like
        For every data point, the distance to its nearest medoid.
    distortion: float
        The sum of `distances`.
    """

    def __init__(self, medoids, labels, distances):
        self.medoids = np.asarray(medoids, dtype=int)
        self.labels = np.asarray(labels, dtype=int)
        self.distances = np.asarray(distances, dtype=float)
        self.distortion = float(np.sum(self.distances))

    @classmethod
    def evaluate(cls, X, medoids, metric="euclidean"):
        """ Assigns every point of X to its nearest medoid (ties go to the
        lowest slot) and sums up the distances.
        """
        medoids = np.asarray(medoids, dtype=int)
        if len(np.unique(medoids)) != len(medoids):
            raise ValueError('Medoids must be distinct data indices, got %s!' % medoids)
        D = pairwise_distances(X, X[medoids], metric)
        labels = np.argmin(D, axis=1)
        return cls(medoids, labels, D[np.arange(len(X)), labels])

    @property
    def k(self):
        return len(self.medoids)

    @property
    def assignment(self):
        """ The data index of the assigned medoid, per point. """
        return self.medoids[self.labels]

    def non_medoids(self, n):
        return np.setdiff1d(np.arange(n), self.medoids)

    def swap(self, X, slot, point, metric="euclidean"):
        """ The neighbor in which medoid `slot` is replaced by `point`. """
        if point in self.medoids:
            raise ValueError('Point %d is already a medoid!' % point)
        medoids = self.medoids.copy()
        medoids[slot] = point
        return MedoidConfiguration.evaluate(X, medoids, metric)

    def random_neighbor(self, X, rng, metric="euclidean"):
        slot = rng.randint(self.k)
        point = rng.choice(self.non_medoids(len(X)))
        return self.swap(X, slot, point, metric)

    def __repr__(self):
        return 'MedoidConfiguration(medoids=%s, distortion=%g)' % (self.medoids.tolist(), self.distortion)


# =============================================================================
# Search
# =============================================================================


def seed(X, n_clusters, random_state=None, metric="euclidean"):
    """ Chooses an initial configuration k-means++ style.

    The first medoid is drawn uniformly. Every further medoid is drawn with
    probability proportional to the distance of each point to its closest
    medoid so far, by scanning the cumulative sum of these distances for
    the first entry exceeding a cutoff drawn from [0, sum). Points that are
    already covered exactly (distance 0) are never drawn; if no point is
    left uncovered, the next medoid is drawn uniformly among the remaining
    points.
    """
    rng = check_random_state(random_state)
    n = len(X)
    medoids = np.empty(n_clusters, dtype=int)
    medoids[0] = rng.randint(n)
    d = pairwise_distances(X, X[medoids[:1]], metric)[:, 0]
    d[medoids[0]] = 0.
    for j in range(1, n_clusters):
        cost = np.cumsum(d)
        if cost[-1] > 0:
            cutoff = rng.random_sample() * cost[-1]
            index = int(np.searchsorted(cost, cutoff, side='right'))
            if index >= n:
                index = int(np.nonzero(d)[0][-1])
        else:
            index = int(rng.choice(np.setdiff1d(np.arange(n), medoids[:j])))
        medoids[j] = index
        # every point's distance to the new medoid, independently per point
        d = np.minimum(d, pairwise_distances(X, X[index:index + 1], metric)[:, 0])
        d[medoids[:j + 1]] = 0.
    return MedoidConfiguration.evaluate(X, medoids, metric)


def local_search(X, config, max_neighbor, random_state=None, metric="euclidean"):
    """ Walks from `config` to random neighbors with strictly lower
    distortion until `max_neighbor` neighbors in a row failed to improve.

    Returns
    -------
    MedoidConfiguration
        The local minimum.
    list
        The distortion of every accepted configuration, starting with
        `config`. Strictly decreasing.
    """
    rng = check_random_state(random_state)
    current = config
    history = [current.distortion]
    neighbor_count = 0
    while neighbor_count < max_neighbor:
        candidate = current.random_neighbor(X, rng, metric)
        if candidate.distortion < current.distortion:
            current = candidate
            history.append(current.distortion)
            neighbor_count = 0
        else:
            neighbor_count += 1
    return current, history


def _restart(X, n_clusters, max_neighbor, metric, random_seed):
    rng = np.random.RandomState(random_seed)
    config = seed(X, n_clusters, rng, metric)
    return local_search(X, config, max_neighbor, rng, metric)


def _check_int(value, name, minimum):
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value < minimum:
        raise ValueError("%s must be an integer >= %d, got %r" % (name, minimum, value))


def effective_max_neighbor(max_neighbor, n_clusters, n_samples):
    """ Raises max_neighbor to min(100, k * (n - k)), the floor on the
    number of neighbors examined per restart.
    """
    return max(max_neighbor, min(_MIN_NEIGHBOR_CAP, n_clusters * (n_samples - n_clusters)))


def _search(X, n_clusters, metric, num_local, max_neighbor, random_state, n_jobs, verbose):
    """ Validates the configuration, then runs all restarts. """
    _check_int(n_clusters, "n_clusters", 1)
    _check_int(num_local, "num_local", 1)
    _check_int(max_neighbor, "max_neighbor", 1)
    metric = resolve_metric(metric)
    n = len(X)
    if n_clusters >= n:
        raise ValueError('Number of clusters is too large: %d. It must be smaller than the number of points (%d).'
                         % (n_clusters, n))
    max_neighbor = effective_max_neighbor(max_neighbor, n_clusters, n)

    rng = check_random_state(random_state)
    seeds = rng.randint(np.iinfo(np.int32).max, size=num_local)
    # results arrive in restart order as each one finishes
    finished = Parallel(n_jobs=n_jobs, prefer="threads", return_as="generator")(
        delayed(_restart)(X, n_clusters, max_neighbor, metric, s) for s in seeds
    )
    results = list(tqdm(finished, total=num_local, desc="CLARANS", disable=not verbose))

    best = None
    for i, (config, history) in enumerate(results):
        if verbose:
            print(f"[Restart {i}] distortion={config.distortion:.4f} "
                  f"after {len(history) - 1} accepted swaps")
        if best is None or config.distortion < best.distortion:
            best = config
    return best, results, max_neighbor


def clarans(X, n_clusters=3, metric="euclidean", num_local=6, max_neighbor=4,
            random_state=None, n_jobs=None, verbose=False):
    """ Clusters the rows of X around n_clusters medoids.

    Parameters
    ----------
    X : array_like
        Data of shape (n, n_features).
    n_clusters : int, default 3
        Number of medoids k, 1 <= k < n.
    metric : str or callable, default "euclidean"
        Any scipy cdist metric name or a callable on two vectors.
    num_local : int, default 6
        Number of restarts (local minima to find).
    max_neighbor : int, default 4
        Neighbors examined without improvement before a restart stops;
        raised to min(100, k * (n - k)) if smaller.
    random_state : int, RandomState or None
        Seed for all restarts.
    n_jobs : int or None
        Number of restarts to run in parallel.
    verbose : bool
        Print a line per restart.

    Returns
    -------
    medoids : np.ndarray
        The k medoid row indices.
    assignment : np.ndarray
        For every point, the row index of its medoid.
    distortion : float
        Sum of distances of all points to their medoids.
    """
    X = check_data(X)
    best, _, _ = _search(X, n_clusters, metric, num_local, max_neighbor, random_state, n_jobs, verbose)
    return best.medoids, best.assignment, best.distortion


class CLARANS(BaseEstimator, ClusterMixin):
    """ A CLARANS model partitions the data into n_clusters groups, each
    represented by one of its own points (the medoid), such that the sum of
    distances of all points to their medoid is as small as the randomized
    search finds.

    Attributes
    ----------
    n_clusters: int (optional, default=3)
        The number of medoids.
    num_local: int (optional, default=6)
        The number of restarts.
    max_neighbor: int (optional, default=4)
        The number of non-improving neighbors after which a restart stops.
    metric: str or callable (optional, default="euclidean")
        The distance between two points.
    random_state: int, RandomState or None (optional, default=None)
    n_jobs: int or None (optional, default=None)
        Restarts to run in parallel.
    verbose: bool (optional, default=False)
    medoid_indices_: array_like
        Row indices of the medoids in the training data. Set during fit().
    cluster_centers_: array_like
        The medoids themselves. Set during fit().
    labels_: array_like
        Cluster index of every training point. Set during fit().
    inertia_: float
        The distortion of the best configuration. Set during fit().
    local_distortions_: array_like
        Final distortion of every restart. Set during fit().
    distortion_history_: list
        Accepted distortions of every restart. Set during fit().
    max_neighbor_: int
        The neighbor budget actually used. Set during fit().
    """

    def __init__(self, n_clusters=3, num_local=6, max_neighbor=4, metric="euclidean",
                 random_state=None, n_jobs=None, verbose=False):
        self.n_clusters = n_clusters
        self.num_local = num_local
        self.max_neighbor = max_neighbor
        self.metric = metric
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.verbose = verbose

    def fit(self, X, y=None):
        X = check_data(X)
        best, results, self.max_neighbor_ = _search(
            X, self.n_clusters, self.metric, self.num_local, self.max_neighbor,
            self.random_state, self.n_jobs, self.verbose)
        self.n_features_in_ = X.shape[1]
        self.medoid_indices_ = best.medoids
        self.cluster_centers_ = X[best.medoids]
        self.labels_ = best.labels
        self.inertia_ = best.distortion
        self.local_distortions_ = np.array([config.distortion for config, _ in results])
        self.distortion_history_ = [history for _, history in results]
        return self

    def _check_fitted(self):
        if getattr(self, "cluster_centers_", None) is None:
            raise RuntimeError("Model has not been trained yet (fit has not been called).")

    def transform(self, X):
        """ Distances of every row of X to every medoid. """
        self._check_fitted()
        X = check_data(X, self.n_features_in_)
        return pairwise_distances(X, self.cluster_centers_, self.metric)

    def predict(self, X):
        """ Index of the nearest medoid for every row of X. """
        return np.argmin(self.transform(X), axis=1)
