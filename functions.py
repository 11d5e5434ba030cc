# functions.py
# -*- coding: utf-8 -*-
"""
Utility functions for:
- computing distances between fixed-length feature vectors,
- resolving pluggable distance metrics (scipy names or callables),
- validating feature matrices and single vectors before training/prediction,
- nearest-candidate lookup with lowest-index tie-breaking.

Public API:
    euclidean
    resolve_metric
    pairwise_distances
    check_data
    check_vector
    argmin_first
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

from typing import Callable, Optional, Union

import numpy as np
from scipy.spatial.distance import cdist

__author__ = 'glvq-clarans contributors'
__copyright__ = 'Copyright 2026, glvq-clarans contributors'
__license__ = 'GPLv3'
__version__ = '1.0.0'
__maintainer__ = 'glvq-clarans contributors'


Metric = Union[str, Callable[[np.ndarray, np.ndarray], float]]


# =============================================================================
# Distances
# =============================================================================


def euclidean(x, y) -> float:
    """
    Euclidean (L2) distance between two vectors of identical length.

    Raises a ValueError if the lengths differ.
    """
    x = np.asarray(x, dtype=np.float64).ravel()
    y = np.asarray(y, dtype=np.float64).ravel()
    if x.shape != y.shape:
        raise ValueError(
            f"Cannot compare vectors of length {x.size} and {y.size}."
        )
    return float(np.sqrt(np.sum((x - y) ** 2)))


def resolve_metric(metric: Metric) -> Metric:
    """
    Check a distance metric and return it in a form `cdist` accepts.

    Parameters
    ----------
    metric : str or callable
        Either a metric name known to scipy.spatial.distance.cdist
        (e.g. "euclidean", "cityblock", "cosine") or a callable
        f(u, v) -> float on two 1-D arrays.

    Returns
    -------
    str or callable
        The validated metric.
    """
    if callable(metric):
        return metric
    if isinstance(metric, str):
        if not metric:
            raise ValueError("metric name must not be empty.")
        # unknown names are reported by cdist on first use
        return metric
    raise ValueError(
        f"metric must be a string or a callable, got {type(metric).__name__}."
    )


def pairwise_distances(X: np.ndarray, Y: np.ndarray, metric: Metric = "euclidean") -> np.ndarray:
    """
    Distances between every row of X and every row of Y.

    Parameters
    ----------
    X : np.ndarray
        Array of shape (n, d).
    Y : np.ndarray
        Array of shape (m, d).
    metric : str or callable, default "euclidean"
        See `resolve_metric`.

    Returns
    -------
    np.ndarray
        Matrix of shape (n, m).
    """
    X = np.atleast_2d(np.asarray(X, dtype=np.float64))
    Y = np.atleast_2d(np.asarray(Y, dtype=np.float64))
    if X.shape[1] != Y.shape[1]:
        raise ValueError(
            f"Feature length mismatch: {X.shape[1]} vs {Y.shape[1]}."
        )
    return cdist(X, Y, metric=resolve_metric(metric))


def argmin_first(values: np.ndarray) -> int:
    """Index of the smallest value; ties go to the lowest index."""
    # np.argmin already returns the first occurrence
    return int(np.argmin(values))


# =============================================================================
# Input validation
# =============================================================================


def check_data(X, n_features: Optional[int] = None, name: str = "X") -> np.ndarray:
    """
    Validate a feature matrix and return it as a float64 array.

    - must be 2-D with at least one row and one column,
    - must only contain finite values,
    - if `n_features` is given, must have exactly that many columns.

    Mismatching shapes are never truncated or padded.
    """
    X = np.asarray(X, dtype=np.float64)
    if X.ndim != 2:
        raise ValueError(f"{name} must be a 2-D array, got {X.ndim} dimension(s).")
    if X.shape[0] == 0 or X.shape[1] == 0:
        raise ValueError(f"{name} must not be empty, got shape {X.shape}.")
    if not np.all(np.isfinite(X)):
        raise ValueError(f"{name} contains NaN or infinite values.")
    if n_features is not None and X.shape[1] != n_features:
        raise ValueError(
            f"{name} has {X.shape[1]} features per row, expected {n_features}."
        )
    return X


def check_vector(x, n_features: int, name: str = "x") -> np.ndarray:
    """Validate a single feature vector of length `n_features`."""
    x = np.asarray(x, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"{name} must be a 1-D vector, got {x.ndim} dimension(s).")
    if x.shape[0] != n_features:
        raise ValueError(
            f"{name} has length {x.shape[0]}, expected {n_features}."
        )
    return x
