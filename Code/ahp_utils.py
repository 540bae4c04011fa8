# ahp_utils.py
"""
AHP numerical core: comparison matrix construction, geometric-mean weights
and the consistency check (lambda_max, CI, CR).
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np

from judgments import Judgment

# Saaty random index, keyed by matrix order.
RANDOM_INDEX: Mapping[int, float] = MappingProxyType({
    1: 0.0, 2: 0.0, 3: 0.58, 4: 0.90, 5: 1.12, 6: 1.24, 7: 1.32, 8: 1.41,
    9: 1.45, 10: 1.49, 11: 1.51, 12: 1.48, 13: 1.56, 14: 1.57, 15: 1.59, 16: 1.60,
})
RI_FALLBACK = 1.5
CONSISTENCY_THRESHOLD = 0.1


@dataclass(frozen=True)
class ConsistencyResult:
    lambda_max: float
    ci: float
    cr: float
    consistent: bool


def random_index(n: int, fallback: float = RI_FALLBACK) -> float:
    """RI for a matrix of order n; orders beyond the table use `fallback`."""
    return RANDOM_INDEX.get(n, fallback)


def _as_square(matrix) -> np.ndarray:
    M = np.array(matrix, dtype=float)
    if M.ndim != 2 or M.shape[0] != M.shape[1] or M.shape[0] == 0:
        raise ValueError(f"comparison matrix must be square and non-empty, got shape {M.shape}")
    return M


def build_comparison_matrix(items: Sequence[str], judgments: Iterable[Judgment]) -> np.ndarray:
    """
    Build the reciprocal pairwise comparison matrix over an ordered item list.

    Parameters
    ----------
    items : sequence of str
        Ordered item identifiers; row/column i belongs to items[i].
    judgments : iterable of Judgment
        "left is `ratio` times as important as right". Later judgments on the
        same pair overwrite earlier ones.

    Returns
    -------
    np.ndarray
        n x n matrix with 1 on the diagonal, M[i, j] == 1 / M[j, i], and 1
        wherever no judgment was given.
    """
    n = len(items)
    if n == 0:
        raise ValueError("cannot build a comparison matrix without items")
    pos = {item: k for k, item in enumerate(items)}

    # 1) Identity diagonal, NaN marks cells nobody judged
    M = np.full((n, n), np.nan)
    np.fill_diagonal(M, 1.0)

    # 2) Each judgment fills the cell and its reciprocal
    for j in judgments:
        if j.ratio is None or not j.ratio > 0 or j.left == j.right:
            continue
        if j.left not in pos or j.right not in pos:
            continue
        a, b = pos[j.left], pos[j.right]
        M[a, b] = j.ratio
        M[b, a] = 1.0 / j.ratio

    # 3) No stated preference counts as equal importance
    M[np.isnan(M)] = 1.0
    return M


def ahp_weights(pairwise_matrix) -> np.ndarray:
    """
    Compute AHP weights with the geometric-mean (row product) method.

    Parameters
    ----------
    pairwise_matrix : list[list] or np.ndarray
        Positive reciprocal comparison matrix.

    Returns
    -------
    weight_vector : np.ndarray
        Vector of criterion weights (sum = 1).
    """
    M = _as_square(pairwise_matrix)
    if np.any(M <= 0):
        raise ValueError("comparison matrix entries must be strictly positive")

    # n-th root of each row product
    n = M.shape[0]
    products = np.prod(M, axis=1)
    if np.all(np.isfinite(products)) and np.all(products > 0):
        geo_means = products ** (1.0 / n)
    else:
        # product left float range, take the same root in log space
        geo_means = np.exp(np.log(M).mean(axis=1))
    weight_vector = geo_means / geo_means.sum()

    assert np.all(weight_vector > 0), "geometric-mean weights must be strictly positive"
    return weight_vector


def consistency_ratio(lambda_max: float, n: int, fallback: float = RI_FALLBACK) -> Tuple[float, float]:
    """
    CI and CR for an eigenvalue estimate of an n x n matrix.

    CI is 0 for n == 1; CR is 0 whenever RI(n) is 0 (n <= 2).
    """
    if n <= 1:
        ci = 0.0
    else:
        # lambda_max >= n for positive reciprocal matrices; clip float noise
        ci = max((lambda_max - n) / (n - 1), 0.0)
    ri = random_index(n, fallback)
    cr = ci / ri if ri > 0 else 0.0
    return ci, cr


def ahp_consistency(
    pairwise_matrix,
    weights: Optional[np.ndarray] = None,
    *,
    threshold: float = CONSISTENCY_THRESHOLD,
    ri_fallback: float = RI_FALLBACK,
) -> ConsistencyResult:
    """
    Consistency check for a comparison matrix and its priority vector.

    Parameters
    ----------
    pairwise_matrix : list[list] or np.ndarray
    weights : np.ndarray, optional
        Priority vector aligned with the matrix rows. Computed with
        `ahp_weights` when omitted.
    threshold : float
        A matrix is consistent when CR < threshold.

    Returns
    -------
    ConsistencyResult
        Unrounded lambda_max, CI and CR.
    """
    M = _as_square(pairwise_matrix)
    n = M.shape[0]
    w = ahp_weights(M) if weights is None else np.asarray(weights, dtype=float)
    if w.shape != (n,):
        raise ValueError(f"weight vector of shape {w.shape} does not match a {n}x{n} matrix")
    assert np.all(w > 0), "priority weights must be strictly positive"

    # 1) Aw
    Aw = M @ w

    # 2) lambda_max = mean of (Aw)_i / w_i
    lambda_max = float(np.mean(Aw / w))

    # 3) CI, CR
    ci, cr = consistency_ratio(lambda_max, n, ri_fallback)

    return ConsistencyResult(
        lambda_max=lambda_max,
        ci=float(ci),
        cr=float(cr),
        consistent=bool(cr < threshold),
    )
