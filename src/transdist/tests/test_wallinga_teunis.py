import numpy as np
import pytest

from transdist.errors import DomainError, InsufficientDataError, ShapeMismatchError
from transdist.generation.generation_time import GenerationTime
from transdist.weights.wallinga_teunis import est_wt_matrix, est_wt_matrix_weights

CASE_TIMES = [1, 2, 2, 3, 3]
GEN_T = [0.0, 2 / 3, 1 / 3, 0.0, 0.0]


def test_three_time_scenario():
    """
    Times [1,2,2,3,3] with g = [0, 2/3, 1/3, 0, 0]:
    - time 1 has no infector
    - time 2 can only be infected from time 1
    - time 3 splits between time 1 (lag 2) and time 2 (lag 1) as 1/3 : 2/3
    """
    w = est_wt_matrix_weights(CASE_TIMES, GEN_T)

    assert w.shape == (3, 3)
    assert np.allclose(w[:, 0], 0.0)
    assert np.allclose(w[:, 1], [1.0, 0.0, 0.0])
    assert np.allclose(w[:, 2], [1 / 3, 2 / 3, 0.0])


def test_columns_sum_to_one_or_zero():
    rng = np.random.default_rng(7)
    gt = GenerationTime.from_mean_sd(4.0, 2.0)
    for _ in range(20):
        times = rng.integers(0, 25, size=rng.integers(2, 40))
        w = est_wt_matrix_weights(times, gt)
        col = w.sum(axis=0)
        assert np.all(w >= 0)
        assert np.all(np.isclose(col, 1.0) | np.isclose(col, 0.0))
        # earliest time never has an infector
        assert col[0] == 0.0


def test_non_strict_allows_same_time():
    w = est_wt_matrix_weights([0, 0, 1], [0.5, 0.5])
    assert np.all(np.diag(w) == 0.0)

    w = est_wt_matrix_weights([0, 0, 1], [0.5, 0.5], strict=False)
    assert w[0, 0] == pytest.approx(1.0)
    assert np.allclose(w[:, 1], [0.5, 0.5])


def test_empty_generation_vector_raises():
    with pytest.raises(DomainError):
        est_wt_matrix_weights(CASE_TIMES, [])
    with pytest.raises(DomainError):
        est_wt_matrix_weights(CASE_TIMES, [0.0, 0.0])


def test_no_cases_raises():
    with pytest.raises(InsufficientDataError):
        est_wt_matrix_weights([], GEN_T)


def test_pairwise_expansion_splits_by_case():
    """
    Case-level matrix for times [1,2,2,3,3]:
    - case 0 (t=1) has no infector
    - cases 1, 2 (t=2) are infected by case 0
    - cases 3, 4 (t=3): case 0 gets 1/3, cases 1 and 2 get 2/3 each, renormalised
    """
    p = est_wt_matrix(CASE_TIMES, GEN_T)

    assert p.shape == (5, 5)
    assert np.all(np.diag(p) == 0.0)
    assert np.allclose(p[:, 0], 0.0)
    assert np.allclose(p[:, 1], [1.0, 0.0, 0.0, 0.0, 0.0])
    assert np.allclose(p[:, 3], [0.2, 0.4, 0.4, 0.0, 0.0])
    assert np.allclose(p[:, 4], p[:, 3])


def test_pairwise_columns_sum_to_one_or_zero():
    rng = np.random.default_rng(3)
    times = rng.integers(0, 15, size=60)
    p = est_wt_matrix(times, GenerationTime.from_mean_sd(3.0, 1.0))
    col = p.sum(axis=0)
    assert np.all(np.isclose(col, 1.0) | np.isclose(col, 0.0))
    assert np.all(col[times == times.min()] == 0.0)


def test_precomputed_weights_are_used():
    basic = est_wt_matrix_weights(CASE_TIMES, GEN_T)
    p = est_wt_matrix(CASE_TIMES, basic_wt_weights=basic)
    assert np.allclose(p, est_wt_matrix(CASE_TIMES, GEN_T))
    # caller's matrix is left untouched
    assert np.allclose(basic, est_wt_matrix_weights(CASE_TIMES, GEN_T))


def test_precomputed_weights_shape_mismatch():
    with pytest.raises(ShapeMismatchError):
        est_wt_matrix(CASE_TIMES, basic_wt_weights=np.eye(4))


def test_missing_generation_time_raises():
    with pytest.raises(DomainError):
        est_wt_matrix(CASE_TIMES)


def test_density_function_matches_vector():
    w_vec = est_wt_matrix_weights(CASE_TIMES, GEN_T)
    w_fun = est_wt_matrix_weights(CASE_TIMES, lambda lag: GEN_T[lag] if lag < len(GEN_T) else 0.0)

    assert np.allclose(w_fun, w_vec)
