import numpy as np
import pytest

from nlpform.bounds import (
    classify_bounds,
    detect_fixed,
    find_inconsistent,
    split_constraints,
)
from nlpform.interface import NonlinearityType

INF = 1e20


def test_indicators_match_finiteness(rng):
    lower = rng.normal(size=20)
    upper = lower + rng.uniform(0.1, 1.0, size=20)
    lower[::3] = -np.inf
    upper[::4] = np.inf
    lower[1] = -1e20
    info = classify_bounds(lower, upper, INF)
    assert np.array_equal(info.ilow == 1.0, lower > -INF)
    assert np.array_equal(info.iupp == 1.0, upper < INF)
    assert set(np.unique(info.ilow)) <= {0.0, 1.0}
    assert info.n_low == int(info.ilow.sum())
    assert info.n_upp == int(info.iupp.sum())
    assert info.n_lu == int(np.sum(info.ilow * info.iupp))


def test_sentinel_infinity_counts_as_unbounded():
    info = classify_bounds(np.array([-1e20, -1e30, 0.0]), np.array([1e20, 5.0, 1e25]), INF)
    assert info.ilow.tolist() == [0.0, 0.0, 1.0]
    assert info.iupp.tolist() == [0.0, 1.0, 0.0]


def test_detect_fixed_uses_tolerance():
    lower = np.array([0.0, 2.0, 1.0, -np.inf, 3.0])
    upper = np.array([1.0, 2.0, 1.0 + 1e-10, -np.inf, 3.0 - 1e-12])
    fixed = detect_fixed(lower, upper, tol=1e-8, infinity=INF)
    assert fixed.tolist() == [False, True, True, False, True]


def test_find_inconsistent_respects_policy():
    lower = np.array([0.0, 3.0 + 1e-12, 5.0])
    upper = np.array([1.0, 3.0, 4.0])
    assert find_inconsistent(lower, upper, 1e-8, allow_fixed=True).tolist() == [2]
    assert find_inconsistent(lower, upper, 1e-8, allow_fixed=False).tolist() == [1, 2]


def test_find_inconsistent_flags_nan():
    lower = np.array([np.nan, 0.0])
    upper = np.array([1.0, 1.0])
    assert find_inconsistent(lower, upper, 1e-8, allow_fixed=True).tolist() == [0]


def test_split_constraints_scenario():
    clow = np.array([-np.inf, 3.0, 0.0, 1.0])
    cupp = np.array([5.0, 3.0, 10.0, 1.0])
    types = [NonlinearityType.LINEAR, NonlinearityType.NONLINEAR,
             NonlinearityType.CONVEX, NonlinearityType.QUADRATIC]
    split = split_constraints(clow, cupp, types, INF)
    assert split.eq_mapping.tolist() == [1, 3]
    assert split.ineq_mapping.tolist() == [0, 2]
    assert split.c_rhs.tolist() == [3.0, 1.0]
    assert split.dl.tolist() == [-np.inf, 0.0]
    assert split.du.tolist() == [5.0, 10.0]
    assert split.eq_types == (NonlinearityType.NONLINEAR, NonlinearityType.QUADRATIC)
    assert split.ineq_types == (NonlinearityType.LINEAR, NonlinearityType.CONVEX)
    assert split.n_eq + split.n_ineq == 4


def test_split_mappings_partition_indices(rng):
    m = 50
    clow = rng.normal(size=m)
    cupp = clow + rng.uniform(0.0, 1.0, size=m)
    eq = rng.random(m) < 0.4
    cupp[eq] = clow[eq]
    split = split_constraints(clow, cupp, [NonlinearityType.NONLINEAR] * m, INF)
    combined = np.concatenate([split.eq_mapping, split.ineq_mapping])
    assert sorted(combined.tolist()) == list(range(m))
    assert split.n_eq == int(eq.sum())
    assert np.all(np.diff(split.eq_mapping) > 0)
    assert np.all(np.diff(split.ineq_mapping) > 0)


def test_infinite_equal_bounds_are_not_equalities():
    split = split_constraints(
        np.array([np.inf, -np.inf]), np.array([np.inf, -np.inf]),
        [NonlinearityType.LINEAR] * 2, INF,
    )
    assert split.n_eq == 0


def test_split_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        split_constraints(np.zeros(2), np.zeros(3), [NonlinearityType.LINEAR] * 2, INF)
