"""End-to-end tests: a small driver loop talking to a formulation."""

import numpy as np
import pytest

import nlpform
from nlpform import (
    DenseFormulation,
    FormulationOptions,
    MixedSparseDenseFormulation,
    SolveStatus,
    create_formulation,
)
from nlpform.interface import ProblemInterface


def test_package_exports():
    assert nlpform.__version__
    for name in nlpform.__all__:
        assert hasattr(nlpform, name), name


def test_create_formulation_dispatches_on_interface(dense_problem, mds_problem):
    assert isinstance(create_formulation(dense_problem([0.0], [1.0])), DenseFormulation)
    assert isinstance(create_formulation(mds_problem), MixedSparseDenseFormulation)


def test_create_formulation_rejects_plain_interface():
    class Bare(ProblemInterface):
        def get_prob_sizes(self):
            return 1, 0

        def get_vars_info(self, n, xlow, xupp, types):
            return True

        def get_cons_info(self, m, clow, cupp, types):
            return True

        def eval_f(self, n, x, new_x):
            return 0.0

        def eval_grad_f(self, n, x, new_x, gradf):
            return True

        def eval_cons(self, n, m, idx_cons, x, new_x, cons):
            return True

    with pytest.raises(TypeError):
        create_formulation(Bare())


def _projected_gradient(nlp, iterations=20, step=0.25):
    """Minimal bound-constrained driver using only the formulation API."""
    x = nlp.alloc_primal_vec()
    assert nlp.get_starting_point(x)
    grad = nlp.alloc_primal_vec()
    xl = nlp.get_xl().local_data
    xu = nlp.get_xu().local_data
    empty = np.zeros(0)
    zeros = np.zeros(nlp.n)
    for it in range(iterations):
        assert nlp.eval_grad_f(x, True, grad)
        x.copy_from(np.clip(x.local_data - step * grad.local_data, xl, xu))
        f = nlp.eval_f(x, True)
        keep_going = nlp.user_callback_iterate(
            it, f, x, zeros, zeros, empty, empty, empty, empty, 0.0, 0.0, 0.0, 1.0, 1.0, 0
        )
        if not keep_going:
            break
    return x, nlp.eval_f(x, False)


def test_driver_recovers_fixed_variable_in_solution(dense_problem):
    problem = dense_problem([0.0, 3.0, 0.0], [1.0, 3.0, 1.0], target=[2.0, 0.5, -1.0])
    nlp = create_formulation(problem, FormulationOptions(fixed_var="fixed"))
    assert nlp.finalize_initialization()
    assert nlp.n == 2

    x, f = _projected_gradient(nlp)
    assert x.local_data.tolist() == pytest.approx([1.0, 0.0])
    assert f == pytest.approx(1.0 + 6.25 + 1.0)

    zeros = np.zeros(nlp.n)
    empty = np.zeros(0)
    nlp.user_callback_solution(SolveStatus.SUCCESS, x, zeros, zeros, empty, empty, empty, empty, f)
    assert problem.solution["x"].tolist() == pytest.approx([1.0, 3.0, 0.0])
    assert problem.solution["obj"] == pytest.approx(8.25)
    assert len(problem.iterates) == 20
    assert all(it["x"].size == 3 for it in problem.iterates)
    assert nlp.run_stats.count("eval_grad_f") == 20


def test_driver_stops_when_user_asks(dense_problem):
    problem = dense_problem([0.0, 0.0], [1.0, 1.0])
    problem.continue_iterations = False
    nlp = create_formulation(problem)
    assert nlp.finalize_initialization()
    _projected_gradient(nlp)
    assert len(problem.iterates) == 1
