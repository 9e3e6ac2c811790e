"""
Tests for the bucket elimination solver.
"""

import itertools
import logging

import numpy as np
import pytest

from idbe.algebra.factor import Factor, FactorKind
from idbe.core.config import BEConfig
from idbe.core.errors import PreconditionViolation, UnknownOperatorError, UnsupportedModelError
from idbe.elimination.aggregate import maximum_expected_utility
from idbe.elimination.arena import FactorArena
from idbe.elimination.buckets import BucketStore
from idbe.elimination.forward import ForwardEliminator, eliminate
from idbe.elimination.policy import PolicyBuilder
from idbe.solver import BucketElimination
from idbe.topology.ordering import OrderMethod
from idbe.topology.structure import InfluenceDiagram


def forward_setup(diagram, order):
    arena = FactorArena(diagram.get_factors())
    store = BucketStore(order)
    store.partition(arena, list(arena.handles()))
    return arena, store, ForwardEliminator(diagram, arena, store)


class TestObserveThenDecide:
    """One chance variable X observed before the decision D."""

    def test_meu(self, observe_then_decide):
        result = BucketElimination(observe_then_decide).solve()
        assert np.isclose(result.meu, 8.0)

    def test_decision_eliminated_first(self, observe_then_decide):
        result = BucketElimination(observe_then_decide).solve()
        assert result.order == (1, 0)

    def test_messages(self, observe_then_decide):
        result = BucketElimination(observe_then_decide).solve()
        arena, store = result.arena, result.buckets

        # decision bucket: max over D of U(X, D), per X-branch
        g = arena[2]
        assert g.scope == (0,)
        assert np.allclose(g.data, [10.0, 5.0])
        assert store.residents(0) == (0, 2)

        roots = [arena[h] for h in store.roots]
        probs = [f for f in roots if f.kind is FactorKind.PROBABILITY]
        utils = [f for f in roots if f.kind is FactorKind.UTILITY]
        assert len(probs) == 1 and np.isclose(probs[0].item(), 1.0)
        assert len(utils) == 1 and np.isclose(utils[0].item(), 8.0)

    def test_policy(self, observe_then_decide):
        result = BucketElimination(observe_then_decide).solve()
        pol = result.policy[1]

        assert pol.factor.scope == (0, 1)
        assert pol.parents == (0,)
        assert np.allclose(pol.factor.data, [[10.0, 0.0], [0.0, 5.0]])
        assert pol.decision_rule().tolist() == [0, 1]
        assert pol.action({0: 1}) == 1

    def test_action_needs_parents(self, observe_then_decide):
        pol = BucketElimination(observe_then_decide).solve().policy[1]
        with pytest.raises(ValueError):
            pol.action()


class TestDecideBlind:
    """A decision with no informational parents."""

    def test_meu(self, decide_blind):
        assert np.isclose(BucketElimination(decide_blind).solve().meu, 3.5)

    def test_policy_has_no_parents(self, decide_blind):
        pol = BucketElimination(decide_blind).solve().policy[0]

        assert pol.factor.scope == (0,)
        assert pol.parents == ()
        assert np.allclose(pol.factor.data, [3.0, 3.5])
        assert int(pol.decision_rule()) == 1
        assert pol.action() == 1


class TestOilWildcatter:
    def brute_force(self, diagram):
        pO, pR, uT, uD = (f.data for f in diagram.factors)
        best = -np.inf
        for t in range(2):
            total = uT[t]
            for r in range(4):
                total += max(sum(pO[o] * pR[o, t, r] * uD[o, d] for o in range(3)) for d in range(2))
            best = max(best, total)
        return best

    def test_meu(self, oil_wildcatter):
        result = BucketElimination(oil_wildcatter).solve()
        assert np.isclose(result.meu, 22.5)
        assert np.isclose(result.meu, self.brute_force(oil_wildcatter))

    @pytest.mark.parametrize("method", list(OrderMethod))
    def test_meu_independent_of_heuristic(self, oil_wildcatter, method):
        result = BucketElimination(oil_wildcatter, BEConfig(order=method)).solve()
        assert np.isclose(result.meu, 22.5)

    def test_policy(self, oil_wildcatter):
        policy = BucketElimination(oil_wildcatter).solve().policy

        assert set(policy) == {0, 2}
        test = policy[0]
        assert test.parents == ()
        assert np.allclose(test.factor.data, [20.0, 22.5])
        assert test.action() == 1

        drill = policy[2]
        assert drill.parents == (0, 1)
        rule = drill.decision_rule()
        assert rule.shape == (2, 4)
        assert rule[1, 0] == 1  # tested, closed structure
        assert rule[1, 1] == 1  # tested, open structure
        assert rule[1, 2] == 0  # tested, diffuse
        assert rule[0, 3] == 1  # untested

    def test_memory_reported(self, oil_wildcatter):
        result = BucketElimination(oil_wildcatter).solve()
        expected = sum(f.nbytes for f in result.arena) / (1024 * 1024)
        assert np.isclose(result.memory_mb, expected)
        assert result.policy_memory_mb > 0


class TestInvariants:
    def test_processed_variables_leave_no_trace(self, oil_wildcatter):
        order = BucketElimination(oil_wildcatter).solve().order
        arena, store, engine = forward_setup(oil_wildcatter, order)

        done = set()
        for x in order:
            engine.process(x)
            done.add(x)
            for h in store.unconsumed():
                assert not done.intersection(arena[h].scope)

    def test_derived_kinds(self, oil_wildcatter):
        order = BucketElimination(oil_wildcatter).solve().order
        arena, store, engine = forward_setup(oil_wildcatter, order)

        for x in order:
            phi, psi = engine.split(store.residents(x))
            created = engine.process(x)
            kinds = [arena[h].kind for h in created]
            if oil_wildcatter.var(x).is_decision:
                expected = [FactorKind.PROBABILITY] * len(phi) + [FactorKind.UTILITY]
            else:
                expected = [FactorKind.PROBABILITY] + [FactorKind.UTILITY] * len(psi)
            assert kinds == expected

    def test_roots_are_exactly_constants(self, oil_wildcatter):
        result = BucketElimination(oil_wildcatter).solve()
        constants = {h for h in result.arena.handles() if result.arena[h].is_constant}
        assert set(result.buckets.roots) == constants

    def test_deterministic(self, oil_wildcatter):
        solver = BucketElimination(oil_wildcatter)
        a = solver.solve()
        b = solver.clone().solve()

        assert a.meu == b.meu
        assert a.order == b.order
        for d in a.policy:
            assert np.array_equal(a.policy[d].factor.data, b.policy[d].factor.data)

    def test_empty_bucket_creates_nothing(self):
        diagram = InfluenceDiagram.from_named(
            {"X": ("chance", 2), "D": ("decision", 2), "Z": ("chance", 3)},
            {
                "pX": (("X",), "probability", [0.6, 0.4]),
                "u": (("X", "D"), "utility", [[10.0, 0.0], [0.0, 5.0]]),
            },
            temporal_order=[["X"], ["D"], ["Z"]],
        )
        arena, store, engine = forward_setup(diagram, [2, 1, 0])

        assert engine.process(2) == []
        assert len(arena) == 2
        assert store.roots == []
        assert store.is_processed(2)

        for x in (1, 0):
            engine.process(x)
        assert np.isclose(maximum_expected_utility(arena, store), 8.0)

    def test_decision_nothing_depends_on(self):
        diagram = InfluenceDiagram.from_named(
            {"D": ("decision", 3), "X": ("chance", 2)},
            {
                "pX": (("X",), "probability", [0.5, 0.5]),
                "u": (("X",), "utility", [2.0, 4.0]),
            },
            temporal_order=[["D"], ["X"]],
        )
        result = BucketElimination(diagram).solve()
        pol = result.policy[0]

        assert np.isclose(result.meu, 3.0)
        assert pol.factor.scope == ()
        assert pol.parents == ()
        assert pol.decision_rule().shape == ()
        assert pol.action() == 0

    def test_zero_probability_division(self):
        # X is impossible to reach when A = 1: its message is 0 there
        diagram = InfluenceDiagram()
        a = diagram.add_variable(2)
        x = diagram.add_variable(2)
        diagram.add_factor(Factor((a,), np.array([1.0, 0.0])))
        diagram.add_factor(Factor((a, x), np.array([[0.5, 0.5], [0.0, 0.0]])))
        diagram.add_factor(Factor((x,), np.array([2.0, 4.0]), FactorKind.UTILITY))
        diagram.set_temporal_order([[a], [x]])

        result = BucketElimination(diagram).solve()
        g = [f for f in result.arena if f.kind is FactorKind.UTILITY and f.scope == (a,)]

        assert len(g) == 1
        assert np.allclose(g[0].data, [3.0, 0.0])
        assert np.isclose(result.meu, 3.0)


class TestFailures:
    def test_limid_rejected(self, observe_then_decide):
        observe_then_decide.limid = True
        events = []
        solver = BucketElimination(observe_then_decide, sink=events.append)

        with pytest.raises(UnsupportedModelError):
            solver.solve()
        assert events == []
        with pytest.raises(PreconditionViolation):
            solver.policy

    def test_decisions_without_temporal_order(self):
        diagram = InfluenceDiagram()
        d = diagram.add_variable(2, "decision")
        diagram.add_factor(Factor((d,), np.array([1.0, 2.0]), FactorKind.UTILITY))

        with pytest.raises(UnsupportedModelError):
            BucketElimination(diagram).solve()

    def test_unknown_operator(self):
        f = Factor((0,), np.array([1.0, 2.0]))
        with pytest.raises(UnknownOperatorError):
            eliminate(f, 0, "prod")

    @pytest.mark.parametrize("op,expected", [("sum", 3.0), ("max", 2.0), ("min", 1.0)])
    def test_known_operators(self, op, expected):
        f = Factor((0,), np.array([1.0, 2.0]))
        assert eliminate(f, 0, op).item() == expected

    def test_results_before_solve(self, observe_then_decide):
        solver = BucketElimination(observe_then_decide)
        with pytest.raises(PreconditionViolation):
            solver.meu

    def test_aggregate_before_forward_pass(self, observe_then_decide):
        arena, store, engine = forward_setup(observe_then_decide, [1, 0])
        engine.process(1)

        with pytest.raises(PreconditionViolation):
            maximum_expected_utility(arena, store)
        with pytest.raises(PreconditionViolation):
            PolicyBuilder(observe_then_decide, arena, store).build()

    def test_bucket_processed_twice(self, observe_then_decide):
        arena, store, engine = forward_setup(observe_then_decide, [1, 0])
        engine.process(1)
        with pytest.raises(RuntimeError):
            engine.process(1)


class TestChanceOnly:
    def test_expected_utility_without_decisions(self):
        # Z = E[U(A, B)] under P(A) P(B | A)
        pA = np.array([0.2, 0.8])
        pBA = np.array([[0.9, 0.1], [0.4, 0.6]])
        uAB = np.array([[1.0, 2.0], [3.0, 4.0]])

        diagram = InfluenceDiagram()
        a = diagram.add_variable(2)
        b = diagram.add_variable(2)
        diagram.add_factor(Factor((a,), pA))
        diagram.add_factor(Factor((a, b), pBA))
        diagram.add_factor(Factor((a, b), uAB, FactorKind.UTILITY))

        expected = sum(
            pA[i] * pBA[i, j] * uAB[i, j] for i, j in itertools.product(range(2), range(2))
        )
        result = BucketElimination(diagram).solve()
        assert np.isclose(result.meu, expected)
        assert result.policy == {}


class TestDebugChecks:
    @pytest.fixture
    def decision_dependent(self):
        # P(X, D) varies along D; the decision bucket slices it at D = 0
        return InfluenceDiagram.from_named(
            {"X": ("chance", 2), "D": ("decision", 2)},
            {
                "pXD": (("X", "D"), "probability", [[0.2, 0.8], [0.8, 0.2]]),
                "u": (("X",), "utility", [1.0, 2.0]),
            },
            temporal_order=[["X"], ["D"]],
        )

    def test_warns_on_decision_dependent_probability(self, decision_dependent, caplog):
        with caplog.at_level(logging.WARNING, logger="idbe"):
            result = BucketElimination(decision_dependent, BEConfig(debug=True)).solve()

        assert "slicing at 0 assumes it does not" in caplog.text
        assert np.isclose(result.meu, 1.8)

    def test_no_warning_without_debug(self, decision_dependent, caplog):
        with caplog.at_level(logging.WARNING, logger="idbe"):
            result = BucketElimination(decision_dependent).solve()

        assert "slicing at 0" not in caplog.text
        assert np.isclose(result.meu, 1.8)

    def test_no_warning_for_decision_free_probability(self, observe_then_decide, caplog):
        with caplog.at_level(logging.WARNING, logger="idbe"):
            BucketElimination(observe_then_decide, BEConfig(debug=True)).solve()

        assert "slicing at 0" not in caplog.text
