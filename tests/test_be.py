"""
Tests for the named-table entry points.
"""

import numpy as np
import pytest

from idbe.be import be_solve, compute_meu, compute_policy
from idbe.core.errors import UnsupportedModelError
from idbe.runtime.trace import EventKind, RecordingSink

VARIABLES = {"X": ("chance", 2), "D": ("decision", 2)}
FACTORS = {
    "pX": (("X",), "probability", [0.6, 0.4]),
    "u": (("X", "D"), "utility", [[10.0, 0.0], [0.0, 5.0]]),
}


class TestEntryPoints:
    def test_be_solve(self):
        sink = RecordingSink()
        result = be_solve(VARIABLES, FACTORS, [["X"], ["D"]], order="wtminwidth", sink=sink)

        assert np.isclose(result.meu, 8.0)
        assert result.order == (1, 0)
        assert len(sink.of_kind(EventKind.DONE)) == 1

    def test_compute_meu_blind(self):
        assert np.isclose(compute_meu(VARIABLES, FACTORS, [["D"], ["X"]]), 6.0)

    def test_compute_policy(self):
        policy = compute_policy(VARIABLES, FACTORS, [["X"], ["D"]])

        assert list(policy) == ["D"]
        assert policy["D"]["parents"] == ["X"]
        assert policy["D"]["scope"] == ["X", "D"]
        assert policy["D"]["rule"].tolist() == [0, 1]
        assert np.allclose(policy["D"]["table"], [[10.0, 0.0], [0.0, 5.0]])

    def test_missing_temporal_order(self):
        with pytest.raises(UnsupportedModelError):
            compute_meu(VARIABLES, FACTORS, None)
