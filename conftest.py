"""
Shared fixtures: small influence diagrams with known answers.
"""

import numpy as np
import pytest

from idbe.topology.structure import InfluenceDiagram


@pytest.fixture
def observe_then_decide():
    """X observed before D; MEU = 0.6 * 10 + 0.4 * 5 = 8."""
    return InfluenceDiagram.from_named(
        {"X": ("chance", 2), "D": ("decision", 2)},
        {
            "pX": (("X",), "probability", [0.6, 0.4]),
            "u": (("X", "D"), "utility", [[10.0, 0.0], [0.0, 5.0]]),
        },
        temporal_order=[["X"], ["D"]],
    )


@pytest.fixture
def decide_blind():
    """D taken before X is known; MEU = max(0.3 * 10, 0.7 * 5) = 3.5."""
    return InfluenceDiagram.from_named(
        {"D": ("decision", 2), "X": ("chance", 2)},
        {
            "pX": (("X",), "probability", [0.3, 0.7]),
            "u": (("X", "D"), "utility", [[10.0, 0.0], [0.0, 5.0]]),
        },
        temporal_order=[["D"], ["X"]],
    )


@pytest.fixture
def oil_wildcatter():
    """Test (T), observe result (R), drill (D), oil amount (O); MEU = 22.5."""
    p_seismic = np.array([
        [0.1, 0.3, 0.6],
        [0.3, 0.4, 0.3],
        [0.5, 0.4, 0.1],
    ])
    p_result = np.zeros((3, 2, 4))
    p_result[:, 0, 3] = 1.0
    p_result[:, 1, :3] = p_seismic
    return InfluenceDiagram.from_named(
        {"T": ("decision", 2), "R": ("chance", 4), "D": ("decision", 2), "O": ("chance", 3)},
        {
            "pO": (("O",), "probability", [0.5, 0.3, 0.2]),
            "pR": (("O", "T", "R"), "probability", p_result),
            "uT": (("T",), "utility", [0.0, -10.0]),
            "uD": (("O", "D"), "utility", [[0.0, -70.0], [0.0, 50.0], [0.0, 200.0]]),
        },
        temporal_order=[["T"], ["R"], ["D"], ["O"]],
    )
