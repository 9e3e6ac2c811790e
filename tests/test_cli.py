"""
Tests for the command line entry points.
"""

import argparse
import json

import numpy as np
import pytest

from main import cmd_solve, load_problem_from_json, result_to_dict
from idbe.solver import BucketElimination


@pytest.fixture
def model_file(tmp_path):
    model = {
        "variables": {"X": {"type": "chance", "card": 2}, "D": ["decision", 2]},
        "factors": {
            "pX": {"scope": ["X"], "kind": "probability", "values": [0.6, 0.4]},
            "u": {"scope": ["X", "D"], "kind": "utility", "values": [10, 0, 0, 5]},
        },
        "temporal_order": [["X"], ["D"]],
        "config": {"order": "minwidth"},
    }
    path = tmp_path / "model.json"
    path.write_text(json.dumps(model))
    return path


class TestLoad:
    def test_load(self, model_file):
        diagram, config = load_problem_from_json(str(model_file))

        assert diagram.nvar == 2
        assert diagram.decisions() == [1]
        assert config == {"order": "minwidth"}

    def test_result_to_dict(self, model_file):
        diagram, _ = load_problem_from_json(str(model_file))
        out = result_to_dict(diagram, BucketElimination(diagram).solve())

        assert np.isclose(out["meu"], 8.0)
        assert out["order"] == ["D", "X"]
        assert out["policy"]["D"]["parents"] == ["X"]
        assert out["policy"]["D"]["decision_rule"] == [0, 1]


class TestSolveCommand:
    def test_solve_writes_output(self, model_file, tmp_path):
        out = tmp_path / "result.json"
        args = argparse.Namespace(input=str(model_file), output=str(out), order=None, debug=False)

        assert cmd_solve(args) == 0
        result = json.loads(out.read_text())
        assert np.isclose(result["meu"], 8.0)

    def test_limid_fails(self, model_file, tmp_path):
        data = json.loads(model_file.read_text())
        data["limid"] = True
        model_file.write_text(json.dumps(data))
        args = argparse.Namespace(input=str(model_file), output=None, order=None, debug=False)

        assert cmd_solve(args) == 1

    def test_unwritable_output(self, model_file, tmp_path):
        out = tmp_path / "missing" / "result.json"
        args = argparse.Namespace(input=str(model_file), output=str(out), order=None, debug=False)

        assert cmd_solve(args) == 1
        assert not out.exists()

    def test_missing_file(self, tmp_path):
        args = argparse.Namespace(input=str(tmp_path / "nope.json"), output=None, order=None, debug=False)
        assert cmd_solve(args) == 1
