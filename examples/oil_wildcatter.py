"""
Example: the oil wildcatter.

Decide whether to run a seismic test (T), observe its result (R), then
decide whether to drill (D) without knowing the amount of oil (O).
"""

import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from main import load_problem_from_json
from idbe import BEConfig, BucketElimination, OrderMethod


def main():
    diagram, _ = load_problem_from_json(str(Path(__file__).with_suffix(".json")))
    print(diagram)

    for method in OrderMethod:
        result = BucketElimination(diagram, BEConfig(order=method)).solve()
        order = " ".join(diagram.var_label(v) for v in result.order)
        print(f"{method.name:<20} order={order}  w*={result.induced_width}  MEU={result.meu:.4f}")

    result = BucketElimination(diagram).solve()
    print("\nPolicy:")
    for d, pol in result.policy.items():
        parents = [diagram.var_label(v) for v in pol.parents]
        print(f"  {diagram.var_label(d)} given {parents or '-'}:")
        print(f"    {np.asarray(pol.decision_rule()).tolist()}")


if __name__ == "__main__":
    main()
