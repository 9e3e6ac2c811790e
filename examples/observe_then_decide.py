"""
Example: observe a chance variable, then decide.

X -> D, with utility U(X, D).
"""

import numpy as np
from idbe import InfluenceDiagram, BucketElimination, RecordingSink, EventKind


def main():
    # Variables: X observed before decision D
    variables = {
        "X": ("chance", 2),
        "D": ("decision", 2),
    }

    # P(X)
    p_X = np.array([0.6, 0.4])

    # U(X, D): match the action to the state
    u_XD = np.array([
        [10.0, 0.0],
        [0.0, 5.0],
    ])

    factors = {
        "pX": (("X",), "probability", p_X),
        "u": (("X", "D"), "utility", u_XD),
    }

    diagram = InfluenceDiagram.from_named(variables, factors, temporal_order=[["X"], ["D"]])

    # Solve, recording trace events
    sink = RecordingSink()
    print("Running bucket elimination on X -> D ...")
    result = BucketElimination(diagram, sink=sink).solve()

    print(f"\nMEU = {result.meu:.6f}")
    for d, pol in result.policy.items():
        print(f"Policy for {diagram.var_label(d)}: {pol.decision_rule()}")

    print("\nBuckets processed:")
    for ev in sink.of_kind(EventKind.BUCKET_END):
        print(f"  {diagram.var_label(ev.var)}: created {ev.payload['created']}")

    # Verify by brute force
    print("\n--- Verification by brute force ---")
    meu = sum(p_X[x] * max(u_XD[x, d] for d in range(2)) for x in range(2))
    print(f"MEU (brute force) = {meu:.6f}")
    print(f"MEU (BE)          = {result.meu:.6f}")
    print(f"Match: {np.isclose(meu, result.meu)}")


if __name__ == "__main__":
    main()
