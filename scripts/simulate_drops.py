"""Compare analytic drop rates with a Monte-Carlo run.

Usage: python scripts/simulate_drops.py [pulls] [common rare epic legendary]
"""
import sys
import pathlib

# Ensure repository root is on sys.path so imports work when running this script
ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from lootforge.utils import odds
from lootforge.utils.models import DEFAULT_WEIGHTS, WeightTable


def main(argv: list[str]) -> None:
    pulls = int(argv[0]) if argv else 100_000
    if len(argv) >= 5:
        c, r, e, l = (int(x) for x in argv[1:5])
        weights = WeightTable(common=c, rare=r, epic=e, legendary=l)
    else:
        weights = DEFAULT_WEIGHTS

    info = odds.summary(weights)
    sim = odds.simulate(weights, pulls)
    print(f"Weights: {weights.as_tuple()}  pulls: {pulls}")
    print(f"{'tier':<10} {'table':>8} {'simulated':>10}")
    for name, p in info["probabilities"].items():
        print(f"{name:<10} {p:>8.4f} {sim['rates'][name]:>10.4f}")
    print(f"legendary incl. pity (analytic): {info['legendary_rate_with_pity']:.4f}")
    print(f"pity-forced legendaries: {sim['pity_forced']}")
    print(f"expected power per box (no pity): {info['expected_power']}")


if __name__ == "__main__":
    main(sys.argv[1:])
