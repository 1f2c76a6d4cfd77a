import sys

from forkpass import *

def run_demo(n=5, seconds=2.0):
    """ Fork passing philosophers, each in its own thread """
    ring = Ring(n, think_ms=(0, 20, 1), seed=0)
    meals = ring.run_for(seconds)
    assert not ring.table.violations, ring.table.violations
    return meals

def main():
    n = int(sys.argv[1]) if len(sys.argv) > 1 else 5
    meals = run_demo(n)
    print(
        'Meals served around the table: ',
        meals,
        '. Nobody was left hungry' if min(meals) > 0 else
        '. Somebody is still waiting',
    )

if __name__ == '__main__':
    main()
