from forkpass import *

def run_demo():
    """ Step through rings of 3 to 6 philosophers with a seeded scheduler """
    results = {}
    for n in range(3, 7):
        for policy in DeferralPolicy:
            sim = Simulation(n, policy=policy, seed=n)
            sim.run_until(meals=10, max_steps=100000)
            results[(n, policy.name)] = (sim.steps, sim.meals)
    return results

def main():
    for (n, policy), (steps, meals) in run_demo().items():
        print(f'n={n} {policy}: every philosopher ate 10 times '
              f'within {steps} steps, meals {meals}')

if __name__ == '__main__':
    main()
