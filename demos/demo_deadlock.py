from forkpass import *

def run_demo(n=4):
    """ What happens when every philosopher starts out holding the fork it
    shares with its successor """
    owners = {(k + 1) % n: k for k in range(n)}
    try:
        Simulation(n, owners=owners)
    except OrientationError as e:
        print('Refused:', e)
    sim = Simulation(n, owners=owners, check=False)
    for k in range(n):
        sim.make_hungry(k)
    for k in range(n):
        sim.advance(k)
    sim.deliver_all()
    for k in range(n):
        sim.advance(k)
    sim.deliver_all()
    try:
        sim.step()
    except Deadlock as e:
        return e
    return None

def main():
    print('And without the check:', run_demo())

if __name__ == '__main__':
    main()
