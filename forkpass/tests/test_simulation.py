import pytest

from forkpass import *
from forkpass import message as msgs

def test_simulation_init():
    sim = Simulation(3)
    assert sim.phases() == [Phase.THINKING] * 3
    assert sim.meals == [0, 0, 0]
    assert sim.holders(0) == [0]
    assert sim.holders(2) == [1]

def test_simulation_rejects_cyclic_orientation():
    with pytest.raises(OrientationError):
        Simulation(3, owners={1: 0, 2: 1, 0: 2})

@pytest.mark.parametrize('n', [3, 4, 5, 6])
@pytest.mark.parametrize('policy', ['lifo', 'fifo'])
def test_safety_and_progress(n, policy):
    # every step checks safety, deferred answers and that a move exists
    for seed in range(5):
        Simulation(n, policy=policy, seed=seed).run(1000)

@pytest.mark.parametrize('n', [3, 4, 5, 6])
def test_everybody_eats(n):
    for seed in range(5):
        sim = Simulation(n, seed=seed)
        sim.run_until(meals=5, max_steps=50000)
        assert min(sim.meals) >= 5

@pytest.mark.parametrize('n', [2, 3, 4, 5, 6])
def test_all_hungry_makes_progress(n):
    for seed in range(20):
        sim = Simulation(n, seed=seed)
        for k in range(n):
            sim.make_hungry(k)
        assert sim.phases() == [Phase.HUNGRY] * n
        steps = 0
        while max(sim.meals) == 0:
            sim.step()
            steps += 1
            assert steps < 1000

def test_custom_orientation_progress():
    owners = {0: 0, 1: 0, 2: 2}
    for seed in range(10):
        Simulation(3, owners=owners, seed=seed).run_until(3, 20000)

def test_cyclic_orientation_deadlocks():
    n = 4
    owners = {(k + 1) % n: k for k in range(n)}
    sim = Simulation(n, owners=owners, check=False)
    for k in range(n):
        sim.make_hungry(k)
    for k in range(n):
        sim.advance(k)       # everyone asks for fork k
    sim.deliver_all()        # and gets it, giving away their other fork
    for k in range(n):
        sim.advance(k)       # everyone asks for fork k + 1, now clean
    sim.deliver_all()
    assert all(len(p.deferred) == 1 for p in sim.philosophers)
    assert sim.moves() == []
    with pytest.raises(Deadlock):
        sim.step()

def test_ownership_transfer():
    sim = Simulation(3)
    sim.make_hungry(2)
    sim.advance(2)
    assert sim.pending(2, 1) == [msgs.request(2, 2)]
    sim.deliver(2, 1)
    # in flight: nobody holds it
    assert sim.holders(2) == []
    assert sim.pending(1, 2) == [msgs.grant(2, 1)]
    sim.deliver(1, 2)
    assert sim.holders(2) == [2]
    mine = sim.philosophers[2].fork(2)
    theirs = sim.philosophers[1].fork(2)
    assert not mine.dirty
    assert mine.last_known_holder == 1
    assert not theirs.held_by_me
    assert theirs.last_known_holder == 2

def test_three_philosopher_contention():
    # P0 holds F0 and F1, P2 holds F2, P1 holds nothing
    sim = Simulation(3, owners={0: 0, 1: 0, 2: 2})
    p0, p1, p2 = sim.philosophers
    sim.make_hungry(1)
    sim.make_hungry(2)
    sim.advance(1)                      # P1 asks P0 for F1
    sim.advance(2)                      # P2 asks P0 for F0
    sim.deliver(1, 0)
    sim.deliver(2, 0)
    sim.deliver(0, 1)
    sim.deliver(0, 2)
    assert sim.holders(0) == [2] and sim.holders(1) == [1]

    sim.advance(1)                      # P1 asks P2 for F2
    assert sim.pending(1, 2) == [msgs.request(2, 1)]
    sim.deliver(1, 2)                   # dirty, so P2 gives it up
    assert sim.grants[-1] == (2, 1, 2)
    sim.deliver(2, 1)
    assert sim.holders(2) == [1]

    sim.advance(2)                      # P2 asks for F2 back
    sim.deliver(2, 1)
    # the loser is deferred, exactly one grant of F2 so far
    assert list(p1.deferred) == [msgs.request(2, 2)]
    assert [g for g in sim.grants if g[2] == 2] == [(2, 1, 2)]

    sim.advance(1)                      # P1 eats
    assert p1.phase is Phase.EATING
    assert sim.pending(1, 2) == []
    sim.advance(1)                      # and answers P2 as it finishes
    assert p1.meals == 1
    assert sim.pending(1, 2) == [msgs.grant(2, 1)]
    assert not p1.deferred
    assert sim.outstanding[1] == {}

    sim.deliver(1, 2)
    sim.advance(2)
    assert p2.phase is Phase.EATING
    assert p2.meals == 1

def test_unanswered_request_detected():
    sim = Simulation(3)
    p0 = sim.philosophers[0]
    sim.make_hungry(1)
    sim.advance(1)
    p0.become_hungry()
    p0.fork(1).dirty = False        # P0 keeps F1 for one meal
    sim.deliver(1, 0)
    assert sim.outstanding[0] == {(1, 1): 1}
    p0.deferred.clear()             # and then forgets who asked
    sim.advance(0)                  # eats
    with pytest.raises(UnresolvedRequest):
        sim.advance(0)

def test_safety_violation_detected():
    sim = Simulation(3)
    sim.philosophers[2].fork(2).held_by_me = True
    with pytest.raises(SafetyViolation):
        sim.check_safety()

def test_cannot_advance_while_waiting():
    sim = Simulation(3)
    sim.make_hungry(2)
    sim.advance(2)
    assert not sim.can_advance(2)
    with pytest.raises(ProtocolError):
        sim.advance(2)
    with pytest.raises(ProtocolError):
        sim.make_hungry(2)
    with pytest.raises(ProtocolError):
        sim.deliver(0, 2)

def test_no_delivery_to_eater():
    sim = Simulation(3)
    sim.make_hungry(0)
    sim.advance(0)
    assert sim.philosophers[0].phase is Phase.EATING
    sim.make_hungry(1)
    sim.advance(1)
    assert not sim.can_deliver(1, 0)
    assert ('deliver', 1, 0) not in sim.moves()

def test_run_until_gives_up():
    with pytest.raises(ProtocolError):
        Simulation(3).run_until(meals=1000, max_steps=10)

def test_seeded_runs_repeat():
    a = Simulation(5, seed=11).run(500)
    b = Simulation(5, seed=11).run(500)
    assert a.meals == b.meals
    assert a.grants == b.grants
