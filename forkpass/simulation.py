"""A deterministic, single threaded rendition of a ring.

The philosophers are the same `Philosopher` objects a `Ring` runs, but
instead of threads and mailboxes a seeded scheduler picks one thing to
happen at a time: a philosopher moves on in its cycle, or the oldest
message on one sender/receiver channel is delivered. Messages on a
channel are delivered in the order they were sent.

After every step the simulation checks that

- no fork is held by two philosophers, and an eater holds both its forks,
- something can still happen (otherwise it raises Deadlock),
- a philosopher finishing a meal has answered every request it deferred
  before that meal began.
"""
from __future__ import annotations

import collections
import random
from typing import Deque, Dict, List, Mapping, Optional, Tuple

from .logger import Logger, WARN
from .message import Kind, Message
from .philosopher import Phase, Philosopher, ProtocolError


class SafetyViolation(ProtocolError):
    pass


class Deadlock(ProtocolError):
    pass


class UnresolvedRequest(ProtocolError):
    pass


Channel = Tuple[int, int]


class SimNetwork:
    """FIFO channels keyed by (sender, receiver)"""

    def __init__(self, simulation: Simulation):
        self.simulation = simulation
        self.channels: Dict[Channel, Deque[Message]] = \
            collections.defaultdict(collections.deque)
        self.sent = 0

    def send(self, dest: int, message: Message) -> None:
        self.channels[(message.sender, dest)].append(message)
        self.sent += 1
        self.simulation._sent(dest, message)

    def pending(self, src: int, dst: int) -> List[Message]:
        return list(self.channels.get((src, dst), ()))

    def busy(self) -> List[Channel]:
        return sorted(c for c, q in self.channels.items() if q)

    def in_flight(self) -> int:
        return sum(len(q) for q in self.channels.values())


class Simulation:
    """A seeded step-by-step run of an n philosopher ring.

    Args:
        n: Number of philosophers.
        owners: Initial owner of each fork.
        check: Whether to reject owner maps that allow deadlock.
        policy: Deferral policy for every philosopher.
        seed: Seed of the scheduler.
        log: Event log, a private one is made by default.
    """

    def __init__(self, n: int, owners: Optional[Mapping[int, int]] = None,
                 check: bool = True, policy=None, seed: int = 0,
                 log: Optional[Logger] = None):
        self.n = n
        self.log = Logger(f'simulation(n={n})', 1000) if log is None else log
        self.network = SimNetwork(self)
        self.philosophers: List[Philosopher] = [
            Philosopher(k, n, self.network, owners=owners, check=check,
                        policy=policy, log=self.log)
            for k in range(n)]
        self.rng = random.Random(seed)
        self.steps = 0
        # fork a hungry philosopher has asked for and is blocked on
        self.awaiting: List[Optional[int]] = [None] * n
        # per holder, deferred (fork, requester) -> meal that must answer it
        self.outstanding: List[Dict[Tuple[int, int], int]] = \
            [{} for _ in range(n)]
        self.grants: List[Tuple[int, int, int]] = []

    # -- bookkeeping

    def _sent(self, dest: int, message: Message) -> None:
        if message.kind is Kind.GRANT:
            self.grants.append((message.sender, dest, message.fork_id))
            self.outstanding[message.sender].pop(
                (message.fork_id, dest), None)

    @property
    def meals(self) -> List[int]:
        return [p.meals for p in self.philosophers]

    def phases(self) -> List[Phase]:
        return [p.phase for p in self.philosophers]

    def holders(self, fork_id: int) -> List[int]:
        result = []
        for p in self.philosophers:
            fork = p.fork(fork_id)
            if fork is not None and fork.held_by_me:
                result.append(p.ident)
        return result

    def pending(self, src: int, dst: int) -> List[Message]:
        return self.network.pending(src, dst)

    # -- checks

    def check_safety(self) -> None:
        for fork_id in range(self.n):
            holders = self.holders(fork_id)
            if len(holders) > 1:
                raise SafetyViolation(
                    f'fork {fork_id} held by {holders} after step {self.steps}')
        for p in self.philosophers:
            if p.phase is Phase.EATING and not p.holds_both():
                raise SafetyViolation(f'{p} is eating without both forks')

    def _check_answered(self, p: Philosopher) -> None:
        late = sorted(key for key, meal in self.outstanding[p.ident].items()
                      if meal <= p.meals)
        if late:
            raise UnresolvedRequest(
                f'P{p.ident} finished meal {p.meals} without answering '
                f'(fork, requester) {late}')

    # -- moves

    def can_advance(self, k: int) -> bool:
        p = self.philosophers[k]
        if p.phase is not Phase.HUNGRY:
            return True
        waiting = self.awaiting[k]
        return waiting is None or p.fork(waiting).held_by_me

    def advance(self, k: int) -> None:
        """Move philosopher k one step along its cycle.

        A thinker becomes hungry. A hungry philosopher that is not blocked
        asks for its first missing fork, or starts eating if it has both.
        An eater finishes and hands out the forks it was asked for.
        """
        if not self.can_advance(k):
            raise ProtocolError(f'P{k} is still waiting for fork '
                                f'{self.awaiting[k]}')
        p = self.philosophers[k]
        if p.phase is Phase.THINKING:
            p.become_hungry()
        elif p.phase is Phase.EATING:
            p.finish_eating()
            self._check_answered(p)
        else:
            self.awaiting[k] = None
            fork = p.missing()
            if fork is None:
                p.start_eating()
            else:
                p.request(fork)
                self.awaiting[k] = fork.id

    def can_deliver(self, src: int, dst: int) -> bool:
        # an eater handles nothing until its meal is over
        return bool(self.network.channels.get((src, dst))) and \
            self.philosophers[dst].phase is not Phase.EATING

    def deliver(self, src: int, dst: int) -> Message:
        """Hand the oldest message from src to dst"""
        if not self.can_deliver(src, dst):
            raise ProtocolError(f'nothing deliverable from P{src} to P{dst}')
        message = self.network.channels[(src, dst)].popleft()
        p = self.philosophers[dst]
        before = len(p.deferred)
        p.dispatch(message)
        if len(p.deferred) > before:
            key = (message.fork_id, message.sender)
            self.outstanding[dst].setdefault(key, p.meals + 1)
        return message

    def deliver_all(self) -> int:
        """Deliver messages until none can be delivered"""
        count = 0
        channels = [c for c in self.network.busy() if self.can_deliver(*c)]
        while channels:
            for src, dst in channels:
                if self.can_deliver(src, dst):
                    self.deliver(src, dst)
                    count += 1
            channels = [c for c in self.network.busy()
                        if self.can_deliver(*c)]
        self.check_safety()
        return count

    def make_hungry(self, k: int) -> None:
        if self.philosophers[k].phase is not Phase.THINKING:
            raise ProtocolError(f'P{k} is not thinking')
        self.advance(k)

    def moves(self) -> List[Tuple]:
        result: List[Tuple] = [('deliver', src, dst)
                               for src, dst in self.network.busy()
                               if self.can_deliver(src, dst)]
        result.extend(('advance', k) for k in range(self.n)
                      if self.can_advance(k))
        return result

    def step(self) -> Tuple:
        """Make one randomly chosen move and check the result"""
        moves = self.moves()
        if not moves:
            raise Deadlock(
                f'no move possible after {self.steps} steps: '
                + '; '.join(str(p) for p in self.philosophers))
        move = self.rng.choice(moves)
        if move[0] == 'deliver':
            self.deliver(move[1], move[2])
        else:
            self.advance(move[1])
        self.steps += 1
        self.check_safety()
        return move

    def run(self, steps: int) -> Simulation:
        for _ in range(steps):
            self.step()
        return self

    def run_until(self, meals: int, max_steps: int) -> Simulation:
        """Step until every philosopher has eaten meals times.

        Raises ProtocolError if that takes more than max_steps.
        """
        taken = 0
        while min(self.meals) < meals:
            if taken >= max_steps:
                self.log(f'gave up after {taken} steps, meals {self.meals}',
                         WARN)
                raise ProtocolError(
                    f'meals {self.meals} after {taken} steps, '
                    f'wanted {meals} each')
            self.step()
            taken += 1
        return self
