from __future__ import annotations

import collections
import enum
import random
from typing import Deque, Mapping, Optional, Tuple

from . import config
from .fork import Fork, check_orientation, default_owners, make_forks
from . import logger
from .logger import Logger, THINK, HUNGER, EAT, REQUEST, GRANT, DEFER, WARN
from . import message as msgs
from .message import Kind, Message
from .register import Debuggable
from . import util
from .util import Nanoseconds


class ProtocolError(Exception):
    """The fork protocol was driven into a state it forbids"""
    pass


class Phase(enum.Enum):
    THINKING = 'thinking'
    HUNGRY = 'hungry'
    EATING = 'eating'

    def __str__(self):
        return self.name


class DeferralPolicy(enum.Enum):
    """The order deferred requests are answered in after a meal.

    LIFO answers the most recent request first and can keep a neighbour
    that asked long ago waiting behind one that asked just now.
    """
    LIFO = 'lifo'
    FIFO = 'fifo'

    @classmethod
    def parse(cls, value) -> DeferralPolicy:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f'deferral policy should be lifo or fifo, '
                             f'not {value!r}') from None


class Philosopher(Debuggable):
    """One process of the ring.

    It holds the records of the two forks it shares with its neighbours
    and a list of requests it could not answer yet. All of that state is
    touched only by the thread running `run`, or by whoever steps the
    philosopher by hand (see `forkpass.simulation`).

    Args:
        ident: This philosopher's id, 0..n-1.
        n: The number of philosophers on the ring.
        network: Anything with ``send(dest, message)``. `run` also needs
            ``inbox(ident)`` returning a `forkpass.mailbox.Mailbox`.
        owners: The initial owner of each fork, see `forkpass.fork`.
        check: Whether to reject owner maps that allow deadlock.
        policy: A DeferralPolicy or its name, defaults to configuration.
        rng: Source of think times.
        think_ms: (min, max, step) think time in milliseconds.
        observer: Told when this philosopher starts and stops eating.
        log: Where events are recorded.
        trace: Print a status line for each phase change.
    """

    def __init__(self, ident: int, n: int, network,
                 owners: Optional[Mapping[int, int]] = None,
                 check: bool = True,
                 policy=None,
                 rng: Optional[random.Random] = None,
                 think_ms: Optional[Tuple[int, int, int]] = None,
                 observer=None,
                 log: Optional[Logger] = None,
                 trace: Optional[bool] = None):
        super().__init__()
        if owners is None:
            owners = default_owners(n)
        if check:
            check_orientation(owners, n)
        if not 0 <= ident < n:
            raise ValueError(f'philosopher id {ident} is not in 0..{n-1}')
        self.ident = ident
        self.n = n
        self.network = network
        self.forks: Tuple[Fork, Fork] = make_forks(ident, n, owners)
        self.deferred: Deque[Message] = collections.deque()
        self.policy = DeferralPolicy.parse(
            config.deferral if policy is None else policy)
        self.phase = Phase.THINKING
        self.meals = 0
        if rng is None:
            seed = ident + 1 if config.seed is None else config.seed + ident + 1
            rng = random.Random(seed)
        self.rng = rng
        if think_ms is None:
            think_ms = (config.think_min_ms, config.think_max_ms,
                        config.think_step_ms)
        low, high, step = think_ms
        if step <= 0 or low < 0 or high < low:
            raise ValueError(f'bad think time range {think_ms}')
        self.think_ms = think_ms
        self.observer = observer
        self.log = logger.log if log is None else log
        self.trace = config.trace if trace is None else trace
        self._inbox = None
        self.register()

    def __str__(self):
        forks = ', '.join(str(f) for f in self.forks)
        deferred = ', '.join(f'F{m.fork_id}->P{m.sender}' for m in self.deferred)
        return f'PHILOSOPHER P{self.ident}: {self.phase} [{forks}] ' \
               f'deferred=[{deferred}] meals={self.meals}'

    def show_state(self, file):
        print(str(self), file=file)

    def _log(self, text: str, bits: int):
        self.log(f'P{self.ident} {text}', bits)

    def _trace(self, text: str):
        if self.trace:
            util.synced_print(' ' * self.ident + text)

    @property
    def inbox(self):
        if self._inbox is None:
            self._inbox = self.network.inbox(self.ident)
        return self._inbox

    # -- fork table

    def fork(self, fork_id: int) -> Optional[Fork]:
        for f in self.forks:
            if f.id == fork_id:
                return f
        return None

    def holds_both(self) -> bool:
        return all(f.held_by_me for f in self.forks)

    def missing(self) -> Optional[Fork]:
        """The first fork not held, or None when both are"""
        for f in self.forks:
            if not f.held_by_me:
                return f
        return None

    # -- messages out

    def request(self, fork: Fork) -> None:
        self._log(f'requests F{fork.id} from P{fork.last_known_holder}',
                  REQUEST)
        self._trace(f'requesting fork ({fork.id})')
        self.network.send(fork.last_known_holder,
                          msgs.request(fork.id, self.ident))

    def give(self, fork: Fork, requester: int) -> None:
        """Hand a held fork over to requester. It is clean at its new
        holder."""
        fork.held_by_me = False
        fork.dirty = False
        fork.last_known_holder = requester
        self._log(f'grants F{fork.id} to P{requester}', GRANT)
        self.network.send(requester, msgs.grant(fork.id, self.ident))

    # -- messages in

    def dispatch(self, message) -> None:
        """Route a received message by kind. Anything unrecognised is
        logged and dropped."""
        if not isinstance(message, Message):
            self._log(f'ignores unexpected message {message!r}', WARN)
            return
        if message.kind is Kind.REQUEST:
            self.on_request(message)
        elif message.kind is Kind.GRANT:
            self.on_grant(message)
        else:
            self._log(f'ignores message of unknown kind {message!r}', WARN)

    def on_request(self, message: Message) -> None:
        fork = self.fork(message.fork_id)
        if fork is None:
            self._log(f'ignores request for foreign fork {message}', WARN)
        elif fork.held_by_me and fork.dirty and self.phase is not Phase.EATING:
            self.give(fork, message.sender)
        else:
            self._log(f'defers F{fork.id} for P{message.sender}', DEFER)
            self.deferred.append(message)

    def on_grant(self, message: Message) -> None:
        fork = self.fork(message.fork_id)
        if fork is None:
            self._log(f'ignores grant of foreign fork {message}', WARN)
            return
        fork.held_by_me = True
        fork.dirty = False
        fork.last_known_holder = message.sender
        self._log(f'receives F{fork.id} from P{message.sender}', GRANT)

    # -- eating

    def start_eating(self) -> None:
        if not self.holds_both():
            raise ProtocolError(f'P{self.ident} cannot eat without both '
                                f'forks: {self}')
        self.phase = Phase.EATING
        for f in self.forks:
            f.dirty = True
        self.meals += 1
        self._log(f'eats (meal {self.meals})', EAT)
        self._trace('eating')
        if self.observer is not None:
            self.observer.started_eating(self)

    def finish_eating(self) -> None:
        """Leave the table and answer every deferred request with the
        fork it asked for."""
        self.phase = Phase.THINKING
        if self.observer is not None:
            self.observer.finished_eating(self)
        pending, self.deferred = self.deferred, collections.deque()
        while pending:
            if self.policy is DeferralPolicy.LIFO:
                message = pending.pop()
            else:
                message = pending.popleft()
            fork = self.fork(message.fork_id)
            if fork is None or not fork.held_by_me:
                self._log(f'drops stale request {message}', WARN)
                continue
            self.give(fork, message.sender)

    # -- the cycle

    def think_time(self) -> Nanoseconds:
        low, high, step = self.think_ms
        return Nanoseconds.from_millis(self.rng.randrange(low, high + 1, step))

    def think(self) -> None:
        """Wait a random while, answering whatever arrives meanwhile."""
        self.phase = Phase.THINKING
        duration = self.think_time()
        self._log(f'thinks for {duration.to_seconds():.3f}s', THINK)
        self._trace('thinking')
        deadline = util.nano_time() + duration
        left = duration
        # poll at least once, even for a zero think
        while True:
            message = self.inbox.read_before(left)
            if message is not None:
                self.dispatch(message)
            left = deadline - util.nano_time()
            if left <= 0:
                break

    def become_hungry(self) -> None:
        self.phase = Phase.HUNGRY
        self._log('is hungry', HUNGER)

    def acquire(self) -> None:
        """Collect both forks, one at a time, serving neighbours while
        waiting. A dirty fork given away meanwhile is asked for again."""
        self.become_hungry()
        fork = self.missing()
        while fork is not None:
            self.request(fork)
            while not fork.held_by_me:
                self.dispatch(~self.inbox)
            fork = self.missing()

    def eat(self) -> None:
        self.start_eating()
        self.finish_eating()

    def cycle(self) -> None:
        self.think()
        self.acquire()
        self.eat()

    def run(self) -> None:
        """Think, acquire and eat until the network is closed"""
        while True:
            self.cycle()
