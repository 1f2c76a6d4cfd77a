from __future__ import annotations

import random
import threading
import time
from typing import List, Mapping, Optional, Tuple

from .atomic import Atomic
from .fork import check_orientation, default_owners
from . import logger
from .logger import Logger, WARN
from .mailbox import Network
from .meta import procs, repeat, stop
from .philosopher import Philosopher
from . import process
from .register import Debuggable


class Table(Debuggable):
    """Watches who is eating and records any two neighbours eating at once.

    Every philosopher of a ring reports to the same table. The table only
    observes, it never changes what a philosopher does.
    """

    def __init__(self, n: int):
        super().__init__()
        self.n = n
        self.lock = threading.Lock()
        self.diners: List[bool] = [False] * n
        self.meals: List[int] = [0] * n
        self.violations: List[Tuple[int, int]] = []
        self.register()

    def started_eating(self, philosopher: Philosopher) -> None:
        k = philosopher.ident
        with self.lock:
            for other in {(k - 1) % self.n, (k + 1) % self.n}:
                if other != k and self.diners[other]:
                    self.violations.append((k, other))
            self.diners[k] = True
            self.meals[k] += 1

    def finished_eating(self, philosopher: Philosopher) -> None:
        with self.lock:
            self.diners[philosopher.ident] = False

    def show_state(self, file):
        with self.lock:
            eating = [k for k, d in enumerate(self.diners) if d]
            print(f'TABLE: eating={eating} meals={self.meals} '
                  f'violations={self.violations}', file=file)


class Ring:
    """N philosophers, each in its own thread, connected by mailboxes.

    Args:
        n: Number of philosophers.
        owners: Initial owner of each fork. Defaults to the lower numbered
            sharer of each fork.
        policy: Deferral policy for every philosopher.
        think_ms: (min, max, step) think time for every philosopher.
        seed: Base seed, philosopher k uses seed + k + 1.
        log: Event log shared by the ring.
        trace: Print status lines.
    """

    def __init__(self, n: int, owners: Optional[Mapping[int, int]] = None,
                 policy=None, think_ms: Optional[Tuple[int, int, int]] = None,
                 seed: Optional[int] = None, log: Optional[Logger] = None,
                 trace: Optional[bool] = None):
        if owners is None:
            owners = default_owners(n)
        check_orientation(owners, n)
        self.n = n
        self.log = logger.log if log is None else log
        self.network = Network(n)
        self.table = Table(n)
        self.running = Atomic(False)
        self.handle: Optional[process.Handle] = None
        self.philosophers: List[Philosopher] = []
        for k in range(n):
            rng = None if seed is None else random.Random(seed + k + 1)
            self.philosophers.append(Philosopher(
                k, n, self.network, owners=owners, policy=policy, rng=rng,
                think_ms=think_ms, observer=self.table, log=self.log,
                trace=trace))

    def _seat(self, k: int) -> None:
        philosopher = self.philosophers[k]

        def leave():
            if self.running.get():
                self.log(f'P{k} lost its mailbox', WARN)

        @repeat(finally_=leave)
        def dine():
            if not self.running.get():
                stop()
            philosopher.cycle()

        dine()

    def start(self) -> None:
        if self.running.get_and_set(True):
            raise RuntimeError('ring already started')
        self.handle = procs(range(self.n))(self._seat).fork()

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Close every mailbox and wait for the philosophers to leave.

        Returns whether they all left within timeout.
        """
        self.running.set(False)
        self.network.close()
        if self.handle is None:
            return True
        return self.handle.join(timeout)

    def run_for(self, seconds: float) -> List[int]:
        """Run the ring for a while and return the meals each philosopher
        had"""
        self.start()
        try:
            time.sleep(seconds)
        finally:
            self.stop()
        return list(self.table.meals)

    @property
    def meals(self) -> List[int]:
        return [p.meals for p in self.philosophers]
