from __future__ import annotations

import queue
import threading
from typing import Generic, List, Optional, TypeVar

from .atomic import Atomic, AtomicCounter, AtomicNum
from .register import Debuggable
from . import util
from .util import Nanoseconds

T = TypeVar('T')

_names = AtomicCounter()

class _ClosedMarker:
    def __repr__(self):
        return '<closed>'

_CLOSED = _ClosedMarker()

class Mailbox(Generic[T], Debuggable):
    """An unbounded FIFO inbox that many processes may write to and one
    process reads from.

    Values from any one writer are read in the order they were written.
    Closing the mailbox wakes a blocked reader, and every later read or
    write raises Closed.
    """

    def __init__(self, name: Optional[str] = None):
        Debuggable.__init__(self)
        if name is None:
            name = f'Mailbox-{next(_names)}'
        self.name = name
        self.closed = Atomic(False)
        self.reads = AtomicNum(0)
        self.writes = AtomicNum(0)
        self.queue: queue.Queue = queue.Queue()
        self.lock = threading.Lock()
        self.register()

    def __str__(self):
        closed = "(CLOSED) " if self.closed.get() else ""
        return f'MAILBOX {self.name}: {closed}length={self.length()} ' \
               f'(READ {self.reads}, WRITTEN {self.writes})'

    def show_state(self, file) -> None:
        print(str(self), file=file)

    def length(self) -> int:
        size = self.queue.qsize()
        return size - 1 if self.closed.get() and size > 0 else size

    def is_empty(self) -> bool:
        return self.length() == 0

    @property
    def can_input(self) -> bool:
        return not self.closed.get()

    @property
    def can_output(self) -> bool:
        return not self.closed.get()

    def close(self) -> None:
        with self.lock:
            if self.closed.get_and_set(True):
                return
            # drop whatever is undelivered and leave a marker for the reader
            try:
                while True:
                    self.queue.get_nowait()
            except queue.Empty:
                pass
            self.queue.put(_CLOSED)
        self.unregister()

    def __lshift__(self, value: T) -> T:
        """Deliver value, never blocking"""
        # nothing may land behind the closed marker
        with self.lock:
            if self.closed.get():
                raise util.Closed(self.name)
            self.queue.put(value)
        self.writes.inc(1)
        return value

    def _take(self, value) -> T:
        if value is _CLOSED:
            # leave it for anyone else still reading
            self.queue.put(_CLOSED)
            raise util.Closed(self.name)
        self.reads.inc(1)
        return value

    def __invert__(self) -> T:
        """Block until a value is available, then remove and return it"""
        if self.closed.get():
            raise util.Closed(self.name)
        return self._take(self.queue.get())

    def read_before(self, ns: Nanoseconds) -> Optional[T]:
        """Wait at most ns for a value. Returns None if none arrived."""
        if self.closed.get():
            raise util.Closed(self.name)
        try:
            if ns <= 0:
                value = self.queue.get_nowait()
            else:
                value = self.queue.get(timeout=ns.to_seconds())
        except queue.Empty:
            return None
        return self._take(value)

    def __iter__(self):
        return self

    def __next__(self) -> T:
        try:
            return self.__invert__()
        except util.Stopped:
            raise StopIteration


class Network(Debuggable):
    """One mailbox per philosopher, addressed by id"""

    def __init__(self, n: int, name: str = 'ring'):
        super().__init__()
        self.name = name
        self.mailboxes: List[Mailbox] = [
            Mailbox(f'{name}[{k}]') for k in range(n)]
        self.sent = AtomicNum(0)

    def __len__(self):
        return len(self.mailboxes)

    def inbox(self, k: int) -> Mailbox:
        return self.mailboxes[k]

    def send(self, dest: int, message) -> None:
        self.mailboxes[dest] << message
        self.sent.inc(1)

    def close(self) -> None:
        for mailbox in self.mailboxes:
            mailbox.close()

    def in_flight(self) -> int:
        return sum(m.length() for m in self.mailboxes)
