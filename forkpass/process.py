from __future__ import annotations

from abc import ABCMeta
import threading
import traceback
from typing import List, Optional, Sequence, Union

from .atomic import AtomicCounter, AtomicNum
from . import util

# NOTE processes here are threads. Each philosopher of a ring is one
# process and talks to the others only through mailboxes.

class CountDownLatch:

    def __init__(self, count: int = 1):
        self._event = threading.Event()
        self._count = AtomicNum(count)
        if count <= 0:
            self._event.set()

    def count_down(self):
        if self._count.dec(1) <= 0:
            self._event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

_thread_count = AtomicCounter()

class Handle:
    """A process running, or about to run, in its own thread"""

    def __init__(self, name: str, body, latch: Optional[CountDownLatch]):
        self.name = name
        self.body = body
        self.latch = latch
        self.exc: Optional[BaseException] = None
        self.thread: Optional[threading.Thread] = None

    def __repr__(self) -> str:
        return f'Handle({self.name}, ..., {self.latch})'

    def __str__(self) -> str:
        return f'{repr(self)} thread={self.thread}, exc={self.exc}'

    def is_alive(self) -> bool:
        if self.thread is None:
            return False
        return self.thread.is_alive()

    def start(self) -> None:
        thread = threading.Thread(
            target=self.run,
            name=f'forkpass-{next(_thread_count)}',
            daemon=True,
        )
        thread.start()

    def join(self, timeout: Optional[float] = None) -> bool:
        if self.latch is None:
            return True
        return self.latch.wait(timeout)

    def run(self) -> None:
        orig_name = ""
        try:
            self.thread = threading.current_thread()
            orig_name = self.thread.name
            self.thread.name = self.name
            self.body()
        except util.Stopped as e:
            self.exc = e
        except Exception as e:
            Process.handle_exception(self.name, e)
            self.exc = e
        finally:
            if self.thread is not None:
                self.thread.name = orig_name
        if self.latch is not None:
            self.latch.count_down()


class PROC(metaclass=ABCMeta):

    def __init__(self):
        self._name: Optional[str] = None

    def __call__(self) -> None:
        raise NotImplementedError

    def fork(self) -> Handle:
        raise NotImplementedError

    def __str__(self):
        return str(self.name)

    @property
    def name(self) -> Optional[str]:
        return self._name

    def with_name(self, _name: str) -> PROC:
        self._name = _name
        return self

    def __or__(self, other: PROC) -> PROC:
        return ParSyntax([self, other])


# lock for printing exceptions, to stop lots of exceptions being
# overwritten on touch of each other
_exception_lock = threading.Lock()
class Process:

    @staticmethod
    def handle_exception(name, exc):
        with _exception_lock:
            util.synced_print(f"Process {name} terminated by throwing {exc!r}")
            traceback.print_tb(exc.__traceback__)


class Simple(PROC):

    def __init__(self, body, name=None):
        super().__init__()
        self.body = body
        if name is None:
            name = "<anonymous>"
        self._name = str(getattr(name, '__name__', name))

    def fork(self) -> Handle:
        handle = Handle(self.name, self.body, CountDownLatch())
        handle.start()
        return handle

    def __call__(self) -> None:
        self.body()


class Par(PROC):
    """Run processes concurrently and wait for them all.

    The first process runs on the calling thread. If every process ends
    normally or by Stopped, the first Stopped (if any) is re-raised.
    Anything else is collected into a ParException.
    """

    def __init__(self, name: str, procs: Sequence[PROC]) -> None:
        super().__init__()
        self.procs = procs
        self._name = name

    def __call__(self):
        procs = self.procs
        latch = CountDownLatch(len(procs)-1)
        peer_handles = [Handle(str(proc.name), proc, latch)
                        for proc in procs[1:]]
        first_handle = Handle(str(procs[0].name), procs[0], None)
        for handle in peer_handles:
            handle.start()
        first_handle.run()
        latch.wait()

        excs = [first_handle.exc] + [h.exc for h in peer_handles]
        failures = [e for e in excs
                    if e is not None and not isinstance(e, util.Stopped)]
        if failures:
            raise ParException(failures)
        stopped = [e for e in excs if e is not None]
        if stopped:
            raise stopped[0]

    def fork(self) -> Handle:
        handle = Handle(str(self.name), self.__call__, CountDownLatch())
        handle.start()
        return handle


class ParException(Exception):

    def __init__(self, exceptions: Sequence[BaseException]):
        super().__init__(exceptions)
        self.exceptions = exceptions

    def __repr__(self):
        return f'ParException({", ".join(repr(e) for e in self.exceptions)})'


class ParSyntax(PROC):

    def __init__(self, _procs: List[PROC]):
        super().__init__()
        self.procs = _procs

    @property
    def compiled(self):
        return Par(self.name, self.procs)

    def __call__(self):
        return self.compiled()

    def fork(self):
        return self.compiled.fork()

    @property
    def name(self):
        return "|".join(str(x.name) for x in self.procs)

    def __or__(self, other: Union[PROC, ParSyntax]):
        if isinstance(other, ParSyntax):
            return ParSyntax(self.procs + other.procs)
        return ParSyntax(self.procs + [other])
