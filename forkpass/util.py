from __future__ import annotations

import threading
import time
from typing import Optional


class Nanoseconds(float):
    def to_seconds(self) -> float:
        return self * 1e-9

    @staticmethod
    def from_seconds(seconds: float) -> Nanoseconds:
        return Nanoseconds(seconds * 1e9)

    @staticmethod
    def from_millis(millis: float) -> Nanoseconds:
        return Nanoseconds(millis * 1e6)

    def __add__(self, other: Nanoseconds):
        return Nanoseconds(float(self) + float(other))

    def __sub__(self, other: Nanoseconds):
        return Nanoseconds(float(self) - float(other))


def nano_time() -> Nanoseconds:
    return Nanoseconds(time.time_ns())


class Stopped(Exception):
    """Raised to end a process quietly"""
    pass


class Closed(Stopped):
    """An operation was attempted on a closed mailbox"""
    def __init__(self, name):
        super().__init__(f'Closed({name})')


def get_thread_identity(thread: Optional[threading.Thread]) -> str:
    if thread is None:
        return "?"
    status = '_D'[thread.daemon] + '_A'[thread.is_alive()]
    return f'{thread.name}#{status}#{thread.ident}'


_print_lock = threading.Lock()
def synced_print(*args, **kwargs):
    # keep lines from concurrent philosophers from interleaving
    kwargs['flush'] = True
    with _print_lock:
        print(*args, **kwargs)
