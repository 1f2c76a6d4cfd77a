from threading import Lock
from typing import TypeVar, Generic

T = TypeVar('T')
class Atomic(Generic[T]):
    """A value whose reads and updates are serialised by a lock"""

    def __init__(self, value: T) -> None:
        self._value: T = value
        self._lock = Lock()

    def get(self) -> T:
        with self._lock:
            return self._value

    def set(self, v: T) -> None:
        with self._lock:
            self._value = v

    def get_and_set(self, v: T) -> T:
        """Replace the value, returning the one it replaced."""
        with self._lock:
            result = self._value
            self._value = v
            return result

    def __str__(self) -> str:
        return str(self._value)

    def __repr__(self) -> str:
        return f'Atomic({repr(self._value)})'

TNum = TypeVar('TNum', int, float)
class AtomicNum(Atomic[TNum]):
    """A number with atomic increment and decrement"""

    def inc(self, d: TNum) -> TNum:
        """Add d and return the new value."""
        with self._lock:
            self._value += d
            return self._value

    def dec(self, d: TNum) -> TNum:
        return self.inc(-d)


class AtomicCounter(AtomicNum):
    """An iterator of 1, 2, 3, ... safe to share between threads"""

    def __init__(self, value: int = 0):
        super().__init__(value)

    def __iter__(self):
        return self

    def __next__(self):
        return self.inc(1)
