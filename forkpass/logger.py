import collections
from dataclasses import dataclass
import inspect
import threading
import types
from typing import Deque, Optional

from . import config
from .register import Debuggable
from . import util
from .util import Nanoseconds

# event categories, combined into suppression masks
THINK = 1
HUNGER = 2
EAT = 4
REQUEST = 8
GRANT = 16
DEFER = 32
WARN = 64

@dataclass
class Event:
    timestamp: Nanoseconds
    thread_id: str
    tb: Optional[inspect.Traceback]
    text: str
    bits: Optional[int] = None

    def __str__(self):
        fn: str = "unknown" if self.tb is None else str(self.tb.function)
        return f'{self.timestamp}:: {self.thread_id}@{fn}: {self.text}'

class Logger(Debuggable):
    """A bounded in-memory log of events.

    Args:
        name: Shown when the log is dumped.
        log_size: How many of the most recent events to keep, 0 keeps all.
        mask: Category bits to suppress. An event is dropped when all of
            its bits are masked.
    """

    def __init__(self, name: str, log_size: int, mask: int = 0):
        super().__init__()
        self.name = name
        self.log_size = log_size
        self.mask = mask
        self.entries: Deque[Event] = collections.deque()
        self.lock = threading.Lock()
        self.register()

    def __str__(self):
        return self.name

    def enabled(self, bits: Optional[int]) -> bool:
        return bits is None or self.mask & bits != bits

    def log(self, text, bits: Optional[int] = None):
        if not self.enabled(bits):
            return
        frame: Optional[types.FrameType] = inspect.currentframe()
        caller = None if frame is None else frame.f_back
        tb = None if caller is None else inspect.getframeinfo(caller)
        message = Event(
            util.nano_time(),
            util.get_thread_identity(threading.current_thread()),
            tb,
            text,
            bits,
        )
        with self.lock:
            self.entries.append(message)
            if 0 < self.log_size < len(self.entries):
                self.entries.popleft()

    __call__ = log

    @property
    def num_entries(self) -> int:
        return len(self.entries)

    def events(self, bits: Optional[int] = None):
        """The retained events, optionally only those tagged with bits"""
        with self.lock:
            entries = list(self.entries)
        if bits is None:
            return entries
        return [e for e in entries if e.bits is not None and e.bits & bits]

    def show_state(self, file):
        util.synced_print(f'{str(self)} Log', *self.events(), sep='\n',
                          file=file)

log = Logger("Logging", config.log_size, config.logging)
