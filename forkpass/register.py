from __future__ import annotations

from typing import Dict, List, Optional
import weakref

from .atomic import AtomicCounter

class StateKey(int):
    pass

stateKey = AtomicCounter()

registered: Dict[int, weakref.ReferenceType[Debuggable]] = {}

def register(obj: Debuggable) -> StateKey:
    key = StateKey(next(stateKey))
    registered[key] = weakref.ref(obj)
    return key

def live_objects() -> List[Debuggable]:
    """The registered objects that have not yet been collected"""
    result = []
    for _, ref in list(registered.items()):
        obj: Optional[Debuggable] = ref()
        if obj is not None:
            result.append(obj)
    return result

class Debuggable:
    """Something whose state can be shown by the debugger"""

    def __init__(self):
        self._key: StateKey = StateKey(-1)

    def register(self):
        if self._key < 0:
            self._key = register(self)

    def unregister(self):
        if self._key > 0:
            registered.pop(self._key, None)
            self._key = StateKey(-1)

    def show_state(self, file):
        raise NotImplementedError
