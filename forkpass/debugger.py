import datetime
import sys
import threading
import traceback
from typing import Callable, Dict, Optional

from . import register
from . import util

class Debugger:
    """Prints the state of every live philosopher, mailbox, table and log,
    along with any expressions being monitored."""

    def __init__(self):
        self.monitored: Dict[str, Optional[Callable[[], object]]] = {}

    def __str__(self):
        return 'Debugger'

    def monitor(self, name, state):
        self.monitored[name] = state

    def remove_monitor(self, name):
        del self.monitored[name]

    def clear_monitors(self):
        self.monitored = {}

    def show_state(self, file=None):
        if file is None:
            file = sys.stdout
        print(f'forkpass state {datetime.datetime.now()}', file=file)
        active = threading.enumerate()
        print(f'{len(active)} threads active', file=file)
        for thread in active:
            print(util.get_thread_identity(thread), file=file)

        print('', file=file)
        if len(self.monitored) > 0:
            print('== Monitored Expressions ==', file=file)
            for name, state in self.monitored.items():
                print(f'{name}: ', end='', file=file)
                if state is None:
                    print('<not available>', file=file)
                else:
                    print(state(), file=file)

        objects = register.live_objects()
        if objects:
            print('== Registered Objects ==', file=file)
        for obj in objects:
            try:
                obj.show_state(file=file)
            except Exception:
                print('Exception while determining state'
                      ' of a registered object', file=file)
                traceback.print_exc(file=file)
