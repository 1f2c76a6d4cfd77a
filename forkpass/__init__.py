
__version__ = '1.0'

import sys as _sys
MIN_PYTHON = (3, 7)
if _sys.version_info < MIN_PYTHON:
    _sys.exit('Python 3.7+ is required')

from .atomic import Atomic, AtomicNum, AtomicCounter
from .debugger import Debugger
from .fork import Fork, OrientationError, check_orientation, default_owners,\
    fork_ids, make_forks, sharers
from .logger import Logger, log
from .mailbox import Mailbox, Network
from .message import Kind, Message
from .meta import proc, procs, fork_proc, repeat, stop
from .philosopher import Philosopher, Phase, DeferralPolicy, ProtocolError
from .process import Simple, Par, ParSyntax, ParException
from .ring import Ring, Table
from .simulation import Simulation, SafetyViolation, Deadlock,\
    UnresolvedRequest
from .util import Closed, Stopped, Nanoseconds
