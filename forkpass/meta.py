from typing import Callable, Iterable, Optional, TypeVar

from . import process
from .util import Stopped

def proc(fn: Optional[Callable] = None, *args, **kwargs):
    """A decorator to create a process"""
    def decorator(fn):
        def proc_():
            fn(*args, **kwargs)
        return process.Simple(proc_, name=fn)
    if fn is None:
        return decorator
    else:
        return decorator(fn)

T = TypeVar('T')
def procs(variant_arg: Iterable[T]):
    """ A decorator to create one concurrent process per argument """
    def decorator(fn: Callable) -> process.PROC:
        return process.ParSyntax([
            proc(fn, arg).with_name(f'{fn.__name__}-{arg}')
            for arg in variant_arg])
    return decorator

def fork(proc: process.PROC) -> process.Handle:
    return proc.fork()

def fork_proc(fn: Optional[Callable] = None, *args, **kwargs):
    """ A decorator to create and fork a process """
    def decorator(fn):
        return fork(proc(fn, *args, **kwargs))
    if fn is None:
        return decorator
    else:
        return decorator(fn)

def repeat(body: Optional[Callable] = None,
           guard: Optional[Callable[..., bool]] = None,
           finally_: Optional[Callable[[], None]] = None) -> Callable:
    """ A decorator to repeat an action until it stops or the guard fails.

    Stopped (and so Closed) ends the loop quietly. Any other exception
    propagates. finally_ runs once either way.
    """
    def decorator(body):
        def inner(*args) -> None:
            check = guard if guard is not None else lambda *args: True
            go = check(*args)
            while go:
                try:
                    body(*args)
                    go = check(*args)
                except Stopped:
                    go = False
                except Exception:
                    if finally_ is not None:
                        finally_()
                    raise
            if finally_ is not None:
                finally_()
        return inner
    if body is None:
        return decorator
    else:
        return decorator(body)

def stop() -> None:
    raise Stopped
