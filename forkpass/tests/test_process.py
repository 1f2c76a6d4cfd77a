import pytest
import time

from forkpass import *
from forkpass import util

def test_process__init():
    def work():
        pass
    p = Simple(work)
    Par("", [p])
    ParSyntax([p])
    @proc
    def work():
        pass
    @procs([1, 2, 3])
    def work(i):
        pass

def test_process_wo_mailbox():
    v = 0
    @proc
    def pass_():
        nonlocal v
        v = 1
    pass_()
    assert v == 1

def test_par_runs_all():
    seen = AtomicNum(0)
    @procs(range(10))
    def workers(i):
        seen.inc(i)
    workers()
    assert seen.get() == sum(range(10))

def test_par_through_mailbox():
    m = Mailbox()
    vals = [1, 42, 123]
    @proc
    def write():
        for v in vals:
            m << v
    @proc
    def read():
        for v in vals:
            assert ~m == v
    (write | read)()

def test_par_stopped_is_quiet():
    m = Mailbox()
    m.close()
    @proc
    def reader():
        ~m
    @proc
    def other():
        pass
    with pytest.raises(util.Stopped):
        (reader | other)()

def test_par_collects_failures(capsys):
    @proc
    def bad():
        raise KeyError('boom')
    @proc
    def good():
        pass
    with pytest.raises(ParException) as info:
        (bad | good)()
    assert isinstance(info.value.exceptions[0], KeyError)
    assert 'terminated by throwing' in capsys.readouterr().out

def test_fork_join():
    m = Mailbox()
    @fork_proc
    def p():
        m << 'done'
    assert p.join(1)
    assert ~m == 'done'

def test_repeat_until_stop():
    count = 0
    @repeat
    def loop():
        nonlocal count
        count += 1
        if count == 5:
            stop()
    loop()
    assert count == 5

def test_repeat_guard():
    seen = []
    @repeat(guard=lambda: len(seen) < 3)
    def loop():
        seen.append(len(seen))
    loop()
    assert seen == [0, 1, 2]

def test_repeat_finally_runs_once():
    done = AtomicNum(0)
    @repeat(guard=lambda: False, finally_=lambda: done.inc(1))
    def never():
        raise AssertionError('body should not run')
    never()
    assert done.get() == 1

    @repeat(finally_=lambda: done.inc(1))
    def bad():
        raise KeyError('boom')
    with pytest.raises(KeyError):
        bad()
    assert done.get() == 2

def test_repeat_ends_on_closed_mailbox():
    m = Mailbox()
    got = []
    @fork_proc
    def reader():
        @repeat
        def loop():
            got.append(~m)
        loop()
    m << 1
    m << 2
    while m.length() > 0:
        time.sleep(0.01)
    m.close()
    assert reader.join(1)
    assert reader.exc is None
    assert got == [1, 2]
