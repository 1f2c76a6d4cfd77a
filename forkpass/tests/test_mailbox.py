import pytest
import time

from forkpass import *

def test_mailbox_init():
    Mailbox()
    Mailbox("named")
    Network(3)

def test_mailbox_str():
    m = Mailbox("inbox")
    assert 'inbox' in str(m)
    m << 1
    assert 'length=1' in str(m)

def test_mailbox_fifo():
    m = Mailbox()
    for x in range(10):
        m << x
    assert [~m for _ in range(10)] == list(range(10))

def test_mailbox_never_blocks_writer():
    m = Mailbox()
    for x in range(10000):
        m << x
    assert m.length() == 10000

def test_mailbox_read_waits():
    m = Mailbox()
    got = []
    @fork_proc
    def read():
        got.append(~m)
    time.sleep(0.1)
    assert read.is_alive()
    m << 3
    assert read.join(1)
    assert got == [3]

def test_mailbox_read_before():
    m = Mailbox()
    assert m.read_before(Nanoseconds(1)) is None
    assert m.read_before(Nanoseconds(0)) is None
    m << 2
    assert m.read_before(Nanoseconds.from_seconds(1)) == 2
    @fork_proc
    def p():
        time.sleep(0.2)
        m << 5
    assert m.read_before(Nanoseconds.from_seconds(0.05)) is None
    assert m.read_before(Nanoseconds.from_seconds(1)) == 5

def test_mailbox_read_before_wakes_on_arrival():
    m = Mailbox()
    @fork_proc
    def p():
        time.sleep(0.05)
        m << 'hi'
    start = time.monotonic()
    assert m.read_before(Nanoseconds.from_seconds(5)) == 'hi'
    assert time.monotonic() - start < 2

def test_mailbox_close():
    m = Mailbox()
    m << 1
    m.close()
    assert not m.can_input
    assert not m.can_output
    assert m.is_empty()
    with pytest.raises(Closed):
        ~m
    with pytest.raises(Closed):
        m << 2
    with pytest.raises(Closed):
        m.read_before(Nanoseconds.from_seconds(1))

def test_mailbox_close_wakes_reader():
    m = Mailbox()
    outcome = []
    @fork_proc
    def read():
        try:
            ~m
        except Closed:
            outcome.append('closed')
    time.sleep(0.1)
    m.close()
    assert read.join(1)
    assert outcome == ['closed']

def test_mailbox_iterates_until_closed():
    m = Mailbox()
    @fork_proc
    def write():
        for x in range(5):
            m << x
        time.sleep(0.1)
        m.close()
    assert list(m) == [0, 1, 2, 3, 4]

def test_mailbox_many_writers_keep_order():
    m = Mailbox()
    @procs(range(5))
    def writers(i):
        for j in range(200):
            m << (i, j)
    writers()
    seen = {i: [] for i in range(5)}
    while not m.is_empty():
        i, j = ~m
        seen[i].append(j)
    assert all(js == list(range(200)) for js in seen.values())

def test_network_send():
    net = Network(3)
    net.send(2, 'hello')
    assert net.in_flight() == 1
    assert ~net.inbox(2) == 'hello'
    assert net.sent.get() == 1
    net.close()
    with pytest.raises(Closed):
        net.send(0, 'late')

def test_mailbox_close_races_writers():
    for _ in range(20):
        m = Mailbox()
        @procs(range(4))
        def writers(i):
            try:
                while True:
                    m << i
            except Closed:
                pass
        handle = writers.fork()
        time.sleep(0.005)
        m.close()
        assert handle.join(2)
        assert m.length() == 0
        assert m.is_empty()
        with pytest.raises(Closed):
            ~m
