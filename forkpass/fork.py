"""Forks, the ring they sit on, and who holds them at start-up.

Fork ``j`` lies between philosophers ``j-1`` and ``j`` (fork 0 between
``n-1`` and ``0``), so philosopher ``k`` shares fork ``k`` with its
predecessor and fork ``k+1`` with its successor.

An owner map ``{fork_id: philosopher}`` orients every edge of the ring
from the holder towards the other sharer. Philosophers that are all hungry
at once can only wait on each other in a cycle if that orientation has a
directed cycle, so every owner map is checked for one before any fork
record is built.
"""
from __future__ import annotations

import collections
from dataclasses import dataclass
from typing import Dict, List, Mapping, Tuple


class OrientationError(ValueError):
    """The initial owner map is incomplete or allows a cycle of waiting"""
    pass


@dataclass
class Fork:
    id: int
    neighbour: int
    held_by_me: bool
    last_known_holder: int
    dirty: bool = True

    def __str__(self):
        state = 'dirty' if self.dirty else 'clean'
        if self.held_by_me:
            return f'F{self.id}(held, {state}, from {self.last_known_holder})'
        return f'F{self.id}(at {self.last_known_holder})'


def check_size(n: int) -> None:
    if n < 2:
        raise ValueError(f'a ring needs at least 2 philosophers, not {n}')


def fork_ids(k: int, n: int) -> Tuple[int, int]:
    """The forks of philosopher k: shared with its predecessor, then its
    successor"""
    return k, (k + 1) % n


def sharers(fork_id: int, n: int) -> Tuple[int, int]:
    return (fork_id - 1) % n, fork_id


def default_owners(n: int) -> Dict[int, int]:
    """Each fork starts with the lower numbered of its two sharers.

    Philosopher 0 holds forks 0 and 1, philosopher n-1 holds nothing, and
    everyone in between holds the fork shared with their successor.
    """
    check_size(n)
    return {j: min(sharers(j, n)) for j in range(n)}


def precedence(owners: Mapping[int, int], n: int) -> List[Tuple[int, int]]:
    """One (holder, other sharer) edge per fork"""
    edges = []
    for fork_id, owner in sorted(owners.items()):
        a, b = sharers(fork_id, n)
        edges.append((owner, b if owner == a else a))
    return edges


def check_orientation(owners: Mapping[int, int], n: int) -> None:
    """Raise OrientationError unless owners gives every fork of an n ring
    to one of its sharers and the resulting precedence graph is acyclic.
    """
    check_size(n)
    if set(owners) != set(range(n)):
        raise OrientationError(
            f'owner map must name forks 0..{n-1}, got {sorted(owners)}')
    for fork_id, owner in owners.items():
        if owner not in sharers(fork_id, n):
            raise OrientationError(
                f'fork {fork_id} can only be held by one of '
                f'{sharers(fork_id, n)}, not {owner}')

    edges = precedence(owners, n)
    indegree = collections.Counter(dst for _, dst in edges)
    outgoing = collections.defaultdict(list)
    for src, dst in edges:
        outgoing[src].append(dst)
    ready = collections.deque(k for k in range(n) if indegree[k] == 0)
    seen = 0
    while ready:
        k = ready.popleft()
        seen += 1
        for dst in outgoing[k]:
            indegree[dst] -= 1
            if indegree[dst] == 0:
                ready.append(dst)
    if seen < n:
        waiting = sorted(k for k in range(n) if indegree[k] > 0)
        raise OrientationError(
            f'initial ownership {dict(owners)} lets philosophers {waiting} '
            f'wait on each other in a cycle')


def make_forks(k: int, n: int, owners: Mapping[int, int]) \
        -> Tuple[Fork, Fork]:
    """The two fork records philosopher k starts with. All begin dirty."""
    result = []
    for fork_id in fork_ids(k, n):
        a, b = sharers(fork_id, n)
        neighbour = b if k == a else a
        owner = owners[fork_id]
        result.append(Fork(
            id=fork_id,
            neighbour=neighbour,
            held_by_me=owner == k,
            # while we hold it the other sharer is the one who will ask
            last_known_holder=neighbour if owner == k else owner,
        ))
    return result[0], result[1]
