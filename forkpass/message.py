from dataclasses import dataclass
import enum


class Kind(enum.Enum):
    REQUEST = 0
    GRANT = 1

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Message:
    """A request for, or the hand-over of, a fork.

    Args:
        fork_id: The fork concerned.
        sender: The id of the sending philosopher.
        kind: REQUEST or GRANT.
    """
    fork_id: int
    sender: int
    kind: Kind

    def __str__(self):
        return f'{self.kind}(fork={self.fork_id}, from={self.sender})'


def request(fork_id: int, sender: int) -> Message:
    return Message(fork_id, sender, Kind.REQUEST)


def grant(fork_id: int, sender: int) -> Message:
    return Message(fork_id, sender, Kind.GRANT)
