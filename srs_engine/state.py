from enum import IntEnum


class State(IntEnum):
    """
    Enum representing the learning state of a CardMemoryState object.
    """

    New = 0
    Learning = 1
    Review = 2
    Relearning = 3


__all__ = ["State"]
