"""Modules implementing the commands that manage volume sessions."""

from .common import Operations
from .listing import ListOperations
from .mount import ForwardOperations, MountOperations
from .cleanup import teardown
from .unmount import UnmountOperations

__all__ = [
    "Operations",
    "ForwardOperations",
    "ListOperations",
    "MountOperations",
    "UnmountOperations",
    "teardown",
]
