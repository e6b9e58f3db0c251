"""
Ownership checks for tasks.

Listing never goes through here: the task query itself is filtered by
owner, so other users' rows are never loaded.
"""

from taskapi.src.errors import AuthorizationError


def can_act(user, task) -> bool:
    """True when `user` owns `task`."""
    return task.owner_id == user.id


def ensure_can_act(user, task) -> None:
    """Raise AuthorizationError unless `user` owns `task`."""
    if not can_act(user, task):
        raise AuthorizationError('You do not have permission to access this task')
