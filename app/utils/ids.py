"""Identifier generation utilities."""
import uuid


def new_id() -> str:
    """
    Generate a fresh opaque identifier.

    Returns:
        32-character lowercase hex string

    Example:
        >>> len(new_id())
        32
        >>> new_id() != new_id()
        True
    """
    return uuid.uuid4().hex


def bank_task_id(goal_id: str, index: int) -> str:
    """
    Build the id of a task created from a project's task bank.

    Args:
        goal_id: Id of the goal the bank belongs to
        index: Position of the item in the bank

    Returns:
        Id of the form "<goal_id>_t_<index>"

    Example:
        >>> bank_task_id("abc", 2)
        'abc_t_2'
    """
    return f"{goal_id}_t_{index}"
