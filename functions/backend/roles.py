"""
Admin-checked role mutation.
"""

from __future__ import annotations

import logging

from backend.auth import AuthUser
from backend.db import DbClient
from shared.types import AppRole, RoleAction

logger = logging.getLogger(__name__)

_PAST_TENSE = {RoleAction.ADD: "added", RoleAction.REMOVE: "removed"}


class RoleChangeRejected(ValueError):
    """The requested change is valid in shape but not allowed."""


def change_user_role(
    db: DbClient,
    *,
    actor: AuthUser,
    user_id: str,
    role: AppRole,
    action: RoleAction,
) -> str:
    """
    Adds or removes ``role`` for ``user_id``. The caller has already checked
    that ``actor`` is an admin.

    Returns:
        str: A human-readable success message.

    Raises:
        RoleChangeRejected: on self-demotion or a duplicate grant.
    """
    if (
        user_id == actor.id
        and role == AppRole.ADMIN
        and action == RoleAction.REMOVE
    ):
        raise RoleChangeRejected("Cannot remove admin role from yourself")

    if action == RoleAction.ADD:
        if db.has_role(user_id, role):
            raise RoleChangeRejected("User already has this role")
        db.add_user_role(user_id, role)
    else:
        db.remove_user_role(user_id, role)

    past = _PAST_TENSE[action]
    logger.info(
        "Admin %s %s %s role %s user %s",
        actor.email or actor.id,
        past,
        role.value,
        "to" if action == RoleAction.ADD else "from",
        user_id,
    )
    return f"{role.value} role {past} successfully"
