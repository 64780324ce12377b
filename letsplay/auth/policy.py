"""
Authorization policy.

A single decision table answers "may this identity perform this action on a
resource owned by this id?". It has no state and touches no storage, so every
service asks it the same way and tests can enumerate it.
"""
from enum import Enum
from typing import Optional

from letsplay.auth.identity import Identity
from letsplay.errors import Forbidden, Unauthenticated


class Action(str, Enum):
    """Operations guarded by the policy."""
    REGISTER = "register"
    LOGIN = "login"
    READ_PRODUCT = "read_product"
    CREATE_PRODUCT = "create_product"
    UPDATE_PRODUCT = "update_product"
    DELETE_PRODUCT = "delete_product"
    READ_USER = "read_user"
    UPDATE_USER = "update_user"
    LIST_USERS = "list_users"
    DELETE_USER = "delete_user"
    CHANGE_USER_ROLE = "change_user_role"


class Decision(str, Enum):
    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"

    @property
    def allowed(self) -> bool:
        return self is Decision.ALLOW


PUBLIC_ACTIONS = frozenset({Action.READ_PRODUCT, Action.REGISTER, Action.LOGIN})
OWNED_PRODUCT_ACTIONS = frozenset({Action.UPDATE_PRODUCT, Action.DELETE_PRODUCT})
SELF_USER_ACTIONS = frozenset({Action.READ_USER, Action.UPDATE_USER})


def decide(
    identity: Identity,
    action: Action,
    resource_owner_id: Optional[str] = None,
) -> Decision:
    """
    Evaluate the access rules in order; the first match wins.

    Args:
        identity: Caller identity (ANONYMOUS when no token was presented)
        action: Requested action
        resource_owner_id: Owning user id of the target product, or the
            target user id for user actions

    Returns:
        Decision for the triple
    """
    if action in PUBLIC_ACTIONS:
        return Decision.ALLOW

    if identity.is_anonymous:
        return Decision.UNAUTHENTICATED

    if identity.is_admin:
        return Decision.ALLOW

    if action == Action.CREATE_PRODUCT:
        return Decision.ALLOW

    if action in OWNED_PRODUCT_ACTIONS:
        if resource_owner_id is not None and resource_owner_id == identity.subject_id:
            return Decision.ALLOW
        return Decision.FORBIDDEN

    if action in SELF_USER_ACTIONS and resource_owner_id == identity.subject_id:
        return Decision.ALLOW

    # LIST_USERS, DELETE_USER, CHANGE_USER_ROLE and anything else
    return Decision.FORBIDDEN


def authorize(
    identity: Identity,
    action: Action,
    resource_owner_id: Optional[str] = None,
) -> None:
    """
    Raise unless the policy allows the action.

    Raises:
        Unauthenticated: If the caller must log in first
        Forbidden: If the caller is known but not allowed
    """
    decision = decide(identity, action, resource_owner_id)
    if decision == Decision.UNAUTHENTICATED:
        raise Unauthenticated()
    if decision == Decision.FORBIDDEN:
        raise Forbidden(f"Not allowed to {action.value.replace('_', ' ')}")
