"""
Role and ownership rules for every mutating operation.

Entity services call ``AccessPolicy.authorize`` before touching the store, so
the whole rule set lives in the two tables below:

- ROLE_GATES: actions that require the caller's role to be in a fixed set.
- OWNERSHIP_EXEMPTIONS: actions on an owned entity. The owner always passes;
  anyone else needs one of the listed roles.
"""

import enum
import logging
from typing import Dict, FrozenSet, Optional
from fastapi import Request

from newsdesk.core.auth import Identity
from newsdesk.core.errors import Forbidden, Unauthorized
from newsdesk.models.user import UserRole

logger = logging.getLogger(__name__)

EDITORIAL_ROLES: FrozenSet[UserRole] = frozenset({UserRole.EDITOR, UserRole.ADMIN})
ADMIN_ONLY: FrozenSet[UserRole] = frozenset({UserRole.ADMIN})


class Action(str, enum.Enum):
    CREATE_ARTICLE = "article:create"
    UPDATE_ARTICLE = "article:update"
    DELETE_ARTICLE = "article:delete"
    CREATE_COMMENT = "comment:create"
    MODERATE_COMMENT = "comment:moderate"
    DELETE_COMMENT = "comment:delete"
    CREATE_CATEGORY = "category:create"
    UPDATE_CATEGORY = "category:update"
    DELETE_CATEGORY = "category:delete"
    UPLOAD_MEDIA = "media:upload"
    LIST_MEDIA = "media:list"
    DELETE_MEDIA = "media:delete"


ROLE_GATES: Dict[Action, FrozenSet[UserRole]] = {
    Action.CREATE_CATEGORY: EDITORIAL_ROLES,
    Action.UPDATE_CATEGORY: EDITORIAL_ROLES,
    Action.DELETE_CATEGORY: ADMIN_ONLY,
    Action.MODERATE_COMMENT: EDITORIAL_ROLES,
}

OWNERSHIP_EXEMPTIONS: Dict[Action, FrozenSet[UserRole]] = {
    Action.UPDATE_ARTICLE: EDITORIAL_ROLES,
    Action.DELETE_ARTICLE: EDITORIAL_ROLES,
    Action.DELETE_COMMENT: EDITORIAL_ROLES,
    Action.DELETE_MEDIA: ADMIN_ONLY,
}

DENIAL_MESSAGES: Dict[Action, str] = {
    Action.UPDATE_ARTICLE: "You do not have permission to edit this article",
    Action.DELETE_ARTICLE: "You do not have permission to delete this article",
    Action.DELETE_COMMENT: "You do not have permission to delete this comment",
    Action.DELETE_MEDIA: "You do not have permission to delete this file",
}


class AccessPolicy:
    """Decides allow / deny for an identity, an action and an optional owner."""

    def __init__(
        self,
        role_gates: Optional[Dict[Action, FrozenSet[UserRole]]] = None,
        ownership_exemptions: Optional[Dict[Action, FrozenSet[UserRole]]] = None,
    ):
        self.role_gates = dict(ROLE_GATES if role_gates is None else role_gates)
        self.ownership_exemptions = dict(
            OWNERSHIP_EXEMPTIONS
            if ownership_exemptions is None
            else ownership_exemptions
        )

    def authorize(
        self,
        identity: Optional[Identity],
        action: Action,
        owner_id: Optional[str] = None,
    ) -> Identity:
        """
        Return ``identity`` if it may perform ``action``.

        Args:
            identity: Verified caller, or None for anonymous requests
            action: The operation being attempted
            owner_id: Owner of the target entity, required for owned actions

        Raises:
            Unauthorized: If there is no caller
            Forbidden: If the role gate or the ownership gate rejects the caller
        """
        if identity is None:
            raise Unauthorized("Authentication required")

        allowed_roles = self.role_gates.get(action)
        if allowed_roles is not None and identity.role not in allowed_roles:
            logger.info(
                f"Role gate denied {action.value} for user {identity.id} ({identity.role.value})"
            )
            raise Forbidden(
                DENIAL_MESSAGES.get(action, "Access denied"), actor=identity, action=action.value
            )

        if action in self.ownership_exemptions:
            if owner_id is None:
                raise ValueError(f"{action.value} requires the entity owner")
            if not self.is_owner_or_exempt(identity, action, owner_id):
                logger.info(
                    f"Ownership gate denied {action.value} for user {identity.id}"
                )
                raise Forbidden(
                    DENIAL_MESSAGES.get(action, "Access denied"),
                    actor=identity,
                    action=action.value,
                )

        return identity

    def is_owner_or_exempt(
        self, identity: Identity, action: Action, owner_id: str
    ) -> bool:
        if str(identity.id) == str(owner_id):
            return True
        return identity.role in self.ownership_exemptions.get(action, frozenset())

    def can(
        self,
        identity: Optional[Identity],
        action: Action,
        owner_id: Optional[str] = None,
    ) -> bool:
        try:
            self.authorize(identity, action, owner_id)
        except (Unauthorized, Forbidden):
            return False
        return True

    @staticmethod
    def is_elevated(identity: Optional[Identity]) -> bool:
        return identity is not None and identity.role in EDITORIAL_ROLES

    def can_see_unpublished(self, identity: Optional[Identity], owner_id: str) -> bool:
        """Drafts and archived articles are visible to their author and to editors."""
        if identity is None:
            return False
        return self.is_elevated(identity) or str(identity.id) == str(owner_id)


def get_access_policy(request: Request) -> AccessPolicy:
    return request.app.state.access_policy
