"""Group and membership domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, StrEnum
from uuid import UUID, uuid4


class MembershipRole(StrEnum):
    """Role stored on a membership row.

    The group owner is not a role: ownership lives on ``Group.owner_id``.
    """

    ADMIN = "admin"
    MEMBER = "member"


class MembershipMutation(Enum):
    """Outcome of a role update or membership removal."""

    SUCCESS = "success"
    IS_OWNER = "is_owner"
    NOT_FOUND = "not_found"


@dataclass
class Group:
    """Domain entity for a tenant group."""

    name: str
    owner_id: UUID
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)

    def is_owned_by(self, user_id: UUID) -> bool:
        """Ownership is decided by the owner column, never by role."""
        return self.owner_id == user_id


@dataclass
class Membership:
    """Domain entity for a (user, group) membership."""

    user_id: UUID
    group_id: UUID
    role: MembershipRole = MembershipRole.MEMBER
    joined_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        match self.role:
            case MembershipRole.ADMIN:
                return True
            case MembershipRole.MEMBER:
                return False


@dataclass
class GroupSummary:
    """A group as seen by one of its members."""

    id: UUID
    name: str
    owner_id: UUID
    role: MembershipRole
    joined_at: datetime


@dataclass
class GroupMemberView:
    """A member row joined with the user's identity."""

    user_id: UUID
    name: str
    email: str
    role: MembershipRole
    joined_at: datetime
