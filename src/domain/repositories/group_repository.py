"""Group repository protocol (membership and ownership authority)."""

from typing import Protocol
from uuid import UUID

from domain.entities.group import (
    Group,
    GroupMemberView,
    GroupSummary,
    Membership,
    MembershipMutation,
    MembershipRole,
)


class IGroupRepository(Protocol):
    """Source of truth for group ownership and membership roles.

    Implementations must refuse to change or remove the owner's membership
    regardless of the caller.
    """

    async def get(self, id: UUID) -> Group | None:
        """Get a group by ID."""
        ...

    async def create(self, group: Group) -> Group:
        """Create a new group."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a group and its memberships."""
        ...

    async def get_membership(self, user_id: UUID, group_id: UUID) -> Membership | None:
        """Get the membership of a user in a group."""
        ...

    async def add_membership_if_absent(self, membership: Membership) -> bool:
        """Insert a membership unless one exists. Returns True if inserted."""
        ...

    async def update_membership_role(
        self, user_id: UUID, group_id: UUID, role: MembershipRole
    ) -> MembershipMutation:
        """Change a member's role. Refuses the group owner."""
        ...

    async def delete_membership(self, user_id: UUID, group_id: UUID) -> MembershipMutation:
        """Remove a member from a group. Refuses the group owner."""
        ...

    async def get_user_groups(self, user_id: UUID) -> list[GroupSummary]:
        """Get all groups a user belongs to, most recently joined first."""
        ...

    async def get_members(self, group_id: UUID) -> list[GroupMemberView]:
        """Get all members of a group with their identities."""
        ...
