"""Group service layer with business logic."""

from typing import Callable, List, Optional, Tuple

from uuid import UUID

import structlog

from core.exceptions import (
    GroupNotFoundError,
    MembershipNotFoundError,
    OwnerProtectedError,
    UserNotFoundError,
    ValidationError,
)
from domain.entities.group import (
    Group,
    GroupMemberView,
    GroupSummary,
    Membership,
    MembershipMutation,
    MembershipRole,
)
from domain.entities.user import MAX_NAME_LENGTH, normalize_name
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()

MAX_GROUP_NAME_LENGTH = 255


class GroupService:
    """Service layer for groups and their memberships.

    Callers are expected to have authorized the actor (admin, owner, same
    group) before invoking the mutating operations.
    """

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def list_for_user(self, user_id: UUID) -> List[GroupSummary]:
        """Get all groups a user belongs to, most recently joined first."""
        async with self._uow_factory() as uow:
            return await uow.groups.get_user_groups(user_id)

    async def create_group(self, user_id: UUID, name: str) -> Group:
        """Create a group owned by the user, who also becomes its admin."""
        group_name = (name or "").strip()
        if not group_name:
            raise ValidationError("Group name is required")
        if len(group_name) > MAX_GROUP_NAME_LENGTH:
            raise ValidationError("Group name is too long")

        async with self._uow_factory() as uow:
            user = await uow.users.get(user_id)
            if not user:
                raise UserNotFoundError(str(user_id))

            created = await uow.groups.create(Group(name=group_name, owner_id=user_id))
            await uow.groups.add_membership_if_absent(
                Membership(
                    user_id=user_id,
                    group_id=created.id,
                    role=MembershipRole.ADMIN,
                )
            )
            await uow.commit()

        logger.info("group_created", group_id=str(created.id), owner_id=str(user_id))
        return created

    async def get_members(
        self, group_id: UUID
    ) -> Tuple[Group, List[GroupMemberView]]:
        """Get a group together with its members."""
        async with self._uow_factory() as uow:
            group = await uow.groups.get(group_id)
            if not group:
                raise GroupNotFoundError(str(group_id))

            members = await uow.groups.get_members(group_id)
            return group, members

    async def update_member(
        self,
        group_id: UUID,
        user_id: UUID,
        role: Optional[MembershipRole] = None,
        name: Optional[str] = None,
    ) -> Tuple[Group, GroupMemberView]:
        """Change a member's role and/or display name.

        The owner's role can never change; the owner's name can.

        Raises:
            OwnerProtectedError: If a role change targets the group owner.
            MembershipNotFoundError: If the user is not in the group.
            ValidationError: If the name is empty or too long.
        """
        display_name = None
        if name is not None:
            display_name = normalize_name(name)
            if display_name is None:
                raise ValidationError("Name cannot be empty")
            if len(display_name) > MAX_NAME_LENGTH:
                raise ValidationError("Name is too long")

        async with self._uow_factory() as uow:
            membership = await uow.groups.get_membership(user_id, group_id)
            if not membership:
                raise MembershipNotFoundError(str(user_id))

            if role is not None:
                outcome = await uow.groups.update_membership_role(user_id, group_id, role)
                self._raise_for_mutation(outcome, user_id, "Cannot change owner's role")

            if display_name is not None:
                await uow.users.update_name(user_id, display_name)

            await uow.commit()

            group = await uow.groups.get(group_id)
            members = await uow.groups.get_members(group_id)

        logger.info(
            "member_updated",
            group_id=str(group_id),
            user_id=str(user_id),
            role=role.value if role else None,
            renamed=display_name is not None,
        )
        for member in members:
            if group and member.user_id == user_id:
                return group, member
        raise MembershipNotFoundError(str(user_id))

    async def remove_member(self, group_id: UUID, user_id: UUID) -> None:
        """Remove a member from a group. The owner cannot be removed."""
        async with self._uow_factory() as uow:
            outcome = await uow.groups.delete_membership(user_id, group_id)
            self._raise_for_mutation(outcome, user_id, "Cannot remove the group owner")
            await uow.commit()

        logger.info("member_removed", group_id=str(group_id), user_id=str(user_id))

    async def delete_group(self, group_id: UUID) -> None:
        """Delete a group with its memberships and pending magic links."""
        async with self._uow_factory() as uow:
            deleted = await uow.groups.delete(group_id)
            if not deleted:
                raise GroupNotFoundError(str(group_id))
            await uow.commit()

        logger.info("group_deleted", group_id=str(group_id))

    # --- Internal helpers ---

    @staticmethod
    def _raise_for_mutation(
        outcome: MembershipMutation, user_id: UUID, owner_message: str
    ) -> None:
        """Translate a repository refusal into the matching error."""
        match outcome:
            case MembershipMutation.IS_OWNER:
                raise OwnerProtectedError(owner_message)
            case MembershipMutation.NOT_FOUND:
                raise MembershipNotFoundError(str(user_id))
            case MembershipMutation.SUCCESS:
                return
