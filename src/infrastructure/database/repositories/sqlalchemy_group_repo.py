"""SQLAlchemy implementation of Group repository."""

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.group import (
    Group,
    GroupMemberView,
    GroupSummary,
    Membership,
    MembershipMutation,
    MembershipRole,
)
from infrastructure.database.dialect import insert_ignore_conflict
from infrastructure.database.models import (
    GroupModel,
    MagicLinkTokenModel,
    MembershipModel,
    UserModel,
)


class SQLAlchemyGroupRepository:
    """SQLAlchemy implementation of IGroupRepository.

    Owner protection lives here rather than in the services: role updates
    and membership removals targeting ``groups.owner_id`` return
    ``MembershipMutation.IS_OWNER`` without issuing any write.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Group | None:
        """Get a group by ID."""
        stmt = select(GroupModel).where(GroupModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, group: Group) -> Group:
        """Create a new group."""
        model = self._to_model(group)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def delete(self, id: UUID) -> bool:
        """Delete a group together with its memberships and pending links."""
        stmt = select(GroupModel).where(GroupModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return False

        await self._session.execute(
            delete(MagicLinkTokenModel).where(MagicLinkTokenModel.group_id == id)
        )
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def get_membership(self, user_id: UUID, group_id: UUID) -> Membership | None:
        """Get the membership of a user in a group."""
        stmt = select(MembershipModel).where(
            MembershipModel.user_id == user_id,
            MembershipModel.group_id == group_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._membership_to_entity(model) if model else None

    async def add_membership_if_absent(self, membership: Membership) -> bool:
        """Insert a membership unless one exists. Returns True if inserted."""
        stmt = insert_ignore_conflict(
            self._session,
            MembershipModel,
            index_elements=["user_id", "group_id"],
            values={
                "user_id": membership.user_id,
                "group_id": membership.group_id,
                "role": membership.role.value,
                "joined_at": membership.joined_at,
            },
        )
        result = await self._session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def update_membership_role(
        self, user_id: UUID, group_id: UUID, role: MembershipRole
    ) -> MembershipMutation:
        """Change a member's role. Refuses the group owner."""
        guard = await self._owner_guard(user_id, group_id)
        if guard is not None:
            return guard

        stmt = (
            update(MembershipModel)
            .where(
                MembershipModel.user_id == user_id,
                MembershipModel.group_id == group_id,
            )
            .values(role=role.value)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()

        if not result.rowcount:  # type: ignore[attr-defined]
            return MembershipMutation.NOT_FOUND
        return MembershipMutation.SUCCESS

    async def delete_membership(self, user_id: UUID, group_id: UUID) -> MembershipMutation:
        """Remove a member from a group. Refuses the group owner."""
        guard = await self._owner_guard(user_id, group_id)
        if guard is not None:
            return guard

        stmt = delete(MembershipModel).where(
            MembershipModel.user_id == user_id,
            MembershipModel.group_id == group_id,
        )
        result = await self._session.execute(stmt)
        await self._session.flush()

        if not result.rowcount:  # type: ignore[attr-defined]
            return MembershipMutation.NOT_FOUND
        return MembershipMutation.SUCCESS

    async def get_user_groups(self, user_id: UUID) -> list[GroupSummary]:
        """Get all groups a user belongs to, most recently joined first."""
        stmt = (
            select(GroupModel, MembershipModel)
            .join(MembershipModel, MembershipModel.group_id == GroupModel.id)
            .where(MembershipModel.user_id == user_id)
            .order_by(MembershipModel.joined_at.desc())
        )
        result = await self._session.execute(stmt)
        return [
            GroupSummary(
                id=group.id,
                name=group.name,
                owner_id=group.owner_id,
                role=MembershipRole(membership.role),
                joined_at=membership.joined_at,
            )
            for group, membership in result.all()
        ]

    async def get_members(self, group_id: UUID) -> list[GroupMemberView]:
        """Get all members of a group with their identities."""
        stmt = (
            select(MembershipModel, UserModel)
            .join(UserModel, UserModel.id == MembershipModel.user_id)
            .where(MembershipModel.group_id == group_id)
            .order_by(MembershipModel.joined_at)
        )
        result = await self._session.execute(stmt)
        return [
            GroupMemberView(
                user_id=user.id,
                name=user.name,
                email=user.email,
                role=MembershipRole(membership.role),
                joined_at=membership.joined_at,
            )
            for membership, user in result.all()
        ]

    async def _owner_guard(self, user_id: UUID, group_id: UUID) -> MembershipMutation | None:
        """Return a refusal when the target is missing or is the owner."""
        stmt = select(GroupModel.owner_id).where(GroupModel.id == group_id)
        result = await self._session.execute(stmt)
        owner_id = result.scalar_one_or_none()

        if owner_id is None:
            return MembershipMutation.NOT_FOUND
        if owner_id == user_id:
            return MembershipMutation.IS_OWNER
        return None

    def _to_entity(self, model: GroupModel) -> Group:
        """Convert ORM model to domain entity."""
        return Group(
            id=model.id,
            name=model.name,
            owner_id=model.owner_id,
            created_at=model.created_at,
        )

    def _to_model(self, entity: Group) -> GroupModel:
        """Convert domain entity to ORM model."""
        return GroupModel(
            id=entity.id,
            name=entity.name,
            owner_id=entity.owner_id,
            created_at=entity.created_at,
        )

    def _membership_to_entity(self, model: MembershipModel) -> Membership:
        """Convert membership ORM model to domain entity."""
        return Membership(
            user_id=model.user_id,
            group_id=model.group_id,
            role=MembershipRole(model.role),
            joined_at=model.joined_at,
        )
