"""Seed helpers for API integration tests."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from domain.entities.group import Group, Membership, MembershipRole
from domain.entities.user import User
from infrastructure.auth.jwt_codec import JWTSessionCodec
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from tests.conftest import make_access_token


@dataclass
class Seeded:
    """A group with its owner, plus a bearer header for the owner."""

    owner: User
    group: Group
    headers: dict[str, str]


AddMember = Callable[..., Awaitable[tuple[User, dict[str, str]]]]


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    return lambda: SQLAlchemyUnitOfWork(session_factory)


@pytest.fixture
async def seeded(
    uow_factory: Callable[[], SQLAlchemyUnitOfWork], codec: JWTSessionCodec
) -> Seeded:
    """Create Alex, owner and admin of the Family group."""
    async with uow_factory() as uow:
        owner = await uow.users.get_or_create(User(name="Alex", email="alex@example.com"))
        group = await uow.groups.create(Group(name="Family", owner_id=owner.id))
        await uow.groups.add_membership_if_absent(
            Membership(user_id=owner.id, group_id=group.id, role=MembershipRole.ADMIN)
        )
        await uow.commit()

    token = make_access_token(codec, owner.id, group.id)
    return Seeded(owner=owner, group=group, headers={"Authorization": f"Bearer {token}"})


@pytest.fixture
def add_member(
    uow_factory: Callable[[], SQLAlchemyUnitOfWork], codec: JWTSessionCodec
) -> AddMember:
    """Return a helper that adds a user to a group and mints their token."""

    async def _add(
        group_id: UUID,
        email: str,
        name: str = "Member",
        role: MembershipRole = MembershipRole.MEMBER,
    ) -> tuple[User, dict[str, str]]:
        async with uow_factory() as uow:
            user = await uow.users.get_or_create(User(name=name, email=email))
            await uow.groups.add_membership_if_absent(
                Membership(user_id=user.id, group_id=group_id, role=role)
            )
            await uow.commit()
        token = make_access_token(codec, user.id, group_id, role)
        return user, {"Authorization": f"Bearer {token}"}

    return _add
