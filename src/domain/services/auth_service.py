"""Magic link authentication flows: invites, login links and redemption."""

from collections.abc import Callable

import structlog

from core.exceptions import (
    GroupNotFoundError,
    MagicLinkError,
    UserAlreadyExistsError,
    ValidationError,
)
from domain.entities.group import Membership, MembershipRole
from domain.entities.magic_link import (
    MagicLinkFailure,
    MagicLinkKind,
    MagicLinkToken,
    RedemptionState,
)
from domain.entities.session import AuthContext, RedemptionResult
from domain.entities.user import MAX_NAME_LENGTH, User, normalize_email, normalize_name
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.magic_link_service import MagicLinkStore
from domain.services.session_service import SessionService
from infrastructure.email.sender import IEmailSender

logger = structlog.get_logger()


class AuthService:
    """Passwordless authentication built on single-use magic links."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        magic_links: MagicLinkStore,
        sessions: SessionService,
        email_sender: IEmailSender,
        frontend_url: str,
    ) -> None:
        self._uow_factory = uow_factory
        self._magic_links = magic_links
        self._sessions = sessions
        self._email = email_sender
        self._frontend_url = frontend_url.rstrip("/")

    def build_link(self, token: str) -> str:
        """URL the client opens to redeem a token."""
        return f"{self._frontend_url}/auth/{token}"

    async def send_invite(
        self,
        actor: AuthContext,
        email: str,
        role: MembershipRole = MembershipRole.MEMBER,
        name: str | None = None,
    ) -> MagicLinkToken:
        """Invite an email address into the actor's active group.

        The caller must already be authorized as a group admin.

        Raises:
            GroupNotFoundError: If the active group no longer exists.
            UserAlreadyExistsError: If the email already belongs to a member.
        """
        email = normalize_email(email)

        async with self._uow_factory() as uow:
            group = await uow.groups.get(actor.group_id)
            if not group:
                raise GroupNotFoundError(str(actor.group_id))

            existing = await uow.users.get_by_email(email)
            if existing and await uow.groups.get_membership(existing.id, group.id):
                raise UserAlreadyExistsError(email)

            record = await self._magic_links.issue(
                uow,
                group_id=group.id,
                email=email,
                kind=MagicLinkKind.INVITE,
                invite_role=role,
            )
            await uow.commit()

        await self._email.send_invite(
            email, normalize_name(name), group.name, self.build_link(record.token)
        )
        logger.info(
            "invite_sent",
            group_id=str(group.id),
            invited_by=str(actor.user_id),
            role=role.value,
        )
        return record

    async def send_login_link(self, email: str) -> None:
        """Email a login link if the address belongs to a user.

        Returns silently for unknown addresses; callers must respond the
        same way in both cases.
        """
        email = normalize_email(email)

        async with self._uow_factory() as uow:
            user = await uow.users.get_by_email(email)
            if not user:
                logger.info("login_link_unknown_email")
                return

            groups = await uow.groups.get_user_groups(user.id)
            record = await self._magic_links.issue(
                uow,
                group_id=groups[0].id if groups else None,
                email=email,
                kind=MagicLinkKind.LOGIN,
            )
            await uow.commit()

        await self._email.send_login_link(email, user.name, self.build_link(record.token))
        logger.info("login_link_sent", user_id=str(user.id))

    async def verify_magic_link(
        self, token: str, display_name: str | None = None
    ) -> RedemptionResult:
        """Redeem a magic link.

        An invite for an address without an account needs a display name.
        Without one the token is left unconsumed and the result is
        AWAITING_NAME; presenting the same token again with a name finishes
        the redemption. Membership creation is idempotent, so a token
        redeemed twice concurrently cannot create duplicate rows.

        Raises:
            MagicLinkError: If the token is unknown, expired or used.
            ValidationError: If the display name is too long.
        """
        name = normalize_name(display_name)
        if name is not None and len(name) > MAX_NAME_LENGTH:
            raise ValidationError("Name is too long")

        async with self._uow_factory() as uow:
            verification = await self._magic_links.verify(uow, token)
            if not verification.valid or verification.record is None:
                reason = verification.reason or MagicLinkFailure.NOT_FOUND
                logger.info("magic_link_rejected", reason=reason.value)
                raise MagicLinkError(reason.value)

            record = verification.record
            state = RedemptionState.PRESENTED

            match record.kind:
                case MagicLinkKind.INVITE:
                    user = await self._redeem_invite(uow, record, name)
                case MagicLinkKind.LOGIN:
                    user = await uow.users.get_by_email(record.email)
                    if not user:
                        raise MagicLinkError(MagicLinkFailure.NOT_FOUND.value)

            if user is None:
                state = RedemptionState.AWAITING_NAME
                logger.info("magic_link_awaiting_name", kind=record.kind.value)
                return RedemptionResult(state=state)

            if not await self._magic_links.consume(uow, record.token):
                raise MagicLinkError(MagicLinkFailure.ALREADY_USED.value)
            state = RedemptionState.CONSUMED

            session = await self._sessions.open_session(uow, user, record.group_id)
            await uow.commit()

        logger.info(
            "magic_link_redeemed",
            kind=record.kind.value,
            user_id=str(user.id),
            needs_group_selection=session.needs_group_selection,
        )
        return RedemptionResult(state=state, session=session)

    async def _redeem_invite(
        self, uow: IUnitOfWork, record: MagicLinkToken, name: str | None
    ) -> User | None:
        """Apply an invite's effects; None when a display name is still needed."""
        if record.group_id is None or record.invite_role is None:
            raise MagicLinkError(MagicLinkFailure.NOT_FOUND.value)

        group = await uow.groups.get(record.group_id)
        if not group:
            raise GroupNotFoundError(str(record.group_id))

        user = await uow.users.get_by_email(record.email)
        if user is None:
            if name is None:
                return None
            user = await uow.users.get_or_create(User(name=name, email=record.email))

        created = await uow.groups.add_membership_if_absent(
            Membership(user_id=user.id, group_id=group.id, role=record.invite_role)
        )
        if created:
            logger.info(
                "membership_created",
                user_id=str(user.id),
                group_id=str(group.id),
                role=record.invite_role.value,
            )
        return user
