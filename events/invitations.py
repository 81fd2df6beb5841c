# events/invitations.py
"""
Invitation tokens: single-use, time-bound links that add one person to a team.

A token is consumed by a conditional UPDATE (consumed=False -> True); its row
count decides the one redeemer who wins. The member insert runs in the same
transaction, so any failure after the claim leaves the token unconsumed.
"""
import logging
import secrets

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from core.exceptions import (
    AlreadyConsumed,
    DuplicateMember,
    DuplicateRegistration,
    EmailMismatch,
    Expired,
    InvalidToken,
    InvalidTransition,
    RegistrationNotFound,
    TeamFull,
    TokenRevoked,
)
from core.utils import normalize_email
from .models import InvitationToken, Registration, TeamMember
from .permissions import require_leader_or_manager

logger = logging.getLogger('eventflow.invitations')


def generate_token() -> str:
    return secrets.token_urlsafe(32)


def team_size(registration) -> int:
    # The leader occupies one seat
    return 1 + registration.team_members.count()


def _ensure_capacity(registration):
    limit = registration.event.max_team_size
    if limit and team_size(registration) >= limit:
        raise TeamFull()


def _is_on_team(registration, email) -> bool:
    if email == normalize_email(registration.leader_email):
        return True
    return registration.team_members.filter(email=email).exists()


def _registered_elsewhere(registration, email, user=None) -> bool:
    """
    True when email (or user) already leads or belongs to another team of
    the same event. One person holds at most one seat per event.
    """
    query = Q(leader_email=email) | Q(team_members__email=email)
    if user is not None:
        query |= Q(leader=user)
    return (
        Registration.objects
        .filter(event_id=registration.event_id)
        .exclude(pk=registration.pk)
        .filter(query)
        .exists()
    )


def mint(registration_id, actor, invited_email=None, now=None) -> InvitationToken:
    """
    Issue a new invitation for a registration.

    invited_email pins the token to one address; without it, anyone
    holding the link may redeem it.
    """
    now = now or timezone.now()

    registration = (
        Registration.objects
        .select_related("event")
        .filter(pk=registration_id)
        .first()
    )
    if registration is None:
        raise RegistrationNotFound()

    require_leader_or_manager(actor, registration)

    if registration.status == Registration.STATUS_REJECTED:
        raise InvalidTransition("Cannot invite members to a rejected registration.")

    email = normalize_email(invited_email) if invited_email else None
    if email and _is_on_team(registration, email):
        raise DuplicateMember("This person is already on the team.")
    if email and _registered_elsewhere(registration, email):
        raise DuplicateRegistration("This person is already registered for this event.")

    _ensure_capacity(registration)

    invitation = InvitationToken.objects.create(
        token=generate_token(),
        registration=registration,
        invited_email=email,
        leader_name=registration.leader_name,
        issued_at=now,
        expires_at=now + settings.INVITATION_TOKEN_TTL,
    )

    logger.info(
        f"Invitation minted: registration={registration.id}, invitation={invitation.id}, "
        f"invited_email={email or '-'}, actor={getattr(actor, 'id', 'unknown')}"
    )
    return invitation


def redeem(token, redeemer, now=None) -> dict:
    """
    Add redeemer to the token's team and consume the token.

    Failures are checked in a fixed order: InvalidToken, AlreadyConsumed,
    TokenRevoked, Expired, EmailMismatch, DuplicateMember,
    DuplicateRegistration, TeamFull.
    """
    now = now or timezone.now()
    token = (token or "").strip()
    email = normalize_email(getattr(redeemer, "email", ""))

    with transaction.atomic():
        invitation = (
            InvitationToken.objects
            .select_related("registration__event")
            .filter(token=token)
            .first()
        )
        if invitation is None:
            raise InvalidToken()

        # Serialises appends to one team so max_team_size holds
        registration = (
            Registration.objects
            .select_for_update()
            .select_related("event")
            .get(pk=invitation.registration_id)
        )

        if invitation.consumed:
            raise AlreadyConsumed()

        if invitation.is_revoked or registration.status == Registration.STATUS_REJECTED:
            raise TokenRevoked()

        if invitation.is_expired(now):
            raise Expired()

        if invitation.invited_email and normalize_email(invitation.invited_email) != email:
            raise EmailMismatch()

        if _is_on_team(registration, email):
            raise DuplicateMember()

        if _registered_elsewhere(registration, email, redeemer):
            raise DuplicateRegistration("You are already registered for this event.")

        _ensure_capacity(registration)

        claimed = (
            InvitationToken.objects
            .filter(pk=invitation.pk, consumed=False, revoked_at__isnull=True)
            .update(consumed=True, consumed_at=now, consumed_by=redeemer)
        )
        if not claimed:
            invitation.refresh_from_db(fields=["consumed", "revoked_at"])
            logger.info(f"Invitation redemption lost race: invitation={invitation.id}, user={redeemer.id}")
            if invitation.consumed:
                raise AlreadyConsumed()
            raise TokenRevoked()

        try:
            with transaction.atomic():
                member = TeamMember.objects.create(
                    registration=registration,
                    name=getattr(redeemer, "display_name", "") or email,
                    email=email,
                    user=redeemer,
                )
        except IntegrityError:
            # Raising here rolls back the claim above
            raise DuplicateMember()

        Registration.objects.filter(pk=registration.pk).update(updated_at=now)

    logger.info(
        f"Invitation redeemed: invitation={invitation.id}, registration={registration.id}, "
        f"user={redeemer.id}"
    )
    return {
        "registration": registration,
        "member": member,
        "team_name": registration.team_name,
        "event_title": registration.event.title,
    }


def revoke_outstanding(registration, now=None) -> int:
    now = now or timezone.now()
    revoked = (
        InvitationToken.objects
        .filter(registration=registration, consumed=False, revoked_at__isnull=True)
        .update(revoked_at=now)
    )
    if revoked:
        logger.info(f"Revoked {revoked} outstanding invitation(s) for registration={registration.pk}")
    return revoked


def pending_invitations_for(email, now=None):
    """
    Live invitations addressed to this email, newest first.
    """
    now = now or timezone.now()
    return (
        InvitationToken.objects
        .select_related("registration__event")
        .filter(
            invited_email=normalize_email(email),
            consumed=False,
            revoked_at__isnull=True,
            expires_at__gt=now,
        )
        .exclude(registration__status=Registration.STATUS_REJECTED)
        .order_by("-issued_at", "-id")
    )
