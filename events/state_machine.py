# events/state_machine.py
"""
Registration State Machine.

Enforces valid state transitions for a registration's review:
Pending → Accepted
       └→ Rejected

Accepted and Rejected are terminal. Any transition not in VALID_TRANSITIONS
is rejected. Attendance flags (leader check-in, member attended) are
orthogonal to status but only settable while Accepted.

Every write is a conditional UPDATE guarded by the state it expects, so
concurrent requests resolve to exactly one winner without a lock.
"""
from typing import Tuple
import logging
import secrets

from django.db import transaction
from django.db.models import F, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from core.exceptions import (
    InvalidTransition,
    MemberNotFound,
    NotAccepted,
    PaymentRequired,
    RegistrationNotFound,
)
from core.utils import normalize_email
from .invitations import revoke_outstanding
from .models import Registration, TeamMember
from .permissions import require_event_manager

logger = logging.getLogger('eventflow.events')


# Valid state transitions: from_status -> list of allowed to_statuses
VALID_TRANSITIONS = {
    Registration.STATUS_PENDING: [Registration.STATUS_ACCEPTED, Registration.STATUS_REJECTED],
    Registration.STATUS_ACCEPTED: [],
    Registration.STATUS_REJECTED: [],
}


def can_transition(registration: Registration, new_status: str) -> Tuple[bool, str]:
    """
    Check if a registration can transition to a new status.

    Returns (can_transition: bool, reason: str)
    """
    current_status = registration.status

    if new_status not in VALID_TRANSITIONS:
        return False, f"Invalid status: {new_status}"

    if is_terminal_status(current_status):
        return False, f"Registration is already {current_status}; '{current_status}' is final"

    if new_status not in get_allowed_transitions(registration):
        return False, f"Cannot transition from '{current_status}' to '{new_status}'"

    return True, ""


def get_allowed_transitions(registration: Registration) -> list:
    return VALID_TRANSITIONS.get(registration.status, [])


def is_terminal_status(status: str) -> bool:
    return status not in VALID_TRANSITIONS or len(VALID_TRANSITIONS[status]) == 0


def generate_qr_code(registration: Registration) -> str:
    return f"EVT{registration.event_id}-{secrets.token_hex(16)}"


def get_registration(registration_id) -> Registration:
    registration = (
        Registration.objects
        .select_related("event")
        .filter(pk=registration_id)
        .first()
    )
    if registration is None:
        raise RegistrationNotFound()
    return registration


def transition_status(registration_id, new_status: str, actor) -> Registration:
    """
    Move a Pending registration to Accepted or Rejected.

    Accepting issues the QR credential (if not already set). Rejecting
    revokes every outstanding invitation token of the registration.
    """
    registration = get_registration(registration_id)
    require_event_manager(actor, registration.event)

    can, reason = can_transition(registration, new_status)
    if not can:
        logger.warning(
            f"Invalid state transition attempted: registration={registration.id}, "
            f"from={registration.status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}. "
            f"Reason: {reason}"
        )
        raise InvalidTransition(reason)

    if (
        new_status == Registration.STATUS_ACCEPTED
        and registration.event.is_paid
        and registration.payment_status != Registration.PAYMENT_PAID
    ):
        raise PaymentRequired("Registration cannot be accepted before payment is confirmed.")

    now = timezone.now()
    updates = {"status": new_status, "updated_at": now}
    if new_status == Registration.STATUS_ACCEPTED:
        updates["qr_code"] = Coalesce(F("qr_code"), Value(generate_qr_code(registration)))

    old_status = registration.status
    with transaction.atomic():
        updated = (
            Registration.objects
            .filter(pk=registration.pk, status=Registration.STATUS_PENDING)
            .update(**updates)
        )
        if not updated:
            # Someone else decided this registration between our read and write
            registration.refresh_from_db(fields=["status"])
            logger.warning(
                f"Lost status race: registration={registration.id}, "
                f"now={registration.status}, wanted={new_status}"
            )
            raise InvalidTransition(
                f"Cannot transition from '{registration.status}' to '{new_status}'"
            )

        if new_status == Registration.STATUS_REJECTED:
            revoke_outstanding(registration, now=now)

    registration.refresh_from_db()

    logger.info(
        f"Registration state transition: registration={registration.id}, "
        f"from={old_status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}"
    )
    return registration


def check_in(registration_id, actor) -> Registration:
    """
    Mark the leader as present. Re-checking in is a no-op success.
    """
    registration = get_registration(registration_id)
    require_event_manager(actor, registration.event)

    # Accepted is terminal, so a status read cannot go stale in the wrong direction
    if registration.status != Registration.STATUS_ACCEPTED:
        raise NotAccepted("Only accepted registrations can be checked in.")

    now = timezone.now()
    updated = (
        Registration.objects
        .filter(pk=registration.pk, status=Registration.STATUS_ACCEPTED, checked_in=False)
        .update(checked_in=True, checked_in_at=now, updated_at=now)
    )
    registration.refresh_from_db()

    if updated:
        logger.info(f"Check-in: registration={registration.id}, actor={getattr(actor, 'id', 'unknown')}")
    else:
        logger.info(f"Check-in repeated (no-op): registration={registration.id}")
    return registration


def mark_member_attended(registration_id, member_email: str, actor) -> TeamMember:
    """
    Mark one team member as present. Idempotent.
    """
    registration = get_registration(registration_id)
    require_event_manager(actor, registration.event)

    if registration.status != Registration.STATUS_ACCEPTED:
        raise NotAccepted("Attendance can only be recorded for accepted registrations.")

    email = normalize_email(member_email)
    member = registration.team_members.filter(email=email).first()
    if member is None:
        raise MemberNotFound()

    now = timezone.now()
    updated = (
        TeamMember.objects
        .filter(pk=member.pk, attended=False)
        .update(attended=True, attended_at=now)
    )
    member.refresh_from_db()

    if updated:
        Registration.objects.filter(pk=registration.pk).update(updated_at=now)
        logger.info(
            f"Member attended: registration={registration.id}, member={email}, "
            f"actor={getattr(actor, 'id', 'unknown')}"
        )
    return member


def check_in_by_qr(qr_code: str, actor) -> Registration:
    """
    Scanner entry point: resolve the QR credential, then check in.
    """
    registration = Registration.objects.filter(qr_code=(qr_code or "").strip()).only("id").first()
    if registration is None:
        logger.warning(f"Scan of unknown QR code by actor={getattr(actor, 'id', 'unknown')}")
        raise RegistrationNotFound("No registration matches this QR code.")
    return check_in(registration.pk, actor)
