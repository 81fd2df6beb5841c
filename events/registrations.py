# events/registrations.py
import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from core.exceptions import (
    DuplicateMember,
    DuplicateRegistration,
    EventNotFound,
    InvalidTransition,
    RegistrationClosed,
    RegistrationNotFound,
    TeamFull,
)
from core.utils import normalize_email
from .models import Event, Registration, TeamMember
from .payments import confirm_payment
from .permissions import require_leader_or_manager

logger = logging.getLogger('eventflow.events')


def _clean_members(leader_email, team_members):
    """
    Normalise the submitted members: emails lower-cased, unique, and never
    the leader's own address.
    """
    cleaned = []
    seen = {leader_email}
    for member in team_members or []:
        email = normalize_email(member.get("email", ""))
        if email in seen:
            if email == leader_email:
                raise DuplicateMember("The team leader cannot also be listed as a member.")
            raise DuplicateMember(f"{email} is listed more than once.")
        seen.add(email)
        cleaned.append({"name": (member.get("name") or "").strip(), "email": email})
    return cleaned


def _already_registered(event, leader, emails) -> bool:
    return (
        Registration.objects
        .filter(event=event)
        .filter(
            Q(leader=leader)
            | Q(leader_email__in=emails)
            | Q(team_members__email__in=emails)
        )
        .exists()
    )


def create(event_id, leader, team_name="", team_members=None, payment_session_id=None,
           leader_name=None, now=None) -> Registration:
    """
    Register leader (plus an initial team) for an event. Starts Pending.
    """
    now = now or timezone.now()

    event = Event.objects.filter(pk=event_id).first()
    if event is None:
        raise EventNotFound()

    if not event.registration_open(now):
        logger.info(f"Registration refused, window closed: event={event.id}, user={leader.id}")
        raise RegistrationClosed()

    leader_email = normalize_email(leader.email)
    members = _clean_members(leader_email, team_members)

    if event.max_team_size and 1 + len(members) > event.max_team_size:
        raise TeamFull(f"Teams for this event are limited to {event.max_team_size} people.")

    emails = [leader_email] + [m["email"] for m in members]
    if _already_registered(event, leader, emails):
        raise DuplicateRegistration()

    payment_reference = None
    payment_status = Registration.PAYMENT_NOT_REQUIRED
    if event.is_paid:
        # Network call stays outside the transaction
        confirmation = confirm_payment(event, leader, payment_session_id)
        payment_reference = confirmation.session_id
        payment_status = Registration.PAYMENT_PAID

    try:
        with transaction.atomic():
            registration = Registration.objects.create(
                event=event,
                leader=leader,
                leader_name=(leader_name or "").strip() or leader.display_name,
                leader_email=leader_email,
                team_name=(team_name or "").strip(),
                payment_status=payment_status,
                payment_reference=payment_reference,
            )
            TeamMember.objects.bulk_create(
                [
                    TeamMember(registration=registration, name=m["name"], email=m["email"])
                    for m in members
                ]
            )
    except IntegrityError:
        logger.info(f"Duplicate registration blocked by constraint: event={event.id}, user={leader.id}")
        raise DuplicateRegistration()

    logger.info(
        f"Registration created: registration={registration.id}, event={event.id}, "
        f"leader={leader.id}, members={len(members)}"
    )
    return registration


def registrations_for_user(user):
    """
    Registrations the user leads or belongs to, newest first.
    """
    email = normalize_email(getattr(user, "email", ""))
    return (
        Registration.objects
        .select_related("event")
        .prefetch_related("team_members")
        .filter(Q(leader=user) | Q(team_members__email=email))
        .distinct()
        .order_by("-created_at", "-id")
    )


def cancel(registration_id, actor) -> int:
    """
    Withdraw a registration with its team, invitations and ticket.

    Allowed for the leader or an event manager until anyone on the team has
    been marked present. A Rejected registration stays as the organizer's
    record. Any recorded payment is kept, so registering again does not
    need a second checkout.
    """
    registration = (
        Registration.objects
        .select_related("event")
        .filter(pk=registration_id)
        .first()
    )
    if registration is None:
        raise RegistrationNotFound()

    require_leader_or_manager(
        actor, registration, "Only the team leader or an event manager can cancel this registration."
    )

    if registration.status == Registration.STATUS_REJECTED:
        raise InvalidTransition("A rejected registration cannot be cancelled.")

    with transaction.atomic():
        # Guarded delete: a concurrent check-in wins over the cancellation
        deleted, _ = (
            Registration.objects
            .filter(pk=registration.pk, checked_in=False)
            .exclude(status=Registration.STATUS_REJECTED)
            .exclude(team_members__attended=True)
            .delete()
        )
    if not deleted:
        logger.warning(
            f"Cancellation refused after attendance: registration={registration.pk}, "
            f"actor={getattr(actor, 'id', 'unknown')}"
        )
        raise InvalidTransition("A registration cannot be cancelled once its team has checked in.")

    logger.info(
        f"Registration cancelled: registration={registration_id}, event={registration.event_id}, "
        f"actor={getattr(actor, 'id', 'unknown')}"
    )
    return deleted
