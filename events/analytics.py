# events/analytics.py
"""
Read-side folds for organizer dashboards.

Both builders take already-loaded records and never query on their own
beyond the prefetched team members, so the same input always yields the
same output. Counts do not depend on input order; the team listing keeps it.
"""
from collections import Counter, defaultdict

from django.utils import timezone

from .models import Event, Registration


def _members(registration):
    # Uses the prefetch cache when the caller prefetched team_members
    return list(registration.team_members.all())


def _member_row(member):
    return {
        "name": member.name,
        "email": member.email,
        "user_id": member.user_id,
        "attended": member.attended,
        "attended_at": member.attended_at,
    }


def _team_row(registration, members):
    return {
        "id": registration.id,
        "registration_id": registration.id,
        "team_name": registration.team_name,
        "leader_name": registration.leader_name,
        "leader_email": registration.leader_email,
        "members": [_member_row(m) for m in members],
        "status": registration.status,
        "checked_in": registration.checked_in,
        "qr_code": registration.qr_code,
        "created_at": registration.created_at,
    }


def attendee_count(registration, members=None) -> int:
    if members is None:
        members = _members(registration)
    return 1 + len(members)


def build_event_stats(event, registrations):
    """
    Fold an event's registrations into dashboard numbers plus a flat team list.

    total_attendees counts every leader and listed member regardless of
    status; checked_in_attendees counts checked-in leaders and attended members.
    """
    registrations = list(registrations)

    by_status = Counter(r.status for r in registrations)
    total_attendees = 0
    checked_in_attendees = 0
    teams = []

    for registration in registrations:
        members = _members(registration)
        total_attendees += attendee_count(registration, members)
        checked_in_attendees += int(registration.checked_in)
        checked_in_attendees += sum(1 for m in members if m.attended)
        teams.append(_team_row(registration, members))

    return {
        "event_id": event.id,
        "event_name": event.title,
        "event_description": event.description,
        "location": event.location,
        "coordinates": {"lat": event.location_lat, "lng": event.location_lng},
        "poster": event.banner_image,
        "start_time": event.start_time,
        "end_time": event.end_time,
        "registration_opens_at": event.registration_opens_at,
        "registration_closes_at": event.registration_closes_at,
        "is_free": event.is_free,
        "registration_fee": event.registration_fee,
        "currency": event.currency,
        "status": event.status,

        "total_registrations": len(registrations),
        "accepted": by_status[Registration.STATUS_ACCEPTED],
        "pending": by_status[Registration.STATUS_PENDING],
        "rejected": by_status[Registration.STATUS_REJECTED],
        "total_attendees": total_attendees,
        "checked_in_attendees": checked_in_attendees,
        "teams": teams,

        # Completed-event fields, passed through as stored
        "winners": event.winners,
        "event_photos": event.event_photos,
        "highlights": event.highlights,
        "summary": event.summary,
        "testimonials": event.testimonials,
        "statistics": event.statistics,
    }


def _phase(event, now):
    if event.status == Event.STATUS_CANCELLED:
        return Event.STATUS_CANCELLED
    if event.start_time > now:
        return Event.STATUS_UPCOMING
    if event.end_time < now:
        return Event.STATUS_COMPLETED
    return Event.STATUS_ACTIVE


def build_organizer_stats(events, registrations, now=None):
    """
    Roll-up across all of an organizer's events.

    Attendees of cancelled events still count toward totals; ties for the
    top event go to the first one in the given order.
    """
    now = now or timezone.now()
    events = list(events)

    attendees_by_event = defaultdict(int)
    tickets = 0
    for registration in registrations:
        attendees_by_event[registration.event_id] += attendee_count(registration)
        if registration.qr_code:
            tickets += 1

    phases = Counter(_phase(e, now) for e in events)

    top_event = None
    top_attendees = 0
    longest_event = None
    longest_duration = None
    for event in events:
        attendees = attendees_by_event[event.id]
        if attendees > top_attendees:
            top_event, top_attendees = event, attendees

        duration = event.end_time - event.start_time
        if longest_duration is None or duration > longest_duration:
            longest_event, longest_duration = event, duration

    return {
        "total_events": len(events),
        "total_attendees": sum(attendees_by_event[e.id] for e in events),
        "tickets_distributed": tickets,
        "cancelled_events": phases[Event.STATUS_CANCELLED],
        "upcoming_events": phases[Event.STATUS_UPCOMING],
        "active_events": phases[Event.STATUS_ACTIVE],
        "completed_events": phases[Event.STATUS_COMPLETED],
        "top_event": (
            {"id": top_event.id, "title": top_event.title, "attendees": top_attendees}
            if top_event else None
        ),
        "longest_event": (
            {
                "id": longest_event.id,
                "title": longest_event.title,
                "duration_seconds": int(longest_duration.total_seconds()),
            }
            if longest_event else None
        ),
    }
