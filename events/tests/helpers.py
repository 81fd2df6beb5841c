from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from events.models import Event, Registration, TeamMember

User = get_user_model()


def make_user(email, role="attendee", name="", **extra):
    return User.objects.create_user(
        username=email,
        email=email,
        password="pass1234",
        name=name or email.split("@")[0].title(),
        role=role,
        **extra,
    )


def make_event(organizer, **overrides):
    now = timezone.now()
    fields = {
        "organizer": organizer,
        "title": "Hack Night",
        "description": "Overnight build sprint",
        "location": "Main Hall",
        "start_time": now + timedelta(days=3),
        "end_time": now + timedelta(days=3, hours=12),
    }
    fields.update(overrides)
    return Event.objects.create(**fields)


def make_registration(event, leader, members=(), status=Registration.STATUS_PENDING, **extra):
    reg = Registration.objects.create(
        event=event,
        leader=leader,
        leader_name=leader.display_name,
        leader_email=leader.email,
        team_name=extra.pop("team_name", "Team Rocket"),
        status=status,
        **extra,
    )
    for email in members:
        TeamMember.objects.create(registration=reg, name=email.split("@")[0], email=email)
    return reg
