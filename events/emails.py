# events/emails.py
from django.core.mail import send_mail
from django.conf import settings


def build_invite_url(invitation):
    """
    Link the frontend uses to show the invitation and call the accept endpoint.
    """
    base = getattr(settings, "FRONTEND_BASE_URL", "").rstrip("/")
    return f"{base}/invite/{invitation.token}"


def send_registration_email(registration):
    """
    Send a simple registration confirmation email
    to the team leader.
    """
    event = registration.event

    if not registration.leader_email:
        # No email set, nothing to send
        return

    subject = f"Registered for {event.title}"
    team_line = f"  Team: {registration.team_name}\n" if registration.team_name else ""

    message = (
        f"Hi {registration.leader_name},\n\n"
        f"Your registration for the event below has been received:\n"
        f"  {event.title}\n"
        f"{team_line}"
        f"  Venue: {event.location or 'TBA'}\n"
        f"  Starts: {event.start_time}\n\n"
        f"The organizer will review it shortly. You can invite teammates\n"
        f"from your dashboard in the meantime.\n\n"
        f"Thank you,\n"
        f"EventFlow"
    )

    send_mail(
        subject=subject,
        message=message,
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[registration.leader_email],
        fail_silently=True,
    )


def send_invitation_email(invitation):
    """
    Email the invite link to the invited address, if the token is pinned to one.
    """
    if not invitation.invited_email:
        return

    registration = invitation.registration
    event = registration.event
    team = registration.team_name or f"{invitation.leader_name}'s team"

    subject = f"You're invited to join {team} for {event.title}"
    message = (
        f"Hi,\n\n"
        f"{invitation.leader_name} has invited you to join {team} "
        f"for the event:\n"
        f"  {event.title}\n"
        f"  Starts: {event.start_time}\n\n"
        f"Accept the invitation here:\n"
        f"{build_invite_url(invitation)}\n\n"
        f"This link can be used once and expires on {invitation.expires_at:%Y-%m-%d %H:%M %Z}.\n\n"
        f"Thank you,\n"
        f"EventFlow"
    )

    send_mail(
        subject=subject,
        message=message,
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[invitation.invited_email],
        fail_silently=True,
    )


def send_status_email(registration):
    """
    Tell the leader their registration was accepted or rejected.
    """
    if not registration.leader_email:
        return

    event = registration.event
    if registration.status == registration.STATUS_ACCEPTED:
        subject = f"You're in: {event.title}"
        body = (
            "Your registration has been accepted. Show your ticket QR code "
            "at the venue to check in."
        )
    else:
        subject = f"Update on your registration for {event.title}"
        body = "Unfortunately your registration was not accepted this time."

    message = (
        f"Hi {registration.leader_name},\n\n"
        f"{body}\n\n"
        f"Thank you,\n"
        f"EventFlow"
    )

    send_mail(
        subject=subject,
        message=message,
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[registration.leader_email],
        fail_silently=True,
    )
