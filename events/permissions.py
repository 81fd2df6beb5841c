from rest_framework.exceptions import PermissionDenied


# ---- Helper functions -------------------------------------------------


def user_is_system_admin(user) -> bool:
    """
    Global admin flag: staff and superusers.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return bool(user.is_superuser or user.is_staff)


def user_can_manage_event(user, event) -> bool:
    """
    Who can review registrations, run check-in and read stats?
    - the event organizer
    - global admin
    """
    if not user or not getattr(user, "is_authenticated", False) or event is None:
        return False

    return event.organizer_id == user.id or user_is_system_admin(user)


def user_is_leader(user, registration) -> bool:
    if not user or not getattr(user, "is_authenticated", False):
        return False
    return registration.leader_id == user.id


def user_can_view_registration(user, registration) -> bool:
    """
    Leader, any listed team member, or an event manager.
    """
    if user_is_leader(user, registration) or user_can_manage_event(user, registration.event):
        return True
    email = (getattr(user, "email", "") or "").lower()
    return bool(email) and registration.team_members.filter(email=email).exists()


def require_event_manager(user, event):
    if not user_can_manage_event(user, event):
        raise PermissionDenied("You do not have permission to manage registrations for this event.")


def require_leader_or_manager(user, registration, message="Only the team leader can invite members."):
    if not (user_is_leader(user, registration) or user_can_manage_event(user, registration.event)):
        raise PermissionDenied(message)
