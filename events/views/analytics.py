from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import PermissionDenied

from core.exceptions import EventNotFound
from events.models import Event, Registration
from events.analytics import build_event_stats, build_organizer_stats
from events.permissions import require_event_manager, user_is_system_admin


class EventStatsView(APIView):
    """
    GET /api/events/<event_id>/stats/
    Organizer dashboard numbers plus the flattened team list.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        event = Event.objects.filter(pk=event_id).first()
        if event is None:
            raise EventNotFound()

        require_event_manager(request.user, event)

        # Snapshot read; no locking
        regs = (
            Registration.objects
            .filter(event=event)
            .prefetch_related("team_members")
            .order_by("created_at", "id")
        )
        return Response(build_event_stats(event, regs))


class OrganizerStatsView(APIView):
    """
    GET /api/events/organizer/stats/
    Roll-up across every event the caller organizes.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if not (request.user.is_organizer or user_is_system_admin(request.user)):
            raise PermissionDenied("Only organizers have an organizer dashboard.")

        events = Event.objects.filter(organizer=request.user).order_by("start_time", "id")
        regs = (
            Registration.objects
            .filter(event__organizer=request.user)
            .prefetch_related("team_members")
        )
        return Response(build_organizer_stats(events, regs))
