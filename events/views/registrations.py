import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework.exceptions import PermissionDenied
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework import status

from events import registrations, state_machine
from events.emails import send_registration_email, send_status_email
from events.permissions import user_can_view_registration
from events.serializers import (
    RegistrationCreateSerializer,
    RegistrationSerializer,
    StatusUpdateSerializer,
    TeamMemberSerializer,
)

logger = logging.getLogger('eventflow.events')


class RegistrationCreateView(APIView):
    """
    POST /api/events/registrations/
    Body: {"event_id", "team_name"?, "leader_name"?, "team_members"?: [{name, email}],
           "payment_session_id"?}
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = RegistrationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        reg = registrations.create(
            event_id=data["event_id"],
            leader=request.user,
            team_name=data.get("team_name", ""),
            team_members=data.get("team_members", []),
            payment_session_id=data.get("payment_session_id") or None,
            leader_name=data.get("leader_name"),
        )

        # Send email outside transaction (non-critical)
        try:
            send_registration_email(reg)
        except Exception as e:
            logger.warning(f"Failed to send registration email for reg {reg.id}: {e}")

        return Response(
            RegistrationSerializer(reg, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )


class MyRegistrationsView(APIView):
    """
    GET /api/events/registrations/mine/
    Registrations the caller leads or is a member of.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = registrations.registrations_for_user(request.user)
        return Response(RegistrationSerializer(qs, many=True, context={"request": request}).data)


class RegistrationDetailView(APIView):
    """
    GET /api/events/registrations/<reg_id>/
    DELETE cancels it (leader or event manager, before check-in).
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, reg_id):
        reg = state_machine.get_registration(reg_id)
        if not user_can_view_registration(request.user, reg):
            raise PermissionDenied("You do not have access to this registration.")
        return Response(RegistrationSerializer(reg, context={"request": request}).data)

    def delete(self, request, reg_id):
        registrations.cancel(reg_id, actor=request.user)
        return Response({"message": "Registration cancelled", "registration_id": reg_id})


class RegistrationStatusView(APIView):
    """
    PUT /api/events/registrations/<reg_id>/status/
    Body: {"status": "Accepted" | "Rejected"}
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def put(self, request, reg_id):
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reg = state_machine.transition_status(
            reg_id, serializer.validated_data["status"], actor=request.user
        )

        try:
            send_status_email(reg)
        except Exception as e:
            logger.warning(f"Failed to send status email for reg {reg.id}: {e}")

        return Response(RegistrationSerializer(reg, context={"request": request}).data)


class RegistrationCheckInView(APIView):
    """
    PUT /api/events/registrations/<reg_id>/checkin/
    Marks the leader present. Repeating it is harmless.
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, reg_id):
        reg = state_machine.check_in(reg_id, actor=request.user)
        return Response(RegistrationSerializer(reg, context={"request": request}).data)


class MemberAttendedView(APIView):
    """
    PUT /api/events/registrations/<reg_id>/members/<email>/attended/
    """
    permission_classes = [IsAuthenticated]

    def put(self, request, reg_id, email):
        member = state_machine.mark_member_attended(reg_id, email, actor=request.user)
        return Response(TeamMemberSerializer(member).data)
