import logging

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.throttling import ScopedRateThrottle
from rest_framework import status

from events import invitations
from events.emails import send_invitation_email
from events.serializers import (
    InvitationAcceptSerializer,
    InvitationCreateSerializer,
    InvitationSerializer,
    TeamMemberSerializer,
)

logger = logging.getLogger('eventflow.invitations')


class InvitationCreateView(APIView):
    """
    POST /api/events/invitations/
    Body: {"registration_id", "invited_email"?}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = InvitationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        invitation = invitations.mint(
            data["registration_id"],
            actor=request.user,
            invited_email=data.get("invited_email") or None,
        )

        try:
            send_invitation_email(invitation)
        except Exception as e:
            logger.warning(f"Failed to send invitation email for invitation {invitation.id}: {e}")

        return Response(InvitationSerializer(invitation).data, status=status.HTTP_201_CREATED)


class InvitationAcceptView(APIView):
    """
    POST /api/events/invitations/accept/
    Body: {"token": "..."}
    """
    permission_classes = [IsAuthenticated]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "invite-accept"

    def post(self, request):
        serializer = InvitationAcceptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = invitations.redeem(serializer.validated_data["token"], redeemer=request.user)

        return Response(
            {
                "message": "Invitation accepted",
                "registration_id": result["registration"].id,
                "team_name": result["team_name"],
                "event_title": result["event_title"],
                "member": TeamMemberSerializer(result["member"]).data,
            }
        )


class MyInvitationsView(APIView):
    """
    GET /api/events/invitations/mine/
    Live invitations addressed to the caller's email.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = invitations.pending_invitations_for(request.user.email)
        return Response(InvitationSerializer(qs, many=True).data)
