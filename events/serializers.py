from rest_framework import serializers

from core.serializers import StrictFieldsMixin
from core.utils import normalize_email
from . import state_machine
from .emails import build_invite_url
from .models import Event, Registration, TeamMember, InvitationToken
from .permissions import user_can_manage_event, user_is_leader


# -----------------------------------------
# INPUT SERIALIZERS (closed schemas)
# -----------------------------------------
class TeamMemberInputSerializer(StrictFieldsMixin, serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    email = serializers.EmailField()

    def validate_email(self, value):
        return normalize_email(value)


class RegistrationCreateSerializer(StrictFieldsMixin, serializers.Serializer):
    event_id = serializers.IntegerField(min_value=1)
    team_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    leader_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    team_members = TeamMemberInputSerializer(many=True, required=False, default=list)
    payment_session_id = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_team_members(self, value):
        emails = [m["email"] for m in value]
        if len(emails) != len(set(emails)):
            raise serializers.ValidationError("Team member emails must be unique.")
        return value


class StatusUpdateSerializer(StrictFieldsMixin, serializers.Serializer):
    # Pending is accepted here so the state machine can refuse it explicitly
    status = serializers.ChoiceField(choices=Registration.STATUS_CHOICES)


class InvitationCreateSerializer(StrictFieldsMixin, serializers.Serializer):
    registration_id = serializers.IntegerField(min_value=1)
    invited_email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)


class InvitationAcceptSerializer(StrictFieldsMixin, serializers.Serializer):
    token = serializers.CharField(max_length=64)


class PaymentVerifySerializer(StrictFieldsMixin, serializers.Serializer):
    event_id = serializers.IntegerField(min_value=1)
    session_id = serializers.CharField(max_length=255)


# -----------------------------------------
# OUTPUT SERIALIZERS
# -----------------------------------------
class EventSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Event
        fields = [
            "id",
            "title",
            "location",
            "start_time",
            "end_time",
            "status",
            "is_free",
            "registration_fee",
            "currency",
            "max_team_size",
        ]


class TeamMemberSerializer(serializers.ModelSerializer):
    class Meta:
        model = TeamMember
        fields = ["id", "name", "email", "user", "attended", "attended_at", "joined_at"]
        read_only_fields = fields


class RegistrationSerializer(serializers.ModelSerializer):
    event = EventSummarySerializer(read_only=True)
    team_members = TeamMemberSerializer(many=True, read_only=True)
    qr_code = serializers.SerializerMethodField()
    allowed_transitions = serializers.SerializerMethodField()

    class Meta:
        model = Registration
        fields = [
            "id",
            "event",
            "leader",
            "leader_name",
            "leader_email",
            "team_name",
            "team_members",
            "status",
            "checked_in",
            "checked_in_at",
            "qr_code",
            "payment_status",
            "allowed_transitions",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_qr_code(self, obj):
        # The credential is only shown to the leader and event managers
        request = self.context.get("request")
        if request is None:
            return obj.qr_code
        viewer = getattr(request, "user", None)
        if viewer is None:
            return None
        if user_is_leader(viewer, obj) or user_can_manage_event(viewer, obj.event):
            return obj.qr_code
        return None

    def get_allowed_transitions(self, obj):
        # Review actions are only offered to the people who can take them
        request = self.context.get("request")
        if request is not None and not user_can_manage_event(getattr(request, "user", None), obj.event):
            return []
        return state_machine.get_allowed_transitions(obj)


class InvitationSerializer(serializers.ModelSerializer):
    registration_id = serializers.IntegerField(source="registration.id", read_only=True)
    team_name = serializers.CharField(source="registration.team_name", read_only=True)
    event_id = serializers.IntegerField(source="registration.event_id", read_only=True)
    event_title = serializers.CharField(source="registration.event.title", read_only=True)
    invite_url = serializers.SerializerMethodField()

    class Meta:
        model = InvitationToken
        fields = [
            "token",
            "registration_id",
            "team_name",
            "event_id",
            "event_title",
            "invited_email",
            "leader_name",
            "issued_at",
            "expires_at",
            "consumed",
            "invite_url",
        ]
        read_only_fields = fields

    def get_invite_url(self, obj):
        return build_invite_url(obj)
