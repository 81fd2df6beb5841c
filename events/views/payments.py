from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from core.exceptions import EventNotFound
from events.models import Event
from events.payments import confirm_payment, has_confirmed_payment
from events.serializers import PaymentVerifySerializer


class PaymentVerifyView(APIView):
    """
    POST /api/events/payments/verify/
    Body: {"event_id", "session_id"}

    Asks the provider whether the checkout session is paid and records the
    confirmation for (event, caller). Registration for a paid event needs it.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = PaymentVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        event = Event.objects.filter(pk=data["event_id"]).first()
        if event is None:
            raise EventNotFound()

        confirmation = confirm_payment(event, request.user, data["session_id"])

        return Response(
            {
                "paid": True,
                "event_id": event.id,
                "session_id": confirmation.session_id,
                "amount_total": confirmation.amount_total,
                "currency": confirmation.currency,
                "confirmed_at": confirmation.confirmed_at,
            }
        )


class PaymentStatusView(APIView):
    """
    GET /api/events/payments/status/<event_id>/

    Whether the caller already holds a confirmed payment for the event.
    Answered from stored confirmations only; the provider is not contacted.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        event = Event.objects.filter(pk=event_id).first()
        if event is None:
            raise EventNotFound()

        return Response(
            {
                "event_id": event.id,
                "is_paid_event": event.is_paid,
                "paid": has_confirmed_payment(event, request.user),
            }
        )
