from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.exceptions import PermissionDenied
from rest_framework.throttling import ScopedRateThrottle
from django.http import HttpResponse
import qrcode
from io import BytesIO

from core.exceptions import NotAccepted
from events import state_machine
from events.permissions import user_can_view_registration
from events.serializers import RegistrationSerializer


class ScanQRView(APIView):
    """
    POST /api/events/registrations/scan/<qr_code>/

    Venue scanner: resolves the ticket credential and checks the leader in.
    Only the event organizer (or an admin) may scan.
    """

    permission_classes = [IsAuthenticated]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "qr-scan"

    def post(self, request, qr_code):
        reg = state_machine.check_in_by_qr(str(qr_code), actor=request.user)
        return Response(RegistrationSerializer(reg, context={"request": request}).data)


class RegistrationQRImageView(APIView):
    """
    GET /api/events/registrations/<reg_id>/qr_image/
    PNG ticket for an accepted registration.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, reg_id):
        reg = state_machine.get_registration(reg_id)
        if not user_can_view_registration(request.user, reg):
            raise PermissionDenied("You do not have access to this ticket.")

        if reg.status != reg.STATUS_ACCEPTED or not reg.qr_code:
            raise NotAccepted("Tickets are issued once the registration is accepted.")

        qr_img = qrcode.make(reg.qr_code)
        buffer = BytesIO()
        qr_img.save(buffer, format="PNG")
        buffer.seek(0)

        response = HttpResponse(buffer.getvalue(), content_type="image/png")
        response["Cache-Control"] = "no-store"
        return response
