from .registrations import (
    RegistrationCreateView,
    MyRegistrationsView,
    RegistrationDetailView,
    RegistrationStatusView,
    RegistrationCheckInView,
    MemberAttendedView,
)
from .scan import ScanQRView, RegistrationQRImageView
from .invitations import InvitationCreateView, InvitationAcceptView, MyInvitationsView
from .payments import PaymentVerifyView, PaymentStatusView
from .analytics import EventStatsView, OrganizerStatsView
