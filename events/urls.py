from django.urls import path
from .views import (
    RegistrationCreateView,
    MyRegistrationsView,
    RegistrationDetailView,
    RegistrationStatusView,
    RegistrationCheckInView,
    MemberAttendedView,
    ScanQRView,
    RegistrationQRImageView,
    InvitationCreateView,
    InvitationAcceptView,
    MyInvitationsView,
    PaymentVerifyView,
    PaymentStatusView,
    EventStatsView,
    OrganizerStatsView,
)

urlpatterns = [
    # Registrations
    path("registrations/", RegistrationCreateView.as_view(), name="registration-create"),
    path("registrations/mine/", MyRegistrationsView.as_view(), name="my-registrations"),
    path("registrations/scan/<str:qr_code>/", ScanQRView.as_view(), name="registration-scan"),
    path("registrations/<int:reg_id>/", RegistrationDetailView.as_view(), name="registration-detail"),
    path("registrations/<int:reg_id>/status/", RegistrationStatusView.as_view(), name="registration-status"),
    path("registrations/<int:reg_id>/checkin/", RegistrationCheckInView.as_view(), name="registration-checkin"),
    path(
        "registrations/<int:reg_id>/members/<str:email>/attended/",
        MemberAttendedView.as_view(),
        name="registration-member-attended",
    ),
    path("registrations/<int:reg_id>/qr_image/", RegistrationQRImageView.as_view(), name="registration-qr-image"),

    # Invitations
    path("invitations/", InvitationCreateView.as_view(), name="invitation-create"),
    path("invitations/accept/", InvitationAcceptView.as_view(), name="invitation-accept"),
    path("invitations/mine/", MyInvitationsView.as_view(), name="my-invitations"),

    # Payments
    path("payments/verify/", PaymentVerifyView.as_view(), name="payment-verify"),
    path("payments/status/<int:event_id>/", PaymentStatusView.as_view(), name="payment-status"),

    # Stats
    path("organizer/stats/", OrganizerStatsView.as_view(), name="organizer-stats"),
    path("<int:event_id>/stats/", EventStatsView.as_view(), name="event-stats"),
]
