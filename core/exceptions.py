from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.db import InterfaceError, OperationalError
from django.http import Http404
import logging

logger = logging.getLogger("eventflow.core")


# -------------------------------------------------------------------
# Domain errors
#
# Every failure of the registration lifecycle is an expected, named
# outcome. Each one maps to its own status + code so clients can branch
# ("already accepted" vs "link expired" vs "wrong email").
# -------------------------------------------------------------------
class DomainError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed."
    default_code = "domain_error"


# --- NotFound ---
class EventNotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Event not found."
    default_code = "event_not_found"


class RegistrationNotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Registration not found."
    default_code = "registration_not_found"


class MemberNotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Team member not found."
    default_code = "member_not_found"


class InvalidToken(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Invalid invitation token."
    default_code = "invalid_token"


class VerificationNotFound(DomainError):
    default_detail = "No verification code found for this email. Please request a new one."
    default_code = "verification_not_found"


# --- Mismatch ---
class VerificationMismatch(DomainError):
    default_detail = "Invalid verification code."
    default_code = "verification_mismatch"


class EmailMismatch(DomainError):
    default_detail = "This invitation was sent to a different email address."
    default_code = "email_mismatch"


# --- Expired ---
class Expired(DomainError):
    default_detail = "This invitation link has expired."
    default_code = "expired"


# --- Conflict ---
class DuplicateRegistration(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Already registered for this event."
    default_code = "duplicate_registration"


class DuplicateMember(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You are already a member of this team."
    default_code = "duplicate_member"


class AlreadyConsumed(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This invitation has already been accepted."
    default_code = "already_consumed"


class TokenRevoked(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This invitation is no longer valid."
    default_code = "token_revoked"


class EmailAlreadyRegistered(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Email already registered. Please login."
    default_code = "email_already_registered"


class TeamFull(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "This team is full."
    default_code = "team_full"


# --- State machine ---
class InvalidTransition(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Invalid status transition."
    default_code = "invalid_transition"


class NotAccepted(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Registration has not been accepted."
    default_code = "not_accepted"


class RegistrationClosed(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Registration is closed for this event."
    default_code = "registration_closed"


# --- Payment gate ---
class PaymentRequired(DomainError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_detail = "Payment is required to register for this event."
    default_code = "payment_required"


class PaymentUnverified(DomainError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment could not be verified. Please try again."
    default_code = "payment_unverified"


# --- Infrastructure ---
class DependencyUnavailable(DomainError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service temporarily unavailable. Please retry."
    default_code = "dependency_unavailable"


def _error_code(exc):
    if isinstance(exc, Http404):
        return "not_found"
    if isinstance(exc, DjangoPermissionDenied):
        return "permission_denied"
    if isinstance(exc, APIException):
        codes = exc.get_codes()
        if isinstance(codes, str):
            return codes
        return exc.default_code
    return "error"


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into a consistent response format.

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    if isinstance(exc, (OperationalError, InterfaceError)):
        # Storage connectivity loss is fatal to the request; the caller retries.
        logger.error("Storage unavailable while handling request: %s", exc)
        exc = DependencyUnavailable()

    response = drf_exception_handler(exc, context)

    # If DRF handled it, wrap it
    if response is not None:
        headers = {
            name: response[name]
            for name in ("WWW-Authenticate", "Retry-After")
            if response.has_header(name)
        }
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "code": _error_code(exc),
                "errors": response.data,
            },
            status=response.status_code,
            headers=headers,
        )

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "code": "internal_error",
            "errors": {"detail": "Internal server error."},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
