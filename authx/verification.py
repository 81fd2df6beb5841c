# authx/verification.py
"""
Verification Store: short-lived email codes, one per (email, purpose).

  issue(email)          -> new code, replaces any previous one
  verify(email, code)   -> record (left intact) or VerificationNotFound / VerificationMismatch
  consume(email)        -> delete once the code has done its job

Signup codes prove control of a new address; password reset codes are only
ever issued to addresses that already have an account. Expired records are
discarded on every lookup, so correctness does not depend on the periodic
purge task.
"""
import logging
import secrets

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.crypto import constant_time_compare

from core.exceptions import (
    EmailAlreadyRegistered,
    VerificationMismatch,
    VerificationNotFound,
)
from core.utils import normalize_email
from .models import EmailVerification

logger = logging.getLogger("eventflow.authx")

User = get_user_model()

SIGNUP = EmailVerification.PURPOSE_SIGNUP
PASSWORD_RESET = EmailVerification.PURPOSE_PASSWORD_RESET


def generate_code(length=None):
    length = length or getattr(settings, "VERIFICATION_CODE_LENGTH", 6)
    # First digit is never zero so the code keeps its length when rendered as a number
    first = str(secrets.randbelow(9) + 1)
    rest = "".join(str(secrets.randbelow(10)) for _ in range(length - 1))
    return first + rest


def issue(email, now=None, purpose=SIGNUP):
    email = normalize_email(email)
    now = now or timezone.now()
    otp = generate_code()
    fields = {"otp": otp, "expires_at": now + settings.VERIFICATION_CODE_TTL}

    try:
        with transaction.atomic():
            EmailVerification.objects.update_or_create(email=email, purpose=purpose, defaults=fields)
    except IntegrityError:
        # A concurrent issue for the same address inserted first; overwrite it
        EmailVerification.objects.filter(email=email, purpose=purpose).update(**fields)

    logger.info(f"Verification code issued: email={email}, purpose={purpose}")
    return otp


def verify(email, code, now=None, purpose=SIGNUP):
    email = normalize_email(email)
    now = now or timezone.now()

    record = EmailVerification.objects.filter(email=email, purpose=purpose).first()
    if record is not None and record.is_expired(now):
        record.delete()
        record = None

    if record is None:
        logger.warning(f"Verification failed (no live code): email={email}, purpose={purpose}")
        raise VerificationNotFound()

    if not constant_time_compare(record.otp, str(code or "").strip()):
        logger.warning(f"Verification failed (mismatch): email={email}, purpose={purpose}")
        raise VerificationMismatch()

    return record


def consume(email, purpose=SIGNUP):
    email = normalize_email(email)
    deleted, _ = EmailVerification.objects.filter(email=email, purpose=purpose).delete()
    if deleted:
        logger.info(f"Verification code consumed: email={email}, purpose={purpose}")
    return bool(deleted)


def purge_expired(now=None):
    now = now or timezone.now()
    deleted, _ = EmailVerification.objects.filter(expires_at__lte=now).delete()
    if deleted:
        logger.info(f"Purged {deleted} expired verification code(s)")
    return deleted


@transaction.atomic
def signup(*, email, otp, name, password, role, organization=None, college=None):
    """
    verify -> create account -> consume, in one transaction.

    A failure at any step leaves the code valid for a retry and no account
    behind; a success always consumes the code.
    """
    email = normalize_email(email)
    verify(email, otp)

    if User.objects.filter(email__iexact=email).exists():
        raise EmailAlreadyRegistered()

    user = User(
        username=email,
        email=email,
        name=name,
        role=role,
        organization=organization if role == User.ROLE_ORGANIZER else None,
        college=college if role == User.ROLE_ATTENDEE else None,
    )
    user.set_password(password)
    try:
        with transaction.atomic():
            user.save()
    except IntegrityError:
        # Lost a race against a concurrent signup for the same email
        raise EmailAlreadyRegistered()

    consume(email)
    logger.info(f"Account created: user={user.id}, role={role}")
    return user


def request_password_reset(email, now=None):
    """
    Issue a reset code for an existing account.

    Returns None for addresses without an account so the caller can answer
    the same way either way.
    """
    email = normalize_email(email)
    if not User.objects.filter(email__iexact=email, is_active=True).exists():
        logger.info(f"Password reset requested for unknown email={email}")
        return None
    return issue(email, now=now, purpose=PASSWORD_RESET)


@transaction.atomic
def reset_password(*, email, otp, new_password, now=None):
    """
    verify -> set password -> consume, in one transaction.

    A wrong or expired code changes nothing; a success always consumes it.
    """
    email = normalize_email(email)
    verify(email, otp, now=now, purpose=PASSWORD_RESET)

    user = (
        User.objects
        .select_for_update()
        .filter(email__iexact=email, is_active=True)
        .first()
    )
    if user is None:
        raise VerificationNotFound()

    user.set_password(new_password)
    user.save(update_fields=["password"])

    consume(email, purpose=PASSWORD_RESET)
    logger.info(f"Password reset: user={user.id}")
    return user
