# events/payments.py
"""
Payment gate for paid events.

The provider is asked about a checkout session by id. A session counts only
when it reports payment_status == "paid", carries this event's and this
user's ids in its metadata, and covers the fee in the event's currency.
A confirmed payment is stored once per (event, user) so later calls never
hit the network again.

Network failures and timeouts surface as PaymentUnverified so the caller
can retry. Every other negative answer is PaymentRequired.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from urllib.parse import quote

import requests
from django.conf import settings
from django.db import IntegrityError, transaction

from core.exceptions import PaymentRequired, PaymentUnverified
from .models import PaymentConfirmation

logger = logging.getLogger('eventflow.payments')

PAID = "paid"


def _session_url(session_id):
    base = settings.PAYMENT_PROVIDER_API_BASE.rstrip("/")
    return f"{base}/checkout/sessions/{quote(str(session_id), safe='')}"


def fetch_checkout_session(session_id):
    """
    Look up a checkout session at the provider. Returns the decoded JSON body.
    """
    try:
        response = requests.get(
            _session_url(session_id),
            auth=(settings.PAYMENT_PROVIDER_SECRET_KEY, ""),
            timeout=settings.PAYMENT_PROVIDER_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.warning(f"Payment provider unreachable for session {session_id}: {e}")
        raise PaymentUnverified()

    if response.status_code == 404:
        raise PaymentRequired("Unknown payment session.")

    if not response.ok:
        logger.warning(
            f"Payment provider returned {response.status_code} for session {session_id}"
        )
        raise PaymentUnverified()

    try:
        return response.json()
    except ValueError:
        logger.warning(f"Payment provider returned a non-JSON body for session {session_id}")
        raise PaymentUnverified()


def _metadata_value(metadata, keys):
    for key in keys:
        value = metadata.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def minor_units(amount) -> int:
    """
    Fee in the smallest currency unit, the way the provider reports amount_total.
    """
    return int((Decimal(amount) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def _check_session(event, user, session):
    # Checkout sessions are created with both ids in metadata; absence is a refusal
    metadata = session.get("metadata") or {}
    if _metadata_value(metadata, ("event_id", "eventId")) != str(event.id):
        raise PaymentRequired("Payment session does not belong to this event.")
    if _metadata_value(metadata, ("user_id", "userId")) != str(user.id):
        raise PaymentRequired("Payment session does not belong to this user.")

    currency = (session.get("currency") or "").upper()
    if currency != (event.currency or "").upper():
        raise PaymentRequired("Payment was made in a different currency.")

    amount = session.get("amount_total")
    if not isinstance(amount, int) or amount < minor_units(event.registration_fee):
        raise PaymentRequired("Payment amount does not cover the registration fee.")


def has_confirmed_payment(event, user) -> bool:
    return PaymentConfirmation.objects.filter(event=event, user=user).exists()


def confirm_payment(event, user, session_id=None) -> PaymentConfirmation:
    """
    Return the stored confirmation for (event, user), verifying session_id
    with the provider when none exists yet.
    """
    existing = PaymentConfirmation.objects.filter(event=event, user=user).first()
    if existing is not None:
        return existing

    if not session_id:
        raise PaymentRequired()

    session = fetch_checkout_session(session_id)

    if session.get("payment_status") != PAID:
        logger.info(
            f"Payment not completed: event={event.id}, user={user.id}, "
            f"session={session_id}, payment_status={session.get('payment_status')}"
        )
        raise PaymentRequired("Payment has not been completed.")

    try:
        _check_session(event, user, session)
    except PaymentRequired as e:
        logger.warning(
            f"Payment session refused: event={event.id}, user={user.id}, "
            f"session={session_id}, reason={e.detail}"
        )
        raise

    try:
        with transaction.atomic():
            confirmation = PaymentConfirmation.objects.create(
                event=event,
                user=user,
                session_id=session_id,
                amount_total=session.get("amount_total"),
                currency=(session.get("currency") or "").upper(),
            )
    except IntegrityError:
        # Either a concurrent confirm for the same (event, user) won, or the
        # session was already spent on someone else's registration.
        existing = PaymentConfirmation.objects.filter(event=event, user=user).first()
        if existing is not None:
            return existing
        raise PaymentRequired("This payment session has already been used.")

    logger.info(f"Payment confirmed: event={event.id}, user={user.id}, session={session_id}")
    return confirmation
