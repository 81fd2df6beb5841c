# authx/emails.py
from django.conf import settings
from django.core.mail import send_mail


def send_verification_email(email, otp):
    """
    Deliver a signup verification code.
    """
    ttl_minutes = int(settings.VERIFICATION_CODE_TTL.total_seconds() // 60)

    subject = "Verify your email - EventFlow"
    message = (
        f"Welcome to EventFlow!\n\n"
        f"Your verification code is:\n\n"
        f"  {otp}\n\n"
        f"This code expires in {ttl_minutes} minutes.\n\n"
        f"If you did not request this, you can ignore this email.\n\n"
        f"EventFlow"
    )

    send_mail(
        subject=subject,
        message=message,
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[email],
        fail_silently=True,
    )


def send_password_reset_email(email, otp):
    ttl_minutes = int(settings.VERIFICATION_CODE_TTL.total_seconds() // 60)

    send_mail(
        subject="Password reset code - EventFlow",
        message=(
            f"Someone asked to reset the password of your EventFlow account.\n\n"
            f"Your reset code is:\n\n"
            f"  {otp}\n\n"
            f"This code expires in {ttl_minutes} minutes.\n\n"
            f"If this was not you, ignore this email; your password stays unchanged.\n\n"
            f"EventFlow"
        ),
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[email],
        fail_silently=True,
    )
