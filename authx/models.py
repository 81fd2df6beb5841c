# authx/models.py
from django.db import models
from django.utils import timezone


class EmailVerification(models.Model):
    """
    Short-lived code proving control of an email address.

    At most one record per (email, purpose): issuing a new code replaces the
    old one. Records past expires_at are treated as absent on every read.
    """
    PURPOSE_SIGNUP = "signup"
    PURPOSE_PASSWORD_RESET = "password_reset"

    PURPOSE_CHOICES = [
        (PURPOSE_SIGNUP, "Signup"),
        (PURPOSE_PASSWORD_RESET, "Password reset"),
    ]

    email = models.EmailField()
    purpose = models.CharField(max_length=32, choices=PURPOSE_CHOICES, default=PURPOSE_SIGNUP)
    otp = models.CharField(max_length=12)
    expires_at = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["email", "purpose"], name="uniq_verification_email_purpose"),
        ]

    def __str__(self):
        return f"{self.email} [{self.purpose}] (expires {self.expires_at:%Y-%m-%d %H:%M})"

    def is_expired(self, now=None):
        return (now or timezone.now()) >= self.expires_at
