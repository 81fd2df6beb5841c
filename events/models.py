# events/models.py
from django.db import models
from django.conf import settings
from django.utils import timezone


class Event(models.Model):
    """
    Owned by the event subsystem; the registration lifecycle only reads it.
    """
    STATUS_UPCOMING = "upcoming"
    STATUS_ACTIVE = "active"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_UPCOMING, "Upcoming"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    MODE_ONLINE = "online"
    MODE_OFFLINE = "offline"

    MODE_CHOICES = [
        (MODE_ONLINE, "Online"),
        (MODE_OFFLINE, "Offline"),
    ]

    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='organized_events'
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=255, blank=True)
    mode = models.CharField(max_length=16, choices=MODE_CHOICES, default=MODE_OFFLINE)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_UPCOMING)
    location_lat = models.FloatField(blank=True, null=True)
    location_lng = models.FloatField(blank=True, null=True)
    banner_image = models.CharField(max_length=1024, blank=True, null=True)

    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    registration_opens_at = models.DateTimeField(blank=True, null=True)
    registration_closes_at = models.DateTimeField(blank=True, null=True)

    max_team_size = models.PositiveIntegerField(
        default=0,
        help_text="Maximum team size including the leader (0 = unbounded)",
    )

    is_free = models.BooleanField(default=True)
    registration_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    currency = models.CharField(max_length=10, default="INR")

    # Completed event features, passed through to stats untouched
    winners = models.JSONField(default=list, blank=True)
    event_photos = models.JSONField(default=list, blank=True)
    highlights = models.TextField(blank=True)
    summary = models.TextField(blank=True)
    testimonials = models.JSONField(default=list, blank=True)
    statistics = models.JSONField(default=dict, blank=True)

    cancelled_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(
                fields=['organizer', 'start_time'],
                name='event_org_start_idx',
            ),
            models.Index(
                fields=['start_time'],
                name='event_start_idx',
            ),
        ]

    def __str__(self):
        return self.title

    @property
    def is_paid(self):
        return not self.is_free and self.registration_fee > 0

    def registration_open(self, now=None):
        now = now or timezone.now()
        if self.status == self.STATUS_CANCELLED:
            return False
        if self.registration_opens_at and now < self.registration_opens_at:
            return False
        if self.registration_closes_at and now > self.registration_closes_at:
            return False
        return True


class Registration(models.Model):
    """
    One leader-plus-team application to attend a single event.

    status only ever moves Pending -> Accepted or Pending -> Rejected.
    """
    STATUS_PENDING = "Pending"
    STATUS_ACCEPTED = "Accepted"
    STATUS_REJECTED = "Rejected"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_ACCEPTED, "Accepted"),
        (STATUS_REJECTED, "Rejected"),
    ]

    PAYMENT_NOT_REQUIRED = "not_required"
    PAYMENT_PAID = "paid"

    PAYMENT_CHOICES = [
        (PAYMENT_NOT_REQUIRED, "Not required"),
        (PAYMENT_PAID, "Paid"),
    ]

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")
    leader = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="led_registrations",
    )
    leader_name = models.CharField(max_length=255)
    leader_email = models.EmailField()
    team_name = models.CharField(max_length=255, blank=True)

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    checked_in = models.BooleanField(default=False)
    checked_in_at = models.DateTimeField(blank=True, null=True)
    # Credential scanned at the venue; issued once Accepted
    qr_code = models.CharField(max_length=64, unique=True, blank=True, null=True)

    payment_status = models.CharField(max_length=16, choices=PAYMENT_CHOICES, default=PAYMENT_NOT_REQUIRED)
    payment_reference = models.CharField(max_length=255, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(fields=["event", "leader"], name="uniq_registration_event_leader"),
            models.UniqueConstraint(fields=["event", "leader_email"], name="uniq_registration_event_leader_email"),
        ]
        indexes = [
            models.Index(
                fields=['event', 'created_at'],
                name='reg_event_created_idx',
            ),
            models.Index(
                fields=['event', 'status'],
                name='reg_event_status_idx',
            ),
        ]

    def __str__(self):
        return f"{self.team_name or self.leader_name} - {self.event.title} ({self.status})"


class TeamMember(models.Model):
    """
    A person added to a registration's team. Owned by the registration.
    """
    registration = models.ForeignKey(
        Registration,
        on_delete=models.CASCADE,
        related_name="team_members",
    )
    name = models.CharField(max_length=255, blank=True)
    email = models.EmailField()
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="team_memberships",
    )
    attended = models.BooleanField(default=False)
    attended_at = models.DateTimeField(blank=True, null=True)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["joined_at", "id"]
        constraints = [
            models.UniqueConstraint(fields=["registration", "email"], name="uniq_team_member_email"),
        ]
        indexes = [
            models.Index(fields=['email'], name='team_member_email_idx'),
        ]

    def __str__(self):
        return f"{self.email} in {self.registration.team_name or self.registration_id}"


class InvitationToken(models.Model):
    """
    Single-use, time-bound credential letting one person join a team.

    consumed flips False -> True exactly once, through a conditional update.
    """
    token = models.CharField(max_length=64, unique=True)
    registration = models.ForeignKey(
        Registration,
        on_delete=models.CASCADE,
        related_name="invitation_tokens",
    )
    invited_email = models.EmailField(blank=True, null=True)
    leader_name = models.CharField(max_length=255, blank=True)

    issued_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField()

    consumed = models.BooleanField(default=False)
    consumed_at = models.DateTimeField(blank=True, null=True)
    consumed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="redeemed_invitations",
    )
    revoked_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        indexes = [
            models.Index(fields=['registration', 'consumed'], name='invite_reg_consumed_idx'),
            models.Index(fields=['invited_email', 'consumed'], name='invite_email_consumed_idx'),
        ]

    def __str__(self):
        target = self.invited_email or "anyone"
        return f"Invite to {self.registration_id} for {target}"

    def is_expired(self, now=None):
        return (now or timezone.now()) >= self.expires_at

    @property
    def is_revoked(self):
        return self.revoked_at is not None


class PaymentConfirmation(models.Model):
    """
    A verified "paid" signal from the payment provider for (event, user).
    """
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="payment_confirmations")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="payment_confirmations",
    )
    session_id = models.CharField(max_length=255, unique=True)
    amount_total = models.PositiveIntegerField(blank=True, null=True, help_text="Smallest currency unit")
    currency = models.CharField(max_length=10, blank=True)
    confirmed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "user"], name="uniq_payment_event_user"),
        ]

    def __str__(self):
        return f"{self.user} paid for {self.event} ({self.session_id})"
