# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    ROLE_ORGANIZER = "organizer"
    ROLE_ATTENDEE = "attendee"

    ROLE_CHOICES = (
        (ROLE_ORGANIZER, 'Organizer'),
        (ROLE_ATTENDEE, 'Attendee'),
    )

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=255, blank=True)
    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_ATTENDEE,
    )

    phone = models.CharField(max_length=20, blank=True, null=True)
    bio = models.TextField(blank=True, null=True)
    organization = models.CharField(max_length=255, blank=True, null=True, help_text="For organizers")
    college = models.CharField(max_length=255, blank=True, null=True, help_text="For attendees")

    @property
    def display_name(self):
        return self.name or self.get_full_name() or self.username

    @property
    def is_organizer(self):
        return self.role == self.ROLE_ORGANIZER

    def __str__(self):
        return self.email or self.username
