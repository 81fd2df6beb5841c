from django.contrib import admin
from .models import Event, Registration, TeamMember, InvitationToken, PaymentConfirmation


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('title', 'status', 'organizer', 'start_time', 'is_free', 'max_team_size')
    list_filter = ('status', 'mode', 'is_free', 'start_time')
    search_fields = ('title', 'description', 'organizer__email')
    date_hierarchy = 'start_time'


class TeamMemberInline(admin.TabularInline):
    model = TeamMember
    extra = 0
    readonly_fields = ('joined_at', 'attended_at')


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ('leader_email', 'team_name', 'event', 'status', 'checked_in', 'created_at')
    list_filter = ('status', 'checked_in', 'payment_status')
    search_fields = ('leader_email', 'leader_name', 'team_name', 'event__title', 'qr_code')
    # Status moves only through the state machine
    readonly_fields = ('status', 'qr_code', 'checked_in', 'checked_in_at', 'created_at', 'updated_at')
    inlines = [TeamMemberInline]


@admin.register(InvitationToken)
class InvitationTokenAdmin(admin.ModelAdmin):
    list_display = ('registration', 'invited_email', 'issued_at', 'expires_at', 'consumed', 'revoked_at')
    list_filter = ('consumed',)
    search_fields = ('invited_email', 'registration__team_name')
    readonly_fields = ('token', 'consumed', 'consumed_at', 'consumed_by')


@admin.register(PaymentConfirmation)
class PaymentConfirmationAdmin(admin.ModelAdmin):
    list_display = ('user', 'event', 'session_id', 'amount_total', 'currency', 'confirmed_at')
    search_fields = ('session_id', 'user__email', 'event__title')
