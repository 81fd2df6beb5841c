from django.contrib import admin
from .models import EmailVerification


@admin.register(EmailVerification)
class EmailVerificationAdmin(admin.ModelAdmin):
    list_display = ('email', 'purpose', 'expires_at', 'created_at')
    list_filter = ('purpose',)
    search_fields = ('email',)
    readonly_fields = ('otp',)
