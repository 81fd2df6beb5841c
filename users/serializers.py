from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'name',
            'role',
            'phone',
            'bio',
            'organization',
            'college',
            'date_joined',
        ]
        read_only_fields = fields
