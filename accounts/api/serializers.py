from rest_framework import serializers

from ..models import User


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "role",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "identifier",
            "level",
            "is_password_set",
            "date_joined",
        ]
        read_only_fields = fields


class UserCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    role = serializers.ChoiceField(choices=[User.Role.STUDENT, User.Role.LECTURER])
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    identifier = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    level = serializers.ChoiceField(choices=User.Level.choices, required=False, allow_null=True)

    def validate(self, attrs):
        if attrs["role"] == User.Role.STUDENT and not attrs.get("level"):
            raise serializers.ValidationError({"level": "Level is required for students."})
        return attrs
