from rest_framework import serializers

from registry.serializers.common import CleanCharField


class LocationCreateSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    type = CleanCharField(max_length=50)
    parentId = serializers.IntegerField(required=False, allow_null=True)
    userIds = serializers.ListField(child=serializers.IntegerField(), required=False)


class UserCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, required=False, allow_blank=True)
    name = CleanCharField(max_length=255)
    roleId = serializers.IntegerField(required=False, allow_null=True)
    locationId = serializers.IntegerField(required=False, allow_null=True)

    def validate_email(self, v):
        return v.strip().lower()

    def validate_name(self, v):
        if len(v) < 2:
            raise serializers.ValidationError('name must be at least 2 characters')
        return v


class UserUpdateSerializer(serializers.Serializer):
    name = CleanCharField(required=False, max_length=255)
    roleId = serializers.IntegerField(required=False, allow_null=True)
    locationId = serializers.IntegerField(required=False, allow_null=True)
    isActive = serializers.BooleanField(required=False)


class RoleSerializer(serializers.Serializer):
    name = CleanCharField(max_length=50)
    permissionIds = serializers.ListField(child=serializers.IntegerField(), required=False)


class PermissionSerializer(serializers.Serializer):
    action = CleanCharField(max_length=100)
    description = CleanCharField(required=False, allow_blank=True, max_length=255)


class LocationListQuerySerializer(serializers.Serializer):
    type = serializers.CharField(required=False, allow_blank=True)
    parentId = serializers.IntegerField(required=False, min_value=1)


class UserListQuerySerializer(serializers.Serializer):
    locationId = serializers.IntegerField(required=False, min_value=1)
    role = serializers.CharField(required=False, allow_blank=True)
