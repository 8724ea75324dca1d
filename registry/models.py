"""
Database models for the stillbirth notification backend.

These models capture the location hierarchy used for access scoping and
alert escalation, staff accounts with their roles and permissions, and the
notification records themselves (one mother, one or more babies).  Field
names follow the payloads submitted by the mobile client so that the
transformation to JSON responses stays simple.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class Location(models.Model):
    """An organisational unit in the facility -> subcounty -> county tree.

    ``parent`` links a unit to the unit above it; a location without a
    parent is a root.  ``users`` holds the staff attached to the unit who
    are alerted when a notification is raised at or below it.
    """
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=50, db_index=True)
    parent = models.ForeignKey(
        'self', null=True, blank=True, on_delete=models.PROTECT, related_name='children'
    )
    created_by = models.ForeignKey(
        'User', null=True, blank=True, on_delete=models.SET_NULL, related_name='locations_created'
    )
    users = models.ManyToManyField('User', blank=True, related_name='attached_locations')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.type})"


class Permission(models.Model):
    """A named action a role may perform, e.g. ``notification.create``."""
    action = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True)

    def __str__(self) -> str:
        return self.action


class Role(models.Model):
    """A staff role such as ``nurse`` or ``county user``."""
    name = models.CharField(max_length=50, unique=True)
    permissions = models.ManyToManyField(Permission, blank=True, related_name='roles')

    def __str__(self) -> str:
        return self.name


class User(AbstractUser):
    """Staff account identified by e-mail.

    ``location`` is the user's home unit; everything below it in the
    location tree is accessible to the user.
    """
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=255, blank=True)
    role = models.ForeignKey(Role, null=True, blank=True, on_delete=models.SET_NULL, related_name='users')
    location = models.ForeignKey(
        Location, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff', db_index=True
    )

    @property
    def role_name(self) -> str:
        return self.role.name if self.role_id else ''

    def __str__(self) -> str:
        return f"{self.email} ({self.role_name or 'no role'})"


class Notification(models.Model):
    """A facility's report of a stillbirth event."""
    facility_name = models.CharField(max_length=255)
    mfl_code = models.CharField(max_length=50, blank=True)
    date_of_notification = models.DateField(db_index=True)
    locality = models.CharField(max_length=255, blank=True)
    county = models.CharField(max_length=255, blank=True)
    sub_county = models.CharField(max_length=255, blank=True)
    level_of_care = models.CharField(max_length=100, blank=True)
    managing_authority = models.CharField(max_length=100, blank=True)
    location = models.ForeignKey(
        Location, null=True, blank=True, on_delete=models.SET_NULL, related_name='notifications'
    )
    created_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='notifications_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['location', 'date_of_notification'], name='notif_location_date_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.facility_name} on {self.date_of_notification}"


class Mother(models.Model):
    notification = models.OneToOneField(Notification, on_delete=models.CASCADE, related_name='mother')
    age = models.PositiveIntegerField(null=True, blank=True)
    married = models.BooleanField(default=False)
    parity = models.CharField(max_length=50, blank=True)
    outcome = models.CharField(max_length=100, blank=True)
    type_of_pregnancy = models.CharField(max_length=100, blank=True)
    attended_antenatal = models.CharField(max_length=50, blank=True)
    place_of_delivery = models.CharField(max_length=100, blank=True)
    facility_level_of_care = models.CharField(max_length=100, blank=True)
    type_of_delivery = models.CharField(max_length=100, blank=True)
    period_of_death = models.CharField(max_length=100, blank=True)
    perinatal_cause = models.CharField(max_length=255, blank=True)
    maternal_condition = models.CharField(max_length=255, blank=True)
    conditions = models.JSONField(default=list, blank=True)

    def __str__(self) -> str:
        return f"Mother ({self.age}) for notification {self.notification_id}"


class Baby(models.Model):
    notification = models.ForeignKey(Notification, on_delete=models.CASCADE, related_name='babies')
    date_of_death = models.DateField(null=True, blank=True)
    time_of_death = models.CharField(max_length=20, blank=True)
    gestation_weeks = models.PositiveIntegerField(null=True, blank=True)
    outcome = models.CharField(max_length=100)
    apgar_score_1min = models.CharField(max_length=10, blank=True)
    apgar_score_5min = models.CharField(max_length=10, blank=True)
    apgar_score_10min = models.CharField(max_length=10, blank=True)
    age_at_death_days = models.PositiveIntegerField(null=True, blank=True)
    birth_weight = models.PositiveIntegerField(null=True, blank=True, help_text="Weight in grams")
    sex = models.CharField(max_length=20)

    def __str__(self) -> str:
        return f"Baby ({self.sex}, {self.outcome}) for notification {self.notification_id}"


class UserNotification(models.Model):
    """Inbox entry linking a notification to a user who was alerted."""
    notification = models.ForeignKey(Notification, on_delete=models.CASCADE, related_name='deliveries')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='inbox')
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = [('notification', 'user')]
        indexes = [models.Index(fields=['user', 'is_read'], name='inbox_user_read_idx')]

    def __str__(self) -> str:
        return f"notification {self.notification_id} -> user {self.user_id}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]
