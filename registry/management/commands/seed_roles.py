# registry/management/commands/seed_roles.py
from django.core.management.base import BaseCommand
from django.db import transaction

from registry.models import Permission, Role

PERMISSIONS = {
    "notification.create": "Submit stillbirth notifications",
    "notification.view": "Read notifications, mothers and babies",
    "report.view": "View and export stillbirth reports",
    "user.manage": "Create and edit staff accounts",
    "location.manage": "Create locations",
    "role.manage": "Administer roles and permissions",
}

ROLES = {
    "admin": list(PERMISSIONS),
    "county user": ["notification.create", "notification.view", "report.view", "user.manage", "location.manage"],
    "subcounty user": ["notification.create", "notification.view", "report.view", "user.manage"],
    "nurse": ["notification.create", "notification.view"],
}


class Command(BaseCommand):
    help = "Ensure the default roles and their permissions exist (idempotent)."

    @transaction.atomic
    def handle(self, *args, **opts):
        perms = {}
        for action, description in PERMISSIONS.items():
            perm, created = Permission.objects.get_or_create(action=action, defaults={"description": description})
            perms[action] = perm
            if created:
                self.stdout.write(f"permission created: {action}")
        for name, actions in ROLES.items():
            role, created = Role.objects.get_or_create(name=name)
            role.permissions.add(*(perms[a] for a in actions))
            self.stdout.write(self.style.SUCCESS(f"ok: {name} ({len(actions)} permissions)"))
        self.stdout.write(self.style.SUCCESS("Default roles ensured."))
