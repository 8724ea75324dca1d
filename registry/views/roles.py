"""Role and permission administration (admin only)."""
from __future__ import annotations

from django.db import transaction
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from registry.models import Permission, Role
from registry.permissions import IsAdminRole
from registry.serializers.directory import PermissionSerializer, RoleSerializer
from registry.services.audit import log_action


def _permission_dict(p: Permission) -> dict:
    return {'id': p.id, 'action': p.action, 'description': p.description}


def _role_dict(role: Role) -> dict:
    return {
        'id': role.id,
        'name': role.name,
        'permissions': [_permission_dict(p) for p in role.permissions.order_by('action')],
    }


def _resolve_permissions(ids):
    found = list(Permission.objects.filter(id__in=ids))
    missing = set(ids) - {p.id for p in found}
    if missing:
        raise ValidationError({'permissionIds': f'unknown permission ids: {sorted(missing)}'})
    return found


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def roles(request):
    if request.method == 'GET':
        return Response([_role_dict(r) for r in Role.objects.prefetch_related('permissions').order_by('name')])
    s = RoleSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    if Role.objects.filter(name=v['name']).exists():
        raise ValidationError({'name': 'role already exists'})
    with transaction.atomic():
        role = Role.objects.create(name=v['name'])
        role.permissions.set(_resolve_permissions(v.get('permissionIds') or []))
    log_action(user=request.user, action='role_create', object_type='role', object_id=role.id)
    return Response(_role_dict(role), status=201)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def role_detail(request, role_id: int):
    role = Role.objects.filter(id=role_id).first()
    if not role:
        raise NotFound('role not found')
    if request.method == 'GET':
        return Response(_role_dict(role))
    if request.method == 'DELETE':
        role.delete()
        log_action(user=request.user, action='role_delete', object_type='role', object_id=role_id)
        return Response({'ok': True})
    s = RoleSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    if Role.objects.filter(name=v['name']).exclude(id=role.id).exists():
        raise ValidationError({'name': 'role already exists'})
    with transaction.atomic():
        role.name = v['name']
        role.save(update_fields=['name'])
        if 'permissionIds' in v:
            role.permissions.set(_resolve_permissions(v['permissionIds']))
    log_action(user=request.user, action='role_update', object_type='role', object_id=role.id)
    return Response(_role_dict(role))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def permissions(request):
    if request.method == 'GET':
        return Response([_permission_dict(p) for p in Permission.objects.order_by('action')])
    s = PermissionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    if Permission.objects.filter(action=s.validated_data['action']).exists():
        raise ValidationError({'action': 'permission already exists'})
    perm = Permission.objects.create(**s.validated_data)
    return Response(_permission_dict(perm), status=201)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminRole])
def permission_detail(request, permission_id: int):
    perm = Permission.objects.filter(id=permission_id).first()
    if not perm:
        raise NotFound('permission not found')
    if request.method == 'GET':
        return Response(_permission_dict(perm))
    if request.method == 'DELETE':
        perm.delete()
        return Response({'ok': True})
    s = PermissionSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    if Permission.objects.filter(action=s.validated_data['action']).exclude(id=perm.id).exists():
        raise ValidationError({'action': 'permission already exists'})
    perm.action = s.validated_data['action']
    perm.description = s.validated_data.get('description', perm.description)
    perm.save()
    return Response(_permission_dict(perm))
