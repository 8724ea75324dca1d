"""
Staff account management.

Admins manage every account.  Users holding ``user.manage`` manage the
accounts whose home location lies inside their own area.  Accounts are
never deleted; DELETE deactivates them so their notifications and audit
history stay attributable.
"""
from __future__ import annotations

import logging
import secrets

from django.db import transaction
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from registry.models import Location, Role, User
from registry.pagination import paginate
from registry.permissions import is_admin, location_tree_for, require_permission
from registry.serializers.directory import UserCreateSerializer, UserListQuerySerializer, UserUpdateSerializer
from registry.services.audit import log_action

logger = logging.getLogger(__name__)


def _user_dict(user: User) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'name': user.name,
        'role': user.role_name or None,
        'roleId': user.role_id,
        'locationId': user.location_id,
        'isActive': user.is_active,
        'dateJoined': user.date_joined.isoformat(),
    }


def _area_ids(request):
    """Location ids the requester may manage, or None for no restriction."""
    if is_admin(request.user):
        return None
    if not request.user.location_id:
        return set()
    return location_tree_for(request).get_accessible_location_ids(request.user.location_id)


def _check_location(request, location_id):
    if location_id is None:
        return None
    location = Location.objects.filter(id=location_id).first()
    if location is None:
        raise ValidationError({'locationId': 'location not found'})
    area = _area_ids(request)
    if area is not None and location.id not in area:
        raise PermissionDenied('location outside your area')
    return location


def _check_role(role_id):
    if role_id is None:
        return None
    role = Role.objects.filter(id=role_id).first()
    if role is None:
        raise ValidationError({'roleId': 'role not found'})
    return role


def _get_managed_user(request, user_id) -> User:
    user = User.objects.select_related('role').filter(id=user_id).first()
    if not user:
        raise NotFound('user not found')
    area = _area_ids(request)
    if area is not None and user.location_id not in area:
        raise PermissionDenied('user outside your area')
    return user


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, require_permission('user.manage')])
def users(request):
    if request.method == 'POST':
        return _create_user(request)
    q = UserListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = User.objects.select_related('role').order_by('id')
    area = _area_ids(request)
    if area is not None:
        qs = qs.filter(location_id__in=area)
    if q.validated_data.get('locationId'):
        qs = qs.filter(location_id=q.validated_data['locationId'])
    if q.validated_data.get('role'):
        qs = qs.filter(role__name=q.validated_data['role'])
    page, meta = paginate(qs, request.query_params)
    return Response({'data': [_user_dict(u) for u in page], **meta})


def _create_user(request):
    s = UserCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    if User.objects.filter(email=v['email']).exists():
        raise ValidationError({'email': 'a user with this email already exists'})
    role = _check_role(v.get('roleId'))
    location = _check_location(request, v.get('locationId'))

    with transaction.atomic():
        user = User.objects.create_user(
            username=v['email'],
            email=v['email'],
            password=v.get('password') or secrets.token_urlsafe(12),
            name=v['name'],
            role=role,
            location=location,
        )
        if location is not None:
            location.users.add(user)
    logger.info("user %s created at location %s", user.id, user.location_id)
    log_action(user=request.user, action='user_create', object_type='user', object_id=user.id,
               detail={'role': user.role_name, 'locationId': user.location_id})
    return Response(_user_dict(user), status=201)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, require_permission('user.manage')])
def user_detail(request, user_id: int):
    user = _get_managed_user(request, user_id)
    if request.method == 'GET':
        return Response(_user_dict(user))

    if request.method == 'DELETE':
        user.is_active = False
        user.save(update_fields=['is_active'])
        log_action(user=request.user, action='user_deactivate', object_type='user', object_id=user.id)
        return Response({'ok': True})

    s = UserUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    with transaction.atomic():
        if 'name' in v:
            user.name = v['name']
        if 'roleId' in v:
            user.role = _check_role(v['roleId'])
        if 'isActive' in v:
            user.is_active = v['isActive']
        if 'locationId' in v:
            location = _check_location(request, v['locationId'])
            if user.location_id:
                Location.users.through.objects.filter(location_id=user.location_id, user_id=user.id).delete()
            user.location = location
            if location is not None:
                location.users.add(user)
        user.save()
    log_action(user=request.user, action='user_update', object_type='user', object_id=user.id,
               detail={'fields': sorted(v)})
    return Response(_user_dict(user))
