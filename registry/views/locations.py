"""
Location hierarchy endpoints.

Staff only ever see their own unit and the units below it; admins see the
whole forest.  Creating a location requires the ``location.manage``
permission.
"""
from __future__ import annotations

import logging

from django.db import transaction
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from registry.models import Location, User
from registry.pagination import paginate
from registry.permissions import HasLocationAccess, has_role_permission, is_admin, location_tree_for
from registry.serializers.directory import LocationCreateSerializer, LocationListQuerySerializer
from registry.services.audit import log_action

logger = logging.getLogger(__name__)


def _location_dict(location: Location) -> dict:
    return {
        'id': location.id,
        'name': location.name,
        'type': location.type,
        'parentId': location.parent_id,
        'createdAt': location.created_at.isoformat(),
    }


def _scoped_locations(request):
    qs = Location.objects.all()
    if is_admin(request.user):
        return qs
    if not request.user.location_id:
        return qs.none()
    ids = location_tree_for(request).get_accessible_location_ids(request.user.location_id)
    return qs.filter(id__in=ids)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def locations(request):
    if request.method == 'POST':
        return _create_location(request)
    q = LocationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = _scoped_locations(request)
    if q.validated_data.get('type'):
        qs = qs.filter(type=q.validated_data['type'])
    if q.validated_data.get('parentId'):
        qs = qs.filter(parent_id=q.validated_data['parentId'])
    page, meta = paginate(qs.order_by('id'), request.query_params)
    return Response({'data': [_location_dict(loc) for loc in page], **meta})


def _create_location(request):
    if not has_role_permission(request.user, 'location.manage'):
        raise PermissionDenied('missing permission: location.manage')
    s = LocationCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    parent = None
    if v.get('parentId'):
        parent = Location.objects.filter(id=v['parentId']).first()
        if parent is None:
            return Response({'ok': False, 'error': {'code': 'invalid_parent', 'message': 'parent location not found'}},
                            status=400)
    with transaction.atomic():
        location = Location.objects.create(name=v['name'], type=v['type'], parent=parent, created_by=request.user)
        if v.get('userIds'):
            location.users.set(User.objects.filter(id__in=v['userIds']))
    logger.info("location %s (%s) created under %s", location.id, location.type, location.parent_id)
    log_action(user=request.user, action='location_create', object_type='location', object_id=location.id,
               detail={'parentId': location.parent_id})
    return Response(_location_dict(location), status=201)


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasLocationAccess])
def location_detail(request, location_id: int):
    tree = location_tree_for(request)
    location = Location.objects.get(id=location_id)
    return Response({
        **_location_dict(location),
        'hierarchy': tree.build_location_tree(location_id),
        'children': [{'id': c.id, 'name': c.name, 'type': c.type} for c in tree.get_children(location_id)],
        'users': [{'id': u.id, 'email': u.email} for u in tree.get_users(location_id)],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasLocationAccess])
def accessible_locations(request, location_id: int):
    tree = location_tree_for(request)
    return Response({'locationId': location_id, 'ids': sorted(tree.get_accessible_location_ids(location_id))})


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasLocationAccess])
def parent_users(request, location_id: int):
    users = location_tree_for(request).get_parent_users(location_id)
    return Response({'locationId': location_id, 'users': [{'id': u.id, 'email': u.email} for u in users]})
