"""
Notification endpoints.

Creating a notification stores the mother and babies in one transaction
and then alerts every user attached to the notification's location or any
location above it.  Reads are limited to the requester's area.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from registry.exceptions import LocationNotFound
from registry.models import Notification
from registry.pagination import paginate, parse_pagination
from registry.permissions import has_role_permission, is_admin, location_tree_for, require_permission
from registry.serializers.notification import NotificationCreateSerializer, NotificationListQuerySerializer
from registry.services.notifications import create_notification, list_inbox, mark_read, serialize_raw_record


def visible_notifications(request):
    """Notifications the requester may read: everything for admins, else those inside their area."""
    qs = Notification.objects.select_related('location', 'mother', 'created_by').prefetch_related('babies')
    if is_admin(request.user):
        return qs
    if not request.user.location_id:
        return qs.none()
    ids = location_tree_for(request).get_accessible_location_ids(request.user.location_id)
    return qs.filter(location_id__in=ids)


def notification_detail_dict(n: Notification) -> dict:
    return {
        **serialize_raw_record(n),
        'locality': n.locality,
        'levelOfCare': n.level_of_care,
        'managingAuthority': n.managing_authority,
        'createdBy': n.created_by.email if n.created_by else None,
        'createdAt': n.created_at.isoformat(),
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def notifications(request):
    if request.method == 'POST':
        return _create(request)
    if not has_role_permission(request.user, 'notification.view'):
        raise PermissionDenied('missing permission: notification.view')
    q = NotificationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = visible_notifications(request)
    if q.validated_data.get('startDate'):
        qs = qs.filter(date_of_notification__gte=q.validated_data['startDate'])
    if q.validated_data.get('endDate'):
        qs = qs.filter(date_of_notification__lte=q.validated_data['endDate'])
    if q.validated_data.get('locationId'):
        qs = qs.filter(location_id=q.validated_data['locationId'])
    page, meta = paginate(qs.order_by('-date_of_notification', '-id'), request.query_params)
    return Response({'data': [serialize_raw_record(n) for n in page], **meta})


def _create(request):
    if not has_role_permission(request.user, 'notification.create'):
        raise PermissionDenied('missing permission: notification.create')
    s = NotificationCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)

    location_id = data.get('locationId') or request.user.location_id
    if not location_id:
        raise ValidationError({'locationId': 'locationId is required for users without a home location'})
    tree = location_tree_for(request)
    if location_id not in tree:
        raise LocationNotFound(location_id)
    if not is_admin(request.user):
        if not request.user.location_id or location_id not in tree.get_accessible_location_ids(request.user.location_id):
            raise PermissionDenied('location outside your area')
    data['locationId'] = location_id

    notification = create_notification(request.user, data, tree=tree)
    notification = (
        Notification.objects.select_related('location', 'mother', 'created_by')
        .prefetch_related('babies').get(id=notification.id)
    )
    return Response(notification_detail_dict(notification), status=201)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('notification.view')])
def notification_detail(request, notification_id: int):
    n = visible_notifications(request).filter(id=notification_id).first()
    if not n:
        raise NotFound('notification not found')
    return Response(notification_detail_dict(n))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inbox(request):
    page, limit = parse_pagination(request.query_params)
    unread_only = str(request.query_params.get('unread') or '').lower() in ('1', 'true')
    data, total = list_inbox(request.user, unread_only=unread_only, page=page, limit=limit)
    return Response({'data': data, 'total': total, 'page': page, 'limit': limit})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def inbox_mark_read(request, inbox_id: int):
    if not mark_read(request.user, inbox_id):
        raise NotFound('inbox entry not found')
    return Response({'ok': True})
