"""Read-only access to the mothers and babies recorded on notifications."""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from registry.models import Baby, Mother
from registry.pagination import paginate
from registry.permissions import is_admin, location_tree_for, require_permission
from registry.serializers.notification import BabyListQuerySerializer
from registry.services.notifications import serialize_baby, serialize_mother


def _scoped(request, qs):
    if is_admin(request.user):
        return qs
    if not request.user.location_id:
        return qs.none()
    ids = location_tree_for(request).get_accessible_location_ids(request.user.location_id)
    return qs.filter(notification__location_id__in=ids)


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('notification.view')])
def babies(request):
    q = BabyListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = _scoped(request, Baby.objects.all())
    if q.validated_data.get('notificationId'):
        qs = qs.filter(notification_id=q.validated_data['notificationId'])
    if q.validated_data.get('outcome'):
        qs = qs.filter(outcome__icontains=q.validated_data['outcome'])
    page, meta = paginate(qs.order_by('-id'), request.query_params)
    return Response({'data': [serialize_baby(b) for b in page], **meta})


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('notification.view')])
def baby_detail(request, baby_id: int):
    baby = _scoped(request, Baby.objects.all()).filter(id=baby_id).first()
    if not baby:
        raise NotFound('baby not found')
    return Response(serialize_baby(baby))


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('notification.view')])
def mothers(request):
    qs = _scoped(request, Mother.objects.all())
    page, meta = paginate(qs.order_by('-id'), request.query_params)
    return Response({'data': [serialize_mother(m) for m in page], **meta})


@api_view(['GET'])
@permission_classes([IsAuthenticated, require_permission('notification.view')])
def mother_detail(request, mother_id: int):
    mother = _scoped(request, Mother.objects.all()).filter(id=mother_id).first()
    if not mother:
        raise NotFound('mother not found')
    return Response(serialize_mother(mother))
