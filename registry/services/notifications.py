import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.utils import timezone

from registry.models import Baby, Location, Mother, Notification, UserNotification
from registry.services.audit import log_action
from registry.services.locations import LocationTree, UserRef, load_location_tree
from registry.services.mail import send_stillbirth_alert

logger = logging.getLogger(__name__)


BROADCAST_GROUP = 'notifications'

MOTHER_FIELDS = [
    ('age', 'age'),
    ('married', 'married'),
    ('parity', 'parity'),
    ('outcome', 'outcome'),
    ('typeOfPregnancy', 'type_of_pregnancy'),
    ('attendedAntenatal', 'attended_antenatal'),
    ('placeOfDelivery', 'place_of_delivery'),
    ('facilityLevelOfCare', 'facility_level_of_care'),
    ('typeOfDelivery', 'type_of_delivery'),
    ('periodOfDeath', 'period_of_death'),
    ('perinatalCause', 'perinatal_cause'),
    ('maternalCondition', 'maternal_condition'),
    ('conditions', 'conditions'),
]

BABY_FIELDS = [
    ('dateOfDeath', 'date_of_death'),
    ('timeOfDeath', 'time_of_death'),
    ('gestationWeeks', 'gestation_weeks'),
    ('outcome', 'outcome'),
    ('apgarScore1min', 'apgar_score_1min'),
    ('apgarScore5min', 'apgar_score_5min'),
    ('apgarScore10min', 'apgar_score_10min'),
    ('ageAtDeathDays', 'age_at_death_days'),
    ('birthWeight', 'birth_weight'),
    ('sex', 'sex'),
]


def is_stillbirth(outcome: Optional[str]) -> bool:
    """``"Fresh still-birth"``, ``"Stillbirth"`` and ``"macerated stillbirth"`` all qualify."""
    return 'stillbirth' in re.sub(r'[^a-z]', '', (outcome or '').lower())


def _camel_values(obj, fields) -> Dict[str, Any]:
    data = {}
    for key, attr in fields:
        value = getattr(obj, attr)
        data[key] = value.isoformat() if isinstance(value, date) else value
    return data


def serialize_mother(mother: Mother) -> Dict[str, Any]:
    return {'id': mother.id, 'notificationId': mother.notification_id, **_camel_values(mother, MOTHER_FIELDS)}


def serialize_baby(baby: Baby) -> Dict[str, Any]:
    return {'id': baby.id, 'notificationId': baby.notification_id, **_camel_values(baby, BABY_FIELDS)}


def serialize_raw_record(notification: Notification) -> Dict[str, Any]:
    """Project a stored notification into the raw record shape used by the report aggregator."""
    location = notification.location
    mother = getattr(notification, 'mother', None)
    return {
        'id': notification.id,
        'dateOfNotification': notification.date_of_notification.isoformat(),
        'time': timezone.localtime(notification.created_at).strftime('%H:%M'),
        'facilityName': notification.facility_name,
        'mflCode': notification.mfl_code,
        'county': notification.county,
        'subCounty': notification.sub_county,
        'location': {
            'id': location.id,
            'name': location.name,
            'facilityName': notification.facility_name,
        } if location else None,
        # top-level place feeds the home/facility tiles
        'place': mother.place_of_delivery if mother else '',
        'deliveryPlace': mother.place_of_delivery if mother else '',
        'mother': serialize_mother(mother) if mother else None,
        'babies': [serialize_baby(b) for b in notification.babies.all()],
    }


@transaction.atomic
def _store_notification(user, data: Dict[str, Any]) -> Notification:
    location_id = data.get('locationId') or getattr(user, 'location_id', None)
    notified_on = data['dateOfNotification']
    if isinstance(notified_on, str):
        notified_on = date.fromisoformat(notified_on)
    notification = Notification.objects.create(
        facility_name=data['facilityName'],
        mfl_code=data.get('mflCode', ''),
        date_of_notification=notified_on,
        locality=data.get('locality', ''),
        county=data.get('county', ''),
        sub_county=data.get('subCounty', ''),
        level_of_care=data.get('levelOfCare', ''),
        managing_authority=data.get('managingAuthority', ''),
        location=Location.objects.filter(id=location_id).first() if location_id else None,
        created_by=user if getattr(user, 'pk', None) else None,
    )
    mother = data.get('mother') or {}
    Mother.objects.create(
        notification=notification,
        **{attr: mother[key] for key, attr in MOTHER_FIELDS if mother.get(key) is not None},
    )
    Baby.objects.bulk_create([
        Baby(notification=notification, **{attr: baby[key] for key, attr in BABY_FIELDS if baby.get(key) is not None})
        for baby in data.get('babies') or []
    ])
    return notification


def create_notification(user, data: Dict[str, Any], *, tree: Optional[LocationTree] = None) -> Notification:
    """Store a notification with its mother and babies, then alert the location hierarchy."""
    notification = _store_notification(user, data)
    logger.info("notification %s stored for location %s", notification.id, notification.location_id)
    log_action(user=user, action='notification_create', object_type='notification', object_id=notification.id,
               detail={'locationId': notification.location_id, 'babies': notification.babies.count()})
    dispatch_notification(notification, tree=tree)
    return notification


def dispatch_notification(notification: Notification, *, tree: Optional[LocationTree] = None) -> List[UserRef]:
    """Deliver a new notification to every user attached to its location or an ancestor.

    Each recipient gets an inbox entry.  When any baby is a stillbirth the
    recipients with an e-mail address are mailed; one failed mail does not
    stop the others.
    """
    if not notification.location_id:
        logger.warning("notification %s has no location; nobody to alert", notification.id)
        return []
    if tree is None:
        tree = load_location_tree()
    recipients = tree.get_parent_users(notification.location_id)
    logger.info("notification %s: %d recipient(s)", notification.id, len(recipients))

    UserNotification.objects.bulk_create(
        [UserNotification(notification=notification, user_id=u.id) for u in recipients],
        ignore_conflicts=True,
    )

    babies = list(notification.babies.all())
    if recipients and any(is_stillbirth(b.outcome) for b in babies):
        mother = Mother.objects.filter(notification=notification).first()
        context = {
            'location': notification.location.name if notification.location else None,
            'facility': notification.facility_name,
            'date': notification.date_of_notification.isoformat(),
            'mother_age': mother.age if mother else None,
            'babies': len(babies),
        }
        for user in recipients:
            if not user.email:
                continue
            try:
                send_stillbirth_alert(user.email, context)
            except Exception:
                logger.warning("notification %s: alert to %s failed, continuing", notification.id, user.email)
                continue

    channel_layer = get_channel_layer()
    if channel_layer is not None:
        async_to_sync(channel_layer.group_send)(BROADCAST_GROUP, {
            'type': 'notification.created',
            'notificationId': notification.id,
            'locationId': notification.location_id,
            'recipientIds': [u.id for u in recipients],
            'createdAt': notification.created_at.isoformat(),
        })
    return recipients


def records_for_location(location_id: int, start: Optional[date] = None, end: Optional[date] = None,
                         *, tree: Optional[LocationTree] = None) -> List[Dict[str, Any]]:
    """Raw records for notifications at ``location_id`` or below, optionally within a date range."""
    if tree is None:
        tree = load_location_tree()
    ids = tree.get_accessible_location_ids(location_id)
    qs = Notification.objects.filter(location_id__in=ids)
    if start:
        qs = qs.filter(date_of_notification__gte=start)
    if end:
        qs = qs.filter(date_of_notification__lte=end)
    qs = qs.select_related('location', 'mother').prefetch_related('babies').order_by('date_of_notification', 'id')
    return [serialize_raw_record(n) for n in qs]


def list_inbox(user, *, unread_only: bool = False, page: int = 1, limit: int = 20) -> Tuple[List[Dict[str, Any]], int]:
    qs = UserNotification.objects.filter(user=user)
    if unread_only:
        qs = qs.filter(is_read=False)
    total = qs.count()
    start = (page - 1) * limit
    items = qs.select_related('notification', 'notification__location').order_by('-created_at', '-id')[start:start + limit]
    data = [{
        'id': item.id,
        'notificationId': item.notification_id,
        'facilityName': item.notification.facility_name,
        'locationId': item.notification.location_id,
        'locationName': item.notification.location.name if item.notification.location else None,
        'dateOfNotification': item.notification.date_of_notification.isoformat(),
        'isRead': item.is_read,
        'createdAt': item.created_at.isoformat(),
    } for item in items]
    return data, total


def mark_read(user, inbox_id: int) -> bool:
    return UserNotification.objects.filter(user=user, id=inbox_id).update(is_read=True) > 0
