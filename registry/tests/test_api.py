"""
Integration tests for the stillbirth backend API.

The fixture hierarchy is Kisumu (county) -> Kisumu East (subcounty) ->
JOOTRH (facility), plus an unrelated Nakuru county.  One user is attached
to each level; notifications raised at the facility must reach all three.
"""
import io
from datetime import timedelta
from smtplib import SMTPException
from unittest import mock

from django.core import mail
from django.core.management import call_command
from django.utils import timezone
from rest_framework.test import APITestCase

from registry.models import AuditEvent, Location, Notification, Role, User, UserNotification
from registry.services.mail import send_stillbirth_alert


def notification_payload(location_id, outcome='Fresh still-birth', **overrides):
    payload = {
        'facilityName': 'Jaramogi Oginga Odinga TRH',
        'mflCode': '13939',
        'dateOfNotification': timezone.localdate().isoformat(),
        'county': 'Kisumu',
        'subCounty': 'Kisumu East',
        'locationId': location_id,
        'mother': {'age': 28, 'placeOfDelivery': 'Facility', 'conditions': ['Hypertension']},
        'babies': [{
            'sex': 'Female',
            'outcome': outcome,
            'birthWeight': 1800,
            'gestationWeeks': 34,
            'timeOfDeath': '03:10',
        }],
    }
    payload.update(overrides)
    return payload


class StillbirthAPITests(APITestCase):
    def setUp(self) -> None:
        call_command('seed_roles', stdout=io.StringIO())
        roles = {r.name: r for r in Role.objects.all()}

        self.county = Location.objects.create(name='Kisumu', type='county')
        self.subcounty = Location.objects.create(name='Kisumu East', type='subcounty', parent=self.county)
        self.facility = Location.objects.create(name='JOOTRH', type='facility', parent=self.subcounty)
        self.other_county = Location.objects.create(name='Nakuru', type='county')

        self.county_user = self._user('county@example.org', roles['county user'], self.county)
        self.sub_user = self._user('sub@example.org', roles['subcounty user'], self.subcounty)
        self.nurse = self._user('nurse@example.org', roles['nurse'], self.facility)
        self.outsider = self._user('nakuru@example.org', roles['county user'], self.other_county)
        self.admin = self._user('admin@example.org', roles['admin'], None)

    def _user(self, email, role, location):
        user = User.objects.create_user(username=email, email=email, password='P@ssw0rd1',
                                        name=email.split('@')[0], role=role, location=location)
        if location is not None:
            location.users.add(user)
        return user

    def _create_notification(self, user=None, **kwargs):
        self.client.force_authenticate(user or self.nurse)
        return self.client.post('/api/notifications', notification_payload(self.facility.id, **kwargs), format='json')

    # ------------------------------------------------------------------
    # auth
    # ------------------------------------------------------------------
    def test_login_returns_jwt_and_profile(self):
        r = self.client.post('/api/auth/login', {'email': 'Nurse@example.org', 'password': 'P@ssw0rd1'},
                             format='json')
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data['role'], 'nurse')
        self.assertEqual(r.data['user']['location']['id'], self.facility.id)
        self.assertEqual(r.data['user']['screens'], ['home', 'patient_registration'])

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['jwt_access']}")
        me = self.client.get('/api/auth/me')
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.data['email'], 'nurse@example.org')
        self.assertIn('home', me.data['screens'])
        self.assertNotIn('users', me.data['screens'])

    def test_login_rejects_bad_password(self):
        r = self.client.post('/api/auth/login', {'email': 'nurse@example.org', 'password': 'nope'}, format='json')
        self.assertEqual(r.status_code, 401)
        self.assertFalse(r.data['ok'])
        self.assertTrue(AuditEvent.objects.filter(action='login', detail__result='fail').exists())

    def test_anonymous_requests_are_refused(self):
        r = self.client.get(f'/api/reports/stillbirths/{self.county.id}/preview')
        self.assertEqual(r.status_code, 401)

    # ------------------------------------------------------------------
    # notifications and escalation
    # ------------------------------------------------------------------
    def test_notification_alerts_every_level_above(self):
        r = self._create_notification()
        self.assertEqual(r.status_code, 201, r.data)
        self.assertEqual(len(r.data['babies']), 1)
        self.assertEqual(r.data['mother']['age'], 28)

        notification = Notification.objects.get(id=r.data['id'])
        recipients = set(UserNotification.objects.filter(notification=notification).values_list('user_id', flat=True))
        self.assertEqual(recipients, {self.nurse.id, self.sub_user.id, self.county_user.id})
        self.assertEqual(sorted(m.to[0] for m in mail.outbox),
                         ['county@example.org', 'nurse@example.org', 'sub@example.org'])
        self.assertIn('JOOTRH', mail.outbox[0].body)
        self.assertTrue(AuditEvent.objects.filter(action='notification_create', object_id=notification.id).exists())

    def test_non_stillbirth_outcome_sends_no_mail(self):
        r = self._create_notification(outcome='Early neonatal death')
        self.assertEqual(r.status_code, 201)
        self.assertEqual(len(mail.outbox), 0)
        self.assertEqual(UserNotification.objects.count(), 3)

    def test_notification_outside_area_is_forbidden(self):
        self.client.force_authenticate(self.nurse)
        r = self.client.post('/api/notifications', notification_payload(self.county.id), format='json')
        self.assertEqual(r.status_code, 403)
        self.assertEqual(Notification.objects.count(), 0)

    def test_notification_defaults_to_home_location(self):
        self.client.force_authenticate(self.nurse)
        payload = notification_payload(None)
        del payload['locationId']
        r = self.client.post('/api/notifications', payload, format='json')
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.data['location']['id'], self.facility.id)

    def test_notification_requires_babies(self):
        r = self._create_notification(babies=[])
        self.assertEqual(r.status_code, 400)

    def test_free_text_is_sanitised(self):
        r = self._create_notification(facilityName='<script>x</script>JOOTRH')
        self.assertEqual(r.status_code, 201)
        self.assertNotIn('<script>', Notification.objects.get().facility_name)

    def test_inbox_and_mark_read(self):
        self._create_notification()
        self.client.force_authenticate(self.sub_user)
        r = self.client.get('/api/notifications/inbox', {'unread': 'true'})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data['total'], 1)
        entry = r.data['data'][0]
        self.assertEqual(entry['locationName'], 'JOOTRH')

        r = self.client.post(f"/api/notifications/inbox/{entry['id']}/read")
        self.assertEqual(r.status_code, 200)
        r = self.client.get('/api/notifications/inbox', {'unread': 'true'})
        self.assertEqual(r.data['total'], 0)

        self.client.force_authenticate(self.outsider)
        r = self.client.post(f"/api/notifications/inbox/{entry['id']}/read")
        self.assertEqual(r.status_code, 404)

    def test_notification_reads_are_scoped(self):
        created = self._create_notification().data
        self.client.force_authenticate(self.county_user)
        r = self.client.get('/api/notifications')
        self.assertEqual(r.data['total'], 1)
        r = self.client.get(f"/api/notifications/{created['id']}")
        self.assertEqual(r.status_code, 200)
        r = self.client.get('/api/babies')
        self.assertEqual(r.data['total'], 1)
        self.assertEqual(r.data['data'][0]['outcome'], 'Fresh still-birth')

        self.client.force_authenticate(self.outsider)
        self.assertEqual(self.client.get('/api/notifications').data['total'], 0)
        self.assertEqual(self.client.get(f"/api/notifications/{created['id']}").status_code, 404)
        self.assertEqual(self.client.get(f"/api/mothers/{created['mother']['id']}").status_code, 404)

    # ------------------------------------------------------------------
    # locations
    # ------------------------------------------------------------------
    def test_accessible_and_parent_users(self):
        self.client.force_authenticate(self.county_user)
        r = self.client.get(f'/api/locations/{self.county.id}/accessible')
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data['ids'], [self.county.id, self.subcounty.id, self.facility.id])

        r = self.client.get(f'/api/locations/{self.facility.id}/parent-users')
        self.assertEqual([u['email'] for u in r.data['users']],
                         ['nurse@example.org', 'sub@example.org', 'county@example.org'])

        r = self.client.get(f'/api/locations/{self.facility.id}')
        self.assertEqual(r.data['hierarchy']['parent']['parent']['name'], 'Kisumu')

    def test_location_list_and_create(self):
        self.client.force_authenticate(self.sub_user)
        r = self.client.get('/api/locations')
        self.assertEqual({loc['id'] for loc in r.data['data']}, {self.subcounty.id, self.facility.id})
        r = self.client.post('/api/locations', {'name': 'Ahero', 'type': 'facility', 'parentId': self.subcounty.id},
                             format='json')
        self.assertEqual(r.status_code, 403)

        self.client.force_authenticate(self.county_user)
        r = self.client.post('/api/locations', {'name': 'Ahero', 'type': 'facility', 'parentId': self.subcounty.id},
                             format='json')
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.data['parentId'], self.subcounty.id)

    def test_subcounty_user_cannot_reach_county(self):
        self.client.force_authenticate(self.sub_user)
        r = self.client.get(f'/api/locations/{self.county.id}/accessible')
        self.assertEqual(r.status_code, 403)

    # ------------------------------------------------------------------
    # reports
    # ------------------------------------------------------------------
    def test_records_cover_the_subtree(self):
        self._create_notification()
        self.client.force_authenticate(self.county_user)
        r = self.client.get(f'/api/notifications/stillbirths/records/{self.county.id}')
        self.assertEqual(r.status_code, 200)
        self.assertEqual(len(r.data), 1)
        self.assertEqual(r.data[0]['location']['name'], 'JOOTRH')
        self.assertEqual(r.data[0]['babies'][0]['birthWeight'], 1800)

        yesterday = (timezone.localdate() - timedelta(days=1)).isoformat()
        r = self.client.get(f'/api/notifications/stillbirths/records/{self.county.id}',
                            {'startDate': yesterday, 'endDate': yesterday})
        self.assertEqual(r.data, [])

    def test_summary_tiles(self):
        self._create_notification()
        self.client.force_authenticate(self.county_user)
        month = timezone.localdate().strftime('%B %Y')
        r = self.client.get(f'/api/notifications/stillbirths/{self.county.id}', {'month': month})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data['today']['total'], 1)
        self.assertEqual(r.data['range']['type']['fresh'], 1)
        # the baby's sex string does not feed the sex tiles
        self.assertEqual(r.data['range']['sex'], {'female': 0, 'male': 0})
        self.assertEqual(r.data['monthly'][0]['month'], month)
        self.assertEqual(r.data['monthly'][0]['avgWeight'], 1800)

    def test_summary_rejects_bad_month(self):
        self.client.force_authenticate(self.county_user)
        r = self.client.get(f'/api/notifications/stillbirths/{self.county.id}', {'month': 'Smarch 2025'})
        self.assertEqual(r.status_code, 400)

    def test_preview_and_export(self):
        self._create_notification()
        self.client.force_authenticate(self.sub_user)
        r = self.client.get(f'/api/reports/stillbirths/{self.subcounty.id}/preview')
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data['tiles']['total'], 1)
        self.assertEqual(r.data['tiles']['place'], {'home': 0, 'facility': 1})
        row = r.data['rows'][0]
        self.assertEqual(row['sex'], 'Female')
        self.assertEqual(row['facility'], 'JOOTRH')
        self.assertEqual(row['weight'], '1800')
        self.assertEqual(row['motherAge'], '28')
        self.assertEqual(row['deliveryPlace'], 'Facility')

        r = self.client.get(f'/api/reports/stillbirths/{self.subcounty.id}/export')
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r['Content-Type'].startswith('text/csv'))
        self.assertIn('stillbirth_linelist_', r['Content-Disposition'])
        lines = r.content.decode().splitlines()
        self.assertTrue(lines[0].startswith('Sex,Type,Facility'))
        self.assertEqual(len(lines), 2)

    def test_reports_outside_area_are_forbidden(self):
        self.client.force_authenticate(self.outsider)
        r = self.client.get(f'/api/reports/stillbirths/{self.county.id}/preview')
        self.assertEqual(r.status_code, 403)
        self.assertFalse(r.data['ok'])

    def test_unknown_location_is_404(self):
        self.client.force_authenticate(self.county_user)
        r = self.client.get('/api/reports/stillbirths/999999/preview')
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.data['error']['code'], 'location_not_found')

    def test_nurse_cannot_view_reports(self):
        self.client.force_authenticate(self.nurse)
        r = self.client.get(f'/api/reports/stillbirths/{self.facility.id}/preview')
        self.assertEqual(r.status_code, 403)

    # ------------------------------------------------------------------
    # staff administration
    # ------------------------------------------------------------------
    def test_user_management_is_scoped(self):
        nurse_role = Role.objects.get(name='nurse')
        self.client.force_authenticate(self.sub_user)
        r = self.client.post('/api/users', {'email': 'new@example.org', 'name': 'New Nurse',
                                            'roleId': nurse_role.id, 'locationId': self.facility.id}, format='json')
        self.assertEqual(r.status_code, 201, r.data)
        created = User.objects.get(email='new@example.org')
        self.assertTrue(self.facility.users.filter(id=created.id).exists())

        r = self.client.post('/api/users', {'email': 'far@example.org', 'name': 'Far Away',
                                            'locationId': self.other_county.id}, format='json')
        self.assertEqual(r.status_code, 403)

        r = self.client.get(f'/api/users/{self.county_user.id}')
        self.assertEqual(r.status_code, 403)

        r = self.client.delete(f'/api/users/{created.id}')
        self.assertEqual(r.status_code, 200)
        created.refresh_from_db()
        self.assertFalse(created.is_active)

    def test_roles_are_admin_only(self):
        self.client.force_authenticate(self.county_user)
        self.assertEqual(self.client.get('/api/roles').status_code, 403)
        self.client.force_authenticate(self.admin)
        r = self.client.get('/api/roles')
        self.assertEqual(r.status_code, 200)
        self.assertEqual({role['name'] for role in r.data}, {'admin', 'county user', 'subcounty user', 'nurse'})

    def test_place_tiles_follow_place_of_delivery(self):
        self._create_notification(mother={'age': 30, 'placeOfDelivery': 'home'})
        self._create_notification(mother={'age': 24, 'placeOfDelivery': 'Facility'})
        self.client.force_authenticate(self.county_user)
        r = self.client.get(f'/api/reports/stillbirths/{self.county.id}/preview')
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.data['tiles']['place'], {'home': 1, 'facility': 1})
        self.assertEqual(sorted(row['deliveryPlace'] for row in r.data['rows']), ['Facility', 'home'])

    # ------------------------------------------------------------------
    # query validation
    # ------------------------------------------------------------------
    def test_non_numeric_filters_are_rejected(self):
        self.client.force_authenticate(self.admin)
        for url, params in [
            ('/api/notifications', {'locationId': 'abc'}),
            ('/api/locations', {'parentId': 'abc'}),
            ('/api/users', {'locationId': 'abc'}),
            ('/api/babies', {'notificationId': 'abc'}),
        ]:
            r = self.client.get(url, params)
            self.assertEqual(r.status_code, 400, url)
            self.assertFalse(r.data['ok'])

    def test_numeric_filters_still_apply(self):
        created = self._create_notification().data
        self.client.force_authenticate(self.admin)
        r = self.client.get('/api/notifications', {'locationId': self.facility.id})
        self.assertEqual(r.data['total'], 1)
        r = self.client.get('/api/notifications', {'locationId': self.county.id})
        self.assertEqual(r.data['total'], 0)
        r = self.client.get('/api/babies', {'notificationId': created['id']})
        self.assertEqual(r.data['total'], 1)
        r = self.client.get('/api/locations', {'parentId': self.county.id})
        self.assertEqual([loc['id'] for loc in r.data['data']], [self.subcounty.id])
        r = self.client.get('/api/users', {'locationId': self.facility.id})
        self.assertEqual([u['email'] for u in r.data['data']], ['nurse@example.org'])

    # ------------------------------------------------------------------
    # alert mail failures
    # ------------------------------------------------------------------
    def test_failed_alert_does_not_stop_the_others(self):
        def flaky_send(to, context):
            if to == 'sub@example.org':
                raise SMTPException('mailbox unavailable')
            return send_stillbirth_alert(to, context)

        with mock.patch('registry.services.notifications.send_stillbirth_alert', side_effect=flaky_send) as patched:
            r = self._create_notification()

        self.assertEqual(r.status_code, 201)
        self.assertEqual(patched.call_count, 3)
        self.assertEqual(sorted(m.to[0] for m in mail.outbox), ['county@example.org', 'nurse@example.org'])
        self.assertEqual(
            set(UserNotification.objects.values_list('user_id', flat=True)),
            {self.nurse.id, self.sub_user.id, self.county_user.id},
        )


class HealthTests(APITestCase):
    def test_healthz(self):
        r = self.client.get('/healthz')
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {'ok': True, 'db': True, 'cache': True})

    def test_metrics_are_exposed(self):
        r = self.client.get('/metrics')
        self.assertEqual(r.status_code, 200)
        self.assertIn(b'django_http_requests', r.content)
