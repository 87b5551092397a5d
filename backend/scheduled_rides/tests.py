from datetime import timedelta
from io import StringIO
from unittest.mock import Mock, patch

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.contrib.auth import get_user_model
from django.core.cache import cache, caches
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from realtime.notifications import notify_scheduled_ride_event
from services.scheduling import (
	BOOKED,
	CANCELLED,
	PENDING,
	CacheScheduledRideStore,
	CeleryNotificationScheduler,
	DjangoRemoteMirror,
	Location,
	ScheduledRideManager,
	ScheduledRideRecord,
	SchedulingConfig,
	factory,
)
from services.scheduling.runner import RECONCILE_LOCK_KEY
from services.scheduling.tests import FakeExecutor, FakeNotifier

from .models import ScheduledRide
from .tasks import (
	cleanup_scheduled_rides_task,
	deliver_scheduled_ride_notification,
	reconcile_scheduled_rides_task,
)

PICKUP = Location(latitude=12.9716, longitude=77.5946, address='MG Road')
DROP = Location(latitude=12.9352, longitude=77.6245, address='Koramangala')


class ScheduledRideAppTestCase(TestCase):
	def setUp(self):
		cache.clear()
		caches['scheduled_rides'].clear()

		User = get_user_model()
		self.user = User.objects.create_user(username='passenger', password='pass1234')
		self.other_user = User.objects.create_user(username='other', password='pass1234')

		self.notifier = FakeNotifier()
		self.executor = FakeExecutor()
		self.manager = ScheduledRideManager(
			store=CacheScheduledRideStore(alias='scheduled_rides'),
			notifier=self.notifier,
			mirror=DjangoRemoteMirror(),
			executor=self.executor,
			config=SchedulingConfig(),
		)
		patcher = patch.object(factory, '_manager_instance', self.manager)
		patcher.start()
		self.addCleanup(patcher.stop)

		self.client = APIClient()
		self.client.force_authenticate(user=self.user)

	def add_ride(self, minutes_ahead, owner=None, ride_id='scheduled_due'):
		"""Put a ride straight into the local store and the mirror."""
		now = timezone.now()
		record = ScheduledRideRecord(
			id=ride_id,
			owner_id=str((owner or self.user).id),
			pickup=PICKUP,
			drop=DROP,
			scheduled_time=now + timedelta(minutes=minutes_ahead),
			vehicle_type='car',
			created_at=now - timedelta(days=1),
		)
		DjangoRemoteMirror().insert(record)
		record.mirror_synced = True
		self.manager.store.put(record)
		return record

	def schedule_payload(self, minutes_ahead, **overrides):
		payload = {
			'pickup': {'latitude': PICKUP.latitude, 'longitude': PICKUP.longitude, 'address': PICKUP.address},
			'drop': {'latitude': DROP.latitude, 'longitude': DROP.longitude, 'address': DROP.address},
			'scheduled_time': (timezone.now() + timedelta(minutes=minutes_ahead)).isoformat(),
			'vehicle_type': 'auto',
			'preferences': {'ac': True},
		}
		payload.update(overrides)
		return payload


class ScheduledRideApiTests(ScheduledRideAppTestCase):
	def test_schedule_ride(self):
		response = self.client.post(
			reverse('scheduled_rides:scheduled-rides'), self.schedule_payload(120), format='json'
		)

		self.assertEqual(response.status_code, status.HTTP_201_CREATED)
		self.assertEqual(response.data['ride']['status'], PENDING)
		self.assertEqual(response.data['ride']['vehicle_label'], 'Auto Rickshaw')
		self.assertEqual(response.data['warnings'], [])
		self.assertEqual(len(self.notifier.scheduled), 2)

		row = ScheduledRide.objects.get(id=response.data['ride']['id'])
		self.assertEqual(row.user, self.user)
		self.assertEqual(row.status, PENDING)
		self.assertEqual(row.preferences, {'ac': True})

	def test_schedule_ride_too_soon(self):
		response = self.client.post(
			reverse('scheduled_rides:scheduled-rides'), self.schedule_payload(10), format='json'
		)

		self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
		self.assertEqual(response.data['field'], 'scheduled_time')
		self.assertFalse(ScheduledRide.objects.exists())
		self.assertEqual(self.manager.store.get_all(), [])

	def test_schedule_ride_unknown_vehicle(self):
		response = self.client.post(
			reverse('scheduled_rides:scheduled-rides'),
			self.schedule_payload(120, vehicle_type='boat'),
			format='json'
		)

		self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
		self.assertIn('vehicle_type', response.data)

	def test_schedule_ride_requires_authentication(self):
		response = APIClient().post(
			reverse('scheduled_rides:scheduled-rides'), self.schedule_payload(120), format='json'
		)

		self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

	def test_list_returns_own_pending_rides(self):
		self.add_ride(120, ride_id='scheduled_mine')
		self.add_ride(120, owner=self.other_user, ride_id='scheduled_theirs')
		self.add_ride(180, ride_id='scheduled_cancelled')
		self.manager.cancel('scheduled_cancelled')

		response = self.client.get(reverse('scheduled_rides:scheduled-rides'))
		history = self.client.get(reverse('scheduled_rides:scheduled-rides'), {'include_history': 'true'})

		self.assertEqual(response.status_code, status.HTTP_200_OK)
		self.assertEqual([r['id'] for r in response.data['rides']], ['scheduled_mine'])
		self.assertEqual(history.data['count'], 2)

	def test_detail_hides_other_users_rides(self):
		self.add_ride(120, owner=self.other_user, ride_id='scheduled_theirs')

		response = self.client.get(
			reverse('scheduled_rides:scheduled-ride-detail', kwargs={'ride_id': 'scheduled_theirs'})
		)

		self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

	def test_cancel_ride(self):
		self.add_ride(120)
		url = reverse('scheduled_rides:cancel-scheduled-ride', kwargs={'ride_id': 'scheduled_due'})

		response = self.client.post(url)
		repeat = self.client.post(url)

		self.assertEqual(response.status_code, status.HTTP_200_OK)
		self.assertEqual(response.data['ride']['status'], CANCELLED)
		self.assertEqual(repeat.status_code, status.HTTP_200_OK)
		self.assertTrue(repeat.data['success'])
		self.assertEqual(ScheduledRide.objects.get(id='scheduled_due').status, CANCELLED)

	def test_cancel_other_users_ride(self):
		self.add_ride(120, owner=self.other_user)

		response = self.client.post(
			reverse('scheduled_rides:cancel-scheduled-ride', kwargs={'ride_id': 'scheduled_due'})
		)

		self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
		self.assertEqual(self.manager.store.get('scheduled_due').status, PENDING)

	def test_sync_books_due_ride_in_eager_mode(self):
		self.add_ride(10)

		response = self.client.post(reverse('scheduled_rides:sync-scheduled-rides'))

		self.assertEqual(response.status_code, status.HTTP_200_OK)
		self.assertTrue(response.data['queued'])
		self.assertEqual(response.data['rides'][0]['status'], BOOKED)
		self.assertEqual(response.data['rides'][0]['booking_id'], 'booking-1')

		row = ScheduledRide.objects.get(id='scheduled_due')
		self.assertEqual((row.status, row.booking_id), (BOOKED, 'booking-1'))

	@patch('scheduled_rides.views.reconcile_scheduled_rides_task')
	def test_sync_queues_pass_instead_of_running_it(self, mock_task):
		self.add_ride(10)

		response = self.client.post(reverse('scheduled_rides:sync-scheduled-rides'))

		mock_task.delay.assert_called_once_with()
		self.assertEqual(self.executor.calls, [])
		self.assertEqual(response.data['rides'][0]['status'], PENDING)

	@patch('scheduled_rides.views.reconcile_scheduled_rides_task')
	def test_sync_still_lists_rides_when_queue_is_down(self, mock_task):
		mock_task.delay.side_effect = ConnectionError('broker unreachable')
		self.add_ride(120)

		response = self.client.post(reverse('scheduled_rides:sync-scheduled-rides'))

		self.assertEqual(response.status_code, status.HTTP_200_OK)
		self.assertFalse(response.data['queued'])
		self.assertEqual(response.data['rides'][0]['id'], 'scheduled_due')

	def test_sync_skips_pass_while_another_runs(self):
		self.add_ride(10)
		cache.add(RECONCILE_LOCK_KEY, 'beat')

		response = self.client.post(reverse('scheduled_rides:sync-scheduled-rides'))

		self.assertTrue(response.data['queued'])
		self.assertEqual(response.data['rides'][0]['status'], PENDING)
		self.assertEqual(self.executor.calls, [])


class ScheduledRideTaskTests(ScheduledRideAppTestCase):
	def test_periodic_reconcile_books_and_releases_lock(self):
		self.add_ride(10)

		result = reconcile_scheduled_rides_task()

		self.assertEqual(result['booked'], ['scheduled_due'])
		self.assertIsNone(cache.get(RECONCILE_LOCK_KEY))
		self.assertEqual(self.notifier.sent[0]['event'], 'scheduled_ride_booked')

	def test_periodic_reconcile_expires_stale_ride(self):
		self.add_ride(-90)

		result = reconcile_scheduled_rides_task()

		self.assertEqual(result['expired'], ['scheduled_due'])
		self.assertEqual(ScheduledRide.objects.get(id='scheduled_due').status, 'expired')
		self.assertEqual(self.executor.calls, [])

	@patch('services.scheduling.run_reconciliation')
	@patch('realtime.notifications.notify_scheduled_ride_event')
	def test_reminder_delivery_triggers_reconciliation(self, mock_notify, mock_reconcile):
		payload = {'event': 'scheduled_ride_reminder', 'ride_id': 'scheduled_due', 'owner_id': '1'}

		deliver_scheduled_ride_notification(payload)

		mock_notify.assert_called_once_with(payload)
		mock_reconcile.assert_called_once_with(trigger='reminder')

	def test_cleanup_task(self):
		self.add_ride(-31 * 24 * 60, ride_id='scheduled_old')
		self.add_ride(-29 * 24 * 60, ride_id='scheduled_recent')

		self.assertEqual(cleanup_scheduled_rides_task(), 1)
		self.assertIsNone(self.manager.store.get('scheduled_old'))
		self.assertIsNotNone(self.manager.store.get('scheduled_recent'))


class ScheduledRideCommandTests(ScheduledRideAppTestCase):
	def test_reconcile_command(self):
		self.add_ride(10)
		out = StringIO()

		call_command('reconcile_scheduled_rides', '--skip-cleanup', stdout=out)

		self.assertIn('Booked 1 ride(s)', out.getvalue())
		self.assertEqual(self.manager.store.get('scheduled_due').status, BOOKED)

	def test_cleanup_command_dry_run(self):
		self.add_ride(-10 * 24 * 60)
		out = StringIO()

		call_command('cleanup_scheduled_rides', '--days', '7', '--dry-run', stdout=out)

		self.assertIn('Would delete 1 scheduled rides older than 7 days', out.getvalue())
		self.assertIsNotNone(self.manager.store.get('scheduled_due'))


class CeleryNotificationSchedulerTests(TestCase):
	def setUp(self):
		self.scheduler = CeleryNotificationScheduler()
		self.payload = {'event': 'scheduled_ride_reminder', 'ride_id': 'scheduled_x', 'owner_id': '4'}

	def test_schedule_queues_task_with_eta(self):
		fire_at = timezone.now() + timedelta(hours=1)

		with patch.object(deliver_scheduled_ride_notification, 'apply_async', return_value=Mock(id='task-1')) as mock_apply:
			handle = self.scheduler.schedule(fire_at, self.payload)

		self.assertEqual(handle, 'task-1')
		mock_apply.assert_called_once_with(kwargs={'payload': self.payload}, eta=fire_at)

	def test_schedule_in_the_past_returns_no_handle(self):
		with patch.object(deliver_scheduled_ride_notification, 'apply_async') as mock_apply:
			handle = self.scheduler.schedule(timezone.now() - timedelta(minutes=1), self.payload)

		self.assertIsNone(handle)
		mock_apply.assert_not_called()

	@patch('celery.app.control.Control.revoke')
	def test_cancel_revokes_task(self, mock_revoke):
		self.scheduler.cancel('task-1')

		mock_revoke.assert_called_once_with('task-1')


class ScheduledRideEventTests(TestCase):
	def setUp(self):
		self.channel_layer = get_channel_layer()
		self.channel_name = async_to_sync(self.channel_layer.new_channel)()
		async_to_sync(self.channel_layer.group_add)('user_9', self.channel_name)
		self.addCleanup(async_to_sync(self.channel_layer.flush))

	def test_event_reaches_owner_group(self):
		sent = notify_scheduled_ride_event({
			'event': 'scheduled_ride_booked',
			'ride_id': 'scheduled_x',
			'owner_id': '9',
			'booking_id': 'b-3',
		})

		message = async_to_sync(self.channel_layer.receive)(self.channel_name)
		self.assertTrue(sent)
		self.assertEqual(message['type'], 'scheduled_ride_booked')
		self.assertEqual(message['booking_id'], 'b-3')

	def test_unknown_event_is_dropped(self):
		self.assertFalse(notify_scheduled_ride_event({'event': 'ride_offer', 'owner_id': '9'}))
		self.assertFalse(notify_scheduled_ride_event({'event': 'scheduled_ride_booked'}))
