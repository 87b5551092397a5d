import json
import tempfile
from datetime import datetime, timedelta, timezone as dt_timezone
from unittest.mock import Mock

import requests
from django.contrib.auth import get_user_model
from django.core.cache import cache, caches
from django.test import SimpleTestCase, TestCase, override_settings

from scheduled_rides.models import ScheduledRide

from . import (
	BOOKED,
	CANCELLED,
	EXPIRED,
	PENDING,
	BookingExecutor,
	BookingResult,
	CacheScheduledRideStore,
	DjangoRemoteMirror,
	HttpBookingExecutor,
	JsonFileScheduledRideStore,
	Location,
	MirrorConflictError,
	MirrorRecordMissingError,
	MirrorWriteError,
	NotificationScheduler,
	RemoteMirror,
	ScheduledRideManager,
	ScheduledRideNotFoundError,
	ScheduledRideRecord,
	SchedulingConfig,
	SchedulingValidationError,
)
from .runner import RECONCILE_LOCK_KEY, run_reconciliation

NOW = datetime(2026, 10, 18, 9, 0, tzinfo=dt_timezone.utc)

PICKUP = Location(latitude=28.6139, longitude=77.2090, address='Connaught Place')
DROP = Location(latitude=28.6129, longitude=77.2295, address='India Gate')


class FakeNotifier(NotificationScheduler):
	def __init__(self):
		self.scheduled = []
		self.cancelled = []
		self.on_cancel = None
		self.sent = []

	def schedule(self, fire_at, payload):
		handle = 'handle-%d' % (len(self.scheduled) + 1)
		self.scheduled.append((handle, fire_at, payload))
		return handle

	def cancel(self, handle):
		self.cancelled.append(handle)
		if self.on_cancel:
			hook, self.on_cancel = self.on_cancel, None
			hook()

	def notify_now(self, payload):
		self.sent.append(payload)


class FakeMirror(RemoteMirror):
	def __init__(self, fail=False):
		self.rows = {}
		self.fail = fail

	def insert(self, record):
		if self.fail:
			raise MirrorWriteError('mirror unavailable')
		self.rows[record.id] = {'status': record.status, 'booking_id': record.booking_id}

	def update_status(self, ride_id, status, booking_id=None):
		if self.fail:
			raise MirrorWriteError('mirror unavailable')
		row = self.rows.get(ride_id)
		if row is None:
			raise MirrorRecordMissingError(ride_id)
		if row['status'] == PENDING:
			row.update(status=status, booking_id=booking_id)
			return
		if row['status'] == status and row['booking_id'] == booking_id:
			return
		raise MirrorConflictError(ride_id, row['status'], row['booking_id'])


class FakeExecutor(BookingExecutor):
	def __init__(self, results=None):
		self.calls = []
		self.results = list(results or [])
		self.on_submit = None

	def submit(self, pickup, drop, vehicle_type, preferences, owner_id=None):
		self.calls.append((pickup, drop, vehicle_type, preferences, owner_id))
		if self.on_submit:
			self.on_submit()
		if self.results:
			result = self.results.pop(0)
			if isinstance(result, Exception):
				raise result
			return result
		return BookingResult(success=True, booking_id='booking-%d' % len(self.calls))


class ManagerTestMixin:
	def setUp(self):
		cache.clear()
		caches['scheduled_rides'].clear()
		self.now = NOW
		self.store = CacheScheduledRideStore(alias='scheduled_rides')
		self.notifier = FakeNotifier()
		self.mirror = FakeMirror()
		self.executor = FakeExecutor()
		self.manager = ScheduledRideManager(
			store=self.store,
			notifier=self.notifier,
			mirror=self.mirror,
			executor=self.executor,
			config=SchedulingConfig(),
			clock=lambda: self.now,
		)

	def schedule(self, minutes_ahead, **kwargs):
		return self.manager.create(
			owner_id=kwargs.pop('owner_id', 7),
			pickup=PICKUP,
			drop=DROP,
			scheduled_time=self.now + timedelta(minutes=minutes_ahead),
			vehicle_type=kwargs.pop('vehicle_type', 'auto'),
			preferences=kwargs.pop('preferences', {'ac': True}),
		).ride

	def put_record(self, scheduled_time, status=PENDING, booking_id=None, ride_id='scheduled_test'):
		record = ScheduledRideRecord(
			id=ride_id,
			owner_id='7',
			pickup=PICKUP,
			drop=DROP,
			scheduled_time=scheduled_time,
			vehicle_type='car',
			created_at=scheduled_time - timedelta(days=1),
			status=status,
			booking_id=booking_id,
			mirror_synced=True,
		)
		self.store.put(record)
		self.mirror.rows[ride_id] = {'status': status, 'booking_id': booking_id}
		return record


class ScheduledRideCreationTests(ManagerTestMixin, SimpleTestCase):
	def test_create_rejects_rides_inside_minimum_lead_time(self):
		with self.assertRaises(SchedulingValidationError) as ctx:
			self.schedule(29)

		self.assertEqual(ctx.exception.field, 'scheduled_time')
		self.assertEqual(self.store.get_all(), [])
		self.assertEqual(self.notifier.scheduled, [])
		self.assertEqual(self.mirror.rows, {})

	def test_create_rejects_rides_beyond_horizon(self):
		with self.assertRaises(SchedulingValidationError):
			self.schedule(31 * 24 * 60)

		self.assertEqual(self.store.get_all(), [])
		self.assertEqual(self.mirror.rows, {})

	def test_create_rejects_naive_time_and_unknown_vehicle(self):
		with self.assertRaises(SchedulingValidationError):
			self.manager.create(7, PICKUP, DROP, datetime(2026, 10, 18, 12, 0), 'auto')
		with self.assertRaises(SchedulingValidationError) as ctx:
			self.schedule(120, vehicle_type='helicopter')

		self.assertEqual(ctx.exception.field, 'vehicle_type')
		self.assertEqual(self.store.get_all(), [])

	def test_create_rejects_out_of_range_coordinates(self):
		with self.assertRaises(SchedulingValidationError) as ctx:
			self.manager.create(
				7, Location(latitude=120, longitude=0), DROP, self.now + timedelta(hours=2), 'car'
			)

		self.assertEqual(ctx.exception.field, 'pickup')

	def test_create_persists_pending_record_locally_and_in_mirror(self):
		ride = self.schedule(120)

		stored = self.store.get(ride.id)
		self.assertEqual(stored.status, PENDING)
		self.assertIsNone(stored.booking_id)
		self.assertEqual(stored.owner_id, '7')
		self.assertEqual(stored.preferences, {'ac': True})
		self.assertTrue(stored.mirror_synced)
		self.assertEqual(self.mirror.rows[ride.id]['status'], PENDING)

		kinds = [payload['kind'] for _, _, payload in self.notifier.scheduled]
		fire_times = [fire_at for _, fire_at, _ in self.notifier.scheduled]
		self.assertEqual(kinds, ['reminder', 'booking'])
		self.assertEqual(fire_times, [self.now + timedelta(minutes=60), self.now + timedelta(minutes=105)])

	def test_create_close_to_lead_time_floor_skips_past_reminders(self):
		ride = self.schedule(30)

		self.assertEqual(len(ride.notification_handles), 1)
		self.assertEqual(self.notifier.scheduled[0][2]['kind'], 'booking')

	def test_mirror_failure_keeps_local_record_and_warns(self):
		self.mirror.fail = True

		result = self.manager.create(7, PICKUP, DROP, self.now + timedelta(hours=3), 'bike')

		self.assertTrue(result.success)
		self.assertEqual(len(result.warnings), 1)
		stored = self.store.get(result.ride.id)
		self.assertEqual(stored.status, PENDING)
		self.assertFalse(stored.mirror_synced)

		# The next pass catches the mirror up
		self.mirror.fail = False
		summary = self.manager.reconcile()

		self.assertEqual(summary.mirror_synced, [result.ride.id])
		self.assertEqual(self.mirror.rows[result.ride.id]['status'], PENDING)
		self.assertTrue(self.store.get(result.ride.id).mirror_synced)


class ScheduledRideCancellationTests(ManagerTestMixin, SimpleTestCase):
	def test_cancel_before_reminders_fire(self):
		ride = self.schedule(90)
		self.assertEqual(len(ride.notification_handles), 2)

		result = self.manager.cancel(ride.id)

		self.assertTrue(result.success)
		self.assertEqual(self.notifier.cancelled, ride.notification_handles)
		self.assertEqual(self.store.get(ride.id).status, CANCELLED)
		self.assertEqual(self.mirror.rows[ride.id]['status'], CANCELLED)

	def test_cancel_twice_is_idempotent(self):
		ride = self.schedule(90)

		self.manager.cancel(ride.id)
		second = self.manager.cancel(ride.id)

		self.assertTrue(second.success)
		self.assertEqual(second.ride.status, CANCELLED)
		self.assertEqual(set(self.notifier.cancelled), set(ride.notification_handles))

	def test_cancel_booked_ride_leaves_it_booked(self):
		self.put_record(self.now + timedelta(minutes=10), status=BOOKED, booking_id='b-1')

		result = self.manager.cancel('scheduled_test')

		self.assertTrue(result.success)
		self.assertEqual(self.store.get('scheduled_test').status, BOOKED)
		self.assertEqual(self.mirror.rows['scheduled_test']['status'], BOOKED)

	def test_booking_that_lands_during_cancel_is_kept(self):
		ride = self.schedule(45)
		self.now += timedelta(minutes=31)

		def book_then_lose_mirror():
			self.manager.reconcile()
			self.mirror.fail = True
		self.notifier.on_cancel = book_then_lose_mirror

		result = self.manager.cancel(ride.id)

		self.assertTrue(result.success)
		self.assertEqual(result.message, 'Scheduled ride is already booked')
		self.assertEqual(result.ride.status, BOOKED)
		stored = self.store.get(ride.id)
		self.assertEqual((stored.status, stored.booking_id), (BOOKED, 'booking-1'))
		self.assertEqual(self.mirror.rows[ride.id], {'status': BOOKED, 'booking_id': 'booking-1'})

	def test_cancel_unknown_or_foreign_ride_is_not_found(self):
		ride = self.schedule(90)

		with self.assertRaises(ScheduledRideNotFoundError):
			self.manager.cancel('scheduled_missing')
		with self.assertRaises(ScheduledRideNotFoundError):
			self.manager.cancel(ride.id, owner_id=8)

		self.assertEqual(self.store.get(ride.id).status, PENDING)


class ScheduledRideReconcileTests(ManagerTestMixin, SimpleTestCase):
	def test_ride_is_booked_once_inside_trigger_window(self):
		ride = self.schedule(45)
		self.assertEqual(len(ride.notification_handles), 1)

		self.now += timedelta(minutes=31)
		summary = self.manager.reconcile()

		self.assertEqual(summary.booked, [ride.id])
		self.assertEqual(len(self.executor.calls), 1)
		pickup, drop, vehicle_type, preferences, owner_id = self.executor.calls[0]
		self.assertEqual((vehicle_type, preferences, owner_id), ('auto', {'ac': True}, '7'))

		stored = self.store.get(ride.id)
		self.assertEqual(stored.status, BOOKED)
		self.assertEqual(stored.booking_id, 'booking-1')
		self.assertEqual(self.mirror.rows[ride.id], {'status': BOOKED, 'booking_id': 'booking-1'})
		self.assertEqual(self.notifier.sent[0]['event'], 'scheduled_ride_booked')
		self.assertEqual(self.notifier.sent[0]['booking_id'], 'booking-1')

	def test_reconcile_twice_submits_one_booking(self):
		ride = self.schedule(45)
		self.now += timedelta(minutes=31)

		self.manager.reconcile()
		second = self.manager.reconcile()

		self.assertEqual(len(self.executor.calls), 1)
		self.assertEqual(second.booked, [])
		self.assertEqual(self.store.get(ride.id).status, BOOKED)

	def test_overlapping_pass_does_not_book_twice(self):
		ride = self.schedule(45)
		self.now += timedelta(minutes=31)
		nested = []
		self.executor.on_submit = lambda: nested.append(self.manager.reconcile())

		self.manager.reconcile()

		self.assertEqual(len(self.executor.calls), 1)
		self.assertEqual(nested[0].skipped, [ride.id])
		self.assertEqual(self.store.get(ride.id).status, BOOKED)

	def test_failed_booking_stays_pending_and_is_retried(self):
		self.executor.results = [requests.ConnectionError('network down')]
		ride = self.schedule(45)
		self.now += timedelta(minutes=31)

		first = self.manager.reconcile()

		self.assertEqual(first.failed, [ride.id])
		self.assertEqual(self.store.get(ride.id).status, PENDING)
		self.assertEqual(self.notifier.sent, [])

		self.now += timedelta(minutes=2)
		second = self.manager.reconcile()

		self.assertEqual(len(self.executor.calls), 2)
		self.assertEqual(second.booked, [ride.id])
		self.assertEqual(self.store.get(ride.id).status, BOOKED)

	def test_rejected_booking_stays_pending(self):
		self.executor.results = [BookingResult(success=False, reason='No drivers available nearby')]
		ride = self.schedule(45)
		self.now += timedelta(minutes=31)

		self.manager.reconcile()

		self.assertEqual(self.store.get(ride.id).status, PENDING)
		self.assertIsNone(self.store.get(ride.id).booking_id)

	def test_ride_outside_window_is_untouched(self):
		ride = self.schedule(45)

		summary = self.manager.reconcile()

		self.assertEqual(self.executor.calls, [])
		self.assertEqual(summary.booked + summary.expired, [])
		self.assertEqual(self.store.get(ride.id).status, PENDING)

	def test_expiry_boundary(self):
		self.put_record(self.now - timedelta(minutes=59), ride_id='scheduled_59')
		self.put_record(self.now - timedelta(minutes=60), ride_id='scheduled_60')
		self.put_record(self.now - timedelta(minutes=61), ride_id='scheduled_61')

		summary = self.manager.reconcile()

		self.assertEqual(self.store.get('scheduled_59').status, PENDING)
		self.assertEqual(self.store.get('scheduled_60').status, EXPIRED)
		self.assertEqual(self.store.get('scheduled_61').status, EXPIRED)
		self.assertEqual(sorted(summary.expired), ['scheduled_60', 'scheduled_61'])
		self.assertEqual(self.executor.calls, [])
		self.assertEqual(self.mirror.rows['scheduled_61']['status'], EXPIRED)

	def test_cancel_during_booking_wins(self):
		ride = self.schedule(45)
		self.now += timedelta(minutes=31)
		self.executor.on_submit = lambda: self.manager.cancel(ride.id)

		summary = self.manager.reconcile()

		self.assertEqual(summary.booked, [])
		self.assertEqual(summary.skipped, [ride.id])
		self.assertEqual(self.store.get(ride.id).status, CANCELLED)
		self.assertEqual(self.mirror.rows[ride.id]['status'], CANCELLED)

	def test_terminal_state_from_other_device_is_adopted(self):
		ride = self.schedule(45)
		self.mirror.rows[ride.id] = {'status': CANCELLED, 'booking_id': None}
		self.now += timedelta(minutes=31)

		self.manager.reconcile()

		stored = self.store.get(ride.id)
		self.assertEqual(stored.status, CANCELLED)
		self.assertIsNone(stored.booking_id)
		self.assertTrue(stored.mirror_synced)


	def test_unreadable_entry_does_not_break_the_pass(self):
		ride = self.schedule(45)
		broken = dict(ride.to_dict(), id='scheduled_broken', scheduled_time='next tuesday')
		caches['scheduled_rides'].set('scheduled_rides', json.dumps([ride.to_dict(), broken]), timeout=None)
		self.now += timedelta(minutes=31)

		summary = self.manager.reconcile()

		self.assertEqual(summary.booked, [ride.id])
		self.assertEqual([r.id for r in self.store.get_all()], [ride.id])


class RunReconciliationTests(ManagerTestMixin, SimpleTestCase):
	def other_worker(self):
		return ScheduledRideManager(
			store=CacheScheduledRideStore(alias='scheduled_rides'),
			notifier=FakeNotifier(),
			mirror=self.mirror,
			executor=FakeExecutor(),
			config=SchedulingConfig(),
			clock=lambda: self.now,
		)

	def test_pass_is_dropped_while_lock_is_held(self):
		self.schedule(45)
		self.now += timedelta(minutes=31)
		cache.add(RECONCILE_LOCK_KEY, 'other-worker')

		self.assertIsNone(run_reconciliation('beat', manager=self.manager))
		self.assertEqual(self.executor.calls, [])
		self.assertEqual(cache.get(RECONCILE_LOCK_KEY), 'other-worker')

	def test_second_worker_does_not_rebook_after_lock_lapses(self):
		ride = self.schedule(45)
		self.now += timedelta(minutes=31)
		other = self.other_worker()
		overlapping = []

		def lock_lapses_mid_booking():
			cache.delete(RECONCILE_LOCK_KEY)
			overlapping.append(run_reconciliation('beat', manager=other, with_cleanup=False))
		self.executor.on_submit = lock_lapses_mid_booking

		summary = run_reconciliation('reminder', manager=self.manager, with_cleanup=False)

		self.assertEqual(len(self.executor.calls), 1)
		self.assertEqual(other.executor.calls, [])
		self.assertEqual(overlapping[0].skipped, [ride.id])
		self.assertEqual(summary.booked, [ride.id])
		self.assertEqual(self.store.get(ride.id).booking_id, 'booking-1')

	def test_pass_stops_promoting_and_keeps_lock_once_taken_over(self):
		first = self.schedule(45)
		second = self.schedule(50)
		self.now += timedelta(minutes=36)

		def lock_taken_over():
			cache.delete(RECONCILE_LOCK_KEY)
			cache.add(RECONCILE_LOCK_KEY, 'other-worker')
		self.executor.on_submit = lock_taken_over

		summary = run_reconciliation('beat', manager=self.manager)

		self.assertEqual(len(self.executor.calls), 1)
		self.assertEqual(summary.booked, [first.id])
		self.assertEqual(summary.skipped, [second.id])
		self.assertEqual(self.store.get(second.id).status, PENDING)
		self.assertEqual(cache.get(RECONCILE_LOCK_KEY), 'other-worker')


class ScheduledRideCleanupTests(ManagerTestMixin, SimpleTestCase):
	def test_cleanup_prunes_only_past_retention(self):
		self.put_record(self.now - timedelta(days=31), status=BOOKED, booking_id='b-1', ride_id='scheduled_old')
		self.put_record(self.now - timedelta(days=29), status=EXPIRED, ride_id='scheduled_recent')

		removed = self.manager.cleanup()

		self.assertEqual(removed, 1)
		self.assertIsNone(self.store.get('scheduled_old'))
		self.assertIsNotNone(self.store.get('scheduled_recent'))

	def test_owner_listing_hides_history_by_default(self):
		upcoming = self.schedule(240)
		soon = self.schedule(120)
		self.schedule(120, owner_id=8)
		cancelled = self.schedule(300)
		self.manager.cancel(cancelled.id)

		pending = self.manager.get_rides_for_owner(7)
		everything = self.manager.get_rides_for_owner(7, include_history=True)

		self.assertEqual([r.id for r in pending], [soon.id, upcoming.id])
		self.assertEqual(len(everything), 3)


class LocalStoreTests(SimpleTestCase):
	def test_json_file_store_keeps_records_under_one_file(self):
		with tempfile.TemporaryDirectory() as tmp:
			store = JsonFileScheduledRideStore('%s/rides.json' % tmp)
			self.assertEqual(store.get_all(), [])

			record = ScheduledRideRecord(
				id='scheduled_file',
				owner_id='3',
				pickup=PICKUP,
				drop=DROP,
				scheduled_time=NOW + timedelta(hours=2),
				vehicle_type='bike',
				created_at=NOW,
				notification_handles=['h-1', 'h-2'],
			)
			store.put(record)
			record.mark_booked('b-9', NOW)
			store.put(record)

			reloaded = JsonFileScheduledRideStore('%s/rides.json' % tmp).get_all()
			self.assertEqual(len(reloaded), 1)
			self.assertEqual(reloaded[0].status, BOOKED)
			self.assertEqual(reloaded[0].booking_id, 'b-9')
			self.assertEqual(reloaded[0].scheduled_time, NOW + timedelta(hours=2))
			self.assertEqual(reloaded[0].notification_handles, ['h-1', 'h-2'])

			self.assertTrue(store.remove('scheduled_file'))
			self.assertFalse(store.remove('scheduled_file'))
			self.assertEqual(store.get_all(), [])

	def test_booked_record_requires_booking_id(self):
		record = ScheduledRideRecord(
			id='scheduled_x', owner_id='1', pickup=PICKUP, drop=DROP,
			scheduled_time=NOW, vehicle_type='car', created_at=NOW,
		)
		with self.assertRaises(ValueError):
			record.mark_booked('', NOW)


class SchedulingConfigTests(SimpleTestCase):
	@override_settings(SCHEDULED_RIDES={'MAX_HORIZON_DAYS': 7, 'REMINDER_OFFSETS_MINUTES': [15, 60, 30]})
	def test_config_reads_settings(self):
		config = SchedulingConfig.from_settings()

		self.assertEqual(config.max_horizon, timedelta(days=7))
		self.assertEqual(config.min_lead_time, timedelta(minutes=30))
		self.assertEqual(
			config.reminder_offsets,
			(timedelta(minutes=60), timedelta(minutes=30), timedelta(minutes=15))
		)

	def test_config_rejects_lock_shorter_than_booking_call(self):
		with self.assertRaises(ValueError):
			SchedulingConfig(booking_timeout=30, reconcile_lock_seconds=20)

	def test_config_rejects_lead_time_beyond_horizon(self):
		with self.assertRaises(ValueError):
			SchedulingConfig(min_lead_time=timedelta(days=2), max_horizon=timedelta(days=1))


class HttpBookingExecutorTests(SimpleTestCase):
	def setUp(self):
		self.session = Mock()
		self.executor = HttpBookingExecutor('http://booking.test/api/', timeout=5, token='t0k', session=self.session)

	def test_successful_submission_returns_booking_id(self):
		self.session.post.return_value = Mock(ok=True, status_code=201, json=Mock(return_value={'id': 42}))

		result = self.executor.submit(PICKUP, DROP, 'car', {'music': False}, owner_id='7')

		self.assertTrue(result.success)
		self.assertEqual(result.booking_id, '42')
		_, kwargs = self.session.post.call_args
		self.assertEqual(kwargs['timeout'], 5)
		self.assertEqual(kwargs['headers'], {'Authorization': 'Bearer t0k'})
		self.assertEqual(kwargs['json']['vehicle_type'], 'car')
		self.assertEqual(kwargs['json']['pickup_lat'], PICKUP.latitude)

	def test_timeout_is_reported_as_failure(self):
		self.session.post.side_effect = requests.Timeout('read timed out')

		result = self.executor.submit(PICKUP, DROP, 'car', {})

		self.assertFalse(result.success)
		self.assertIn('read timed out', result.reason)

	def test_error_response_is_reported_as_failure(self):
		self.session.post.return_value = Mock(
			ok=False, status_code=503, json=Mock(return_value={'error': 'No drivers available nearby'})
		)

		result = self.executor.submit(PICKUP, DROP, 'bike', {})

		self.assertFalse(result.success)
		self.assertEqual(result.reason, 'No drivers available nearby')

	def test_unconfigured_url_never_calls_out(self):
		result = HttpBookingExecutor('', session=self.session).submit(PICKUP, DROP, 'bike', {})

		self.assertFalse(result.success)
		self.session.post.assert_not_called()


class DjangoRemoteMirrorTests(TestCase):
	def setUp(self):
		self.user = get_user_model().objects.create_user(username='passenger', password='pass1234')
		self.mirror = DjangoRemoteMirror()
		self.record = ScheduledRideRecord(
			id='scheduled_mirror',
			owner_id=str(self.user.id),
			pickup=PICKUP,
			drop=DROP,
			scheduled_time=NOW + timedelta(hours=2),
			vehicle_type='auto',
			created_at=NOW,
			preferences={'pets': True},
		)

	def test_insert_writes_the_mirror_schema(self):
		self.mirror.insert(self.record)

		row = ScheduledRide.objects.get(id='scheduled_mirror')
		self.assertEqual(row.user, self.user)
		self.assertEqual(row.pickup_location, 'Connaught Place')
		self.assertEqual(row.drop_location, 'India Gate')
		self.assertEqual(row.status, PENDING)
		self.assertEqual(row.preferences, {'pets': True})

	def test_first_terminal_transition_wins(self):
		self.mirror.insert(self.record)

		self.mirror.update_status('scheduled_mirror', BOOKED, 'b-1')
		# Retrying the same push is harmless
		self.mirror.update_status('scheduled_mirror', BOOKED, 'b-1')

		with self.assertRaises(MirrorConflictError) as ctx:
			self.mirror.update_status('scheduled_mirror', CANCELLED)

		self.assertEqual(ctx.exception.current_status, BOOKED)
		self.assertEqual(ctx.exception.booking_id, 'b-1')
		row = ScheduledRide.objects.get(id='scheduled_mirror')
		self.assertEqual((row.status, row.booking_id), (BOOKED, 'b-1'))

	def test_update_of_missing_row(self):
		with self.assertRaises(MirrorRecordMissingError):
			self.mirror.update_status('scheduled_nowhere', CANCELLED)
