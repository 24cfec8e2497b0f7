"""
Tracking Ledger Tests
"""

import uuid
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.test import TestCase, override_settings
from django.utils import timezone

from core.exceptions import AccessDenied, InvalidInput, NoValidEntries, NotFound, OutOfRange
from logistics.models import OrderStatus, TrackingPing
from logistics.services import tracking

from .helpers import caller_for, make_customer, make_driver, make_order, make_staff


class TestRecordPing(TestCase):

    def setUp(self):
        self.customer = make_customer()
        self.driver = make_driver()
        self.order = make_order(self.customer, status=OrderStatus.IN_TRANSIT, driver=self.driver)

    def test_assigned_driver_records_location(self):
        ping = tracking.record_ping(self.order.id, caller_for(self.driver), '4.0511', 9.6942)

        self.assertEqual(ping.order_id, self.order.id)
        self.assertEqual(ping.driver_id, self.driver.pk)
        self.assertEqual(ping.latitude, 4.0511)
        self.assertIsNotNone(ping.recorded_at)

    def test_coordinates_are_checked_first(self):
        with self.assertRaises(OutOfRange):
            tracking.record_ping(uuid.uuid4(), caller_for(self.customer), 91, 0)
        with self.assertRaises(OutOfRange):
            tracking.record_ping(self.order.id, caller_for(self.driver), 0, -180.5)
        with self.assertRaises(InvalidInput):
            tracking.record_ping(self.order.id, caller_for(self.driver), 'north', 0)

    def test_boundaries_are_inclusive(self):
        tracking.record_ping(self.order.id, caller_for(self.driver), -90, 180)
        tracking.record_ping(self.order.id, caller_for(self.driver), 90, -180)
        self.assertEqual(TrackingPing.objects.count(), 2)

    def test_unknown_order(self):
        with self.assertRaises(NotFound):
            tracking.record_ping(uuid.uuid4(), caller_for(self.driver), 1, 1)

    def test_only_the_assigned_driver(self):
        other = make_driver('other@test.local')
        for caller in [caller_for(other), caller_for(self.customer), caller_for(make_staff())]:
            with self.assertRaises(AccessDenied):
                tracking.record_ping(self.order.id, caller, 1, 1)
        self.assertFalse(TrackingPing.objects.exists())


class TestRecordBatch(TestCase):

    def setUp(self):
        self.customer = make_customer()
        self.driver = make_driver()
        self.caller = caller_for(self.driver)
        self.order = make_order(self.customer, status=OrderStatus.IN_TRANSIT, driver=self.driver)

    def _entry(self, **overrides):
        entry = {'order_id': str(self.order.id), 'latitude': 4.05, 'longitude': 9.69}
        entry.update(overrides)
        return entry

    def test_out_of_range_entry_is_skipped(self):
        created = tracking.record_batch(
            [self._entry(), self._entry(latitude=200), self._entry(longitude=9.70)],
            self.caller,
        )
        self.assertEqual(len(created), 2)
        self.assertEqual(TrackingPing.objects.filter(order=self.order).count(), 2)

    def test_invalid_entries_are_dropped(self):
        stranger_order = make_order(self.customer, status=OrderStatus.ASSIGNED, driver=make_driver('x@test.local'))
        created = tracking.record_batch(
            [
                self._entry(timestamp='2024-05-01T10:00:00Z'),
                self._entry(latitude=None),
                {'latitude': 1, 'longitude': 1},
                self._entry(latitude='abc'),
                self._entry(timestamp='yesterday'),
                self._entry(order_id='not-a-uuid'),
                self._entry(order_id=str(stranger_order.id)),
                self._entry(order_id=str(uuid.uuid4())),
                'garbage',
            ],
            self.caller,
        )
        self.assertEqual(len(created), 1)
        self.assertEqual(created[0].timestamp.year, 2024)

    def test_nothing_valid(self):
        with self.assertRaises(NoValidEntries) as ctx:
            tracking.record_batch([self._entry(latitude=200)], self.caller)
        self.assertEqual(ctx.exception.code, 'NO_VALID_UPDATES')

    def test_empty_batch(self):
        with self.assertRaises(InvalidInput):
            tracking.record_batch([], self.caller)

    def test_drivers_only(self):
        with self.assertRaises(AccessDenied):
            tracking.record_batch([self._entry()], caller_for(self.customer))


@override_settings(TRACKING_HISTORY_LIMIT=10)
class TestQueryLatest(TestCase):

    def setUp(self):
        self.customer = make_customer()
        self.driver = make_driver()
        self.order = make_order(self.customer, status=OrderStatus.IN_TRANSIT, driver=self.driver)

    def test_ten_most_recent_newest_first(self):
        start = timezone.now() - timedelta(hours=1)
        for minute in range(12):
            TrackingPing.objects.create(
                order=self.order,
                driver=self.driver,
                latitude=minute,
                longitude=minute,
                timestamp=start + timedelta(minutes=minute),
            )

        snapshot = tracking.query_latest(self.order.id, caller_for(self.customer))

        latitudes = [ping.latitude for ping in snapshot['pings']]
        self.assertEqual(latitudes, [11, 10, 9, 8, 7, 6, 5, 4, 3, 2])
        self.assertEqual(snapshot['last_location'].latitude, 11)

    def test_no_pings_yet(self):
        snapshot = tracking.query_latest(self.order.id, caller_for(self.driver))
        self.assertEqual(snapshot['pings'], [])
        self.assertIsNone(snapshot['last_location'])

    def test_view_rules_apply(self):
        with self.assertRaises(AccessDenied):
            tracking.query_latest(self.order.id, caller_for(make_customer('nosy@test.local')))
        with self.assertRaises(NotFound):
            tracking.query_latest(uuid.uuid4(), caller_for(self.customer))


class TestAppendOnly(TestCase):

    def test_pings_cannot_be_changed_or_deleted(self):
        driver = make_driver()
        order = make_order(make_customer(), status=OrderStatus.ASSIGNED, driver=driver)
        ping = TrackingPing.objects.create(order=order, driver=driver, latitude=1, longitude=1)

        ping.latitude = 2
        with self.assertRaises(ValidationError):
            ping.save()
        with self.assertRaises(ValidationError):
            ping.delete()

        ping.refresh_from_db()
        self.assertEqual(ping.latitude, 1)
