"""
LOGISTICS App - Tracking Ledger for GoExpress

Append-only location history per order, written by the assigned driver
and read under the same visibility rules as the order itself.
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from core.exceptions import (
    AccessDenied,
    InvalidInput,
    NoValidEntries,
    OutOfRange,
    guard_persistence,
)
from core.identity import CallerIdentity
from logistics.models import Order, TrackingPing
from logistics.policies import Action, authorize
from logistics.services.dispatch import load_order

logger = logging.getLogger(__name__)


def validate_coordinates(latitude, longitude) -> tuple:
    """
    Coerce and range-check a coordinate pair.

    Raises:
        InvalidInput: non-numeric values
        OutOfRange: latitude outside [-90, 90] or longitude outside [-180, 180]
    """
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        raise InvalidInput(
            "Latitude and longitude must be numbers.",
            code='INVALID_COORDINATES',
        )

    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        raise OutOfRange()

    return lat, lon


def _parse_timestamp(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = parse_datetime(value)
        except ValueError:
            return None
    else:
        return None

    if parsed is not None and timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


@guard_persistence('record_ping')
def record_ping(
    order_id,
    caller: CallerIdentity,
    latitude,
    longitude,
    timestamp: Optional[datetime] = None,
) -> TrackingPing:
    """
    Append one location for an order.

    Checks run in this order: coordinates, order existence, permission
    (driver role and assigned to the order).
    """
    lat, lon = validate_coordinates(latitude, longitude)
    order = load_order(order_id)
    authorize(Action.RECORD_PING, caller, order)

    ping = TrackingPing.objects.create(
        order=order,
        driver_id=order.driver_id,
        latitude=lat,
        longitude=lon,
        timestamp=timestamp or timezone.now(),
    )

    logger.debug(
        f"[TRACKING] Order {str(order.id)[:8]} @ {lat:.5f},{lon:.5f} "
        f"from driver {caller.id}"
    )
    return ping


def _parse_entry(entry) -> Optional[dict]:
    """Normalize one batch entry, or None when it must be dropped."""
    if not isinstance(entry, dict):
        return None
    if entry.get('order_id') is None or entry.get('latitude') is None or entry.get('longitude') is None:
        return None

    try:
        order_id = uuid.UUID(str(entry['order_id']))
        lat, lon = validate_coordinates(entry['latitude'], entry['longitude'])
    except (ValueError, InvalidInput):
        return None

    timestamp = timezone.now()
    if entry.get('timestamp') is not None:
        timestamp = _parse_timestamp(entry['timestamp'])
        if timestamp is None:
            return None

    return {
        'order_id': order_id,
        'latitude': lat,
        'longitude': lon,
        'timestamp': timestamp,
    }


@guard_persistence('record_batch')
def record_batch(entries, caller: CallerIdentity) -> list:
    """
    Append a batch of locations sent by a driver that was offline.

    Entries with missing fields, bad coordinates, unparsable timestamps or
    for orders not assigned to the caller are skipped, not fatal.

    Returns:
        The created TrackingPing instances

    Raises:
        AccessDenied: caller is not a driver
        InvalidInput: `entries` is not a non-empty list
        NoValidEntries: every entry was skipped
    """
    if not caller.is_driver:
        raise AccessDenied("Only drivers can send location updates.")

    if not isinstance(entries, (list, tuple)) or not entries:
        raise InvalidInput("'updates' must be a non-empty list.", code='INVALID_BATCH')

    candidates = [parsed for parsed in map(_parse_entry, entries) if parsed is not None]

    assigned = set(
        Order.objects.filter(
            pk__in={candidate['order_id'] for candidate in candidates},
            driver_id=caller.id,
        ).values_list('pk', flat=True)
    )

    pings = [
        TrackingPing(
            order_id=candidate['order_id'],
            driver_id=caller.id,
            latitude=candidate['latitude'],
            longitude=candidate['longitude'],
            timestamp=candidate['timestamp'],
        )
        for candidate in candidates
        if candidate['order_id'] in assigned
    ]

    if not pings:
        logger.info(f"[TRACKING] Batch of {len(entries)} from driver {caller.id} had no valid entry")
        raise NoValidEntries()

    created = TrackingPing.objects.bulk_create(pings)

    logger.info(
        f"[TRACKING] Batch from driver {caller.id}: "
        f"{len(created)} recorded, {len(entries) - len(created)} skipped"
    )
    return created


@guard_persistence('query_latest')
def query_latest(order_id, caller: CallerIdentity, limit: Optional[int] = None) -> dict:
    """
    Most recent pings for an order, newest first.

    Returns:
        {'order': Order, 'pings': [TrackingPing, ...], 'last_location': TrackingPing | None}
    """
    limit = limit or settings.TRACKING_HISTORY_LIMIT
    order = load_order(order_id)
    authorize(Action.VIEW_TRACKING, caller, order)

    pings = list(order.tracking_pings.order_by('-timestamp', '-id')[:limit])
    return {
        'order': order,
        'pings': pings,
        'last_location': pings[0] if pings else None,
    }
