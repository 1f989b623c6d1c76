"""
Proximity Notifier - decide when a moving user should be warned about an incident.

Rules:
- Distance is the haversine great-circle distance (R = 6,371,000 m)
- Only incidents strictly closer than the user's alert distance qualify
- The nearest qualifying incident wins; on an exact tie the first one seen wins
- After an alert fires, further alerts are suppressed for a cooldown window
- When nothing qualifies the displayed alert is cleared
"""

import time
from typing import Callable, Dict, Iterable, Optional, Tuple
import logging

from roadblock.core.settings import settings
from roadblock.models.proximity import ProximityAlert, ProximityDecision, ProximityStatus
from roadblock.models.user_settings import UserSettings
from roadblock.utils.geo import haversine_distance, parse_coordinates

logger = logging.getLogger(__name__)


def find_nearest_incident(
    incidents: Iterable,
    latitude: float,
    longitude: float,
    threshold_meters: float,
) -> Optional[Tuple[object, float]]:
    """
    Return ``(incident, distance)`` for the nearest incident strictly within
    ``threshold_meters``, or None. Incidents whose coordinates don't parse
    are ignored.
    """
    nearest = None
    nearest_distance = float("inf")

    for incident in incidents:
        point = parse_coordinates(getattr(incident, "latitude", None), getattr(incident, "longitude", None))
        if point is None:
            continue
        distance = haversine_distance(latitude, longitude, point[0], point[1])
        if distance < threshold_meters and distance < nearest_distance:
            nearest = incident
            nearest_distance = distance

    if nearest is None:
        return None
    return nearest, nearest_distance


def build_alert(incident, distance: float, preferences: Optional[UserSettings] = None) -> ProximityAlert:
    location = incident.location_name or f"{float(incident.latitude):.4f}, {float(incident.longitude):.4f}"
    return ProximityAlert(
        incident_id=incident.id,
        incident_type=incident.type,
        distance_meters=int(round(distance)),
        location=location,
        siren=preferences.siren_enabled if preferences else True,
        vibration=preferences.vibration_enabled if preferences else True,
        popup=preferences.popup_alerts_enabled if preferences else True,
    )


class ProximityNotifier:
    """
    Alert state for a single user.

    ``clock`` returns seconds as a float and only needs to be monotonic.
    """

    def __init__(self, cooldown_seconds: float = None, clock: Callable[[], float] = time.monotonic):
        self.cooldown_seconds = settings.PROXIMITY_COOLDOWN_SECONDS if cooldown_seconds is None else cooldown_seconds
        self.clock = clock
        self.current_alert: Optional[ProximityAlert] = None
        self._last_fired_at: Optional[float] = None

    def in_cooldown(self) -> bool:
        if self._last_fired_at is None:
            return False
        return self.clock() - self._last_fired_at < self.cooldown_seconds

    def evaluate(
        self,
        latitude: float,
        longitude: float,
        incidents: Iterable,
        preferences: Optional[UserSettings] = None,
        threshold_meters: float = None,
    ) -> ProximityDecision:
        """
        Re-evaluate after a position update or a change in the active-incident set.
        """
        if threshold_meters is None:
            threshold_meters = (
                preferences.alert_distance_meters if preferences else settings.ALERT_DISTANCE_DEFAULT_METERS
            )

        match = find_nearest_incident(incidents, latitude, longitude, threshold_meters)
        if match is None:
            self.current_alert = None
            return ProximityDecision(status=ProximityStatus.CLEAR)

        if self.in_cooldown():
            return ProximityDecision(status=ProximityStatus.SUPPRESSED)

        incident, distance = match
        alert = build_alert(incident, distance, preferences)
        self.current_alert = alert
        self._last_fired_at = self.clock()
        logger.info(f"Proximity alert: incident={alert.incident_id} at {alert.distance_meters}m")
        return ProximityDecision(status=ProximityStatus.ALERT, alert=alert)


class NotifierRegistry:
    """
    One ProximityNotifier per user identity, kept in process memory.

    Users that send no update for ``idle_seconds`` are forgotten, so the map
    tracks recently active users only. The idle window is much longer than
    the cooldown; an evicted user starts again with no alert and no cooldown.
    """

    def __init__(
        self,
        cooldown_seconds: float = None,
        clock: Callable[[], float] = time.monotonic,
        idle_seconds: float = None,
    ):
        self.cooldown_seconds = cooldown_seconds
        self.clock = clock
        self.idle_seconds = settings.PROXIMITY_IDLE_EVICT_SECONDS if idle_seconds is None else idle_seconds
        self._notifiers: Dict[str, ProximityNotifier] = {}
        self._last_seen: Dict[str, float] = {}

    def for_user(self, user_id: str) -> ProximityNotifier:
        now = self.clock()
        self.evict_idle(now)

        notifier = self._notifiers.get(user_id)
        if notifier is None:
            notifier = ProximityNotifier(self.cooldown_seconds, self.clock)
            self._notifiers[user_id] = notifier
        self._last_seen[user_id] = now
        return notifier

    def evict_idle(self, now: float = None) -> int:
        """Drop notifiers idle for at least ``idle_seconds``; returns how many were dropped."""
        if now is None:
            now = self.clock()
        stale = [uid for uid, seen in self._last_seen.items() if now - seen >= self.idle_seconds]
        for uid in stale:
            self._notifiers.pop(uid, None)
            self._last_seen.pop(uid, None)
        if stale:
            logger.debug(f"Evicted {len(stale)} idle proximity notifier(s)")
        return len(stale)

    def reset(self) -> None:
        self._notifiers.clear()
        self._last_seen.clear()


_registry: Optional[NotifierRegistry] = None


def get_notifier_registry() -> NotifierRegistry:
    """Get or create the NotifierRegistry singleton."""
    global _registry
    if _registry is None:
        _registry = NotifierRegistry()
    return _registry
