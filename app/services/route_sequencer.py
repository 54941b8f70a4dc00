# app/services/route_sequencer.py
"""
Ordered pickup points for a route.

Stops are kept as a dense 1..N sequence after every add, remove and move.
Some passenger assistants are collected from home: when the assigned
assistant qualifies, their home address is inserted as the first stop while
the route has an AM start time, and as the last stop while it has a PM start
time. Head and tail are handled independently, so with both times set the
list reads [home, ...stops..., home].

Auto-inserted stops carry origin=ASSISTANT_HOME; they are never identified by
name or address.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from app.config import settings


class StopOrigin(str, Enum):
    USER = "user"
    ASSISTANT_HOME = "auto-assistant-home"


@dataclass
class RouteStop:
    point_name: str
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    passenger_id: Optional[int] = None
    pickup_time_am: Optional[str] = None
    pickup_time_pm: Optional[str] = None
    stop_order: int = 0
    origin: StopOrigin = StopOrigin.USER
    id: Optional[int] = None

    @property
    def is_auto(self) -> bool:
        return self.origin == StopOrigin.ASSISTANT_HOME


@dataclass
class AssistantInfo:
    """The bits of a passenger assistant the sequencer needs."""
    assistant_id: Optional[int]
    name: str
    home_address: Optional[str]
    auto_home_stop: Optional[bool] = None


def assistant_needs_home_stop(name: Optional[str], flag: Optional[bool] = None) -> bool:
    """Explicit flag wins; otherwise the display name carries the marker (case-insensitive)."""
    if flag is not None:
        return bool(flag)
    marker = settings.ASSISTANT_HOME_MARKER.lower()
    return bool(name) and marker in name.lower()


def _is_set(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def renumber(stops: list[RouteStop]) -> list[RouteStop]:
    for index, stop in enumerate(stops, start=1):
        stop.stop_order = index
    return stops


def _home_stop(assistant: AssistantInfo, existing: Optional[RouteStop],
               am_time: Optional[str] = None, pm_time: Optional[str] = None) -> RouteStop:
    stop = RouteStop(
        point_name=f"{assistant.name} (Home)",
        address=assistant.home_address,
        pickup_time_am=am_time,
        pickup_time_pm=pm_time,
        origin=StopOrigin.ASSISTANT_HOME,
    )
    if existing is not None:
        # keep the persisted row id and any coordinates already geocoded
        stop.id = existing.id
        if existing.address == assistant.home_address:
            stop.latitude, stop.longitude = existing.latitude, existing.longitude
    return stop


def sync_assistant_stops(stops: list[RouteStop], assistant: Optional[AssistantInfo],
                         am_time: Optional[str], pm_time: Optional[str]) -> list[RouteStop]:
    """
    Re-derive the assistant home stops after the assistant, AM time or PM time
    changed. Returns a new, densely numbered list; user stops keep their order.
    """
    user_stops = [replace(s) for s in stops if not s.is_auto]
    auto_stops = [s for s in stops if s.is_auto]

    # Position decides which existing auto stop was doing head or tail duty
    existing_head = stops[0] if stops and stops[0].is_auto else None
    existing_tail = stops[-1] if len(stops) > 1 and stops[-1].is_auto else None
    if existing_head is not None and len(stops) == 1 and _is_set(existing_head.pickup_time_pm) \
            and not _is_set(existing_head.pickup_time_am):
        existing_head, existing_tail = None, existing_head
    if existing_head is None and existing_tail is None and auto_stops:
        existing_head = auto_stops[0]

    qualifies = (
        assistant is not None
        and _is_set(assistant.home_address)
        and assistant_needs_home_stop(assistant.name, assistant.auto_home_stop)
    )

    result = list(user_stops)
    if qualifies and _is_set(am_time):
        result.insert(0, _home_stop(assistant, existing_head, am_time=am_time))
    if qualifies and _is_set(pm_time):
        result.append(_home_stop(assistant, existing_tail, pm_time=pm_time))
    return renumber(result)


def add_stop(stops: list[RouteStop], stop: RouteStop) -> list[RouteStop]:
    """Append a user stop, ahead of a PM home stop if one closes the list."""
    result = [replace(s) for s in stops]
    if result and result[-1].is_auto and _is_set(result[-1].pickup_time_pm):
        result.insert(len(result) - 1, stop)
    else:
        result.append(stop)
    return renumber(result)


def remove_stop(stops: list[RouteStop], index: int) -> list[RouteStop]:
    if not 0 <= index < len(stops):
        raise IndexError(f"No stop at position {index}")
    result = [replace(s) for i, s in enumerate(stops) if i != index]
    return renumber(result)


def move_stop(stops: list[RouteStop], index: int, direction: str) -> list[RouteStop]:
    """Swap a stop with its neighbour. Moving past either end is a no-op."""
    if direction not in ("up", "down"):
        raise ValueError("direction must be 'up' or 'down'")
    if not 0 <= index < len(stops):
        raise IndexError(f"No stop at position {index}")

    target = index - 1 if direction == "up" else index + 1
    result = [replace(s) for s in stops]
    if 0 <= target < len(result):
        result[index], result[target] = result[target], result[index]
    return renumber(result)


def drop_unnamed(stops: list[RouteStop]) -> list[RouteStop]:
    """Stops without a name are skipped at submit time, not rejected."""
    return renumber([replace(s) for s in stops if _is_set(s.point_name)])
