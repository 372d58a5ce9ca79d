"""Availability and busy-calendar models."""

from pydantic import Field

from flexidesk.models.base import CamelModel
from flexidesk.models.enums import DayStatus


class TimeSlot(CamelModel):
    """A check-in/check-out window on one day (``HH:MM``)."""

    check_in_time: str
    check_out_time: str


class AlternativeDate(CamelModel):
    """Another date with free slots."""

    date: str
    available_slots: list[TimeSlot] = Field(default_factory=list)


class AvailabilitySuggestions(CamelModel):
    """Alternatives offered when the selection conflicts."""

    same_day_slots: list[TimeSlot] = Field(default_factory=list)
    alternative_dates: list[AlternativeDate] = Field(default_factory=list)


class AvailabilityResult(CamelModel):
    """Outcome of a conflict check for a listing selection."""

    checked: bool = False
    has_conflict: bool = False
    suggestions: AvailabilitySuggestions | None = None


class CalendarDay(CamelModel):
    """Busy-calendar entry for a single date."""

    date: str
    status: DayStatus
    bookings: list[TimeSlot] = Field(default_factory=list)
    free_slots: list[TimeSlot] = Field(default_factory=list)


class BusyCalendar(CamelModel):
    """Busy-calendar for a date window."""

    listing_id: str
    days: list[CalendarDay] = Field(default_factory=list)
