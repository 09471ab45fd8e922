"""
Slot calendar - which slot occurrences exist and when they are matched.

SLOT MODEL:
- A slot is a daily recurring start time (e.g. 11:00, 14:00, 17:00) in local
  civil time of the configured timezone.
- Each slot has a deadline a fixed number of minutes before it starts; at the
  deadline the waitlist is frozen and matched.
- A concrete occurrence is (calendar date, slot) and is keyed as
  "2026-10-19_11AM".

DAY ROLLOVER:
The "current" day for slot purposes rolls over at DAY_ROLLOVER_HOUR (8pm by
default) rather than at midnight, so late-evening users already see the next
day's slots.

Example (defaults, America/Los_Angeles):
- now = 2026-10-19 10:00:30 → slots_ready_for_matching → [2026-10-19_11AM]
- now = 2026-10-19 10:01:00 → []            (deadline minute has passed)
- now = 2026-10-19 21:00    → display date 2026-10-20

The calendar is a pure function of the injected `now` and static
configuration. It never reads the system clock and keeps no
"already processed" state; that guard belongs to the matching service.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from circlematch.config.settings import Settings
from circlematch.shared.models.enums import SlotState
from circlematch.shared.core.exceptions import (
    ConfigurationError,
    SlotNotFoundError,
    ValidationError,
)


@dataclass(frozen=True)
class SlotDefinition:
    """A configured slot-of-day."""

    hour: int
    minute: int
    label: str

    @classmethod
    def parse(cls, value: str) -> "SlotDefinition":
        """
        Parse an "HH:MM" 24h string.

        Raises:
            ConfigurationError: If the value is not a valid time of day
        """
        try:
            hour_text, minute_text = value.strip().split(":")
            hour, minute = int(hour_text), int(minute_text)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid slot time '{value}', expected HH:MM",
                details={"slot_time": value},
            ) from e

        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ConfigurationError(
                f"Invalid slot time '{value}', out of range",
                details={"slot_time": value},
            )

        return cls(hour=hour, minute=minute, label=format_slot_label(hour, minute))


@dataclass(frozen=True)
class SlotOccurrence:
    """A slot on a concrete calendar date."""

    slot_date: date
    definition: SlotDefinition
    starts_at: datetime  # timezone-aware, local zone
    deadline: datetime  # timezone-aware, local zone

    @property
    def label(self) -> str:
        return self.definition.label

    @property
    def hour(self) -> int:
        return self.definition.hour

    @property
    def slot_key(self) -> str:
        return f"{self.slot_date.isoformat()}_{self.label}"


def format_slot_label(hour: int, minute: int = 0) -> str:
    """
    Human label of a slot-of-day.

    11:00 → "11AM", 14:00 → "2PM", 0:00 → "12AM", 11:30 → "11:30AM".
    """
    suffix = "AM" if hour < 12 else "PM"
    display_hour = hour % 12 or 12
    if minute:
        return f"{display_hour}:{minute:02d}{suffix}"
    return f"{display_hour}{suffix}"


class SlotCalendar:
    """
    Computes slot occurrences and their matching deadlines.

    Build it once at startup with `from_settings`; construction validates
    the configuration and raises ConfigurationError on malformed input.
    """

    def __init__(
        self,
        slot_times: Sequence[str],
        timezone_name: str,
        deadline_lead_minutes: int = 60,
        rollover_hour: int = 20,
        event_duration_minutes: int = 20,
    ) -> None:
        try:
            self.timezone = ZoneInfo(timezone_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigurationError(
                f"Unknown timezone '{timezone_name}'",
                details={"timezone": timezone_name},
            ) from e

        if not slot_times:
            raise ConfigurationError("At least one slot time must be configured")

        if deadline_lead_minutes < 0:
            raise ConfigurationError("Deadline lead time cannot be negative")

        if not 1 <= rollover_hour <= 24:
            raise ConfigurationError(
                f"Day rollover hour {rollover_hour} is out of range 1-24",
                details={"rollover_hour": rollover_hour},
            )

        if event_duration_minutes <= 0:
            raise ConfigurationError("Event duration must be positive")

        definitions = sorted(
            (SlotDefinition.parse(value) for value in slot_times),
            key=lambda d: (d.hour, d.minute),
        )

        labels = [d.label for d in definitions]
        if len(set(labels)) != len(labels):
            raise ConfigurationError(
                "Duplicate slot times configured",
                details={"slot_times": list(slot_times)},
            )

        for definition in definitions:
            # A deadline on the previous day would never be reached by a
            # same-day tick, so the slot could never be matched.
            if definition.hour * 60 + definition.minute < deadline_lead_minutes:
                raise ConfigurationError(
                    f"Deadline of slot {definition.label} falls on the previous day",
                    details={"slot": definition.label},
                )
            # From the rollover hour on, ticks look at the next day.
            deadline_minute = definition.hour * 60 + definition.minute - deadline_lead_minutes
            if deadline_minute >= rollover_hour * 60:
                raise ConfigurationError(
                    f"Deadline of slot {definition.label} is after the day rollover at {rollover_hour}:00",
                    details={"slot": definition.label, "rollover_hour": rollover_hour},
                )

        self.definitions: List[SlotDefinition] = definitions
        self.deadline_lead = timedelta(minutes=deadline_lead_minutes)
        self.rollover_hour = rollover_hour
        self.event_duration = timedelta(minutes=event_duration_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SlotCalendar":
        """Build the calendar from application settings."""
        return cls(
            slot_times=settings.SLOT_TIMES,
            timezone_name=settings.SLOT_TIMEZONE,
            deadline_lead_minutes=settings.DEADLINE_LEAD_MINUTES,
            rollover_hour=settings.DAY_ROLLOVER_HOUR,
            event_duration_minutes=settings.EVENT_DURATION_MINUTES,
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # TIME HELPERS
    # ═══════════════════════════════════════════════════════════════════════════

    def to_local(self, now: datetime) -> datetime:
        """
        Convert an instant to local civil time of the slot timezone.

        A naive datetime is taken to already be local civil time.
        """
        if now.tzinfo is None:
            return now.replace(tzinfo=self.timezone)
        return now.astimezone(self.timezone)

    def display_date(self, now: datetime) -> date:
        """
        Calendar date whose slots are relevant at `now`.

        From the rollover hour onwards the next day's slots are shown.
        """
        local = self.to_local(now)
        if local.hour >= self.rollover_hour:
            return local.date() + timedelta(days=1)
        return local.date()

    # ═══════════════════════════════════════════════════════════════════════════
    # OCCURRENCES
    # ═══════════════════════════════════════════════════════════════════════════

    def occurrence(self, slot_date: date, definition: SlotDefinition) -> SlotOccurrence:
        starts_at = datetime.combine(
            slot_date,
            time(definition.hour, definition.minute),
            tzinfo=self.timezone,
        )
        return SlotOccurrence(
            slot_date=slot_date,
            definition=definition,
            starts_at=starts_at,
            deadline=starts_at - self.deadline_lead,
        )

    def occurrences_for(self, slot_date: date) -> List[SlotOccurrence]:
        """All configured slot occurrences on a calendar date, in time order."""
        return [self.occurrence(slot_date, d) for d in self.definitions]

    def get_occurrence(self, slot_date: date, label: str) -> SlotOccurrence:
        """
        Look up one occurrence by date and slot label (case-insensitive).

        Raises:
            SlotNotFoundError: If no configured slot has that label
        """
        for definition in self.definitions:
            if definition.label.upper() == label.upper():
                return self.occurrence(slot_date, definition)
        raise SlotNotFoundError(f"{slot_date.isoformat()}_{label}")

    def parse_slot_key(self, slot_key: str) -> SlotOccurrence:
        """
        Resolve a "YYYY-MM-DD_<label>" key to an occurrence.

        Raises:
            ValidationError: If the key is malformed
            SlotNotFoundError: If the label is not configured
        """
        date_text, _, label = slot_key.partition("_")
        try:
            slot_date = date.fromisoformat(date_text)
        except ValueError as e:
            raise ValidationError(
                f"Invalid slot key '{slot_key}'",
                details={"slot_key": slot_key},
            ) from e
        if not label:
            raise ValidationError(
                f"Invalid slot key '{slot_key}'",
                details={"slot_key": slot_key},
            )
        return self.get_occurrence(slot_date, label)

    def todays_slots(self, now: datetime) -> List[SlotOccurrence]:
        """Occurrences on the display date for `now`."""
        return self.occurrences_for(self.display_date(now))

    def slots_ready_for_matching(self, now: datetime) -> List[SlotOccurrence]:
        """
        Occurrences whose deadline falls in the same whole minute as `now`.

        Triggered once per minute-granularity tick: any `now` from
        10:00:00 to 10:00:59 is ready for an 11AM slot with a one hour lead.
        Callers invoking more often than once a minute get the same answer
        repeatedly; the matching service's run guard absorbs that.
        """
        local_minute = self.to_local(now).replace(second=0, microsecond=0)
        return [
            occurrence
            for occurrence in self.todays_slots(now)
            if occurrence.deadline == local_minute
        ]

    def next_available_slot(self, now: datetime) -> Optional[SlotOccurrence]:
        """First occurrence on the display date still accepting signups."""
        local = self.to_local(now)
        for occurrence in self.todays_slots(now):
            if local < occurrence.deadline:
                return occurrence
        return None

    # ═══════════════════════════════════════════════════════════════════════════
    # STATE
    # ═══════════════════════════════════════════════════════════════════════════

    def slot_state(self, occurrence: SlotOccurrence, now: datetime) -> SlotState:
        """Lifecycle state of an occurrence at `now`."""
        local = self.to_local(now)
        if local >= occurrence.starts_at + self.event_duration:
            return SlotState.PAST_EVENT
        if local >= occurrence.deadline:
            return SlotState.POST_DEADLINE
        return SlotState.PRE_DEADLINE

    def is_accepting_signups(self, occurrence: SlotOccurrence, now: datetime) -> bool:
        return self.slot_state(occurrence, now) == SlotState.PRE_DEADLINE
