"""
Business-Time Calculator
========================

Bridges wall-clock minutes and working minutes under a team policy.

When a policy counts business hours only, every computation happens on
local calendar days of the policy timezone. Window boundaries are local
wall-clock times, so a 09:00-17:00 day is eight hours long on DST change
days too. Positions inside a day are tracked in microseconds and results
are floored to whole minutes at the end, which keeps
``working_minutes_between(t, add_working_minutes(t, m)) == m``.
"""

from datetime import date, datetime, time, timedelta, timezone

from oncall_sla.sla.domain.value_objects import TeamSLAPolicy

MICROS_PER_MINUTE = 60 * 1_000_000
_ONE_DAY = timedelta(days=1)


def _require_aware(moment: datetime, name: str) -> None:
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware, got naive {moment.isoformat()}")


def _micros_of_day(local: datetime) -> int:
    return (((local.hour * 60) + local.minute) * 60 + local.second) * 1_000_000 + local.microsecond


def _sunday_based_weekday(day: date) -> int:
    return day.isoweekday() % 7


def _local_instant(day: date, micros: int, policy: TeamSLAPolicy) -> datetime:
    wall_clock = datetime.combine(day, time()) + timedelta(microseconds=micros)
    return wall_clock.replace(tzinfo=policy.zone)


class BusinessTimeCalculator:
    """
    Pure functions for working-time arithmetic.

    Stateless utility class, every method depends only on its arguments.
    """

    @staticmethod
    def add_working_minutes(start: datetime, minutes: int, policy: TeamSLAPolicy) -> datetime:
        """
        Advance ``start`` by ``minutes`` of working time.

        Args:
            start: Instant the clock starts at (timezone-aware)
            minutes: Working minutes to add
            policy: Team policy deciding what counts as working time

        Returns:
            The instant at which the working minutes are used up, expressed
            in the timezone of ``start``.
        """
        _require_aware(start, "start")

        if not policy.business_hours_only:
            deadline = start.astimezone(timezone.utc) + timedelta(minutes=minutes)
            return deadline.astimezone(start.tzinfo)

        if minutes <= 0:
            return start

        zone = policy.zone
        local = start.astimezone(zone)
        day = local.date()
        position = _micros_of_day(local)
        remaining = minutes * MICROS_PER_MINUTE
        window_start = policy.business_window.start_minute * MICROS_PER_MINUTE
        window_end = policy.business_window.end_minute * MICROS_PER_MINUTE

        while True:
            if policy.is_business_day(_sunday_based_weekday(day)):
                begin = max(position, window_start)
                if begin < window_end:
                    available = window_end - begin
                    if remaining <= available:
                        deadline = _local_instant(day, begin + remaining, policy)
                        return deadline.astimezone(start.tzinfo)
                    remaining -= available
            day += _ONE_DAY
            position = 0

    @staticmethod
    def working_minutes_between(start: datetime, end: datetime, policy: TeamSLAPolicy) -> int:
        """
        Count working minutes in ``[start, end]``.

        Returns 0 when ``end`` precedes ``start``; malformed timelines are
        clamped rather than rejected.
        """
        _require_aware(start, "start")
        _require_aware(end, "end")

        if not policy.business_hours_only:
            elapsed = end.astimezone(timezone.utc) - start.astimezone(timezone.utc)
            return max(0, elapsed // timedelta(minutes=1))

        if end <= start:
            return 0

        zone = policy.zone
        local_start = start.astimezone(zone)
        local_end = end.astimezone(zone)
        first_day = local_start.date()
        last_day = local_end.date()
        window_start = policy.business_window.start_minute * MICROS_PER_MINUTE
        window_end = policy.business_window.end_minute * MICROS_PER_MINUTE

        total = 0
        day = first_day
        while day <= last_day:
            if policy.is_business_day(_sunday_based_weekday(day)):
                low, high = window_start, window_end
                if day == first_day:
                    low = max(low, _micros_of_day(local_start))
                if day == last_day:
                    high = min(high, _micros_of_day(local_end))
                if high > low:
                    total += high - low
            day += _ONE_DAY

        return total // MICROS_PER_MINUTE


add_working_minutes = BusinessTimeCalculator.add_working_minutes
working_minutes_between = BusinessTimeCalculator.working_minutes_between
