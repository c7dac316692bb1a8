"""Human-readable durations for SLA badges and notifications."""


def format_minutes(minutes: int | float) -> str:
    """
    Format a minute count the way the dashboard badges show it.

    Examples:
        45 -> "45m", 125 -> "2h 5m", 180 -> "3h", 1680 -> "1d 4h",
        -20 -> "Overdue by 20m"
    """
    if minutes < 0:
        return f"Overdue by {format_minutes(abs(minutes))}"

    if minutes < 60:
        return f"{round(minutes)}m"

    hours = int(minutes // 60)
    remaining_minutes = round(minutes % 60)

    if hours < 24:
        return f"{hours}h {remaining_minutes}m" if remaining_minutes > 0 else f"{hours}h"

    days, remaining_hours = divmod(hours, 24)
    if remaining_hours > 0:
        return f"{days}d {remaining_hours}h"
    return f"{days}d"
