"""Command model and parsing for the interactive and startup surfaces."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum
from typing import Optional, Sequence


class ValidationError(ValueError):
    """Raised when a command argument is malformed."""


class CommandKind(str, Enum):
    STATUS = "status"
    TURN_ON = "turn_on"
    TURN_OFF = "turn_off"
    SCHEDULE_AT = "schedule_at"
    HELP = "help"
    EXIT = "exit"
    INVALID = "invalid"


@dataclass(frozen=True, slots=True)
class Command:
    """A parsed operator request.

    ``minutes`` is only meaningful for ``TURN_ON`` (0 means no timer),
    ``at`` only for ``SCHEDULE_AT``. ``text`` keeps the operator's wording:
    the ``HH:MM`` argument of a schedule or the raw input of an invalid line.
    """

    kind: CommandKind
    minutes: int = 0
    at: Optional[time] = None
    text: str = ""


INTERACTIVE_VERBS = {
    "/status": CommandKind.STATUS,
    "/acon": CommandKind.TURN_ON,
    "/acoff": CommandKind.TURN_OFF,
    "/timer": CommandKind.SCHEDULE_AT,
    "/help": CommandKind.HELP,
    "/exit": CommandKind.EXIT,
    "/quit": CommandKind.EXIT,
}


def parse_minutes(value: str, *, label: str = "/acon") -> int:
    """Parse a positive whole number of minutes."""

    text = value.strip()
    if not (text.isascii() and text.isdigit()) or int(text) <= 0:
        raise ValidationError(
            f"{label}: invalid minutes {value!r}; expected a positive integer"
        )
    return int(text)


def parse_clock_time(value: str, *, label: str = "/timer") -> time:
    """Parse a 24-hour ``HH:MM`` time of day."""

    try:
        return datetime.strptime(value.strip(), "%H:%M").time()
    except ValueError:
        raise ValidationError(
            f"{label}: invalid time {value!r}; expected HH:MM (24-hour)"
        ) from None


def next_occurrence(at: time, now: datetime) -> datetime:
    """Return the first instant strictly after ``now`` showing ``at`` on the clock."""

    target = now.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return target


def build_command(kind: CommandKind, args: Sequence[str], *, label: str) -> Command:
    """Validate ``args`` for ``kind`` and build the command.

    Raises:
        ValidationError: If an argument is missing or malformed.
    """

    if kind is CommandKind.TURN_ON:
        minutes = parse_minutes(args[0], label=label) if args else 0
        return Command(kind, minutes=minutes)

    if kind is CommandKind.SCHEDULE_AT:
        if not args:
            raise ValidationError(
                f"{label} requires a time argument, e.g. {label} 01:30"
            )
        text = args[0].strip()
        return Command(kind, at=parse_clock_time(text, label=label), text=text)

    return Command(kind)


def parse_line(line: str) -> Optional[Command]:
    """Parse one line of interactive input.

    Returns ``None`` for blank input and an ``INVALID`` command for unknown
    verbs; verbs are case-insensitive.

    Raises:
        ValidationError: If a known verb carries a malformed argument.
    """

    parts = line.split()
    if not parts:
        return None

    verb = parts[0].lower()
    kind = INTERACTIVE_VERBS.get(verb)
    if kind is None:
        return Command(CommandKind.INVALID, text=line.strip())

    return build_command(kind, parts[1:], label=verb)
