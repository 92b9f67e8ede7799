"""Domain records shared by the blocker services, and the interfaces around them."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Protocol, runtime_checkable

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIMESTAMP = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})"
)


def _format_timestamp(moment: datetime) -> str:
    """Render a datetime as an RFC 3339 timestamp with trimmed fractions."""
    offset = moment.utcoffset() or timedelta(0)
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d}"
        f"T{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += "." + f"{moment.microsecond:06d}".rstrip("0")
    if not offset:
        return text + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp, keeping at most microsecond precision."""
    match = _TIMESTAMP.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    if zone in ("Z", "z"):
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        hours, minutes = int(zone[1:3]), int(zone[4:6])
        tz = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return datetime(
        int(year), int(month), int(day),
        int(hour), int(minute), int(second),
        microsecond, tzinfo=tz,
    )


@dataclass
class User:
    """A user of the workstation, as reported to the control server."""

    name: str = ""
    id: int = 0
    client: str = ""
    active: bool = False
    last_connection: datetime = field(default=ZERO_TIME)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, leaving out a zero id and an empty client."""
        data: dict[str, Any] = {}
        if self.id:
            data["id"] = self.id
        data["name"] = self.name
        if self.client:
            data["client"] = self.client
        data["active"] = self.active
        data["last_connection"] = _format_timestamp(self.last_connection)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "User":
        """Build a user from its JSON form; missing fields take zero values."""
        stamp = data.get("last_connection")
        return cls(
            name=data.get("name") or "",
            id=int(data.get("id") or 0),
            client=data.get("client") or "",
            active=bool(data.get("active", False)),
            last_connection=_parse_timestamp(stamp) if stamp else ZERO_TIME,
        )


@dataclass(frozen=True)
class VersionInfo:
    """Description of a release published by the update server."""

    title: str = ""
    version: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "VersionInfo":
        """Build the record from its JSON form."""
        return cls(
            title=data.get("title") or "",
            version=data.get("version") or "",
            url=data.get("url") or "",
        )


@runtime_checkable
class UpdateService(Protocol):
    """Something that looks for, and applies, a newer release."""

    def check_for_updates(self) -> None:
        """Look for a newer release and act on it."""


@runtime_checkable
class APIClient(Protocol):
    """A client that reports users to the control server."""

    def send_user(self, user: User) -> None:
        """Send a user to the server, raising on failure."""


@runtime_checkable
class VersionChecker(Protocol):
    """Something that tells which release is the latest."""

    def check_for_updates(self) -> VersionInfo | None:
        """Return the latest release, or None when there is none."""