"""Data structures for submitted records."""

from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from dataclasses import dataclass, field
from dateutil.parser import isoparse
from pytz import UTC

from .exceptions import RecordParseError

__all__ = ('StoryRecord', 'ContactRecord', 'now', 'format_timestamp',
           'parse_timestamp')

UPLOADS_PREFIX = '/uploads/'


def now() -> datetime:
    """Get the current time in UTC, truncated to milliseconds."""
    current = datetime.now(UTC)
    return current.replace(microsecond=current.microsecond // 1000 * 1000)


def format_timestamp(timestamp: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC, e.g. ``2024-05-01T10:20:30.123Z``."""
    return timestamp.astimezone(UTC).isoformat(timespec='milliseconds') \
        .replace('+00:00', 'Z')


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken to be UTC."""
    parsed = isoparse(value)
    if parsed.tzinfo is None:
        parsed = UTC.localize(parsed)
    return parsed.astimezone(UTC)


def _format_optional(timestamp: Optional[datetime]) -> Optional[str]:
    return None if timestamp is None else format_timestamp(timestamp)


def _require(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise RecordParseError(f'Missing required field: {key}')
    return value


def _optional(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise RecordParseError(f'Field {key} must be a string')
    return value


def _timestamp(data: Mapping[str, Any], *keys: str) -> Optional[datetime]:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise RecordParseError(f'Field {key} must be a string')
        try:
            return parse_timestamp(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise RecordParseError(f'Invalid {key}: {value!r}') from e
    return None


@dataclass
class StoryRecord:
    """A transformation story, optionally with a photo."""

    name: str
    story: str
    email: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    image: Optional[str] = None
    """Filename of the photo in the attachment store, if there is one."""

    timestamp: Optional[datetime] = field(default_factory=now)

    prefix = ''
    """Stories are named by creation time and submitter name only."""

    def to_dict(self) -> Dict[str, Any]:
        """Get the record as stored, in a stable field order."""
        return OrderedDict([
            ('name', self.name),
            ('email', self.email),
            ('city', self.city),
            ('country', self.country),
            ('story', self.story),
            ('image', self.image),
            ('timestamp', _format_optional(self.timestamp)),
        ])

    @classmethod
    def from_dict(cls, data: Any) -> 'StoryRecord':
        """
        Load a stored story.

        Also reads stories stored with ``photo`` (an ``/uploads/...`` path)
        and ``submittedAt`` in place of ``image`` and ``timestamp``.
        """
        if not isinstance(data, Mapping):
            raise RecordParseError('Story record must be an object')
        image = _optional(data, 'image')
        if image is None:
            image = _optional(data, 'photo')
            if image is not None and image.startswith(UPLOADS_PREFIX):
                image = image[len(UPLOADS_PREFIX):]
        record = cls(
            name=_require(data, 'name'),
            story=_require(data, 'story'),
            email=_optional(data, 'email'),
            city=_optional(data, 'city'),
            country=_optional(data, 'country'),
            image=image
        )
        record.timestamp = _timestamp(data, 'timestamp', 'submittedAt')
        return record


@dataclass
class ContactRecord:
    """A contact or booking request."""

    name: str
    email: str
    phone: str
    message: str
    """Free text; often names the plan being booked."""

    selected_plan: Optional[str] = None
    timestamp: Optional[datetime] = field(default_factory=now)

    prefix = 'contact-'

    @property
    def plan_label(self) -> str:
        """Short name of the plan being booked, for the confirmation subject."""
        if self.selected_plan:
            return self.selected_plan
        if 'Starter' in self.message:
            return 'Starter Plan'
        return 'Selected Plan'

    def to_dict(self) -> Dict[str, Any]:
        """Get the record as stored, in a stable field order."""
        data: Dict[str, Any] = OrderedDict([
            ('name', self.name),
            ('email', self.email),
            ('phone', self.phone),
        ])
        if self.selected_plan is not None:
            data['selectedPlan'] = self.selected_plan
        data['message'] = self.message
        data['timestamp'] = _format_optional(self.timestamp)
        return data

    @classmethod
    def from_dict(cls, data: Any) -> 'ContactRecord':
        """Load a stored contact request."""
        if not isinstance(data, Mapping):
            raise RecordParseError('Contact record must be an object')
        record = cls(
            name=_require(data, 'name'),
            email=_require(data, 'email'),
            phone=_require(data, 'phone'),
            message=_require(data, 'message'),
            selected_plan=_optional(data, 'selectedPlan')
        )
        record.timestamp = _timestamp(data, 'timestamp')
        return record
