"""
Required-field checks for incoming submissions.

Nothing here touches the filesystem: a submission that fails validation is
rejected before any attachment or record is written.
"""

import os
from typing import Any, Collection, Dict, Iterable, Mapping, Optional

from .exceptions import ValidationError

STORY_FIELDS = ('name', 'email', 'city', 'country', 'story')
STORY_REQUIRED = ('name', 'email', 'story')

CONTACT_FIELDS = ('name', 'email', 'phone', 'message', 'selectedPlan')
CONTACT_REQUIRED = ('name', 'email', 'phone', 'message')


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def validate(fields: Mapping[str, Any], known: Iterable[str],
             required: Iterable[str]) -> Dict[str, Optional[str]]:
    """
    Pick out the known fields of a submission, and check the required ones.

    Parameters
    ----------
    fields : Mapping
        Submitted form or JSON fields.
    known : iterable
        Names of the fields to keep.
    required : iterable
        Names of the fields that must be present and non-blank.

    Returns
    -------
    dict
        Known fields with surrounding whitespace removed; blank values are
        ``None``.

    Raises
    ------
    :class:`.ValidationError`
        Raised when one or more required fields are missing or blank.

    """
    cleaned = {key: _clean(fields.get(key)) for key in known}
    missing = [key for key in required if cleaned.get(key) is None]
    if missing:
        raise ValidationError('Missing required fields: '
                              + ', '.join(missing), missing)
    return cleaned


def validate_story(fields: Mapping[str, Any]) -> Dict[str, Optional[str]]:
    """Check a story submission."""
    return validate(fields, STORY_FIELDS, STORY_REQUIRED)


def validate_contact(fields: Mapping[str, Any]) -> Dict[str, Optional[str]]:
    """Check a contact/booking submission."""
    return validate(fields, CONTACT_FIELDS, CONTACT_REQUIRED)


def validate_attachment(filename: Optional[str],
                        allowed_extensions: Collection[str]) -> None:
    """Make sure that an uploaded file looks like an image we accept."""
    extension = os.path.splitext(filename or '')[1].lstrip('.').lower()
    if extension not in allowed_extensions:
        raise ValidationError(f'Unsupported attachment type: {filename}')
