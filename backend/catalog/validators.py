"""
Validation of category names and icon URLs.
"""
import re

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator

from stockroom.config import engine_settings
from stockroom.exceptions import InvalidIconUrl, InvalidName
from stockroom.validation import clean_text

# Letters and digits in any script, spaces and - _ & ' . , ( ) /
CATEGORY_NAME_PATTERN = re.compile(r"^[\w &'.,()/-]+$")

_icon_url_validator = URLValidator(schemes=["http", "https"])


def clean_category_name(name) -> str:
    cleaned = clean_text(name, "name", engine_settings.max_category_name_length)
    if not CATEGORY_NAME_PATTERN.match(cleaned):
        raise InvalidName(
            "Category name may only contain letters, digits, spaces and - _ & ' . , ( ) /",
            field="name",
            value=cleaned,
        )
    return cleaned


def clean_icon_url(icon_url) -> str:
    """Empty or None clears the icon; anything else must be an http(s) URL."""
    if icon_url is None:
        return ""
    if not isinstance(icon_url, str):
        raise InvalidIconUrl("Icon URL must be text", icon_url)
    cleaned = icon_url.strip()
    if not cleaned:
        return ""
    max_length = engine_settings.max_icon_url_length
    if len(cleaned) > max_length:
        raise InvalidIconUrl(f"Icon URL cannot exceed {max_length} characters", cleaned)
    try:
        _icon_url_validator(cleaned)
    except DjangoValidationError:
        raise InvalidIconUrl("Icon URL must be a valid http(s) URL", cleaned)
    return cleaned
