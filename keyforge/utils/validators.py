"""Validation helpers for Keyforge."""
from __future__ import annotations

import re
import uuid
from typing import Any, Dict, List, Tuple

from keyforge.tiers import TIERS


def validate_required_fields(data: Dict, required_fields: List[str]) -> Tuple[bool, str]:
    """Validate that required fields are present in a dictionary."""
    for field in required_fields:
        if field not in data or data[field] is None or data[field] == '':
            return False, f"Missing required field: {field}"
    return True, ""


def validate_length(value: Any, field: str, min_length: int, max_length: int) -> Tuple[bool, str]:
    """Validate a string field's length bounds (inclusive)."""
    if not isinstance(value, str):
        return False, f"{field} must be a string"
    if len(value) < min_length:
        return False, f"{field} must be at least {min_length} characters"
    if len(value) > max_length:
        return False, f"{field} must be at most {max_length} characters"
    return True, ""


def validate_url(url: str, schemes: List[str] | None = None) -> Tuple[bool, str]:
    """Validate URL format."""
    if schemes is None:
        schemes = ['http', 'https']
    if not url:
        return False, "URL is required"
    if not isinstance(url, str):
        return False, "URL must be a string"
    if len(url) > 2048:
        return False, "URL is too long"
    scheme_pattern = '|'.join(schemes)
    pattern = rf'^({scheme_pattern})://[^\s/?#]+[^\s]*$'
    if not re.match(pattern, url):
        return False, "Invalid URL format"
    return True, ""


def validate_uuid(value: Any, field: str = 'keyId') -> Tuple[bool, str]:
    """Validate a canonical UUID string."""
    if not value:
        return False, f"{field} is required"
    if not isinstance(value, str):
        return False, f"{field} must be a string"
    try:
        parsed = uuid.UUID(value)
    except ValueError:
        return False, f"{field} must be a valid UUID"
    if str(parsed) != value.lower():
        return False, f"{field} must be a valid UUID"
    return True, ""


def validate_tier(value: Any) -> Tuple[bool, str]:
    """Validate a subscription tier name."""
    valid_tiers = [tier.value for tier in TIERS]
    if not value:
        return False, "Tier is required"
    if not isinstance(value, str) or value not in valid_tiers:
        return False, f"Tier must be one of: {', '.join(valid_tiers)}"
    return True, ""


def validate_key_payload(data: Any) -> Tuple[bool, str]:
    """Validate the body of a create-key request."""
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    valid, error = validate_required_fields(data, ['name', 'period', 'origin', 'value'])
    if not valid:
        return False, error

    for field, min_length, max_length in (('name', 2, 256), ('period', 1, 100), ('origin', 1, 100)):
        valid, error = validate_length(data[field], field, min_length, max_length)
        if not valid:
            return False, error

    value = data['value']
    if isinstance(value, bool) or not isinstance(value, int):
        return False, "value must be an integer"
    if value < 1:
        return False, "value must be at least 1"

    image_url = data.get('imageUrl')
    if image_url is not None:
        valid, error = validate_url(image_url)
        if not valid:
            return False, f"imageUrl: {error}"

    return True, ""

