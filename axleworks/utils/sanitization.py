import html
from typing import Any, Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Free-text fields (notes, concerns, descriptions) end up in customer-facing
    documents, so they are escaped on the way in. Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(value.strip(), quote=True)


def sanitize_fields(data: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    """
    Return a copy of data with the named string fields sanitized.

    Args:
        data: Update payload (usually model_dump(exclude_unset=True))
        fields: Names of the free-text fields to escape

    Returns:
        New dictionary with sanitized values
    """
    sanitized = dict(data)
    for key in fields:
        if isinstance(sanitized.get(key), str):
            sanitized[key] = sanitize_string(sanitized[key])
    return sanitized
