"""String clean-up for user-supplied values.

Values are stored inside JSON columns and are never interpreted as query
syntax, so characters such as ``$`` are data and are kept. This is not HTML
escaping either.
"""


def sanitize_text(value: str) -> str:
    """Remove NUL characters and surrounding whitespace.

    Args:
        value: Raw string value.

    Returns:
        The cleaned string. An empty string stays empty.
    """
    return value.replace("\x00", "").strip()
