"""Plain validation helpers shared by settings, services and preference models."""

from growmies_music.domain.shared.messages import ErrorMessages


def validate_discord_snowflake(value: int) -> int:
    """Validate a Discord snowflake ID.

    Args:
        value: The snowflake ID to validate.

    Returns:
        The validated snowflake ID.

    Raises:
        ValueError: If the snowflake ID is invalid.
    """
    if value <= 0:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    if value >= 2**64:
        raise ValueError(ErrorMessages.SNOWFLAKE_TOO_LARGE)
    return value


def validate_volume_percent(value: int) -> int:
    """Validate a 0-100 volume level.

    Raises:
        ValueError: If the level is out of range.
    """
    if not 0 <= value <= 100:
        raise ValueError(ErrorMessages.INVALID_VOLUME.format(volume=value))
    return value


def normalize_string_list(values: list[str], *, limit: int, lowercase: bool = False) -> list[str]:
    """Strip, de-duplicate and truncate a list of free-text labels.

    Order of first appearance is preserved; empty strings are dropped.
    """
    seen: set[str] = set()
    result: list[str] = []
    for raw in values:
        item = raw.strip()
        if lowercase:
            item = item.lower()
        if not item or item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result[:limit]

