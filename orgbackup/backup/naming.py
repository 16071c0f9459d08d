"""
Backup naming policy.

Names look like ``trasa-backup-2024-01-01T10:00:00+05:45``: a fixed prefix
followed by the RFC 3339 creation time in the organization's timezone, to
the second. Two runs for the same organization within one second produce
the same name; the orchestrator detects that instead of overwriting.
"""

from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigError

DEFAULT_PREFIX = 'trasa-backup'


def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve an IANA timezone identifier.

    Args:
        name: Timezone identifier (e.g. 'Asia/Kathmandu')

    Returns:
        tzinfo for the identifier

    Raises:
        ConfigError: If the identifier is empty or unknown
    """
    if not name or not name.strip():
        raise ConfigError("Organization timezone is not set")

    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        # OSError covers identifiers naming a zoneinfo directory, e.g. 'America'
        raise ConfigError(f"Invalid timezone '{name}': {e}")


def format_rfc3339(moment: datetime) -> str:
    """
    Format an aware datetime as RFC 3339 with second precision.

    A zero offset is written as 'Z'. Offsets are truncated to whole minutes,
    so historical local mean times like +05:41:16 render as +05:41.
    """
    stamp = moment.replace(tzinfo=None).isoformat(timespec='seconds')
    offset_seconds = int(moment.utcoffset().total_seconds())
    if offset_seconds == 0:
        return stamp + 'Z'

    sign = '-' if offset_seconds < 0 else '+'
    hours, minutes = divmod(abs(offset_seconds) // 60, 60)
    return f"{stamp}{sign}{hours:02d}:{minutes:02d}"


def generate_name(reference_time: datetime, tz: tzinfo, prefix: str = DEFAULT_PREFIX) -> str:
    """
    Derive the backup name for a run.

    Args:
        reference_time: Instant the run started (naive values are taken as UTC)
        tz: Organization timezone
        prefix: Fixed name prefix

    Returns:
        '<prefix>-<RFC3339 timestamp in tz>'
    """
    if reference_time.tzinfo is None:
        reference_time = reference_time.replace(tzinfo=timezone.utc)

    local_time = reference_time.astimezone(tz)
    return f"{prefix}-{format_rfc3339(local_time)}"
