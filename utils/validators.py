"""
Request validation: required parameters and the timestamp secret.
"""
import re
import time
from typing import Dict, Iterable, Optional
from utils.exceptions import MissingParameterError, StaleTimestampError

# Plain ASCII digits only; int() alone would also take "+1", " 1 ", "1_0"
TIMESTAMP_PATTERN = re.compile(r"-?[0-9]+")


def require_params(params: Dict[str, Optional[str]], names: Iterable[str]) -> Dict[str, str]:
    """
    Check that every required parameter is present and non-empty.

    Args:
        params: Query string parameters of the request
        names: Names of the parameters the operation needs

    Returns:
        Dictionary holding just the required parameters

    Raises:
        MissingParameterError: Naming every absent or empty parameter
    """
    params = params or {}
    missing = [name for name in names if not params.get(name)]
    if missing:
        raise MissingParameterError(missing)
    return {name: params[name] for name in names}


def check_secret_timestamp(
    secret: str,
    tolerance_seconds: int,
    now: Optional[int] = None
) -> int:
    """
    Check that ``secret`` is a Unix timestamp close enough to ``now``.

    This only limits how long a captured request URL can be replayed; the
    secret itself is not a signature.

    Args:
        secret: Caller supplied Unix timestamp, in seconds
        tolerance_seconds: Largest accepted distance from ``now``, inclusive
        now: Current Unix time, defaults to the wall clock

    Returns:
        The parsed timestamp

    Raises:
        StaleTimestampError: If the secret is not an integer or is outside
            the window
    """
    if not isinstance(secret, str) or not TIMESTAMP_PATTERN.fullmatch(secret):
        raise StaleTimestampError(
            "Invalid timestamp format", field="secret", value=secret
        )
    timestamp = int(secret)

    if now is None:
        now = int(time.time())

    if abs(now - timestamp) > tolerance_seconds:
        raise StaleTimestampError(
            f"Invalid request: timestamp is more than {tolerance_seconds} "
            f"seconds away from current time",
            field="secret",
            value=secret,
        )
    return timestamp
