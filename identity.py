import hashlib
import time

TOURIST_PREFIX = 'T-'
EMERGENCY_PREFIX = 'EM-'
TOKEN_PREFIX = 'mock-token-'

# Tourist ids keep only the last five digits of the millisecond clock.
TOURIST_SUFFIX_SPACE = 100000


class IdentitySpaceExhausted(Exception):
    pass


def now_millis():
    return int(time.time() * 1000)


def tourist_id(taken=(), millis=None):
    """
    Returns "T-" plus the five trailing digits of the millisecond clock.
    If that id is already taken the suffix is advanced until a free one is found.
    """
    if millis is None:
        millis = now_millis()
    suffix = millis % TOURIST_SUFFIX_SPACE
    for _ in range(TOURIST_SUFFIX_SPACE):
        candidate = f"{TOURIST_PREFIX}{suffix:05d}"
        if candidate not in taken:
            return candidate
        suffix = (suffix + 1) % TOURIST_SUFFIX_SPACE
    raise IdentitySpaceExhausted("All tourist ids are in use")


def emergency_id(taken=(), millis=None):
    if millis is None:
        millis = now_millis()
    while f"{EMERGENCY_PREFIX}{millis}" in taken:
        millis += 1
    return f"{EMERGENCY_PREFIX}{millis}"


def fingerprint(name, millis=None):
    """SHA-256 hex digest of the tourist's name and the registration instant."""
    if millis is None:
        millis = now_millis()
    unique_string = f"{name or ''}{millis}"
    return hashlib.sha256(unique_string.encode()).hexdigest()


def mock_token(millis=None):
    if millis is None:
        millis = now_millis()
    return f"{TOKEN_PREFIX}{millis}"
