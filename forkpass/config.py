"""Settings for forkpass, read from ``FORKPASS_<NAME>`` environment
variables when the package is imported.

``get(name, default)`` coerces the raw string to the type of ``default``;
a missing variable yields ``default`` unchanged.
"""
import os
from typing import Any, Optional

PREFIX = 'FORKPASS_'

_TRUE = {'1', 'true', 'yes', 'on'}
_FALSE = {'0', 'false', 'no', 'off'}


def _coerce(name: str, raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f'{PREFIX}{name.upper()} should be a boolean, '
                         f'not {raw!r}')
    if default is None or isinstance(default, str):
        return raw
    try:
        return type(default)(raw)
    except ValueError:
        raise ValueError(f'{PREFIX}{name.upper()} should be a '
                         f'{type(default).__name__}, not {raw!r}') from None


def get(name: str, default: Any = None) -> Any:
    raw = os.environ.get(PREFIX + name.upper())
    if raw is None:
        return default
    return _coerce(name, raw, default)


def get_int(name: str, default: Optional[int] = None) -> Optional[int]:
    """As get, but an unset default still parses the variable as an int."""
    value = get(name, default)
    if value is None or isinstance(value, int):
        return value
    return _coerce(name, value, 0)


think_min_ms: int = get('think_min_ms', 0)
think_max_ms: int = get('think_max_ms', 4990)
think_step_ms: int = get('think_step_ms', 10)
deferral: str = get('deferral', 'lifo').lower()
seed: Optional[int] = get_int('seed')
log_size: int = get('log_size', 1000)
logging: int = get('logging', 0)
trace: bool = get('trace', False)
