import os

# Flags that are on unless an FF_* variable turns them off
DEFAULT_FLAGS = {
    'rss_ingestion': True,
    'local_scrape_fallback': False,
}

_FLAGS = {}


def init_flags(environ=None):
    """Load FF_<NAME>=true|false overrides on top of DEFAULT_FLAGS."""
    _FLAGS.clear()
    _FLAGS.update(DEFAULT_FLAGS)
    for key, val in (environ if environ is not None else os.environ).items():
        if key.startswith('FF_'):
            _FLAGS[key[3:].lower()] = val.lower() in ('true', '1', 'yes')


def is_enabled(flag_name: str) -> bool:
    return _FLAGS.get(flag_name, DEFAULT_FLAGS.get(flag_name, False))


def all_flags() -> dict:
    return {**DEFAULT_FLAGS, **_FLAGS}


def set_flag(flag_name: str, value: bool):
    _FLAGS[flag_name] = value
