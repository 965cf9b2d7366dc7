"""Path construction for the KV v2 secrets engine.

KV v2 keeps secret payloads under ``<mount>/data/<path>`` and version
bookkeeping under ``<mount>/metadata/<path>``. The resolver only deals with
the ``<path>`` part; the section is picked by the caller.
"""

import re

from .errors import InvalidPathError

DATA = "data"
METADATA = "metadata"

_SEPARATORS = re.compile(r"/+")


def _clean(segment: str) -> str:
    return _SEPARATORS.sub("/", segment.strip()).strip("/")


def resolve(mount: str, base_path: str, relative: str | None = None) -> str:
    # mount is accepted for symmetry with secret_path but never part of the result
    base = _clean(base_path)
    if relative is None:
        return base
    rel = _clean(relative)
    if not rel:
        raise InvalidPathError("Relative secret path must not be empty")
    return f"{base}/{rel}" if base else rel


def secret_path(mount: str, section: str, path: str) -> str:
    if section not in (DATA, METADATA):
        raise ValueError(f"Unknown KV v2 section: {section}")
    return f"{_clean(mount)}/{section}/{_clean(path)}"
