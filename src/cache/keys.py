# src/cache/keys.py — v1
"""Cache key derivation.

Keys are ``{category}_{hash}`` where the hash is a cheap 32-bit string hash
(``h = h * 31 + code_unit`` over UTF-16 code units, wrapped to a signed 32-bit
integer) of the canonical JSON form of the request parameters, rendered in
base 36. It is not collision resistant: a collision returns the wrong cached
artifact, which is accepted for a performance cache.
"""

from __future__ import annotations

import json
import mimetypes
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from gencache.cache.models import SceneRequest, TTSRequest

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_UINT32 = 0xFFFFFFFF

# Single queue of offline actions in the ``analytics`` category.
OFFLINE_ACTIONS_KEY = "offline_actions"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def hash_string(text: str) -> str:
    """32-bit shift-and-subtract string hash, base 36, non-negative."""
    h = 0
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + code_unit) & _UINT32
    if h & 0x80000000:
        h -= 1 << 32
    return _to_base36(abs(h))


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def normalize_params(params: Mapping[str, Any] | str) -> str:
    """Canonical JSON: sorted keys at every level, compact separators."""
    if isinstance(params, str):
        params = {"prompt": params}
    elif isinstance(params, BaseModel):
        params = params.model_dump(mode="json")
    return json.dumps(
        params,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_json_default,
    )


def derive_key(category: str, params: Mapping[str, Any] | str) -> str:
    """Stable key for a logical request in ``category``."""
    return f"{category}_{hash_string(normalize_params(params))}"


def lookup_key(category: str, prompt: str) -> str:
    """Key used by the orchestrator. Topic is deliberately not part of it."""
    return derive_key(category, {"prompt": prompt})


def tts_key(request: TTSRequest) -> str:
    return derive_key("tts", request)


def scene_key(request: SceneRequest) -> str:
    return derive_key("scene", request)


def blob_path(category: str, key: str, mime_type: str) -> str:
    """Default blob path ``{category}/{key}{ext}`` for a generated artifact."""
    ext = mimetypes.guess_extension(mime_type) or ".bin"
    return f"{category}/{key}{ext}"


def owner_prefix(owner_id: str) -> str:
    """Prefix shared by every transient key owned by one user."""
    return f"user_{owner_id}_"


def journey_key(owner_id: str, journey_id: str) -> str:
    """Transient key of one journey snapshot in the ``journeys`` category."""
    return f"{owner_prefix(owner_id)}journey_{journey_id}"


def progress_key(owner_id: str, journey_id: str) -> str:
    """Transient key of one journey's progress in the ``progress`` category."""
    return f"{owner_prefix(owner_id)}progress_{journey_id}"
