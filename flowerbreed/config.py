"""Configuration defaults and presets.

Configuration is a plain dict; components read it with ``config.get(key, default)``.
"""

from __future__ import annotations

import os
from typing import Any

from flowerbreed.utils.validation import ValidationError

DEFAULT_CONFIG: dict[str, Any] = {
    # Expansion worker pool; None means one worker per CPU
    'max_workers': None,
    # Bound on finished row batches waiting for the aggregator; 0 means 2 x workers
    'queue_size': 0,
    # Generations run by the command-line tool
    'expand_steps': 3,
    # Largest phenotype subset to build a test for; None means every proper subset
    'max_test_subset_size': None,
    'include_no_test': True,
    # Keep only target candidates on the last expansion step
    'prune_final_step': True,
}

PRESET_MINIMAL: dict[str, Any] = {
    'max_workers': 1,
    'expand_steps': 1,
    'max_test_subset_size': 1,
}

PRESET_STANDARD: dict[str, Any] = {
    'expand_steps': 3,
    'max_test_subset_size': 2,
}

PRESET_EXHAUSTIVE: dict[str, Any] = {
    'expand_steps': 3,
    'max_test_subset_size': None,
}

PRESETS: dict[str, dict[str, Any]] = {
    'minimal': PRESET_MINIMAL,
    'standard': PRESET_STANDARD,
    'exhaustive': PRESET_EXHAUSTIVE,
}

_POSITIVE_OR_NONE = ('max_workers', 'max_test_subset_size')
_NONNEGATIVE = ('queue_size', 'expand_steps')


def resolve_config(overrides: dict[str, Any] | None = None, preset: str | None = None) -> dict[str, Any]:
    """Merge defaults, an optional named preset and overrides, then validate."""
    config = dict(DEFAULT_CONFIG)
    if preset is not None:
        if preset not in PRESETS:
            raise ValidationError("unknown_preset", f"Unknown preset {preset!r}", known=tuple(PRESETS))
        config.update(PRESETS[preset])
    overrides = overrides or {}
    unknown = sorted(k for k in overrides if k not in DEFAULT_CONFIG)
    if unknown:
        raise ValidationError("unknown_config_key", f"Unknown config keys: {unknown}", keys=tuple(unknown))
    config.update(overrides)

    for key in _POSITIVE_OR_NONE:
        val = config[key]
        if val is not None and (not isinstance(val, int) or isinstance(val, bool) or val < 1):
            raise ValidationError("bad_config_value", f"{key} must be a positive integer or None", key=key, value=val)
    for key in _NONNEGATIVE:
        val = config[key]
        if not isinstance(val, int) or isinstance(val, bool) or val < 0:
            raise ValidationError("bad_config_value", f"{key} must be a nonnegative integer", key=key, value=val)
    return config


def worker_count(config: dict[str, Any]) -> int:
    configured = config.get('max_workers')
    if configured is None:
        return os.cpu_count() or 1
    return max(1, int(configured))


__all__ = [
    'DEFAULT_CONFIG',
    'PRESET_MINIMAL',
    'PRESET_STANDARD',
    'PRESET_EXHAUSTIVE',
    'PRESETS',
    'resolve_config',
    'worker_count',
]
