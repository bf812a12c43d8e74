"""JSON utility functions for bayesnlme I/O operations.

This module provides helper functions for JSON serialization of numpy arrays,
result records and other objects produced by the sampler.
"""

import math
from pathlib import Path
from typing import Any

import numpy as np


def json_safe(value: Any) -> Any:
    """Recursively convert numpy arrays and special types to JSON-safe types.

    Non-finite floats become ``None`` so that the output is strict JSON.
    Objects with a ``to_dict`` method (such as ``SamplerConfig``) are
    converted through it.

    Examples
    --------
    >>> json_safe(np.array([1, 2, 3]))
    [1, 2, 3]
    >>> json_safe({"gamma2": np.float64(0.01), "v": [np.inf]})
    {'gamma2': 0.01, 'v': [None]}
    """
    if isinstance(value, dict):
        return {str(k): json_safe(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [json_safe(v) for v in value]
    elif isinstance(value, np.ndarray):
        return json_safe(value.tolist())
    elif isinstance(value, (np.bool_, bool)):
        return bool(value)
    elif isinstance(value, np.integer):
        return int(value)
    elif isinstance(value, (np.floating, float)):
        value = float(value)
        return value if math.isfinite(value) else None
    elif isinstance(value, Path):
        return str(value)
    elif hasattr(value, "to_dict"):
        return json_safe(value.to_dict())
    else:
        return value


def json_serializer(obj: Any) -> Any:
    """JSON serializer for numpy arrays and other objects.

    Use as the `default` argument to json.dump/dumps.

    Examples
    --------
    >>> import json
    >>> json.dumps({"counts": np.array([3, 4])}, default=json_serializer)
    '{"counts": [3, 4]}'
    """
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.bool_):
        return bool(obj)
    elif isinstance(obj, Path):
        return str(obj)
    elif hasattr(obj, "to_dict"):
        return obj.to_dict()
    else:
        return str(obj)
