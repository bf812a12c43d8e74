"""I/O utilities for bayesnlme results."""

from bayesnlme.io.json_utils import json_safe, json_serializer
from bayesnlme.io.mcmc_writers import (
    create_parameters_dict,
    load_trace_npz,
    save_parameters_json,
    save_trace_json,
    save_trace_npz,
)

__all__ = [
    "json_safe",
    "json_serializer",
    "create_parameters_dict",
    "save_parameters_json",
    "save_trace_npz",
    "load_trace_npz",
    "save_trace_json",
]
