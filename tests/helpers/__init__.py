"""Test helpers for ui-development-power.

Builders for steering files, knowledge modules and capability descriptors
so tests can assemble synthetic registries without touching shipped content.
"""

from .builders import (
    LONG_BODY,
    make_capability,
    make_module,
    write_steering_file,
)

__all__ = [
    "LONG_BODY",
    "make_capability",
    "make_module",
    "write_steering_file",
]
