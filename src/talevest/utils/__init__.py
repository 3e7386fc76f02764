"""
Tale Vesting Utilities Package

Common utility functions used across the Tale Vesting codebase.
"""

from talevest.utils.secure_io import (
    SECURE_DIR_MODE,
    SECURE_FILE_MODE,
    read_json,
    secure_atomic_write,
    secure_atomic_write_json,
    secure_create_directory,
)

__all__ = [
    "secure_create_directory",
    "secure_atomic_write",
    "secure_atomic_write_json",
    "read_json",
    "SECURE_FILE_MODE",
    "SECURE_DIR_MODE",
]
