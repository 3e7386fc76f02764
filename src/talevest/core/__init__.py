"""
Tale Vesting Core Module

Contracts, configuration, logging and the HTTP surface of the vesting
platform.
"""

__all__ = []
