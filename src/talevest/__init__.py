"""
Tale Vesting - PrompTale token vesting platform

Interval-based token vesting for the PrompTale (PTL) token.

Main Components:
- Contracts: the PTL asset ledger, vesting schedules and the schedule factory
- Deployment: contract host with a persisted JSON state file
- API: Flask blueprints exposing the vesting operations
- CLI: deployment and inspection commands
"""

__version__ = "0.1.0"
__author__ = "Tale Development Team"

__all__ = []
