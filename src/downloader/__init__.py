"""
Agenda LGO download workflow.

Modules:
- handler: login, list and save all documents in one run
- cli: command line entry point
"""

__all__ = [
    "cli",
    "handler",
]
