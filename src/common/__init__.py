"""
Common utilities for the Agenda LGO downloader.

Modules:
- agenda_lgo: Agenda LGO API client (login, document listing, download)
- credentials: credentials file loading
"""

__all__ = [
    "agenda_lgo",
    "credentials",
]
