"""projecthub — owner-scoped project storage behind bearer-token auth.

Users register and log in to obtain a signed token, then use it to
create, list, edit, delete and bulk-import their own projects.
"""

__version__ = "0.1.0"
