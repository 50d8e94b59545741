"""Stock Journal - personal stock trading record keeper (backend + client).

- Every trading record belongs to exactly one identity; all record queries are
  scoped to the caller (row-level security lives in the SQL layer).
- Profit/loss statistics are derived on read, never stored.
- Admins can list identities and reassign roles.

See README for setup and usage.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
