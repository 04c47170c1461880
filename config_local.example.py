# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` for anything else. Only the names below are picked up.
"""

# Example: always start signed in as yourself
# DEFAULT_USER = "alice"

# Example: run headless (expiration monitor only, no REPL)
# CONSOLE_ENABLED = False
