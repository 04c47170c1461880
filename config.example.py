# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKMINDER_APP_NAME": "App display name (default: taskminder).",
    "TASKMINDER_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "TASKMINDER_CONSOLE_ENABLED": "Run the console REPL (true/false, default: true).",
    # Identity
    "TASKMINDER_DEFAULT_USER": "User signed in at startup (empty => start signed out, use /login).",
    # Paths (gitignored)
    "TASKMINDER_DATA_DIR": "Local data directory (default: .local/taskminder).",
    "TASKMINDER_TASKS_DB_PATH": "Task database path (default: <data_dir>/tasks.sqlite3).",
    # Timing
    "TASKMINDER_POLL_INTERVAL_SECONDS": "Expiration check cadence in seconds (default: 1.0).",
    "TASKMINDER_NOTIFICATION_DISMISS_SECONDS": (
        "Delay before success/info notifications auto-dismiss (default: 5.0)."
    ),
}
