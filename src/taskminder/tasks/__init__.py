"""
Task subsystem.

Components:
- task_models.py: data structures (Task, ChangeEvent, ChangeKind)
- task_store.py: in-memory collection kept in sync with the data service
- expiration_monitor.py: polling loop that fires each task's expiration once
- task_api.py: validation and display helpers used by the session and the console
"""
