"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskPriority) and reminder-window math
- task_store.py: SQLite-backed storage + query/update helpers
- task_api.py: validated CRUD helpers used by the rest of the app
- reminder.py: one reminder sweep over unnotified tasks
- task_scheduler.py: timer loop that runs a sweep every tick
"""
