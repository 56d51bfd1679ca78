"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskPage, CaptureRequest)
- task_api.py: async REST client for /captures
- task_store.py: list/detail stores refreshed by pollers
- task_watch.py: WatchSession wiring stores to pollers
"""
