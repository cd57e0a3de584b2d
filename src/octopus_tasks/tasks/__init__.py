"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskState, TaskDetails, ...)
- builtin_tasks.py: static catalog of built-in task kinds
- task_factory.py: builds and submits creation requests
- task_actions.py: rerun/cancel/state change and read-only navigation
- task_waiter.py: polling loop that waits for completion
- task_repository.py: one facade over all of the above
"""
