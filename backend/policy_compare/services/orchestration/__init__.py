"""Service orchestration layer: coordinates multi-service workflows.

Modules:
- comparison: runs one policy comparison request end to end.
"""
