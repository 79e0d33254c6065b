"""
Storage collaborators for the matching core.

Responsibilities:
- Define the Profile Store and Interaction Log interfaces the core reads and writes.
- Provide an in-memory implementation for tests and single-process use.
- Provide a CSV-table implementation persisted with pandas.
"""
