"""
Activity analytics.

Responsibilities:
- Keep an in-process log of candidate requests, swipes and new matches.
- Summarize that log for the analytics endpoint.
"""
