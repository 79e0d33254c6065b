"""
Member profiles.

Responsibilities:
- Define the canonical Profile record and the registration payload.
- Normalize codes, interests and free-text fields for comparison.
- Register new members under a unique, unambiguous six-character code.
"""
