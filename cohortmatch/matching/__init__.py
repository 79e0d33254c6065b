"""
Candidate ranking and match consistency.

Responsibilities:
- Score profile similarity from interests, background and country.
- Build filtered, diversity-aware candidate lists with a non-empty fallback.
- Log swipes and record each mutual match exactly once.
"""
