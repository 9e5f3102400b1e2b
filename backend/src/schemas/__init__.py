"""
Pydantic schemas for API request/response validation.

Each record type has its own module (user, auth, event, payment, vendor,
activity, task, contact, lead, deal); shared building blocks live in common.
"""
