"""Pydantic schemas package.

Folder intent:
  common.py     — CamelModel base + HealthResponse (all schemas inherit CamelModel)
  auth.py       — sign-up / sign-in / current user
  profile.py    — profiles and admin user management
  flat.py       — flats
  visitor.py    — visitors, pre-approval, gate entries, QR scan and share
  dashboard.py  — role capabilities + recent visitors
"""
