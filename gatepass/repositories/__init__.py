"""Repositories package — all SQLAlchemy queries live here.

Files:
  base.py     — generic CRUD + pagination + change-feed staging
  flat.py     — flats ordered by flat number
  user.py     — users, profiles and auth sessions
  visitor.py  — visitor record store (staged on the `visitors` change feed)
  audit.py    — append-only audit trail
"""
