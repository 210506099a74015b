"""Routers package — HTTP endpoint definitions.

Files:
  deps.py  — bearer token → Viewer dependency
  v1/      — Versioned API routes (/api/v1/*)
"""
