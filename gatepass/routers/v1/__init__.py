"""v1 router package — all /api/v1/* endpoints live here.

Files:
  auth.py       — sign-up / sign-in / sign-out / me
  flats.py      — flats
  profiles.py   — admin user management
  visitors.py   — visitors, QR scan/download/share, change feed WebSocket
  dashboard.py  — capabilities + recent visitors

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to gatepass/services/.
"""
