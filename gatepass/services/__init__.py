"""Services package — all business logic lives here, never in routers.

Files:
  lifecycle.py  — visitor status transitions and role-based review rules (pure)
  qr.py         — QR gate-pass encoding / decoding
  realtime.py   — in-process change feed behind the visitors WebSocket
  auth.py       — sign-up, sign-in, session → Viewer resolution
  flat.py       — flats
  profile.py    — admin user management
  visitor.py    — pre-approval, gate entries, approve/deny, scan verification
  audit.py      — audit trail writes

Rule: routers call services, services call repositories, repositories call the DB.
      No SQLAlchemy queries in routers. No FastAPI imports in services.
"""
