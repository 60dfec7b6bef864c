"""
Public API Module

Unauthenticated endpoints reached through a form's public link.

Security Features:
- Only ACTIVE forms are exposed
- Per-client-IP rate limiting on submissions
- Owner details limited to name and company
"""
