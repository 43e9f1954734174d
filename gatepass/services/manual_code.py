# =======================================================================================
# gatepass/services/manual_code.py - Manual Access Codes
# =======================================================================================
"""
Six-digit fallback codes for guards who cannot scan.

The code is a pure function of the subject id so a member can read it off
their pass without a fresh lookup. There are only 900000 possible codes and
anyone who knows a subject id can compute its code, so this channel is much
weaker than the QR secret.
"""
import hashlib

CODE_MIN = 100000
CODE_SPAN = 900000


def derive_manual_code(subject_id: str) -> str:
    """Map a subject id to a stable code in [100000, 999999]."""
    digest = hashlib.sha256(subject_id.encode("utf-8")).digest()
    value = int.from_bytes(digest[:8], "big")
    return str(value % CODE_SPAN + CODE_MIN)


def is_manual_code(value: str) -> bool:
    return len(value) == 6 and value.isascii() and value.isdigit()
