# =======================================================================================
# gatepass/utils/payload.py - Scanned Payload Parsing
# =======================================================================================
import json
import logging
from pydantic import ValidationError
from ..models.schemas import (
    QrPayload,
    QrPayloadCredential,
    RawHashCredential,
    ManualCodeCredential,
)

log = logging.getLogger(__name__)


def parse_scanned_data(data: str):
    """
    Turn untrusted camera data into a presented credential.

    JSON objects matching QrPayload become a QrPayloadCredential; anything
    else (plain text, JSON without a hash, malformed JSON) is the raw hash.
    """
    text = data.strip()
    try:
        decoded = json.loads(text)
    except ValueError:
        return RawHashCredential(secret_hash=text)

    if not isinstance(decoded, dict):
        return RawHashCredential(secret_hash=text)

    try:
        payload = QrPayload.model_validate(decoded)
    except ValidationError as e:
        log.debug("Scanned JSON does not match the QR payload schema: %s", e.errors())
        return RawHashCredential(secret_hash=text)

    return QrPayloadCredential(secret_hash=payload.secret_hash.strip(), payload=payload)


def parse_manual_code(code: str) -> ManualCodeCredential:
    """Manual entry keeps only the digits the guard typed."""
    return ManualCodeCredential(code="".join(ch for ch in code if not ch.isspace()))


def hash_preview(secret_hash: str) -> str:
    """Safe prefix of a secret for log lines."""
    return f"{secret_hash[:8]}…" if len(secret_hash) > 8 else "***"
