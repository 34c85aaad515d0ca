"""Twilio request signature verification.

Twilio signs each webhook with HMAC-SHA1 over the full request URL followed
by every POST parameter (sorted by name, name then value), keyed with the
account auth token, and sends the base64 digest in ``X-Twilio-Signature``.
"""

import base64
import hashlib
import hmac
import logging
from typing import Iterable, Tuple

from fastapi import HTTPException, Request

from ..config import settings

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Twilio-Signature"


def compute_signature(auth_token: str, url: str, params: Iterable[Tuple[str, str]]) -> str:
    """Return the base64 HMAC-SHA1 signature Twilio would send for this request."""
    payload = url + "".join(f"{key}{value}" for key, value in sorted(params))
    digest = hmac.new(auth_token.encode("utf-8"), payload.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def signed_url(request: Request) -> str:
    # Behind a proxy the URL Twilio signed is the public one, not ours
    if not settings.public_base_url:
        return str(request.url)
    url = settings.public_base_url.rstrip("/") + request.url.path
    if request.url.query:
        url += "?" + request.url.query
    return url


async def verify_twilio_signature(request: Request) -> None:
    """FastAPI dependency rejecting unsigned or mis-signed webhooks with 403.

    Skipped entirely when no auth token is configured.
    """
    auth_token = settings.twilio_auth_token
    if not auth_token:
        return

    provided = request.headers.get(SIGNATURE_HEADER)
    if not provided:
        logger.warning("Webhook %s rejected: missing %s", request.url.path, SIGNATURE_HEADER)
        raise HTTPException(status_code=403, detail="missing signature")

    form = await request.form()
    params = [(key, value) for key, value in form.multi_items() if isinstance(value, str)]
    expected = compute_signature(auth_token, signed_url(request), params)
    if not hmac.compare_digest(expected, provided):
        logger.warning("Webhook %s rejected: invalid signature", request.url.path)
        raise HTTPException(status_code=403, detail="invalid signature")
