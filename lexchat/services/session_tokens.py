"""Stateless session credential issuance and verification."""

import base64
import binascii
import json
import os
import time
from dataclasses import dataclass, field

from cuid2 import cuid_wrapper
from pydantic import ValidationError

from lexchat.models.session import TokenData
from lexchat.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()


@dataclass
class SessionTokenConfig:
    """Configuration for session credentials."""

    lifetime_hours: float = field(default_factory=lambda: float(os.getenv("SESSION_TOKEN_LIFETIME_HOURS", "24")))


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionTokenService:
    """Issues and verifies opaque session credentials.

    A credential is the base64 encoding of ``{id, generatedTime, expirationTime}``.
    Nothing is stored server-side; any process can verify any credential.
    """

    def __init__(self, config: SessionTokenConfig | None = None):
        """Initialize the credential service.

        Args:
            config: Credential configuration
        """
        self.config = config or SessionTokenConfig()

    def generate_token(self, old_token: str = "") -> str:
        """Return ``old_token`` if it is still valid, otherwise issue a new credential."""
        if old_token and self.verify_token(old_token):
            return old_token

        now = _now_ms()
        token_data = TokenData(
            id=cuid(),
            generated_time=now,
            expiration_time=now + int(self.config.lifetime_hours * 60 * 60 * 1000),
        )
        raw = token_data.model_dump_json(by_alias=True)
        logger.info(f"Issued session token {token_data.id}")
        return base64.b64encode(raw.encode("utf-8")).decode("ascii")

    def decode_token(self, token: str) -> TokenData | None:
        """Decode a credential without checking its validity window."""
        try:
            raw = base64.b64decode(token.encode("ascii"), validate=True)
            return TokenData.model_validate(json.loads(raw))
        except (binascii.Error, UnicodeError, ValueError, ValidationError, TypeError):
            return None

    def verify_token(self, token: str) -> bool:
        """Check that a credential is well formed, not expired and not issued in the future."""
        if not token:
            return False

        token_data = self.decode_token(token)
        if token_data is None:
            logger.debug("Rejected undecodable session token")
            return False

        now = _now_ms()
        if token_data.expiration_time < now or not token_data.id or token_data.generated_time > now:
            logger.debug(f"Rejected session token {token_data.id}")
            return False
        return True


session_token_service = SessionTokenService()
