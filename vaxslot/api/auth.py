"""
Authentication handling for the CoWIN API
"""
import base64
import hashlib
import logging
import secrets
from datetime import datetime, timezone
from typing import Optional, Tuple

import httpx
import jwt
from Crypto.Cipher import AES
from Crypto.Util.Padding import pad

from .endpoints import Endpoints, DEFAULT_HEADERS
from ..common.config import APIConfig
from ..common.models import Credential
from ..common.prompts import HumanPrompt

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when authentication fails"""
    pass


def _evp_bytes_to_key(passphrase: bytes, salt: bytes, key_len: int = 32, iv_len: int = 16) -> Tuple[bytes, bytes]:
    """OpenSSL's MD5-based key derivation, as used by passphrase-mode AES in the browser"""
    derived = b""
    block = b""
    while len(derived) < key_len + iv_len:
        block = hashlib.md5(block + passphrase + salt).digest()
        derived += block
    return derived[:key_len], derived[key_len:key_len + iv_len]


def encrypt_secret(text: str, passphrase: str, salt: Optional[bytes] = None) -> str:
    """
    Encrypt ``text`` the way the web client does before requesting an OTP.

    Produces the OpenSSL "Salted__" envelope (AES-256-CBC), base64 encoded.
    """
    salt = salt or secrets.token_bytes(8)
    key, iv = _evp_bytes_to_key(passphrase.encode("utf-8"), salt)
    cipher = AES.new(key, AES.MODE_CBC, iv)
    encrypted = cipher.encrypt(pad(text.encode("utf-8"), AES.block_size))
    return base64.b64encode(b"Salted__" + salt + encrypted).decode("utf-8")


def hash_otp(otp: str) -> str:
    """SHA-256 hex digest of the OTP"""
    return hashlib.sha256(otp.strip().encode("utf-8")).hexdigest()


def decode_token_expiry(token: str) -> datetime:
    """Read the ``exp`` claim of a bearer token without verifying its signature"""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise AuthenticationError(f"Could not decode token: {e}")

    if "exp" not in claims:
        raise AuthenticationError("Token has no expiry claim")
    return datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)


class CoWinAuth:
    """
    Handles the OTP handshake with CoWIN.

    Every call to :meth:`authenticate` produces a fresh :class:`Credential`.
    Tokens cannot be refreshed, so re-authentication is simply another call.
    """

    def __init__(self, api: APIConfig, prompt: HumanPrompt):
        self.api = api
        self.prompt = prompt
        self.client = httpx.AsyncClient(
            headers={**DEFAULT_HEADERS, **api.headers},
            timeout=api.timeout
        )

    async def authenticate(self, mobile: str) -> Credential:
        """
        Run the OTP handshake for ``mobile``.

        Returns:
            Credential with the bearer token and its expiry

        Raises:
            AuthenticationError: if either OTP endpoint rejects the request
        """
        logger.info(f"Requesting OTP for {mobile[-4:].rjust(len(mobile), '*')}")

        try:
            txn_id = await self._request_otp(mobile)
            logger.info("OTP request sent")

            otp = await self.prompt.ask("Enter OTP")
            token = await self._validate_otp(txn_id, otp)
        except httpx.RequestError as e:
            raise AuthenticationError(f"Network error during login: {e}")

        credential = Credential(token=token, expires_at=decode_token_expiry(token))
        logger.info(f"Authenticated, token valid until {credential.expires_at.isoformat()}")
        return credential

    async def _request_otp(self, mobile: str) -> str:
        response = await self.client.post(
            Endpoints.generate_otp(self.api.base_url),
            json={
                "mobile": mobile,
                "secret": encrypt_secret(self.api.otp_secret_text, self.api.otp_secret_key),
            }
        )
        if response.status_code == 429:
            raise AuthenticationError("Rate limited. Try again later.")
        if response.status_code != 200:
            raise AuthenticationError(
                f"OTP request failed with status {response.status_code}: {response.text}"
            )

        txn_id = response.json().get("txnId")
        if not txn_id:
            raise AuthenticationError("OTP request returned no transaction id")
        return txn_id

    async def _validate_otp(self, txn_id: str, otp: str) -> str:
        response = await self.client.post(
            Endpoints.validate_otp(self.api.base_url),
            json={"txnId": txn_id, "otp": hash_otp(otp)}
        )
        if response.status_code in (400, 401):
            raise AuthenticationError("Invalid OTP")
        if response.status_code != 200:
            raise AuthenticationError(
                f"OTP validation failed with status {response.status_code}: {response.text}"
            )

        token = response.json().get("token")
        if not token:
            raise AuthenticationError("OTP validation returned no token")
        return token

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.client.aclose()
