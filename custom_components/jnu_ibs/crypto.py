"""Token and password encryption for the IBS backend.

The backend expects AES-128-CBC ciphertext with PKCS#7 padding, produced with a
key and IV that are shared by every client, encoded as Base64. Identical
plaintext therefore always yields identical ciphertext; the only per-request
variation in a token is its embedded timestamp.
"""

from __future__ import annotations

import base64
import json
from datetime import datetime

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .const import AES_IV_HEX, AES_KEY

_KEY = AES_KEY.encode("utf-8")
_IV = bytes.fromhex(AES_IV_HEX)


def format_token_time(moment: datetime) -> str:
    """Format a timestamp the way the backend expects in Token and DateTime."""
    return moment.strftime("%Y-%m-%d %H:%M:%S")


def encrypt_and_base64(text: str) -> str:
    """Encrypt text with the shared AES key and return Base64 ciphertext."""
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(text.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(_KEY), modes.CBC(_IV)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(ciphertext).decode("ascii")


def make_token(customer_id: str, moment: datetime) -> tuple[str, str]:
    """Build the Token header for a customer at a given moment.

    Returns:
        Tuple of (token, token_time). token_time must be sent as the DateTime
        header alongside the token.
    """
    token_time = format_token_time(moment)
    payload = json.dumps(
        {"userID": customer_id, "tokenTime": token_time},
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return encrypt_and_base64(payload), token_time
