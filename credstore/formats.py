"""
Credential format decoders used when listing stored records.

Each decoder turns a stored credential string into its claims. Decoding
only: signatures and key binding are not verified here.
"""

import hashlib
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from jose import JWTError, jwt
from jose.utils import base64url_decode, base64url_encode

from common.constants import SD_JWT_FORMAT
from common.exceptions import CorruptRecordError, UnsupportedFormatError

logger = logging.getLogger(__name__)

ClaimsDecoder = Callable[[str], Dict[str, Any]]

_HASH_ALGORITHMS = {
    "sha-256": hashlib.sha256,
    "sha-384": hashlib.sha384,
    "sha-512": hashlib.sha512,
}

_DECODERS: Dict[str, ClaimsDecoder] = {}


def _resolve(value: Any, disclosures: Dict[str, List[Any]]) -> Any:
    """
    Replace selective-disclosure digests with the disclosed values.

    Raises:
        ValueError: If an `_sd` array, an array digest or a disclosure has the wrong shape
    """
    if isinstance(value, dict):
        resolved = {}
        for key, item in value.items():
            if key in ("_sd", "_sd_alg"):
                continue
            resolved[key] = _resolve(item, disclosures)

        digests = value.get("_sd", [])
        if not isinstance(digests, list) or not all(isinstance(d, str) for d in digests):
            raise ValueError("_sd must be an array of digest strings")
        for digest in digests:
            disclosure = disclosures.get(digest)
            if disclosure is None:
                continue
            if len(disclosure) != 3 or not isinstance(disclosure[1], str):
                raise ValueError("Object property disclosure must be [salt, name, value]")
            resolved[disclosure[1]] = _resolve(disclosure[2], disclosures)
        return resolved

    if isinstance(value, list):
        resolved_items = []
        for item in value:
            if isinstance(item, dict) and set(item.keys()) == {"..."}:
                digest = item["..."]
                if not isinstance(digest, str):
                    raise ValueError("Array element digest must be a string")
                disclosure = disclosures.get(digest)
                if disclosure is not None and len(disclosure) == 2:
                    resolved_items.append(_resolve(disclosure[1], disclosures))
                continue
            resolved_items.append(_resolve(item, disclosures))
        return resolved_items

    return value


def decode_sd_jwt(token: str) -> Dict[str, Any]:
    """
    Decode the claims of an SD-JWT (`<jwt>~<disclosure>~...~[kb-jwt]`).

    The issuer JWT payload is read without verification; disclosures are
    matched to `_sd` digests using the payload's `_sd_alg`.

    Raises:
        ValueError: If the token structure or any segment is invalid
    """
    parts = token.split("~")
    if len(parts[0].split(".")) != 3:
        raise ValueError("Issuer JWT must have three segments")

    try:
        payload = jwt.get_unverified_claims(parts[0])
    except JWTError as e:
        raise ValueError(f"Invalid issuer JWT: {e}") from e

    hash_name = payload.get("_sd_alg", "sha-256")
    if not isinstance(hash_name, str) or hash_name not in _HASH_ALGORITHMS:
        raise ValueError(f"Unsupported _sd_alg: {hash_name}")
    hasher = _HASH_ALGORITHMS[hash_name]

    disclosures: Dict[str, List[Any]] = {}
    for encoded in parts[1:]:
        # empty trailing part, or the key-binding JWT
        if not encoded or "." in encoded:
            continue
        encoded_bytes = encoded.encode("ascii")
        decoded = json.loads(base64url_decode(encoded_bytes))
        if not isinstance(decoded, list) or len(decoded) not in (2, 3):
            raise ValueError("Disclosure is not a 2- or 3-element array")
        digest = base64url_encode(hasher(encoded_bytes).digest()).decode("ascii")
        disclosures[digest] = decoded

    return _resolve(dict(payload), disclosures)


def register_format(format_tag: str, decoder: ClaimsDecoder) -> None:
    """Register (or replace) the claims decoder for a format tag."""
    _DECODERS[format_tag] = decoder


def supported_formats() -> List[str]:
    return sorted(_DECODERS)


def decode_claims(format_tag: str, credential: str, record_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Decode a stored credential's claims according to its format tag.

    Raises:
        UnsupportedFormatError: If no decoder is registered for format_tag
        CorruptRecordError: If the credential cannot be decoded
    """
    decoder = _DECODERS.get(format_tag)
    if decoder is None:
        raise UnsupportedFormatError(format_tag, record_id=record_id)

    try:
        return decoder(credential)
    except (ValueError, TypeError) as e:
        raise CorruptRecordError(
            f"Failed to parse {format_tag} credential: {e}",
            record_id=record_id,
            operation="list",
        ) from e


register_format(SD_JWT_FORMAT, decode_sd_jwt)
