"""HOTP token generation (RFC 4226) over HMAC-SHA1.

The engine is a pure function of ``(counter, secret)``:

1. The counter is serialized as 8 big-endian bytes.
2. HMAC-SHA1 keyed with the secret digests that buffer into 20 bytes.
3. Dynamic truncation reads 4 bytes at ``digest[19] & 0x0F`` and clears the
   top bit.
4. The result is reduced modulo ``10 ** DIGITS`` and zero-padded.
"""

import hashlib
import hmac
import struct
from dataclasses import dataclass

DIGITS = 6
DIGEST_SIZE = 20

_MODULUS = 10**DIGITS
_COUNTER = struct.Struct(">Q")
_WORD = struct.Struct(">I")


@dataclass(frozen=True)
class TokenResult:
    """A computed code and its display form."""

    code: int
    display: str


def counter_to_bytes(counter: int) -> bytes:
    """Serialize a counter as an 8-byte big-endian buffer.

    Args:
        counter: Unsigned 64-bit counter

    Returns:
        The 8-byte message used as HMAC input

    Raises:
        ValueError: If counter does not fit in an unsigned 64-bit integer
    """
    if not 0 <= counter < 2**64:
        raise ValueError(f"counter must fit in 64 unsigned bits, got {counter}")
    return _COUNTER.pack(counter)


def truncate(digest: bytes) -> int:
    """Apply dynamic truncation to a 20-byte HMAC-SHA1 digest.

    Returns:
        The 31-bit value read at the digest-selected offset
    """
    # offset <= 15 keeps the 4-byte read inside a 20-byte digest
    if len(digest) != DIGEST_SIZE:
        raise ValueError(f"expected a {DIGEST_SIZE}-byte digest, got {len(digest)}")
    offset = digest[-1] & 0x0F
    (value,) = _WORD.unpack_from(digest, offset)
    return value & 0x7FFFFFFF


def compute(counter: int, secret: bytes) -> int:
    """Compute the HOTP code for ``counter`` keyed by ``secret``.

    Args:
        counter: Moving factor (the TOTP time step)
        secret: Raw shared secret

    Returns:
        Integer code in ``[0, 10 ** DIGITS)``
    """
    digest = hmac.new(secret, counter_to_bytes(counter), hashlib.sha1).digest()
    return truncate(digest) % _MODULUS


def format_code(code: int) -> str:
    """Zero-pad a code to ``DIGITS`` characters."""
    return f"{code:0{DIGITS}d}"


def generate(counter: int, secret: bytes) -> TokenResult:
    """Compute and format the code for ``counter``."""
    code = compute(counter, secret)
    return TokenResult(code=code, display=format_code(code))
