"""
HMAC-SHA256 signing for decision links.

Verification is recompute-and-compare: the verifier signs the same bytes with
its own copy of the secret and compares the two tags. Nothing is decrypted.

Why hmac.compare_digest instead of ==?
----------------------------------------
A comparison that returns at the first differing byte leaks how long the
matching prefix is. An attacker timing many requests could then build a valid
tag one byte at a time. compare_digest takes the same time wherever the inputs
diverge.
"""
import hashlib
import hmac


def sign(message: bytes, secret: bytes) -> bytes:
    """Return the raw 32-byte HMAC-SHA256 tag of message under secret."""
    return hmac.new(secret, message, hashlib.sha256).digest()


def verify(message: bytes, tag: bytes, secret: bytes) -> bool:
    expected = sign(message, secret)
    return hmac.compare_digest(tag, expected)
