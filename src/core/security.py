"""Security utilities: key generation, API key hashing and visitor IP hashing."""

import hashlib
import hmac
import secrets

from src.core.config import Settings, get_settings

# Operator (account) API key prefix for identification
API_KEY_PREFIX = "ccr_"
API_KEY_LENGTH = 32  # 32 bytes = 256 bits of entropy

# Website keys are bare hex so they can be embedded in banner snippets
WEBSITE_API_KEY_BYTES = 32  # 64 hex chars
VERIFICATION_TOKEN_BYTES = 16  # 32 hex chars

# PBKDF2 output size for visitor IP hashes (512 bits, 128 hex chars)
IP_HASH_LENGTH = 64

# Secret for HMAC hashing of operator API keys
# Using a fixed salt since API keys are already high-entropy
_HASH_SECRET = b"consent-registry-api-key-hash-v1"


def generate_api_key() -> str:
    """Generate a new operator API key with prefix.

    Returns:
        A new API key in format: ccr_<random_hex>
    """
    random_part = secrets.token_hex(API_KEY_LENGTH)
    return f"{API_KEY_PREFIX}{random_part}"


def generate_website_api_key() -> str:
    """Generate the public key a website's consent banner authenticates with."""
    return secrets.token_hex(WEBSITE_API_KEY_BYTES)


def generate_verification_token() -> str:
    """Generate a domain ownership verification token."""
    return secrets.token_hex(VERIFICATION_TOKEN_BYTES)


def hash_api_key(api_key: str) -> str:
    """Hash an operator API key for storage using HMAC-SHA256.

    Args:
        api_key: The plaintext API key to hash

    Returns:
        The hex-encoded HMAC-SHA256 hash
    """
    return hmac.new(
        _HASH_SECRET,
        api_key.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_api_key(plain_key: str, hashed_key: str) -> bool:
    """Verify a plaintext API key against its hash.

    Args:
        plain_key: The plaintext API key to verify
        hashed_key: The stored hash to verify against

    Returns:
        True if the key matches, False otherwise
    """
    computed_hash = hash_api_key(plain_key)
    return hmac.compare_digest(computed_hash, hashed_key)


def create_api_key() -> tuple[str, str]:
    """Generate a new operator API key and its hash.

    Returns:
        A tuple of (plaintext_key, hashed_key)
        The plaintext key should be shown once to the user, then discarded.
        Only the hash should be stored.
    """
    key = generate_api_key()
    hashed = hash_api_key(key)
    return key, hashed


def is_valid_api_key_format(api_key: str) -> bool:
    """Check if an operator API key has valid format."""
    if not api_key.startswith(API_KEY_PREFIX):
        return False
    expected_length = len(API_KEY_PREFIX) + (API_KEY_LENGTH * 2)
    return len(api_key) == expected_length


def hash_ip_address(raw_ip: str, settings: Settings | None = None) -> str:
    """One-way hash of a visitor IP address with PBKDF2-HMAC-SHA256.

    The salt has no built-in fallback: settings refuse to load without one.

    Args:
        raw_ip: The visitor's IP address as received
        settings: Application settings providing salt and iteration count

    Returns:
        Hex-encoded derived key
    """
    settings = settings or get_settings()
    return hashlib.pbkdf2_hmac(
        "sha256",
        raw_ip.strip().encode("utf-8"),
        settings.ip_hash_salt.get_secret_value().encode("utf-8"),
        settings.ip_hash_iterations,
        dklen=IP_HASH_LENGTH,
    ).hex()


def ip_address_matches(
    raw_ip: str, ip_address_hash: str, settings: Settings | None = None
) -> bool:
    """Check whether a raw IP address re-derives to a stored hash."""
    return hmac.compare_digest(hash_ip_address(raw_ip, settings), ip_address_hash)
