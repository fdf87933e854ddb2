"""Core DRIP components."""

from .keystore import (
    DEFAULT_KEY_PASS,
    KeyInfo,
    Keystore,
    LocalKeystore,
    address_from_pubkey,
    decode_address,
    generate_private_key,
    load_keystore,
    validate_address,
)

__all__ = [
    "DEFAULT_KEY_PASS",
    "KeyInfo",
    "Keystore",
    "LocalKeystore",
    "address_from_pubkey",
    "decode_address",
    "generate_private_key",
    "load_keystore",
    "validate_address",
]
