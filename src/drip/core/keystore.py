"""Keystore abstraction for signing faucet transactions.

Keys are secp256k1. Addresses are bech32 encodings of
``ripemd160(sha256(compressed_pubkey))`` under the network's account prefix.
"""

import hashlib
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from bech32 import bech32_decode, bech32_encode, convertbits
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature
from pydantic import SecretStr

from drip.errors import KeyNotFound, SigningError

# Passphrase the faucet uses for every key it manages.
DEFAULT_KEY_PASS = "12345678"

CURVE = ec.SECP256K1()
# secp256k1 group order
CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141


def _ripemd160(data: bytes) -> bytes:
    try:
        digest = hashlib.new("ripemd160")
    except ValueError:
        raise RuntimeError(
            "ripemd160 digest is unavailable in this Python build; cannot derive address."
        ) from None
    digest.update(data)
    return digest.digest()


def address_from_pubkey(pub_key: bytes, prefix: str) -> str:
    """Derive the bech32 account address for a compressed public key."""
    raw = _ripemd160(hashlib.sha256(pub_key).digest())
    return bech32_encode(prefix, convertbits(raw, 8, 5))


def decode_address(address: str, prefix: str) -> bytes:
    """Decode a bech32 account address, checking its prefix.

    Raises
    ------
    ValueError
        If the address is not valid bech32 or has the wrong prefix.
    """
    hrp, data = bech32_decode(address)
    if hrp is None or data is None:
        raise ValueError(f"Invalid bech32 address: {address!r}")
    if hrp != prefix:
        raise ValueError(f"Invalid address prefix: expected {prefix!r}, got {hrp!r}")
    raw = convertbits(data, 5, 8, False)
    if raw is None or len(raw) not in (20, 32):
        raise ValueError(f"Invalid address length: {address!r}")
    return bytes(raw)


def validate_address(address: str, prefix: str) -> bool:
    """Return True if ``address`` is a valid bech32 address for ``prefix``."""
    try:
        decode_address(address, prefix)
    except ValueError:
        return False
    return True


def generate_private_key() -> str:
    """Generate a new secp256k1 private key as a hex string."""
    while True:
        candidate = secrets.token_bytes(32)
        if 0 < int.from_bytes(candidate, "big") < CURVE_ORDER:
            return candidate.hex()


def _load_private_key(key_hex: str) -> ec.EllipticCurvePrivateKey:
    key_hex = key_hex.strip()
    if key_hex.startswith(("0x", "0X")):
        key_hex = key_hex[2:]
    if len(key_hex) != 64:
        raise ValueError("Private key must be 32 bytes of hex")
    try:
        value = int(key_hex, 16)
    except ValueError:
        raise ValueError("Private key must be 32 bytes of hex") from None
    if not 0 < value < CURVE_ORDER:
        raise ValueError("Private key out of range")
    return ec.derive_private_key(value, CURVE)


def _compressed_pubkey(key: ec.EllipticCurvePrivateKey) -> bytes:
    return key.public_key().public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.CompressedPoint,
    )


@dataclass(frozen=True)
class KeyInfo:
    """Public identity of a stored key."""

    name: str
    address: str
    pub_key: bytes


class Keystore(ABC):
    """Named signing keys."""

    @abstractmethod
    def key_by_name(self, name: str) -> KeyInfo:
        """Look up a key by name.

        Raises
        ------
        KeyNotFound
            If no key has that name.
        """
        ...

    @abstractmethod
    def key_by_address(self, address: str) -> KeyInfo:
        """Look up a key by its account address.

        Raises
        ------
        KeyNotFound
            If no key has that address.
        """
        ...

    @abstractmethod
    def sign(self, name: str, passphrase: str, message: bytes) -> tuple[bytes, bytes]:
        """Sign ``message`` with the named key.

        Returns
        -------
        tuple[bytes, bytes]
            The 64-byte ``r || s`` signature and the compressed public key.
        """
        ...


class LocalKeystore(Keystore):
    """In-memory keystore loaded from environment variables or key files.

    Parameters
    ----------
    prefix : str
        Bech32 account prefix of the network (e.g. ``cosmos``).
    passphrase : str
        Passphrase every signing call must present.
    """

    def __init__(self, prefix: str = "cosmos", passphrase: str = DEFAULT_KEY_PASS):
        self._prefix = prefix
        self._passphrase = passphrase
        self._keys: dict[str, tuple[KeyInfo, ec.EllipticCurvePrivateKey]] = {}

    @property
    def prefix(self) -> str:
        return self._prefix

    def add_key(self, name: str, private_key: SecretStr) -> KeyInfo:
        """Add a key from a hex private key held in a SecretStr.

        Raises
        ------
        ValueError
            If the name is taken or the key is malformed.
        """
        if name in self._keys:
            raise ValueError(f"Key already exists: {name}")
        key = _load_private_key(private_key.get_secret_value())
        pub_key = _compressed_pubkey(key)
        info = KeyInfo(
            name=name,
            address=address_from_pubkey(pub_key, self._prefix),
            pub_key=pub_key,
        )
        self._keys[name] = (info, key)
        return info

    def add_key_file(self, name: str, private_key_file: str) -> KeyInfo:
        """Add a key from a file holding a hex private key.

        Raises
        ------
        FileNotFoundError
            If the file does not exist.
        """
        key_path = Path(private_key_file).expanduser()
        if not key_path.exists():
            raise FileNotFoundError(f"Private key file not found: {private_key_file}")
        return self.add_key(name, SecretStr(key_path.read_text().strip()))

    def key_by_name(self, name: str) -> KeyInfo:
        try:
            return self._keys[name][0]
        except KeyError:
            raise KeyNotFound(f"Key not found: {name}") from None

    def key_by_address(self, address: str) -> KeyInfo:
        for info, _ in self._keys.values():
            if info.address == address:
                return info
        raise KeyNotFound(f"No key for address: {address}")

    def sign(self, name: str, passphrase: str, message: bytes) -> tuple[bytes, bytes]:
        try:
            info, key = self._keys[name]
        except KeyError:
            raise KeyNotFound(f"Key not found: {name}") from None
        if not secrets.compare_digest(passphrase.encode(), self._passphrase.encode()):
            raise SigningError(f"Invalid passphrase for key {name}")

        der = key.sign(message, ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der)
        # Nodes reject high-S signatures as malleable
        if s > CURVE_ORDER // 2:
            s = CURVE_ORDER - s
        return r.to_bytes(32, "big") + s.to_bytes(32, "big"), info.pub_key


def load_keystore(
    key_name: str,
    private_key: SecretStr | None = None,
    private_key_file: str | None = None,
    prefix: str = "cosmos",
) -> LocalKeystore:
    """Create a keystore holding the faucet key.

    ``private_key`` wins when both sources are given.

    Raises
    ------
    ValueError
        If neither private_key nor private_key_file is provided.
    FileNotFoundError
        If private_key_file does not exist.
    """
    keystore = LocalKeystore(prefix=prefix)
    if private_key is not None:
        keystore.add_key(key_name, private_key)
    elif private_key_file is not None:
        keystore.add_key_file(key_name, private_key_file)
    else:
        raise ValueError("Either private_key or private_key_file must be provided")
    return keystore
