"""
Vault Crypto Core — Key pairs, key encoding and identity id derivation.

Identity keys are NIST P-521 elliptic curve keys. They travel as
base64-encoded PEM documents:

- private key: base64(PKCS#8 PEM)
- public key:  base64(SubjectPublicKeyInfo PEM)

Identity ids are derived, not assigned:
    HKDF-SHA256(DER(public_key), info="cryptvault-identity:<vault_id>") → hex

Security Note:
    Never log private key material. Only log ids and vault ids.
"""
import base64
import binascii
import logging
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from ..exceptions import KeyDecodeError, MissingVaultError

logger = logging.getLogger("cryptvault.provider.vault")

KEY_LENGTH = 32  # 256-bit identity id
CURVE = ec.SECP521R1

_PEM_HEADER = "-----BEGIN"
_IDENTITY_CONTEXT = "cryptvault-identity:"


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(seed: bytes, context: str, length: int = KEY_LENGTH) -> bytes:
    """Derive key bytes using HKDF-SHA256.

    Args:
        seed: Input key material.
        context: Context string for domain separation.
        length: Number of bytes to derive.

    Returns:
        Derived bytes.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=length,
        salt=None,  # deterministic: ids must be recomputable anywhere
        info=context.encode("utf-8"),
    )
    return hkdf.derive(seed)


def derive_identity_id(public_key: str, vault_id: str) -> str:
    """Compute the canonical identity id for a public key inside a vault.

    Pure and deterministic: the same (public key, vault id) pair yields
    the same id in every process.

    Args:
        public_key: Base64-encoded PEM public key.
        vault_id: Vault the identity belongs to.

    Returns:
        Hex-encoded identity id.

    Raises:
        MissingVaultError: If vault_id is empty.
        KeyDecodeError: If public_key cannot be decoded.
    """
    if not vault_id:
        raise MissingVaultError("vault id is required to derive an identity id")
    key = decode_public_key(public_key)
    der = key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return derive_key(der, f"{_IDENTITY_CONTEXT}{vault_id}").hex()


# ---------------------------------------------------------------------------
# Key pairs
# ---------------------------------------------------------------------------

def generate_key_pair() -> tuple[ec.EllipticCurvePrivateKey, ec.EllipticCurvePublicKey]:
    """Generate a new P-521 identity key pair."""
    private_key = ec.generate_private_key(CURVE())
    return private_key, private_key.public_key()


def encode_private_key(key: ec.EllipticCurvePrivateKey) -> str:
    """Encode a private key as base64(PKCS#8 PEM)."""
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return base64.b64encode(pem).decode("ascii")


def encode_public_key(key: ec.EllipticCurvePublicKey) -> str:
    """Encode a public key as base64(SubjectPublicKeyInfo PEM)."""
    pem = key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return base64.b64encode(pem).decode("ascii")


def _pem_bytes(material: Union[str, bytes], kind: str) -> bytes:
    """Return PEM bytes from base64(PEM) or raw PEM input."""
    if isinstance(material, bytes):
        material = material.decode("ascii", errors="replace")
    material = material.strip()
    if material.startswith(_PEM_HEADER):
        try:
            return material.encode("ascii")
        except UnicodeEncodeError as err:
            raise KeyDecodeError(f"{kind} key is not valid PEM: {err}") from err
    try:
        return base64.b64decode(material, validate=True)
    except (binascii.Error, ValueError) as err:
        raise KeyDecodeError(f"{kind} key is not valid base64: {err}") from err


def decode_private_key(material: Union[str, bytes]) -> ec.EllipticCurvePrivateKey:
    """Decode base64(PEM) private key material into an EC private key.

    Raises:
        KeyDecodeError: If the material is not an EC private key.
    """
    pem = _pem_bytes(material, "private")
    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as err:
        raise KeyDecodeError(f"private key can not be decoded: {err}") from err
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise KeyDecodeError(
            f"private key is not an elliptic curve key (got {type(key).__name__})"
        )
    return key


def decode_public_key(material: Union[str, bytes]) -> ec.EllipticCurvePublicKey:
    """Decode base64(PEM) public key material into an EC public key.

    Raises:
        KeyDecodeError: If the material is not an EC public key.
    """
    if not material:
        raise KeyDecodeError("public key is empty")
    pem = _pem_bytes(material, "public")
    try:
        key = serialization.load_pem_public_key(pem)
    except (ValueError, TypeError, UnsupportedAlgorithm) as err:
        raise KeyDecodeError(f"public key can not be decoded: {err}") from err
    if not isinstance(key, ec.EllipticCurvePublicKey):
        raise KeyDecodeError(
            f"public key is not an elliptic curve key (got {type(key).__name__})"
        )
    return key
