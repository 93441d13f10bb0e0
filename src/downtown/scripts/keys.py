"""Generate the RSA key pair used to sign session tokens.

Usage:
  python -m downtown.scripts.keys --out keys/
"""

from __future__ import annotations

import argparse
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

DEFAULT_KEY_SIZE = 2048


def generate_key_pair(key_size: int = DEFAULT_KEY_SIZE) -> tuple[str, str]:
    """Return a fresh ``(private_pem, public_pem)`` pair."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return private_pem.decode("utf-8"), public_pem.decode("utf-8")


def write_key_pair(directory: Path, key_size: int = DEFAULT_KEY_SIZE) -> tuple[Path, Path]:
    directory.mkdir(parents=True, exist_ok=True)
    private_pem, public_pem = generate_key_pair(key_size)

    private_path = directory / "jwt_private.pem"
    public_path = directory / "jwt_public.pem"
    private_path.write_text(private_pem, encoding="utf-8")
    private_path.chmod(0o600)
    public_path.write_text(public_pem, encoding="utf-8")
    return private_path, public_path


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Generate JWT signing keys")
    parser.add_argument("--out", type=Path, default=Path("keys"), help="Output directory")
    parser.add_argument("--bits", type=int, default=DEFAULT_KEY_SIZE, help="RSA key size")
    args = parser.parse_args(argv)

    private_path, public_path = write_key_pair(args.out, args.bits)
    print(f"Wrote {private_path} and {public_path}")
    print(f"Set JWT_PRIVATE_KEY_FILE={private_path} to use them")


if __name__ == "__main__":
    main()
