"""Hashing utilities for file integrity verification."""

import hashlib
from pathlib import Path

from treeseal.exceptions import ConfigError, DigestError

DEFAULT_ALGORITHM = "sha256"
DEFAULT_CHUNK_SIZE = 65536

# Manifest digests are fixed at 256 bits (64 hex characters)
DIGEST_SIZE_BYTES = 32


def ensure_algorithm(algorithm: str) -> None:
    """Check that hashlib provides a usable 256-bit algorithm.

    Args:
        algorithm: hashlib algorithm name (e.g. "sha256", "sha3_256").

    Raises:
        ConfigError: If the algorithm is unavailable or not 256-bit.
    """
    try:
        hash_obj = hashlib.new(algorithm)
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Hash algorithm '{algorithm}' is not available") from e

    if hash_obj.digest_size != DIGEST_SIZE_BYTES:
        raise ConfigError(
            f"Hash algorithm '{algorithm}' produces {hash_obj.digest_size * 8}-bit "
            f"digests; a 256-bit algorithm is required"
        )


def compute_digest(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Compute hash of in-memory data.

    Args:
        data: Bytes to hash.
        algorithm: hashlib algorithm name.

    Returns:
        Lowercase hexadecimal digest.
    """
    return hashlib.new(algorithm, data).hexdigest()


def compute_file_hash(
    path: Path,
    algorithm: str = DEFAULT_ALGORITHM,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> str:
    """Compute hash of file in chunks for memory efficiency.

    Args:
        path: Path to file.
        algorithm: hashlib algorithm name.
        chunk_size: Size of chunks to read.

    Returns:
        Lowercase hexadecimal digest.

    Raises:
        DigestError: If the file can't be opened or read. ``missing`` is set
            when the file no longer exists.
    """
    hash_obj = hashlib.new(algorithm)

    try:
        with open(path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                hash_obj.update(chunk)
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
        raise DigestError(str(path), e.strerror or str(e), missing=True) from e
    except OSError as e:
        raise DigestError(str(path), e.strerror or str(e)) from e

    return hash_obj.hexdigest()
