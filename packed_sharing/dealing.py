"""
Packed Sharing: dealing pipeline.

Deal, recover, verify, save and load share sets produced by a packed scheme.

A dealing is:
1. A vector of secrets shared with a PackedSecretSharing configuration
2. The public configuration, stored alongside a dealing id
3. One portable share string per participant

Any reconstruct_limit share holders cooperating can recover every secret.
The CRC on each share string catches transcription errors; it is not an
integrity check against a malicious share holder.
"""

import binascii
import json
import logging
import struct
import time
from pathlib import Path
from secrets import token_hex

from .errors import ShareError
from .packed import PackedSecretSharing

logger = logging.getLogger(__name__)

SHARE_VERSION = 'PACKED_SHARE_v1'


class Dealing:
    """Public record of one share vector: id, scheme and metadata."""

    def __init__(self, dealing_id: str, scheme: PackedSecretSharing,
                 created_at: float = None, metadata: dict = None):
        self.dealing_id = dealing_id
        self.scheme = scheme
        self.created_at = created_at or time.time()
        self.metadata = metadata or {}

    def to_dict(self) -> dict:
        return {
            'version': 'packed_dealing_v1',
            'dealing_id': self.dealing_id,
            'scheme': self.scheme.to_dict(),
            'reconstruct_limit': self.scheme.reconstruct_limit,
            'created_at': self.created_at,
            'metadata': self.metadata,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict) -> 'Dealing':
        if data.get('version') != 'packed_dealing_v1':
            raise ShareError(f"Unknown dealing version: {data.get('version')}")
        return cls(
            dealing_id=data['dealing_id'],
            scheme=PackedSecretSharing.from_dict(data['scheme']),
            created_at=data.get('created_at'),
            metadata=data.get('metadata'),
        )


def new_dealing_id() -> str:
    """Random 16 hex char id, independent of the shares."""
    return token_hex(8)


def format_share(did: str, index: int, value: int) -> str:
    """
    Format a share as a portable string.

    Format: PACKED_SHARE_v1:<dealing_id>:<rank>:<value_hex>:<crc32>
    """
    payload = f"{SHARE_VERSION}:{did}:{index:03d}:{value:x}"
    checksum = struct.pack('>I', _crc32(payload.encode())).hex()
    return f"{payload}:{checksum}"


def parse_share(share_str: str) -> tuple:
    """
    Parse a formatted share string.

    Returns: (dealing_id, rank, value)
    Raises ShareError if format or checksum is invalid.
    """
    parts = share_str.strip().split(':')
    if len(parts) != 5:
        raise ShareError(f"Invalid share format: expected 5 parts, got {len(parts)}")

    if parts[0] != SHARE_VERSION:
        raise ShareError(f"Unknown share version: {parts[0]}")

    did = parts[1]
    try:
        index = int(parts[2])
        value = int(parts[3], 16)
    except ValueError:
        raise ShareError(f"Malformed share rank or value: {share_str.strip()!r}") from None
    checksum = parts[4]

    payload = f"{SHARE_VERSION}:{did}:{index:03d}:{value:x}"
    expected = struct.pack('>I', _crc32(payload.encode())).hex()
    if checksum != expected:
        raise ShareError("Share checksum mismatch (corrupted share)")

    return did, index, value


def _crc32(data: bytes) -> int:
    """CRC32 checksum (unsigned)."""
    return binascii.crc32(data) & 0xFFFFFFFF


def deal(scheme: PackedSecretSharing, secrets: list,
         label: str = None, rng=None) -> tuple:
    """
    Share a vector of secrets.

    Args:
        scheme: The packed scheme configuration
        secrets: secret_count field elements
        label: Optional human-readable label (stored in metadata)
        rng: RandomSource for the sharing randomness

    Returns:
        (Dealing, shares_list)
        - Dealing with the id, configuration and metadata
        - List of formatted share strings, one per rank
    """
    shares = scheme.share(secrets, rng=rng)
    did = new_dealing_id()

    formatted_shares = [format_share(did, index, value)
                        for index, value in enumerate(shares)]

    metadata = {
        'secret_count': scheme.secret_count,
        'share_count': scheme.share_count,
    }
    if label:
        metadata['label'] = label

    logger.debug("Dealing %s: %d shares", did, len(formatted_shares))
    return Dealing(dealing_id=did, scheme=scheme, metadata=metadata), formatted_shares


def recover(shares: list, dealing: Dealing) -> list:
    """
    Recover the secrets from formatted share strings.

    Args:
        shares: Formatted share strings (at least reconstruct_limit)
        dealing: The dealing the shares belong to

    Returns:
        The secret vector

    Raises:
        ShareError: If shares are malformed, from another dealing, or too few
    """
    limit = dealing.scheme.reconstruct_limit
    if len(shares) < limit:
        raise ShareError(f"Need at least {limit} shares, got {len(shares)}")

    indices = []
    values = []
    for share_str in shares:
        did, index, value = parse_share(share_str)
        if did != dealing.dealing_id:
            raise ShareError(
                f"Share {index} belongs to dealing {did}, expected {dealing.dealing_id}. "
                "Cannot mix shares from different dealings."
            )
        indices.append(index)
        values.append(value)

    return dealing.scheme.reconstruct(indices, values)


def verify_shares(shares: list) -> dict:
    """
    Verify a set of shares without reconstructing.

    Returns dict with:
        - valid: bool (all shares parse and checksums match)
        - dealing_id: the common dealing id
        - share_count: how many valid shares
        - indices: list of share ranks
        - errors: list of error messages for invalid shares
    """
    result = {
        'valid': True,
        'dealing_id': None,
        'share_count': 0,
        'indices': [],
        'errors': [],
    }

    for i, share_str in enumerate(shares):
        try:
            did, index, _ = parse_share(share_str)
        except ShareError as e:
            result['errors'].append(f"Share {i+1}: {e}")
            result['valid'] = False
            continue

        if result['dealing_id'] is None:
            result['dealing_id'] = did
        elif did != result['dealing_id']:
            result['errors'].append(
                f"Share {i+1}: dealing id mismatch ({did} vs {result['dealing_id']})"
            )
            result['valid'] = False
            continue

        if index in result['indices']:
            result['errors'].append(f"Share {i+1}: duplicate rank {index}")
            result['valid'] = False
            continue

        result['indices'].append(index)
        result['share_count'] += 1

    return result


def save_dealing(dealing: Dealing, output_dir: str) -> dict:
    """
    Save a dealing record to disk.

    Creates:
        <output_dir>/<dealing_id>/dealing.json

    Returns dict with file paths.
    """
    dealing_dir = Path(output_dir) / dealing.dealing_id
    dealing_dir.mkdir(parents=True, exist_ok=True)

    meta_path = dealing_dir / 'dealing.json'
    meta_path.write_text(dealing.to_json())

    return {
        'metadata': str(meta_path),
        'directory': str(dealing_dir),
    }


def load_dealing(path: str) -> Dealing:
    """Load a dealing record from a dealing.json file or its directory."""
    path = Path(path)
    if path.is_dir():
        path = path / 'dealing.json'
    return Dealing.from_dict(json.loads(path.read_text()))


def save_shares(shares: list, output_dir: str) -> list:
    """
    Save individual shares to separate files.

    Creates: <output_dir>/share_000.txt, share_001.txt, etc.
    Each file contains exactly one share string.

    Returns list of file paths.
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    paths = []
    for i, share_str in enumerate(shares):
        path = out / f"share_{i:03d}.txt"
        path.write_text(share_str + '\n')
        paths.append(str(path))

    return paths


def load_shares(paths: list) -> list:
    """Load shares from files. Each file contains one share string."""
    return [Path(p).read_text().strip() for p in paths]
