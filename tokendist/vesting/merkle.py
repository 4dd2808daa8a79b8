from __future__ import annotations

"""
Admission proofs against a published commitment root.

Leaves bind ``(account, pool_id, amount)`` the same way the widely used
"standard" Merkle tree format does::

    leaf = keccak256(keccak256(abi_encode(address, uint256, uint256)))

Interior nodes hash the *sorted* pair, so a proof is just the list of sibling
hashes from the leaf upward; no left/right flags are needed.

Only verification lives here. Building the tree from an allocation set is
done off-line.
"""

from typing import Iterable, Sequence, Union

from ..hashing import address_bytes, from_hex, keccak256

Node = Union[bytes, str]

_UINT256_MAX = 2**256 - 1


def _word(n: int) -> bytes:
    if not 0 <= n <= _UINT256_MAX:
        raise ValueError(f"value out of uint256 range: {n}")
    return int(n).to_bytes(32, "big")


def abi_encode_claim(account: str, pool_id: int, amount: int) -> bytes:
    """``abi.encode(address, uint256, uint256)``: three 32-byte words."""
    return address_bytes(account).rjust(32, b"\x00") + _word(pool_id) + _word(amount)


def leaf_hash(account: str, pool_id: int, amount: int) -> bytes:
    return keccak256(keccak256(abi_encode_claim(account, pool_id, amount)))


def _as_node(node: Node) -> bytes:
    raw = from_hex(node) if isinstance(node, str) else bytes(node)
    if len(raw) != 32:
        raise ValueError(f"proof nodes must be 32 bytes, got {len(raw)}")
    return raw


def hash_pair(a: bytes, b: bytes) -> bytes:
    return keccak256(a + b) if a < b else keccak256(b + a)


def process_proof(proof: Iterable[Node], leaf: bytes) -> bytes:
    """Root reconstructed by folding ``proof`` onto ``leaf``."""
    computed = bytes(leaf)
    for sibling in proof:
        computed = hash_pair(computed, _as_node(sibling))
    return computed


def verify_proof(proof: Sequence[Node], root: Node, leaf: bytes) -> bool:
    return process_proof(proof, leaf) == _as_node(root)


def verify_claim(proof: Sequence[Node], root: Node, account: str, pool_id: int, amount: int) -> bool:
    """True iff ``proof`` shows ``(account, pool_id, amount)`` is committed under ``root``."""
    return verify_proof(proof, root, leaf_hash(account, pool_id, amount))


__all__ = [
    "abi_encode_claim",
    "leaf_hash",
    "hash_pair",
    "process_proof",
    "verify_proof",
    "verify_claim",
]
