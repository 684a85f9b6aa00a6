"""Digest Verifier: computes the address of raw bytes and checks claimed addresses.

Every function here is pure and keeps no state, so it is safe to call from any
number of threads at once.
"""
from blockstore.address import (
    ALGORITHMS,
    CID_VERSION,
    Address,
    clean_algorithm,
    compute_digest,
)


def new_hasher(algorithm):
    """Return a fresh hasher for a registry algorithm, for incremental hashing.

    :param str algorithm: Algorithm tag or alias.

    :raises UnsupportedAlgorithm: If the algorithm is not in the registry.
    """
    return ALGORITHMS[clean_algorithm(algorithm)].factory()


def address_from_hasher(algorithm, hasher, version=CID_VERSION):
    """Finalize a hasher created by `new_hasher` into an Address."""
    return Address(algorithm, hasher.digest(), version)


def compute(data, algorithm, version=CID_VERSION):
    """Compute the address of `data`.

    :param bytes data: Raw bytes.
    :param str algorithm: Algorithm tag or alias.
    :param int version: `1` for a CIDv1 or `None` for a bare multihash.

    :return: Address of `data`.
    :rtype: Address
    """
    return Address(algorithm, compute_digest(data, algorithm), version)


def verify(address, data):
    """Check that `data` hashes to `address` under the address's own algorithm.

    :param Address address: Claimed address.
    :param bytes data: Raw bytes.

    :return: True if the recomputed address equals `address`.
    :rtype: bool
    """
    return compute(data, address.algorithm, address.version) == address
