"""Address must be returned for all BlockStore implementations.

An address is the canonical identifier of a block. It wraps the tag of the hash
algorithm, the raw digest of the block's bytes and an optional version tag:

- version ``1``: a CIDv1 using the ``raw`` codec
- version ``None``: a bare multihash

The binary and text forms come from the `multiformats` library. The text form is
the multibase base32 encoding of the binary form, e.g. ``bafkrei...`` for a
sha2-256 CIDv1.
"""
import hashlib
import logging
from collections import namedtuple

import blake3
from multiformats import CID, multibase, multihash

from blockstore.blockstore_exceptions import InvalidAddress, UnsupportedAlgorithm

CID_VERSION = 1
RAW_CODEC = "raw"
BASE32 = multibase.get("base32")


class HashAlgorithm(namedtuple("HashAlgorithm", ["name", "size", "factory"])):
    """Entry of the algorithm registry.

    :param str name: Canonical algorithm tag (multicodec name).
    :param int size: Digest size in bytes.
    :param callable factory: Returns a new hasher with `update` and `digest` methods.
    """


ALGORITHMS = {
    algo.name: algo
    for algo in (
        HashAlgorithm("sha2-256", 32, hashlib.sha256),
        HashAlgorithm("sha2-384", 48, hashlib.sha384),
        HashAlgorithm("sha2-512", 64, hashlib.sha512),
        HashAlgorithm("sha3-256", 32, hashlib.sha3_256),
        HashAlgorithm("sha3-384", 48, hashlib.sha3_384),
        HashAlgorithm("sha3-512", 64, hashlib.sha3_512),
        HashAlgorithm("blake2b-512", 64, hashlib.blake2b),
        HashAlgorithm("blake2s-256", 32, hashlib.blake2s),
        HashAlgorithm("blake3", 32, blake3.blake3),
        # Legacy algorithms, accepted so that existing digests can be addressed
        HashAlgorithm("sha1", 20, hashlib.sha1),
        HashAlgorithm("md5", 16, hashlib.md5),
    )
}

# Spellings found in the wild (hashlib names, DataONE/Java style names)
ALGORITHM_ALIASES = {
    "sha256": "sha2-256",
    "sha-256": "sha2-256",
    "sha384": "sha2-384",
    "sha-384": "sha2-384",
    "sha512": "sha2-512",
    "sha-512": "sha2-512",
    "sha3256": "sha3-256",
    "sha3384": "sha3-384",
    "sha3512": "sha3-512",
    "blake2b": "blake2b-512",
    "blake2s": "blake2s-256",
    "sha-1": "sha1",
}


def clean_algorithm(algorithm_string):
    """Format an algorithm name and ensure that it is part of the algorithm registry.

    :param str algorithm_string: Algorithm to validate (ex. "sha2-256", "SHA-256", "sha256").

    :return: Canonical algorithm tag.
    :rtype: str
    """
    if not isinstance(algorithm_string, str):
        exception_string = (
            f"address - clean_algorithm: Algorithm must be a string: {algorithm_string!r}"
        )
        logging.error(exception_string)
        raise UnsupportedAlgorithm(exception_string)
    cleaned_string = algorithm_string.strip().lower().replace("_", "-")
    cleaned_string = ALGORITHM_ALIASES.get(cleaned_string, cleaned_string)
    if cleaned_string not in ALGORITHMS:
        exception_string = (
            "address - clean_algorithm: Algorithm not supported: " + algorithm_string
        )
        logging.error(exception_string)
        raise UnsupportedAlgorithm(exception_string)
    return cleaned_string


def compute_digest(data, algorithm):
    """Compute the raw digest of `data` with the given registry algorithm."""
    hasher = ALGORITHMS[clean_algorithm(algorithm)].factory()
    hasher.update(data)
    return hasher.digest()


def encode_address(algorithm, digest, version=CID_VERSION):
    """Build the canonical binary form of an address.

    :param str algorithm: Algorithm tag.
    :param bytes digest: Raw digest.
    :param int version: `1` for a CIDv1 or `None` for a bare multihash.

    :return: Canonical bytes.
    :rtype: bytes
    """
    hash_algorithm = ALGORITHMS[clean_algorithm(algorithm)]
    if len(digest) != hash_algorithm.size:
        exception_string = (
            f"address - encode_address: {hash_algorithm.name} digest must be"
            + f" {hash_algorithm.size} bytes, got {len(digest)}."
        )
        logging.error(exception_string)
        raise InvalidAddress(exception_string)
    multihash_digest = multihash.wrap(bytes(digest), hash_algorithm.name)
    if version is None:
        return multihash_digest
    if version == CID_VERSION:
        return bytes(CID("base32", CID_VERSION, RAW_CODEC, multihash_digest))
    exception_string = f"address - encode_address: Unsupported version: {version}"
    logging.error(exception_string)
    raise InvalidAddress(exception_string)


def decode_address(canonical_bytes):
    """Parse the canonical binary form of an address.

    :param bytes canonical_bytes: Bytes produced by `encode_address`.

    :return: tuple - Algorithm tag, raw digest and version.
    """
    buffer = bytes(canonical_bytes)
    try:
        # No multihash uses the CIDv1 version byte as its code
        if buffer[:1] == bytes([CID_VERSION]):
            cid = CID.decode(buffer)
            if cid.codec.name != RAW_CODEC:
                raise InvalidAddress(
                    "address - decode_address: Unsupported content codec:"
                    + f" {cid.codec.name}"
                )
            algorithm, digest = cid.hashfun.name, bytes(cid.raw_digest)
            version = CID_VERSION
        else:
            code, digest = multihash.unwrap_raw(buffer)
            algorithm, digest = multihash.get(code=code).name, bytes(digest)
            version = None
    except (KeyError, ValueError) as err:
        raise InvalidAddress(
            f"address - decode_address: Cannot decode {buffer.hex()}: {err}"
        ) from err

    if algorithm not in ALGORITHMS:
        raise InvalidAddress(
            f"address - decode_address: Algorithm not supported: {algorithm}"
        )
    # Rejects truncated digests and any other non-canonical encoding
    if encode_address(algorithm, digest, version) != buffer:
        raise InvalidAddress(
            f"address - decode_address: Non-canonical address bytes: {buffer.hex()}"
        )
    return algorithm, digest, version


def address_to_text(address):
    """Return the multibase base32 text of an address."""
    return BASE32.encode(address.to_bytes())


def text_to_address(text):
    """Parse the multibase base32 text of an address."""
    if not isinstance(text, str):
        raise InvalidAddress(f"address - text_to_address: Not a string: {text!r}")
    try:
        canonical_bytes = BASE32.decode(text)
    except (KeyError, ValueError) as err:
        raise InvalidAddress(
            f"address - text_to_address: Not a base32 multibase string: {text!r}"
        ) from err
    address = Address.from_bytes(canonical_bytes)
    # Two spellings of one address would map to two locations
    if address_to_text(address) != text:
        raise InvalidAddress(
            f"address - text_to_address: Non-canonical address text: {text!r}"
        )
    return address


class Address(namedtuple("Address", ["algorithm", "digest", "version"])):
    """Content address of a block.

    Two addresses are equal iff their canonical binary encodings are equal. The algorithm
    tag is normalized on construction, so `Address("SHA-256", d)` equals
    `Address("sha2-256", d)`. An address never equals a plain tuple.

    Args:
        algorithm (str): Tag of the hash algorithm.
        digest (bytes): Raw digest of the block's bytes.
        version (int, optional): ``1`` for a CIDv1 (default) or ``None`` for a
            bare multihash.
    """

    # Default value to prevent dangerous default value
    def __new__(cls, algorithm, digest, version=CID_VERSION):
        return super(Address, cls).__new__(
            cls, clean_algorithm(algorithm), bytes(digest), version
        )

    @classmethod
    def _make(cls, iterable):
        # `_replace` goes through here, keep it normalizing
        return cls(*iterable)

    def __eq__(self, other):
        if not isinstance(other, Address):
            return False
        # Normalized fields encode one-to-one to the canonical bytes
        return tuple(self) == tuple(other)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash(tuple(self))

    def __str__(self):
        return self.to_text()

    def to_bytes(self):
        """Canonical binary form."""
        return encode_address(self.algorithm, self.digest, self.version)

    def to_text(self):
        """Canonical text form, used for file names and logging."""
        return address_to_text(self)

    def hex_digest(self):
        return self.digest.hex()

    @classmethod
    def from_bytes(cls, canonical_bytes):
        algorithm, digest, version = decode_address(canonical_bytes)
        return cls(algorithm, digest, version)

    @classmethod
    def from_text(cls, text):
        return text_to_address(text)

    @classmethod
    def coerce(cls, value):
        """Return `value` as an Address, accepting an Address, its text or its bytes."""
        if isinstance(value, Address):
            return value
        if isinstance(value, str):
            return cls.from_text(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls.from_bytes(value)
        raise InvalidAddress(f"Address - coerce: Cannot interpret {value!r} as an address")
