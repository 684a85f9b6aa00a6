"""BlockStore is a content-addressable block store: immutable byte blobs are
persisted under an address derived from their content and retrieved by that same
address with cryptographic verification.

Some properties:

- Blocks are immutable and never change
- Blocks are named by their address, a CIDv1 (raw codec) wrapping the multihash of
    their contents, written in multibase base32 (ex. 'bafkrei...')
- Every read re-hashes the block, so a corrupted block is reported and never returned
- Writes go through a temporary file and an atomic rename, so concurrent readers and
    writers never observe a partially-written block
- Block files are sharded into subdirectories whose names are cut from the address
"""

from blockstore.blockstore import BlockStore, BlockStoreFactory, StoreConfig
from blockstore.address import Address
from blockstore.addressmap import FileAddressMap
from blockstore.fileblockstore import FileBlockStore
from blockstore.memoryblockstore import MemoryBlockStore

__all__ = (
    "Address",
    "BlockStore",
    "BlockStoreFactory",
    "FileAddressMap",
    "FileBlockStore",
    "MemoryBlockStore",
    "StoreConfig",
)
__version__ = "1.0.0"
