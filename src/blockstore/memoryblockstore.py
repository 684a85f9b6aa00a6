"""In-memory BlockStore for tests and short-lived processes.

Blocks live in a dictionary owned by the handle and are lost when it is dropped.
"""
import logging
import threading
from contextlib import closing

from blockstore import blockstore_config, verifier
from blockstore.address import Address, clean_algorithm
from blockstore.blockstore import BlockStore
from blockstore.blockstore_exceptions import IntegrityViolation, NotFound
from blockstore.fileblockstore import Stream
from blockstore.pathmapper import PathMapper


class MemoryBlockStore(BlockStore):
    """Content-addressable storage in a dictionary keyed by the location a
    `PathMapper` derives for each address.

    Accepts the same properties as `FileBlockStore`; every key is optional and
    `store_path` is ignored.
    """

    def __init__(self, properties=None):
        properties = properties or {}
        self.algorithm = clean_algorithm(
            properties.get("store_algorithm") or blockstore_config.DEFAULT_ALGORITHM
        )
        self.mapper = PathMapper(
            int(properties.get("store_prefix_length", blockstore_config.PREFIX_LENGTH)),
            int(properties.get("store_suffix_levels", blockstore_config.SUFFIX_LEVELS)),
        )
        self._blocks = {}
        self._lock = threading.Lock()
        logging.debug(
            "MemoryBlockStore - Initialization success. Algorithm: %s", self.algorithm
        )

    def put(self, data, algorithm=None):
        if algorithm is None:
            checked_algorithm = self.algorithm
        else:
            checked_algorithm = clean_algorithm(algorithm)

        stream = Stream(data)
        with closing(stream):
            content = b"".join(stream)
        address = verifier.compute(content, checked_algorithm)
        location = self.mapper.locate(address)

        with self._lock:
            existing = self._blocks.get(location)
            if existing is None:
                self._blocks[location] = content
            elif not verifier.verify(address, existing):
                exception_string = (
                    f"MemoryBlockStore - put: Existing block at {location} does not hash"
                    + f" to its address: {address}."
                )
                logging.critical(exception_string)
                raise IntegrityViolation(exception_string)

        logging.info("MemoryBlockStore - put: Successfully put block: %s", address)
        return address

    def get(self, address):
        address = Address.coerce(address)
        location = self.mapper.locate(address)
        with self._lock:
            content = self._blocks.get(location)
        if content is None:
            exception_string = f"MemoryBlockStore - get: No block found for address: {address}"
            logging.debug(exception_string)
            raise NotFound(exception_string)
        if not verifier.verify(address, content):
            exception_string = (
                f"MemoryBlockStore - get: Block at {location} does not hash to its"
                + f" address: {address}. The block is corrupted."
            )
            logging.critical(exception_string)
            raise IntegrityViolation(exception_string)
        return content

    def has(self, address):
        location = self.mapper.locate(address)
        with self._lock:
            return location in self._blocks

    def delete(self, address):
        location = self.mapper.locate(address)
        with self._lock:
            self._blocks.pop(location, None)
        logging.info("MemoryBlockStore - delete: Deleted block at: %s", location)

    def addresses(self):
        with self._lock:
            locations = list(self._blocks)
        for location in locations:
            yield Address.from_text(location.rsplit("/", 1)[-1])

    def sweep(self, grace_period=None):
        # Writes never leave temporary state behind
        return 0
