"""Named, mutable pointers to block addresses.

Blocks never change, so anything that needs a stable name for changing content (the
head of a log, the latest version of a document) keeps a pointer here and moves it
with `put`. Pointers are kept next to the blocks of a `FileBlockStore`, in
`<store_path>/refs/`.
"""
import fcntl
import logging
import os

from blockstore import verifier
from blockstore.address import Address
from blockstore.blockstore_exceptions import DeleteError, NotFound, ReadError, WriteError


class FileAddressMap:
    """Map from keys to addresses, stored as one small file per key.

    A key's file is found by hashing the key with the store's algorithm and sharding the
    resulting multihash with the store's `PathMapper`. The file holds the canonical
    binary form of the address. Updates are written to a temporary file in the store's
    `tmp/` directory and renamed into place, so a reader sees the old or the new
    address, never a mix. `put` and `remove` hold an exclusive lock on `<root>/.lock`
    while they read the previous value and replace it, so each previous value returned
    is seen by exactly one caller.

    :param FileBlockStore store: Store whose root, algorithm and layout are shared.
    :param str name: Name of the directory below the store root.
    """

    def __init__(self, store, name="refs"):
        self.store = store
        self.root = os.path.join(store.root, name)
        self.store._create_path(self.root)
        self.lock_path = os.path.join(self.root, ".lock")

    def exists(self, key):
        """Check whether `key` currently points to an address.

        :param mixed key: String or bytes.

        :return: bool - True if a pointer exists.
        """
        return os.path.isfile(self._build_path(key))

    def get(self, key):
        """Return the address `key` points to.

        :param mixed key: String or bytes.

        :raises NotFound: If `key` does not point to an address.

        :return: Address - Current value of the pointer.
        """
        abs_file_path = self._build_path(key)
        try:
            with open(abs_file_path, "rb") as ref_file:
                content = ref_file.read()
        except FileNotFoundError as fnfe:
            exception_string = f"FileAddressMap - get: No address found for key: {key!r}"
            logging.debug(exception_string)
            raise NotFound(exception_string) from fnfe
        except OSError as err:
            exception_string = (
                f"FileAddressMap - get: Unable to read {abs_file_path}: {err}"
            )
            logging.error(exception_string)
            raise ReadError(exception_string) from err
        return Address.from_bytes(content)

    def put(self, key, address):
        """Point `key` at `address`.

        :param mixed key: String or bytes.
        :param mixed address: Address, its canonical text or its canonical bytes.

        :return: Address - The previous value, or None if `key` was new.
        """
        address = Address.coerce(address)
        abs_file_path = self._build_path(key)

        tmp = None
        try:
            self.store._create_path(os.path.dirname(abs_file_path))
            tmp = self.store._mktmpfile(self.store.tmp)
            with tmp as tmp_file:
                tmp_file.write(address.to_bytes())
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            with open(self.lock_path, "a", encoding="utf8") as lock_file:
                # Held until the new value is in place
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                try:
                    previous = self.get(key)
                except NotFound:
                    previous = None
                os.replace(tmp.name, abs_file_path)
        except OSError as err:
            exception_string = (
                f"FileAddressMap - put: Unable to point key {key!r} at {address}: {err}"
            )
            logging.error(exception_string)
            raise WriteError(exception_string) from err
        finally:
            if tmp is not None:
                self.store._remove_if_exists(tmp.name)

        logging.info("FileAddressMap - put: Key %r now points at %s", key, address)
        return previous

    def remove(self, key):
        """Remove the pointer for `key`.

        :param mixed key: String or bytes.

        :raises NotFound: If `key` does not point to an address.

        :return: Address - The value that was removed.
        """
        try:
            with open(self.lock_path, "a", encoding="utf8") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                previous = self.get(key)
                os.remove(self._build_path(key))
        except OSError as err:
            exception_string = f"FileAddressMap - remove: Unable to remove {key!r}: {err}"
            logging.error(exception_string)
            raise DeleteError(exception_string) from err
        logging.info("FileAddressMap - remove: Removed key %r", key)
        return previous

    def _build_path(self, key):
        """Build the absolute file path for a given key."""
        if isinstance(key, str):
            key = key.encode("utf-8")
        key_address = verifier.compute(key, self.store.algorithm, version=None)
        paths = self.store.mapper.shard(key_address.to_text())
        return os.path.join(self.root, *paths)
