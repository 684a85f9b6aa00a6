"""BlockStore Interface"""
from abc import ABC, abstractmethod
from collections import namedtuple
import importlib.metadata
import importlib.util

from blockstore import blockstore_config


class StoreConfig(
    namedtuple(
        "StoreConfig",
        ["default_algorithm", "path_prefix_length", "path_suffix_levels"],
    )
):
    """Caller-facing configuration of a store root.

    The values are persisted in the root's layout marker when the root is first
    initialized and must match on every later open.

    :param str default_algorithm: Algorithm used by `put` when none is given.
    :param int path_prefix_length: Width of each shard directory name (>= 1).
    :param int path_suffix_levels: Shard directory levels below the first one (>= 0).
    """

    # Default value to prevent dangerous default value
    def __new__(
        cls,
        default_algorithm=blockstore_config.DEFAULT_ALGORITHM,
        path_prefix_length=blockstore_config.PREFIX_LENGTH,
        path_suffix_levels=blockstore_config.SUFFIX_LEVELS,
    ):
        return super(StoreConfig, cls).__new__(
            cls, default_algorithm, path_prefix_length, path_suffix_levels
        )

    def to_properties(self, store_path):
        """Return the properties dictionary accepted by BlockStore constructors."""
        return {
            "store_path": store_path,
            "store_algorithm": self.default_algorithm,
            "store_prefix_length": self.path_prefix_length,
            "store_suffix_levels": self.path_suffix_levels,
        }


class BlockStore(ABC):
    """BlockStore is a content-addressable block storage system. A block is an
    immutable sequence of bytes stored under the address derived from its content.

    Implementations are variants of one capability interface (`open`, `put`, `get`,
    `has`, `delete`); every handle is an explicit object owned by the caller.
    """

    @staticmethod
    def version():
        """Return the version number"""
        __version__ = importlib.metadata.version("blockstore")
        return __version__

    @classmethod
    def open(cls, root, config=None):
        """Open (and initialize if needed) a store at `root` with the given `StoreConfig`.

        :param str root: Path or location of the store.
        :param StoreConfig config: Store configuration, defaults to `StoreConfig()`.

        :return: BlockStore - An open store handle.
        """
        if config is None:
            config = StoreConfig()
        return cls(properties=config.to_properties(root))

    @abstractmethod
    def put(self, data, algorithm=None):
        """Store a block atomically and return its address. The address is computed with
        the store's default algorithm unless `algorithm` is given. Storing bytes that are
        already present is a successful no-op once the stored content has been verified.

        :param mixed data: Bytes, a readable binary stream or a path to a file.
        :param str algorithm: Algorithm overriding the store's default (optional).

        :raises UnsupportedAlgorithm: If the algorithm is not in the registry.
        :raises IntegrityViolation: If a block already stored at the address does not
            hash to it.
        :raises WriteError: If the storage medium fails.

        :return: Address - Address of the stored block.
        """
        raise NotImplementedError()

    @abstractmethod
    def get(self, address):
        """Retrieve the bytes of a block and verify them against `address`.

        :param mixed address: Address, its canonical text or its canonical bytes.

        :raises NotFound: If no block is stored at the address.
        :raises IntegrityViolation: If the stored bytes do not hash to the address.
        :raises ReadError: If the storage medium fails.

        :return: bytes - Content of the block.
        """
        raise NotImplementedError()

    @abstractmethod
    def has(self, address):
        """Check whether a block is stored at `address` without reading or verifying it.

        :param mixed address: Address, its canonical text or its canonical bytes.

        :return: bool - True if a block is present.
        """
        raise NotImplementedError()

    @abstractmethod
    def delete(self, address):
        """Remove the block stored at `address`. Deleting an absent block is not an error.
        No reference counting is done; callers must ensure the block is no longer needed.

        :param mixed address: Address, its canonical text or its canonical bytes.

        :raises DeleteError: If the storage medium fails.
        """
        raise NotImplementedError()

    @abstractmethod
    def addresses(self):
        """Iterate over the addresses of every stored block.

        :return: generator - Address objects.
        """
        raise NotImplementedError()

    @abstractmethod
    def sweep(self, grace_period=None):
        """Remove abandoned temporary files older than `grace_period` seconds.

        :param float grace_period: Age threshold, defaults to the store's setting.

        :return: int - Number of files removed.
        """
        raise NotImplementedError()


class BlockStoreFactory:
    """A factory class for creating `BlockStore`-like objects.

    The `BlockStoreFactory` class serves as a factory for creating `BlockStore`-like
    objects, which are classes that implement the 'BlockStore' abstract methods.

    This factory class provides a method to retrieve a `BlockStore` object based on a
    given module (e.g., "blockstore.fileblockstore") and class name (e.g.,
    "FileBlockStore").
    """

    @staticmethod
    def get_blockstore(module_name, class_name, properties=None):
        """Get a `BlockStore`-like object based on the specified `module_name` and
        `class_name`.

        :param str module_name: Name of the module (e.g., "blockstore.fileblockstore").
        :param str class_name: Name of the class in the given module (e.g.,
            "FileBlockStore").
        :param dict properties: Desired BlockStore properties (optional). If `None`,
            default values will be used where the class allows it. Example:
            {
                "store_path": "/var/blockstore",
                "store_algorithm": "sha2-256",
                "store_prefix_length": 2,
                "store_suffix_levels": 1,
            }

        :return: BlockStore - A block store object based on the given `module_name`
            and `class_name`.

        :raises ModuleNotFoundError: If the module is not found.
        :raises AttributeError: If the class does not exist within the module.
        """
        # Validate module
        if importlib.util.find_spec(module_name) is None:
            raise ModuleNotFoundError(f"No module found for '{module_name}'")

        # Get BlockStore
        imported_module = importlib.import_module(module_name)

        # If class is not part of module, raise error
        if hasattr(imported_module, class_name):
            blockstore_class = getattr(imported_module, class_name)
            return blockstore_class(properties=properties)
        raise AttributeError(
            f"Class name '{class_name}' is not an attribute of module '{module_name}'"
        )
