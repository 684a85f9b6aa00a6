"""Core module for FileBlockStore"""

import io
import logging
import os
import time
from contextlib import closing
from pathlib import Path
from tempfile import NamedTemporaryFile

import yaml

from blockstore import blockstore_config, verifier
from blockstore.address import Address, clean_algorithm
from blockstore.blockstore import BlockStore
from blockstore.blockstore_exceptions import (
    IntegrityViolation,
    InvalidAddress,
    LayoutMismatch,
    NotFound,
    OpenError,
    ReadError,
    DeleteError,
    WriteError,
    UnsupportedAlgorithm,
)
from blockstore.pathmapper import PathMapper


class FileBlockStore(BlockStore):
    """FileBlockStore stores blocks as files below a root directory, each file named
    by the content address of its bytes and sharded into subdirectories by a
    `PathMapper`.

    FileBlockStore initializes using a given properties dictionary containing the
    required keys (see below). Upon initialization, FileBlockStore verifies the
    provided properties against the layout marker 'blockstore.yaml' found at the
    store path, or writes the marker if the store is new. Properties must always be
    supplied to ensure consistent usage of a store root once configured.

    Layout of a store root::

        blockstore.yaml     layout marker
        blocks/             sharded block files
        tmp/                files being written, and blocks pending deletion

    Writes go to a temporary file in `tmp/` and are renamed into `blocks/`, so a
    reader only ever sees complete blocks. `tmp/` and `blocks/` must live on the same
    volume; this is checked on initialization.

    :param dict properties: A Python dictionary with the following keys (and values):
        - store_path (str): Path to the BlockStore directory.
        - store_algorithm (str): Default algorithm used to calculate addresses.
        - store_prefix_length (int): Width of each shard directory name.
        - store_suffix_levels (int): Shard directory levels below the first one.
        - store_tmp_grace_period (float, optional): Age in seconds after which an
          abandoned temporary file is swept.
    """

    # Property (blockstore configuration) requirements
    property_required_keys = [
        "store_path",
        "store_algorithm",
        "store_prefix_length",
        "store_suffix_levels",
    ]
    # Permissions settings for writing files and creating directories
    fmode = 0o664
    dmode = 0o755
    # Blocks pending deletion are renamed into `tmp/` with this suffix
    delete_suffix = "_delete"

    def __init__(self, properties=None):
        if properties:
            # Validate properties against existing configuration if present
            checked_properties = self._validate_properties(properties)
            (
                prop_store_path,
                prop_store_algorithm,
                prop_store_prefix_length,
                prop_store_suffix_levels,
            ) = [
                checked_properties[property_name]
                for property_name in self.property_required_keys
            ]

            self.root = prop_store_path
            self.algorithm = prop_store_algorithm
            self.mapper = PathMapper(prop_store_prefix_length, prop_store_suffix_levels)
            self.tmp_grace_period = checked_properties.get(
                "store_tmp_grace_period", blockstore_config.TMP_GRACE_PERIOD
            )
            self.blockstore_configuration_yaml = os.path.join(
                self.root, "blockstore.yaml"
            )
            self.blocks = os.path.join(self.root, "blocks")
            self.tmp = os.path.join(self.root, "tmp")

            # Check to see if a configuration is present in the given store path
            self._verify_blockstore_properties(checked_properties)

            try:
                self._create_path(self.tmp)
                if not os.path.exists(self.blockstore_configuration_yaml):
                    logging.debug(
                        "FileBlockStore - BlockStore does not exist & configuration file"
                        + " not found. Writing configuration file."
                    )
                    try:
                        self._write_properties(checked_properties)
                    except FileExistsError:
                        # Another process initialized the root first
                        self._verify_blockstore_properties(checked_properties)
                self._create_path(self.blocks)
            except OSError as err:
                exception_string = (
                    f"FileBlockStore - Unable to initialize store at {self.root}: {err}"
                )
                logging.critical(exception_string)
                raise OpenError(exception_string) from err

            self._verify_same_volume()
            self.sweep()
            logging.debug(
                "FileBlockStore - Initialization success. Store root: %s", self.root
            )
        else:
            # Cannot instantiate or initialize FileBlockStore without config
            exception_string = (
                "FileBlockStore - BlockStore properties must be supplied."
                + f" Properties: {properties}"
            )
            logging.debug(exception_string)
            raise ValueError(exception_string)

    # Configuration and Related Methods

    @staticmethod
    def _load_properties(blockstore_yaml_path):
        """Get and return the contents of the current BlockStore configuration.

        :return: BlockStore properties with the following keys (and values):
            - ``store_layout_version`` (int): Version of the on-disk layout.
            - ``store_algorithm`` (str): Default algorithm used to calculate addresses.
            - ``store_prefix_length`` (int): Width of each shard directory name.
            - ``store_suffix_levels`` (int): Shard directory levels below the first.
        :rtype: dict
        """
        if not os.path.exists(blockstore_yaml_path):
            exception_string = (
                "FileBlockStore - load_properties: blockstore.yaml not found"
                + " in store root path."
            )
            logging.critical(exception_string)
            raise FileNotFoundError(exception_string)

        # Open file
        try:
            with open(blockstore_yaml_path, "r", encoding="utf-8") as bs_yaml_file:
                yaml_data = yaml.safe_load(bs_yaml_file)
        except yaml.YAMLError as ye:
            exception_string = (
                "FileBlockStore - load_properties: Unable to parse blockstore.yaml at"
                + f" {blockstore_yaml_path}: {ye}"
            )
            logging.critical(exception_string)
            raise LayoutMismatch(exception_string) from ye

        marker_keys = [
            "store_layout_version",
            "store_algorithm",
            "store_prefix_length",
            "store_suffix_levels",
        ]
        if not isinstance(yaml_data, dict) or any(
            key not in yaml_data for key in marker_keys
        ):
            exception_string = (
                "FileBlockStore - load_properties: blockstore.yaml at"
                + f" {blockstore_yaml_path} is incomplete or unreadable."
            )
            logging.critical(exception_string)
            raise LayoutMismatch(exception_string)

        blockstore_yaml_dict = {key: yaml_data[key] for key in marker_keys}
        logging.debug(
            "FileBlockStore - load_properties: Successfully retrieved 'blockstore.yaml'"
            + " properties."
        )
        return blockstore_yaml_dict

    def _write_properties(self, properties):
        """Publish 'blockstore.yaml' to FileBlockStore's root directory with the
        respective properties object supplied. The marker is written to a temporary
        file first and hard linked into place, so it appears complete or not at all.

        :param dict properties: Validated properties.

        :raises FileExistsError: If the marker already exists.
        """
        blockstore_configuration_yaml = self._build_blockstore_yaml_string(
            blockstore_config.LAYOUT_VERSION,
            properties["store_algorithm"],
            properties["store_prefix_length"],
            properties["store_suffix_levels"],
        )
        tmp = self._mktmpfile(self.tmp)
        try:
            with tmp as tmp_file:
                tmp_file.write(blockstore_configuration_yaml.encode("utf-8"))
                tmp_file.flush()
                os.fsync(tmp_file.fileno())
            # Unlike a rename, a link fails if the marker already exists
            os.link(tmp.name, self.blockstore_configuration_yaml)
        finally:
            self._remove_if_exists(tmp.name)

        logging.debug(
            "FileBlockStore - write_properties: Configuration file written to: %s",
            self.blockstore_configuration_yaml,
        )

    @staticmethod
    def _build_blockstore_yaml_string(
        store_layout_version, store_algorithm, store_prefix_length, store_suffix_levels
    ):
        """Build a YAML string representing the configuration for a BlockStore.

        :param int store_layout_version: Version of the on-disk layout.
        :param str store_algorithm: Default algorithm used to calculate addresses.
        :param int store_prefix_length: Width of each shard directory name.
        :param int store_suffix_levels: Shard directory levels below the first one.

        :return: A YAML string representing the configuration for a BlockStore.
        :rtype: str
        """
        blockstore_configuration_yaml = f"""
        # Layout marker for a BlockStore root

        store_layout_version: {store_layout_version}

        ############### Directory Structure ###############
        # Width of each directory name cut from the tail of a block's address
        store_prefix_length: {store_prefix_length}  # WARNING: DO NOT CHANGE UNLESS SETTING UP NEW BLOCKSTORE
        # Directory levels below the first one
        store_suffix_levels: {store_suffix_levels}  # WARNING: DO NOT CHANGE UNLESS SETTING UP NEW BLOCKSTORE
        # Example:
        # Below, a block is shown in directories that are 2 levels deep
        # (store_suffix_levels=1), each directory name being 2 characters wide
        # (store_prefix_length=2). The file name is the full address.
        #    /var/blockstore/blocks
        #    └── c4
        #        └── ye
        #            └── bafkreibm6jg3ux5qumhcn2b3flc3tyu6dmlb4xa7u5bf44yegnrjhc4yeq

        ############### Hash Algorithms ###############
        # Algorithm used to calculate a block's address when the caller does not name one
        store_algorithm: "{store_algorithm}"
        """
        return blockstore_configuration_yaml

    def _verify_blockstore_properties(self, properties):
        """Determines whether FileBlockStore can instantiate by validating a set of
        arguments and throwing exceptions. FileBlockStore will not instantiate if an
        existing configuration file's properties (`blockstore.yaml`) are different from
        what is supplied - or if a block directory exists at the given path, but it is
        missing the `blockstore.yaml` config file.

        :param dict properties: Validated properties.

        :raises LayoutMismatch: If the store root is configured differently.
        """
        # Openers publish the marker before creating blocks/, so look at blocks/ first
        blocks_present = os.path.isdir(self.blocks)
        if os.path.exists(self.blockstore_configuration_yaml):
            logging.debug(
                "FileBlockStore - Config found (blockstore.yaml) at {%s}. Verifying"
                + " properties.",
                self.blockstore_configuration_yaml,
            )
            blockstore_yaml_dict = self._load_properties(
                self.blockstore_configuration_yaml
            )
            if (
                blockstore_yaml_dict["store_layout_version"]
                != blockstore_config.LAYOUT_VERSION
            ):
                exception_string = (
                    "FileBlockStore - Layout version"
                    + f" ({blockstore_yaml_dict['store_layout_version']}) found at:"
                    + f" {self.blockstore_configuration_yaml} is not supported."
                    + f" Expected: {blockstore_config.LAYOUT_VERSION}"
                )
                logging.critical(exception_string)
                raise LayoutMismatch(exception_string)
            try:
                blockstore_yaml_dict["store_algorithm"] = clean_algorithm(
                    blockstore_yaml_dict["store_algorithm"]
                )
            except UnsupportedAlgorithm as ua:
                raise LayoutMismatch(
                    "FileBlockStore - Algorithm in blockstore.yaml is not supported:"
                    + f" {blockstore_yaml_dict['store_algorithm']}"
                ) from ua
            for key in self.property_required_keys:
                # 'store_path' is required to init BlockStore but not saved in the marker
                if key != "store_path":
                    if blockstore_yaml_dict[key] != properties[key]:
                        exception_string = (
                            f"FileBlockStore - Given properties ({key}: {properties[key]})"
                            + f" does not match. BlockStore configuration ({key}:"
                            + f" {blockstore_yaml_dict[key]}) found at:"
                            + f" {self.blockstore_configuration_yaml}"
                        )
                        logging.critical(exception_string)
                        raise LayoutMismatch(exception_string)
        elif blocks_present:
            exception_string = (
                "FileBlockStore - Unable to initialize BlockStore. `blockstore.yaml` is"
                + " not present but a conflicting '/blocks' directory exists. Please"
                + " delete '/blocks' at the store path or supply a new path."
            )
            logging.critical(exception_string)
            raise LayoutMismatch(exception_string)

    def _validate_properties(self, properties):
        """Validate a properties dictionary by checking if it contains all the
        required keys and usable values.

        :param dict properties: Dictionary containing FileBlockStore properties.

        :raises KeyError: If key is missing from the required keys.
        :raises ValueError: If a value is missing or malformed, or if the optional
            `store_tmp_grace_period` is not a non-negative number.
        :raises UnsupportedAlgorithm: If the store algorithm is not in the registry.

        :return: A validated copy of the given properties.
        :rtype: dict
        """
        if not isinstance(properties, dict):
            exception_string = (
                "FileBlockStore - _validate_properties: Invalid argument -"
                + " expected a dictionary."
            )
            logging.debug(exception_string)
            raise ValueError(exception_string)

        checked_properties = {}
        for key in self.property_required_keys:
            if key not in properties:
                exception_string = (
                    "FileBlockStore - _validate_properties: Missing required"
                    + f" key: {key}."
                )
                logging.debug(exception_string)
                raise KeyError(exception_string)
            if properties.get(key) is None:
                exception_string = (
                    "FileBlockStore - _validate_properties: Value for key:"
                    + f" {key} is none."
                )
                logging.debug(exception_string)
                raise ValueError(exception_string)
            checked_properties[key] = properties[key]

        checked_properties["store_path"] = os.fspath(checked_properties["store_path"])
        for key in ("store_prefix_length", "store_suffix_levels"):
            try:
                checked_properties[key] = int(checked_properties[key])
            except (TypeError, ValueError) as err:
                exception_string = (
                    f"FileBlockStore - _validate_properties: {key} must be an"
                    + f" integer, got: {properties[key]!r}"
                )
                logging.debug(exception_string)
                raise ValueError(exception_string) from err
        checked_properties["store_algorithm"] = clean_algorithm(
            checked_properties["store_algorithm"]
        )
        grace_period = properties.get("store_tmp_grace_period")
        if grace_period is not None:
            try:
                grace_period = float(grace_period)
            except (TypeError, ValueError) as err:
                exception_string = (
                    "FileBlockStore - _validate_properties: store_tmp_grace_period"
                    + f" must be a number, got: {grace_period!r}"
                )
                logging.debug(exception_string)
                raise ValueError(exception_string) from err
            # NaN fails this comparison too
            if not grace_period >= 0:
                exception_string = (
                    "FileBlockStore - _validate_properties: store_tmp_grace_period"
                    + f" must not be negative, got: {grace_period!r}"
                )
                logging.debug(exception_string)
                raise ValueError(exception_string)
            checked_properties["store_tmp_grace_period"] = grace_period
        return checked_properties

    def _verify_same_volume(self):
        """Confirm that `tmp/` and `blocks/` share a device, as renames between them
        must be atomic."""
        if os.stat(self.tmp).st_dev != os.stat(self.blocks).st_dev:
            exception_string = (
                f"FileBlockStore - _verify_same_volume: {self.tmp} and {self.blocks}"
                + " are on different devices, blocks cannot be moved atomically."
            )
            logging.critical(exception_string)
            raise OpenError(exception_string)

    # Public API / BlockStore Interface Methods

    def put(self, data, algorithm=None):
        logging.debug("FileBlockStore - put: Request to put block.")
        if algorithm is None:
            checked_algorithm = self.algorithm
        else:
            checked_algorithm = clean_algorithm(algorithm)

        stream = Stream(data)
        with closing(stream):
            address, tmp_file_name = self._write_to_tmp_file_and_get_address(
                stream, checked_algorithm
            )
        try:
            self._move_to_permanent_location(address, tmp_file_name)
        finally:
            self._remove_if_exists(tmp_file_name)

        logging.info("FileBlockStore - put: Successfully put block: %s", address)
        return address

    def get(self, address):
        address = self._check_address(address, "get")
        abs_file_path = self._build_path(address)
        content = self._read_and_verify(address, abs_file_path)
        logging.info("FileBlockStore - get: Retrieved block: %s", address)
        return content

    def has(self, address):
        address = self._check_address(address, "has")
        return os.path.isfile(self._build_path(address))

    def delete(self, address):
        address = self._check_address(address, "delete")
        abs_file_path = self._build_path(address)
        delete_path = self._rename_path_for_deletion(abs_file_path)
        if delete_path is None:
            logging.debug(
                "FileBlockStore - delete: No block found for address: %s", address
            )
            return
        try:
            os.remove(delete_path)
        except FileNotFoundError:
            pass
        except OSError as err:
            # The block is already gone from `blocks/`, `sweep` reclaims the leftover
            logging.warning(
                "FileBlockStore - delete: Unable to remove %s, leaving it for sweep: %s",
                delete_path,
                err,
            )
        logging.info("FileBlockStore - delete: Deleted block: %s", address)

    def addresses(self):
        for dirpath, _, files in os.walk(self.blocks):
            for file in files:
                abs_file_path = os.path.join(dirpath, file)
                try:
                    address = Address.from_text(file)
                except InvalidAddress:
                    logging.warning(
                        "FileBlockStore - addresses: Skipping unexpected file: %s",
                        abs_file_path,
                    )
                    continue
                if self._build_path(address) != abs_file_path:
                    logging.warning(
                        "FileBlockStore - addresses: Skipping misplaced block: %s",
                        abs_file_path,
                    )
                    continue
                yield address

    def sweep(self, grace_period=None):
        """Remove files in `tmp/` last modified more than `grace_period` seconds ago.
        These are temporary files abandoned by interrupted writes, and blocks whose
        deletion was interrupted. A grace period shorter than the longest write in
        progress may remove the temporary file of that write, which then fails with
        a `WriteError`.

        :param float grace_period: Age threshold in seconds, defaults to the
            `store_tmp_grace_period` property.

        :return: int - Number of files removed.
        """
        if grace_period is None:
            grace_period = self.tmp_grace_period
        cutoff = time.time() - grace_period
        removed = 0
        for file_path in self._get_file_paths(Path(self.tmp)) or []:
            try:
                if os.path.getmtime(file_path) <= cutoff:
                    os.remove(file_path)
                    removed += 1
                    logging.debug("FileBlockStore - sweep: Removed %s", file_path)
            except FileNotFoundError:
                continue
        if removed:
            logging.info("FileBlockStore - sweep: Removed %s stale file(s).", removed)
        return removed

    # FileBlockStore Core Methods

    def _write_to_tmp_file_and_get_address(self, stream, algorithm):
        """Create a named temporary file from a `Stream` object and return its filename
        and the address of its content.

        :param Stream stream: Block stream.
        :param str algorithm: Algorithm used to calculate the address.

        :return: tuple - address, tmp.name
            - address (Address): Address of the content written.
            - tmp.name (str): Name of the temporary file created and written into.
        """
        tmp = None
        tmp_file_completion_flag = False
        try:
            tmp = self._mktmpfile(self.tmp)
            logging.debug(
                "FileBlockStore - _write_to_tmp_file_and_get_address: tmp file created:"
                + " %s, calculating address.",
                tmp.name,
            )
            hasher = verifier.new_hasher(algorithm)

            # tmp is a file-like object that is already opened for writing by default
            with tmp as tmp_file:
                for data in stream:
                    tmp_file.write(data)
                    hasher.update(data)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())

            address = verifier.address_from_hasher(algorithm, hasher)
            # Ready for the atomic move
            tmp_file_completion_flag = True
            return address, tmp.name
        except OSError as err:
            exception_string = (
                "FileBlockStore - _write_to_tmp_file_and_get_address:"
                + f" Unable to write temporary file: {err}"
            )
            logging.error(exception_string)
            raise WriteError(exception_string) from err
        finally:
            if not tmp_file_completion_flag and tmp is not None:
                self._remove_if_exists(tmp.name)

    def _move_to_permanent_location(self, address, tmp_file_name):
        """Atomically rename a completed temporary file to the permanent location of
        `address`. If a block is already stored there, it is verified instead and the
        temporary file is left for the caller to remove.

        :param Address address: Address of the temporary file's content.
        :param str tmp_file_name: Path of the completed temporary file.

        :raises IntegrityViolation: If the existing block does not hash to `address`.
        :raises WriteError: If the storage medium fails.
        """
        abs_file_path = self._build_path(address)

        # Files are stored once and only once
        if os.path.isfile(abs_file_path):
            logging.debug(
                "FileBlockStore - _move_to_permanent_location: Block exists at %s,"
                + " verifying existing content.",
                abs_file_path,
            )
            try:
                self._read_and_verify(address, abs_file_path)
                return
            except NotFound:
                logging.debug(
                    "FileBlockStore - _move_to_permanent_location: Block at %s was"
                    + " removed while verifying, moving new content into place.",
                    abs_file_path,
                )
            except ReadError as re:
                raise WriteError(
                    "FileBlockStore - _move_to_permanent_location: Unable to verify"
                    + f" existing block at {abs_file_path}: {re}"
                ) from re

        try:
            self._create_path(os.path.dirname(abs_file_path))
            logging.debug(
                "FileBlockStore - _move_to_permanent_location: Moving temp file to"
                + " permanent location: %s",
                abs_file_path,
            )
            os.replace(tmp_file_name, abs_file_path)
        except OSError as err:
            exception_string = (
                "FileBlockStore - _move_to_permanent_location: Block has not been stored"
                + f" for address: {address}. Unexpected error when moving tmp file to:"
                + f" {abs_file_path}. Error: {err}"
            )
            logging.warning(exception_string)
            raise WriteError(exception_string) from err

    def _read_and_verify(self, address, abs_file_path):
        """Read a block file and verify it against `address`.

        :raises NotFound: If the file does not exist.
        :raises ReadError: If the file cannot be read.
        :raises IntegrityViolation: If the content does not hash to `address`.

        :return: bytes - Content of the block.
        """
        try:
            with open(abs_file_path, "rb") as block_file:
                content = block_file.read()
        except FileNotFoundError as fnfe:
            exception_string = (
                f"FileBlockStore - _read_and_verify: No block found for address: {address}"
            )
            logging.debug(exception_string)
            raise NotFound(exception_string) from fnfe
        except OSError as err:
            exception_string = (
                f"FileBlockStore - _read_and_verify: Unable to read {abs_file_path}: {err}"
            )
            logging.error(exception_string)
            raise ReadError(exception_string) from err

        if not verifier.verify(address, content):
            exception_string = (
                f"FileBlockStore - _read_and_verify: Content of {abs_file_path} does not"
                + f" hash to its address: {address}. The block is corrupted."
            )
            logging.critical(exception_string)
            raise IntegrityViolation(exception_string)
        return content

    def _mktmpfile(self, path):
        """Create a temporary file at the given path ready to be written.

        :param str path: Path to the file location.

        :return: file object - object with a file-like interface.
        """
        # Physically create directory if it doesn't exist
        if os.path.exists(path) is False:
            self._create_path(path)

        tmp = NamedTemporaryFile(dir=path, delete=False)

        # Ensure tmp file is created with desired permissions
        if self.fmode is not None:
            os.chmod(tmp.name, self.fmode)
        return tmp

    def _rename_path_for_deletion(self, path):
        """Move a block file into `tmp/` with a '_delete' suffix so it leaves the block
        tree in one atomic step.

        :param str path: Path to the block file.

        :return: Path to the renamed file, or None if there was no file.
        :rtype: str
        """
        delete_path = os.path.join(self.tmp, os.path.basename(path) + self.delete_suffix)
        try:
            os.replace(path, delete_path)
        except FileNotFoundError:
            return None
        except OSError as err:
            exception_string = (
                f"FileBlockStore - _rename_path_for_deletion: Unable to delete {path}: {err}"
            )
            logging.error(exception_string)
            raise DeleteError(exception_string) from err
        return delete_path

    def _check_address(self, address, method):
        """Coerce the argument of a public method into an Address."""
        try:
            return Address.coerce(address)
        except InvalidAddress:
            logging.error(
                "FileBlockStore - %s: Invalid address supplied: %r", method, address
            )
            raise

    def _create_path(self, path):
        """Physically create the folder path (and all intermediate ones) on disk.

        :param str path: The path to create.
        :raises NotADirectoryError: If the path already exists but is not a directory.
        """
        try:
            os.makedirs(path, self.dmode)
        except FileExistsError as fee:
            if not os.path.isdir(path):
                raise NotADirectoryError(f"expected {path} to be a directory") from fee

    def _build_path(self, address):
        """Build the absolute file path for a given address.

        :param Address address: Address to build a file path for.

        :return: An absolute file path for the specified address.
        :rtype: str
        """
        paths = self.mapper.shard(address.to_text())
        return os.path.join(self.blocks, *paths)

    @staticmethod
    def _remove_if_exists(path):
        try:
            os.remove(path)
        except FileNotFoundError:
            pass

    @staticmethod
    def _get_file_paths(directory):
        """Get the file paths of a given directory if it exists

        :param Path directory: Path to directory.

        :return: file_paths - File paths of the given directory or None if directory
            doesn't exist
        :rtype: List
        """
        if os.path.exists(directory):
            files = os.listdir(directory)
            file_paths = [
                directory / file for file in files if os.path.isfile(directory / file)
            ]
            return file_paths
        else:
            return None


class Stream(object):
    """Common interface for bytes and file-like objects.

    The input `obj` can be bytes, a file-like object or a path to a file. Bytes are
    wrapped in an in-memory buffer. If `obj` is a path to a file, then it will be opened
    until :meth:`close` is called. If `obj` is a file-like object, then its original
    position will be restored when :meth:`close` is called instead of closing the object
    automatically. Closing of the stream is deferred to whatever process passed the
    stream in.

    Successive readings of the stream is supported without having to manually
    set its position back to ``0``.
    """

    def __init__(self, obj):
        if isinstance(obj, (bytes, bytearray, memoryview)):
            obj = io.BytesIO(obj)
            pos = None
        elif hasattr(obj, "read"):
            pos = obj.tell()
        elif isinstance(obj, (str, os.PathLike)) and os.path.isfile(obj):
            obj = io.open(obj, "rb")
            pos = None
        else:
            raise ValueError(
                "Object must be bytes, a valid file path or a readable object"
            )

        try:
            file_stat = os.stat(obj.name)
            buffer_size = file_stat.st_blksize
        except (AttributeError, TypeError, OSError):
            buffer_size = 8192

        self._obj = obj
        self._pos = pos
        self._buffer_size = buffer_size

    def __iter__(self):
        """Read underlying IO object and yield results. Return object to
        original position if we didn't open it originally.
        """
        self._obj.seek(0)

        while True:
            data = self._obj.read(self._buffer_size)

            if not data:
                break

            if isinstance(data, str):
                data = data.encode("utf-8")
            yield data

        if self._pos is not None:
            self._obj.seek(self._pos)

    def close(self):
        """Close underlying IO object if we opened it, else return it to
        original position.
        """
        if self._pos is None:
            self._obj.close()
        else:
            self._obj.seek(self._pos)
