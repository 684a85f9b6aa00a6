"""Pytest overall configuration file for fixtures"""

import pytest
from blockstore.fileblockstore import FileBlockStore


@pytest.fixture(name="props")
def init_props(tmp_path):
    """Properties to initialize FileBlockStore."""
    directory = tmp_path / "blocks" / "blockstore"
    directory.mkdir(parents=True)
    blockstore_path = directory.as_posix()
    # Note, blocks generated via tests are placed in a temporary folder
    # with the 'directory' parameter above appended
    properties = {
        "store_path": blockstore_path,
        "store_algorithm": "sha2-256",
        "store_prefix_length": 2,
        "store_suffix_levels": 1,
    }
    return properties


@pytest.fixture(name="store")
def init_store(props):
    """Create FileBlockStore instance for all tests."""
    store = FileBlockStore(props)
    return store


@pytest.fixture(name="blocks")
def init_blocks():
    """Shared test harness data, block contents and their known digests."""
    test_blocks = {
        "hello": {
            "data": b"hello",
            "md5": "5d41402abc4b2a76b9719d911017c592",
            "sha1": "aaf4c61ddcc5e8a2dabede0f3b482cd9aea9434d",
            "sha2-256": "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824",
        },
        "empty": {
            "data": b"",
            "md5": "d41d8cd98f00b204e9800998ecf8427e",
            "sha1": "da39a3ee5e6b4b0d3255bfef95601890afd80709",
            "sha2-256": "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855",
        },
        "fox": {
            "data": b"The quick brown fox jumps over the lazy dog",
            "md5": "9e107d9d372bb6826bd81d3542a419d6",
            "sha1": "2fd4e1c67a2d28fced849ee1bb76e7391b93eb12",
            "sha2-256": "d7a8fbb307d7809469ca9abcb0082e4f8d5651e46d3cdb762d02d0bf37c9e592",
        },
    }
    return test_blocks
