"""Test module for FileAddressMap"""
import os
import threading
import pytest
from blockstore import verifier
from blockstore.addressmap import FileAddressMap
from blockstore.blockstore_exceptions import InvalidAddress, NotFound


@pytest.fixture(name="refs")
def init_refs(store):
    """Create FileAddressMap next to the blocks of the test store."""
    return FileAddressMap(store)


def test_init(refs, store):
    """Test that the map directory is created below the store root."""
    assert refs.root == os.path.join(store.root, "refs")
    assert os.path.isdir(refs.root)


def test_put_get(refs, store, blocks):
    """Test that a key points at the address it was given."""
    address = store.put(blocks["hello"]["data"])
    assert refs.put("head", address) is None
    assert refs.exists("head")
    assert refs.get("head") == address
    assert store.get(refs.get("head")) == blocks["hello"]["data"]


def test_put_returns_previous(refs, store, blocks):
    """Test that moving a pointer returns its previous value."""
    hello = store.put(blocks["hello"]["data"])
    fox = store.put(blocks["fox"]["data"])
    refs.put("head", hello)
    assert refs.put("head", fox) == hello
    assert refs.get("head") == fox
    assert os.listdir(store.tmp) == []


def test_put_accepts_text_and_bytes(refs, store, blocks):
    """Test that addresses can be given in their text and bytes forms."""
    address = store.put(blocks["fox"]["data"])
    refs.put("text", address.to_text())
    refs.put(b"bytes", address.to_bytes())
    assert refs.get("text") == address
    assert refs.get(b"bytes") == address


def test_str_and_bytes_keys(refs, store, blocks):
    """Test that a str key and its utf-8 encoding are the same key."""
    address = store.put(blocks["hello"]["data"])
    refs.put("ключ", address)
    assert refs.get("ключ".encode("utf-8")) == address


def test_put_invalid_address(refs):
    """Test that a value that is not an address is rejected."""
    with pytest.raises(InvalidAddress):
        refs.put("head", "not an address")
    assert not refs.exists("head")


def test_get_missing_key(refs):
    """Test that get raises NotFound for an unknown key."""
    assert not refs.exists("missing")
    with pytest.raises(NotFound):
        refs.get("missing")


def test_remove(refs, store, blocks):
    """Test that remove returns the removed address and forgets the key."""
    address = store.put(blocks["hello"]["data"])
    refs.put("head", address)
    assert refs.remove("head") == address
    assert not refs.exists("head")
    with pytest.raises(NotFound):
        refs.remove("head")


def test_keys_are_independent(refs, store, blocks):
    """Test that two keys pointing at one block are separate pointers."""
    address = store.put(blocks["hello"]["data"])
    refs.put("one", address)
    refs.put("two", address)
    refs.remove("one")
    assert refs.get("two") == address


def test_pointers_are_not_blocks(refs, store, blocks):
    """Test that pointers never show up as blocks."""
    address = store.put(blocks["hello"]["data"])
    refs.put("head", address)
    assert list(store.addresses()) == [address]


def test_named_map(store, blocks):
    """Test that maps with different names do not share keys."""
    address = store.put(blocks["hello"]["data"])
    FileAddressMap(store, name="branches").put("main", address)
    assert not FileAddressMap(store).exists("main")


def test_put_concurrent_previous_values(refs):
    """Test that concurrent puts to one key each see a different previous value, so
    the values form one chain from None to the final pointer."""
    addresses = [
        verifier.compute(f"block {index}".encode("utf-8"), "sha2-256")
        for index in range(10)
    ]
    barrier = threading.Barrier(len(addresses))
    previous_values = []
    previous_lock = threading.Lock()

    def move_head(address):
        barrier.wait()
        previous = refs.put("head", address)
        with previous_lock:
            previous_values.append(previous)

    threads = [
        threading.Thread(target=move_head, args=(address,)) for address in addresses
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(previous_values) == len(addresses)
    assert previous_values.count(None) == 1
    seen = [previous for previous in previous_values if previous is not None]
    assert len(set(seen)) == len(addresses) - 1
    assert set(seen) | {refs.get("head")} == set(addresses)


def test_remove_concurrent(refs, store, blocks):
    """Test that only one of several concurrent removes of a key succeeds."""
    address = store.put(blocks["hello"]["data"])
    refs.put("head", address)
    barrier = threading.Barrier(6)
    results = []
    results_lock = threading.Lock()

    def remove_head():
        barrier.wait()
        try:
            result = refs.remove("head")
        except NotFound as nf:
            result = nf
        with results_lock:
            results.append(result)

    threads = [threading.Thread(target=remove_head) for _ in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(address) == 1
    assert sum(isinstance(result, NotFound) for result in results) == 5
    assert not refs.exists("head")


def test_lock_file_outside_shards(refs, store, blocks):
    """Test that the lock file sits at the map root and is not mistaken for a key."""
    refs.put("head", store.put(blocks["hello"]["data"]))
    assert os.path.isfile(refs.lock_path)
    assert os.path.dirname(refs.lock_path) == refs.root
