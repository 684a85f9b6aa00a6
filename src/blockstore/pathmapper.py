"""Path Mapper: maps an address to its location below a store's root."""
import logging

from blockstore.address import Address
from blockstore.blockstore_exceptions import InvalidAddress


class PathMapper:
    """Deterministic mapping from an address to a sharded relative path.

    The canonical text of an address starts with its version and algorithm header,
    which is identical for every block of a store. Directory names are therefore cut
    from the tail of the text, where the digest lives, skipping the last character.
    That character holds the leftover bits of the base32 encoding and only takes a
    few of the 32 symbols. The file name is the full canonical text, so every leaf
    can be decoded back into its address.

    Example with ``prefix_length=2`` and ``suffix_levels=1``::

        bafkreibm6jg3ux5qumhcn2b3flc3tyu6dmlb4xa7u5bf44yegnrjhc4yeq
        -> c4/ye/bafkreibm6jg3ux5qumhcn2b3flc3tyu6dmlb4xa7u5bf44yegnrjhc4yeq

    The split must never change for an existing store root.

    :param int prefix_length: Width of each directory name.
    :param int suffix_levels: Number of directory levels below the first one.
    """

    def __init__(self, prefix_length, suffix_levels):
        for name, value, minimum in (
            ("prefix_length", prefix_length, 1),
            ("suffix_levels", suffix_levels, 0),
        ):
            if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
                exception_string = (
                    f"PathMapper - __init__: {name} must be an integer >= {minimum},"
                    + f" got: {value!r}"
                )
                logging.error(exception_string)
                raise ValueError(exception_string)
        self.width = prefix_length
        self.depth = 1 + suffix_levels

    def __eq__(self, other):
        if not isinstance(other, PathMapper):
            return NotImplemented
        return (self.width, self.depth) == (other.width, other.depth)

    def __hash__(self):
        return hash((self.width, self.depth))

    def __repr__(self):
        return f"PathMapper(prefix_length={self.width}, suffix_levels={self.depth - 1})"

    @property
    def min_length(self):
        """Shortest address text this mapper accepts."""
        return self.width * self.depth + 2

    def shard(self, text):
        """Split an address text into `depth` directory tokens of `width` characters
        followed by the leaf name.

        :param str text: Canonical address text.

        :return: A list of directory tokens and the leaf name.
        :rtype: list
        """
        if len(text) < self.min_length:
            exception_string = (
                f"PathMapper - shard: Address text '{text}' is shorter than the"
                + f" {self.min_length} characters required by {self!r}."
            )
            logging.error(exception_string)
            raise InvalidAddress(exception_string)
        # The multibase prefix and the padding character are never used
        tail = text[-self.width * self.depth - 1 : -1]
        tokens = [tail[i * self.width : self.width * (i + 1)] for i in range(self.depth)]
        return tokens + [text]

    def locate(self, address):
        """Return the relative POSIX path of an address.

        :param mixed address: Address, its canonical text or its canonical bytes.

        :return: Relative path, ex. "4y/eq/bafkrei...".
        :rtype: str
        """
        return "/".join(self.shard(Address.coerce(address).to_text()))
