"""Default configuration variables for BlockStore"""
# Width of each directory name cut from an address when sharding
PREFIX_LENGTH = 2  # DO NOT CHANGE UNLESS SETTING UP NEW BLOCKSTORE
# Directory levels below the first one
SUFFIX_LEVELS = 1  # DO NOT CHANGE UNLESS SETTING UP NEW BLOCKSTORE
# Algorithm used to calculate addresses when the caller does not name one
DEFAULT_ALGORITHM = "sha2-256"
# Age in seconds after which an abandoned temporary file is swept
TMP_GRACE_PERIOD = 3600
# Version of the on-disk layout written to 'blockstore.yaml'
LAYOUT_VERSION = 1
