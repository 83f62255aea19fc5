"""Parsers for the output of the probe job containers.

The df output is read by counting fields from the end of each line: the last
field is the mount point, then use%, available and used. Anything before the
size column (device names, prefixes added by the container runtime) is ignored
so variable width first columns never shift the values.
"""

from clusterspace.exceptions import ParseError

DEFAULT_MOUNT_PATH = "/data"
DF_MIN_FIELDS = 5
DF_AVAILABLE_IDX = -3
DF_USED_IDX = -4
SWAP_MOUNT_POINT = "none"


def split_fields(content: bytes | str) -> list[list[str]]:
    """Return the whitespace separated fields of every non empty line."""
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    lines = []
    for line in content.splitlines():
        fields = line.split()
        if fields:
            lines.append(fields)
    return lines


def parse_byte_count(token: str, column: str) -> int:
    """Parse a plain base-10 byte count.

    Human readable values (6.9G, 100M...) are rejected: the probe runs df with a
    1 byte block size.
    """
    if not (token.isascii() and token.isdigit()):
        raise ParseError(f'failed to parse "{token}" as {column} space')
    return int(token)


def parse_df_output(
    content: bytes | str, *, mount_path: str = DEFAULT_MOUNT_PATH
) -> tuple[int, int]:
    """Extract free and used bytes of the probe volume from df output.

    Args:
        content (bytes | str): output of `df -B1 <mount_path>`.
        mount_path (str): mount point of the temporary PVC inside the probe.

    Returns:
        tuple of int: free and used bytes.

    Raises:
        ParseError when no line refers to the mount point or when the available
        or used column is not a byte count.

    """
    for fields in split_fields(content):
        if len(fields) < DF_MIN_FIELDS or fields[-1] != mount_path:
            continue
        free = parse_byte_count(fields[DF_AVAILABLE_IDX], "available")
        used = parse_byte_count(fields[DF_USED_IDX], "used")
        return free, used
    raise ParseError("failed to locate free space info in pod log")


def parse_fstab_output(content: bytes | str) -> list[str]:
    """Return the mount points listed in an fstab file, in order.

    Comments, blank lines, swap entries (mount point "none") and malformed lines
    whose second field is not an absolute path are skipped. A mount point listed
    more than once is returned only the first time.

    Raises:
        ParseError when no mount point is found.

    """
    mount_points = []
    for fields in split_fields(content):
        if fields[0].startswith("#") or len(fields) < 2:
            continue
        mount_point = fields[1]
        if mount_point == SWAP_MOUNT_POINT or not mount_point.startswith("/"):
            continue
        if mount_point not in mount_points:
            mount_points.append(mount_point)

    if not mount_points:
        raise ParseError("failed to locate any mount point")
    return mount_points


def mount_point_for(path: str, mount_points: list[str]) -> str | None:
    """Return the most specific mount point containing the given path."""
    best = None
    for mount_point in mount_points:
        prefix = mount_point.rstrip("/") + "/"
        if path != mount_point and not path.startswith(prefix):
            continue
        if best is None or len(mount_point) > len(best):
            best = mount_point
    return best


def is_root_volume(base_path: str, mount_points: list[str]) -> bool:
    """Tell if the base path is stored on the node's root filesystem."""
    mount_point = mount_point_for(base_path, mount_points)
    return mount_point is None or mount_point == "/"
