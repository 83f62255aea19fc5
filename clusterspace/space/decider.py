"""Decide if a node can receive the migrated volumes."""

from clusterspace.models.volume import DiskUsageSample


def has_enough_space(sample: DiskUsageSample, reserved: int) -> tuple[int, bool]:
    """Compare the measured free space with the space to reserve.

    Root and dedicated volumes are compared the same way, without any margin: the
    free figure reported by df is already net of what the other tenants of the
    filesystem use. An empty sample is never considered large enough.

    Args:
        sample (DiskUsageSample): measured space of the base path filesystem.
        reserved (int): bytes that must be available on the node.

    Returns:
        tuple of (int, bool): free bytes and whether they cover the reservation.

    """
    free = sample.free
    if free == 0:
        return free, False
    # TODO: apply a margin for root volumes once the kubelet eviction
    # thresholds are read from the node configuration.
    return free, free >= reserved
