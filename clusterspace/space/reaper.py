"""Removal of the temporary PVCs created to probe the nodes."""

import threading
import time
from logging import Logger

import urllib3
from kubernetes import client
from kubernetes.client.exceptions import ApiException

from clusterspace.exceptions import (
    CheckCancelledError,
    ClusterSpaceError,
    CleanupError,
    ResourceStoreError,
    VolumeDeletionTimeoutError,
)


class PVCReaper:
    """Delete temporary PVCs and wait for their PVs to be reclaimed.

    A PVC disappears from the API as soon as it is deleted, while the OpenEBS
    provisioner removes the PV (and the data on the node) asynchronously. The
    space is released only when the PV is gone.
    """

    def __init__(
        self,
        corev1: client.CoreV1Api,
        *,
        logger: Logger,
        poll_interval: float = 2.0,
        delete_pv_timeout: float = 300.0,
    ) -> None:
        self.corev1 = corev1
        self.logger = logger
        self.poll_interval = poll_interval
        self.delete_pv_timeout = delete_pv_timeout

    def delete_tmp_pvcs(
        self,
        pvcs: list[client.V1PersistentVolumeClaim],
        cancel: threading.Event | None = None,
    ) -> None:
        """Delete the PVCs and block until their PVs are removed.

        Every PVC is processed even if a previous one failed. Cancellation stops
        the procedure immediately.

        Args:
            pvcs (list of V1PersistentVolumeClaim): temporary PVCs.
            cancel (threading.Event | None): set it to abort the wait.

        Raises:
            CheckCancelledError when the cancel event is set.
            VolumeDeletionTimeoutError when a PV is not removed in time.
            ResourceStoreError when an API request fails.
            CleanupError when more than one PVC failed.

        """
        if not pvcs:
            return

        cancel = cancel or threading.Event()
        errors: list[ClusterSpaceError] = []
        for pvc in pvcs:
            try:
                self.delete_tmp_pvc(pvc, cancel)
            except CheckCancelledError:
                raise
            except ClusterSpaceError as e:
                self.logger.error("%s", e.message)
                errors.append(e)

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise CleanupError(errors)

    def delete_tmp_pvc(
        self, pvc: client.V1PersistentVolumeClaim, cancel: threading.Event
    ) -> None:
        """Delete a single PVC and wait for its PV, if any, to disappear."""
        name = pvc.metadata.name
        namespace = pvc.metadata.namespace
        pv = self.find_pv(name, namespace)

        self.logger.debug("Deleting temporary pvc %s/%s", namespace, name)
        try:
            self.corev1.delete_namespaced_persistent_volume_claim(name, namespace)
        except ApiException as e:
            if e.status != 404:
                msg = f"failed to delete pvc {namespace}/{name}: {e.reason}"
                raise ResourceStoreError(msg) from e
        except urllib3.exceptions.MaxRetryError as e:
            msg = f"failed to delete pvc {namespace}/{name}: {e.reason}"
            raise ResourceStoreError(msg) from e

        if pv is None:
            self.logger.debug("No pv bound to pvc %s, nothing to wait for", name)
            return
        self.wait_pv_deletion(pv.metadata.name, cancel)

    def find_pv(
        self, pvc_name: str, namespace: str | None
    ) -> client.V1PersistentVolume | None:
        """Return the PV whose claim reference points to the given PVC."""
        try:
            pvs = self.corev1.list_persistent_volume()
        except ApiException as e:
            raise ResourceStoreError(f"failed to list pvs: {e.reason}") from e
        except urllib3.exceptions.MaxRetryError as e:
            raise ResourceStoreError(f"failed to list pvs: {e.reason}") from e

        for pv in pvs.items:
            claim_ref = pv.spec.claim_ref if pv.spec is not None else None
            if claim_ref is None or claim_ref.name != pvc_name:
                continue
            if claim_ref.namespace and namespace and claim_ref.namespace != namespace:
                continue
            return pv
        return None

    def wait_pv_deletion(self, pv_name: str, cancel: threading.Event) -> None:
        """Poll the PV until it is gone, the deadline expires or cancel is set."""
        self.logger.info("Waiting for pv %s to be deleted", pv_name)
        deadline = time.monotonic() + self.delete_pv_timeout
        while True:
            if cancel.is_set():
                raise CheckCancelledError()
            try:
                self.corev1.read_persistent_volume(pv_name)
            except ApiException as e:
                if e.status == 404:
                    self.logger.info("Pv %s deleted", pv_name)
                    return
                msg = f"failed to get pv {pv_name}: {e.reason}"
                raise ResourceStoreError(msg) from e
            except urllib3.exceptions.MaxRetryError as e:
                msg = f"failed to get pv {pv_name}: {e.reason}"
                raise ResourceStoreError(msg) from e

            if time.monotonic() >= deadline:
                msg = f"timeout waiting for pv {pv_name} to be deleted"
                raise VolumeDeletionTimeoutError(msg, volume=pv_name)
            if cancel.wait(self.poll_interval):
                raise CheckCancelledError()
