"""Free space checker for OpenEBS local volume (hostpath) destinations."""

import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from logging import Logger
from typing import Any

import urllib3
from kubernetes import client
from kubernetes.client.exceptions import ApiException
from kubernetes.utils import parse_quantity

from clusterspace.exceptions import (
    CheckCancelledError,
    CheckTimeoutError,
    ConfigurationError,
    ProbeJobError,
    ResourceStoreError,
    SchedulabilityError,
)
from clusterspace.models.storageclass import base_path_from_annotations
from clusterspace.models.volume import DiskUsageSample, VerdictResult
from clusterspace.space.decider import has_enough_space
from clusterspace.space.parsers import (
    is_root_volume,
    parse_df_output,
    parse_fstab_output,
)
from clusterspace.space.reaper import PVCReaper
from clusterspace.space.resources import (
    DF_CONTAINER,
    FSTAB_CONTAINER,
    build_job,
    build_tmp_pvc,
)

# Taints a node gets when it can't run new pods. The order is the reporting one.
UNSCHEDULABLE_MARKERS = (
    "node.kubernetes.io/not-ready",
    "node.kubernetes.io/unreachable",
    "node.kubernetes.io/unschedulable",
    "node.kubernetes.io/network-unavailable",
    "node.cloudprovider.kubernetes.io/shutdown",
)


class OpenEBSChecker:
    """Verify nodes have enough space under the OpenEBS base path.

    For each node a temporary PVC of the destination storage class is mounted by a
    job pinned to the node. The job output tells how much space is left on the
    filesystem hosting the base path. Temporary resources are always removed
    before returning.
    """

    def __init__(
        self,
        kube_config: client.Configuration | None,
        *,
        logger: Logger | None,
        image: str,
        src_sc: str,
        dst_sc: str,
        namespace: str = "default",
        mount_path: str = "/data",
        poll_interval: float = 2.0,
        delete_pv_timeout: float = 300.0,
        job_timeout: float = 300.0,
    ) -> None:
        """Validate the arguments and define (not open) the API connection."""
        if logger is None:
            raise ConfigurationError("no logger provided")
        if not image:
            raise ConfigurationError("empty image")
        if not src_sc:
            raise ConfigurationError("empty source storage class")
        if not dst_sc:
            raise ConfigurationError("empty destination storage class")

        self.logger = logger
        self.image = image
        self.src_sc = src_sc
        self.dst_sc = dst_sc
        self.namespace = namespace
        self.mount_path = mount_path
        self.poll_interval = poll_interval
        self.delete_pv_timeout = delete_pv_timeout
        self.job_timeout = job_timeout

        self.api_client = client.ApiClient(kube_config)
        self.corev1 = client.CoreV1Api(self.api_client)
        self.storagev1 = client.StorageV1Api(self.api_client)
        self.batchv1 = client.BatchV1Api(self.api_client)

    @property
    def reaper(self) -> PVCReaper:
        """Reaper sharing the checker's API client and timings."""
        return PVCReaper(
            self.corev1,
            logger=self.logger,
            poll_interval=self.poll_interval,
            delete_pv_timeout=self.delete_pv_timeout,
        )

    def call_api(self, msg: str, func: Callable[..., Any], *args, **kwargs) -> Any:
        """Execute an API request converting its failures to ResourceStoreError."""
        try:
            return func(*args, **kwargs)
        except ApiException as e:
            raise ResourceStoreError(f"{msg}: {e.reason}") from e
        except urllib3.exceptions.MaxRetryError as e:
            raise ResourceStoreError(f"{msg}: {e.reason}") from e

    def base_path(self) -> str:
        """Return the base path configured in the destination storage class.

        Raises:
            ConfigurationError when the storage class does not exist or its OpenEBS
            configuration does not define a valid base path.

        """
        try:
            storage_class = self.storagev1.read_storage_class(self.dst_sc)
        except ApiException as e:
            if e.status == 404:
                msg = "failed to get destination storage class: "
                msg += f'storageclasses.storage.k8s.io "{self.dst_sc}" not found'
                raise ConfigurationError(msg) from e
            msg = f"failed to get destination storage class {self.dst_sc}"
            raise ResourceStoreError(f"{msg}: {e.reason}") from e
        except urllib3.exceptions.MaxRetryError as e:
            msg = f"failed to get destination storage class {self.dst_sc}"
            raise ResourceStoreError(f"{msg}: {e.reason}") from e

        annotations = None
        if storage_class.metadata is not None:
            annotations = storage_class.metadata.annotations
        return base_path_from_annotations(annotations)

    def node_is_schedulable(self, node: client.V1Node) -> None:
        """Reject nodes flagged as not ready, unschedulable or shutting down.

        Raises:
            SchedulabilityError reporting the first marker found.

        """
        name = node.metadata.name if node.metadata is not None else None
        annotations = {}
        if node.metadata is not None and node.metadata.annotations:
            annotations = node.metadata.annotations
        taints = set()
        if node.spec is not None and node.spec.taints:
            taints = {taint.key for taint in node.spec.taints}

        for marker in UNSCHEDULABLE_MARKERS:
            if marker in annotations or marker in taints:
                msg = f"node {name} is not schedulable: {marker}"
                raise SchedulabilityError(msg, node=name or "", marker=marker)

    def required_space(self) -> int:
        """Sum the capacity of the PVs provisioned by the source storage class."""
        pvs = self.call_api("failed to list pvs", self.corev1.list_persistent_volume)
        total = 0
        for pv in pvs.items:
            if pv.spec is None or pv.spec.storage_class_name != self.src_sc:
                continue
            storage = (pv.spec.capacity or {}).get("storage")
            if storage is not None:
                total += int(parse_quantity(storage))
        self.logger.debug("Volumes of %s use %d bytes", self.src_sc, total)
        return total

    def check_node(
        self,
        node_name: str,
        reserved: int,
        *,
        base_path: str | None = None,
        cancel: threading.Event | None = None,
    ) -> VerdictResult:
        """Measure the node free space and compare it with the reservation.

        Args:
            node_name (str): node to probe.
            reserved (int): bytes that must be available on the node.
            base_path (str | None): OpenEBS base path. Read from the destination
                storage class when not given.
            cancel (threading.Event | None): set it to abort the waits.

        Returns:
            VerdictResult: free bytes and verdict.

        """
        cancel = cancel or threading.Event()
        if base_path is None:
            base_path = self.base_path()

        node = self.call_api(
            f"failed to get node {node_name}", self.corev1.read_node, node_name
        )
        self.node_is_schedulable(node)

        pvc = build_tmp_pvc(node_name, self.dst_sc, namespace=self.namespace)
        job = build_job(
            node_name,
            base_path,
            pvc.metadata.name,
            image=self.image,
            namespace=self.namespace,
            mount_path=self.mount_path,
        )
        try:
            sample = self.measure(pvc, job, base_path, cancel)
        finally:
            self.cleanup(job, pvc, cancel)

        free, has_space = has_enough_space(sample, reserved)
        self.logger.info(
            "Node %s: %d bytes free, %d reserved, enough space: %s",
            node_name,
            free,
            reserved,
            has_space,
        )
        return VerdictResult(node=node_name, free=free, has_space=has_space)

    def measure(
        self,
        pvc: client.V1PersistentVolumeClaim,
        job: client.V1Job,
        base_path: str,
        cancel: threading.Event,
    ) -> DiskUsageSample:
        """Run the probe job and parse its output."""
        pvc_name = pvc.metadata.name
        job_name = job.metadata.name
        self.logger.info("Creating temporary pvc %s", pvc_name)
        self.call_api(
            f"failed to create pvc {pvc_name}",
            self.corev1.create_namespaced_persistent_volume_claim,
            self.namespace,
            pvc,
        )
        self.logger.info("Creating probe job %s", job_name)
        self.call_api(
            f"failed to create job {job_name}",
            self.batchv1.create_namespaced_job,
            self.namespace,
            job,
        )

        pod_name = self.wait_job(job_name, cancel)
        df_log = self.pod_log(pod_name, DF_CONTAINER)
        fstab_log = self.pod_log(pod_name, FSTAB_CONTAINER)
        self.logger.debug("df output:\n%s", df_log)
        self.logger.debug("fstab output:\n%s", fstab_log)

        free, used = parse_df_output(df_log, mount_path=self.mount_path)
        mount_points = parse_fstab_output(fstab_log)
        return DiskUsageSample(
            free=free, used=used, root_volume=is_root_volume(base_path, mount_points)
        )

    def wait_job(self, job_name: str, cancel: threading.Event) -> str:
        """Wait for the job to complete and return the name of its pod.

        Raises:
            ProbeJobError when the job fails or has no pod.
            CheckTimeoutError when the job does not complete in time.
            CheckCancelledError when the cancel event is set.

        """
        deadline = time.monotonic() + self.job_timeout
        while True:
            if cancel.is_set():
                raise CheckCancelledError()
            job = self.call_api(
                f"failed to get job {job_name}",
                self.batchv1.read_namespaced_job_status,
                job_name,
                self.namespace,
            )
            status = job.status
            if status is not None and status.failed:
                raise ProbeJobError(f"probe job {job_name} failed")
            if status is not None and status.succeeded:
                break
            if time.monotonic() >= deadline:
                msg = f"timeout waiting for job {job_name} to complete"
                raise CheckTimeoutError(msg)
            if cancel.wait(self.poll_interval):
                raise CheckCancelledError()

        pods = self.call_api(
            f"failed to list pods of job {job_name}",
            self.corev1.list_namespaced_pod,
            self.namespace,
            label_selector=f"job-name={job_name}",
        )
        if not pods.items:
            raise ProbeJobError(f"no pod found for job {job_name}")
        return pods.items[0].metadata.name

    def pod_log(self, pod_name: str, container: str) -> str:
        """Read the whole log of a container of the probe pod."""
        return self.call_api(
            f"failed to read {container} logs of pod {pod_name}",
            self.corev1.read_namespaced_pod_log,
            pod_name,
            self.namespace,
            container=container,
        )

    def cleanup(
        self,
        job: client.V1Job,
        pvc: client.V1PersistentVolumeClaim,
        cancel: threading.Event,
    ) -> None:
        """Remove the probe job and its pod, then the temporary PVC."""
        job_name = job.metadata.name
        self.logger.info("Deleting probe job %s", job_name)
        try:
            self.batchv1.delete_namespaced_job(
                job_name, self.namespace, propagation_policy="Background"
            )
        except ApiException as e:
            if e.status != 404:
                msg = f"failed to delete job {job_name}: {e.reason}"
                raise ResourceStoreError(msg) from e
        except urllib3.exceptions.MaxRetryError as e:
            msg = f"failed to delete job {job_name}: {e.reason}"
            raise ResourceStoreError(msg) from e
        self.reaper.delete_tmp_pvcs([pvc], cancel)

    def check(
        self,
        node_names: list[str],
        reserved: int | None = None,
        *,
        cancel: threading.Event | None = None,
        multithreading: bool = False,
    ) -> dict[str, VerdictResult]:
        """Check every listed node.

        The base path is resolved once: a configuration error aborts the whole
        check. Unschedulable nodes are skipped, any other failure is raised.

        Args:
            node_names (list of str): nodes to check.
            reserved (int | None): bytes to reserve on each node. Defaults to the
                space used by the volumes of the source storage class.
            cancel (threading.Event | None): set it to abort the waits.
            multithreading (bool): probe the nodes concurrently.

        Returns:
            dict of {str: VerdictResult}: verdict of each checked node.

        """
        cancel = cancel or threading.Event()
        base_path = self.base_path()
        if reserved is None:
            reserved = self.required_space()
        self.logger.info(
            "Checking %d node(s) for %d bytes under %s",
            len(node_names),
            reserved,
            base_path,
        )

        def check_one(node_name: str) -> VerdictResult | None:
            try:
                return self.check_node(
                    node_name, reserved, base_path=base_path, cancel=cancel
                )
            except SchedulabilityError as e:
                self.logger.warning("%s. Skipping node", e.message)
                return None

        results = {}
        if multithreading:
            with ThreadPoolExecutor() as executor:
                futures = {
                    executor.submit(check_one, node_name): node_name
                    for node_name in node_names
                }
                for future in futures:
                    result = future.result()
                    if result is not None:
                        results[futures[future]] = result
        else:
            for node_name in node_names:
                result = check_one(node_name)
                if result is not None:
                    results[node_name] = result
        return results
