"""Builders of the temporary Kubernetes resources used to probe a node."""

import random
import string

from kubernetes import client

MAX_NAME_LENGTH = 63
NAME_PREFIX = "disk-free"
SUFFIX_LENGTH = 5
NAME_SEPARATORS = "-."
PROBE_LABEL = "clusterspace.io/probe"
BASE_PATH_ANNOTATION = "clusterspace.io/base-path"
TMP_PVC_SIZE = "1Mi"
TMP_VOLUME_NAME = "tmp"
FSTAB_VOLUME_NAME = "fstab"
HOST_FSTAB_PATH = "/etc/fstab"
PROBE_FSTAB_PATH = "/host/etc/fstab"
DF_CONTAINER = "df"
FSTAB_CONTAINER = "fstab"


def random_suffix(length: int = SUFFIX_LENGTH) -> str:
    """Return a random DNS-1123 compatible string."""
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))


def truncate_name(name: str, limit: int = MAX_NAME_LENGTH) -> str:
    """Shorten a resource name to the given limit removing its middle part.

    Head and tail are kept so the node name stays recognizable and the random
    suffix is preserved. When the cut leaves a separator on either side, the
    separators around it are dropped and the two parts are joined by a single
    dash so the result is still a valid DNS-1123 name.
    """
    if len(name) <= limit:
        return name
    head = name[: limit // 2]
    tail = name[-(limit - limit // 2) :]
    if head[-1] in NAME_SEPARATORS or tail[0] in NAME_SEPARATORS:
        return f"{head.rstrip(NAME_SEPARATORS)}-{tail.lstrip(NAME_SEPARATORS)}"
    return head + tail


def probe_name(node: str) -> str:
    """Name of a temporary resource probing the given node."""
    return truncate_name(f"{NAME_PREFIX}-{node}-{random_suffix()}")


def build_tmp_pvc(
    node: str, storage_class: str, *, namespace: str = "default"
) -> client.V1PersistentVolumeClaim:
    """Build the smallest PVC the destination storage class can provision."""
    return client.V1PersistentVolumeClaim(
        api_version="v1",
        kind="PersistentVolumeClaim",
        metadata=client.V1ObjectMeta(
            name=probe_name(node),
            namespace=namespace,
            labels={PROBE_LABEL: "true"},
        ),
        spec=client.V1PersistentVolumeClaimSpec(
            storage_class_name=storage_class,
            access_modes=["ReadWriteOnce"],
            resources=client.V1VolumeResourceRequirements(
                requests={"storage": TMP_PVC_SIZE}
            ),
        ),
    )


def build_job(
    node: str,
    base_path: str,
    pvc_name: str,
    *,
    image: str,
    namespace: str = "default",
    mount_path: str = "/data",
) -> client.V1Job:
    """Build the job measuring the free space of the temporary PVC on a node.

    The pod is pinned to the node through a required node affinity. Container
    "df" reports the space of the PVC in bytes, container "fstab" prints the
    host's fstab so the caller can tell if the base path is on the root
    filesystem.
    """
    affinity = client.V1Affinity(
        node_affinity=client.V1NodeAffinity(
            required_during_scheduling_ignored_during_execution=client.V1NodeSelector(
                node_selector_terms=[
                    client.V1NodeSelectorTerm(
                        match_expressions=[
                            client.V1NodeSelectorRequirement(
                                key="kubernetes.io/hostname",
                                operator="In",
                                values=[node],
                            )
                        ]
                    )
                ]
            )
        )
    )
    volumes = [
        client.V1Volume(
            name=TMP_VOLUME_NAME,
            persistent_volume_claim=client.V1PersistentVolumeClaimVolumeSource(
                claim_name=pvc_name
            ),
        ),
        client.V1Volume(
            name=FSTAB_VOLUME_NAME,
            host_path=client.V1HostPathVolumeSource(path=HOST_FSTAB_PATH, type="File"),
        ),
    ]
    containers = [
        client.V1Container(
            name=DF_CONTAINER,
            image=image,
            command=["df", "-B1", mount_path],
            volume_mounts=[
                client.V1VolumeMount(name=TMP_VOLUME_NAME, mount_path=mount_path)
            ],
        ),
        client.V1Container(
            name=FSTAB_CONTAINER,
            image=image,
            command=["cat", PROBE_FSTAB_PATH],
            volume_mounts=[
                client.V1VolumeMount(
                    name=FSTAB_VOLUME_NAME, mount_path=PROBE_FSTAB_PATH, read_only=True
                )
            ],
        ),
    ]
    return client.V1Job(
        api_version="batch/v1",
        kind="Job",
        metadata=client.V1ObjectMeta(
            name=probe_name(node),
            namespace=namespace,
            labels={PROBE_LABEL: "true"},
            annotations={BASE_PATH_ANNOTATION: base_path},
        ),
        spec=client.V1JobSpec(
            backoff_limit=0,
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels={PROBE_LABEL: "true"}),
                spec=client.V1PodSpec(
                    restart_policy="Never",
                    affinity=affinity,
                    volumes=volumes,
                    containers=containers,
                ),
            ),
        ),
    )
