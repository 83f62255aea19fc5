import string
from random import choices

from kubernetes import client


def random_lower_string(k: int = 32) -> str:
    """Return a generic random string."""
    return "".join(choices(string.ascii_lowercase, k=k))


def random_node_name(k: int = 10) -> str:
    """Return a random DNS-1123 node name."""
    return f"node-{random_lower_string(k)}"


def pv(
    name: str,
    *,
    claim_name: str | None = None,
    claim_namespace: str | None = None,
    storage_class: str | None = None,
    capacity: str | None = None,
) -> client.V1PersistentVolume:
    """Build a PersistentVolume optionally bound to a claim."""
    claim_ref = None
    if claim_name is not None:
        claim_ref = client.V1ObjectReference(name=claim_name, namespace=claim_namespace)
    return client.V1PersistentVolume(
        metadata=client.V1ObjectMeta(name=name),
        spec=client.V1PersistentVolumeSpec(
            claim_ref=claim_ref,
            storage_class_name=storage_class,
            capacity={"storage": capacity} if capacity is not None else None,
        ),
    )


def pv_list(*items: client.V1PersistentVolume) -> client.V1PersistentVolumeList:
    return client.V1PersistentVolumeList(items=list(items))


def pvc(name: str, namespace: str = "namespace") -> client.V1PersistentVolumeClaim:
    return client.V1PersistentVolumeClaim(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace)
    )


def storage_class(
    name: str, annotations: dict[str, str] | None = None
) -> client.V1StorageClass:
    return client.V1StorageClass(
        metadata=client.V1ObjectMeta(name=name, annotations=annotations),
        provisioner="openebs.io/local",
    )


def node(
    name: str,
    *,
    annotations: dict[str, str] | None = None,
    taints: list[str] | None = None,
) -> client.V1Node:
    return client.V1Node(
        metadata=client.V1ObjectMeta(name=name, annotations=annotations),
        spec=client.V1NodeSpec(
            taints=[client.V1Taint(key=k, effect="NoExecute") for k in taints]
            if taints
            else None
        ),
    )
