import re

from kubernetes import client
from pytest_cases import parametrize, parametrize_with_cases

from clusterspace.space.resources import (
    BASE_PATH_ANNOTATION,
    DF_CONTAINER,
    FSTAB_CONTAINER,
    MAX_NAME_LENGTH,
    build_job,
    build_tmp_pvc,
    probe_name,
    truncate_name,
)
from tests.utils import random_lower_string

DNS_1123_SUBDOMAIN = re.compile(
    r"[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*"
)
FQDN_NODE = "ip-10-120-33-147-gpu-pool.c.project-name01.internal"


class CaseTmpPVC:
    def case_happy_path(self) -> tuple[str, str, str]:
        return "node0", "xyz", "disk-free-node0-"

    def case_very_long_host_name(self) -> tuple[str, str, str]:
        return (
            "this-is-a-relly-long-host-name-and-this-should-be-trimmed",
            "default",
            "disk-free-this-is-a-relly-long-and-this-should-be-trimmed-",
        )


@parametrize_with_cases("node, storage_class, prefix", cases=CaseTmpPVC)
def test_build_tmp_pvc(node: str, storage_class: str, prefix: str) -> None:
    pvc = build_tmp_pvc(node, storage_class)
    assert pvc.metadata.name.startswith(prefix)
    assert len(pvc.metadata.name) <= MAX_NAME_LENGTH
    assert pvc.metadata.namespace == "default"
    assert pvc.spec.storage_class_name == storage_class
    assert pvc.spec.access_modes == ["ReadWriteOnce"]
    assert pvc.spec.resources.requests == {"storage": "1Mi"}


def test_build_tmp_pvc_namespace() -> None:
    namespace = random_lower_string()
    pvc = build_tmp_pvc("node0", "xyz", namespace=namespace)
    assert pvc.metadata.namespace == namespace


def test_build_tmp_pvc_random_names() -> None:
    names = {build_tmp_pvc("node0", "xyz").metadata.name for _ in range(20)}
    assert len(names) > 1


@parametrize(length=(1, 10, 47, 50, 51, 52, 53, 57, 100, 253))
def test_probe_name_length(length: int) -> None:
    node = random_lower_string(length)
    name = probe_name(node)
    assert len(name) <= MAX_NAME_LENGTH
    assert DNS_1123_SUBDOMAIN.fullmatch(name)
    if length <= MAX_NAME_LENGTH - len("disk-free--xxxxx"):
        assert name.startswith(f"disk-free-{node}-")
    else:
        assert name.startswith("disk-free-")
        assert node[-20:] in name


@parametrize(
    "name, expected",
    [
        ("short", "short"),
        ("a" * 63, "a" * 63),
        ("a" * 31 + "b" * 10 + "c" * 32, "a" * 31 + "c" * 32),
        (
            f"disk-free-{FQDN_NODE}-w7zs1",
            "disk-free-ip-10-120-33-147-gpu-c.project-name01.internal-w7zs1",
        ),
        ("a" * 30 + ".-" + "b" * 10 + "-." + "c" * 31, "a" * 30 + "-" + "c" * 31),
    ],
)
def test_truncate_name(name: str, expected: str) -> None:
    assert truncate_name(name) == expected


def test_build_job() -> None:
    node = "this-is-a-very-long-node-name-this-will-extrapolate-the-limit"
    job = build_job(node, "/var/local", "tmppvc", image="myimage:latest")

    assert len(job.metadata.name) <= MAX_NAME_LENGTH
    assert job.metadata.namespace == "default"
    assert job.metadata.annotations[BASE_PATH_ANNOTATION] == "/var/local"
    assert job.spec.backoff_limit == 0

    pod_spec: client.V1PodSpec = job.spec.template.spec
    assert pod_spec.restart_policy == "Never"

    affinity = pod_spec.affinity.node_affinity
    assert affinity.preferred_during_scheduling_ignored_during_execution is None
    terms = affinity.required_during_scheduling_ignored_during_execution
    expression = terms.node_selector_terms[0].match_expressions[0]
    assert expression.operator == "In"
    assert expression.values == [node]

    mount_name = None
    for vol in pod_spec.volumes:
        claim = vol.persistent_volume_claim
        if claim is not None and claim.claim_name == "tmppvc":
            mount_name = vol.name
    assert mount_name is not None

    containers = {c.name: c for c in pod_spec.containers}
    df = containers[DF_CONTAINER]
    assert df.command == ["df", "-B1", "/data"]
    mounts = {m.name: m.mount_path for m in df.volume_mounts}
    assert mounts[mount_name] == "/data"
    assert containers[FSTAB_CONTAINER].command[0] == "cat"
    assert containers[FSTAB_CONTAINER].volume_mounts[0].read_only

    for container in pod_spec.containers:
        assert container.image == "myimage:latest"


def test_build_job_custom_namespace_and_mount_path() -> None:
    job = build_job(
        "node0",
        "/var/local",
        "tmppvc",
        image="myimage:latest",
        namespace="kurl",
        mount_path="/probe",
    )
    assert job.metadata.namespace == "kurl"
    assert job.metadata.name.startswith("disk-free-node0-")
    df = job.spec.template.spec.containers[0]
    assert df.command[-1] == "/probe"
    assert df.volume_mounts[0].mount_path == "/probe"


@parametrize(
    node=(
        FQDN_NODE,
        "worker-01.eu-west-1.compute.internal.example-cluster.local",
        "a.b.c.d.e.f.g.h.i.j.k.l.m.n.o.p.q.r.s.t.u.v.w.x.y.z.0.1.2.3",
    )
)
def test_probe_name_fqdn_node(node: str) -> None:
    for _ in range(20):
        name = probe_name(node)
        assert len(name) <= MAX_NAME_LENGTH
        assert DNS_1123_SUBDOMAIN.fullmatch(name)
