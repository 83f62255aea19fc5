import os
from logging import getLogger
from unittest.mock import Mock

import pytest
from kubernetes import client

from clusterspace.space.openebs import OpenEBSChecker
from tests.utils import random_lower_string


@pytest.fixture(autouse=True)
def clear_os_environment() -> None:
    """Clear the OS environment."""
    os.environ.clear()


@pytest.fixture
def checker() -> OpenEBSChecker:
    """Checker with mocked Kubernetes APIs and fast polling."""
    item = OpenEBSChecker(
        client.Configuration(),
        logger=getLogger("test"),
        image="myimage:latest",
        src_sc=random_lower_string(),
        dst_sc=random_lower_string(),
        poll_interval=0.01,
        delete_pv_timeout=0.5,
        job_timeout=0.5,
    )
    item.corev1 = Mock(spec=client.CoreV1Api)
    item.storagev1 = Mock(spec=client.StorageV1Api)
    item.batchv1 = Mock(spec=client.BatchV1Api)
    return item
