import pytest
from pydantic import ValidationError
from pytest_cases import parametrize

from clusterspace.models.volume import DiskUsageSample, VerdictResult


def test_disk_usage_sample_defaults() -> None:
    sample = DiskUsageSample()
    assert sample.free == 0
    assert sample.used == 0
    assert not sample.root_volume


@parametrize(key=("free", "used"))
def test_disk_usage_sample_negative(key: str) -> None:
    with pytest.raises(ValidationError):
        DiskUsageSample(**{key: -1})


def test_verdict_result() -> None:
    item = VerdictResult(node="node0", free=10, has_space=True)
    assert item.node == "node0"
    assert item.free == 10
    assert item.has_space
