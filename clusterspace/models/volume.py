"""Models describing the measured space of a node."""

from typing import Annotated

from pydantic import BaseModel, Field, NonNegativeInt


class DiskUsageSample(BaseModel):
    """Free and used space of the filesystem backing the OpenEBS base path."""

    free: Annotated[NonNegativeInt, Field(default=0, description="Free bytes")]
    used: Annotated[NonNegativeInt, Field(default=0, description="Used bytes")]
    root_volume: Annotated[
        bool,
        Field(
            default=False,
            description="The base path lives on the node's root filesystem",
        ),
    ]


class VerdictResult(BaseModel):
    """Outcome of the space check of a single node."""

    node: Annotated[str, Field(description="Node name")]
    free: Annotated[int, Field(description="Free bytes usable by the migration")]
    has_space: Annotated[
        bool, Field(description="The node can receive the reserved space")
    ]
