"""Application settings."""

from functools import lru_cache
from typing import Annotated

from pydantic import AfterValidator, Field, PositiveFloat
from pydantic_settings import BaseSettings, SettingsConfigDict


def invalid_empty(v: str | None) -> str | None:
    """An empty string is not a valid input.

    Args:
        v (str | None): input string.

    Returns:
        str | None: the input string

    """
    if v == "":
        raise ValueError("Empty string is not a valid value")
    return v


def absolute_path(v: str) -> str:
    """Accept only absolute paths."""
    if not v.startswith("/"):
        raise ValueError(f"{v!r} is not an absolute path")
    return v


class Settings(BaseSettings):
    """Settings for the application."""

    APP_NAME: Annotated[
        str, Field(default="cluster-space-checker", description="Application name.")
    ]
    PROBE_IMAGE: Annotated[
        str,
        Field(
            default="busybox:1.36",
            description="Image used by every container of the probe job.",
        ),
        AfterValidator(invalid_empty),
    ]
    SRC_STORAGE_CLASS: Annotated[
        str | None,
        Field(
            default=None,
            description="Storage class of the volumes that are going to be migrated.",
        ),
        AfterValidator(invalid_empty),
    ]
    DST_STORAGE_CLASS: Annotated[
        str | None,
        Field(
            default=None,
            description="OpenEBS local volume storage class receiving the volumes.",
        ),
        AfterValidator(invalid_empty),
    ]
    PROBE_NAMESPACE: Annotated[
        str,
        Field(
            default="default",
            description="Namespace where temporary PVCs and jobs are created.",
        ),
        AfterValidator(invalid_empty),
    ]
    PROBE_MOUNT_PATH: Annotated[
        str,
        Field(
            default="/data",
            description="Path where the temporary PVC is mounted inside the probe.",
        ),
        AfterValidator(absolute_path),
    ]
    POLL_INTERVAL: Annotated[
        PositiveFloat,
        Field(default=2.0, description="Seconds between two status polls."),
    ]
    DELETE_PV_TIMEOUT: Annotated[
        PositiveFloat,
        Field(
            default=300.0,
            description="Seconds to wait for a temporary PV to be reclaimed.",
        ),
    ]
    JOB_TIMEOUT: Annotated[
        PositiveFloat,
        Field(
            default=300.0,
            description="Seconds to wait for the probe job to complete.",
        ),
    ]
    KUBECONFIG: Annotated[
        str | None,
        Field(
            default=None,
            description="Path to the kube config file. When not set the in-cluster "
            "configuration is tried first.",
        ),
        AfterValidator(invalid_empty),
    ]
    MULTITHREADING: Annotated[
        bool, Field(default=False, description="Check nodes concurrently")
    ]

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Retrieve cached settings.

    Returns:
        Settings: Cached settings value.

    """
    return Settings()
