"""Models for the OpenEBS local volume storage class configuration."""

from typing import Annotated, Any

import yaml
from pydantic import BaseModel, BeforeValidator, Field, RootModel, ValidationError

from clusterspace.exceptions import ConfigurationError

OPENEBS_CONFIG_ANNOTATION = "cas.openebs.io/config"
BASE_PATH_KEY = "BasePath"


def scalar_to_str(v: Any) -> Any:
    """YAML may decode unquoted values as numbers or booleans."""
    if isinstance(v, (int, float, bool)):
        return str(v)
    return v


class OpenEBSConfigEntry(BaseModel):
    """Single name/value pair of the OpenEBS config annotation."""

    name: Annotated[str, Field(description="Configuration key")]
    value: Annotated[
        str,
        Field(default="", description="Configuration value"),
        BeforeValidator(scalar_to_str),
    ]


class OpenEBSConfig(RootModel[list[OpenEBSConfigEntry]]):
    """Ordered list of the entries defined in the OpenEBS config annotation."""

    def get(self, name: str) -> str | None:
        """Return the value of the first entry with the given (case sensitive) name."""
        for entry in self.root:
            if entry.name == name:
                return entry.value
        return None


def parse_openebs_config(annotation: str) -> OpenEBSConfig:
    """Decode the YAML content of the OpenEBS config annotation.

    Raises:
        ConfigurationError if the content is not a list of name/value mappings.

    """
    try:
        data = yaml.safe_load(annotation)
        return OpenEBSConfig.model_validate(data if data is not None else [])
    except (yaml.YAMLError, ValidationError) as e:
        msg = f"failed to parse openebs config annotation: {e}"
        raise ConfigurationError(msg) from e


def base_path_from_annotations(annotations: dict[str, str] | None) -> str:
    """Extract and validate the OpenEBS base path from storage class annotations.

    Args:
        annotations (dict | None): storage class metadata annotations.

    Returns:
        str: the absolute base path.

    Raises:
        ConfigurationError when the annotation is missing or malformed, when it
        does not define the base path or when the base path is not absolute.

    """
    annotation = (annotations or {}).get(OPENEBS_CONFIG_ANNOTATION)
    if annotation is None:
        raise ConfigurationError("annotation not found in storage class")

    config = parse_openebs_config(annotation)
    base_path = config.get(BASE_PATH_KEY)
    if base_path is None:
        raise ConfigurationError("openebs base path not defined in the storage class")
    if not base_path.startswith("/"):
        raise ConfigurationError(f"invalid openebs base path: {base_path!r}")
    return base_path
