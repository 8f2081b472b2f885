"""Composition helpers for nsgallow.

This module reads from and writes to the RunFunctionRequest and
RunFunctionResponse envelopes supplied by the Crossplane function SDK,
raising nsgallow exceptions instead of leaking protobuf errors.
"""

from typing import Any, Dict

from crossplane.function import resource
from crossplane.function.proto.v1 import run_function_pb2 as fnv1
from google.protobuf import json_format

from function.exceptions import (
    DesiredResourcesError,
    DesiredResourcesWriteError,
    MissingFieldError,
    ResourceConversionError,
)


def get_observed_composite(req: fnv1.RunFunctionRequest) -> Dict[str, Any]:
    """Return the observed composite resource of a request as a dict.

    A request without an observed composite yields an empty dict; missing
    fields surface later through get_string.
    """
    return resource.struct_to_dict(req.observed.composite.resource)


def get_string(obj: Dict[str, Any], path: str) -> str:
    """Look up a string value by dotted field path.

    Args:
        obj: Resource dict, e.g. an observed composite
        path: Dotted field path such as "spec.nsgName"

    Returns:
        The string found at path

    Raises:
        MissingFieldError: If any path segment is missing or the value is
            not a string
    """
    current: Any = obj
    for segment in path.split("."):
        if not isinstance(current, dict) or segment not in current:
            raise MissingFieldError(f"{path}: no such field", context={"path": path})
        current = current[segment]

    if not isinstance(current, str):
        raise MissingFieldError(
            f"{path}: not a string",
            context={"path": path, "type": type(current).__name__},
        )
    return current


def get_desired_composed_resources(
    req: fnv1.RunFunctionRequest,
) -> Dict[str, Dict[str, Any]]:
    """Return the desired composed resources of a request keyed by name.

    Raises:
        DesiredResourcesError: If a desired resource cannot be converted
    """
    desired = {}
    for name, composed in req.desired.resources.items():
        try:
            desired[name] = resource.struct_to_dict(composed.resource)
        except (json_format.Error, TypeError, ValueError) as e:
            raise DesiredResourcesError(
                "cannot read desired composed resource",
                context={"name": name, "error": e},
            ) from e
    return desired


def to_composed_resource(manifest: Dict[str, Any]) -> fnv1.Resource:
    """Convert a resource manifest into a composed fnv1.Resource.

    Raises:
        ResourceConversionError: If the manifest holds values that cannot be
            represented in a protobuf Struct
    """
    composed = fnv1.Resource()
    try:
        resource.update(composed, manifest)
    except (TypeError, ValueError) as e:
        raise ResourceConversionError(
            f"cannot convert {manifest.get('kind', 'resource')} to {type(composed).__name__}",
            context={"error": e},
        ) from e
    return composed


def set_desired_composed_resource(
    rsp: fnv1.RunFunctionResponse, name: str, composed: fnv1.Resource
) -> None:
    """Store a composed resource in the desired map of a response.

    An existing entry with the same name is replaced, not merged.

    Raises:
        DesiredResourcesWriteError: If the entry cannot be stored
    """
    try:
        rsp.desired.resources[name].CopyFrom(composed)
    except (TypeError, ValueError) as e:
        raise DesiredResourcesWriteError(
            f"cannot set desired composed resources in {type(rsp).__name__}",
            context={"name": name, "error": e},
        ) from e
