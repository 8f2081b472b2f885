"""Unit tests for function/composition.py"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from crossplane.function import resource
from crossplane.function.proto.v1 import run_function_pb2 as fnv1

from function.composition import (
    get_desired_composed_resources,
    get_observed_composite,
    get_string,
    set_desired_composed_resource,
    to_composed_resource,
)
from function.exceptions import MissingFieldError, ResourceConversionError


XR = {
    "apiVersion": "example.crossplane.io/v1",
    "kind": "XNsgAllow",
    "metadata": {"name": "example-xr"},
    "spec": {"nsgName": "ng1", "count": 3},
}


def _request(xr=None, desired=None):
    req = fnv1.RunFunctionRequest()
    if xr is not None:
        req.observed.composite.resource.CopyFrom(resource.dict_to_struct(xr))
    for name, manifest in (desired or {}).items():
        req.desired.resources[name].resource.CopyFrom(resource.dict_to_struct(manifest))
    return req


class TestGetString:
    """Tests for dotted field path lookup."""

    def test_nested_string(self):
        assert get_string(XR, "spec.nsgName") == "ng1"

    def test_missing_leaf(self):
        with pytest.raises(MissingFieldError) as exc_info:
            get_string(XR, "spec.region")
        assert exc_info.value.context["path"] == "spec.region"

    def test_missing_parent(self):
        with pytest.raises(MissingFieldError):
            get_string({"metadata": {}}, "spec.nsgName")

    def test_parent_not_an_object(self):
        with pytest.raises(MissingFieldError):
            get_string({"spec": "flat"}, "spec.nsgName")

    def test_not_a_string(self):
        with pytest.raises(MissingFieldError) as exc_info:
            get_string(XR, "spec.count")
        assert "not a string" in str(exc_info.value)


class TestRequestReaders:
    """Tests for reading the request envelope."""

    def test_observed_composite(self):
        xr = get_observed_composite(_request(XR))
        assert xr["spec"]["nsgName"] == "ng1"
        assert xr["kind"] == "XNsgAllow"

    def test_no_observed_composite(self):
        assert get_observed_composite(fnv1.RunFunctionRequest()) == {}

    def test_desired_composed_resources(self):
        req = _request(XR, desired={"other": {"kind": "Other"}})
        assert get_desired_composed_resources(req) == {"other": {"kind": "Other"}}

    def test_no_desired_composed_resources(self):
        assert get_desired_composed_resources(_request(XR)) == {}


class TestResponseWriters:
    """Tests for converting and storing composed resources."""

    def test_to_composed_resource(self):
        composed = to_composed_resource({"kind": "SecurityRule", "spec": {"a": ["b"]}})
        assert resource.struct_to_dict(composed.resource) == {
            "kind": "SecurityRule",
            "spec": {"a": ["b"]},
        }

    def test_to_composed_resource_rejects_unsupported_values(self):
        with pytest.raises(ResourceConversionError):
            to_composed_resource({"kind": "SecurityRule", "spec": object()})

    def test_set_replaces_existing_entry(self):
        rsp = fnv1.RunFunctionResponse()
        set_desired_composed_resource(
            rsp, "xbuckets-ng1", to_composed_resource({"kind": "Old", "stale": True})
        )
        set_desired_composed_resource(
            rsp, "xbuckets-ng1", to_composed_resource({"kind": "New"})
        )

        assert list(rsp.desired.resources.keys()) == ["xbuckets-ng1"]
        assert resource.struct_to_dict(
            rsp.desired.resources["xbuckets-ng1"].resource
        ) == {"kind": "New"}
