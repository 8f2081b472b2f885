"""Request handler for the nsgallow composition function.

FunctionRunner observes a composite resource with spec.nsgName, fetches the
published IPv4 ranges and adds one SecurityRule allowing them to the desired
composed resources. Any failure stops the run with a single fatal result and
leaves the desired composed resources as they were in the request.
"""

import asyncio
from typing import Optional

import grpc
from crossplane.function import logging, response
from crossplane.function.proto.v1 import run_function_pb2 as fnv1
from crossplane.function.proto.v1 import run_function_pb2_grpc as grpcv1

import function.composition as composition
import function.ipranges as ipranges
import function.nsg_config as nsg_config
from function.exceptions import (
    AddressFetchError,
    DesiredResourcesError,
    DesiredResourcesWriteError,
    MissingFieldError,
    ResourceConversionError,
    ResponseBodyError,
)
from function.security_rule import SecurityRule


class FunctionRunner(grpcv1.FunctionRunnerService):
    """A FunctionRunner handles gRPC RunFunctionRequests."""

    def __init__(
        self,
        url: str = nsg_config.ADDRESS_RANGES_URL,
        timeout: float = nsg_config.DEFAULT_FETCH_TIMEOUT,
        retries: int = nsg_config.DEFAULT_FETCH_RETRIES,
    ):
        """Create a new FunctionRunner.

        Args:
            url: Address range endpoint
            timeout: Fetch timeout in seconds
            retries: Fetch retries on transient failures
        """
        self.log = logging.get_logger()
        self.url = url
        self.timeout = timeout
        self.retries = retries

    async def RunFunction(
        self, req: fnv1.RunFunctionRequest, _: Optional[grpc.aio.ServicerContext]
    ) -> fnv1.RunFunctionResponse:
        """Run the function."""
        log = self.log.bind(tag=req.meta.tag)
        log.info("Running function")

        # Copies the desired state and context from the request
        rsp = response.to(req)

        xr = composition.get_observed_composite(req)
        metadata = xr.get("metadata")
        log = log.bind(
            xr_version=xr.get("apiVersion", ""),
            xr_kind=xr.get("kind", ""),
            xr_name=metadata.get("name", "") if isinstance(metadata, dict) else "",
        )

        try:
            nsg_name = composition.get_string(xr, nsg_config.NSG_NAME_FIELD)
        except MissingFieldError as e:
            response.fatal(
                rsp,
                f"cannot read {nsg_config.NSG_NAME_FIELD} field of "
                f"{xr.get('kind', 'composite resource')}: {e}",
            )
            return rsp

        try:
            desired = composition.get_desired_composed_resources(req)
        except DesiredResourcesError as e:
            response.fatal(rsp, f"cannot get desired resources from {type(req).__name__}: {e}")
            return rsp

        try:
            addresses = await asyncio.to_thread(
                ipranges.get_source_address_prefixes,
                self.url,
                self.timeout,
                self.retries,
            )
        except AddressFetchError as e:
            response.fatal(rsp, f"failed to fetch IP addresses from URL: {e}")
            return rsp
        except ResponseBodyError as e:
            response.fatal(rsp, f"failed to read response body: {e}")
            return rsp

        rule = SecurityRule.for_nsg(nsg_name, addresses)

        try:
            composed = composition.to_composed_resource(rule.to_resource())
        except ResourceConversionError as e:
            response.fatal(rsp, f"cannot convert {type(rule).__name__}: {e}")
            return rsp

        if rule.name in desired:
            log.debug("Replacing desired security rule", name=rule.name)

        try:
            composition.set_desired_composed_resource(rsp, rule.name, composed)
        except DesiredResourcesWriteError as e:
            response.fatal(rsp, f"cannot set desired composed resources: {e}")
            return rsp

        log.info(
            "Added desired security rule",
            nsg_name=nsg_name,
            addresses=len(addresses),
        )
        response.normal(
            rsp, f"Allowed {len(addresses)} source addresses into NSG {nsg_name}"
        )

        return rsp
