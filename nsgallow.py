#!/usr/bin/env python
import asyncio
import json
import sys

import click
import yaml
from crossplane.function import logging, runtime
from crossplane.function.proto.v1 import run_function_pb2 as fnv1
from google.protobuf import json_format

import function.fn as fn
import function.nsg_config as nsg_config


__version__ = "0.1"


def my_excepthook(exc_type, exc_value, exc_traceback):
    print(f"Unhandled error: {exc_type}, {exc_value}, {exc_traceback}")


def _configure_logging(debug: bool) -> None:
    level = logging.Level.INFO
    if debug:
        level = logging.Level.DEBUG
    logging.configure(level=level)


def _load_request(request_file: str) -> fnv1.RunFunctionRequest:
    """Load a RunFunctionRequest from a YAML or JSON file."""
    with open(request_file, "r") as file:
        data = yaml.safe_load(file)
    if not isinstance(data, dict):
        raise click.BadParameter(
            f"{request_file} does not contain a RunFunctionRequest object",
            param_hint="REQUEST_FILE",
        )
    return json_format.ParseDict(data, fnv1.RunFunctionRequest())


def _has_fatal_result(rsp: fnv1.RunFunctionResponse) -> bool:
    return any(r.severity == fnv1.SEVERITY_FATAL for r in rsp.results)


def fetch_options(f):
    """Options shared by every command that runs the function."""
    f = click.option(
        "--retries",
        envvar="NSGALLOW_RETRIES",
        type=click.IntRange(min=0),
        default=nsg_config.DEFAULT_FETCH_RETRIES,
        show_default=True,
        help="Retries for transient address range fetch failures",
    )(f)
    f = click.option(
        "--timeout",
        envvar="NSGALLOW_TIMEOUT",
        type=click.FloatRange(min=0, min_open=True),
        default=nsg_config.DEFAULT_FETCH_TIMEOUT,
        show_default=True,
        help="Address range fetch timeout in seconds",
    )(f)
    f = click.option(
        "--url",
        envvar="NSGALLOW_URL",
        default=nsg_config.ADDRESS_RANGES_URL,
        show_default=True,
        help="Address range endpoint",
    )(f)
    return f


@click.version_option(version=__version__, prog_name="nsgallow")
@click.group()
def cli():
    """
    nsgallow is a composition function that allows published IPv4 ranges into an Azure NSG

    For help with a specific command type:

    nsgallow [COMMAND] --help

    """
    pass


@cli.command()
@click.option("--debug", "-d", is_flag=True, default=False, help="Emit debug logs")
@click.option(
    "--address",
    default="0.0.0.0:9443",
    show_default=True,
    help="Address at which to listen for gRPC connections",
)
@click.option(
    "--tls-certs-dir",
    envvar="TLS_SERVER_CERTS_DIR",
    help="Serve using mTLS certificates",
)
@click.option(
    "--insecure",
    is_flag=True,
    default=False,
    help="Run without mTLS credentials. If you supply this flag --tls-certs-dir will be ignored",
)
@fetch_options
def serve(debug, address, tls_certs_dir, insecure, url, timeout, retries):
    """Serves the function over gRPC"""
    try:
        _configure_logging(debug)
        runtime.serve(
            fn.FunctionRunner(url=url, timeout=timeout, retries=retries),
            address,
            creds=runtime.load_credentials(tls_certs_dir),
            insecure=insecure,
        )
    except Exception as e:
        click.echo(
            click.style(f"\nERROR: Cannot run function: {e}", fg="red", bold=True),
            err=True,
        )
        sys.exit(1)


@cli.command()
@click.argument("request_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--debug", "-d", is_flag=True, default=False, help="Dump exception tracebacks")
@click.option(
    "--outfile",
    default="",
    help="Write the response JSON to this file instead of stdout",
)
@fetch_options
def render(request_file, debug, outfile, url, timeout, retries):
    """Runs the function once against a RunFunctionRequest file"""
    if not debug:
        sys.excepthook = my_excepthook
    _configure_logging(debug)
    try:
        req = _load_request(request_file)
    except (yaml.YAMLError, json_format.ParseError) as e:
        click.echo(
            click.style(
                f"\nERROR: Cannot load request {request_file}: {e}",
                fg="red",
                bold=True,
            ),
            err=True,
        )
        sys.exit(1)
    runner = fn.FunctionRunner(url=url, timeout=timeout, retries=retries)
    rsp = asyncio.run(runner.RunFunction(req, None))

    output = json.dumps(json_format.MessageToDict(rsp), indent=4, sort_keys=True)
    if outfile:
        if not outfile.endswith(".json"):
            outfile += ".json"
        click.echo(f"\nExporting response into file {outfile}")
        with open(outfile, "w") as f:
            f.write(output)
    else:
        click.echo(output)

    if _has_fatal_result(rsp):
        for result in rsp.results:
            if result.severity == fnv1.SEVERITY_FATAL:
                click.echo(
                    click.style(f"\nERROR: {result.message}", fg="red", bold=True),
                    err=True,
                )
        sys.exit(1)


if __name__ == "__main__":
    cli()
