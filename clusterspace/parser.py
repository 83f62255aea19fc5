"""Command line arguments parser."""

import argparse
import logging

log_values = [i.lower() for i in logging._nameToLevel.keys()]

parser = argparse.ArgumentParser(
    description="Verify the nodes have enough free space to receive the volumes "
    "migrated to an OpenEBS local volume storage class."
)
parser.add_argument(
    "-l",
    "--loglevel",
    default="warning",
    choices=log_values,
    help=f"Provide logging level. Valid values: {log_values}. \
        Example --loglevel debug, default=warning",
)
parser.add_argument(
    "-r",
    "--reserved",
    type=int,
    default=None,
    help="Bytes that must be free on each node. Defaults to the space used by the "
    "volumes of the source storage class.",
)
parser.add_argument("nodes", nargs="+", help="Names of the nodes to check.")
