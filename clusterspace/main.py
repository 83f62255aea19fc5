"""Free space preflight check."""

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from clusterspace.config import Settings, get_settings
from clusterspace.exceptions import ClusterSpaceError
from clusterspace.logger import create_logger
from clusterspace.parser import parser
from clusterspace.space.openebs import OpenEBSChecker


def load_kube_config(settings: Settings) -> client.Configuration:
    """Load the kube config file, falling back to the in-cluster configuration."""
    conf = client.Configuration()
    if settings.KUBECONFIG is not None:
        config.load_kube_config(
            config_file=settings.KUBECONFIG, client_configuration=conf
        )
        return conf
    try:
        config.load_incluster_config(client_configuration=conf)
    except ConfigException:
        config.load_kube_config(client_configuration=conf)
    return conf


def main(
    nodes: list[str], *, reserved: int | None = None, log_level: str | int = "INFO"
) -> bool:
    """Main function.

    Build the checker from the settings and check every node. Return True only
    when every node has enough space. Unschedulable nodes are skipped and counted
    as failures.
    """
    settings = get_settings()
    logger = create_logger(settings.APP_NAME, level=log_level)

    try:
        checker = OpenEBSChecker(
            load_kube_config(settings),
            logger=logger,
            image=settings.PROBE_IMAGE,
            src_sc=settings.SRC_STORAGE_CLASS,
            dst_sc=settings.DST_STORAGE_CLASS,
            namespace=settings.PROBE_NAMESPACE,
            mount_path=settings.PROBE_MOUNT_PATH,
            poll_interval=settings.POLL_INTERVAL,
            delete_pv_timeout=settings.DELETE_PV_TIMEOUT,
            job_timeout=settings.JOB_TIMEOUT,
        )
        results = checker.check(
            nodes, reserved, multithreading=settings.MULTITHREADING
        )
    except ClusterSpaceError as e:
        logger.error("%s", e.message)
        return False

    success = True
    for node in nodes:
        result = results.get(node)
        if result is None:
            logger.error("Node %s has not been checked", node)
            success = False
        elif not result.has_space:
            logger.error("Node %s has only %d bytes available", node, result.free)
            success = False
    return success


def run() -> None:
    """Console script entry point."""
    args = parser.parse_args()
    if not main(args.nodes, reserved=args.reserved, log_level=args.loglevel.upper()):
        exit(1)


if __name__ == "__main__":
    run()
