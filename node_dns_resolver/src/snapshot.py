import logging

from .models import HostMapping, NodeEntry


logger = logging.getLogger(__name__)

HOSTNAME_ADDRESS = "Hostname"
INTERNAL_IP_ADDRESS = "InternalIP"


def node_entry(node) -> NodeEntry | None:
    """Return the node's entry, or None when hostname or internal IP is missing.

    Later records of the same type overwrite earlier ones.
    """
    ip = ""
    hostname = ""
    status = getattr(node, "status", None)
    for address in getattr(status, "addresses", None) or []:
        if address.type == HOSTNAME_ADDRESS:
            hostname = address.address
        elif address.type == INTERNAL_IP_ADDRESS:
            ip = address.address
    if not ip or not hostname:
        return None
    return NodeEntry(ip=ip, hostname=hostname)


def build_host_mapping(nodes) -> HostMapping:
    mapping = HostMapping()
    for node in nodes or []:
        entry = node_entry(node)
        if entry is None:
            continue
        mapping.add(entry)
        logger.info(f"Added host ({entry.hostname}) with ({entry.ip}) to config")
    return mapping


def build_snapshot(cluster) -> HostMapping:
    nodes = cluster.list_nodes() or []
    logger.info(f"Found ({len(nodes)}) nodes")
    return build_host_mapping(nodes)
