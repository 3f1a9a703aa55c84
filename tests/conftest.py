"""
Pytest configuration and fixtures for node DNS resolver tests
"""

import pytest
from unittest.mock import MagicMock

from kubernetes import client

from node_dns_resolver.src.hosts import DEFAULT_TEMPLATE_PATH
from node_dns_resolver.src.models import ConfigNotFound


def make_node(*addresses):
    """Build a V1Node from (type, address) pairs."""
    return client.V1Node(
        metadata=client.V1ObjectMeta(name=f"node-{len(addresses)}"),
        status=client.V1NodeStatus(
            addresses=[client.V1NodeAddress(type=t, address=a) for t, a in addresses]
        ),
    )


def make_deployment(annotations=None):
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(name="coredns", namespace="kube-system"),
        spec=client.V1DeploymentSpec(
            selector=client.V1LabelSelector(match_labels={"k8s-app": "kube-dns"}),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(annotations=annotations),
            ),
        ),
    )


@pytest.fixture
def two_nodes():
    """Nodes node-a and node-b with hostname and internal IP."""
    return [
        make_node(("InternalIP", "10.0.0.1"), ("Hostname", "node-a")),
        make_node(("InternalIP", "10.0.0.2"), ("Hostname", "node-b")),
    ]


@pytest.fixture
def mock_cluster(two_nodes):
    """Cluster API collaborator with no published ConfigMap."""
    cluster = MagicMock()
    cluster.list_nodes.return_value = two_nodes
    cluster.read_config_map.return_value = ConfigNotFound()
    cluster.read_deployment.return_value = make_deployment({"other": "value"})
    return cluster


@pytest.fixture
def rendered_path(tmp_path):
    return str(tmp_path / "updated-cm.yaml")


@pytest.fixture
def template_path():
    return DEFAULT_TEMPLATE_PATH
