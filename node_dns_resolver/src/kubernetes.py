import logging

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from .models import ConfigFound, ConfigNotFound, ConfigReadError, ConfigReadResult


logger = logging.getLogger(__name__)

# Filled in by the API server, never part of a synthesized document.
SERVER_METADATA_FIELDS = (
    "resourceVersion",
    "uid",
    "creationTimestamp",
    "managedFields",
    "generation",
    "selfLink",
)


def load_client_configuration(in_cluster: bool) -> None:
    if in_cluster:
        config.load_incluster_config()
        logger.info("using (In Cluster) configuration")
    else:
        config.load_kube_config()
        logger.info("using (Default) configuration")


def to_document(obj) -> dict:
    """Serialize a kubernetes model (or plain dict) to camelCase JSON form.

    ``None`` values and server-populated metadata are dropped so that a
    published document compares equal to the one it was created from.
    """
    document = client.ApiClient().sanitize_for_serialization(obj) or {}
    metadata = document.get("metadata")
    if isinstance(metadata, dict):
        for field in SERVER_METADATA_FIELDS:
            metadata.pop(field, None)
    return document


class KubernetesClusterClient:
    def __init__(self, in_cluster: bool, core_v1=None, apps_v1=None):
        if core_v1 is None or apps_v1 is None:
            load_client_configuration(in_cluster)
        self.core_v1 = core_v1 or client.CoreV1Api()
        self.apps_v1 = apps_v1 or client.AppsV1Api()

    def list_nodes(self) -> list:
        node_list = self.core_v1.list_node()
        if node_list is None or not node_list.items:
            return []
        return list(node_list.items)

    def read_config_map(self, name: str, namespace: str) -> ConfigReadResult:
        try:
            config_map = self.core_v1.read_namespaced_config_map(name, namespace)
        except ApiException as e:
            if e.status == 404:
                return ConfigNotFound()
            return ConfigReadError(cause=e)
        return ConfigFound(document=to_document(config_map))

    def patch_config_map(self, name: str, namespace: str, patch: list[dict]) -> None:
        # A list body is sent as application/json-patch+json.
        self.core_v1.patch_namespaced_config_map(name, namespace, patch)

    def create_config_map(self, namespace: str, document: dict) -> None:
        self.core_v1.create_namespaced_config_map(namespace, document)

    def read_deployment(self, name: str, namespace: str) -> client.V1Deployment:
        return self.apps_v1.read_namespaced_deployment(name, namespace)

    def patch_deployment_annotations(
        self, name: str, namespace: str, annotations: dict[str, str]
    ) -> None:
        body = {"spec": {"template": {"metadata": {"annotations": annotations}}}}
        self.apps_v1.patch_namespaced_deployment(name, namespace, body)
