import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from kubernetes import client

from .hosts import KUBE_SYSTEM, HostsConfigSynthesizer
from .models import RestartTrigger, RunState
from .snapshot import build_snapshot


logger = logging.getLogger(__name__)

COREDNS_DEPLOYMENT_NAME = "coredns"
RESTART_ANNOTATION = "kubectl.kubernetes.io/restartedAt"


def utc_now_rfc3339() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def replace_restart_marker(deployment, restarted_at: str) -> dict[str, str]:
    """Swap the restart marker on the deployment's pod template, in place.

    Returns the resulting annotations, which hold exactly one marker.
    """
    template = deployment.spec.template
    if template.metadata is None:
        template.metadata = client.V1ObjectMeta()
    if template.metadata.annotations is None:
        template.metadata.annotations = {}
    annotations = template.metadata.annotations
    annotations.pop(RESTART_ANNOTATION, None)
    annotations[RESTART_ANNOTATION] = restarted_at
    return annotations


class Reconciler:
    """Runs the node hosts reconciliation once per process.

    ``cluster_factory`` builds the cluster API handle at the start of every
    pass; the state only moves to DONE after the restart marker is written.
    """

    def __init__(
        self,
        cluster_factory: Callable,
        template_path: str,
        rendered_path: str,
        now_fn: Callable[[], str] = utc_now_rfc3339,
    ):
        self.cluster_factory = cluster_factory
        self.template_path = template_path
        self.rendered_path = rendered_path
        self.now_fn = now_fn
        self.state = RunState.NOT_RUN

    @property
    def done(self) -> bool:
        return self.state is RunState.DONE

    def run_pass(self) -> Optional[RestartTrigger]:
        cluster = self.cluster_factory()

        mapping = build_snapshot(cluster)
        if not mapping:
            logger.info("No nodes with hostname and internal IP found, nothing to do")
            return None

        synthesizer = HostsConfigSynthesizer(cluster, self.template_path, self.rendered_path)
        synthesizer.reconcile(mapping)
        logger.info("ConfigMap update operation completed successfully")

        trigger = self.restart_coredns(cluster)
        self.state = RunState.DONE
        return trigger

    def restart_coredns(self, cluster) -> RestartTrigger:
        deployment = cluster.read_deployment(COREDNS_DEPLOYMENT_NAME, KUBE_SYSTEM)
        restarted_at = self.now_fn()
        annotations = replace_restart_marker(deployment, restarted_at)
        cluster.patch_deployment_annotations(COREDNS_DEPLOYMENT_NAME, KUBE_SYSTEM, annotations)
        logger.info("CoreDNS restart initiated successfully")
        return RestartTrigger(annotation=RESTART_ANNOTATION, restarted_at=restarted_at)
