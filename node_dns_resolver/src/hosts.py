import logging
from pathlib import Path

import jsonpatch
import yaml

from .kubernetes import to_document
from .models import (
    ConfigAction,
    ConfigNotFound,
    ConfigReadError,
    ConfigUpdate,
    HostMapping,
)


logger = logging.getLogger(__name__)

KUBE_SYSTEM = "kube-system"
COREDNS_CONFIG_NAME = "coredns-custom"
PLACEHOLDER = "REPLACE"
# Column of the placeholder inside the hosts block of hosts-cm.yaml.
HOSTS_INDENT = " " * 14

DEFAULT_TEMPLATE_PATH = str(Path(__file__).resolve().parent.parent / "templates" / "hosts-cm.yaml")


class TemplateError(ValueError):
    pass


def render_hosts(mapping: HostMapping) -> str:
    return f"\n{HOSTS_INDENT}".join(
        f"{entry.ip} {entry.hostname}" for entry in mapping.entries()
    )


def render_template(template: str, hosts: str) -> str:
    count = template.count(PLACEHOLDER)
    if count != 1:
        raise TemplateError(
            f"template must contain the {PLACEHOLDER} token exactly once, found {count}"
        )
    return template.replace(PLACEHOLDER, hosts)


def synthesize_document(hosts: str, template_path: str, rendered_path: str) -> dict:
    """Render the ConfigMap template to ``rendered_path`` and load it back."""
    try:
        template = Path(template_path).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise TemplateError(f"template not found: {template_path}") from e

    Path(rendered_path).write_text(render_template(template, hosts), encoding="utf-8")

    with open(rendered_path, encoding="utf-8") as f:
        document = yaml.safe_load(f)
    if not isinstance(document, dict):
        raise TemplateError(f"rendered template is not a mapping: {rendered_path}")
    return document


def compute_patch(current: dict, desired: dict) -> list[dict]:
    return jsonpatch.make_patch(to_document(current), to_document(desired)).patch


class HostsConfigSynthesizer:
    def __init__(self, cluster, template_path: str, rendered_path: str):
        self.cluster = cluster
        self.template_path = template_path
        self.rendered_path = rendered_path

    def reconcile(self, mapping: HostMapping) -> ConfigUpdate:
        hosts = render_hosts(mapping)
        logger.info(f"Final hosts: (({hosts}))")
        desired = synthesize_document(hosts, self.template_path, self.rendered_path)

        current = self.cluster.read_config_map(COREDNS_CONFIG_NAME, KUBE_SYSTEM)
        if isinstance(current, ConfigNotFound):
            try:
                self.cluster.create_config_map(KUBE_SYSTEM, desired)
            except Exception:
                logger.exception("ConfigMap create failed")
                raise
            logger.info("ConfigMap created")
            return ConfigUpdate(action=ConfigAction.CREATED)

        if isinstance(current, ConfigReadError):
            logger.error("ConfigMap read failed", exc_info=current.cause)
            raise current.cause

        patch = compute_patch(current.document, desired)
        if not patch:
            logger.info("ConfigMap already up to date")
            return ConfigUpdate(action=ConfigAction.UNCHANGED)

        logger.info(f"Patching ConfigMap with ({len(patch)}) operations")
        try:
            self.cluster.patch_config_map(COREDNS_CONFIG_NAME, KUBE_SYSTEM, patch)
        except Exception:
            logger.exception("ConfigMap update failed")
            raise
        logger.info("ConfigMap replaced")
        return ConfigUpdate(action=ConfigAction.PATCHED, patch=patch)
