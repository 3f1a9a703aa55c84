import os
import signal
import logging
import threading
from datetime import datetime
from pythonjsonlogger.json import JsonFormatter

from .src.hosts import DEFAULT_TEMPLATE_PATH
from .src.kubernetes import KubernetesClusterClient
from .src.models import ResolverConfig
from .src.reconciler import Reconciler


class NodeDNSResolver:
    def __init__(self):
        self.config = self._get_config()
        self._init_logs()
        self.stop_event = threading.Event()
        self.reconciler = Reconciler(
            cluster_factory=self._cluster_factory,
            template_path=self.config.template_path,
            rendered_path=self.config.rendered_path,
        )

    def _init_logs(self):
        logger = logging.getLogger()
        logHandler = logging.StreamHandler()
        formatter = JsonFormatter("{filename}{levelname}{asctime}{message}", style="{")
        logHandler.setFormatter(formatter)
        logger.addHandler(logHandler)
        logger.setLevel(self.config.log_level.upper())

    def _get_config(self) -> ResolverConfig:
        return ResolverConfig(
            in_cluster=os.getenv("ENV") is not None,
            idle_interval=float(os.getenv("IDLE_INTERVAL", "1")),
            template_path=os.getenv("TEMPLATE_PATH", DEFAULT_TEMPLATE_PATH),
            rendered_path=os.getenv("RENDERED_PATH", "updated-cm.yaml"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def _cluster_factory(self) -> KubernetesClusterClient:
        return KubernetesClusterClient(in_cluster=self.config.in_cluster)

    def stop(self, *_):
        logging.info("Stop requested")
        self.stop_event.set()

    def tick(self):
        if self.reconciler.done:
            self.stop_event.wait(self.config.idle_interval)
            return

        logging.info("Starting kubernetes client at: %s", datetime.now().astimezone())
        try:
            self.reconciler.run_pass()
        except Exception:
            logging.exception("Reconciliation pass failed")
        if not self.reconciler.done:
            self.stop_event.wait(self.config.idle_interval)

    def run(self):
        while not self.stop_event.is_set():
            self.tick()
        logging.info("Node DNS resolver stopped")


def main():
    resolver = NodeDNSResolver()
    signal.signal(signal.SIGTERM, resolver.stop)
    signal.signal(signal.SIGINT, resolver.stop)
    resolver.run()


if __name__ == "__main__":
    main()
