"""
Tests for node_dns_resolver.main
"""

import logging
import os

import pytest
from unittest.mock import MagicMock, patch

from node_dns_resolver.main import NodeDNSResolver
from node_dns_resolver.src.hosts import DEFAULT_TEMPLATE_PATH
from node_dns_resolver.src.models import RunState


@pytest.fixture
def resolver(monkeypatch):
    monkeypatch.delenv("ENV", raising=False)
    monkeypatch.setenv("IDLE_INTERVAL", "0")
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield NodeDNSResolver()
    root.handlers = handlers
    root.setLevel(level)


class TestConfig:
    """Tests for environment driven configuration."""

    def test_defaults(self, resolver):
        assert resolver.config.in_cluster is False
        assert resolver.config.idle_interval == 0
        assert resolver.config.template_path == DEFAULT_TEMPLATE_PATH
        assert resolver.config.rendered_path == "updated-cm.yaml"
        assert resolver.config.log_level == "INFO"

    def test_env_selects_in_cluster(self, resolver):
        with patch.dict(os.environ, {"ENV": "production", "RENDERED_PATH": "/tmp/cm.yaml"}):
            config = resolver._get_config()

        assert config.in_cluster is True
        assert config.rendered_path == "/tmp/cm.yaml"

    def test_cluster_factory_uses_mode(self, resolver):
        with patch("node_dns_resolver.main.KubernetesClusterClient") as cluster_client:
            resolver._cluster_factory()

        cluster_client.assert_called_once_with(in_cluster=False)


class TestSchedulingLoop:
    """Tests for the run-once scheduling loop."""

    def test_first_tick_runs_pass(self, resolver):
        resolver.reconciler = MagicMock(done=False)

        resolver.tick()

        resolver.reconciler.run_pass.assert_called_once_with()

    def test_done_tick_is_idle(self, resolver):
        resolver.reconciler = MagicMock(done=True)
        resolver.stop_event = MagicMock()

        resolver.tick()

        resolver.reconciler.run_pass.assert_not_called()
        resolver.stop_event.wait.assert_called_once_with(0)

    def test_failed_pass_is_logged_and_retried(self, resolver, caplog):
        resolver.reconciler = MagicMock(done=False)
        resolver.reconciler.run_pass.side_effect = RuntimeError("boom")

        with caplog.at_level(logging.ERROR):
            resolver.tick()
            resolver.tick()

        assert resolver.reconciler.run_pass.call_count == 2
        assert "Reconciliation pass failed" in caplog.text

    def test_run_until_stopped(self, resolver):
        resolver.reconciler = MagicMock(done=False)
        resolver.reconciler.run_pass.side_effect = lambda: resolver.stop()

        resolver.run()

        resolver.reconciler.run_pass.assert_called_once_with()
        assert resolver.stop_event.is_set()

    def test_stopped_before_first_tick(self, resolver):
        resolver.reconciler = MagicMock(done=False)
        resolver.stop()

        resolver.run()

        resolver.reconciler.run_pass.assert_not_called()

    def test_empty_cluster_stays_not_run(self, resolver):
        cluster = MagicMock()
        cluster.list_nodes.return_value = []
        resolver.reconciler.cluster_factory = lambda: cluster

        resolver.tick()
        resolver.tick()

        assert resolver.reconciler.state is RunState.NOT_RUN
        assert cluster.list_nodes.call_count == 2
        cluster.read_config_map.assert_not_called()
        cluster.read_deployment.assert_not_called()
