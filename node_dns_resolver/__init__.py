"""Keeps CoreDNS host overrides in sync with the cluster nodes."""
