"""Kubernetes Service Reconciler (KSR).

Long-running control process that:
 - exposes a small HTTP management API
 - creates and deletes Kubernetes Service objects in one namespace
 - shuts down on SIGHUP/SIGINT/SIGTERM/SIGQUIT with a classified exit code

The implementation is intentionally small so it can be audited and explained.
"""
