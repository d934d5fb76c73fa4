"""Autoheal: restart unhealthy Docker containers with exponential backoff.

Single-node remediation controller that demonstrates:
 - polling the Docker Engine for containers reported `unhealthy` while `running`
 - restarting them, backing off exponentially for containers that keep failing
 - forgetting a failure history once it is older than the reset window
 - read-only status views over a small HTTP API

The implementation is intentionally small so it can be audited and explained.
"""

__version__ = "0.1.0"
