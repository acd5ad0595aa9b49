"""Core reconciliation logic."""

import logging
from kubernetes.client.rest import ApiException

from . import crd
from .k8s import current_replicas
from .templates import create_statefulset_manifest

logger = logging.getLogger(__name__)


def desired_scale(current, desired):
    """Replica count to request for one reconcile pass, or None when in sync.

    Scale-up moves one replica at a time so each new pod can be bootstrapped
    before the next is admitted. Scale-down goes straight to the target.
    """
    if current < desired:
        return current + 1
    if current > desired:
        return desired
    return None


class Reconciler:
    """Drives the StatefulSet of a HelloWorld resource towards its spec."""

    def __init__(self, cluster):
        self.cluster = cluster

    def ensure_statefulset(self, spec):
        """Create the StatefulSet if missing. Returns the existing one, or None if created."""
        statefulset = self.cluster.get_statefulset(spec.name)
        if statefulset is not None:
            return statefulset

        logger.info(f"Creating statefulset {spec.name}")
        body = create_statefulset_manifest(spec.name, self.cluster.namespace, spec.image)
        try:
            self.cluster.create_statefulset(body)
            logger.info(f"Statefulset {spec.name} created")
        except ApiException as e:
            if e.status == 409:
                logger.info(f"Statefulset {spec.name} was created concurrently, skipping")
            else:
                logger.error(f"Failed to create statefulset: {e}")
                raise
        return None

    def on_resource_changed(self, spec, name=None):
        """Handle a HelloWorld create/update event. Never returns a status update."""
        if not isinstance(spec, crd.HelloWorldSpec):
            spec = crd.HelloWorldSpec.from_spec(spec)

        logger.info(f"Reconciling {crd.KIND} {name or spec.name} (workload {spec.name})")

        statefulset = self.ensure_statefulset(spec)
        if statefulset is None:
            return None

        current = current_replicas(statefulset)
        target = desired_scale(current, spec.replicas)
        if target is None:
            logger.info(f"Statefulset {spec.name} has {current} replicas, as desired")
            return None

        direction = "up" if target > current else "down"
        logger.info(f"Scale statefulset {direction}: {spec.name} {current} -> {target} (desired {spec.replicas})")
        self.cluster.scale_statefulset(spec.name, target)
        return None

    def on_resource_deleted(self, name, spec=None):
        """Handle a HelloWorld deletion. The workload is intentionally left in place."""
        workload = (spec or {}).get("name", name)
        logger.info(f"{crd.KIND} {name} deleted, statefulset {workload} is left untouched")
        return None
