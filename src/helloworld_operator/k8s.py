"""Kubernetes client helpers."""

import logging
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from . import crd

logger = logging.getLogger(__name__)


def load_config():
    """Load in-cluster config, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes config")
    except config.ConfigException:
        config.load_kube_config()
        logger.info("Loaded kubeconfig")


def current_replicas(statefulset):
    """Replica count the StatefulSet currently reports."""
    status = statefulset.status
    if status is None or status.replicas is None:
        return 0
    return status.replicas


class ClusterClient:
    """The set of cluster operations the operator components rely on.

    One instance is shared by the reconciler, the bootstrap watcher and the
    exec channel. All calls are scoped to a single namespace.
    """

    def __init__(self, namespace, core=None, apps=None, custom_api=None):
        self.namespace = namespace
        self.core = core or client.CoreV1Api()
        self.apps = apps or client.AppsV1Api()
        self.custom_api = custom_api or client.CustomObjectsApi()

    @classmethod
    def from_config(cls, namespace):
        load_config()
        return cls(namespace)

    def get_statefulset(self, name):
        """Return the StatefulSet or None if it does not exist."""
        try:
            return self.apps.read_namespaced_stateful_set(name=name, namespace=self.namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            logger.error(f"Error getting statefulset {name}: {e}")
            raise

    def create_statefulset(self, body):
        return self.apps.create_namespaced_stateful_set(namespace=self.namespace, body=body)

    def scale_statefulset(self, name, replicas):
        """Set the replica count through the scale subresource."""
        logger.info(f"Scaling statefulset {name} to {replicas} replicas")
        return self.apps.patch_namespaced_stateful_set_scale(
            name=name,
            namespace=self.namespace,
            body={"spec": {"replicas": replicas}},
        )

    def get_helloworld(self, name):
        """Return the HelloWorld custom object or None if it does not exist."""
        try:
            return self.custom_api.get_namespaced_custom_object(
                group=crd.GROUP,
                version=crd.VERSION,
                namespace=self.namespace,
                plural=crd.PLURAL,
                name=name,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            logger.error(f"Error getting {crd.KIND} {name}: {e}")
            raise

    def get_pod_log(self, pod_name, namespace=None):
        """Return the pod log text, or an empty string if the pod is gone."""
        try:
            logs = self.core.read_namespaced_pod_log(
                name=pod_name,
                namespace=namespace or self.namespace,
            )
            return logs or ""
        except ApiException as e:
            if e.status in (400, 404):
                logger.warning(f"Logs of pod {pod_name} unavailable: {e.reason}")
                return ""
            logger.error(f"Error getting pod logs: {e}")
            raise
