"""
Shared pytest fixtures for the HelloWorld operator tests.

This module provides:
- FakeCluster: in-memory stand-in for ClusterClient tracking statefulsets and pod logs
- FakeChannel: exec channel double that "writes" the payload into the fake pod log
- RecordingDelay: delay double that records requested waits without sleeping
"""

from typing import Dict, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from helloworld_operator.crd import API_VERSION, KIND


def make_statefulset(name: str, replicas: Optional[int]) -> client.V1StatefulSet:
    status = None if replicas is None else client.V1StatefulSetStatus(replicas=replicas)
    labels = {"app": name}
    return client.V1StatefulSet(
        metadata=client.V1ObjectMeta(name=name),
        spec=client.V1StatefulSetSpec(
            selector=client.V1LabelSelector(match_labels=labels),
            template=client.V1PodTemplateSpec(metadata=client.V1ObjectMeta(labels=labels)),
        ),
        status=status,
    )


def make_resource(name="hello-world-example", workload="web", image="nginx", data="hi", replicas=2):
    return {
        "apiVersion": API_VERSION,
        "kind": KIND,
        "metadata": {"name": name, "namespace": "default"},
        "spec": {"name": workload, "image": image, "data": data, "replicas": replicas},
    }


class FakeCluster:
    """In-memory cluster exposing the ClusterClient capability set."""

    def __init__(self, namespace: str = "default", resource: Optional[dict] = None):
        self.namespace = namespace
        self.resource = resource
        self.replicas: Dict[str, int] = {}
        self.logs: Dict[str, str] = {}
        self.created: List[client.V1StatefulSet] = []
        self.scale_calls: List[Tuple[str, int]] = []
        self.core = MagicMock()

    def get_statefulset(self, name):
        if name not in self.replicas:
            return None
        return make_statefulset(name, self.replicas[name])

    def create_statefulset(self, body):
        name = body.metadata.name
        if name in self.replicas:
            raise ApiException(status=409, reason="AlreadyExists")
        self.created.append(body)
        self.replicas[name] = body.spec.replicas
        return body

    def scale_statefulset(self, name, replicas):
        self.scale_calls.append((name, replicas))
        self.replicas[name] = replicas

    def get_helloworld(self, name):
        if self.resource is None or self.resource["metadata"]["name"] != name:
            return None
        return self.resource

    def get_pod_log(self, pod_name, namespace=None):
        return self.logs.get(pod_name, "")


class FakeChannel:
    """Exec channel whose injection shows up in the pod log when ``effective``."""

    def __init__(self, cluster: FakeCluster, effective: bool = True):
        self.cluster = cluster
        self.effective = effective
        self.calls: List[Tuple[str, str, str]] = []

    def inject(self, pod_name, namespace, data):
        self.calls.append((pod_name, namespace, data))
        if self.effective:
            self.cluster.logs[pod_name] = self.cluster.logs.get(pod_name, "") + f"{data}\n"


class RecordingDelay:
    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds):
        self.calls.append(seconds)
        return True

    def interrupt(self):
        pass


@pytest.fixture
def resource():
    return make_resource()


@pytest.fixture
def cluster(resource):
    return FakeCluster(resource=resource)


@pytest.fixture
def channel(cluster):
    return FakeChannel(cluster)


@pytest.fixture
def delay():
    return RecordingDelay()
