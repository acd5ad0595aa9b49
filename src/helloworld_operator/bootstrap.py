"""Bootstrap of newly added workload pods.

Every pod added to a HelloWorld workload goes through the same sequence:

1. wait for the container to start (fixed delay, no readiness probe)
2. read the pod log; if the payload is already printed, skip injection
3. otherwise write the payload into the data file through an exec session
4. wait again and re-read the log
5. the payload showing up in the log marks the pod as verified
6. a verified pod admits one more replica while the workload is below spec

Progress is never persisted. It is inferred from the pod log each time, since
the placeholder container keeps printing the data file to its log. A run
reports the states it went through as a BootstrapResult.
"""

import enum
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import List

from . import crd
from .k8s import current_replicas

logger = logging.getLogger(__name__)

ADDED = "ADDED"


class BootstrapState(str, enum.Enum):
    OBSERVED = "observed"
    STABILIZING = "stabilizing"
    ALREADY_INJECTED = "already-injected"
    INJECTED = "injected"
    VERIFIED = "verified"
    UNVERIFIED = "unverified"


@dataclass
class BootstrapResult:
    """States one pod went through during a single bootstrap run."""

    pod_name: str
    transitions: List[BootstrapState] = field(default_factory=list)

    def advance(self, state):
        logger.debug(f"Pod {self.pod_name}: {state.value}")
        self.transitions.append(state)

    @property
    def state(self):
        return self.transitions[-1] if self.transitions else None

    @property
    def injection(self):
        """ALREADY_INJECTED or INJECTED, once the first log check has run."""
        for state in self.transitions:
            if state in (BootstrapState.ALREADY_INJECTED, BootstrapState.INJECTED):
                return state
        return None

    @property
    def verified(self):
        return self.state == BootstrapState.VERIFIED


class Delay:
    """Blocking wait that can be cut short from another thread."""

    def __init__(self):
        self._interrupted = threading.Event()

    def __call__(self, seconds):
        """Wait ``seconds``. Returns False if the wait was interrupted."""
        if self._interrupted.wait(seconds):
            logger.warning(f"Wait of {seconds}s interrupted, continuing")
            return False
        return True

    def interrupt(self):
        self._interrupted.set()


class BootstrapWatcher:
    """Reacts to pod events and bootstraps pods of the watched HelloWorld workload."""

    def __init__(self, cluster, channel, resource_name, delay_seconds, delay=None, serialize=False):
        self.cluster = cluster
        self.channel = channel
        self.resource_name = resource_name
        self.delay_seconds = delay_seconds
        self.delay = delay or Delay()
        self.serialize = serialize
        self._locks = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def load_spec(self):
        """Fetch and parse the watched resource; None if it is missing or malformed."""
        resource = self.cluster.get_helloworld(self.resource_name)
        if resource is None:
            logger.warning(f"{crd.KIND} {self.resource_name} not found in {self.cluster.namespace}")
            return None
        try:
            return crd.HelloWorldSpec.from_spec(resource.get("spec"))
        except ValueError as e:
            logger.warning(f"{crd.KIND} {self.resource_name} has an invalid spec: {e}")
            return None

    def on_pod_event(self, event_type, pod_name, namespace):
        """Handle one pod event. Returns a BootstrapResult, or None if the event is ignored."""
        logger.info(f"Received {event_type}, pod name {pod_name}")

        spec = self.load_spec()
        if spec is None:
            return None
        if event_type != ADDED or spec.name not in pod_name:
            return None

        if not self.serialize:
            return self.bootstrap(spec, pod_name, namespace)

        with self._lock_for(spec.name):
            return self.bootstrap(spec, pod_name, namespace)

    def bootstrap(self, spec, pod_name, namespace):
        """Run the wait, check, inject, verify sequence for one pod."""
        result = BootstrapResult(pod_name)
        result.advance(BootstrapState.OBSERVED)

        self.delay(self.delay_seconds)
        result.advance(BootstrapState.STABILIZING)

        logger.info(f"Check if data is available in pod {pod_name}")
        if self._has_marker(spec, pod_name, namespace):
            logger.info(f"Pod {pod_name} already has the data, skipping injection")
            result.advance(BootstrapState.ALREADY_INJECTED)
        else:
            logger.info(f"Inject data into pod {pod_name}")
            self.channel.inject(pod_name, namespace, spec.data)
            result.advance(BootstrapState.INJECTED)

        self.delay(self.delay_seconds)

        if not self._has_marker(spec, pod_name, namespace):
            logger.warning(f"Data not found in pod {pod_name} after {result.state.value}; giving up")
            result.advance(BootstrapState.UNVERIFIED)
            return result

        logger.info(f"Data is available in pod {pod_name}")
        result.advance(BootstrapState.VERIFIED)
        self.scale_out(spec)
        return result

    def scale_out(self, spec):
        """Admit one more replica if the workload is still below spec. Errors are logged only."""
        try:
            statefulset = self.cluster.get_statefulset(spec.name)
            if statefulset is None:
                logger.error(f"Statefulset {spec.name} not found, cannot scale")
                return
            current = current_replicas(statefulset)
            logger.info(f"Statefulset {spec.name} size: {current}, desired: {spec.replicas}")
            if spec.replicas > current:
                self.cluster.scale_statefulset(spec.name, current + 1)
        except Exception as e:
            logger.error(f"Failed to scale statefulset {spec.name}: {e}")

    def _has_marker(self, spec, pod_name, namespace):
        logs = self.cluster.get_pod_log(pod_name, namespace)
        return spec.data in logs

    def _lock_for(self, name):
        with self._locks_guard:
            return self._locks[name]
