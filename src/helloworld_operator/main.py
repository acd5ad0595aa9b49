"""Main operator entrypoint using Kopf."""

import logging
import kopf

from . import crd
from .bootstrap import BootstrapWatcher, Delay
from .exec_channel import ExecChannel
from .k8s import ClusterClient
from .reconcile import Reconciler
from .settings import OperatorSettings

logger = logging.getLogger(__name__)

# Shared components, built once on startup
_settings = None
_reconciler = None
_watcher = None
_delay = None


def configure_logging(level):
    """Apply LOG_LEVEL, also when kopf has already installed its own handlers."""
    numeric_level = getattr(logging, level, logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger().setLevel(numeric_level)


def init_components(settings, cluster=None, delay=None, channel=None):
    """Wire the reconciler and bootstrap watcher around one shared cluster client."""
    global _settings, _reconciler, _watcher, _delay

    cluster = cluster or ClusterClient.from_config(settings.namespace)
    _delay = delay or Delay()
    _settings = settings
    _reconciler = Reconciler(cluster)
    _watcher = BootstrapWatcher(
        cluster,
        channel or ExecChannel(cluster),
        resource_name=settings.resource_name,
        delay_seconds=settings.bootstrap_delay,
        delay=_delay,
        serialize=settings.serialize_bootstrap,
    )
    return _reconciler, _watcher


def get_components():
    """Get the initialized reconciler and watcher."""
    if _reconciler is None or _watcher is None:
        init_components(_settings or OperatorSettings.from_env())
    return _reconciler, _watcher


@kopf.on.startup()
def startup(settings, **kwargs):
    """Load operator settings and build the shared components."""
    operator_settings = OperatorSettings.from_env()
    configure_logging(operator_settings.log_level)

    settings.posting.level = logging.WARNING
    # Bootstrap waits block a worker thread per added pod
    settings.execution.max_workers = 20

    init_components(operator_settings)
    logger.info(
        f"Operator started in namespace {operator_settings.namespace}, "
        f"watching pods of {crd.KIND} {operator_settings.resource_name}"
    )


@kopf.on.cleanup()
def cleanup(**kwargs):
    """Cut pending bootstrap waits short so handlers can finish."""
    if _delay is not None:
        _delay.interrupt()


@kopf.on.create(crd.GROUP, crd.VERSION, crd.PLURAL)
@kopf.on.update(crd.GROUP, crd.VERSION, crd.PLURAL)
def helloworld_handler(spec, name, namespace, **kwargs):
    """Handle HelloWorld create/update events."""
    logger.info(f"Handling {crd.KIND} {name} in namespace {namespace}")
    reconciler, _ = get_components()

    try:
        return reconciler.on_resource_changed(spec, name=name)
    except ValueError as e:
        logger.error(f"Validation error: {e}")
        raise kopf.PermanentError(str(e))
    except Exception as e:
        logger.error(f"Reconciliation error: {e}", exc_info=True)
        raise kopf.TemporaryError(f"Reconciliation failed: {e}", delay=30)


@kopf.on.delete(crd.GROUP, crd.VERSION, crd.PLURAL, optional=True)
def helloworld_delete(spec, name, **kwargs):
    """Handle HelloWorld deletion."""
    reconciler, _ = get_components()
    reconciler.on_resource_deleted(name, spec=spec)


@kopf.on.event("pods")
def pod_event(type, name, namespace, **kwargs):
    """Bootstrap pods added to the watched workload."""
    # Initial listing events carry no type
    if type is None:
        return
    _, watcher = get_components()
    if namespace != watcher.cluster.namespace:
        return

    result = watcher.on_pod_event(type, name, namespace)
    if result is not None:
        logger.info(f"Pod {name} bootstrap finished: {result.state.value}")


if __name__ == "__main__":
    kopf.run(namespaces=[OperatorSettings.from_env().namespace])
