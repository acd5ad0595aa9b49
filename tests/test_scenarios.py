"""End-to-end flows across the reconciler and the bootstrap watcher."""

from helloworld_operator.bootstrap import BootstrapState, BootstrapWatcher
from helloworld_operator.reconcile import Reconciler


def make_components(cluster, channel, delay):
    reconciler = Reconciler(cluster)
    watcher = BootstrapWatcher(
        cluster,
        channel,
        resource_name="hello-world-example",
        delay_seconds=10,
        delay=delay,
    )
    return reconciler, watcher


def test_scale_out_is_gated_by_bootstrap(cluster, channel, delay, resource):
    reconciler, watcher = make_components(cluster, channel, delay)

    reconciler.on_resource_changed(resource["spec"])
    assert cluster.replicas == {"web": 1}

    first = watcher.on_pod_event("ADDED", "web-0", "default")
    assert first.injection == BootstrapState.INJECTED
    assert first.state == BootstrapState.VERIFIED
    assert cluster.replicas == {"web": 2}

    assert watcher.on_pod_event("ADDED", "web-1", "default").state == BootstrapState.VERIFIED
    assert cluster.replicas == {"web": 2}
    assert cluster.scale_calls == [("web", 2)]
    assert [call[0] for call in channel.calls] == ["web-0", "web-1"]

    # A later resync of the resource finds nothing to do
    reconciler.on_resource_changed(resource["spec"])
    assert cluster.scale_calls == [("web", 2)]


def test_scale_down_skips_bootstrap(cluster, channel, delay, resource):
    reconciler, _ = make_components(cluster, channel, delay)
    cluster.replicas["web"] = 2
    resource["spec"]["replicas"] = 1

    reconciler.on_resource_changed(resource["spec"])

    assert cluster.scale_calls == [("web", 1)]
    assert channel.calls == []
    assert delay.calls == []


def test_marker_on_first_check_opens_no_session(cluster, channel, delay):
    _, watcher = make_components(cluster, channel, delay)
    cluster.replicas["web"] = 2
    cluster.logs["web-0"] = "hi\n"

    result = watcher.on_pod_event("ADDED", "web-0", "default")

    assert result.injection == BootstrapState.ALREADY_INJECTED
    assert BootstrapState.INJECTED not in result.transitions
    assert result.state == BootstrapState.VERIFIED
    assert channel.calls == []


def test_unverified_pod_blocks_further_scale_out(cluster, delay, resource):
    from conftest import FakeChannel

    channel = FakeChannel(cluster, effective=False)
    reconciler, watcher = make_components(cluster, channel, delay)
    resource["spec"]["replicas"] = 3

    reconciler.on_resource_changed(resource["spec"])
    assert watcher.on_pod_event("ADDED", "web-0", "default").state == BootstrapState.UNVERIFIED
    assert cluster.replicas == {"web": 1}
