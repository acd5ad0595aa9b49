"""Kubernetes resource templates."""

from kubernetes import client

from . import crd


def create_statefulset_manifest(name, namespace, image, replicas=crd.INITIAL_REPLICAS):
    """Create the StatefulSet manifest backing a HelloWorld resource."""
    labels = {"app": name}

    return client.V1StatefulSet(
        api_version="apps/v1",
        kind="StatefulSet",
        metadata=client.V1ObjectMeta(
            name=name,
            namespace=namespace,
        ),
        spec=client.V1StatefulSetSpec(
            replicas=replicas,
            service_name=name,
            selector=client.V1LabelSelector(match_labels=labels),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(labels=labels),
                spec=client.V1PodSpec(
                    containers=[
                        client.V1Container(
                            name=name,
                            image=image,
                            command=list(crd.PLACEHOLDER_COMMAND),
                            ports=[
                                client.V1ContainerPort(container_port=crd.CONTAINER_PORT)
                            ],
                        )
                    ],
                ),
            ),
        ),
    )


def create_inject_command(data):
    """Build the exec argv that writes the bootstrap payload into the pod."""
    return ["sh", "-c", f'echo "{data}" > {crd.DATA_FILE}']
