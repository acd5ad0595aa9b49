"""CRD schema constants and helpers."""

from dataclasses import dataclass

# CRD Group, Version, and Kind
GROUP = "helloworld.acme.org"
VERSION = "v1alpha1"
PLURAL = "helloworlds"
KIND = "HelloWorld"

# API version string
API_VERSION = f"{GROUP}/{VERSION}"

# Workload shape
CONTAINER_PORT = 80
DATA_FILE = "/tmp/data.txt"
PLACEHOLDER_COMMAND = ["sh", "-c", f"while sleep 5; do cat {DATA_FILE}; done"]
INITIAL_REPLICAS = 1


@dataclass(frozen=True)
class HelloWorldSpec:
    """Desired state declared by a HelloWorld resource."""

    name: str
    image: str
    data: str
    replicas: int

    @classmethod
    def from_spec(cls, spec):
        """Parse a resource spec mapping, raising ValueError when malformed."""
        if spec is None:
            raise ValueError("HelloWorld resource has no spec")

        name = spec.get("name")
        image = spec.get("image")
        if not name:
            raise ValueError("spec.name is required")
        if not image:
            raise ValueError("spec.image is required")

        replicas = spec.get("replicas", 0)
        if isinstance(replicas, bool) or not isinstance(replicas, int):
            raise ValueError(f"spec.replicas must be an integer, got {replicas!r}")
        if replicas < 0:
            raise ValueError(f"spec.replicas must be non-negative, got {replicas}")

        # The payload doubles as the log marker, an empty one would always match
        data = spec.get("data")
        if data is None or str(data) == "":
            raise ValueError("spec.data must be a non-empty string")

        return cls(name=str(name), image=str(image), data=str(data), replicas=replicas)
