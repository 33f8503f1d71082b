"""KubePulse: workload health monitoring and alert coalescing for Kubernetes."""

__version__ = "0.3.0"
