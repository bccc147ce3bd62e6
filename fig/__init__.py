"""fig - project-scoped developer tooling for databases and Kubernetes."""

__version__ = "0.5.0"
