"""grantgraph — permission-graph access control for a shared object store."""

__version__ = "0.1.0"
