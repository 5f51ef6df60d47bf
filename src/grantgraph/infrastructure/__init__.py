"""Infrastructure layer — database, graph store, permission graph.

This layer depends on stdlib, the domain layer, and third-party libs
(SQLAlchemy, NetworkX). It must never import from services, commands,
or output. The service layer bridges between callers and infrastructure.
"""
