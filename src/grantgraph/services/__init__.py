"""Service layer — permission engine components and ServiceResult operations.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
