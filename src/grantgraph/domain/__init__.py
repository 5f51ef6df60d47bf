"""Domain layer — identifiers, levels, actors, records and error kinds.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
