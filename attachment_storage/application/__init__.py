"""Application layer: DTOs, ports (interfaces) and use cases.

Depends on the domain layer only; infrastructure implements the ports.
"""
