"""Infrastructure Layer — database, key-value store, security primitives, external HTTP clients.

Invariants:
    - Infrastructure only imports core/errors and core/repository_protocols from core/
    - All external calls wrapped with timeout and error mapping

Design Decisions:
    - Thin clients over httpx with injectable transports (ADR: testable without network)
"""
