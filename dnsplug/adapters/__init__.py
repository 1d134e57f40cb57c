"""Adapter package for plugin protocol I/O.

Purpose:
    Collect the HTTP proxy for remote provider plugins, the wire models shared
    with ``plugin_api``, and an in-memory provider used offline and in tests.

Dependencies:
    Individual submodules depend on ``requests``, ``pydantic``,
    ``prometheus_client`` and the domain protocol definitions.

Call context:
    Imported by the orchestrator (runtime wiring), by ``plugin_api`` (wire
    models, in-memory provider) and by tests.
"""
