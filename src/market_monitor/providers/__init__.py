"""Upstream data providers.

Each provider wraps one third-party API, caches live responses through
``fetch_with_cache`` and reports every answer as a tagged ``ProviderResult``.
"""
