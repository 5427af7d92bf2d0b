"""
Core pipeline components: ranking, caching, rate limiting, providers and
stream orchestration, plus their collaborator adapters.
"""
