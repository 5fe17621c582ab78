"""
External system integrations (TMDb).

New external catalog clients should live under this namespace so they remain
decoupled from entrypoints (`scripts/`).
"""
