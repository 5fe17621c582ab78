"""
Shared movie curation library code.

This package holds the pieces that coordinate catalog lookups and list ordering:
- request admission and retry for the TMDb catalog (`dispatch`)
- canonical ordering under filtered drags (`ordering`)

Entrypoints (CLI scripts) should live outside this package and import from
`movie_curator` rather than the other way around.
"""
