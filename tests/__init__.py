"""
Test suite for pacts

- Unit tests for schema documents, cache, values and results
- Resolver tier ordering against temporary filesystem trees
- Remote archive loading with mocked HTTP (no real network calls)
- Validator and service behaviour
"""
