"""Integration test package.

These tests exercise discovery, searching, pagination and the CLI end to
end. HTTP is mocked with ``respx``; no network access is needed.
"""
