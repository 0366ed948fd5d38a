"""Test suite for the OpenSearch client.

Unit tests live in ``tests/unit``; ``tests/integration`` drives discovery,
searching and the CLI against a mocked HTTP catalogue. Run ``pytest`` from
the project root.
"""
