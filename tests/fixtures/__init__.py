"""Shared test fixtures package.

Provides suite classes and helpers used across the unit tests. Suites
record what they do in ``SPY``; ``tests/conftest.py`` clears it before
every test.
"""
