"""
Test suite for the TWAP oracle

Contains:
- tests/unit/          : Unit tests for individual modules
"""
