"""
Test suite for carto_core

Contains:
- tests/unit/          : Unit tests for individual modules
"""
