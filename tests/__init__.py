"""
Star Polygons test suite.

Structure:
- unit/: Unit tests for individual modules
"""
