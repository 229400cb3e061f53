"""
Tests for the edge gateway service.
"""
