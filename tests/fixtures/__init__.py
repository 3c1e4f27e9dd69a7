"""Shared test fixtures for precondition tests."""
