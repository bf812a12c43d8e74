"""Test suite for bayesnlme."""
