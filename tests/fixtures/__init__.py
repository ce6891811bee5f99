"""Test fixture data for the appharness test suite."""
