"""Test package for boetepot."""
