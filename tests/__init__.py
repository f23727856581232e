"""Test suite for the typed-records package.

This package contains unit tests validating type expression compiling,
value coercion, typed containers, records lifecycle, and conversion
to plain data.
"""
