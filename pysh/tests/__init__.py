"""
PySH Tests

Run with: python -m unittest discover pysh/tests
Or: python -m pytest pysh/tests -v
"""
