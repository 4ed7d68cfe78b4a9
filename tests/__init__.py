"""Test package marker so pytest can resolve ``tests.conftest``.

The file exposes no symbols and must stay side-effect free.
"""
