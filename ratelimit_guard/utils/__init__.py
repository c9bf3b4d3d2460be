"""
Utility Package

- hashing.py: Route identity and store key derivation
"""
