"""auth/ -- Authentication package for authgate.

Credential store, constant-time comparison, verification strategies, and the
session binding middleware.

Layer rule: auth/ imports stdlib, third-party libraries, and core/ only.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
