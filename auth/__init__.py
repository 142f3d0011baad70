"""auth/ -- Authentication and authorization package for the PRG site.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or sessions/.
api/ imports from auth/, not the other way around.
"""
