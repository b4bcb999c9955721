"""auth/ -- Authentication and authorization package for SmartSprint.

Layer rule: auth/ imports only stdlib + third-party libraries, plus core/.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
