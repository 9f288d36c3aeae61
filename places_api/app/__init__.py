"""
Places API application package.

This package contains the FastAPI application for managing places and
the users who own them.  Submodules are organised by concern:

* ``core`` – configuration, logging, database, security, geocoding and
  image storage helpers.
* ``schemas`` – Pydantic models for request and response bodies.
* ``services`` – business logic for places and users.
* ``api`` – versioned HTTP routers.
"""
