"""
Service layer abstraction.

Each service encapsulates business logic for a domain so API handlers
stay thin and persistence details stay out of the routers.
"""
