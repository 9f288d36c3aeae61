"""
Pydantic schema definitions for API payloads.

Places and users each define their own request and response models.
Schemas are separated from the database tables to decouple the API
representation from persistence.
"""
