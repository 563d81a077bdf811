"""
db/ - Database Layer
====================
Handles the PostgreSQL connection pool, schema initialization and the generic
user-scoped CRUD store. This layer is the lowest in the architecture and has
no dependencies on other layers.
"""
