"""
repositories/ - Data Access Layer
==================================
Each repository wraps the generic DataStore for one domain entity.
Store calls are blocking, so repositories run them in a worker thread and
expose coroutines; they return domain model objects, never raw rows.
"""
