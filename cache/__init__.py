"""
cache/
------
In-process query cache with stale-time freshness, in-flight fetch sharing
and optimistic mutations with snapshot/rollback.
"""
