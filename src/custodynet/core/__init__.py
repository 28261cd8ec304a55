"""
Core components: access predicate, deposit address directory, request
hasher, token ledger and the request registry.
"""
