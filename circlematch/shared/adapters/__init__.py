"""
Adapters Package

Collaborators of the matching service and their database-backed
implementations. The matching service depends only on the protocols, so
tests substitute in-memory versions.

Contents:
=========
- waitlist_provider: WaitlistProvider / SqlWaitlistProvider
- circle_store: CircleStore / SqlCircleStore
- resource_provider: ResourcePoolProvider / SqlResourcePoolProvider
- matching_status_store: MatchingStatusStore / SqlMatchingStatusStore

Usage:
======
    from circlematch.shared.db import AsyncSessionLocal
    from circlematch.shared.adapters.circle_store import SqlCircleStore

    store = SqlCircleStore(AsyncSessionLocal)
"""
