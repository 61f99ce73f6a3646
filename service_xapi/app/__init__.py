"""
X API access service package.

Wraps an X/Twitter account behind a small HTTP API. Each request carries the
account credentials; the service resolves an authenticated session for that
account without logging in again whenever a known-good session exists.

Structure:
- app.main: FastAPI app and routes.
- app.auth: Session resolution cascade, cookies, in-process registries.
- app.storage: Redis-backed document store, result cache, session store.
- app.platform: Platform client protocol and the twikit adapter.
- app.operations: Business operations with result caching.
"""
