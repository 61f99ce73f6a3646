"""
X API service: authenticated X/Twitter operations over HTTP.
"""

from typing import Dict, Optional

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.logging import bind_identity
from shared.secrets_manager import load_secrets

from .auth import (
    CookieDomainPolicy,
    CookieMemo,
    CredentialResolver,
    InstanceRegistry,
    ResolutionContext,
)
from .models import (
    CredentialsRequest,
    FollowingRequest,
    PollRequest,
    SearchRequest,
    TimelineRequest,
    TweetRequest,
    UserTweetsRequest,
)
from .operations import XOperations
from .platform.base import ClientFactory
from .storage import CacheStore, DocumentStore, SessionStore

SERVICE_NAME = "x-api"
SERVICE_PORT = 6011


def default_client_factory():
    from .platform.twikit_client import TwikitPlatformClient
    return TwikitPlatformClient()


class XApiService(BaseService):
    """X API service implementation."""

    def __init__(
        self,
        client_factory: Optional[ClientFactory] = None,
        document_store: Optional[DocumentStore] = None,
        config: Optional[ServiceConfig] = None,
    ):
        config = config or get_config(SERVICE_NAME, SERVICE_PORT)
        load_secrets(config)
        super().__init__(SERVICE_NAME, SERVICE_PORT, config=config)

        self.document_store = document_store or DocumentStore(
            self.config.store_url,
            self.config.store_namespace,
            connect_timeout=self.config.store_connect_timeout,
            socket_timeout=self.config.store_socket_timeout,
            failure_threshold=self.config.store_failure_threshold,
            recovery_timeout=self.config.store_recovery_timeout,
        )
        self.cache_store = CacheStore(
            self.document_store,
            default_ttl=self.config.cache_default_ttl,
            metrics=self.metrics,
        )
        self.session_store = SessionStore(self.document_store)

        self.registry = InstanceRegistry()
        self.cookie_memo = CookieMemo()
        self.resolver = CredentialResolver(
            ResolutionContext(
                registry=self.registry,
                cookie_memo=self.cookie_memo,
                session_store=self.session_store,
                client_factory=client_factory or default_client_factory,
                cookie_policy=CookieDomainPolicy(
                    self.config.deprecated_cookie_domain,
                    self.config.canonical_cookie_domain,
                ),
            ),
            metrics=self.metrics,
        )
        self.operations = XOperations(
            self.resolver,
            self.cache_store,
            search_timeout=self.config.search_timeout,
            short_ttl=self.config.cache_short_ttl,
            default_ttl=self.config.cache_default_ttl,
        )

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.close()

        self._setup_x_routes()

        self.app.state.x_api_service = self

    async def close(self) -> None:
        self.registry.clear()
        self.cookie_memo.clear()
        self.operations.clear()
        await self.document_store.close()
        self.logger.info("X API service stopped")

    def _setup_x_routes(self):
        """Set up X API routes."""
        ops = self.operations

        def credentials_of(request: CredentialsRequest):
            credentials = request.to_credentials()
            bind_identity(credentials.identity)
            return credentials

        @self.app.get("/")
        async def root():
            return {
                "service": SERVICE_NAME,
                "message": "REST API wrapper for the X platform",
                "version": "1.0.0"
            }

        @self.app.post("/api/login")
        async def login(request: CredentialsRequest):
            """Resolve a session and return the account's own profile."""
            return await ops.get_profile(credentials_of(request))

        @self.app.post("/api/profile/{user}")
        async def target_profile(user: str, request: CredentialsRequest):
            return await ops.get_target_profile(credentials_of(request), user)

        @self.app.post("/api/tweets/{user_id}")
        async def user_tweets(user_id: str, request: UserTweetsRequest):
            return await ops.get_user_tweets(
                credentials_of(request), user_id, request.count, use_cache=request.use_cache
            )

        @self.app.post("/api/timeline")
        async def timeline(request: TimelineRequest):
            return await ops.fetch_timeline(
                credentials_of(request),
                request.count,
                following=request.following,
                use_cache=request.use_cache,
            )

        @self.app.post("/api/search")
        async def search(request: SearchRequest):
            credentials = credentials_of(request)
            query = request.require_query()
            return await ops.search_tweets(
                credentials,
                query,
                request.max_tweets,
                mode=request.mode,
                cursor=request.cursor,
                use_cache=request.use_cache,
            )

        @self.app.post("/api/tweet")
        async def send_tweet(request: TweetRequest):
            credentials = credentials_of(request)
            request.validate_content()
            return await ops.send_tweet(
                credentials,
                text=request.text,
                reply_to_id=request.reply_to_id,
                quote_tweet_id=request.quote_tweet_id,
                media=request.attachments(),
            )

        @self.app.post("/api/tweet/poll")
        async def send_poll(request: PollRequest):
            credentials = credentials_of(request)
            request.validate_poll()
            return await ops.send_tweet_with_poll(
                credentials, request.text, request.options, request.duration_minutes
            )

        @self.app.post("/api/tweet/{tweet_id}")
        async def get_tweet(tweet_id: str, request: CredentialsRequest):
            return await ops.get_tweet(credentials_of(request), tweet_id)

        @self.app.post("/api/following/{user_id}")
        async def following(user_id: str, request: FollowingRequest):
            return await ops.get_following(credentials_of(request), user_id, request.count)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check X API service dependencies."""
        reachable = await self.document_store.ping()
        return {"document_store": "ok" if reachable else "unavailable"}


def create_app(
    client_factory: Optional[ClientFactory] = None,
    document_store: Optional[DocumentStore] = None,
):
    """Create FastAPI application."""
    service = XApiService(client_factory=client_factory, document_store=document_store)
    return service.app


if __name__ == "__main__":
    service = XApiService()
    service.run()
