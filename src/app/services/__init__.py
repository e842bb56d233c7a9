"""Serviços de aplicação do pipeline de webhooks e recuperação."""

from app.services.missed_feeds_recovery import MissedFeedsRecoveryService
from app.services.processed_markers import ProcessedMarkerStore
from app.services.rate_limit_policies import RateLimitPolicies
from app.services.rate_limiter import (
    RateLimitConfig,
    RateLimitResult,
    SlidingWindowRateLimiter,
)
from app.services.security_events import SecurityEventSink
from app.services.tenant_credentials import TenantCredentials, TenantCredentialsResolver
from app.services.topic_processor import TopicProcessor

__all__ = [
    "MissedFeedsRecoveryService",
    "ProcessedMarkerStore",
    "RateLimitConfig",
    "RateLimitPolicies",
    "RateLimitResult",
    "SecurityEventSink",
    "SlidingWindowRateLimiter",
    "TenantCredentials",
    "TenantCredentialsResolver",
    "TopicProcessor",
]
