"""
Rate limiting middleware using a Redis fixed window per client and endpoint group
"""

import logging
from typing import Optional, Dict, Tuple
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings

# Configure logging
logger = logging.getLogger(__name__)

# Endpoint group -> (requests, window seconds); groups missing here use the settings defaults
ENDPOINT_LIMITS: Dict[str, Tuple[int, int]] = {
    "auth": (10, 300),
    "join": (10, 60),
    "payment": (5, 300),
    "withdrawal": (3, 3600),
}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware for auth, join, payment and withdrawal endpoints"""
    
    def __init__(self, app, redis_client=None, limits: Optional[Dict[str, Tuple[int, int]]] = None):
        super().__init__(app)
        self.redis_client = redis_client
        self.limits = limits if limits is not None else ENDPOINT_LIMITS
    
    async def dispatch(self, request: Request, call_next):
        """Process request with rate limiting"""
        
        # Skip rate limiting if Redis is not available
        if not self.redis_client:
            return await call_next(request)
        
        group = self._get_endpoint_group(request)
        if not group:
            return await call_next(request)
        
        client_ip = request.client.host if request.client else "unknown"
        key = f"rate_limit:{group}:{client_ip}"
        max_requests, window = self.limits.get(
            group, (settings.rate_limit_requests, settings.rate_limit_window_seconds)
        )
        
        is_allowed, retry_after = await self._check_rate_limit(key, max_requests, window)
        
        if not is_allowed:
            logger.warning(f"Rate limit exceeded for key: {key}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": "Rate limit exceeded",
                    "retry_after": retry_after
                },
                headers={"Retry-After": str(retry_after)}
            )
        
        response = await call_next(request)
        
        await self._record_request(key, window)
        
        return response
    
    def _get_endpoint_group(self, request: Request) -> Optional[str]:
        """Map a request to its rate limit group, None for unlimited endpoints"""
        path = request.url.path
        prefix = settings.api_v1_prefix
        
        if path.startswith(f"{prefix}/auth/"):
            return "auth"
        
        if request.method != "POST":
            return None
        
        if path.startswith(f"{prefix}/tournaments/") and path.endswith("/join"):
            return "join"
        
        if path.startswith(f"{prefix}/payments"):
            return "payment"
        
        if path.startswith(f"{prefix}/withdrawals"):
            return "withdrawal"
        
        return None
    
    async def _check_rate_limit(self, key: str, max_requests: int, window: int) -> Tuple[bool, int]:
        """Check if request is within rate limit"""
        try:
            request_count = await self.redis_client.get(key)
            request_count = int(request_count) if request_count else 0
            
            if request_count >= max_requests:
                ttl = await self.redis_client.ttl(key)
                retry_after = max(1, ttl) if ttl > 0 else window
                return False, retry_after
            
            return True, 0
            
        except Exception as e:
            logger.error(f"Error checking rate limit for key {key}: {e}")
            # Allow request if rate limiting fails
            return True, 0
    
    async def _record_request(self, key: str, window: int):
        """Record a request for rate limiting"""
        try:
            pipe = self.redis_client.pipeline()
            pipe.incr(key)
            pipe.expire(key, window)
            await pipe.execute()
            
        except Exception as e:
            logger.error(f"Error recording request for key {key}: {e}")
