"""
Unit tests for token handling and the per-event lock registry.
"""
import asyncio
import uuid
import pytest
from datetime import timedelta
from jose import jwt

from attendance.core.config import settings
from attendance.core.errors import ConflictError
from attendance.core.security import create_access_token, decode_token, is_token_revoked
from attendance.services.locks import EventLockRegistry


@pytest.mark.unit
class TestJWTTokens:
    """Test JWT token creation and validation."""

    def test_create_access_token(self):
        """Test creating an access token."""
        user_id = str(uuid.uuid4())
        token = create_access_token({"sub": user_id})

        payload = decode_token(token)
        assert payload["sub"] == user_id
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_expired_token(self):
        """Test that expired tokens are rejected."""
        token = create_access_token({"sub": "user"}, expires_delta=timedelta(seconds=-1))

        with pytest.raises(ValueError, match="expired"):
            decode_token(token)

    def test_token_signed_with_other_key(self):
        token = jwt.encode({"sub": "user", "type": "access"}, "not-the-key", algorithm=settings.ALGORITHM)

        with pytest.raises(ValueError, match="Invalid token"):
            decode_token(token)

    def test_token_without_subject(self):
        token = jwt.encode({"type": "access"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

        with pytest.raises(ValueError, match="sub"):
            decode_token(token)

    @pytest.mark.asyncio
    async def test_revocation_check_with_cache_disabled(self):
        assert await is_token_revoked(create_access_token({"sub": "user"})) is False


@pytest.mark.unit
@pytest.mark.asyncio
class TestEventLockRegistry:
    """Test serialisation of attendance changes per event."""

    async def test_same_event_is_serialised(self):
        registry = EventLockRegistry(timeout=1)
        order = []

        async def worker(name):
            async with registry.hold("event-1"):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))
        assert order in (
            ["a-start", "a-end", "b-start", "b-end"],
            ["b-start", "b-end", "a-start", "a-end"],
        )

    async def test_other_events_do_not_wait(self):
        registry = EventLockRegistry(timeout=0.05)
        async with registry.hold("event-1"):
            async with registry.hold("event-2"):
                pass

    async def test_timeout_raises_conflict(self):
        registry = EventLockRegistry(timeout=0.05)
        async with registry.hold("event-1"):
            with pytest.raises(ConflictError):
                async with registry.hold("event-1"):
                    pass

    async def test_lock_released_after_error(self):
        registry = EventLockRegistry(timeout=0.05)
        with pytest.raises(RuntimeError):
            async with registry.hold("event-1"):
                raise RuntimeError("boom")
        async with registry.hold("event-1"):
            pass
