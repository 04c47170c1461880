# tests/test_identity.py

from __future__ import annotations

import pytest

from taskminder.auth.identity import LocalIdentityProvider
from taskminder.core.errors import ValidationError


@pytest.mark.asyncio
async def test_sign_in_and_out_notify_listeners() -> None:
    identity = LocalIdentityProvider()
    changes: list[str | None] = []
    sub = identity.on_auth_state_change(changes.append)

    assert identity.current_user() is None
    assert await identity.sign_in("  alice ") == "alice"
    await identity.sign_in("alice")  # same user: no change event
    await identity.sign_out()
    sub.unsubscribe()
    await identity.sign_in("bob")

    assert changes == ["alice", None]
    assert await identity.refresh_session() == "bob"


@pytest.mark.asyncio
async def test_sign_in_requires_a_user_id() -> None:
    identity = LocalIdentityProvider("alice")
    with pytest.raises(ValidationError):
        await identity.sign_in("   ")
    assert identity.current_user() == "alice"
