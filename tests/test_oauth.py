"""
Tests for the redirect listener, token polling and browser launch.
"""

from unittest.mock import patch

import aiohttp
import pytest

from fedauth.oauth.browser import open_browser
from fedauth.oauth.listener import CallbackListener
from fedauth.oauth.polling import poll_for_token
from fedauth.types.errors import (
    AccessDeniedError,
    AuthorizationPendingError,
    CsrfMismatchError,
    FederationTimeoutError,
    InvalidURLError,
    RateLimitedError,
    UnexpectedError,
    UpstreamError,
)


def expect_state(expected):
    def handler(params):
        if params.get("state") != expected:
            raise CsrfMismatchError()
        return params["code"]
    return handler


class TestCallbackListener:
    """Test the one-shot loopback listener."""

    @pytest.mark.asyncio
    async def test_ephemeral_port_and_success(self):
        """Test a matching callback resolves the wait with the handler result."""
        async with CallbackListener(expect_state("s1"), port=0) as listener:
            assert listener.port > 0
            assert listener.redirect_uri == f"http://127.0.0.1:{listener.port}/redshift/"

            async with aiohttp.ClientSession() as session:
                async with session.get(listener.redirect_uri,
                                       params={'state': 's1', 'code': 'abc'}) as response:
                    assert response.status == 200
                    assert "close this window" in await response.text()
                async with session.get(listener.redirect_uri,
                                       params={'state': 's1', 'code': 'again'}) as response:
                    assert response.status == 410

            assert await listener.wait(5) == "abc"

    @pytest.mark.asyncio
    async def test_state_mismatch(self):
        """Test a forged state is rejected and surfaced to the waiter."""
        async with CallbackListener(expect_state("expected"), port=0) as listener:
            async with aiohttp.ClientSession() as session:
                async with session.get(listener.redirect_uri,
                                       params={'state': 'forged', 'code': 'abc'}) as response:
                    assert response.status == 400

            with pytest.raises(CsrfMismatchError):
                await listener.wait(5)

    @pytest.mark.asyncio
    async def test_form_post(self):
        """Test form_post callbacks are merged with the query."""
        async with CallbackListener(expect_state("s2"), port=0) as listener:
            async with aiohttp.ClientSession() as session:
                async with session.post(listener.redirect_uri,
                                        data={'state': 's2', 'code': 'posted'}) as response:
                    assert response.status == 200
            assert await listener.wait(5) == "posted"

    @pytest.mark.asyncio
    async def test_timeout(self):
        listener = CallbackListener(expect_state("s"), port=0)
        await listener.start()
        try:
            with pytest.raises(FederationTimeoutError) as exc_info:
                await listener.wait(0.05)
            assert str(exc_info.value) == "timeout: Fail to login during timeout."
        finally:
            await listener.stop()

    @pytest.mark.asyncio
    async def test_port_released_after_stop(self):
        """Test the port can be bound again once the listener stops."""
        first = CallbackListener(expect_state("s"), port=0)
        port = await first.start()
        await first.stop()

        second = CallbackListener(expect_state("s"), port=port)
        assert await second.start() == port
        await second.stop()

    def test_port_before_start(self):
        with pytest.raises(RuntimeError):
            CallbackListener(expect_state("s")).port


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class TestPolling:
    """Test device and authorization-code token polling."""

    @pytest.mark.asyncio
    async def test_pending_then_success(self):
        clock = FakeClock()
        outcomes = [AuthorizationPendingError(), AuthorizationPendingError(), {'accessToken': 't'}]

        async def operation():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        result = await poll_for_token(operation, timeout=30, interval=5, clock=clock, sleep=clock.sleep)
        assert result == {'accessToken': 't'}
        assert clock.sleeps == [5, 5]

    @pytest.mark.asyncio
    async def test_pending_until_deadline(self):
        """Test polling stops at the deadline with a timeout error."""
        clock = FakeClock()
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            raise AuthorizationPendingError()

        with pytest.raises(FederationTimeoutError):
            await poll_for_token(operation, timeout=10, interval=4, clock=clock, sleep=clock.sleep)
        assert calls == 3
        assert clock.sleeps == [4, 4, 2]

    @pytest.mark.asyncio
    async def test_default_interval(self):
        clock = FakeClock()
        outcomes = [AuthorizationPendingError(), "done"]

        async def operation():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        assert await poll_for_token(operation, timeout=5, clock=clock, sleep=clock.sleep) == "done"
        assert clock.sleeps == [1.0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        AccessDeniedError("expired device code"),
        RateLimitedError("SlowDownException: slow down"),
        UpstreamError("InternalServerException: unavailable", status=500),
    ])
    async def test_fatal_error_propagates(self, error):
        """Test non-pending errors end polling immediately."""
        clock = FakeClock()
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            raise error

        with pytest.raises(type(error)):
            await poll_for_token(operation, timeout=30, clock=clock, sleep=clock.sleep)
        assert calls == 1
        assert clock.sleeps == []


class TestOpenBrowser:
    """Test browser launch."""

    @pytest.mark.asyncio
    async def test_opens_validated_url(self):
        with patch("fedauth.oauth.browser.webbrowser.open", return_value=True) as mock_open:
            await open_browser("https://idp.example.com/login")
        mock_open.assert_called_once_with("https://idp.example.com/login")

    @pytest.mark.asyncio
    async def test_rejects_invalid_url(self):
        with patch("fedauth.oauth.browser.webbrowser.open") as mock_open:
            with pytest.raises(InvalidURLError):
                await open_browser("http://idp.example.com/login")
        mock_open.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_browser(self):
        with patch("fedauth.oauth.browser.webbrowser.open", return_value=False):
            with pytest.raises(UnexpectedError):
                await open_browser("https://idp.example.com/login")
