"""Webhook exporter delivering curated keywords to the automation endpoint."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from keyword_funnel.models.keyword import KeywordRecord
from keyword_funnel.models.webhook import WebhookPayload
from keyword_funnel.utils.logging import get_logger


logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class WebhookError(RuntimeError):
    """Raised when the webhook rejects a delivery or every attempt failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        cause: BaseException | None = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.cause = cause
        self.attempts = attempts


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with linear backoff.

    The wait after failed attempt n is base_delay * n, so with three
    attempts the waits are 1x then 2x base_delay. No wait precedes the
    first attempt.
    """

    max_attempts: int = 3
    base_delay: float = 1.0

    def delay_after(self, attempt_number: int) -> float:
        """Wait inserted after a failed attempt, before the next one."""
        return self.base_delay * attempt_number

    def retrying(
        self,
        *,
        sleep: Sleep = asyncio.sleep,
        before_sleep: Callable[[RetryCallState], None] | None = None,
    ) -> AsyncRetrying:
        """A fresh tenacity controller for one delivery."""
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.base_delay, increment=self.base_delay),
            retry=retry_if_exception_type((WebhookError, httpx.HTTPError)),
            sleep=sleep,
            before_sleep=before_sleep,
        )


class WebhookExporter:
    """Sends keyword batches to the webhook with bounded retry."""

    def __init__(
        self,
        url: str,
        ai_model: str = "openai",
        policy: RetryPolicy | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.url = url
        self.ai_model = ai_model
        self.policy = policy or RetryPolicy()
        self.timeout = timeout
        self.transport = transport
        self._sleep = sleep

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            "Webhook attempt %d failed: %s. Retrying in %.1fs...",
            retry_state.attempt_number, error, delay,
        )

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        keywords: Sequence[KeywordRecord],
        ai_model: str,
        attempt_number: int,
    ) -> None:
        # A new snapshot per attempt; nothing carries over between attempts
        body = WebhookPayload.build(list(keywords), ai_model).to_json()

        logger.info("Sending webhook attempt %d (%d keywords)...", attempt_number, len(keywords))
        logger.debug("Webhook payload: %s", json.dumps(body, indent=2, ensure_ascii=False))

        response = await client.post(
            self.url,
            json=body,
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

        if not response.is_success:
            raise WebhookError(
                f"Server responded with {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                attempts=attempt_number,
            )

    async def send(
        self,
        keywords: Sequence[KeywordRecord],
        ai_model: str | None = None,
    ) -> int:
        """
        Deliver a keyword batch.

        Args:
            keywords: Records to export
            ai_model: AI model selector; defaults to the configured one

        Returns:
            Number of attempts it took

        Raises:
            WebhookError: after every attempt failed, carrying the last
                status code (if any) and the last underlying error
        """
        model = ai_model or self.ai_model
        attempt_number = 0

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self.transport,
        ) as client:
            try:
                async for attempt in self.policy.retrying(
                    sleep=self._sleep,
                    before_sleep=self._log_retry,
                ):
                    with attempt:
                        attempt_number = attempt.retry_state.attempt_number
                        await self._attempt(client, keywords, model, attempt_number)
            except RetryError as exc:
                cause = exc.last_attempt.exception()
                status_code = cause.status_code if isinstance(cause, WebhookError) else None
                logger.error("Webhook delivery failed after %d attempts: %s", attempt_number, cause)
                raise WebhookError(
                    f"Failed to send data to webhook after {attempt_number} attempts",
                    status_code=status_code,
                    cause=cause,
                    attempts=attempt_number,
                ) from cause

        logger.info("Webhook sent successfully")
        return attempt_number


def create_webhook_exporter(
    url: str,
    ai_model: str = "openai",
    max_attempts: int = 3,
    base_delay: float = 1.0,
    timeout: float = 30.0,
) -> WebhookExporter:
    """Factory function to create a webhook exporter."""
    return WebhookExporter(
        url=url,
        ai_model=ai_model,
        policy=RetryPolicy(max_attempts=max_attempts, base_delay=base_delay),
        timeout=timeout,
    )
