"""Concurrent click/fill sweep over every button and input on a page.

Interactions run in batches of at most ``concurrency_limit``. Operations
inside a batch are dispatched together and awaited as a unit; batches run
one after another, so batch N has fully settled before batch N+1 starts.
One element failing never stops the sweep.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterator, Sequence, TypeVar
from urllib.parse import urlparse

import httpx
from playwright.async_api import Page

from webaudit.models.types import InteractionSweep, InteractiveElement
from webaudit.utils.dom import click_by_index, query_elements, set_value_by_index

logger = logging.getLogger(__name__)

T = TypeVar("T")

CORS_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
CORS_PROBE_ORIGIN = "https://cors-probe.invalid"


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def fill_value(index: int) -> str:
    return f"test value {index}"


class ElementInteractionRunner:

    def __init__(
        self,
        concurrency_limit: int = 1000,
        user_agent: str | None = None,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be at least 1")
        self.concurrency_limit = concurrency_limit
        self._user_agent = user_agent
        self._timeout_s = timeout_s
        self._transport = transport

    async def run_interaction_sweep(self, page: Page, target: str | None = None) -> InteractionSweep:
        # Clicks may navigate away; preflights go to the audited URL.
        cors_url = target or page.url
        buttons = [
            InteractiveElement(kind="button", index=b["index"], text=b.get("text", ""))
            for b in await query_elements(page, "button")
        ]
        inputs = [
            InteractiveElement(
                kind="input",
                index=i["index"],
                input_type=i.get("type", "text"),
                placeholder=i.get("placeholder", "No placeholder"),
                value_before=i.get("value"),
            )
            for i in await query_elements(page, "input")
        ]
        logger.info("Found %d buttons and %d inputs", len(buttons), len(inputs))

        button_batches = await self._run_batches(buttons, lambda el: self._click(page, el))
        input_batches = await self._run_batches(inputs, lambda el: self._fill(page, el))

        cors = await self.probe_cors(cors_url)

        return InteractionSweep(
            buttons=buttons,
            inputs=inputs,
            cors=cors,
            button_batches=button_batches,
            input_batches=input_batches,
        )

    async def _run_batches(
        self,
        elements: list[InteractiveElement],
        action: Callable[[InteractiveElement], Awaitable[None]],
    ) -> int:
        batches = 0
        for batch in chunked(elements, self.concurrency_limit):
            await asyncio.gather(*(action(el) for el in batch))
            batches += 1
        return batches

    async def _click(self, page: Page, element: InteractiveElement):
        element.attempted = True
        try:
            await click_by_index(page, element.index)
            element.succeeded = True
        except Exception as e:
            element.error_message = str(e)[:300]
            logger.debug("Click on button %d failed: %s", element.index, e)

    async def _fill(self, page: Page, element: InteractiveElement):
        element.attempted = True
        try:
            element.value_after = await set_value_by_index(page, element.index, fill_value(element.index))
            element.succeeded = True
        except Exception as e:
            element.error_message = str(e)[:300]
            logger.debug("Fill of input %d failed: %s", element.index, e)

    async def probe_cors(self, url: str) -> dict[str, bool]:
        """Send a real CORS preflight per method and report which are allowed."""
        if urlparse(url).scheme not in ("http", "https"):
            return {method: False for method in CORS_METHODS}

        headers = {"Origin": CORS_PROBE_ORIGIN}
        if self._user_agent:
            headers["User-Agent"] = self._user_agent

        results: dict[str, bool] = {}
        async with httpx.AsyncClient(
            headers=headers,
            timeout=self._timeout_s,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            for method in CORS_METHODS:
                try:
                    resp = await client.options(url, headers={"Access-Control-Request-Method": method})
                except httpx.HTTPError as e:
                    logger.debug("CORS preflight for %s failed: %s", method, e)
                    results[method] = False
                    continue
                results[method] = _preflight_allows(resp, method)
        return results


def _preflight_allows(resp: httpx.Response, method: str) -> bool:
    allow_origin = resp.headers.get("access-control-allow-origin", "").strip()
    if allow_origin not in ("*", CORS_PROBE_ORIGIN):
        return False
    allow_methods = {
        m.strip().upper()
        for m in resp.headers.get("access-control-allow-methods", "").split(",")
        if m.strip()
    }
    if "*" in allow_methods or method in allow_methods:
        return True
    return not allow_methods and method == "GET"
