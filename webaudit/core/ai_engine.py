"""Gemini client for the screenshot review.

The model is treated as an opaque service: a screenshot and a fixed
prompt go in, recommendation text comes out unchanged.
"""

from __future__ import annotations

import asyncio
import base64
import os


API_KEY_VAR = "GEMINI_API_KEY"

REVIEW_PROMPT = """Analyze this {device} screenshot and provide specific UI/UX improvement suggestions. Focus on:
1. Layout and spacing
2. Visual hierarchy
3. Mobile responsiveness
4. Navigation and user flow
5. Color contrast and accessibility
6. Content readability
Respond with actionable recommendations only. Avoid prefacing or additional context."""


class MissingCredentialError(RuntimeError):
    pass


class GeminiEngine:
    """Sends device screenshots to a Gemini vision model, one request per image."""

    def __init__(self, model_name: str = "gemini-2.0-flash", max_output_tokens: int = 1000):
        self.model_name = model_name
        self.max_output_tokens = max_output_tokens
        self.reviews_sent = 0
        self._model = None

    @property
    def available(self) -> bool:
        return bool(os.environ.get(API_KEY_VAR))

    def _load_model(self):
        if self._model is not None:
            return self._model
        api_key = os.environ.get(API_KEY_VAR)
        if not api_key:
            raise MissingCredentialError(f"{API_KEY_VAR} not set")

        import google.generativeai as genai

        genai.configure(api_key=api_key)
        self._model = genai.GenerativeModel(
            self.model_name,
            generation_config={"temperature": 0.0, "max_output_tokens": self.max_output_tokens},
        )
        return self._model

    async def review_screenshot(self, png: bytes, device: str) -> str:
        model = self._load_model()
        image = {"mime_type": "image/png", "data": base64.b64encode(png).decode()}
        prompt = REVIEW_PROMPT.format(device=device)

        # The SDK call blocks; keep it off the event loop.
        response = await asyncio.to_thread(model.generate_content, [image, prompt])
        self.reviews_sent += 1
        return (response.text or "").strip() if response else ""
