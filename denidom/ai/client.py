"""Minimal client for an OpenAI-compatible chat-completions endpoint."""

import json
import logging
import random
import time
from typing import Any, Dict, List, Optional

import requests
from flask import current_app

logger = logging.getLogger(__name__)

MAX_TRIES = 2


class AIError(RuntimeError):
    """The model could not be reached or returned something unusable."""


class AIClient:
    def __init__(self, base_url: str, api_key: str, model: str, timeout: int = 30) -> None:
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {'Authorization': f'Bearer {api_key}', 'Content-Type': 'application/json'}
        )

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f'{self.base_url}/chat/completions'
        tries = 0
        while True:
            try:
                r = self.session.post(url, json=payload, timeout=self.timeout)
            except requests.RequestException as e:
                tries += 1
                if tries >= MAX_TRIES:
                    raise AIError(f'AI request failed: {e}') from e
                time.sleep(min(2 ** tries, 10) + random.random())
                continue
            if r.status_code == 429 or r.status_code >= 500:
                tries += 1
                if tries >= MAX_TRIES:
                    raise AIError(f'AI service responded with {r.status_code}')
                time.sleep(min(2 ** tries, 10) + random.random())
                continue
            try:
                r.raise_for_status()
            except requests.HTTPError as e:
                raise AIError(f'AI service responded with {r.status_code}') from e
            try:
                return r.json()
            except ValueError as e:
                raise AIError('AI response is not valid JSON') from e

    def generate_json(self, prompt: str, image_url: Optional[str] = None) -> Dict[str, Any]:
        """Send ``prompt`` (and optionally an image) and parse the reply as JSON."""
        content: Any = prompt
        if image_url:
            content = [
                {'type': 'text', 'text': prompt},
                {'type': 'image_url', 'image_url': {'url': image_url}},
            ]
        messages: List[Dict[str, Any]] = [{'role': 'user', 'content': content}]
        data = self._post({
            'model': self.model,
            'messages': messages,
            'response_format': {'type': 'json_object'},
        })
        try:
            text = data['choices'][0]['message']['content']
            return json.loads(text)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise AIError('AI response is not valid JSON') from e


def ai_configured() -> bool:
    return bool(current_app.config.get('AI_API_KEY'))


def get_client() -> AIClient:
    """Client bound to the current app, created once per app."""
    client = current_app.extensions.get('ai_client')
    if client is None:
        if not ai_configured():
            raise AIError('AI_API_KEY is not configured')
        client = AIClient(
            current_app.config['AI_API_URL'],
            current_app.config['AI_API_KEY'],
            current_app.config['AI_MODEL'],
            current_app.config['AI_TIMEOUT'],
        )
        current_app.extensions['ai_client'] = client
    return client
