# Overview: Best-effort rewording of line item descriptions through an external text service.

"""
Description polishing is a decorator, never a dependency:

- Any failure (network, timeout, bad payload, empty answer) returns the
  original text. Nothing is raised to the caller.
- Results are applied through a PolishRequest keyed by the line item id. If
  the item was removed from the open document while the request was in
  flight, the result is discarded.
- Polishing never touches receipts history or the movement log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Mapping, Optional

import httpx

from .event_store import LedgerStore

logger = logging.getLogger(__name__)

MIN_POLISH_LENGTH = 3
POLISH_PROMPT = (
    'Transform this casual invoice item description into a professional business '
    'line item: "{text}". Keep it concise (max 10-15 words). Return only the professional text.'
)

PolishBackend = Callable[[str], Optional[str]]


class HttpPolishBackend:
    """POSTs {"prompt", "text"} to a JSON endpoint that answers {"text": ...}."""

    def __init__(self, url: str, *, api_key: str = "", timeout: float = 8.0):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    def __call__(self, text: str) -> Optional[str]:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        response = httpx.post(
            self.url,
            json={"prompt": POLISH_PROMPT.format(text=text), "text": text},
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if isinstance(payload, dict):
            return payload.get("text")
        return None


def backend_from_config(config: Mapping) -> Optional[HttpPolishBackend]:
    url = config.get("POLISH_API_URL")
    if not url:
        return None
    return HttpPolishBackend(
        url,
        api_key=config.get("POLISH_API_KEY") or "",
        timeout=float(config.get("POLISH_TIMEOUT_SECONDS") or 8.0),
    )


def polish_text(text: str, backend: Optional[PolishBackend] = None) -> str:
    if not text or len(text) < MIN_POLISH_LENGTH or backend is None:
        return text
    try:
        polished = backend(text)
    except Exception:
        logger.warning("Description polishing failed; keeping original text", exc_info=True)
        return text
    polished = (polished or "").strip() if isinstance(polished, str) else ""
    return polished or text


@dataclass(frozen=True)
class PolishRequest:
    item_id: str
    text: str


@dataclass(frozen=True)
class PolishOutcome:
    item_id: str
    original: str
    polished: str
    applied: bool

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "original": self.original,
            "polished": self.polished,
            "applied": self.applied,
        }


def request_polish(store: LedgerStore, item_id: str) -> Optional[PolishRequest]:
    """Snapshot the item's current description; None if there is nothing to polish."""
    draft = store.draft
    item = draft.find_item(item_id) if draft is not None else None
    if item is None or not item.description:
        return None
    return PolishRequest(item_id=item_id, text=item.description)


def apply_polish(store: LedgerStore, request: PolishRequest, polished: str) -> bool:
    """
    Write the polished description back, only if the item still exists in the
    open document. Returns whether the result was applied.
    """
    draft = store.draft
    if draft is None or draft.find_item(request.item_id) is None:
        logger.info("Discarding polish result for removed item %s", request.item_id)
        return False

    items = tuple(
        item if item.id != request.item_id else replace(item, description=polished)
        for item in draft.items
    )
    store.set_draft(draft.with_changes(items=items))
    return True


def polish_item(
    store: LedgerStore, item_id: str, backend: Optional[PolishBackend] = None
) -> Optional[PolishOutcome]:
    request = request_polish(store, item_id)
    if request is None:
        return None
    polished = polish_text(request.text, backend)
    applied = apply_polish(store, request, polished)
    return PolishOutcome(item_id=item_id, original=request.text, polished=polished, applied=applied)
