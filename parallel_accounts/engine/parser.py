"""JSON decoding for listing and detail payloads."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from ..errors import MalformedPayloadError
from .models import AccountRecord, Batch


class Parser:
    """Turn raw response bodies into ``Batch`` and ``AccountRecord`` values."""

    def parse_listing(self, text: str, sequence: int = 0) -> Batch:
        payload = self._load(text, "listing")
        if not isinstance(payload, dict):
            raise MalformedPayloadError("Listing payload must be a JSON object")
        raw_ids = payload.get("result")
        if raw_ids is None:
            raw_ids = []
        if not isinstance(raw_ids, list):
            raise MalformedPayloadError("Listing 'result' must be a list")
        ids: list[str] = []
        for raw in raw_ids:
            if raw is None or isinstance(raw, (dict, list, bool)):
                raise MalformedPayloadError(f"Unsupported identifier in listing: {raw!r}")
            ids.append(str(raw))
        token = payload.get("token")
        if token is not None and not isinstance(token, str):
            token = str(token)
        return Batch(ids=tuple(ids), token=token or None, sequence=sequence)

    def parse_account(self, text: str) -> AccountRecord:
        payload = self._load(text, "detail")
        # the service answers "null" for unknown ids
        if payload is None:
            raise MalformedPayloadError("Detail payload is null")
        if not isinstance(payload, dict):
            raise MalformedPayloadError("Detail payload must be a JSON object")
        try:
            return AccountRecord.model_validate(payload)
        except ValidationError as exc:
            raise MalformedPayloadError(f"Detail payload failed validation: {exc}") from exc

    @staticmethod
    def _load(text: str, kind: str) -> Any:
        if not text or not text.strip():
            raise MalformedPayloadError(f"Empty {kind} payload")
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedPayloadError(f"Undecodable {kind} payload: {exc.msg}") from exc


__all__ = ["Parser"]
