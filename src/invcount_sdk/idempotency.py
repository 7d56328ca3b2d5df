from __future__ import annotations

import uuid
from dataclasses import dataclass

IDEMPOTENCY_HEADER = "Idempotency-Key"


@dataclass(frozen=True)
class IdempotencyKeys:
    idempotency_key: str

    def headers(self) -> dict[str, str]:
        return {IDEMPOTENCY_HEADER: self.idempotency_key}


def new_idempotency_keys() -> IdempotencyKeys:
    return IdempotencyKeys(idempotency_key=str(uuid.uuid4()))


def resolve_idempotency_keys(idempotency_key: str | None = None) -> IdempotencyKeys:
    if idempotency_key:
        return IdempotencyKeys(idempotency_key=idempotency_key)
    return new_idempotency_keys()
