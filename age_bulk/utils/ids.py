"""Randomness helpers for document ids and synthetic data."""

from __future__ import annotations

import os
import secrets
import uuid

from age_bulk.exceptions import GenerationCapabilityError


def new_document_id() -> str:
    """Return a fresh, globally unique document id (UUID4)."""
    try:
        return str(uuid.uuid4())
    except NotImplementedError as exc:
        raise GenerationCapabilityError("No strong randomness source available for id generation") from exc


def strong_random() -> secrets.SystemRandom:
    """Return an OS-backed random generator, failing early if the OS has no randomness source."""
    try:
        os.urandom(1)
    except NotImplementedError as exc:
        raise GenerationCapabilityError("No strong randomness source available for sample generation") from exc
    return secrets.SystemRandom()
