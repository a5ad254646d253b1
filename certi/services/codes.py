"""
Unique Code Generation
CERT-XXXXXXXX certificate codes and VAL-XXXXXXXXXX validation codes
"""

import logging
import secrets
import string
from typing import Awaitable, Callable

from fastapi import HTTPException, status

from certi.database import database

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CERTIFICATE_PREFIX = "CERT-"
CERTIFICATE_CODE_LENGTH = 8
VALIDATION_PREFIX = "VAL-"
VALIDATION_CODE_LENGTH = 10
MAX_ATTEMPTS = 20


def random_code(prefix: str, length: int) -> str:
    return prefix + "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


async def generate_unique_code(
    prefix: str,
    length: int,
    exists: Callable[[str], Awaitable[bool]],
    max_attempts: int = MAX_ATTEMPTS,
) -> str:
    """
    Draw random codes until ``exists`` reports one as unused.

    The columns holding these codes carry a unique index as well, so two
    requests racing on the same fresh code cannot both commit it.
    """
    for attempt in range(1, max_attempts + 1):
        code = random_code(prefix, length)
        if not await exists(code):
            return code
        logger.warning("Code collision on %s (attempt %d)", code, attempt)

    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Could not generate a unique code"
    )


async def _certificate_code_exists(code: str) -> bool:
    row = await database.fetch_one(
        "SELECT 1 FROM certificates WHERE unique_code = :code",
        {"code": code}
    )
    return row is not None


async def _validation_code_exists(code: str) -> bool:
    row = await database.fetch_one(
        "SELECT 1 FROM validations WHERE validation_code = :code",
        {"code": code}
    )
    return row is not None


async def generate_certificate_code() -> str:
    return await generate_unique_code(CERTIFICATE_PREFIX, CERTIFICATE_CODE_LENGTH, _certificate_code_exists)


async def generate_validation_code() -> str:
    return await generate_unique_code(VALIDATION_PREFIX, VALIDATION_CODE_LENGTH, _validation_code_exists)
