import asyncio
import re

import pytest
from fastapi import HTTPException

from certi.services.codes import CODE_ALPHABET, generate_unique_code, random_code


def test_random_code_shape():
    code = random_code("CERT-", 8)

    assert re.match(r"^CERT-[A-Z0-9]{8}$", code)
    assert set(code[5:]) <= set(CODE_ALPHABET)


def test_retries_until_unused():
    calls = []

    async def exists(code):
        calls.append(code)
        return len(calls) < 3

    code = asyncio.run(generate_unique_code("VAL-", 10, exists))

    assert len(calls) == 3
    assert code == calls[-1]
    assert re.match(r"^VAL-[A-Z0-9]{10}$", code)


def test_gives_up_after_max_attempts():
    attempts = []

    async def always_taken(code):
        attempts.append(code)
        return True

    with pytest.raises(HTTPException) as exc_info:
        asyncio.run(generate_unique_code("CERT-", 8, always_taken, max_attempts=5))

    assert exc_info.value.status_code == 500
    assert len(attempts) == 5
