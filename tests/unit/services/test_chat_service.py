"""Unit tests for the canned legal assistant."""

import random

import pytest

from synapse_legal.core.exceptions import ValidationError
from synapse_legal.schemas.chat import ChatRequest
from synapse_legal.services.chat_service import (
    CANNED_RESPONSES,
    FOLLOW_UP_SUGGESTIONS,
    LegalAssistant,
    select_response,
)


def test_there_are_five_replies_and_three_suggestions():
    assert len(CANNED_RESPONSES) == 5
    assert len(FOLLOW_UP_SUGGESTIONS) == 3


def test_select_response_is_reproducible():
    first = [select_response(random.Random(42)) for _ in range(3)]
    second = [select_response(random.Random(42)) for _ in range(3)]

    assert first == second


def test_every_reply_can_be_selected():
    rng = random.Random(0)

    seen = {select_response(rng) for _ in range(200)}

    assert seen == set(CANNED_RESPONSES)


def test_reply_uses_injected_rng():
    expected = random.Random(3).choice(CANNED_RESPONSES)

    reply = LegalAssistant(random.Random(3)).reply(ChatRequest(message="What about termination?"))

    assert reply.response == expected
    assert reply.suggestions == list(FOLLOW_UP_SUGGESTIONS)


def test_blank_message_is_rejected():
    with pytest.raises(ValidationError):
        LegalAssistant(random.Random(0)).reply(ChatRequest(message="  "))
