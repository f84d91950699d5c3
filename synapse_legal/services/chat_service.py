"""Canned legal assistant.

Replies are picked from a fixed set; the random source is injected so the
selection is reproducible in tests.
"""

import random
from typing import Optional, Sequence

from synapse_legal.core.exceptions import ValidationError
from synapse_legal.schemas.chat import ChatRequest, ChatResponse
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)

CANNED_RESPONSES = (
    "Based on the clause you've highlighted, this appears to be a standard liability limitation "
    "provision. However, I notice it may not adequately protect against gross negligence.",
    "This termination clause allows either party to terminate with 30 days notice. You might want "
    "to consider adding specific termination triggers for breach of contract.",
    "The confidentiality provision looks comprehensive, but consider adding a clause about return "
    "of confidential information upon contract termination.",
    "This indemnification clause is quite broad. You may want to negotiate for mutual "
    "indemnification to balance the risk allocation.",
    "The intellectual property clause needs clarification on who owns derivative works created "
    "during the collaboration.",
)

FOLLOW_UP_SUGGESTIONS = (
    "Review similar clauses in other documents",
    "Compare against industry standards",
    "Flag for legal review",
)


def select_response(rng: random.Random, responses: Sequence[str] = CANNED_RESPONSES) -> str:
    """Pick one canned reply using ``rng``."""
    return rng.choice(responses)


class LegalAssistant:
    """Answers chat messages with canned replies."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def reply(self, request: ChatRequest) -> ChatResponse:
        if not request.message.strip():
            raise ValidationError("Message must not be empty")

        LOGGER.debug(
            "Answering chat message",
            extra={"document_id": request.document_id, "has_context": request.context is not None},
        )
        return ChatResponse(
            response=select_response(self.rng),
            suggestions=list(FOLLOW_UP_SUGGESTIONS),
        )
