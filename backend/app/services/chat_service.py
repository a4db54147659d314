"""
Chat Service - answers a question about the current student records.

Pipeline for each question:
1. Report ConfigurationMissing if the gateway has no credential
2. Answer with a fixed message if the store is empty (no upstream call)
3. Build the prompt from the store snapshot
4. Send it with the caller's prior turns and return the normalized result
"""

from typing import Optional, Sequence

from app.errors import ErrorKind
from app.models.chat import ChatTurn, ProviderResult
from app.services.completion_gateway import CompletionGateway
from app.services.prompt_builder import build_prompt, EMPTY_DATASET_MESSAGE, DEFAULT_RECORD_LIMIT
from app.services.student_store import StudentStore
from app.logging_config import get_logger, log_with_context

logger = get_logger("chat")


class ChatService:
    def __init__(self, store: StudentStore, gateway: CompletionGateway,
                 record_limit: int = DEFAULT_RECORD_LIMIT):
        self.store = store
        self.gateway = gateway
        self.record_limit = record_limit

    def answer(self, question: str, prior_turns: Optional[Sequence[ChatTurn]] = None) -> ProviderResult:
        if not self.gateway.is_configured:
            return ProviderResult.failure(ErrorKind.CONFIGURATION_MISSING,
                                          self.gateway.missing_configuration_detail)

        records = self.store.list()
        if not records:
            log_with_context(logger, "INFO", "Chat question answered without upstream call: no records")
            return ProviderResult.ok(EMPTY_DATASET_MESSAGE)

        prompt = build_prompt(question, records, record_limit=self.record_limit)
        log_with_context(logger, "INFO", "Forwarding chat question to {}".format(self.gateway.model),
                         extra_data={"record_count": len(records),
                                     "records_in_prompt": min(len(records), self.record_limit),
                                     "prior_turns": len(prior_turns or [])})
        return self.gateway.send(prompt.system_prompt, prompt.user_prompt, prior_turns)
