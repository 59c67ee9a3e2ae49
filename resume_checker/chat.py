"""
Resume Checker - Chat
Streams the resume-coach conversation and records the last exchange.

Wire format is the AI SDK data stream protocol, one part per line:
    0:"text delta"
    3:"error message"
    d:{"finishReason": "stop"}

History persistence runs after the streamed body has been sent. It always
ends in a PersistOutcome that is logged and counted; it never raises into
the response.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional

from fastapi.concurrency import run_in_threadpool

from .exceptions import ProviderError
from .metrics import MetricsCollector
from .models import ChatMessage, PersistOutcome
from .prompts import CHAT_SYSTEM_PROMPT
from .providers import Provider
from .store import ResumeStore

logger = logging.getLogger(__name__)

DATA_STREAM_HEADERS = {
    "X-Vercel-AI-Data-Stream": "v1",
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


def encode_text_part(text: str) -> str:
    return f"0:{json.dumps(text, ensure_ascii=False)}\n"


def encode_error_part(message: str) -> str:
    return f"3:{json.dumps(message, ensure_ascii=False)}\n"


def encode_finish_part(reason: str = "stop") -> str:
    return f"d:{json.dumps({'finishReason': reason})}\n"


def last_user_message(messages: List[ChatMessage]) -> Optional[str]:
    for message in reversed(messages):
        if message.role == "user":
            return message.content
    return None


@dataclass
class ChatTranscript:
    """Accumulates one streamed reply for later persistence."""
    user_id: Optional[str]
    user_message: Optional[str]
    chunks: List[str] = field(default_factory=list)
    completed: bool = False
    error: Optional[str] = None

    @property
    def text(self) -> str:
        return "".join(self.chunks)


async def stream_chat(provider: Provider, messages: List[ChatMessage],
                      transcript: ChatTranscript,
                      metrics: Optional[MetricsCollector] = None) -> AsyncIterator[str]:
    """Yield data-stream parts for the model reply, filling transcript as it goes."""
    history = [m.model_dump() for m in messages]
    try:
        async for delta in provider.stream_chat(CHAT_SYSTEM_PROMPT, history):
            transcript.chunks.append(delta)
            yield encode_text_part(delta)
    except ProviderError as e:
        # Headers are already sent; report in-band
        transcript.error = str(e)
        if metrics:
            metrics.record_llm_failure("chat")
        logger.error(f"Chat stream failed after {len(transcript.chunks)} chunks: {e}")
        yield encode_error_part("Failed to generate a response")
        yield encode_finish_part("error")
        return

    transcript.completed = True
    yield encode_finish_part("stop")


class ChatHistoryRecorder:
    """Writes the finished exchange to chat_history and reports the outcome."""

    def __init__(self, store: Optional[ResumeStore], metrics: Optional[MetricsCollector] = None):
        self.store = store
        self.metrics = metrics

    def _report(self, outcome: PersistOutcome, transcript: ChatTranscript) -> PersistOutcome:
        if self.metrics:
            self.metrics.record_chat_persist(outcome.value)
        who = transcript.user_id[:8] + "..." if transcript.user_id else "anonymous"
        if outcome is PersistOutcome.FAILED:
            logger.error(f"Chat history for {who}: {outcome.value}")
        else:
            logger.info(f"Chat history for {who}: {outcome.value}")
        return outcome

    async def persist(self, transcript: ChatTranscript) -> PersistOutcome:
        if not transcript.user_id:
            return self._report(PersistOutcome.SKIPPED_ANONYMOUS, transcript)
        if not transcript.completed:
            return self._report(PersistOutcome.SKIPPED_INCOMPLETE, transcript)
        if transcript.user_message is None:
            return self._report(PersistOutcome.SKIPPED_NO_USER_MESSAGE, transcript)
        if self.store is None:
            logger.warning("Supabase not configured — cannot store chat history")
            return self._report(PersistOutcome.FAILED, transcript)

        try:
            await run_in_threadpool(
                self.store.insert_chat_history,
                transcript.user_id,
                transcript.user_message,
                transcript.text,
            )
        except Exception as e:
            logger.error(f"Chat history insert failed: {e}")
            return self._report(PersistOutcome.FAILED, transcript)
        return self._report(PersistOutcome.SAVED, transcript)
