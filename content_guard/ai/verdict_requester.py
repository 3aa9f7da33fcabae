"""
content_guard.ai.verdict_requester – Gemini-backed repetitive-content judge.

GeminiVerdictRequester sends the four sampled frames plus a text rendering
of every stored visual signature to the Gemini ``generateContent`` REST
endpoint and parses the JSON answer into a PolicyVerdict.  Every request is
fresh: no caching, no retry.
"""
from __future__ import annotations

import httpx
from pydantic import ValidationError

from content_guard.ai.verdict_model import PolicyVerdict
from content_guard.config import (
    DEFAULT_API_BASE,
    DEFAULT_MODEL,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)
from content_guard.db.database import HistoryEntry
from content_guard.errors import VerdictServiceError

EMPTY_HISTORY_CONTEXT = "DATABASE_IS_EMPTY. This is the first video."

USER_PROMPT = (
    "YouTube Repetitive Content Policy နဲ့အညီ စစ်ဆေးပေးပါ။ "
    "အရင်တင်ထားဖူးတဲ့ ID တွေနဲ့ တူနေရင် ဘယ် ID နဲ့တူလဲဆိုတာ ပြောပါ။ "
    "မတူရင်လည်း ဘာလို့ မတူတာလဲ (Safe ဖြစ်တာလဲ) ဆိုတာကို အသေးစိတ် ရှင်းပြပေးပါ။"
)

SYSTEM_INSTRUCTION_TEMPLATE = """
You are a professional YouTube Content Policy Expert. Your goal is to prevent "Repetitive Content" (ထပ်တလဲလဲဖြစ်သော အကြောင်းအရာများ) violations for a Dharma channel.

POLICY RULES:
1. Repetitive content is content that is visually indistinguishable from other videos on the same channel.
2. Using the same AI-generated video (Veo 3) multiple times with only minor audio changes is a violation.
3. You must look for similar backgrounds, monk/statue figures, lighting, and camera movements.

YOUR TASKS:
1. Analyze the 4 provided frames from the NEW video.
2. Generate a detailed "visualSignature": Describe the subject, background, color palette, and composition.
3. COMPARE the new signature against the provided history [ID_1, ID_2, ...].
4. Provide a judgment:
   - If it's too similar to any past ID: status = "High Risk", isRepetitive = true, historyCheck.isSimilarToPast = true.
   - If it's distinct: status = "Safe", isRepetitive = false, historyCheck.isSimilarToPast = false.

EXPLANATION REQUIREMENTS (In Burmese):
- If SAFE: "တင်ရန်သင့်တော်ပါသည်။ အကြောင်းရင်းမှာ... [Policy-based reasoning: e.g., Different background, unique subject position, etc.]"
- If REPETITIVE: "မတင်သင့်ပါ။ အကြောင်းရင်းမှာ... [Detailed reason: e.g., Matches ID_X exactly in lighting and subject.]"
- Always explain the logic behind "Repetitive Content Policy" (ထပ်တလဲလဲဖြစ်သော အကြောင်းအရာများ မူဝါဒ).

HISTORY DATABASE:
{history_context}
"""

# Gemini REST schema (OpenAPI subset) mirroring PolicyVerdict.
RESPONSE_SCHEMA: dict = {
    "type": "OBJECT",
    "properties": {
        "similarityScore": {
            "type": "NUMBER",
            "description": "Confidence score (0-100) of the most similar match.",
        },
        "isRepetitive": {"type": "BOOLEAN"},
        "status": {"type": "STRING", "enum": ["Safe", "Warning", "High Risk"]},
        "policyViolations": {"type": "ARRAY", "items": {"type": "STRING"}},
        "recommendations": {
            "type": "STRING",
            "description": "Detailed Burmese explanation of why it passed or failed policy.",
        },
        "visualSignature": {
            "type": "STRING",
            "description": "A technical description of the visual features.",
        },
        "comparisonDetails": {
            "type": "OBJECT",
            "properties": {
                "composition":    {"type": "STRING"},
                "colors":         {"type": "STRING"},
                "subjectMatter":  {"type": "STRING"},
                "motionAnalysis": {"type": "STRING"},
            },
            "required": ["composition", "colors", "subjectMatter", "motionAnalysis"],
        },
        "historyCheck": {
            "type": "OBJECT",
            "properties": {
                "isSimilarToPast": {"type": "BOOLEAN"},
                "matchedVideoIndex": {
                    "type": "NUMBER",
                    "description": "The X index from [ID_X] that matched (1-based).",
                },
                "details": {
                    "type": "STRING",
                    "description": "Specific Burmese comparison against the matched ID.",
                },
            },
            "required": ["isSimilarToPast", "details"],
        },
    },
    "required": [
        "similarityScore",
        "isRepetitive",
        "status",
        "policyViolations",
        "recommendations",
        "visualSignature",
        "comparisonDetails",
        "historyCheck",
    ],
}


def build_history_context(history: list[HistoryEntry]) -> str:
    """
    Render stored signatures as ``[ID_n] Visual Fingerprint: ...`` lines.

    ``n`` is the 1-based position in *history*; the service echoes it back
    as ``historyCheck.matchedVideoIndex``.
    """
    if not history:
        return EMPTY_HISTORY_CONTEXT
    return "\n".join(
        f"[ID_{i}] Visual Fingerprint: {entry.visual_signature}"
        for i, entry in enumerate(history, 1)
    )


def build_request_body(frames_base64: list[str], history: list[HistoryEntry]) -> dict:
    """Assemble the ``generateContent`` JSON payload."""
    system_instruction = SYSTEM_INSTRUCTION_TEMPLATE.format(
        history_context=build_history_context(history)
    )
    parts: list[dict] = [{"text": USER_PROMPT}]
    parts.extend(
        {"inlineData": {"mimeType": "image/jpeg", "data": data}}
        for data in frames_base64
    )
    return {
        "systemInstruction": {"parts": [{"text": system_instruction}]},
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
        },
    }


class GeminiVerdictRequester:
    """
    Client for the external judgment service.

    *transport* is forwarded to ``httpx.AsyncClient`` so tests can plug in
    an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        api_base: str = DEFAULT_API_BASE,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.endpoint = f"{api_base.rstrip('/')}/models/{model}:generateContent"
        self.timeout = httpx.Timeout(timeout_seconds)
        self._transport = transport

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    async def request_verdict(
        self, frames_base64: list[str], history: list[HistoryEntry]
    ) -> PolicyVerdict:
        """
        Judge *frames_base64* against *history*.

        Args:
            frames_base64  Four base64 JPEG frames (no data-URI prefix).
            history        Snapshot of the store, newest first.

        Raises:
            VerdictServiceError  Transport failure, non-2xx status, empty
                                 answer, or JSON that is not a PolicyVerdict.
        """
        body = build_request_body(frames_base64, history)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.endpoint,
                    json=body,
                    headers={"x-goog-api-key": self.api_key},
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            print(f"[verdict] Request to {self.model} failed: {exc}")
            raise VerdictServiceError("judgment service unreachable") from exc

        text = self._extract_text(payload)
        if not text:
            print(f"[verdict] {self.model} returned no candidate text")
            raise VerdictServiceError("judgment service returned no content")

        try:
            return PolicyVerdict.model_validate_json(text)
        except ValidationError as exc:
            print(f"[verdict] Malformed verdict from {self.model}: {exc}")
            raise VerdictServiceError("judgment service returned malformed verdict") from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_text(payload: object) -> str:
        """Join the text parts of the first candidate ('' if absent)."""
        if not isinstance(payload, dict):
            return ""
        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return ""
        first = candidates[0]
        content = first.get("content") if isinstance(first, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return ""
        return "".join(
            p["text"]
            for p in parts
            if isinstance(p, dict) and isinstance(p.get("text"), str)
        ).strip()
