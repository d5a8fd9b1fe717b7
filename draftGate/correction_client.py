"""
Gemini-backed correction service.

``handle_message`` is the message boundary the analysis gateway talks to:

    {"action": "correctText", "text": "..."}
        -> {"success": True, "data": {"correctedText", "issues", "score", "needsCorrection"}}
        -> {"success": False, "error": "..."}
"""
import json
import re
from typing import Any, Dict, Optional

import google.generativeai as genai

from .errors import ConfigurationError, CorrectionServiceError, DraftGateError
from .logger import get_logger

logger = get_logger(__name__)

CORRECT_TEXT_ACTION = "correctText"
TEST_CONNECTION_TEXT = "Hello there"

_FENCED_JSON = re.compile(r"```json\n?([\s\S]*?)\n?```")
_BARE_OBJECT = re.compile(r"\{[\s\S]*\}")


class CorrectionClient:
    """Message correction through the Google Gemini API."""

    PROMPT_TEMPLATE = "\n".join([
        "Review the following chat message before it is sent.",
        "",
        'Message: "{text}"',
        "",
        "Review for:",
        '1. Typos and misspellings (type: "typo").',
        '2. Phrasing a native speaker would not use (type: "nativeness").',
        "3. Keep every part that was not flagged exactly as written. Do not change wording",
        '   where both forms are fine (e.g. "OK" vs "Okay", "I am" vs "I\'m").',
        "",
        "Respond with a single JSON object:",
        "{{",
        '  "correctedText": string,',
        '  "issues": [{{"type": "typo" | "nativeness", "original": string,',
        '              "corrected": string, "reason": string, "severity": number}}],',
        '  "score": number,',
        '  "needsCorrection": boolean',
        "}}",
        "severity is how unnatural the original looks to a native speaker,",
        "from 0.0 (natural) to 1.0 (most unnatural). Sort issues by severity, highest first.",
    ])

    def __init__(self, config: Any, *, max_output_tokens: int = 1024, temperature: float = 0.2):
        """
        Args:
            config: ConfigManager holding the API key and model name.
        """
        self.config = config
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature

    @classmethod
    def build_prompt(cls, text: str) -> str:
        return cls.PROMPT_TEMPLATE.format(text=text)

    def handle_message(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Answer one request; never raises."""
        action = request.get("action") if isinstance(request, dict) else None
        text = request.get("text") if isinstance(request, dict) else None
        if action != CORRECT_TEXT_ACTION or not isinstance(text, str) or not text:
            return {"success": False, "error": f"Unsupported request: {action!r}"}
        try:
            return {"success": True, "data": self.correct_text(text)}
        except DraftGateError as e:
            logger.warning("Correction failed: %s", e)
            return {"success": False, "error": str(e)}
        except Exception as e:
            logger.error("Gemini API error: %s", e)
            return {"success": False, "error": f"API Error: {e}"}

    def correct_text(self, text: str) -> Dict[str, Any]:
        """Ask Gemini for a correction and return the raw result payload."""
        # Read on every request so a key saved in settings applies immediately.
        api_key = self.config.get_api_key()
        if not api_key:
            raise ConfigurationError("API key is not set. Open Settings from the tray icon to add one.")
        model_name = self.config.get_model_name()

        genai.configure(api_key=api_key)
        model = genai.GenerativeModel(model_name)
        response = model.generate_content(
            self.build_prompt(text.strip()),
            generation_config=genai.GenerationConfig(
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
                candidate_count=1,
                response_mime_type="application/json",
            ),
        )

        if not response or not getattr(response, "text", None):
            raise CorrectionServiceError("Empty response from Gemini")

        logger.debug("Raw Gemini response: %s", response.text[:500])
        return self.parse_response(response.text)

    @staticmethod
    def _extract_json(raw: str) -> Optional[Dict[str, Any]]:
        candidates = [raw.strip()]
        fenced = _FENCED_JSON.search(raw)
        if fenced:
            candidates.append(fenced.group(1))
        bare = _BARE_OBJECT.search(raw)
        if bare:
            candidates.append(bare.group(0))

        for candidate in candidates:
            try:
                parsed = json.loads(candidate)
            except ValueError:
                continue
            if isinstance(parsed, dict):
                return parsed
        return None

    @classmethod
    def parse_response(cls, raw: str) -> Dict[str, Any]:
        """
        Normalize a model reply into the result payload.

        A reply that holds no JSON object is treated as a bare corrected text
        with no issues.
        """
        parsed = cls._extract_json(raw or "")
        if parsed is None:
            logger.warning("Response was not JSON; using it as corrected text")
            return {
                "correctedText": (raw or "").strip(),
                "issues": [],
                "score": 0,
                "needsCorrection": False,
            }

        score = parsed.get("score")
        return {
            "correctedText": parsed.get("correctedText") or "",
            "issues": parsed.get("issues") if isinstance(parsed.get("issues"), list) else [],
            "score": score if isinstance(score, (int, float)) and not isinstance(score, bool) else 0,
            "needsCorrection": bool(parsed.get("needsCorrection")),
        }

    def test_connection(self) -> Dict[str, Any]:
        """Send a short sample text through the normal request path."""
        return self.handle_message({"action": CORRECT_TEXT_ACTION, "text": TEST_CONNECTION_TEXT})
