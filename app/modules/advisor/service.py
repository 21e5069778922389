import requests
from app.config import settings
import logging

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "AI Advisor is unavailable. Please configure your API key."
FAILURE_MESSAGE = "Sorry, I couldn't generate advice at the moment. Please check the console for errors."

PROMPT_TEMPLATE = (
    "As an expert in managing informal rotating savings and credit associations (ROSCAs) "
    "like the Ethiopian Equb, provide concise, actionable advice for the following situation:"
    '\n\nSITUATION: "{situation}"\n\nADVICE:'
)

GENERATION_CONFIG = {
    "temperature": 0.7,
    "topP": 0.95,
    "maxOutputTokens": 200,
}


class AdvisorService:
    def __init__(self, api_key=None, model=None, api_base=None, timeout=None, session=None):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.api_base = (api_base or settings.gemini_api_base).rstrip("/")
        self.timeout = timeout or settings.advisor_timeout_seconds
        self.session = session or requests

    def get_admin_advice(self, prompt: str) -> str:
        """Ask Gemini for ROSCA management advice; never raises, falls back to a canned message."""
        if not self.api_key:
            logger.warning("Gemini API key not found. AI features are disabled.")
            return UNAVAILABLE_MESSAGE

        url = f"{self.api_base}/models/{self.model}:generateContent"
        payload = {
            "contents": [{"parts": [{"text": PROMPT_TEMPLATE.format(situation=prompt)}]}],
            "generationConfig": GENERATION_CONFIG,
        }
        try:
            r = self.session.post(
                url,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
            r.raise_for_status()
            data = r.json()
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(p.get("text", "") for p in parts).strip()
            if not text:
                raise ValueError("empty response from Gemini")
            return text
        except Exception as e:
            logger.error(f"Error calling Gemini API: {e}")
            return FAILURE_MESSAGE
