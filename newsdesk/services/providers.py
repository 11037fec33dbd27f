from __future__ import annotations
from typing import Optional, Dict, Any, List
import json
import logging
import os
import httpx

from newsdesk.errors import LLMError

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
DEFAULT_OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://localhost:11434")

# JSON Schema keywords Gemini's responseSchema rejects
_GEMINI_DROP_KEYS = {"$schema", "additionalProperties", "$ref", "default"}

class LLMProvider:
    """Pluggable provider interface.

    `complete` returns the raw reply text. When `response_schema` is given it
    has already been passed through `adapt_schema` and the provider must ask
    for JSON output in that shape.
    """
    name: str = "base"

    def adapt_schema(self, schema: Dict[str, Any]) -> Any:
        return schema

    async def complete(self, system_prompt: str, user_prompt: str, *, response_schema: Any = None,
                       temperature: float = 0.3, model: Optional[str] = None) -> str:
        raise NotImplementedError

def to_gemini_schema(schema: Any) -> Any:
    if isinstance(schema, list):
        return [to_gemini_schema(s) for s in schema]
    if not isinstance(schema, dict):
        return schema
    out: Dict[str, Any] = {}
    for key, value in schema.items():
        if key in _GEMINI_DROP_KEYS:
            continue
        if key == "type" and isinstance(value, str):
            out["type"] = value.upper()
        elif key == "properties" and isinstance(value, dict):
            out["properties"] = {k: to_gemini_schema(v) for k, v in value.items()}
        elif key == "items":
            out["items"] = to_gemini_schema(value)
        else:
            out[key] = value
    return out

class GeminiLLM(LLMProvider):
    name = "gemini"

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None, timeout: float = 60.0):
        self.model = model or DEFAULT_GEMINI_MODEL
        self.api_key = api_key if api_key is not None else os.getenv("GEMINI_API_KEY", "")
        self.timeout = timeout

    def adapt_schema(self, schema: Dict[str, Any]) -> Any:
        return to_gemini_schema(schema)

    async def complete(self, system_prompt: str, user_prompt: str, *, response_schema: Any = None,
                       temperature: float = 0.3, model: Optional[str] = None) -> str:
        if not self.api_key:
            raise LLMError("GEMINI_API_KEY is not set")
        generation_config: Dict[str, Any] = {"temperature": temperature}
        if response_schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = response_schema
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": generation_config,
        }
        url = f"{GEMINI_BASE_URL}/models/{model or self.model}:generateContent"
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.post(url, json=payload, headers={"x-goog-api-key": self.api_key})
        if not r.is_success:
            raise LLMError(f"Gemini HTTP {r.status_code}: {r.text[:300]}")
        data = r.json()
        candidates = data.get("candidates") or []
        parts = ((candidates[0].get("content") or {}).get("parts") or []) if candidates else []
        text = "".join(p.get("text", "") for p in parts).strip()
        if not text:
            raise LLMError("Empty response from Gemini")
        return text

class OllamaLLM(LLMProvider):
    name = "ollama"

    def __init__(self, model: str = "llama3", host: Optional[str] = None, timeout: float = 120.0):
        self.model = model or "llama3"
        self.host = (host or DEFAULT_OLLAMA_HOST).rstrip("/")
        self.timeout = timeout

    async def complete(self, system_prompt: str, user_prompt: str, *, response_schema: Any = None,
                       temperature: float = 0.3, model: Optional[str] = None) -> str:
        payload: Dict[str, Any] = {
            "model": model or self.model,
            "system": system_prompt,
            "prompt": user_prompt,
            "stream": False,
            "options": {"temperature": temperature},
        }
        if response_schema is not None:
            payload["format"] = response_schema
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            r = await client.post(f"{self.host}/api/generate", json=payload)
        if not r.is_success:
            raise LLMError(f"Ollama HTTP {r.status_code}: {r.text[:300]}")
        text = (r.json().get("response") or "").strip()
        if not text:
            raise LLMError("Empty response from Ollama")
        return text

def placeholder_for(schema: Dict[str, Any]) -> Any:
    """Smallest instance of `schema` that validates; favours keeping articles."""
    if "enum" in schema:
        return schema["enum"][0]
    t = schema.get("type")
    if t == "object":
        props = schema.get("properties") or {}
        return {k: placeholder_for(v) for k, v in props.items()}
    if t == "array":
        return []
    if t == "boolean":
        return True
    if t in ("number", "integer"):
        return 10
    return ""

class DummyLLM(LLMProvider):
    """Offline provider so the pipeline runs without external APIs."""
    name = "dummy"

    async def complete(self, system_prompt: str, user_prompt: str, *, response_schema: Any = None,
                       temperature: float = 0.3, model: Optional[str] = None) -> str:
        if response_schema is not None:
            return json.dumps(placeholder_for(response_schema))
        return user_prompt.strip().split("\n", 1)[0][:280]

PROVIDERS: List[str] = ["gemini", "ollama", "dummy"]

def get_provider(provider_name: str = "gemini", model: Optional[str] = None) -> LLMProvider:
    name = (provider_name or "gemini").lower()
    if name == "gemini":
        return GeminiLLM(model=model)
    if name == "ollama":
        return OllamaLLM(model=model or "llama3")
    if name == "dummy":
        return DummyLLM()
    raise ValueError(f"unknown provider {provider_name}")
