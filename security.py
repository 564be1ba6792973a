# security.py
"""
Input hardening for trip requests.

Trip text is parsed by regexes and later pasted into an LLM prompt, so it is
length-bounded, stripped of control characters and screened for
prompt-injection markers before either happens.
"""
from __future__ import annotations

import base64
import binascii
import html
import logging
import re
from typing import List

from fastapi import HTTPException, Request

from config import settings

log = logging.getLogger("security")

# Markers of someone talking to the model rather than describing a trip
PROMPT_INJECTION_PATTERNS = [
    # Direct instruction attempts
    r'\b(ignore|forget|disregard)\s+(previous|above|all|these|your)\s+(instructions?|prompts?|rules?)\b',
    r'\bignore\s+.*\binstructions?\b',
    r'\b(act|behave|pretend|roleplay)\s+as\s+(a|an)?\s*\w+',
    r'\bnow\s+(respond|answer|say|tell|write|generate)\b',

    # Role / system prompt manipulation
    r'\bsystem\s*:',
    r'\b(assistant|chatbot|gpt)\s*:',
    r'\buser\s*:',
    r'<\s*/?(system|assistant|user)\s*>',

    # Jailbreak attempts
    r'\b(jailbreak|bypass|override)\b',
    r'\bi\s+am\s+(your\s+)?(creator|developer|admin|owner)\b',

    # Code injection attempts
    r'```\s*(python|javascript|bash|sh|cmd|powershell|sql)',
    r'\beval\s*\(',
    r'\bexec\s*\(',
    r'\b__import__\s*\(',
    r'\bos\.(system|popen|exec)',

    # Encoded payloads
    r'\\u[0-9a-fA-F]{4}',
    r'&#\d+;',
]

COMPILED_PATTERNS = [re.compile(pattern, re.IGNORECASE | re.MULTILINE) for pattern in PROMPT_INJECTION_PATTERNS]

_CONTROL_CHARS_RE = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')
_B64_RE = re.compile(r'[A-Za-z0-9+/]{20,}={0,2}')

def sanitize_input(text: str, max_length: int = 500, escape_html: bool = True) -> str:
    """
    Strip control characters and collapse whitespace.

    Raises:
        HTTPException: If input is not a string or is longer than max_length
    """
    if not isinstance(text, str):
        raise HTTPException(status_code=400, detail="Input must be a string")

    if len(text) > max_length:
        log.warning("Input length exceeded", extra={"length": len(text), "max_length": max_length})
        raise HTTPException(status_code=400, detail=f"Input too long. Maximum {max_length} characters allowed.")

    sanitized = html.escape(text.strip()) if escape_html else text.strip()
    sanitized = _CONTROL_CHARS_RE.sub('', sanitized)
    sanitized = re.sub(r'\s+', ' ', sanitized).strip()
    return sanitized

def detect_prompt_injection(text: str) -> tuple[bool, List[str]]:
    """
    Returns:
        Tuple of (is_suspicious, list_of_matched_patterns)
    """
    suspicious_patterns = [
        PROMPT_INJECTION_PATTERNS[i] for i, pattern in enumerate(COMPILED_PATTERNS) if pattern.search(text)
    ]

    special_char_ratio = len(re.findall(r'[^\w\s]', text)) / max(len(text), 1)
    if special_char_ratio > 0.3:
        suspicious_patterns.append("excessive_special_characters")

    return len(suspicious_patterns) > 0, suspicious_patterns

def detect_encoded_injection(text: str) -> bool:
    """Look inside base64-looking runs for injection markers."""
    for match in _B64_RE.findall(text):
        try:
            decoded = base64.b64decode(match + '==').decode('utf-8', errors='ignore')
        except (binascii.Error, ValueError):
            continue
        # pattern hits only: decoded noise always fails the special-character ratio
        if any(pattern.search(decoded) for pattern in COMPILED_PATTERNS):
            return True
    return False

def validate_trip_text(text: str) -> str:
    """
    Sanitize a trip request before extraction and prompting.

    HTML is not escaped: the text is parsed, never rendered, and escaping
    would turn 'Paris & Rome' into entities the list splitter can't read.

    Raises:
        HTTPException: 400 if the text is empty, too long or looks like an injection attempt
    """
    if not text or not text.strip():
        raise HTTPException(status_code=400, detail="Trip request cannot be empty")

    clean = sanitize_input(text, max_length=settings.MAX_INPUT_CHARS, escape_html=False)

    is_suspicious, patterns = detect_prompt_injection(clean)
    if is_suspicious or detect_encoded_injection(clean):
        log.warning("Suspicious trip request rejected", extra={"patterns": patterns, "length": len(clean)})
        raise HTTPException(
            status_code=400,
            detail="Invalid trip request. Describe where and how long you want to travel.",
        )

    if not re.search(r'[a-zA-Z]', clean):
        raise HTTPException(status_code=400, detail="Trip request must contain letters")

    return clean

def security_headers_middleware():
    """
    Add security headers to responses.
    """
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Content-Security-Policy"] = "default-src 'self'"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response

    return add_security_headers

class SecurityValidator:
    """
    Request-level checks applied in middleware.
    """

    @staticmethod
    def validate_request_size(request_size: int, max_size: int = 1024 * 10):
        if request_size > max_size:
            log.warning("Request size too large", extra={"size": request_size, "max_size": max_size})
            raise HTTPException(
                status_code=413,
                detail=f"Request too large. Maximum {max_size} bytes allowed.",
            )
