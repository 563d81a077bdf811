"""
ai/gemini_client.py
-------------------
Google Gemini behind the two remote AI contracts the app uses:

    chat:  {message, financialData, userProfile, conversationHistory, provider}
           → {response, provider}
    ocr:   {image: <base64>} → {text}

Every failure is raised as RemoteCallFailed; rate limiting, timeouts and
unavailable upstreams are flagged retryable.
"""

import base64

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from config import AI_PROVIDER, CURRENCY_SYMBOL, GEMINI_API_KEY, GEMINI_MODEL
from utils.errors import RemoteCallFailed
from utils.logger import get_logger

logger = get_logger(__name__)

# Configure the Gemini client once at module level
genai.configure(api_key=GEMINI_API_KEY)

_model = genai.GenerativeModel(GEMINI_MODEL)

_TRANSIENT_ERRORS = (
    google_exceptions.ResourceExhausted,
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.TooManyRequests,
)

HISTORY_TURNS = 5

# ── Prompts ──────────────────────────────────────────────

_SYSTEM_PROMPT = """You are an AI Financial Advisor specializing in personal finance for Indian users.
You provide practical, actionable advice on:

1. Expense tracking and budgeting
2. Investment recommendations (mutual funds, SIPs, FDs, stocks)
3. Savings strategies
4. Tax planning
5. Financial goal setting

Guidelines:
- Always use Indian Rupees ({symbol}) for monetary values
- Consider Indian financial products and regulations
- Provide specific, actionable advice
- Be encouraging and supportive
- If you don't have enough information, ask clarifying questions
- Keep responses concise but comprehensive (plain text, no markdown tables)
{context}
Risk Profile: {risk_profile}
{history}
Based on this context, provide personalized financial advice."""

_OCR_PROMPT = (
    "Transcribe every line of text on this receipt exactly as printed, "
    "one line per line. Return only the text."
)


def build_prompt(request: dict) -> str:
    """Render the system prompt from the chat request's context fields."""
    data = request.get("financialData") or {}
    context = ""
    if data:
        income = data.get("totalIncome", 0)
        expenses = data.get("totalExpenses", 0)
        breakdown = data.get("categoryBreakdown") or {}
        context = (
            "\nUser's Recent Financial Data:\n"
            f"- Total Income: {CURRENCY_SYMBOL}{income:,.2f}\n"
            f"- Total Expenses: {CURRENCY_SYMBOL}{expenses:,.2f}\n"
            f"- Net Balance: {CURRENCY_SYMBOL}{income - expenses:,.2f}\n"
            f"- Savings Rate: {data.get('savingsRate', 0):.1f}%\n"
            f"- Top Spending Categories: {', '.join(data.get('topCategories') or []) or 'None'}\n"
            f"- Category Breakdown: "
            f"{', '.join(f'{k}: {CURRENCY_SYMBOL}{v:,.2f}' for k, v in breakdown.items()) or 'None'}\n"
            f"- Recent Transactions Count: {data.get('recentTransactionsCount', 0)}\n"
        )

    history = request.get("conversationHistory") or []
    history_text = ""
    if history:
        turns = "\n\n".join(
            f"User: {turn.get('message', '')}\nAssistant: {turn.get('response', '')}"
            for turn in history[-HISTORY_TURNS:]
        )
        history_text = f"\nRecent conversation:\n{turns}\n"

    profile = request.get("userProfile") or {}
    return _SYSTEM_PROMPT.format(
        symbol=CURRENCY_SYMBOL,
        context=context,
        risk_profile=profile.get("risk_profile") or "Not specified",
        history=history_text,
    )


def _wrap(e: Exception, what: str) -> RemoteCallFailed:
    retryable = isinstance(e, _TRANSIENT_ERRORS)
    logger.error(f"Gemini {what} failed ({'transient' if retryable else 'permanent'}): {e}")
    return RemoteCallFailed(f"AI call failed: {e}", retryable=retryable)


async def chat(request: dict) -> dict:
    """
    Send one chat request to Gemini.

    Args:
        request: {message, financialData, userProfile, conversationHistory, provider}.

    Returns:
        {"response": <text>, "provider": "gemini"}

    Raises:
        RemoteCallFailed: On any API error or an empty answer.
    """
    prompt = build_prompt(request)
    try:
        response = await _model.generate_content_async(
            [
                {"role": "user", "parts": [{"text": prompt}]},
                {"role": "user", "parts": [{"text": request["message"]}]},
            ],
            generation_config=genai.GenerationConfig(
                temperature=0.4,
                max_output_tokens=800,
            ),
        )
        text = response.text.strip()
    except Exception as e:
        raise _wrap(e, "chat") from e

    if not text:
        raise RemoteCallFailed("AI call failed: empty response", retryable=True)
    logger.info(f"Gemini chat answered ({len(text)} chars)")
    return {"response": text, "provider": AI_PROVIDER}


async def extract_text(image_b64: str, mime_type: str = "image/jpeg") -> dict:
    """
    OCR a receipt photo.

    Returns:
        {"text": <transcribed text>}
    """
    try:
        image = base64.b64decode(image_b64)
        response = await _model.generate_content_async(
            [{"mime_type": mime_type, "data": image}, _OCR_PROMPT],
            generation_config=genai.GenerationConfig(temperature=0.0, max_output_tokens=1024),
        )
        text = response.text.strip()
    except Exception as e:
        raise _wrap(e, "OCR") from e

    logger.info(f"Gemini OCR returned {len(text.splitlines())} line(s)")
    return {"text": text}
