"""
OpenAI chat-completion service for policy analysis.

Builds the fixed analysis prompt, calls the completion API synchronously and
normalises the markdown that comes back.
"""
import logging
import re
from dataclasses import dataclass
from typing import Dict, List

from openai import OpenAI, OpenAIError

from insurance_analyzer.config import settings

logger = logging.getLogger(__name__)

_client = None


class AnalysisGenerationError(Exception):
    """Raised when the LLM call fails or returns nothing usable."""
    pass


SYSTEM_PROMPT = (
    "You are an expert insurance policy analyst. "
    "Provide detailed, thorough analysis of insurance policies."
)

ANALYSIS_PROMPT = """You are an expert insurance policy analyst. Analyze the provided insurance policy document and provide a comprehensive, detailed report in Markdown format.

Please examine the document thoroughly and provide a well-structured Markdown report that includes:

1. **Executive Summary**: A comprehensive high-level overview of the policy that should be 3-5 paragraphs. Include:
   - Overall policy purpose and type
   - Key features and notable aspects
   - Most important coverage highlights
   - Any critical information policyholders should know upfront

2. **Key Terms & Conditions**: Extract and summarize important terms including:
   - Deductibles (amounts and types)
   - Coverage limits (per category and aggregate)
   - Premium amounts and payment terms
   - Policy period dates
   - Renewal terms

3. **Coverage Details**: Detailed breakdown of what is covered, including:
   - Types of coverage (property, liability, etc.)
   - Coverage amounts and limits
   - Specific protections and benefits
   - Any special endorsements or riders

4. **Exclusions**: List all exclusions, limitations, and what is NOT covered:
   - Common exclusions
   - Specific policy exclusions
   - Any conditions that void coverage

5. **Premiums & Payment Information**:
   - Premium amounts (annual, monthly, etc.)
   - Payment schedule
   - Payment methods accepted
   - Late payment terms

6. **Potential Issues & Concerns**: Identify any:
   - Hidden clauses or fine print
   - Coverage gaps that policyholders should be aware of
   - Unusual terms or conditions
   - Areas where the policy might be insufficient

7. **Roofing & Siding Analysis** (if applicable): If this is a property insurance policy, analyze:
   - Roof coverage specifics
   - Siding coverage details
   - Any special conditions or limitations for these items

8. **Recommendations**: Provide actionable recommendations for the policyholder regarding:
   - Areas to review carefully
   - Questions to ask their agent
   - Potential improvements or additional coverage to consider

**IMPORTANT**:
- Format your entire response as a well-structured Markdown document. Use proper Markdown syntax including:
  - Headers (##, ###) for section titles
  - **Bold** for important terms
  - Bullet points (-) for lists
  - Tables where appropriate
  - Clear section breaks
- DO NOT wrap your response in code blocks (do not use triple backticks with markdown or any other language identifier)
- Return the markdown directly as plain text, not inside a code fence

Be thorough but concise, and focus on actionable insights that help the policyholder understand their coverage."""

_RE_MARKDOWN_FENCE_OPEN = re.compile(r"^```markdown\s*", re.IGNORECASE)
# Language tag only counts on the opening line.
_RE_GENERIC_FENCE_OPEN = re.compile(r"^```[^\S\n]*\w*[^\S\n]*\n?")
_RE_FENCE_CLOSE = re.compile(r"\s*```\s*$")


@dataclass
class AnalysisCompletion:
    markdown: str
    model: str
    tokens_used: int
    prompt: str


def _get_client() -> OpenAI:
    """Lazy-initialize the OpenAI client."""
    global _client
    if _client is None:
        if not settings.OPENAI_API_KEY:
            raise RuntimeError("OPENAI_API_KEY must be set in .env")
        _client = OpenAI(api_key=settings.OPENAI_API_KEY)
        logger.info("OpenAI client initialized")
    return _client


def build_user_prompt(policy_text: str) -> str:
    return f"{ANALYSIS_PROMPT}\n\n---\n\nInsurance Policy Document:\n\n{policy_text}"


def build_messages(policy_text: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(policy_text)},
    ]


def strip_code_fences(text: str) -> str:
    """Remove a wrapping ```markdown (or generic ```) fence the model sometimes adds."""
    result = text.strip()
    if result.startswith("```markdown"):
        result = _RE_MARKDOWN_FENCE_OPEN.sub("", result, count=1)
        result = _RE_FENCE_CLOSE.sub("", result)
    elif result.startswith("```"):
        result = _RE_GENERIC_FENCE_OPEN.sub("", result, count=1)
        result = _RE_FENCE_CLOSE.sub("", result)
    return result.strip()


def generate_policy_analysis(policy_text: str) -> AnalysisCompletion:
    """
    Run the policy text through the chat-completion API.

    Args:
        policy_text: Plain text extracted from the policy PDF.

    Returns:
        AnalysisCompletion with the cleaned markdown report, the model used
        and the total token count.

    Raises:
        AnalysisGenerationError: If the API call fails or returns no content.
    """
    model = settings.OPENAI_MODEL
    logger.info(f"Calling OpenAI ({model}) for analysis, {len(policy_text)} chars of policy text")
    try:
        completion = _get_client().chat.completions.create(
            model=model,
            messages=build_messages(policy_text),
            temperature=settings.OPENAI_TEMPERATURE,
            max_tokens=settings.OPENAI_MAX_TOKENS,
        )
    except OpenAIError as e:
        raise AnalysisGenerationError(f"OpenAI request failed: {e}") from e

    content = completion.choices[0].message.content if completion.choices else None
    if not content:
        raise AnalysisGenerationError("OpenAI did not return a valid response")

    tokens_used = completion.usage.total_tokens if completion.usage else 0
    logger.info(f"OpenAI analysis complete, tokens used: {tokens_used}")

    return AnalysisCompletion(
        markdown=strip_code_fences(content),
        model=model,
        tokens_used=tokens_used or 0,
        prompt=ANALYSIS_PROMPT,
    )
