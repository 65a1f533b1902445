"""Claude-based fix generation for RepoFix."""

import os
from typing import Optional

import anthropic

from ..config import get_settings
from ..errors import FixGenerationError
from ..logging import get_logger
from ..models.findings import SecurityFinding
from ..models.fixes import RepoContext

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are an expert security engineer who fixes vulnerabilities in source code. You receive one security issue and the full content of the affected file, and you return a precise, production-ready fix.

## RULES
1. Change only the code related to the security issue
2. Keep all existing functionality
3. Preserve the code style and formatting of the file
4. Add comments only where they explain a security-critical change
5. Do not introduce new vulnerabilities
6. Return complete, valid code for the whole file

## CHECKLIST
- Input validation and sanitization
- Authentication and authorization checks
- Parameterized queries instead of string-built SQL
- Output encoding against XSS
- No hardcoded secrets or credentials
- Restrictive CORS origins
- Error messages that do not leak sensitive data
- Strong, modern cryptography

## RESPONSE FORMAT
Respond with a single JSON object:
{
  "fixed_content": "the complete fixed file content",
  "explanation": "what was fixed and why",
  "confidence": 0.0-1.0,
  "changes_summary": ["each specific change made"]
}"""


def build_fix_prompt(finding: SecurityFinding, file_content: str, repo_context: RepoContext) -> str:
    """Create the user prompt for one finding."""
    lines = [
        "SECURITY ISSUE:",
        f"- Severity: {finding.severity}",
        f"- Category: {finding.category}",
        f"- Title: {finding.title}",
        f"- Description: {finding.description}",
        f"- Recommendation: {finding.recommendation}",
    ]
    if finding.line_number:
        lines.append(f"- Line Number: {finding.line_number}")

    lines += [
        "",
        "REPOSITORY CONTEXT:",
        f"- Name: {repo_context.name}",
        f"- Language: {repo_context.language}",
    ]
    if repo_context.framework:
        lines.append(f"- Framework: {repo_context.framework}")

    lines += [
        "",
        "FILE TO FIX:",
        f"Path: {finding.file_path}",
        "",
        "```",
        file_content,
        "```",
    ]

    if finding.code_snippet:
        lines += [
            "",
            "PROBLEMATIC CODE SNIPPET:",
            "```",
            finding.code_snippet,
            "```",
        ]

    lines += [
        "",
        "Analyze this security issue and provide a complete, production-ready fix for the entire file.",
    ]
    return "\n".join(lines)


class ClaudeFixGenerator:
    """Asks Claude for a fix and returns the raw response text."""

    def __init__(self, client: Optional[anthropic.AsyncAnthropic] = None):
        """Initialize the Claude fix generator."""
        self.settings = get_settings()
        self._client = client

    def _get_claude_client(self) -> anthropic.AsyncAnthropic:
        if self._client is not None:
            return self._client

        api_key = os.environ.get('CLAUDE_API_KEY') or self.settings.claude_api_key
        if not api_key:
            raise FixGenerationError("Claude API key not configured")

        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        logger.info("Claude client initialized successfully")
        return self._client

    async def generate(
        self,
        finding: SecurityFinding,
        file_content: str,
        repo_context: RepoContext
    ) -> str:
        client = self._get_claude_client()
        prompt = build_fix_prompt(finding, file_content, repo_context)

        logger.info(
            "Making Claude API call",
            finding_id=finding.id,
            model=self.settings.claude_model,
            prompt_length=len(prompt)
        )

        try:
            response = await client.messages.create(
                model=self.settings.claude_model,
                max_tokens=self.settings.claude_max_tokens,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error("Claude API call failed", finding_id=finding.id, error=str(e))
            raise FixGenerationError(f"Claude API error: {e}") from e

        text = "\n".join(
            block.text for block in response.content if getattr(block, 'type', None) == 'text'
        )
        if not text:
            raise FixGenerationError("Claude returned an empty response")

        logger.info("Claude API call successful", finding_id=finding.id, response_length=len(text))
        return text
