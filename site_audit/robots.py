"""
robots.txt interpretation for AI crawlers.

Each tracked bot lands in one of three buckets:

    blocked   - its own User-agent block contains ``Disallow: /``
    allowed   - its own User-agent block exists without a root disallow
    default   - no block names it; it falls back to ``User-agent: *``

Only an exact-name block counts as explicit. Rules under ``*`` never make
a bot "mentioned", even if they disallow everything.
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from .models import Check, CheckStatus


class AiBot(str, Enum):
    GPTBOT = "GPTBot"
    OAI_SEARCHBOT = "OAI-SearchBot"
    GOOGLE_EXTENDED = "Google-Extended"
    CHATGPT_USER = "ChatGPT-User"
    PERPLEXITYBOT = "PerplexityBot"
    CLAUDEBOT = "ClaudeBot"
    BYTESPIDER = "Bytespider"
    AMAZONBOT = "Amazonbot"
    APPLEBOT_EXTENDED = "Applebot-Extended"
    META_EXTERNALAGENT = "meta-externalagent"
    CCBOT = "CCBot"
    COHERE_AI = "cohere-ai"

    @property
    def operator(self) -> str:
        return BOT_OPERATORS[self]

    @property
    def label(self) -> str:
        return f"{self.value} ({self.operator})"


BOT_OPERATORS: Dict[AiBot, str] = {
    AiBot.GPTBOT: "OpenAI/ChatGPT",
    AiBot.OAI_SEARCHBOT: "OpenAI Search",
    AiBot.GOOGLE_EXTENDED: "Google Gemini",
    AiBot.CHATGPT_USER: "ChatGPT Browse",
    AiBot.PERPLEXITYBOT: "Perplexity",
    AiBot.CLAUDEBOT: "Claude/Anthropic",
    AiBot.BYTESPIDER: "ByteDance",
    AiBot.AMAZONBOT: "Amazon/Alexa",
    AiBot.APPLEBOT_EXTENDED: "Apple Intelligence",
    AiBot.META_EXTERNALAGENT: "Meta AI",
    AiBot.CCBOT: "Common Crawl",
    AiBot.COHERE_AI: "Cohere",
}


class BotAccess(str, Enum):
    BLOCKED = "blocked"
    ALLOWED = "allowed"
    DEFAULT = "default"


class BotVerdict(BaseModel):
    bot: AiBot
    mentioned: bool = False
    blocked: bool = False
    rules: List[str] = Field(default_factory=list)

    @property
    def access(self) -> BotAccess:
        if self.blocked:
            return BotAccess.BLOCKED
        if self.mentioned:
            return BotAccess.ALLOWED
        return BotAccess.DEFAULT


def _directive(line: str, name: str) -> Optional[str]:
    """Value of ``name:`` if the (lower-cased) line starts with it."""
    prefix = f"{name}:"
    if line.startswith(prefix):
        return line[len(prefix):].strip()
    return None


def interpret_robots(body: str, bots: Iterable[AiBot] = AiBot) -> Dict[AiBot, BotVerdict]:
    """Classify every bot against a robots.txt body."""
    verdicts = {bot: BotVerdict(bot=bot) for bot in bots}
    by_name = {bot.value.lower(): verdict for bot, verdict in verdicts.items()}

    current_agent = ""
    for raw_line in (body or "").lstrip("\ufeff").splitlines():
        line = raw_line.split("#", 1)[0].strip()
        if not line:
            continue
        lowered = line.lower()

        agent = _directive(lowered, "user-agent")
        if agent is not None:
            current_agent = agent
            if current_agent in by_name:
                by_name[current_agent].mentioned = True
            continue

        verdict = by_name.get(current_agent)
        if verdict is None:
            continue
        disallow = _directive(lowered, "disallow")
        allow = _directive(lowered, "allow")
        if disallow is not None or allow is not None:
            verdict.rules.append(line)
        if disallow == "/":
            verdict.blocked = True

    return verdicts


def bot_check(verdict: BotVerdict) -> Check:
    bot = verdict.bot
    access = verdict.access

    if access == BotAccess.BLOCKED:
        status, value = CheckStatus.ERROR, "Blocked"
        detail = f"{bot.value} is blocked in robots.txt"
    elif access == BotAccess.ALLOWED:
        status, value = CheckStatus.SUCCESS, "Allowed"
        detail = f"{bot.value} is explicitly allowed"
    else:
        status, value = CheckStatus.WARNING, "Not mentioned"
        detail = f"{bot.value} is not mentioned (allowed by default)"

    if access == BotAccess.DEFAULT:
        detail_list = [
            f"No rule specific to {bot.value} in robots.txt",
            "The bot follows the User-agent: * rules (default access)",
        ]
    else:
        detail_list = [f"robots.txt: {rule}" for rule in verdict.rules]

    return Check(
        name=bot.label,
        status=status,
        value=value,
        detail=detail,
        recommendation=(
            f"Lift the {bot.value} block if you want to be referenced by {bot.operator}"
            if access == BotAccess.BLOCKED
            else f"Add an explicit User-agent: {bot.value} block to state your policy"
        ),
        detail_list=detail_list,
    )


def crawler_checks(robots_body: Optional[str]) -> List[Check]:
    """One Check per tracked bot, or a single warning when robots.txt is missing."""
    if not robots_body:
        return [
            Check(
                name="robots.txt",
                status=CheckStatus.WARNING,
                value="Not found",
                detail="No robots.txt: every AI bot has access by default",
                recommendation="Create a robots.txt to control AI bot access",
            )
        ]
    verdicts = interpret_robots(robots_body)
    return [bot_check(verdict) for verdict in verdicts.values()]
