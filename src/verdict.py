"""Verdict synthesis: the moderator's final directive and helpers for reading its output."""

import re

from src.models import UserProfile

VERDICT_TOPIC = "Judicial Verdict Generation"

_DIAGRAM_RE = re.compile(r"```mermaid\s*\n(.*?)```", re.DOTALL)
_MD_LINK_RE = re.compile(r"\[([^\]]+)\]\((https?://[^\s)]+)\)")
_URL_RE = re.compile(r"https?://[^\s)\]>\"']+")


def _profile_block(profile: UserProfile) -> str:
    interests = ", ".join(profile.subjects) or "General"
    return (
        "USER PROFILE:\n"
        f"- Interests/Major: {interests}\n"
        f"- Background: {profile.bio}\n"
        f"- Mode: {profile.mode or 'Learn'}\n"
        "\n"
        "CUSTOMIZATION RULE:\n"
        "- Tailor the roadmap SPECIFICALLY for this user.\n"
        "- If they have a technical background, use technical vocabulary (API, stack, algorithms).\n"
        "- If they have a business background, use ROI, market and strategy framing.\n"
        "- If they are a beginner, provide a learning path."
    )


def build_verdict_directive(user_profile: UserProfile | None = None) -> str:
    """The moderator's directive for the final strategic document."""
    profile = f"\n{_profile_block(user_profile)}\n" if user_profile else ""
    return f"""You are the Chief Justice of the Cognitive Court.

YOUR GOAL: Provide a crystal-clear, plain-English answer to the user's problem.
{profile}
CRITICAL RULES:
1. DO NOT mention "the plaintiff", "the defendant", "sides", "the debate", or "arguments".
2. DO NOT summarize what happened.
3. Just give the solution.
4. If the topic is a yes/no question (e.g. "Should I learn Rust?"), answer it with YES, NO, or IT DEPENDS immediately.

TONE: Helpful, decisive, clear, action-oriented.

FORMAT (Markdown):
# Strategic Roadmap

### The Diagnosis
[One clear, hard-hitting sentence defining the core problem.]

### The Strategy (Visual)
```mermaid
graph TD
  Start[Current State] --> Decision{{Key Choice}}
  Decision -->|Path A| ResultA[Outcome A]
  Decision -->|Path B| ResultB[Outcome B]
  ResultA --> Goal[Final Goal]
```
(MANDATORY: You MUST include this Mermaid code block. It represents the recommended decision path.)

### The Execution Plan
**Phase 1: Immediate Action (Week 1)**
- [ ] Step 1
- [ ] Step 2

**Phase 2: Consolidation (Month 1)**
- [ ] Step 1
- [ ] Step 2

### Trusted Sources
(MUST be real, clickable links: [Title](https://...). Only cite material surfaced in the research brief or the transcript. Never invent a source.)
1. [Source Title](URL) - *Key insight*
2. [Source Title](URL) - *Key insight*

*Cognitive Court Ruling*"""


def extract_diagram(text: str) -> str | None:
    """Body of the first ```mermaid block, or None."""
    match = _DIAGRAM_RE.search(text)
    return match.group(1).strip() if match else None


def extract_links(text: str) -> list[tuple[str, str]]:
    """Markdown links as (title, url) pairs, in order of appearance."""
    return [(m.group(1), m.group(2)) for m in _MD_LINK_RE.finditer(text)]


def find_urls(text: str) -> tuple[str, ...]:
    """Distinct http(s) URLs in order of appearance."""
    seen: dict[str, None] = {}
    for url in _URL_RE.findall(text):
        seen.setdefault(url.rstrip(".,;:"), None)
    return tuple(seen)
