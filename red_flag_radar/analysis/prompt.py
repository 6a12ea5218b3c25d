from __future__ import annotations

from datetime import date

from red_flag_radar.core.types import DateRange, SampleMessage
from red_flag_radar.llm.base import PromptItem

SYSTEM_PROMPT = (
    "You are an expert communication pattern analyst who identifies "
    "coercion, intimidation, and abuse in interpersonal conversations. "
    "You are careful, specific, and factual. "
    "Always respond in valid JSON format only."
)

TAIL_ONLY_THRESHOLD = 8_000
HEAD_AND_TAIL_THRESHOLD = 15_000
HEAD_CHARS = 2_000
TAIL_CHARS = 12_000

PROMPT_SAMPLE_LIMIT = 10
SAMPLE_MESSAGE_CHARS = 200

CHAT_ANALYSIS_PROMPT = """\
You are a forensic communication analyst. You are given a chat export \
between the participants below. Identify patterns that may indicate legal \
or personal-safety risk to the person who submitted it, so they can \
understand the situation and document it.

## Chat metadata

- Participants: {{PARTICIPANTS}}
- Total messages: {{TOTAL_MESSAGES}}
- Date range: {{FROM_DATE}} to {{TO_DATE}}
- Average messages per day: {{MESSAGES_PER_DAY}}
{{SAMPLES}}
## Chat content

{{TRANSCRIPT}}

## What to look for

1. **Financial Extortion & Demands** (critical): demands for money, \
property or assets; dowry references; money tied to threats; "gifts" or \
"contributions" in a coercive context.
2. **Threats & Intimidation** (critical): physical harm, false police \
complaints or cases, suicide or self-harm threats, threats to reputation.
3. **Emotional Manipulation & Gaslighting** (high): blame-shifting, \
guilt-tripping, denying past events, emotional blackmail.
4. **Isolation & Control** (high): cutting off family or friends, \
monitoring or restricting activity, creating dependency.
5. **False Accusations** (medium): unfounded infidelity claims, character \
assassination, false narratives.
6. **Harassment Patterns** (medium): message bombardment, constant \
checking in, contact after being asked to stop, escalation over time.
7. **Property & Asset Demands** (high): pressure to transfer property, \
claimed "rights" over assets, coercive paperwork requests.
8. **Legal Manipulation** (critical): threats of false cases, misuse of \
legal process, intimidation through legal knowledge.

### Legal context (reference only, do not give legal advice)

- Section 498A IPC: harassment for dowry
- Protection of Women from Domestic Violence Act, 2005
- Section 125 CrPC: maintenance
- Section 354D IPC: stalking
- Section 506 IPC: criminal intimidation
- Information Technology Act: online harassment
- Dowry Prohibition Act, 1961

### Approach

- Look for patterns rather than isolated incidents, and note escalation, \
frequency and intensity over time.
- Distinguish ordinary disagreements from concerning behaviour.
- Quote the chat when citing evidence. Do not invent messages.
- If there is no significant risk, say so and keep ``riskScore`` below 20.

### Risk score bands

- 0-20: minimal risk, normal communication
- 21-40: low risk, some concerning elements
- 41-60: moderate risk, clear patterns needing attention
- 61-80: high risk, serious patterns needing prompt action
- 81-100: critical risk, immediate safety or legal concern

## Output format

Return only a JSON object (no Markdown, no code fences) with:
- ``riskScore``: integer 0-100.
- ``redFlags``: array of objects with ``type`` (category name), \
``severity`` (low|medium|high|critical), ``message`` (short description), \
``context`` (quote from the chat) and optional ``keyword``.
- ``keywordsDetected``: array of strings.
- ``summary``: 3-4 paragraphs covering overall risk, key patterns with \
examples, escalation and frequency, and relationship dynamics.
- ``recommendations``: 4-6 specific, actionable strings covering \
documentation, safety and legal preparedness where relevant.
- ``patternsDetected``: array of objects with ``pattern``, ``description`` \
and ``examples`` (array of quotes).
"""


def truncate_chat_text(text: str) -> str:
    """Fit *text* into the prompt budget.

    Up to 8,000 chars pass through.  Up to 15,000 chars keep only the most
    recent 8,000.  Longer transcripts keep the opening 2,000 chars for
    relationship context plus the most recent 12,000.
    """
    length = len(text)
    if length > HEAD_AND_TAIL_THRESHOLD:
        omitted = length - (HEAD_CHARS + TAIL_CHARS)
        return (
            f"{text[:HEAD_CHARS]}\n\n"
            f"... [{omitted} characters truncated - showing beginning and "
            f"most recent messages] ...\n\n"
            f"{text[-TAIL_CHARS:]}"
        )
    if length > TAIL_ONLY_THRESHOLD:
        return f"... [earlier messages truncated] ...\n{text[-TAIL_ONLY_THRESHOLD:]}"
    return text


def messages_per_day(total_messages: int, date_range: DateRange) -> int:
    if total_messages <= 0 or date_range.is_empty:
        return total_messages
    try:
        start = date.fromisoformat(date_range.start)
        end = date.fromisoformat(date_range.end)
    except ValueError:
        return total_messages
    days = max(1, (end - start).days)
    return round(total_messages / days)


def _format_samples(samples: list[SampleMessage]) -> str:
    if not samples:
        return ""
    lines = [
        f"{i}. [{s.date}] {s.sender}: {s.message[:SAMPLE_MESSAGE_CHARS]}"
        for i, s in enumerate(samples[:PROMPT_SAMPLE_LIMIT], start=1)
    ]
    return "\n## Recent sample messages\n\n" + "\n".join(lines) + "\n"


def build_chat_analysis_prompt(
    chat_text: str,
    participants: list[str],
    total_messages: int,
    date_range: DateRange,
    sample_messages: list[SampleMessage],
) -> PromptItem:
    prompt = (
        CHAT_ANALYSIS_PROMPT.replace("{{PARTICIPANTS}}", ", ".join(participants))
        .replace("{{TOTAL_MESSAGES}}", str(total_messages))
        .replace("{{FROM_DATE}}", date_range.start or "unknown")
        .replace("{{TO_DATE}}", date_range.end or "unknown")
        .replace(
            "{{MESSAGES_PER_DAY}}", str(messages_per_day(total_messages, date_range))
        )
        .replace("{{SAMPLES}}", _format_samples(sample_messages))
        .replace("{{TRANSCRIPT}}", truncate_chat_text(chat_text))
    )
    return PromptItem(
        item_id="chat_analysis",
        prompt=prompt,
        system_prompt=SYSTEM_PROMPT,
    )
