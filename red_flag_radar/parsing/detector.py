"""Platform detection for raw chat exports.

Detection is a first-match scan over an ordered table of format
signatures.  Messaging-export shapes are checked before looser
heuristics, so the order of :data:`SIGNATURES` is significant.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from red_flag_radar.core.exceptions import InvalidInputError
from red_flag_radar.core.types import Platform, PlatformMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormatSignature:
    """One row of the detection table; matches when any pattern matches."""

    platform: Platform
    confidence: float
    label: str
    patterns: tuple[re.Pattern[str], ...]

    def matches(self, text: str) -> bool:
        return any(p.search(text) for p in self.patterns)


SIGNATURES: tuple[FormatSignature, ...] = (
    FormatSignature(
        platform=Platform.WHATSAPP,
        confidence=0.95,
        label="WhatsApp Export",
        patterns=(
            re.compile(r"\[\d{1,2}/\d{1,2}/\d{2,4}"),
            re.compile(r"\d{1,2}/\d{1,2}/\d{2,4},.*-\s*.+?:\s*.+"),
            re.compile(r"messages and calls are end-to-end encrypted", re.I),
        ),
    ),
    FormatSignature(
        platform=Platform.SMS_ANDROID,
        confidence=0.9,
        label="Android SMS Backup",
        patterns=(
            re.compile(r'^"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}","', re.M),
        ),
    ),
    FormatSignature(
        platform=Platform.SMS_ANDROID,
        confidence=0.85,
        label="Android SMS Text",
        patterns=(
            re.compile(
                r"^\d{1,2}/\d{1,2}/\d{4} \d{1,2}:\d{2}:\d{2} [AP]M - \+?\d+", re.M
            ),
        ),
    ),
    # Unreachable by detection: every line this matches also matches the
    # bracketed WhatsApp pattern checked first.  iOS is reached via a hint.
    FormatSignature(
        platform=Platform.SMS_IOS,
        confidence=0.85,
        label="iOS Messages",
        patterns=(
            re.compile(
                r"^\[\d{1,2}/\d{1,2}/\d{2}, \d{1,2}:\d{2}:\d{2} [AP]M\] \+?\d+", re.M
            ),
        ),
    ),
    FormatSignature(
        platform=Platform.EMAIL,
        confidence=0.9,
        label="Email",
        patterns=(
            re.compile(r"^From:.*\n.*Date:.*\n.*Subject:", re.M),
            re.compile(r"^From:.*\n.*To:.*\n.*Subject:", re.M),
            re.compile(r"^Return-Path:.*\n.*Received:", re.M),
            re.compile(r"^Message-ID:", re.M),
        ),
    ),
    FormatSignature(
        platform=Platform.EMAIL,
        confidence=0.75,
        label="Email (Forwarded)",
        patterns=(re.compile(r"^Subject:.*\n.*From:.*\n.*Date:", re.M),),
    ),
)

MANUAL_CONFIDENCE = 0.6
UNKNOWN_CONFIDENCE = 0.3

_SPEAKER_LINE = re.compile(r"^[^:\n]{1,60}:\s*\S", re.M)
_MIN_SPEAKER_LINES = 2

PLATFORM_LABELS: dict[Platform, str] = {
    Platform.WHATSAPP: "WhatsApp Export",
    Platform.SMS_ANDROID: "Android SMS",
    Platform.SMS_IOS: "iOS Messages",
    Platform.EMAIL: "Email",
    Platform.MANUAL: "Manual Text",
    Platform.UNKNOWN: "Unknown Format",
}

AUTO_DETECT = "auto"


def _normalize(raw_text: str) -> str:
    return raw_text.replace("\r\n", "\n").replace("\r", "\n")


def detect(raw_text: str) -> PlatformMetadata:
    """Classify *raw_text* by the first matching format signature.

    Never fails: text matching no signature is ``manual`` when it has a
    few ``speaker: text`` lines and ``unknown`` otherwise.
    """
    text = _normalize(raw_text)
    for signature in SIGNATURES:
        if signature.matches(text):
            return PlatformMetadata(
                platform=signature.platform,
                confidence=signature.confidence,
                detected_format=signature.label,
            )

    if len(_SPEAKER_LINE.findall(text)) >= _MIN_SPEAKER_LINES:
        return PlatformMetadata(
            platform=Platform.MANUAL,
            confidence=MANUAL_CONFIDENCE,
            detected_format=PLATFORM_LABELS[Platform.MANUAL],
        )

    return PlatformMetadata(
        platform=Platform.UNKNOWN,
        confidence=UNKNOWN_CONFIDENCE,
        detected_format=PLATFORM_LABELS[Platform.UNKNOWN],
    )


def resolve_platform(
    raw_text: str,
    hint: str | Platform | None = None,
) -> PlatformMetadata:
    """Honour an explicit platform choice, or fall back to :func:`detect`.

    ``None``, ``""`` and ``"auto"`` mean "detect".  A recognised platform
    is trusted with full confidence.
    """
    if hint is None or hint == "" or hint == AUTO_DETECT:
        metadata = detect(raw_text)
        logger.info(
            "Detected platform %s (%s, confidence %.2f)",
            metadata.platform,
            metadata.detected_format,
            metadata.confidence,
        )
        return metadata

    try:
        platform = Platform(hint)
    except ValueError:
        raise InvalidInputError(
            f"Unknown platform '{hint}'. "
            f"Expected one of: {', '.join(p.value for p in Platform)}, or 'auto'."
        ) from None

    return PlatformMetadata(
        platform=platform,
        confidence=1.0,
        detected_format=PLATFORM_LABELS[platform],
    )
