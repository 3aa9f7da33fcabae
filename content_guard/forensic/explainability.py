"""
content_guard.forensic.explainability – verdict evidence rendering.

Turns a PolicyVerdict into the human-readable lines shown next to the
current / matched thumbnails.
"""
from __future__ import annotations

from content_guard.ai.verdict_model import PolicyVerdict

STATUS_HEADLINES = {
    "Safe":      "Safe (တင်နိုင်သည်)",
    "Warning":   "Warning",
    "High Risk": "Repetitive (မတင်သင့်)",
}

SAVED_NOTE = "Database တွင် သိမ်းဆည်းပြီး"
MATCHED_NOTE = "မှတ်တမ်းဟောင်းနှင့် တူနေသည်"


def build_verdict_evidence(verdict: PolicyVerdict) -> list[str]:
    """
    Render the supporting evidence for *verdict*.

    Args:
        verdict  Parsed verdict from the judgment service.

    Returns:
        Ordered explanation lines: headline, score, recommendation,
        violations, comparison breakdown, history note.
    """
    lines = [
        STATUS_HEADLINES.get(verdict.status, verdict.status),
        f"Similarity score: {verdict.similarity_score:.0f}/100",
        verdict.recommendations,
    ]

    if verdict.policy_violations:
        lines.append("Policy violations:")
        lines.extend(f"  - {v}" for v in verdict.policy_violations)

    details = verdict.comparison_details
    lines.extend([
        f"Composition: {details.composition}",
        f"Colors: {details.colors}",
        f"Subject matter: {details.subject_matter}",
        f"Motion: {details.motion_analysis}",
    ])

    check = verdict.history_check
    if check.is_similar_to_past:
        label = (
            f" (ID_{check.matched_video_index})"
            if check.matched_video_index is not None else ""
        )
        lines.append(f"{MATCHED_NOTE}{label}")
    else:
        lines.append(SAVED_NOTE)

    if check.details:
        lines.append(check.details)
    return lines
