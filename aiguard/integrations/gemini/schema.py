"""
Structured-output contract sent with every forensic audit request.

Wire field names are the engine's (camelCase); `aiguard.analysis.verdict`
maps them onto the snake_case models.
"""

from google.genai import types

from aiguard.schemas.forensics import MediaMode, Severity

SCORE_FIELD = "confidenceScore"
SUMMARY_FIELD = "executiveSummary"
MARKERS_FIELD = "forensicMarkers"

_POSITION_DESCRIPTIONS = {
    MediaMode.VIDEO: "Format MM:SS.",
    MediaMode.IMAGE: "Anatomical region or image label.",
}


def build_response_schema(mode: MediaMode) -> types.Schema:
    marker = types.Schema(
        type=types.Type.OBJECT,
        properties={
            "timestamp": types.Schema(
                type=types.Type.STRING,
                description=_POSITION_DESCRIPTIONS[mode],
            ),
            "label": types.Schema(
                type=types.Type.STRING,
                description="Marker name prefixed by its reasoning stage (e.g. '[Stage 1] Visual Artifact').",
            ),
            "severity": types.Schema(
                type=types.Type.STRING,
                enum=[s.value for s in Severity],
            ),
            "description": types.Schema(type=types.Type.STRING),
        },
        required=["timestamp", "label", "severity", "description"],
    )

    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            SCORE_FIELD: types.Schema(
                type=types.Type.NUMBER,
                description="A precise risk score (0.00-100.00) with two-decimal precision (e.g. 12.45, 88.12).",
            ),
            SUMMARY_FIELD: types.Schema(
                type=types.Type.STRING,
                description="A comprehensive summary synthesizing findings from all 4 stages of reasoning.",
            ),
            MARKERS_FIELD: types.Schema(type=types.Type.ARRAY, items=marker),
        },
        required=[SCORE_FIELD, SUMMARY_FIELD, MARKERS_FIELD],
    )
