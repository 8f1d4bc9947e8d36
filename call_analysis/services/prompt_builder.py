"""
Prompt builder for transcript analysis.

The system prompt has two layers:

1. MASTER PROMPT, identical for every call and every client. It is generated
   from the taxonomy (outcomes, objection types, scoring rubric and the output
   schema), so adding an objection type or score changes the prompt and the
   parser at the same time.
2. CLIENT INSTRUCTIONS, assembled from the free-text fields on the client
   record. Only fields the client actually filled in are included.

The user message holds the call metadata followed by the transcript.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from call_analysis.models.call import CallMetadata
from call_analysis.taxonomy import Taxonomy, default_taxonomy


@dataclass(frozen=True)
class BuiltPrompt:
    system_prompt: str
    user_message: str


# (client field, section heading) in the order they appear in the prompt.
# The offer block is assembled separately from offer_name/offer_price/offer_description.
CLIENT_SECTIONS_BEFORE_OFFER = (
    ("ai_prompt_overall", "CLIENT CONTEXT"),
)
CLIENT_SECTIONS_AFTER_OFFER = (
    ("script_template", "SCRIPT TEMPLATE (for adherence scoring)"),
    ("ai_prompt_discovery", "DISCOVERY SCORING INSTRUCTIONS"),
    ("ai_prompt_pitch", "PITCH SCORING INSTRUCTIONS"),
    ("ai_prompt_close", "CLOSE SCORING INSTRUCTIONS"),
    ("ai_prompt_objections", "OBJECTION HANDLING INSTRUCTIONS"),
    ("disqualification_criteria", "DISQUALIFICATION CRITERIA"),
    ("common_objections", "KNOWN COMMON OBJECTIONS"),
    ("ai_context_notes", "ADDITIONAL CONTEXT"),
)


def _text(value: Any) -> Optional[str]:
    """Stripped text for a client field, or None when it is empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _format_number(value: float) -> str:
    """1.0 -> '1', 7.5 -> '7.5'."""
    return f"{value:g}"


class PromptBuilder:
    """Builds (system_prompt, user_message) for one call. Deterministic."""

    def __init__(self, taxonomy: Optional[Taxonomy] = None):
        self.taxonomy = taxonomy or default_taxonomy()

    def build_prompt(
        self,
        client: Optional[Mapping[str, Any]],
        call_metadata: CallMetadata,
        transcript: str,
    ) -> BuiltPrompt:
        """
        Build the complete prompt for the model.

        Args:
            client: Client record (asyncpg.Record or dict) with the prompt customization fields
            call_metadata: Call type, closer, prospect and duration
            transcript: Full transcript text

        Returns:
            BuiltPrompt with system_prompt and user_message
        """
        return BuiltPrompt(
            system_prompt=self.build_system_prompt(client),
            user_message=self.build_user_message(call_metadata, transcript),
        )

    def build_system_prompt(self, client: Optional[Mapping[str, Any]]) -> str:
        parts = [self.build_master_prompt()]
        client_prompt = self.build_client_prompt(client)
        if client_prompt:
            parts.append(client_prompt)
        return "\n\n".join(parts)

    def build_master_prompt(self) -> str:
        """Universal instructions, generated from the taxonomy in taxonomy order."""
        taxonomy = self.taxonomy
        rubric = taxonomy.rubric
        scale_min = _format_number(rubric.scale.min)
        scale_max = _format_number(rubric.scale.max)

        outcome_lines = "\n".join(
            f'- "{o.label}": {o.description}' for o in taxonomy.outcomes
        )
        objection_lines = "\n".join(
            f'- "{o.key}" ({o.label}): {o.description}' for o in taxonomy.objection_types
        )
        level_lines = "\n".join(
            f"- {level.range}: {level.label}. {level.description}" for level in rubric.levels
        )
        score_fields = ",\n".join(
            f'    "{s.key}": <number {scale_min}-{scale_max}> // {s.description}'
            for s in rubric.score_types
        )
        outcome_labels = ", ".join(taxonomy.outcome_labels)
        objection_keys = ", ".join(f'"{key}"' for key in taxonomy.objection_keys)
        rules = "\n".join(self._rules(scale_min, scale_max))

        return f"""You are an expert sales call analyst. You will analyze a sales call transcript and provide a structured evaluation.

## YOUR TASK
Analyze the provided sales call transcript and return a JSON object with:
1. The call outcome (what happened on the call)
2. Scores for each aspect of the closer's performance
3. A brief narrative summary
4. All objections raised by the prospect
5. Key coaching feedback for the closer

## CALL OUTCOMES
Assign exactly ONE of these outcomes:
{outcome_lines}

## SCORING RUBRIC
Score each category on a scale of {scale_min} to {scale_max}:
{level_lines}

## OBJECTION TYPES
Classify each objection into exactly one of these types:
{objection_lines}

## REQUIRED OUTPUT FORMAT
Return ONLY valid JSON (no markdown fences, no explanation text). The JSON must match this schema exactly:

{{
  "call_outcome": "<one of: {outcome_labels}>",
  "scores": {{
{score_fields}
  }},
  "summary": "<2-4 sentence summary of what happened on the call>",
  "objections": [
    {{
      "objection_type": "<one of: {objection_keys}>",
      "objection_text": "<what the prospect actually said>",
      "closer_response": "<how the closer responded>",
      "was_overcome": <true or false>,
      "timestamp_approximate": "<approximate time in transcript, e.g. '00:15:30'>"
    }}
  ],
  "coaching_notes": "<1-3 specific, actionable coaching points for the closer>",
  "disqualification_reason": "<if the outcome is Disqualified, explain why, otherwise null>"
}}

## RULES
{rules}"""

    def _rules(self, scale_min: str, scale_max: str) -> list[str]:
        taxonomy = self.taxonomy
        rules = [
            "- Return ONLY the JSON object. No markdown code fences, no preamble, no explanation.",
            '- If no objections were raised, return an empty array for "objections".',
            f"- All scores must be numbers between {scale_min} and {scale_max}.",
            "- If a score cannot be assessed from the transcript (for example script adherence when no script is provided), set it to null.",
        ]
        not_pitched = taxonomy.outcome_by_key("not_pitched")
        if not_pitched and {"pitch_score", "close_attempt_score"} <= set(taxonomy.score_keys):
            low = _format_number(min(taxonomy.score_min + 1, taxonomy.score_max))
            rules.append(
                f'- If the outcome is "{not_pitched.label}", pitch_score and close_attempt_score '
                f"should be low ({scale_min}-{low}) since no pitch or close was attempted."
            )
        rules.append(
            "- Be honest and critical in scoring. Most closers should land in the middle of the scale "
            "unless they are truly exceptional or poor."
        )
        return rules

    def build_client_prompt(self, client: Optional[Mapping[str, Any]]) -> Optional[str]:
        """Per-client instructions; None when the client provides nothing."""
        if not client:
            return None

        sections = []

        for field, heading in CLIENT_SECTIONS_BEFORE_OFFER:
            value = _text(client.get(field))
            if value:
                sections.append(f"## {heading}\n{value}")

        offer_name = _text(client.get("offer_name"))
        if offer_name:
            offer_line = f"OFFER: {offer_name}"
            offer_price = _text(client.get("offer_price"))
            if offer_price:
                offer_line += f" (${offer_price})"
            offer_parts = [offer_line]
            offer_description = _text(client.get("offer_description"))
            if offer_description:
                offer_parts.append(offer_description)
            sections.append("## OFFER DETAILS\n" + "\n".join(offer_parts))

        for field, heading in CLIENT_SECTIONS_AFTER_OFFER:
            value = _text(client.get(field))
            if value:
                sections.append(f"## {heading}\n{value}")

        if not sections:
            return None

        return "# CLIENT-SPECIFIC INSTRUCTIONS\n\n" + "\n\n".join(sections)

    @staticmethod
    def build_user_message(call_metadata: CallMetadata, transcript: str) -> str:
        """Call metadata block (only present fields) followed by the transcript."""
        meta_lines = []
        if call_metadata.call_type:
            meta_lines.append(f"Call Type: {call_metadata.call_type}")
        if call_metadata.closer_name:
            meta_lines.append(f"Closer: {call_metadata.closer_name}")
        if call_metadata.prospect_name:
            meta_lines.append(f"Prospect: {call_metadata.prospect_name}")
        if call_metadata.duration_minutes:
            meta_lines.append(f"Duration: {_format_number(call_metadata.duration_minutes)} minutes")

        meta_section = ""
        if meta_lines:
            meta_section = "## CALL METADATA\n" + "\n".join(meta_lines) + "\n\n"

        return f"{meta_section}## TRANSCRIPT\n{transcript}"
