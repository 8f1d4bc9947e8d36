"""
Tests for the two-layer prompt builder.
"""
import pytest

from call_analysis.models.call import CallMetadata
from call_analysis.models.taxonomy import TaxonomyEntry
from call_analysis.services.prompt_builder import PromptBuilder
from call_analysis.taxonomy import Taxonomy


@pytest.fixture
def builder(taxonomy) -> PromptBuilder:
    return PromptBuilder(taxonomy)


@pytest.fixture
def metadata() -> CallMetadata:
    return CallMetadata(
        call_type="First Call",
        closer_name="Jamie",
        prospect_name="Pat Prospect",
        duration_minutes=45,
    )


class TestMasterPrompt:

    def test_lists_taxonomy_in_order(self, builder: PromptBuilder, taxonomy: Taxonomy):
        prompt = builder.build_master_prompt()

        positions = [prompt.index(f'- "{label}"') for label in taxonomy.outcome_labels]
        assert positions == sorted(positions), "Outcomes should appear in configured order"

        positions = [prompt.index(f'- "{key}"') for key in taxonomy.objection_keys]
        assert positions == sorted(positions), "Objection types should appear in configured order"

        for key in taxonomy.score_keys:
            assert f'"{key}": <number 1-10>' in prompt

    def test_scale_and_rules(self, builder: PromptBuilder):
        prompt = builder.build_master_prompt()

        assert "scale of 1 to 10" in prompt
        assert "Return ONLY valid JSON" in prompt
        assert '"disqualification_reason"' in prompt

    def test_follows_alternate_taxonomy(self):
        taxonomy = Taxonomy(
            outcomes=(
                TaxonomyEntry(key="sold", label="Sold", description="Bought on the call"),
                TaxonomyEntry(key="unsold", label="Unsold", description="Did not buy"),
            ),
            default_outcome_key="unsold",
        )
        prompt = PromptBuilder(taxonomy).build_master_prompt()

        assert '- "Sold": Bought on the call' in prompt
        assert "Closed - Won" not in prompt
        assert "<one of: Sold, Unsold>" in prompt
        assert "no pitch or close was attempted" not in prompt

    def test_not_pitched_rule_uses_low_end_of_scale(self, builder: PromptBuilder):
        prompt = builder.build_master_prompt()

        assert (
            '- If the outcome is "Not Pitched", pitch_score and close_attempt_score '
            "should be low (1-2) since no pitch or close was attempted."
        ) in prompt
        assert prompt.rstrip().endswith("truly exceptional or poor.")


class TestClientPrompt:

    def test_empty_client_adds_nothing(self, builder: PromptBuilder):
        master = builder.build_master_prompt()

        assert builder.build_client_prompt(None) is None
        assert builder.build_client_prompt({}) is None
        assert builder.build_client_prompt({"company_name": "Acme", "ai_prompt_pitch": "  "}) is None
        assert builder.build_system_prompt({}) == master

    def test_sections_in_order(self, builder: PromptBuilder):
        client = {
            "ai_context_notes": "Prospects are usually referrals.",
            "common_objections": "Price, spouse.",
            "script_template": "1. Rapport 2. Discovery 3. Pitch",
            "ai_prompt_overall": "High-ticket coaching.",
            "offer_name": "Growth Program",
            "offer_price": "5000",
            "offer_description": "12-week coaching program",
            "ai_prompt_close": "Reward direct asks.",
        }
        prompt = builder.build_client_prompt(client)

        assert prompt.startswith("# CLIENT-SPECIFIC INSTRUCTIONS\n\n## CLIENT CONTEXT\nHigh-ticket coaching.")
        assert "## OFFER DETAILS\nOFFER: Growth Program ($5000)\n12-week coaching program" in prompt

        headings = [
            "## CLIENT CONTEXT",
            "## OFFER DETAILS",
            "## SCRIPT TEMPLATE",
            "## CLOSE SCORING INSTRUCTIONS",
            "## KNOWN COMMON OBJECTIONS",
            "## ADDITIONAL CONTEXT",
        ]
        positions = [prompt.index(h) for h in headings]
        assert positions == sorted(positions)
        assert "## PITCH SCORING INSTRUCTIONS" not in prompt

    def test_offer_without_price(self, builder: PromptBuilder):
        prompt = builder.build_client_prompt({"offer_name": "Starter"})

        assert "OFFER: Starter\n" not in prompt
        assert prompt.endswith("## OFFER DETAILS\nOFFER: Starter")

    def test_system_prompt_appends_client_section(self, builder: PromptBuilder, client_record):
        system_prompt = builder.build_system_prompt(client_record)

        assert system_prompt.startswith(builder.build_master_prompt() + "\n\n# CLIENT-SPECIFIC INSTRUCTIONS")


class TestUserMessage:

    def test_metadata_then_transcript(self, builder: PromptBuilder, metadata: CallMetadata):
        message = builder.build_user_message(metadata, "Closer: Hi Pat!")

        assert message == (
            "## CALL METADATA\n"
            "Call Type: First Call\n"
            "Closer: Jamie\n"
            "Prospect: Pat Prospect\n"
            "Duration: 45 minutes\n\n"
            "## TRANSCRIPT\n"
            "Closer: Hi Pat!"
        )

    def test_no_metadata(self, builder: PromptBuilder):
        assert builder.build_user_message(CallMetadata(), "hello") == "## TRANSCRIPT\nhello"

    def test_from_call_record(self, builder: PromptBuilder, call_record):
        message = builder.build_user_message(CallMetadata.from_call(call_record), "...")

        assert "Closer: Jamie" in message
        assert "Duration: 45 minutes" in message


class TestDeterminism:

    def test_same_input_same_prompt(self, builder: PromptBuilder, client_record, metadata):
        first = builder.build_prompt(client_record, metadata, "transcript")
        second = PromptBuilder(builder.taxonomy).build_prompt(client_record, metadata, "transcript")

        assert first == second
