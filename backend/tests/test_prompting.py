"""Tests for prompt composition and branch selection."""

import json

from policy_compare.pipeline.normalization import NormalizedFragment
from policy_compare.pipeline.prompting import (
    CHECKLIST,
    Branch,
    compose_prompt,
    find_marker_index,
    select_branch,
    serialize_preferences,
)

from conftest import policy_text


def _frag(text: str, label: str) -> NormalizedFragment:
    return NormalizedFragment(text=text, label=label)


class TestBranchSelection:
    """Marker detection is case-insensitive and the last match wins."""

    def test_no_marker_selects_balanced(self, fragments):
        assert select_branch(fragments) == (Branch.BALANCED, -1)

    def test_uppercase_marker_selects_targeted(self):
        frags = [_frag(policy_text("Anadolu"), "a"), _frag(policy_text("ALLIANZ"), "b")]
        assert select_branch(frags) == (Branch.TARGETED, 1)

    def test_full_insurer_name_selects_targeted(self):
        frags = [_frag(policy_text("Axa", extra="Sigortaci: Allianz Sigorta A.S."), "a"), _frag(policy_text("Sompo"), "b")]
        assert select_branch(frags) == (Branch.TARGETED, 0)

    def test_last_matching_fragment_wins(self):
        frags = [
            _frag(policy_text("allianz"), "a"),
            _frag(policy_text("Axa"), "b"),
            _frag(policy_text("Axa", extra="reasurans: Allianz"), "c"),
        ]
        assert find_marker_index(frags) == 2


class TestComposePrompt:
    """Assembly order, content of each branch and purity."""

    def test_is_deterministic(self, fragments):
        prefs = {"budget": "low", "priorities": ["ikame arac", "IMM"]}
        assert compose_prompt(fragments, prefs) == compose_prompt(list(fragments), dict(prefs))

    def test_sections_are_in_order(self, fragments):
        prompt = compose_prompt(fragments, {"budget": "low"})
        schema = prompt.index('"aiCommentary"')
        instructions = prompt.index("NO ALLIANZ POLICY DETECTED")
        prefs = prompt.index("The user's preferences are:")
        first = prompt.index("--- POLICY 1 (anadolu.pdf) ---")
        second = prompt.index("--- POLICY 2 (axa.pdf) ---")
        assert schema < instructions < prefs < first < second
        assert prompt.rstrip().endswith("--- END OF POLICY 2 ---")

    def test_every_fragment_text_is_wrapped(self, fragments):
        prompt = compose_prompt(fragments, {})
        for i, frag in enumerate(fragments, start=1):
            block = f"--- POLICY {i} ({frag.label}) ---\n{frag.text}\n--- END OF POLICY {i} ---"
            assert block in prompt

    def test_balanced_branch_embeds_preferences(self, fragments):
        prefs = {"öncelik": "düşük prim"}
        prompt = compose_prompt(fragments, prefs)
        serialized = serialize_preferences(prefs)
        assert serialized == json.dumps(prefs, indent=2, ensure_ascii=False)
        assert f"preferences ({serialized})" in prompt
        assert "\n\nThe user's preferences are:\n" + serialized in prompt

    def test_targeted_branch_names_recommended_column_and_checklist(self):
        frags = [_frag(policy_text("Axa"), "axa.pdf"), _frag(policy_text("Allianz"), "allianz.pdf")]
        prompt = compose_prompt(frags, {})
        assert "ALLIANZ POLICY (Policy 2) WAS DETECTED" in prompt
        assert '"Policy 2 - Allianz (Recommended)"' in prompt
        assert "NO ALLIANZ POLICY DETECTED" not in prompt
        for item in CHECKLIST:
            assert f"- {item}" in prompt

    def test_empty_preferences_serialize_as_empty_object(self, fragments):
        assert "The user's preferences are:\n{}\n" in compose_prompt(fragments, {})

    def test_output_language_is_part_of_schema_preamble(self, fragments):
        assert "Write every piece of text in English." in compose_prompt(fragments, {}, language="English")
