"""Tests for Document assembly and rendering."""

import json
from pathlib import Path

import pytest
import yaml
from swml.config import DocumentConfig
from swml.document import Document
from swml.exceptions import DuplicateSectionError
from swml.schemas import (
    AI,
    AIParams,
    AIPrompt,
    Cond,
    DataMap,
    FunctionArgument,
    FunctionConfig,
    Play,
    Record,
    Request,
    SWAIGConfig,
    WebhookConfig,
    WebhookOutput,
)
from swml.section import Section

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _load_fixture(name: str) -> dict:
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


# =============================================================================
# Building
# =============================================================================


class TestAddSection:
    """Tests for adding sections."""

    def test_add_section_by_name(self):
        """A name creates and returns a new empty section."""
        doc = Document()
        section = doc.add_section("main")
        assert isinstance(section, Section)
        assert section.name == "main"
        assert len(section) == 0
        assert doc.get_section("main") is section

    def test_add_existing_section_by_reference(self):
        """An existing Section is bound as-is, not copied."""
        section = Section("main")
        section.append("answer")
        doc = Document()
        assert doc.add_section(section) is section
        assert doc.to_dict() == {"sections": {"main": ["answer"]}}

    def test_append_after_attach_is_rendered(self):
        """The document renders the section's current actions."""
        doc = Document()
        section = Section("main")
        doc.add_section(section)
        section.append("answer")
        section.append("hangup")
        assert doc.to_dict() == {"sections": {"main": ["answer", "hangup"]}}

    def test_duplicate_name_replaces(self):
        """Last write wins; the old section is orphaned but still usable."""
        doc = Document()
        first = doc.add_section("main")
        first.append("answer")
        second = doc.add_section("main")
        second.append("hangup")

        first.append(Play(url="say:Nobody hears this"))

        assert doc.section_names == ("main",)
        assert doc.get_section("main") is second
        assert doc.to_dict() == {"sections": {"main": ["hangup"]}}
        assert len(first) == 2

    def test_duplicate_name_logs_warning(self, caplog):
        """Replacing a section is logged."""
        doc = Document()
        doc.add_section("main")
        with caplog.at_level("WARNING", logger="swml-document"):
            doc.add_section("main")
        assert "replaced" in caplog.text

    def test_duplicate_name_error_policy(self):
        """Under the error policy duplicates raise and nothing changes."""
        doc = Document(DocumentConfig(duplicate_sections="error"))
        original = doc.add_section("main")
        with pytest.raises(DuplicateSectionError) as exc:
            doc.add_section(Section("main"))
        assert exc.value.name == "main"
        assert doc.get_section("main") is original

    def test_sections_inherit_document_config(self):
        """Sections created by name share the document config."""
        doc = Document(DocumentConfig(validate_instructions=False))
        raw = {"future_action": {}}
        assert doc.add_section("main").append(raw) is raw

    def test_add_section_rejects_other_types(self):
        """Only names and Sections can be added."""
        with pytest.raises(TypeError):
            Document().add_section(42)

    def test_get_missing_section_raises(self):
        """Unknown section names raise KeyError."""
        with pytest.raises(KeyError):
            Document().get_section("missing")

    def test_contains_and_len(self):
        """Membership and size reflect added sections."""
        doc = Document()
        doc.add_section("main")
        doc.add_section("transfer")
        assert "main" in doc
        assert "other" not in doc
        assert len(doc) == 2


# =============================================================================
# Rendering
# =============================================================================


class TestToJSON:
    """Tests for JSON rendering."""

    def test_answer_scenario(self):
        """The smallest useful document."""
        doc = Document()
        doc.add_section("main").append("answer")
        assert json.loads(doc.to_json()) == {"sections": {"main": ["answer"]}}

    def test_four_space_indent(self):
        """JSON is pretty-printed with 4 spaces."""
        doc = Document()
        doc.add_section("main").append("answer")
        assert doc.to_json() == (
            '{\n    "sections": {\n        "main": [\n            "answer"\n        ]\n    }\n}'
        )

    def test_indent_is_configurable(self):
        """json_indent controls the indentation width."""
        doc = Document(DocumentConfig(json_indent=2))
        doc.add_section("main").append("answer")
        assert doc.to_json().splitlines()[1] == '  "sections": {'

    def test_empty_document(self):
        """A document without sections renders an empty mapping."""
        assert json.loads(Document().to_json()) == {"sections": {}}

    @pytest.mark.parametrize(
        "instructions",
        [
            ["answer"],
            ["answer", "hangup"],
            [{"play": {"url": "say:One"}}, {"play": {"url": "say:Two"}}, "hangup"],
            ["record", {"set": {"done": True}}, {"goto": {"label": "top", "max": 3}}],
        ],
    )
    def test_append_order_round_trips(self, instructions):
        """Instructions come back from JSON in append order."""
        doc = Document()
        section = doc.add_section("main")
        for instruction in instructions:
            section.append(instruction)
        assert json.loads(doc.to_json()) == {"sections": {"main": instructions}}

    def test_section_insertion_order(self):
        """Sections render in the order they were added."""
        doc = Document()
        doc.add_section("zeta").append("answer")
        doc.add_section("alpha").append("hangup")
        assert list(json.loads(doc.to_json())["sections"]) == ["zeta", "alpha"]
        assert doc.section_names == ("zeta", "alpha")

    def test_nested_cond_scenario(self):
        """Nested branches render verbatim, including empty ones."""
        doc = Document()
        doc.add_section("main").append(
            {"cond": {"when": "x==1", "then": [{"hangup": {}}], "else": []}}
        )
        assert json.loads(doc.to_json()) == _load_fixture("nested_cond.json")

    def test_optional_field_omission(self):
        """Unset optionals are absent; explicit falsy values are present."""
        doc = Document()
        section = doc.add_section("main")
        section.append(Record(format="wav"))
        section.append(Record(beep=False, input_sensitivity=0))
        section.append({"play": {"url": ""}})

        rendered = json.loads(doc.to_json())["sections"]["main"]
        assert rendered[0] == {"record": {"format": "wav"}}
        assert rendered[1] == {"record": {"beep": False, "input_sensitivity": 0}}
        assert rendered[2] == {"play": {"url": ""}}

    def test_ai_swaig_scenario(self):
        """Deeply nested AI/SWAIG structures render without truncation."""
        doc = Document()
        main = doc.add_section("main")
        main.append("answer")
        main.append(
            AI(
                prompt=AIPrompt(text="You are the receptionist for Acme Plumbing.", temperature=0.3),
                post_prompt_url="https://example.com/summary",
                params=AIParams(direction="inbound", wait_for_user=False, end_of_speech_timeout=1000),
                swaig=SWAIGConfig(
                    functions=[
                        FunctionConfig(
                            function="route_call",
                            purpose="Send the caller to the right department",
                            argument=FunctionArgument(
                                type="object",
                                properties={"department": {"type": "string"}},
                            ),
                            data_map=[
                                DataMap(
                                    webhooks=WebhookConfig(
                                        url="https://example.com/route",
                                        method="POST",
                                        output=WebhookOutput(
                                            response="Transferring you now.",
                                            action=[
                                                {"play": {"url": "say:Please hold."}},
                                                Cond(
                                                    when="department == 'sales'",
                                                    then=[{"transfer": {"dest": "sales"}}],
                                                    else_=["hangup"],
                                                ),
                                            ],
                                        ),
                                    )
                                )
                            ],
                        )
                    ]
                ),
            )
        )

        tree = json.loads(doc.to_json())
        assert tree == _load_fixture("ai_swaig.json")

        ai = tree["sections"]["main"][1]["ai"]
        action = ai["SWAIG"]["functions"][0]["data_map"][0]["webhooks"]["output"]["action"]
        assert action[1]["cond"]["then"][0] == {"transfer": {"dest": "sales"}}

    def test_request_result_scenario(self):
        """A branch result inside a request renders as a single record."""
        doc = Document()
        doc.add_section("main").append(
            Request(url="u", method="GET", result=Cond(when="a", then=[], else_=[]))
        )
        assert json.loads(doc.to_json()) == {
            "sections": {
                "main": [
                    {
                        "request": {
                            "url": "u",
                            "method": "GET",
                            "result": {"cond": {"when": "a", "then": [], "else": []}},
                        }
                    }
                ]
            }
        }

    def test_deeply_nested_document(self):
        """A document nested 150 branches deep still renders."""
        branch: list = ["hangup"]
        for depth in range(150):
            branch = [Cond(when=f"depth == {depth}", then=branch, else_=[])]
        doc = Document()
        doc.add_section("main").extend(branch)

        rendered = json.loads(doc.to_json())["sections"]["main"][0]
        for depth in reversed(range(150)):
            assert rendered["cond"]["when"] == f"depth == {depth}"
            assert rendered["cond"]["else"] == []
            rendered = rendered["cond"]["then"][0]
        assert rendered == "hangup"

    def test_unvalidated_mapping_with_models(self):
        """Raw mappings may hold models; they are rendered too."""
        doc = Document(DocumentConfig(validate_instructions=False))
        doc.add_section("main").append(
            {"cond": {"when": "x", "then": [Play(url="say:Hi")], "else": ()}}
        )
        assert doc.to_dict() == {
            "sections": {
                "main": [{"cond": {"when": "x", "then": [{"play": {"url": "say:Hi"}}], "else": []}}]
            }
        }

    def test_render_is_idempotent(self):
        """Rendering twice gives byte-identical output."""
        doc = Document()
        section = doc.add_section("main")
        section.append("answer")
        section.append(Play(urls=["say:One", "silence:1"], volume=0))
        assert doc.to_json() == doc.to_json()
        assert doc.to_yaml() == doc.to_yaml()


class TestToYAML:
    """Tests for YAML rendering."""

    def test_answer_scenario(self):
        """YAML renders the same tree in block style."""
        doc = Document()
        doc.add_section("main").append("answer")
        assert doc.to_yaml() == "sections:\n  main:\n  - answer\n"

    def test_yaml_matches_json(self):
        """YAML and JSON describe the same logical tree."""
        doc = Document()
        main = doc.add_section("main")
        main.append("answer")
        main.append({"cond": {"when": "x==1", "then": [{"hangup": {"reason": "busy"}}], "else": []}})
        main.append(Record(beep=False, format="mp3"))
        doc.add_section("other").append({"set": {"count": 0, "label": ""}})

        assert yaml.safe_load(doc.to_yaml()) == json.loads(doc.to_json())

    def test_yaml_keeps_key_order(self):
        """Keys are not sorted."""
        doc = Document()
        doc.add_section("zeta").append("answer")
        doc.add_section("alpha").append("hangup")
        assert doc.to_yaml().index("zeta") < doc.to_yaml().index("alpha")
