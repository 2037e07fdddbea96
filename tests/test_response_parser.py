# tests/test_response_parser.py
import json
import pytest

from subrename.enums import ErrorKind
from subrename.exceptions import SchemaMismatchError
from subrename.response_parser import (
    extract, extract_batch_title, strip_reasoning, strip_code_fence, parse_with_stages, DECODE_STAGES,
)
from subrename.schemas import ExtractedMetadata, BatchMetadataGuess

FENCE = "`" * 3
PAYLOAD = {
    "title": "Kono Healer, Mendokusai", "season": 1, "episode": 5, "special_type": None,
    "resolution": "1080p", "codec": "HEVC", "group": "VCB-Studio", "language_tags": ["CHS"], "confidence": 0.9,
}


def test_extract_plain_json():
    meta = extract(json.dumps(PAYLOAD))
    assert meta.title == "Kono Healer, Mendokusai"
    assert meta.episode == 5
    assert meta.language_tags == {"CHS"}


def test_extract_defaults_season_to_one():
    meta = extract('{"title": "X", "episode": 3, "confidence": 0.5}')
    assert meta.season == 1
    assert meta.resolution == "" and meta.group == ""


def test_reasoning_and_fence_give_identical_record():
    plain = extract(json.dumps(PAYLOAD))
    wrapped = "<seed:think>\nthe title is {not json}\n</seed:think>\n" + FENCE + "json\n" + json.dumps(PAYLOAD, indent=2) + "\n" + FENCE
    assert extract(wrapped) == plain


def test_generic_think_marker_is_stripped():
    assert extract("<think>hmm</think>" + json.dumps(PAYLOAD)).episode == 5


def test_multiple_reasoning_blocks_are_removed_non_greedy():
    text = "<seed:think>a</seed:think>KEEP<seed:think>b\nc</seed:think>"
    assert strip_reasoning(text) == "KEEP"


def test_strip_code_fence_variants():
    assert strip_code_fence(FENCE + "json\n{}\n" + FENCE) == "{}"
    assert strip_code_fence("  " + FENCE + "\n{}" + FENCE + "  ") == "{}"
    assert strip_code_fence("{}") == "{}"


def test_numeric_strings_normalise_to_int():
    meta = extract('{"title": "X", "season": "02", "episode": "05", "confidence": "0.8"}')
    assert (meta.season, meta.episode) == (2, 5)
    assert meta.confidence == pytest.approx(0.8)


@pytest.mark.parametrize("raw, expected", [(1.7, 1.0), (-3, 0.0), ("0.25", 0.25)])
def test_confidence_is_clamped(raw, expected):
    meta = ExtractedMetadata.model_validate({"title": "X", "episode": 1, "confidence": raw})
    assert meta.confidence == pytest.approx(expected)


def test_unknown_fields_are_ignored():
    assert extract('{"title": "X", "episode": 1, "mood": "happy"}').title == "X"


def test_language_tags_accept_single_string():
    assert extract('{"title": "X", "episode": 1, "language_tags": "CHS, JPN"}').language_tags == {"CHS", "JPN"}


def test_schema_mismatch_keeps_original_text():
    raw = "<seed:think>x</seed:think>Sorry, I cannot help with that."
    with pytest.raises(SchemaMismatchError) as excinfo:
        extract(raw)
    assert excinfo.value.raw_text == raw
    assert excinfo.value.kind is ErrorKind.SCHEMA_MISMATCH
    assert str(excinfo.value) == f"Failed to parse LLM response: {raw}"


def test_missing_required_field_is_mismatch():
    with pytest.raises(SchemaMismatchError):
        extract('{"title": "X"}')


def test_negative_episode_is_mismatch():
    with pytest.raises(SchemaMismatchError):
        extract('{"title": "X", "episode": -1}')


def test_batch_title_with_fence_and_legacy_key():
    assert extract_batch_title(FENCE + '{"title": "Frieren"}' + FENCE) == BatchMetadataGuess(title="Frieren")
    assert extract_batch_title('{"anime_title": "Frieren", "confidence": 1.0}').title == "Frieren"


def test_custom_stages_run_in_order(mocker):
    first = mocker.Mock(return_value="not json")
    second = mocker.Mock(return_value='{"title": "T"}')
    result = parse_with_stages("raw", BatchMetadataGuess, (("one", first), ("two", second)))
    assert result.title == "T"
    first.assert_called_once_with("raw")
    second.assert_called_once_with("raw")


def test_default_stage_order():
    assert [name for name, _ in DECODE_STAGES] == ["as-is", "fence-stripped"]
