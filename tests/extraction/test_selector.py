"""Tests for AI image selection."""

import logging

from zirkel_inventory.core.errors import ErrorKind, RemoteServiceError
from zirkel_inventory.core.schema import ExtractedMediaRecord
from zirkel_inventory.extraction.selector import parse_selected_index, select_best_image

CANDIDATES = [
    "data:image/jpeg;base64,AAAA",
    "data:image/jpeg;base64,BBBB",
    "data:image/jpeg;base64,CCCC",
]


def record():
    return ExtractedMediaRecord(pagina=1, clave="101", tipo_medio="Carteleras")


def test_parse_selected_index():
    assert parse_selected_index('{"index": 2}', 3) == 2
    assert parse_selected_index('```json\n{"index": 0}\n```', 3) == 0


def test_parse_selected_index_out_of_range(caplog):
    """Out-of-range answers are logged as ambiguous and give None."""
    with caplog.at_level(logging.WARNING):
        assert parse_selected_index('{"index": 3}', 3) is None
        assert parse_selected_index('{"index": -1}', 3) is None
    assert "image_selection_ambiguous" in caplog.text


def test_parse_selected_index_malformed():
    assert parse_selected_index("la segunda", 3) is None
    assert parse_selected_index('{"index": "1"}', 3) is None
    assert parse_selected_index('{"index": true}', 3) is None
    assert parse_selected_index("[1]", 3) is None


def test_select_best_image(context, fake_anthropic):
    """The chosen candidate is returned and every image is sent in order."""
    fake_anthropic.responses.append('{"index": 1}')

    assert select_best_image(CANDIDATES, record(), context) == CANDIDATES[1]

    content = fake_anthropic.calls[0]["messages"][0]["content"]
    images = [block for block in content if block["type"] == "image"]
    assert [b["source"]["data"] for b in images] == ["AAAA", "BBBB", "CCCC"]
    assert content[-1]["type"] == "text"
    assert "Carteleras" in content[-1]["text"]
    assert fake_anthropic.calls[0]["model"] == context.selection_model


def test_select_best_image_without_candidates(context, fake_anthropic):
    """No candidates means no model call at all."""
    assert select_best_image([], record(), context) is None
    assert fake_anthropic.calls == []


def test_select_best_image_invalid_index(context, fake_anthropic):
    fake_anthropic.responses.append('{"index": 7}')
    assert select_best_image(CANDIDATES, record(), context) is None


def test_select_best_image_model_failure(context, fake_anthropic):
    """A failed ranking call degrades to no image."""
    fake_anthropic.responses.append(RemoteServiceError("overloaded", kind=ErrorKind.TRANSIENT, status_code=529))
    assert select_best_image(CANDIDATES, record(), context) is None


def test_select_best_image_retries_rate_limit(context, fake_anthropic):
    fake_anthropic.responses.extend([
        RemoteServiceError("slow down", kind=ErrorKind.RATE_LIMITED, status_code=429),
        '{"index": 2}',
    ])
    assert select_best_image(CANDIDATES, record(), context) == CANDIDATES[2]
    assert len(fake_anthropic.calls) == 2
