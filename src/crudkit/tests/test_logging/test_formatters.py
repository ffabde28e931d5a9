import json
import logging

from crudkit.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record(**extra):
    record = logging.LogRecord("crudkit.services.crud_service", logging.ERROR, __file__, 10,
                               "Widget with id %s could not be deleted", ("w1",), None)
    record.__dict__.update(extra)
    return record


def test_json_formatter_emits_context_and_metadata():
    rec = make_record(request_id="rid-1", context={"id": "w1", "line": 3, "trace": ["Traceback..."]})

    out = json.loads(JsonFormatter(env="testing").format(rec))

    assert out["message"] == "Widget with id w1 could not be deleted"
    assert out["level"] == "ERROR"
    assert out["logger"] == "crudkit.services.crud_service"
    assert out["request_id"] == "rid-1"
    assert out["service"] == "crudkit"
    assert out["env"] == "testing"
    assert out["context"] == {"id": "w1", "line": 3, "trace": ["Traceback..."]}
    assert "version" in out


def test_json_formatter_stringifies_unserializable_values():
    marker = object()
    rec = make_record(context={"page": marker})

    out = json.loads(JsonFormatter().format(rec))

    assert out["context"]["page"] == str(marker)


def test_color_formatter_shows_context_without_trace():
    rec = make_record(request_id="rid-1", context={"id": "w1", "trace": ["Traceback (most recent call last)"]})

    line = ColorFormatter().format(rec)

    assert "Widget with id w1 could not be deleted" in line
    assert "rid-1" in line
    assert "'id': 'w1'" in line
    assert "Traceback" not in line
