import io

import pytest

from json_csv_converter.errors import ParseError
from json_csv_converter.io_utils import load_json, read_json_text


def test_load_json_from_text_keeps_key_order():
    doc = load_json('{"b": 1, "a": 2, "c": 3}')
    assert list(doc.keys()) == ["b", "a", "c"]


def test_load_json_from_bytes():
    assert load_json(b'[{"a": "\xc3\xa9"}]') == [{"a": "é"}]


def test_load_json_strips_utf8_bom_from_bytes():
    assert load_json(b'\xef\xbb\xbf{"a": 1}') == {"a": 1}


def test_malformed_json_reports_position():
    with pytest.raises(ParseError) as excinfo:
        load_json('{"a": 1,,}')
    message = str(excinfo.value)
    assert message.startswith("JSON parsing error:")
    assert "line 1" in message and "column" in message


@pytest.mark.parametrize("source", ["", "   ", b""])
def test_empty_input_is_a_parse_error(source):
    with pytest.raises(ParseError):
        load_json(source)


def test_invalid_utf8_is_a_parse_error():
    with pytest.raises(ParseError, match="not valid UTF-8"):
        load_json(b'{"a": "\xff"}')


@pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity", "1e400", "-1e400"])
def test_non_finite_constants_are_rejected(constant):
    with pytest.raises(ParseError):
        load_json(f'[{{"a": {constant}}}]')


def test_load_json_rejects_other_types():
    with pytest.raises(TypeError):
        load_json(42)


def test_read_json_text_from_path(tmp_path):
    path = tmp_path / "data.json"
    path.write_bytes(b'{"a": 1}')
    assert read_json_text(str(path)) == '{"a": 1}'
    assert read_json_text(path) == '{"a": 1}'


def test_read_json_text_from_file_like_object():
    buf = io.BytesIO(b'[1, 2]')
    buf.read()
    assert read_json_text(buf) == '[1, 2]'


def test_read_json_text_from_upload_like_object(tmp_path):
    path = tmp_path / "upload.json"
    path.write_text('{"x": true}', encoding="utf-8")

    class Upload:
        name = str(path)

    assert read_json_text(Upload()) == '{"x": true}'


def test_read_json_text_missing_file(tmp_path):
    with pytest.raises(OSError):
        read_json_text(tmp_path / "missing.json")


def test_read_json_text_requires_input():
    with pytest.raises(ValueError):
        read_json_text(None)


def test_large_finite_numbers_still_parse():
    assert load_json('[{"a": 1e300, "b": 123456789012345678901234567890}]') == [
        {"a": 1e300, "b": 123456789012345678901234567890}
    ]


def test_read_json_text_strips_bom_from_text_stream():
    text = read_json_text(io.StringIO('\ufeff{"a": 1}'))
    assert text == '{"a": 1}'
    assert load_json(text) == {"a": 1}
