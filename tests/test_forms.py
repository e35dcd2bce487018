"""Tests for switchyard.http.forms — body parsing and uploads."""

import pytest

from switchyard.errors import HTTPError
from switchyard.http.forms import EMPTY_BODY, FormData, UploadFile, parse_body

BOUNDARY = "----switchyardboundary"


def _multipart(*parts: bytes) -> bytes:
    body = b""
    for part in parts:
        body += f"--{BOUNDARY}\r\n".encode() + part + b"\r\n"
    return body + f"--{BOUNDARY}--\r\n".encode()


def _field(name: str, value: str) -> bytes:
    return f'Content-Disposition: form-data; name="{name}"\r\n\r\n{value}'.encode()


def _file(name: str, filename: str, content_type: str, content: bytes) -> bytes:
    head = (
        f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
        f"Content-Type: {content_type}\r\n\r\n"
    )
    return head.encode() + content


class TestUrlEncoded:
    def test_fields(self) -> None:
        body = parse_body(b"name=ada&lang=py&lang=c", "application/x-www-form-urlencoded")
        assert isinstance(body, FormData)
        assert body["name"] == "ada"
        assert body.get_list("lang") == ["py", "c"]

    def test_invalid_utf8(self) -> None:
        with pytest.raises(HTTPError) as exc_info:
            parse_body(b"\xff\xfe", "application/x-www-form-urlencoded")
        assert exc_info.value.status == 400
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)

    def test_charset_parameter_ignored(self) -> None:
        body = parse_body(b"a=1", "application/x-www-form-urlencoded; charset=utf-8")
        assert body["a"] == "1"


class TestJson:
    def test_object(self) -> None:
        body = parse_body(b'{"user": {"id": 7}}', "application/json")
        assert body["user"] == {"id": 7}

    def test_vendor_json_type(self) -> None:
        body = parse_body(b'{"ok": true}', "application/vnd.api+json")
        assert body["ok"] is True

    def test_read_only(self) -> None:
        body = parse_body(b'{"a": 1}', "application/json")
        with pytest.raises(TypeError):
            body["a"] = 2  # type: ignore[index]

    def test_malformed(self) -> None:
        with pytest.raises(HTTPError) as exc_info:
            parse_body(b"{not json", "application/json")
        assert exc_info.value.status == 400

    def test_non_object(self) -> None:
        with pytest.raises(HTTPError) as exc_info:
            parse_body(b"[1, 2]", "application/json")
        assert exc_info.value.status == 400


class TestMultipart:
    def test_fields_and_files(self) -> None:
        raw = _multipart(
            _field("title", "Report"),
            _file("attachment", "report.txt", "text/plain", b"hello world"),
        )
        body = parse_body(raw, f"multipart/form-data; boundary={BOUNDARY}")

        assert body["title"] == "Report"
        (upload,) = body.files["attachment"]
        assert upload.filename == "report.txt"
        assert upload.content_type == "text/plain"
        assert upload.size == 11
        assert upload.read() == b"hello world"

    def test_truncated_body(self) -> None:
        raw = f"--{BOUNDARY}\r\n".encode() + _field("title", "Rep")
        with pytest.raises(HTTPError) as exc_info:
            parse_body(raw, f"multipart/form-data; boundary={BOUNDARY}")
        assert exc_info.value.status == 400
        assert "Truncated" in exc_info.value.detail

    def test_bad_framing(self) -> None:
        with pytest.raises(HTTPError) as exc_info:
            parse_body(b"not a multipart body at all", f"multipart/form-data; boundary={BOUNDARY}")
        assert exc_info.value.status == 400

    def test_missing_boundary(self) -> None:
        with pytest.raises(HTTPError) as exc_info:
            parse_body(b"--x\r\n", "multipart/form-data")
        assert exc_info.value.status == 400


class TestEmptyAndUnknown:
    def test_empty_raw(self) -> None:
        assert parse_body(b"", "application/json") is EMPTY_BODY

    def test_unknown_content_type(self) -> None:
        assert parse_body(b"<xml/>", "text/xml") is EMPTY_BODY

    def test_no_content_type(self) -> None:
        assert parse_body(b"a=1", None) is EMPTY_BODY

    def test_empty_form_has_no_files(self) -> None:
        assert dict(FormData().files) == {}


class TestUploadFile:
    def test_save_to_file(self, tmp_path) -> None:
        upload = UploadFile("a.txt", "text/plain", 3, b"abc")
        target = upload.save(tmp_path / "out.txt")
        assert target.read_bytes() == b"abc"

    def test_save_into_directory_uses_filename(self, tmp_path) -> None:
        upload = UploadFile("../../evil.txt", "text/plain", 3, b"abc")
        target = upload.save(tmp_path)
        assert target == tmp_path / "evil.txt"
        assert target.read_bytes() == b"abc"
