import httpx
import pytest

from proxyagent.request import PendingRequest, patch_output_header


def test_headers_are_coerced_to_httpx_headers():
    request = PendingRequest(headers={"Host": "example.com"})
    assert isinstance(request.headers, httpx.Headers)
    assert request.get_header("host") == "example.com"


def test_serialize_header():
    request = PendingRequest(method="POST", path="/submit", headers={"Host": "example.com", "Content-Length": "4"})
    assert request.serialize_header() == (
        "POST /submit HTTP/1.1\r\n"
        "Host: example.com\r\n"
        "Content-Length: 4\r\n"
        "\r\n"
    )
    assert request.header is not None


def test_first_write_carries_the_head():
    request = PendingRequest(headers={"Host": "old"})
    request.write(b"BODY")
    request.write(b"MORE")
    assert request.output_data == [b"GET / HTTP/1.1\r\nHost: old\r\n\r\nBODY", b"MORE"]


def test_set_header_after_serialization_is_refused():
    request = PendingRequest()
    request.serialize_header()
    with pytest.raises(RuntimeError):
        request.set_header("X-Late", "1")


async def test_flush_without_body_sends_head_only(fake_connection):
    request = PendingRequest(headers={"Host": "example.com"})
    await request.flush(fake_connection)
    assert fake_connection.written == [b"GET / HTTP/1.1\r\nHost: example.com\r\n\r\n"]
    assert request.output_data == []


async def test_flush_sends_queued_chunks_in_order(fake_connection):
    request = PendingRequest(method="PUT", headers={"Host": "example.com"})
    request.write(b"one")
    request.write(b"two")
    await request.flush(fake_connection)
    assert b"".join(fake_connection.written) == b"PUT / HTTP/1.1\r\nHost: example.com\r\n\r\nonetwo"


def test_patch_replaces_stale_head_and_keeps_body():
    request = PendingRequest(headers={"Host": "old"})
    request.output_data = [b"GET / HTTP/1.1\r\nHost: old\r\n\r\nBODY"]
    request.path = "http://example.com:8080/"
    request.headers["Host"] = "example.com:8080"
    fresh = request.serialize_header()

    assert patch_output_header(request) is True

    chunk = request.output_data[0]
    assert chunk == fresh.encode("latin-1") + b"BODY"
    assert chunk.count(b"BODY") == 1
    assert chunk.count(b"\r\n\r\n") == 1
    assert b"Host: old" not in chunk


def test_patch_only_touches_first_chunk():
    request = PendingRequest()
    request.output_data = [b"GET / HTTP/1.1\r\n\r\nA", b"B\r\n\r\nC"]
    request.path = "http://example.com/"
    request.serialize_header()
    patch_output_header(request)
    assert request.output_data[0] == b"GET http://example.com/ HTTP/1.1\r\n\r\nA"
    assert request.output_data[1] == b"B\r\n\r\nC"


def test_patch_without_queued_output_is_a_no_op():
    request = PendingRequest()
    request.serialize_header()
    assert patch_output_header(request) is False
    assert request.output_data == []


def test_patch_without_terminator_replaces_whole_chunk():
    request = PendingRequest()
    request.output_data = [b"GET / HTTP/1.1\r\nHost: partial"]
    request.serialize_header()
    patch_output_header(request)
    assert request.output_data[0] == b"GET / HTTP/1.1\r\n\r\n"
