from printbridge.app.framing import (
    PREFLIGHT_HEADERS,
    Response,
    parse_request,
    pending_body_bytes,
)


def test_parse_request_splits_head_and_body():
    req = parse_request(
        b"POST /print?copies=1 HTTP/1.1\r\nHost: x\r\nContent-Type: application/json"
        b'\r\n\r\n {"a":1} \n'
    )
    assert req.method == "POST"
    assert req.target == "/print?copies=1"
    assert req.path == "/print"
    assert req.headers == {"host": "x", "content-type": "application/json"}
    assert req.body == b'{"a":1}'


def test_parse_request_without_delimiter():
    req = parse_request(b"POST /print HTTP/1.1\r\nHost: x\r\n")
    assert req.method == "POST"
    assert req.body is None


def test_parse_request_garbage_never_raises():
    assert parse_request(b"").method == ""
    assert parse_request(b"\r\n\r\n").body == b""
    req = parse_request(b"\xff\xfe\r\n\r\nbody")
    assert req.target == ""
    assert req.body == b"body"


def test_leading_whitespace_ignored_and_method_uppercased():
    req = parse_request(b"\r\n  options * HTTP/1.1\r\n\r\n")
    assert req.method == "OPTIONS"
    assert req.target == "*"


def test_response_bytes():
    assert Response(200).to_bytes() == (
        b"HTTP/1.1 200 OK\r\n"
        b"Access-Control-Allow-Origin: *\r\n"
        b"Access-Control-Allow-Headers: Content-Type\r\n"
        b"Content-Type: text/plain\r\n"
        b"Content-Length: 0\r\n\r\n"
    )


def test_response_content_length_matches_body():
    raw = Response(500, b"printer delivery failed").to_bytes()
    head, _, body = raw.partition(b"\r\n\r\n")
    assert head.startswith(b"HTTP/1.1 500 Internal Server Error\r\n")
    assert b"Content-Length: 23" in head
    assert body == b"printer delivery failed"


def test_preflight_response():
    raw = Response(204, headers=PREFLIGHT_HEADERS).to_bytes()
    assert raw.startswith(b"HTTP/1.1 204 No Content\r\n")
    assert b"Access-Control-Allow-Methods: GET, POST, OPTIONS\r\n" in raw
    assert raw.endswith(b"Content-Length: 0\r\n\r\n")


def test_pending_body_bytes():
    assert pending_body_bytes(b"POST /print HTTP/1.1\r\nContent-Length: 10") is None
    assert pending_body_bytes(b"POST /print HTTP/1.1\r\nContent-Length: 10\r\n\r\nabcd") == 6
    assert pending_body_bytes(b"POST /print HTTP/1.1\r\ncontent-length: 4\r\n\r\nabcd") == 0
    assert pending_body_bytes(b"POST /print HTTP/1.1\r\n\r\nabcd") == 0
    assert pending_body_bytes(b"POST /print HTTP/1.1\r\nContent-Length: x\r\n\r\n") == 0
