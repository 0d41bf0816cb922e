from coroot.model.trace import TraceSpan, TraceSpanEvent


def test_status_ok_by_default():
    s = TraceSpan().status()
    assert s.error is False
    assert s.message == "OK"


def test_status_error_with_and_without_message():
    s = TraceSpan(status_code="STATUS_CODE_ERROR").status()
    assert s.error is True
    assert s.message == "ERROR"
    s = TraceSpan(status_code="STATUS_CODE_ERROR", status_message="boom").status()
    assert s.message == "boom"


def test_status_http_code_overrides():
    s = TraceSpan(
        status_code="STATUS_CODE_ERROR", span_attributes={"http.status_code": "503"}
    ).status()
    assert s.error is True
    assert s.message == "HTTP-503"


def test_labels_filters_attributes():
    span = TraceSpan(
        span_attributes={"db.system": "postgresql", "db.statement": "SELECT 1", "http.route": "/x"}
    )
    assert span.labels() == {"db.system": "postgresql", "http.route": "/x"}


def test_error_message_not_error():
    assert TraceSpan(status_message="x").error_message() == ""


def test_error_message_sources_in_order():
    err = "STATUS_CODE_ERROR"
    assert TraceSpan(status_code=err, status_message="m").error_message() == "m"
    assert (
        TraceSpan(status_code=err, span_attributes={"grpc.error_message": "g"}).error_message()
        == "g"
    )
    span = TraceSpan(
        status_code=err,
        span_attributes={"http.status_code": "500"},
        events=[TraceSpanEvent(name="exception", attributes={"exception.message": "e"})],
    )
    assert span.error_message() == "e"
    span = TraceSpan(status_code=err, span_attributes={"http.status_code": "500"})
    assert span.error_message() == "HTTP-500"
    assert TraceSpan(status_code=err).error_message() == ""


def test_details_variants():
    d = TraceSpan(span_attributes={"http.url": "http://localhost/a"}).details()
    assert (d.text, d.lang) == ("http://localhost/a", "")
    d = TraceSpan(span_attributes={"db.system": "mongodb", "db.statement": "{}"}).details()
    assert (d.text, d.lang) == ("{}", "json")
    d = TraceSpan(span_attributes={"db.system": "redis", "db.statement": "GET k"}).details()
    assert (d.text, d.lang) == ("GET k", "")
    d = TraceSpan(span_attributes={"db.statement": "SELECT 1"}).details()
    assert (d.text, d.lang) == ("SELECT 1", "sql")
    d = TraceSpan(span_attributes={"db.operation": "get", "db.memcached.item": "key"}).details()
    assert (d.text, d.lang) == ('get "key"', "bash")
    d = TraceSpan().details()
    assert (d.text, d.lang) == ("", "")