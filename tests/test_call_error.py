# tests/test_call_error.py
from __future__ import annotations

from webcall.caller.call_error import CallError, ErrorCodeResponse


def test_message_combines_url_status_and_cause() -> None:
    err = CallError(ValueError("bad payload"), "http://svc.local/x", 500)
    assert str(err) == "error calling url; url=http://svc.local/x; status=500; msg=bad payload"


def test_message_without_cause() -> None:
    err = CallError(None, "http://svc.local/x", 502)
    assert str(err) == "error calling url; url=http://svc.local/x; status=502; msg=cause is nil"


def test_error_code_response_default_message() -> None:
    err = CallError(ErrorCodeResponse(), "http://svc.local/x", 404)
    assert err.status == 404
    assert str(err).endswith("msg=error code response")
