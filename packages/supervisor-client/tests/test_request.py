"""Tests for the request payload."""

from supervisor_client.request import Request


class TestRequest:
    def test_default_payload(self):
        assert Request(prompt="hello").to_payload() == {
            "input": {"prompt": "hello"},
            "config": {},
            "kwargs": {},
        }

    def test_config_and_kwargs(self):
        request = Request(prompt="hi", config={"tags": ["ui"]}, kwargs={"temperature": 0})
        payload = request.to_payload()
        assert payload["config"] == {"tags": ["ui"]}
        assert payload["kwargs"] == {"temperature": 0}

    def test_payload_does_not_alias_request(self):
        request = Request(prompt="hi")
        request.to_payload()["config"]["x"] = 1
        assert request.config == {}
