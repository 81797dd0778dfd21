import json
from unittest.mock import patch

import pytest
import requests
from google.api_core.exceptions import PermissionDenied

from chatrelay.config import RelayConfig
from chatrelay.server import serve

from conftest import make_response


@pytest.fixture
def client():
    with requests.Session() as session:
        session.trust_env = False
        yield session


@pytest.fixture
def relay_server():
    server = serve(port=0, config=RelayConfig())
    yield server
    server.stop()


class TestRelayServer:

    @patch("chatrelay.adapters.gemini.requests.post")
    def test_chat_roundtrip(self, mock_post, relay_server, client, ok_payload):
        mock_post.return_value = make_response(ok_payload)
        response = client.post(
            f"http://127.0.0.1:{relay_server.port}/chat",
            headers={"Authorization": "Bearer secret-key"},
            data=json.dumps({"messages": [{"role": "user", "content": "Who created Python?"}]}),
            timeout=5,
        )
        assert response.status_code == 200
        assert response.text == "Guido van Rossum."
        assert mock_post.call_args.kwargs["params"] == {"key": "secret-key"}

    def test_unknown_path(self, relay_server, client):
        response = client.post(f"http://127.0.0.1:{relay_server.port}/other", data="{}", timeout=5)
        assert response.status_code == 404

    def test_get_not_allowed(self, relay_server, client):
        response = client.get(f"http://127.0.0.1:{relay_server.port}/chat", timeout=5)
        assert response.status_code == 405

    @patch("chatrelay.recognition.ImageLabeler.labels")
    def test_recognition_failure_still_answers(self, mock_labels, relay_server, client):
        mock_labels.side_effect = PermissionDenied("no creds")
        response = client.post(
            f"http://127.0.0.1:{relay_server.port}/chat",
            headers={"Authorization": "Bearer secret-key"},
            data=json.dumps({"messages": [{"role": "user", "content": "what", "image": "aGVsbG8="}]}),
            timeout=5,
        )
        assert response.status_code == 502
        assert "no creds" in response.text

    @patch("chatrelay.server.handler")
    def test_unexpected_error_is_500(self, mock_handler, relay_server, client):
        mock_handler.side_effect = KeyError("boom")
        response = client.post(f"http://127.0.0.1:{relay_server.port}/chat", data="{}", timeout=5)
        assert response.status_code == 500
        assert "Internal error" in response.text

    def test_invalid_utf8_body(self, relay_server, client):
        response = client.post(f"http://127.0.0.1:{relay_server.port}/chat", data=b"\xff\xfe\xfa", timeout=5)
        assert response.status_code == 400
