"""Tests for the relay API client."""

from unittest.mock import MagicMock, Mock

import pytest
import requests

from quickstart_images.constants import AUTH_FAILED_MESSAGE, DEFAULT_RELAY_URL, MANIFEST_NOT_FOUND_MESSAGE
from quickstart_images.core.exceptions import AuthError, ManifestError, ManifestUnavailableError
from quickstart_images.core.models import ImageManifestEntry
from quickstart_images.integrations.relay_api import RelayAPI

MANIFEST_BODY = {
    "images": [
        {"tag": "besu:1", "url": "https://x/besu.tar", "fileName": "besu.tar"},
        {"tag": "tessera:1", "url": "https://x/tessera.tar", "fileName": "tessera.tar"},
    ]
}


def _json_response(payload):
    response = Mock()
    response.status_code = 200
    response.json.return_value = payload
    response.raise_for_status = Mock()
    return response


def _error_response(status_code):
    response = MagicMock()
    response.status_code = status_code
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    response.raise_for_status = Mock(side_effect=requests.HTTPError(response=response))
    return response


def _stream_response(chunks):
    response = MagicMock()
    response.status_code = 200
    response.__enter__.return_value = response
    response.__exit__.return_value = False
    response.raise_for_status = Mock()
    response.iter_content.return_value = iter(chunks)
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def entry():
    return ImageManifestEntry(tag="tessera:1", url="https://x/tessera.tar", fileName="tessera.tar")


class TestFetchManifest:
    """Tests for RelayAPI.fetch_manifest."""

    def test_default_relay_url(self, session):
        assert RelayAPI(session=session).manifest_url == f"{DEFAULT_RELAY_URL}/quorum-dev-quickstart/manifest"

    def test_trailing_slash_tolerated(self, session):
        api = RelayAPI("https://relay.example.net/", session=session)
        assert api.manifest_url == "https://relay.example.net/quorum-dev-quickstart/manifest"

    def test_sends_only_bearer_header(self, session):
        session.get.return_value = _json_response(MANIFEST_BODY)
        api = RelayAPI("https://relay.example.net", session=session)

        manifest = api.fetch_manifest("secret")

        session.get.assert_called_once_with(
            "https://relay.example.net/quorum-dev-quickstart/manifest",
            headers={"Authorization": "Bearer secret"},
            timeout=None,
        )
        assert [e.tag for e in manifest.images] == ["besu:1", "tessera:1"]
        assert manifest.images[0].file_name == "besu.tar"

    def test_configured_timeout_used(self, session):
        session.get.return_value = _json_response(MANIFEST_BODY)

        RelayAPI(session=session, timeout=12.5).fetch_manifest("secret")

        assert session.get.call_args.kwargs["timeout"] == 12.5

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_auth_denied(self, session, status_code):
        session.get.return_value = _error_response(status_code)

        with pytest.raises(AuthError) as exc_info:
            RelayAPI(session=session).fetch_manifest("secret")

        assert str(exc_info.value) == AUTH_FAILED_MESSAGE
        assert exc_info.value.status_code == status_code

    def test_not_found(self, session):
        session.get.return_value = _error_response(404)

        with pytest.raises(ManifestUnavailableError) as exc_info:
            RelayAPI(session=session).fetch_manifest("secret")

        assert str(exc_info.value) == MANIFEST_NOT_FOUND_MESSAGE

    def test_server_error_passes_through(self, session):
        session.get.return_value = _error_response(500)

        with pytest.raises(requests.HTTPError):
            RelayAPI(session=session).fetch_manifest("secret")

        assert session.get.call_count == 1  # No retry

    def test_connection_error_passes_through(self, session):
        session.get.side_effect = requests.ConnectionError("no such host")

        with pytest.raises(requests.ConnectionError, match="no such host"):
            RelayAPI(session=session).fetch_manifest("secret")

    def test_invalid_json(self, session):
        response = _json_response(None)
        response.json.side_effect = ValueError("Expecting value")
        session.get.return_value = response

        with pytest.raises(ManifestError, match="not valid JSON"):
            RelayAPI(session=session).fetch_manifest("secret")

    def test_body_not_an_object(self, session):
        session.get.return_value = _json_response(["besu:1"])

        with pytest.raises(ManifestError):
            RelayAPI(session=session).fetch_manifest("secret")

    def test_duplicate_file_names_rejected(self, session):
        body = {
            "images": [
                {"tag": "besu:1", "url": "https://x/a.tar", "fileName": "image.tar"},
                {"tag": "tessera:1", "url": "https://x/b.tar", "fileName": "image.tar"},
            ]
        }
        session.get.return_value = _json_response(body)

        with pytest.raises(ManifestError, match="Duplicate fileName"):
            RelayAPI(session=session).fetch_manifest("secret")

    def test_missing_field_rejected(self, session):
        session.get.return_value = _json_response({"images": [{"tag": "besu:1", "url": "https://x/a.tar"}]})

        with pytest.raises(ManifestError, match="malformed"):
            RelayAPI(session=session).fetch_manifest("secret")


class TestDownloadImage:
    """Tests for RelayAPI.download_image."""

    def test_streams_to_file(self, session, entry, tmp_path):
        response = _stream_response([b"abc", b"", b"def"])
        session.get.return_value = response
        api = RelayAPI(session=session, chunk_size=3)

        path = api.download_image("secret", entry, tmp_path)

        assert path == tmp_path / "tessera.tar"
        assert path.read_bytes() == b"abcdef"
        session.get.assert_called_once_with(
            "https://x/tessera.tar",
            headers={"Authorization": "Bearer secret"},
            stream=True,
            timeout=None,
        )
        response.iter_content.assert_called_once_with(chunk_size=3)

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_auth_denied(self, session, entry, tmp_path, status_code):
        session.get.return_value = _error_response(status_code)

        with pytest.raises(AuthError):
            RelayAPI(session=session).download_image("secret", entry, tmp_path)

        assert not (tmp_path / "tessera.tar").exists()

    def test_other_http_error_passes_through(self, session, entry, tmp_path):
        session.get.return_value = _error_response(404)

        with pytest.raises(requests.HTTPError):
            RelayAPI(session=session).download_image("secret", entry, tmp_path)

    def test_write_error_passes_through(self, session, entry, tmp_path):
        session.get.return_value = _stream_response([b"abc"])

        with pytest.raises(FileNotFoundError):
            RelayAPI(session=session).download_image("secret", entry, tmp_path / "missing")

    def test_stream_error_leaves_partial_file(self, session, entry, tmp_path):
        def broken_stream(chunk_size):
            yield b"abc"
            raise requests.ConnectionError("connection reset")

        response = _stream_response([])
        response.iter_content.side_effect = broken_stream
        session.get.return_value = response

        with pytest.raises(requests.ConnectionError):
            RelayAPI(session=session).download_image("secret", entry, tmp_path)

        assert (tmp_path / "tessera.tar").read_bytes() == b"abc"
