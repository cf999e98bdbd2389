"""
Unit tests for the Kenku remote API client.

Tests request paths, JSON bodies, headers and error mapping against a
mocked requests session.
"""

import asyncio
import threading
import time

import pytest
import requests
from unittest.mock import Mock

from core.models.config import RemoteEndpoint
from core.remote.client import (
    DEFAULT_HEADERS,
    KenkuRemoteClient,
    RemoteOperationFailed,
    RemoteSyncError,
    TransportError,
    UnexpectedResponse,
)


def make_response(status_code=200, json_data=None, text=""):
    response = Mock()
    response.status_code = status_code
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    response.text = text
    return response


@pytest.fixture
def session():
    session = Mock(spec=requests.Session)
    session.request.return_value = make_response(json_data={})
    return session


@pytest.fixture
def client(session):
    return KenkuRemoteClient(RemoteEndpoint(), session=session)


def sent(session):
    """(method, url, json body) of the single request made"""
    session.request.assert_called_once()
    args, kwargs = session.request.call_args
    return args[0], args[1], kwargs["json"]


class TestRemoteEndpoint:
    """Test endpoint settings"""

    def test_default_base_url(self):
        """Test the default endpoint is the local Kenku remote"""
        assert RemoteEndpoint().base_url == "http://127.0.0.1:3333/v1"

    def test_custom_host_and_port(self):
        """Test host and port are used in the base url"""
        assert RemoteEndpoint(host="kenku.local", port=4000).base_url == "http://kenku.local:4000/v1"

    def test_invalid_port(self):
        """Test out of range ports are rejected"""
        with pytest.raises(ValueError):
            RemoteEndpoint(port=70000)


class TestPlaylistOperations:
    """Test playlist and track requests"""

    @pytest.mark.asyncio
    async def test_add_playlist(self, client, session):
        """Test add_playlist request"""
        await client.add_playlist("Jazz", "/r/Playlists/Jazz")

        assert sent(session) == (
            "PUT", "http://127.0.0.1:3333/v1/playlist/add",
            {"title": "Jazz", "url": "/r/Playlists/Jazz"}
        )

    @pytest.mark.asyncio
    async def test_add_track(self, client, session):
        """Test add_track request body"""
        await client.add_track("Song", "file://x", "/r/Playlists/Jazz")

        assert sent(session) == (
            "PUT", "http://127.0.0.1:3333/v1/playlist/addTrack",
            {"title": "Song", "url": "file://x", "playlistUrl": "/r/Playlists/Jazz"}
        )

    @pytest.mark.asyncio
    async def test_remove_track(self, client, session):
        """Test remove_track request body"""
        await client.remove_track("file://x", "/r/Playlists/Jazz")

        assert sent(session) == (
            "PUT", "http://127.0.0.1:3333/v1/playlist/removeTrack",
            {"trackUrl": "file://x", "playlistUrl": "/r/Playlists/Jazz"}
        )

    @pytest.mark.asyncio
    async def test_remove_playlist(self, client, session):
        """Test remove_playlist request body"""
        await client.remove_playlist("/r/Playlists/Jazz")

        assert sent(session) == (
            "PUT", "http://127.0.0.1:3333/v1/playlist/remove", {"url": "/r/Playlists/Jazz"}
        )


class TestSoundboardOperations:
    """Test soundboard and sound requests"""

    @pytest.mark.asyncio
    async def test_add_soundboard(self, client, session):
        """Test add_soundboard request"""
        await client.add_soundboard("Combat", "/r/Soundboards/Combat")

        assert sent(session)[1:] == (
            "http://127.0.0.1:3333/v1/soundboard/add",
            {"title": "Combat", "url": "/r/Soundboards/Combat"}
        )

    @pytest.mark.asyncio
    async def test_add_sound_defaults(self, client, session):
        """Test add_sound sends the default playback options"""
        await client.add_sound("Roar", "file://y", "/r/Soundboards/Combat")

        assert sent(session) == (
            "PUT", "http://127.0.0.1:3333/v1/soundboard/addSound",
            {
                "soundboardUrl": "/r/Soundboards/Combat",
                "title": "Roar",
                "url": "file://y",
                "loop": True,
                "volume": 100,
                "fadeIn": 500,
                "fadeOut": 500,
            }
        )

    @pytest.mark.asyncio
    async def test_remove_sound(self, client, session):
        """Test remove_sound request body"""
        await client.remove_sound("file://y", "/r/Soundboards/Combat")

        assert sent(session)[1:] == (
            "http://127.0.0.1:3333/v1/soundboard/removeSound",
            {"soundUrl": "file://y", "soundboardUrl": "/r/Soundboards/Combat"}
        )

    @pytest.mark.asyncio
    async def test_remove_soundboard(self, client, session):
        """Test remove_soundboard request body"""
        await client.remove_soundboard("/r/Soundboards/Combat")

        assert sent(session)[1:] == (
            "http://127.0.0.1:3333/v1/soundboard/remove", {"url": "/r/Soundboards/Combat"}
        )


class TestListings:
    """Test listing requests"""

    @pytest.mark.asyncio
    async def test_list_playlists(self, client, session):
        """Test GET playlist is decoded into a listing"""
        session.request.return_value = make_response(json_data={
            "playlists": [{"id": "1", "url": "/r/Playlists/Jazz", "title": "Jazz", "tracks": []}],
            "tracks": [{"id": "t1"}],
        })

        listing = await client.list_playlists()

        assert sent(session) == ("GET", "http://127.0.0.1:3333/v1/playlist", None)
        assert listing.playlists[0].url == "/r/Playlists/Jazz"
        assert len(listing.tracks) == 1

    @pytest.mark.asyncio
    async def test_list_soundboards(self, client, session):
        """Test GET soundboard is decoded into a listing"""
        session.request.return_value = make_response(json_data={"soundboards": [{"url": "/s"}], "sounds": []})

        listing = await client.list_soundboards()

        assert [s.url for s in listing.soundboards] == ["/s"]


class TestRequests:
    """Test request handling and error mapping"""

    @pytest.mark.asyncio
    async def test_headers(self, client, session):
        """Test JSON accept and content type headers are sent"""
        await client.remove_playlist("/p")

        assert session.request.call_args.kwargs["headers"] == DEFAULT_HEADERS
        assert DEFAULT_HEADERS["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_error_status_raises_with_body(self, client, session):
        """Test statuses >= 400 raise with the decoded body"""
        session.request.return_value = make_response(status_code=404, json_data={"error": "Playlist not found"})

        with pytest.raises(RemoteOperationFailed) as exc_info:
            await client.remove_playlist("/p")

        assert exc_info.value.status_code == 404
        assert exc_info.value.body == {"error": "Playlist not found"}
        assert "Playlist not found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, client, session):
        """Test a plain text error body is kept as text"""
        session.request.return_value = make_response(status_code=500, text="Internal error")

        with pytest.raises(RemoteOperationFailed) as exc_info:
            await client.add_playlist("Jazz", "/p")

        assert exc_info.value.body == "Internal error"

    @pytest.mark.asyncio
    async def test_success_returns_decoded_body(self, client, session):
        """Test a successful response body is returned"""
        session.request.return_value = make_response(json_data={"ok": True})

        assert await client.add_playlist("Jazz", "/p") == {"ok": True}

    @pytest.mark.asyncio
    async def test_transport_error(self, client, session):
        """Test network failures become TransportError"""
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportError):
            await client.list_playlists()

        assert client.get_stats()["failed_requests"] == 1

    @pytest.mark.asyncio
    async def test_requests_run_on_client_pool(self, client, session):
        """Test blocking requests run on the client's own threads"""
        thread_names = []
        session.request.side_effect = lambda *args, **kwargs: (
            thread_names.append(threading.current_thread().name) or make_response(json_data={})
        )

        await client.remove_playlist("/p")

        assert thread_names[0].startswith("kenku-remote")

    def test_default_timeout(self, session):
        """Test requests are bounded by the endpoint timeout by default"""
        client = KenkuRemoteClient(RemoteEndpoint(), session=session)

        assert client.timeout == 30.0

    def test_timeout_from_endpoint(self, session):
        """Test the endpoint timeout is used by default"""
        client = KenkuRemoteClient(RemoteEndpoint(timeout=2.5), session=session)

        assert client.timeout == 2.5

    def test_close(self, client, session):
        """Test close closes the session"""
        client.close()

        session.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_close_does_not_wait_for_blocked_request(self, client, session):
        """Test close returns while a request is still stuck on the network"""
        started = threading.Event()
        release = threading.Event()

        def stalled_request(*args, **kwargs):
            started.set()
            release.wait(5.0)
            return make_response(json_data={})

        session.request.side_effect = stalled_request
        task = asyncio.create_task(client.remove_playlist("/p"))
        try:
            for _ in range(200):
                if started.is_set():
                    break
                await asyncio.sleep(0.01)
            assert started.is_set()

            start = time.monotonic()
            client.close()

            assert time.monotonic() - start < 1.0
            session.close.assert_called_once()
        finally:
            release.set()
            await task


class TestListingValidation:
    """Test listing bodies of the wrong shape"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["list_playlists", "list_soundboards"])
    async def test_non_object_body_raises(self, client, session, operation):
        """Test a successful listing that is not a JSON object is an error"""
        session.request.return_value = make_response(json_data=["unexpected"])

        with pytest.raises(UnexpectedResponse) as exc_info:
            await getattr(client, operation)()

        assert exc_info.value.body == ["unexpected"]

    @pytest.mark.asyncio
    async def test_text_body_raises(self, client, session):
        """Test a plain text listing body is an error"""
        session.request.return_value = make_response(text="OK")

        with pytest.raises(UnexpectedResponse):
            await client.list_soundboards()

    @pytest.mark.asyncio
    async def test_entry_without_url_raises(self, client, session):
        """Test a listing entry missing its url is an error"""
        body = {"playlists": [{"id": "1", "title": "Jazz"}]}
        session.request.return_value = make_response(json_data=body)

        with pytest.raises(UnexpectedResponse) as exc_info:
            await client.list_playlists()

        assert exc_info.value.path == "playlist"
        assert exc_info.value.body == body
        assert isinstance(exc_info.value, RemoteSyncError)

    @pytest.mark.asyncio
    async def test_empty_object_is_empty_listing(self, client, session):
        """Test an empty object decodes to an empty listing"""
        session.request.return_value = make_response(json_data={})

        listing = await client.list_playlists()

        assert listing.playlists == []
