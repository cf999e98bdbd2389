"""
Kenku FM remote API client.

Wraps the remote HTTP API (http://<host>:<port>/v1) with one coroutine per
remote capability. Requests are made with a shared requests.Session on a
client-owned thread pool so callers on the event loop are never blocked.
"""

import asyncio
import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

import requests
from pydantic import BaseModel, ValidationError

from core.models.config import RemoteEndpoint
from core.models.remote import PlaylistListing, SoundboardListing
from config.defaults import DEFAULT_SOUND_OPTIONS

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'Accept': 'application/json, text/plain, */*',
    'Content-Type': 'application/json',
}


class RemoteSyncError(Exception):
    """Base class for remote API errors"""
    pass


class RemoteOperationFailed(RemoteSyncError):
    """Remote service answered with a client or server error status"""

    def __init__(self, path: str, status_code: int, body: Any):
        self.path = path
        self.status_code = status_code
        self.body = body
        super().__init__(f"{path} failed with status {status_code}: {json.dumps(body, default=str)}")


class TransportError(RemoteSyncError):
    """Remote service could not be reached"""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"{path} transport error: {cause}")


class UnexpectedResponse(RemoteSyncError):
    """Remote service answered successfully with a body of the wrong shape"""

    def __init__(self, path: str, body: Any, reason: str):
        self.path = path
        self.body = body
        self.reason = reason
        super().__init__(f"{path} returned an unexpected body ({reason}): {json.dumps(body, default=str)}")


class KenkuRemoteClient:
    """
    Client for the Kenku FM remote API.

    Every operation performs exactly one request/response round trip.
    Statuses >= 400 raise RemoteOperationFailed with the decoded body,
    network failures raise TransportError and malformed listing bodies
    raise UnexpectedResponse.
    """

    def __init__(
        self,
        endpoint: RemoteEndpoint,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        max_workers: Optional[int] = None
    ):
        """
        Initialize the remote client.

        Args:
            endpoint: Remote host and port
            session: Optional pre-configured session (created if omitted)
            timeout: Per-request timeout in seconds (defaults to the endpoint timeout)
            max_workers: Size of the thread pool running blocking requests
        """
        self.endpoint = endpoint
        self.base_url = endpoint.base_url
        self.timeout = timeout if timeout is not None else endpoint.timeout
        self._session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="kenku-remote")

        # Request metrics
        self._request_count = 0
        self._failed_requests = 0
        self._total_request_time = 0.0

        logger.info(f"Initialized KenkuRemoteClient for {self.base_url}")

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        """Perform one blocking round trip and decode the JSON response"""
        url = f"{self.base_url}/{path}"
        logger.debug(f"{method} {url} {json.dumps(body) if body is not None else ''}")

        start_time = time.time()
        self._request_count += 1
        try:
            response = self._session.request(
                method,
                url,
                headers=DEFAULT_HEADERS,
                json=body,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            self._failed_requests += 1
            raise TransportError(path, e) from e
        finally:
            self._total_request_time += time.time() - start_time

        try:
            data = response.json()
        except ValueError:
            data = response.text

        if response.status_code >= 400:
            self._failed_requests += 1
            raise RemoteOperationFailed(path, response.status_code, data)

        return data

    async def call(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        """Perform a request without blocking the event loop"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._request, method, path, body)

    async def add_playlist(self, title: str, url: str) -> Any:
        return await self.call('PUT', 'playlist/add', {'title': title, 'url': url})

    async def add_track(self, title: str, url: str, playlist_url: str) -> Any:
        return await self.call('PUT', 'playlist/addTrack', {
            'title': title,
            'url': url,
            'playlistUrl': playlist_url,
        })

    async def remove_track(self, track_url: str, playlist_url: str) -> Any:
        return await self.call('PUT', 'playlist/removeTrack', {
            'trackUrl': track_url,
            'playlistUrl': playlist_url,
        })

    async def remove_playlist(self, url: str) -> Any:
        return await self.call('PUT', 'playlist/remove', {'url': url})

    async def add_soundboard(self, title: str, url: str) -> Any:
        return await self.call('PUT', 'soundboard/add', {'title': title, 'url': url})

    async def add_sound(
        self,
        title: str,
        url: str,
        soundboard_url: str,
        loop: bool = DEFAULT_SOUND_OPTIONS['loop'],
        volume: int = DEFAULT_SOUND_OPTIONS['volume'],
        fade_in: int = DEFAULT_SOUND_OPTIONS['fade_in'],
        fade_out: int = DEFAULT_SOUND_OPTIONS['fade_out']
    ) -> Any:
        """Add a sound; fades are in milliseconds, volume in percent"""
        return await self.call('PUT', 'soundboard/addSound', {
            'soundboardUrl': soundboard_url,
            'title': title,
            'url': url,
            'loop': loop,
            'volume': volume,
            'fadeIn': fade_in,
            'fadeOut': fade_out,
        })

    async def remove_sound(self, sound_url: str, soundboard_url: str) -> Any:
        return await self.call('PUT', 'soundboard/removeSound', {
            'soundUrl': sound_url,
            'soundboardUrl': soundboard_url,
        })

    async def remove_soundboard(self, url: str) -> Any:
        return await self.call('PUT', 'soundboard/remove', {'url': url})

    async def list_playlists(self) -> PlaylistListing:
        """List remote playlists (and their tracks)"""
        data = await self.call('GET', 'playlist')
        return self._decode_listing('playlist', data, PlaylistListing)

    async def list_soundboards(self) -> SoundboardListing:
        """List remote soundboards (and their sounds)"""
        data = await self.call('GET', 'soundboard')
        return self._decode_listing('soundboard', data, SoundboardListing)

    def _decode_listing(self, path: str, data: Any, model: type) -> BaseModel:
        """
        Validate a listing body.

        Raises:
            UnexpectedResponse: If the body is not an object or an entry is malformed
        """
        if not isinstance(data, dict):
            raise UnexpectedResponse(path, data, f"expected a JSON object, got {type(data).__name__}")
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise UnexpectedResponse(path, data, f"{e.error_count()} invalid fields") from e

    def close(self) -> None:
        """
        Close the HTTP session and release the request threads.

        Requests still blocked on the network are abandoned rather than waited for.
        """
        self._executor.shutdown(wait=False, cancel_futures=True)
        try:
            self._session.close()
        except Exception as e:
            logger.warning(f"Error closing session: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get request statistics"""
        return {
            "base_url": self.base_url,
            "requests": self._request_count,
            "failed_requests": self._failed_requests,
            "avg_request_time_s": self._total_request_time / max(self._request_count, 1)
        }
