"""
Google Drive folder listing and content download.

Credentials come from the environment in one of three forms (service account
key file, service account JSON string, OAuth refresh token). When none is
configured the client is not built and the pipeline runs in demo mode.
"""

import json
import logging
from typing import Any, BinaryIO, Optional

import httplib2
import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from gallery.config import PROJECT_ROOT, Settings, get_settings
from gallery.sync.errors import RemoteListError
from gallery.sync.remote import RemoteFile

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
MEDIA_URL = "https://www.googleapis.com/drive/v3/files/{file_id}"
LIST_FIELDS = "nextPageToken, files(id, name, size, modifiedTime, mimeType)"
PAGE_SIZE = 100
DOWNLOAD_CHUNK_SIZE = 1024 * 1024
TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})

# Failures from the Google client stack that mean "the remote call failed"
REMOTE_ERRORS = (
    HttpError,
    GoogleAuthError,
    httplib2.HttpLib2Error,
    requests.RequestException,
    OSError,
)


def _is_transient(exc: BaseException) -> bool:
    """Rate limits, server errors and dropped connections are worth retrying."""
    if isinstance(exc, HttpError):
        return exc.resp.status in TRANSIENT_STATUSES
    return isinstance(exc, (httplib2.HttpLib2Error, OSError))


def build_credentials(settings: Settings):
    """
    Build Google credentials from whichever mode is configured.

    Returns:
        A google-auth credentials object, or None when no mode is configured
        or the configured one is unusable.
    """
    mode = settings.credential_mode
    try:
        if mode == "service_account_file":
            key_file = PROJECT_ROOT / settings.google_service_account_key_file
            creds = service_account.Credentials.from_service_account_file(
                str(key_file), scopes=SCOPES
            )
            logger.info("Google Drive credentials loaded from service account file")
            return creds

        if mode == "service_account_json":
            info = json.loads(settings.google_service_account_key)
            creds = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
            logger.info("Google Drive credentials loaded from service account JSON")
            return creds

        if mode == "oauth":
            creds = Credentials(
                token=None,
                refresh_token=settings.google_refresh_token,
                token_uri=TOKEN_URI,
                client_id=settings.google_client_id,
                client_secret=settings.google_client_secret,
                scopes=SCOPES,
            )
            logger.info("Google Drive credentials loaded from OAuth refresh token")
            return creds

    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Could not load Google Drive credentials ({mode}): {e}")
        return None

    logger.warning("No Google Drive credentials found. Using demo mode.")
    return None


class DriveClient:
    """
    Lists and downloads video files from a single Drive folder.

    Listing goes through the Drive v3 discovery client; content is streamed
    over an authorized requests session so large videos never sit in memory.

    Usage:
        client = DriveClient.from_settings()
        if client:
            for remote in client.list_videos():
                with open(remote.name, "wb") as fh:
                    client.download_to(remote.id, fh)
    """

    def __init__(
        self,
        service: Any,
        session: Any,
        folder_id: str,
        timeout: float = 60,
    ):
        """
        Initialize the client.

        Args:
            service: A Drive v3 service resource (from googleapiclient.discovery.build)
            session: A requests session that adds Google auth headers
            folder_id: ID of the Drive folder holding the videos
            timeout: Per-request timeout in seconds for downloads
        """
        self.service = service
        self.session = session
        self.folder_id = folder_id
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> Optional["DriveClient"]:
        """Build a client from settings, or None when the pipeline must run in demo mode."""
        settings = settings or get_settings()

        if not settings.google_drive_folder_id:
            if settings.credential_mode:
                logger.error("GOOGLE_DRIVE_FOLDER_ID not set in environment variables")
            return None

        creds = build_credentials(settings)
        if creds is None:
            return None

        http = AuthorizedHttp(creds, http=httplib2.Http(timeout=settings.http_timeout_seconds))
        service = build("drive", "v3", http=http, cache_discovery=False)
        return cls(
            service=service,
            session=AuthorizedSession(creds),
            folder_id=settings.google_drive_folder_id,
            timeout=settings.http_timeout_seconds,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=1, max=10),
        retry=retry_if_exception(_is_transient),
        reraise=True,
    )
    def _list_page(self, page_token: Optional[str]) -> dict:
        return (
            self.service.files()
            .list(
                q=f"'{self.folder_id}' in parents and trashed=false",
                fields=LIST_FIELDS,
                orderBy="modifiedTime desc",
                pageSize=PAGE_SIZE,
                pageToken=page_token,
            )
            .execute()
        )

    def list_videos(self) -> list[RemoteFile]:
        """
        List video files in the folder, newest first.

        Entries are kept when their extension is supported or their MIME type
        is video/*. A name already taken by a newer file is skipped so that
        each name maps to one local path.

        Raises:
            RemoteListError: If the listing call fails
        """
        files: list[dict] = []
        page_token = None

        try:
            while True:
                response = self._list_page(page_token)
                files.extend(response.get("files", []))
                page_token = response.get("nextPageToken")
                if not page_token:
                    break
        except REMOTE_ERRORS as e:
            raise RemoteListError(f"Could not list Drive folder {self.folder_id}: {e}") from e

        videos: list[RemoteFile] = []
        seen_names: set[str] = set()
        for data in files:
            remote = RemoteFile.from_api(data)
            if not remote.is_video:
                continue
            if remote.name in seen_names:
                logger.warning(f"Skipping duplicate name in Drive folder: {remote.name} ({remote.id})")
                continue
            seen_names.add(remote.name)
            videos.append(remote)

        logger.debug(f"Drive listing returned {len(files)} files, {len(videos)} videos")
        return videos

    def download_to(self, file_id: str, fh: BinaryIO) -> None:
        """
        Stream a file's binary content into fh.

        Raises:
            requests.RequestException: On HTTP errors or a dropped connection
        """
        url = MEDIA_URL.format(file_id=file_id)
        with self.session.get(
            url, params={"alt": "media"}, stream=True, timeout=self.timeout
        ) as response:
            response.raise_for_status()
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                if chunk:
                    fh.write(chunk)
