"""
Google Drive access: product folders in, processed folders out to "Done".
"""

from functools import lru_cache
from typing import List

from google.oauth2 import service_account
from googleapiclient.discovery import build

from listing_automation.constants import (
    DRIVE_DONE_FOLDER_NAME,
    DRIVE_FOLDER_MIME_TYPE,
    GOOGLE_DRIVE_SCOPES,
)
from listing_automation.models import DriveImage, ProductFolder
from util.logging_util import setup_logger
from util.secrets import get_google_credentials_path

logger = setup_logger(__name__)


@lru_cache
def get_drive_service():
    """Build a Drive v3 client from the service-account credentials."""
    credentials = service_account.Credentials.from_service_account_file(
        get_google_credentials_path(), scopes=GOOGLE_DRIVE_SCOPES
    )
    return build("drive", "v3", credentials=credentials, cache_discovery=False)


def list_subfolders(parent_id: str, parent_name: str, folder_type: str = "") -> List[ProductFolder]:
    """List the product folders directly under a Drive folder, oldest first.

    The "Done" folder holding already processed products is skipped.
    """
    service = get_drive_service()
    response = service.files().list(
        q=f"'{parent_id}' in parents and mimeType='{DRIVE_FOLDER_MIME_TYPE}' and trashed=false",
        fields="files(id, name)",
        orderBy="createdTime",
        spaces="drive",
    ).execute()

    folders = [
        ProductFolder(
            folder_id=f["id"],
            folder_name=f["name"],
            folder_path=f"{parent_name}/{f['name']}",
            folder_type=folder_type or parent_name,
            parent_folder_id=parent_id,
        )
        for f in response.get("files", [])
        if f["name"] != DRIVE_DONE_FOLDER_NAME
    ]
    logger.info(f"Found {len(folders)} subfolders in {parent_name}")
    return folders


def download_folder_images(folder_id: str, folder_name: str) -> List[DriveImage]:
    """Download every image in a Drive folder."""
    service = get_drive_service()
    response = service.files().list(
        q=f"'{folder_id}' in parents and mimeType contains 'image/' and trashed=false",
        fields="files(id, name, mimeType)",
        spaces="drive",
    ).execute()

    images = []
    for f in response.get("files", []):
        logger.debug(f"Downloading {f['name']} from {folder_name}")
        content = service.files().get_media(fileId=f["id"]).execute()
        images.append(DriveImage(name=f["name"], content=content, mime_type=f["mimeType"]))

    logger.info(f"Downloaded {len(images)} images from {folder_name}")
    return images


def _get_or_create_done_folder(service, parent_id: str) -> str:
    response = service.files().list(
        q=(
            f"name='{DRIVE_DONE_FOLDER_NAME}' and '{parent_id}' in parents "
            f"and mimeType='{DRIVE_FOLDER_MIME_TYPE}' and trashed=false"
        ),
        fields="files(id)",
        spaces="drive",
    ).execute()

    existing = response.get("files", [])
    if existing:
        return existing[0]["id"]

    created = service.files().create(
        body={
            "name": DRIVE_DONE_FOLDER_NAME,
            "mimeType": DRIVE_FOLDER_MIME_TYPE,
            "parents": [parent_id],
        },
        fields="id",
    ).execute()
    logger.info(f"Created {DRIVE_DONE_FOLDER_NAME} folder under {parent_id}")
    return created["id"]


def move_folder_to_done(folder: ProductFolder) -> str:
    """Move a processed folder into the "Done" folder of its parent.

    Returns:
        The new location, e.g. "Done/<folder name>".
    """
    if not folder.parent_folder_id:
        raise ValueError(f"Folder {folder.folder_name} has no parent folder id")

    service = get_drive_service()
    done_folder_id = _get_or_create_done_folder(service, folder.parent_folder_id)
    service.files().update(
        fileId=folder.folder_id,
        addParents=done_folder_id,
        removeParents=folder.parent_folder_id,
        fields="id, parents",
    ).execute()

    logger.info(f"Moved {folder.folder_name} to {DRIVE_DONE_FOLDER_NAME}")
    return f"{DRIVE_DONE_FOLDER_NAME}/{folder.folder_name}"
