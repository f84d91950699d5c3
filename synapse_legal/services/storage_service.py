"""Storage service for handling Supabase storage operations."""

from typing import Any, Dict, Iterable, List

import httpx

from synapse_legal.core.exceptions import DependencyError
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageService:
    """Service for managing files in Supabase storage."""

    def __init__(self, supabase_url: str, service_role_key: str, timeout: int = 60):
        """Initialize the storage client.

        Args:
            supabase_url: Supabase project URL
            service_role_key: Service role key used for storage admin calls
            timeout: HTTP timeout in seconds
        """
        self.url = supabase_url.rstrip("/")
        self.base_api_url = f"{self.url}/storage/v1"
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {service_role_key}",
            "apikey": service_role_key,
        }

    async def ensure_bucket(self, bucket: str, allowed_mime_types: Iterable[str]) -> bool:
        """Create the private document bucket if it does not exist yet.

        Args:
            bucket: Bucket name
            allowed_mime_types: MIME types the bucket accepts

        Returns:
            True if the bucket was created, False if it already existed

        Raises:
            DependencyError: If listing or creating buckets fails
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"{self.base_api_url}/bucket", headers=self.headers, timeout=self.timeout
                )
                self._raise_for_status(response, "list buckets", bucket)

                buckets: List[Dict[str, Any]] = response.json()
                if any(existing.get("name") == bucket for existing in buckets):
                    return False

                response = await client.post(
                    f"{self.base_api_url}/bucket",
                    headers=self.headers,
                    json={
                        "id": bucket,
                        "name": bucket,
                        "public": False,
                        "allowed_mime_types": list(allowed_mime_types),
                    },
                    timeout=self.timeout,
                )
                self._raise_for_status(response, "create bucket", bucket)
        except httpx.HTTPError as e:
            LOGGER.error(f"Error preparing storage bucket: {str(e)}", exc_info=True)
            raise DependencyError(f"Storage bucket error: {str(e)}", original_error=e)

        LOGGER.info(f"Storage bucket {bucket} created", extra={"bucket": bucket})
        return True

    async def upload_file(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str,
    ) -> Dict[str, Any]:
        """Upload a file to Supabase storage.

        Args:
            bucket: Target bucket name.
            path: Target path within the bucket.
            content: Raw file bytes.
            content_type: MIME type sent with the object.

        Returns:
            Dict containing the upload result.

        Raises:
            DependencyError: If the upload fails.
        """
        upload_url = f"{self.base_api_url}/object/{bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    upload_url,
                    headers={**self.headers, "Content-Type": content_type},
                    content=content,
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error uploading file to Supabase: {str(e)}", exc_info=True)
            raise DependencyError(f"Storage upload error: {str(e)}", original_error=e)

        self._raise_for_status(response, "upload", f"{bucket}/{path}")
        return response.json()

    async def delete_file(self, bucket: str, path: str) -> None:
        """Delete a stored object.

        Raises:
            DependencyError: If the delete request fails.
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    "DELETE",
                    f"{self.base_api_url}/object/{bucket}",
                    headers=self.headers,
                    json={"prefixes": [path]},
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error deleting file from Supabase: {str(e)}", exc_info=True)
            raise DependencyError(f"Storage delete error: {str(e)}", original_error=e)

        self._raise_for_status(response, "delete", f"{bucket}/{path}")
        LOGGER.info(f"Deleted {bucket}/{path} from storage", extra={"bucket": bucket})

    async def get_signed_url(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        """Generate a time-limited URL for a stored object.

        Args:
            bucket: Bucket name.
            path: Object path.
            expires_in: Expiration time in seconds.

        Returns:
            Absolute signed URL.

        Raises:
            DependencyError: If URL generation fails.
        """
        url = f"{self.base_api_url}/object/sign/{bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    url,
                    headers=self.headers,
                    json={"expiresIn": expires_in},
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error generating signed URL: {str(e)}", exc_info=True)
            raise DependencyError(f"Signed URL error: {str(e)}", original_error=e)

        self._raise_for_status(response, "sign", f"{bucket}/{path}")

        signed_path = response.json().get("signedURL")
        if not signed_path:
            raise DependencyError("Supabase response did not contain signedURL")

        # Supabase returns a path relative to the project, e.g. /object/sign/<bucket>/<file>?token=...
        if signed_path.startswith("http"):
            return signed_path
        if signed_path.startswith("/storage/v1"):
            return f"{self.url}{signed_path}"
        return f"{self.base_api_url}{signed_path}"

    def _raise_for_status(self, response: httpx.Response, operation: str, target: str) -> None:
        if response.status_code == 200:
            return
        LOGGER.error(
            f"Supabase storage {operation} failed: {response.text}",
            extra={"target": target, "status_code": response.status_code},
        )
        raise DependencyError(f"Storage {operation} failed with status {response.status_code}")
