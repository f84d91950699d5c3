"""Supabase Auth admin client used for account creation."""

import httpx

from synapse_legal.core.exceptions import DependencyError, ValidationError
from synapse_legal.schemas.auth import SignupUser
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)


class IdentityService:
    """Creates users through the Supabase Auth admin API."""

    def __init__(self, supabase_url: str, service_role_key: str, timeout: int = 60):
        self.url = supabase_url.rstrip("/")
        self.admin_users_url = f"{self.url}/auth/v1/admin/users"
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {service_role_key}",
            "apikey": service_role_key,
        }

    async def create_user(self, email: str, password: str, name: str) -> SignupUser:
        """Create a confirmed user account.

        Email confirmation is skipped because no mail server is configured
        for the project.

        Args:
            email: Account email
            password: Account password
            name: Display name stored in user metadata

        Returns:
            The created identity

        Raises:
            ValidationError: If Supabase rejects the account (e.g. email taken)
            DependencyError: If Supabase is unreachable or fails
        """
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self.admin_users_url,
                    headers=self.headers,
                    json={
                        "email": email,
                        "password": password,
                        "user_metadata": {"name": name},
                        "email_confirm": True,
                    },
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error contacting Supabase Auth: {str(e)}", exc_info=True)
            raise DependencyError(f"Identity provider error: {str(e)}", original_error=e)

        if 400 <= response.status_code < 500:
            LOGGER.warning(
                f"Signup rejected by Supabase: {response.text}",
                extra={"status_code": response.status_code},
            )
            raise ValidationError("Failed to create user account")
        if response.status_code >= 500:
            LOGGER.error(
                f"Supabase Auth failed: {response.text}",
                extra={"status_code": response.status_code},
            )
            raise DependencyError(f"Identity provider returned {response.status_code}")

        data = response.json()
        # Admin API returns the user object, some versions wrap it in {"user": ...}
        user_data = data.get("user", data)
        return SignupUser(
            id=user_data["id"],
            email=user_data.get("email", email),
            user_metadata=user_data.get("user_metadata") or {"name": name},
        )
