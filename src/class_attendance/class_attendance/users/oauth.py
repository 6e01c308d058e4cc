from __future__ import annotations

from typing import Any, Mapping, Optional

from authlib.integrations.flask_client import OAuth
from flask import Flask

from ..core.exceptions import AuthenticationError
from .model import ProviderProfile

GOOGLE = "google"
GOOGLE_METADATA_URL = "https://accounts.google.com/.well-known/openid-configuration"
EXTENSION_KEY = "class_attendance.oauth"


def init_oauth(app: Flask, *, client_id: str, client_secret: str) -> Optional[OAuth]:
    """Register the Google client; sign-in stays disabled without credentials."""
    if not client_id or not client_secret:
        return None

    oauth = OAuth(app)
    oauth.register(
        name=GOOGLE,
        client_id=client_id,
        client_secret=client_secret,
        server_metadata_url=GOOGLE_METADATA_URL,
        client_kwargs={"scope": "openid email profile"},
    )
    app.extensions[EXTENSION_KEY] = oauth
    return oauth


def google_client(app: Flask):
    oauth = app.extensions.get(EXTENSION_KEY)
    if oauth is None:
        return None
    return oauth.create_client(GOOGLE)


def profile_from_userinfo(userinfo: Optional[Mapping[str, Any]]) -> ProviderProfile:
    """Map OpenID Connect claims to a :class:`ProviderProfile`."""
    if not userinfo or not userinfo.get("sub") or not userinfo.get("email"):
        raise AuthenticationError("Google did not return an account email")

    return ProviderProfile(
        provider=GOOGLE,
        provider_id=str(userinfo["sub"]),
        display_name=str(userinfo.get("name") or ""),
        email=str(userinfo["email"]),
        photo_url=userinfo.get("picture") or None,
    )
