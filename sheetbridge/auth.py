import logging
import webbrowser
from urllib.parse import urlencode

from fastapi import APIRouter
from fastapi.responses import RedirectResponse

from sheetbridge.config import get_settings
from sheetbridge.models.common import StatusResponse

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"


def authorization_url() -> str:
    """Implicit-grant consent URL; the redirect page shows the access token to paste into .env."""
    settings = get_settings()
    params = {
        "client_id": settings.gsheets_oauth_client_id,
        "redirect_uri": settings.gsheets_oauth_redirect_uri,
        "response_type": "token",
        "scope": SHEETS_SCOPE,
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def open_authorization_url() -> str:
    """Log the consent URL and try to open it in the default browser."""
    url = authorization_url()
    logger.info("Visit the following URL to authenticate: %s", url)
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        logger.warning("Could not open a browser: %s", e)
        opened = False
    if not opened:
        logger.info("No browser available; open the URL manually.")
    return url


def has_access_token() -> bool:
    return bool(get_settings().gsheets_access_token)


def main():
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    url = open_authorization_url()
    print(url)


# --- Auth router ---

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/sheets/setup")
def auth_setup():
    """Redirect to the Google consent screen."""
    return RedirectResponse(authorization_url())


@router.get("/sheets/status")
def auth_status() -> StatusResponse:
    """Check whether an access token is configured."""
    valid = has_access_token()
    return StatusResponse(
        integration="sheets",
        authenticated=valid,
        message="Access token configured" if valid else "Not authenticated. Visit /auth/sheets/setup",
    )
