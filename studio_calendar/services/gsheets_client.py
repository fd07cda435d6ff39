import json
import logging
from typing import Any, Mapping

import gspread
import streamlit as st
from google.oauth2.service_account import Credentials
from streamlit.errors import StreamlitAPIException

logger = logging.getLogger(__name__)

# The dashboard only ever reads the studio's sheet
SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/drive.readonly",
]
SECRET_CREDENTIALS = "GOOGLE_SHEETS_CREDENTIALS"
SECRET_SHEET_ID = "GOOGLE_SHEET_ID"


def sheets_configured() -> bool:
    try:
        return SECRET_CREDENTIALS in st.secrets and SECRET_SHEET_ID in st.secrets
    except (FileNotFoundError, StreamlitAPIException):
        # no secrets.toml
        return False


def service_account_info(raw: Any) -> Mapping[str, Any]:
    """secrets.toml may hold the key file as a table or as a pasted JSON string."""
    if isinstance(raw, str):
        return json.loads(raw)
    return dict(raw)


@st.cache_resource
def get_gsheets_client() -> gspread.Client:
    info = service_account_info(st.secrets[SECRET_CREDENTIALS])
    logger.info("Authorizing Google Sheets as %s", info.get("client_email", "<unknown>"))
    return gspread.authorize(Credentials.from_service_account_info(info, scopes=SCOPES))


@st.cache_resource
def get_spreadsheet() -> gspread.Spreadsheet:
    key = str(st.secrets[SECRET_SHEET_ID]).strip()
    client = get_gsheets_client()
    if key.startswith("http"):
        return client.open_by_url(key)
    return client.open_by_key(key)
