from __future__ import annotations

import streamlit as st

from learning_assistant.core.credentials import STORAGE_NAMES, update_credentials
from ui.common import get_codec, get_store

st.set_page_config(page_title="Settings | Learning Assistant", page_icon="🔑", layout="wide")

st.title("🔑 API Key Settings")
st.caption(
    "Keys are encrypted with AES-256-GCM before they are kept in this browser session. "
    "Leave a field empty to keep the stored key. Tick **Remove** under a saved key to delete it."
)

FIELDS = [
    ("openai_api_key", "OpenAI API Key", "https://platform.openai.com/api-keys"),
    ("anthropic_api_key", "Anthropic API Key", "https://console.anthropic.com/settings/keys"),
    ("gemini_api_key", "Gemini API Key", "https://aistudio.google.com/app/apikey"),
    ("youtube_api_key", "YouTube Data API Key", "https://console.cloud.google.com/apis/credentials"),
    ("google_search_api_key", "Google Search API Key", "https://developers.google.com/custom-search/v1/overview"),
    ("google_search_engine_id", "Search Engine ID", "https://programmablesearchengine.google.com/"),
]

store = get_store()

with st.form("api_keys"):
    entered: dict[str, str] = {}
    remove: list[str] = []
    for field_name, label, help_url in FIELDS:
        saved = store.get(STORAGE_NAMES[field_name]) is not None
        entered[field_name] = st.text_input(
            f"{label} {'✅' if saved else ''}",
            type="password",
            placeholder="Saved (enter a new value to replace)" if saved else "",
            help=f"Get one at {help_url}",
        )
        if saved and st.checkbox("Remove", key=f"remove_{field_name}"):
            remove.append(field_name)
    submitted = st.form_submit_button("Save", type="primary", use_container_width=True)

if submitted:
    update_credentials(store, get_codec(), entered, remove)
    st.success("API keys saved.")
