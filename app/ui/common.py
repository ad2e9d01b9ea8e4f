from __future__ import annotations

from typing import Any

import streamlit as st
from dotenv import load_dotenv

from learning_assistant.core.credentials import (
    ApiCredentials,
    CredentialCodec,
    MappingCredentialStore,
    load_credentials,
)
from learning_assistant.core.errors import DecryptionError
from learning_assistant.core.settings import AppSettings

load_dotenv()

_STORE_KEY = "credential_store"


@st.cache_resource
def get_settings() -> AppSettings:
    return AppSettings.from_env()


@st.cache_resource
def get_codec() -> CredentialCodec:
    return CredentialCodec(get_settings().encryption_key)


def get_store() -> MappingCredentialStore:
    """Encrypted blobs live in this browser session only."""
    if _STORE_KEY not in st.session_state:
        st.session_state[_STORE_KEY] = {}
    return MappingCredentialStore(st.session_state[_STORE_KEY])


def get_credentials() -> ApiCredentials | None:
    try:
        return load_credentials(get_store(), get_codec())
    except DecryptionError:
        st.error("Stored API keys could not be decrypted. Please re-enter them in **Settings**.")
        return None


def render_video_card(video: dict[str, Any]) -> None:
    with st.container(border=True):
        if video.get("thumbnailUrl"):
            st.image(video["thumbnailUrl"], use_container_width=True)
        st.markdown(f"**[{video.get('title', '')}]({video.get('url', '')})**")
        meta = [video.get("channelTitle"), video.get("durationText"), video.get("viewCountText")]
        views = " • ".join(m for m in meta if m)
        if views:
            st.caption(views)


def render_article_card(article: dict[str, Any]) -> None:
    with st.container(border=True):
        st.markdown(f"**[{article.get('title', '')}]({article.get('url', '')})**")
        caption = article.get("source", "")
        if article.get("publishedDate"):
            caption = f"{caption} • {article['publishedDate'][:10]}"
        st.caption(caption)
        if article.get("snippet"):
            st.write(article["snippet"])
