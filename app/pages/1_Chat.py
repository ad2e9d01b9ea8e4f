from __future__ import annotations

import streamlit as st

from learning_assistant.core.errors import ConfigurationError, UpstreamRequestError
from learning_assistant.orchestrators.tool_call_adapter import ToolCallAdapter
from ui.common import get_credentials, get_settings, render_article_card, render_video_card

st.set_page_config(page_title="Chat | Learning Assistant", page_icon="📚", layout="wide")

PROVIDER_LABELS = {"OpenAI": "openai", "Claude": "claude", "Gemini": "gemini"}

# --- Session memory (conversation lives in this browser session only) ---
if "messages" not in st.session_state:
    st.session_state["messages"] = []  # list[{"role", "content"}]
if "video_results" not in st.session_state:
    st.session_state["video_results"] = []
if "article_results" not in st.session_state:
    st.session_state["article_results"] = []


@st.cache_resource
def build_adapter() -> ToolCallAdapter:
    return ToolCallAdapter(settings=get_settings())


# ---- Sidebar controls ----
with st.sidebar:
    st.header("Provider")
    labels = list(PROVIDER_LABELS)
    default = next(
        (i for i, label in enumerate(labels) if PROVIDER_LABELS[label] == get_settings().default_provider),
        0,
    )
    provider_label = st.selectbox("AI Provider", labels, index=default)

    st.divider()
    if st.button("Clear conversation", use_container_width=True):
        st.session_state["messages"] = []
        st.session_state["video_results"] = []
        st.session_state["article_results"] = []
        st.rerun()

# ---- Main UI ----
chat_col, resource_col = st.columns([3, 2], gap="large")

with chat_col:
    st.title("💬 Chat")
    for m in st.session_state["messages"]:
        with st.chat_message(m["role"]):
            st.markdown(m["content"])

prompt = st.chat_input("What would you like to learn?")

if prompt:
    credentials = get_credentials()
    if credentials is None:
        st.stop()

    history = list(st.session_state["messages"])
    with chat_col:
        with st.chat_message("user"):
            st.markdown(prompt)

    try:
        with st.spinner("Searching for resources and writing an answer..."):
            result = build_adapter().run(
                PROVIDER_LABELS[provider_label], prompt, history, credentials
            )
    except ConfigurationError as e:
        st.error(f"**Configuration Error**\n\n{e}")
        st.stop()
    except UpstreamRequestError as e:
        st.error(f"**{provider_label} API Error**")
        st.markdown(f"```\n{e}\n```")
        st.stop()

    st.session_state["messages"].extend(
        [
            {"role": "user", "content": prompt},
            {"role": "assistant", "content": result.assistant_text},
        ]
    )
    # Keep the previous cards when a lookup came back empty.
    if result.video_results:
        st.session_state["video_results"] = result.video_results
    if result.article_results:
        st.session_state["article_results"] = result.article_results
    st.rerun()

with resource_col:
    st.subheader("Resources")
    videos_tab, articles_tab = st.tabs(
        [
            f"Videos ({len(st.session_state['video_results'])})",
            f"Articles ({len(st.session_state['article_results'])})",
        ]
    )
    with videos_tab:
        if not st.session_state["video_results"]:
            st.caption("Videos found for your question will appear here.")
        for video in st.session_state["video_results"]:
            render_video_card(video)
    with articles_tab:
        if not st.session_state["article_results"]:
            st.caption("Articles found for your question will appear here.")
        for article in st.session_state["article_results"]:
            render_article_card(article)
