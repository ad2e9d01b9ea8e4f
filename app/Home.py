import streamlit as st

st.set_page_config(page_title="Learning Assistant", page_icon="📚", layout="wide")

st.title("📚 Learning Assistant")
st.subheader("A Streamlit App")
st.write(
    """
Ask how to do something and the assistant answers step by step, pulling in
videos and articles it found along the way. Pick **OpenAI**, **Claude** or
**Gemini** as the model provider.
"""
)

st.info("Add your API keys in **Settings**, then go to **Chat** in the left sidebar.")
