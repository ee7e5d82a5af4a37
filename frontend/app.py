"""Chat Relay - Streamlit Chat Interface.

Thin client for the Gemini chat relay. All relay logic lives in the FastAPI
backend and in ChatClient. This file handles:
  - Conversation state (st.session_state)
  - Sending messages through ChatClient with a loading state
  - Rendering relay errors inline
"""

import streamlit as st
from dotenv import load_dotenv

from backend.core.config import load_config
from backend.core.errors import ConfigurationError, RelayError
from frontend.chat_client import ChatClient

load_dotenv()

st.set_page_config(
    page_title="Gemini Chat",
    layout="centered",
)


@st.cache_resource
def get_client() -> ChatClient:
    """One ChatClient per Streamlit server process."""
    return ChatClient(load_config())


def init_session():
    """Initialize session state on first load."""
    if "messages" not in st.session_state:
        st.session_state.messages = []


def send_message(user_input: str):
    """Send the message with the prior turns as history and render the reply."""
    history = list(st.session_state.messages)

    st.session_state.messages.append({"role": "user", "content": user_input})
    with st.chat_message("user"):
        st.markdown(user_input)

    with st.chat_message("assistant"):
        with st.spinner("Thinking..."):
            try:
                reply = get_client().send_message(user_input, history)
            except ConfigurationError as e:
                st.error(f"[CONFIG] {e}. Set CHAT_RELAY_URL and CHAT_RELAY_KEY.")
                return
            except RelayError as e:
                st.error(f"[ERROR] {e}")
                return

        st.markdown(reply)
        st.session_state.messages.append({"role": "assistant", "content": reply})


def main():
    """Run the Streamlit chat application."""
    init_session()

    st.title("Gemini Chat")
    st.caption("Messages are relayed to Google Gemini with the last 10 turns as context")

    with st.sidebar:
        if st.button("New Conversation", use_container_width=True):
            st.session_state.messages = []
            st.rerun()

    for msg in st.session_state.messages:
        with st.chat_message(msg["role"]):
            st.markdown(msg["content"])

    if user_input := st.chat_input("Type a message..."):
        send_message(user_input)


if __name__ == "__main__":
    main()
