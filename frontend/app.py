"""ChatBot - Streamlit Chat Interface.

Thin client for the ZUS Coffee assistant backend. All turn logic lives in
ConversationOrchestrator. This file handles:
  - Orchestrator + session id management (st.session_state)
  - Transcript rendering with intent and tool chips
  - Agent activity panel, subsystem status badges
  - Slash-command suggestions and quick actions
"""

import streamlit as st
from dotenv import load_dotenv

from chatbot.agent.orchestrator import QUICK_ACTIONS, build_orchestrator
from chatbot.core.commands import command_suggestions, complete_command
from chatbot.core.config import ClientConfig
from chatbot.core.database import init_db

load_dotenv()

CONFIG = ClientConfig.from_env()

# Page setup
st.set_page_config(
    page_title="ChatBot AI Assistant - ZUS Coffee Helper",
    layout="wide",
)

# Custom styles
st.markdown("""
<style>
    .stChatMessage {
        padding: 0.75rem 1rem;
    }
    .status-badge {
        display: inline-block;
        padding: 2px 8px;
        border-radius: 12px;
        font-size: 0.75rem;
        font-weight: 600;
        margin-right: 4px;
    }
    .status-ok { background: #d4edda; color: #155724; }
    .status-err { background: #f8d7da; color: #721c24; }
    .status-unknown { background: #e2e3e5; color: #383d41; }
    .tool-chip {
        display: inline-block;
        padding: 1px 8px;
        border-radius: 10px;
        font-size: 0.75rem;
        background: #fff3cd;
        color: #856404;
        margin-right: 4px;
    }
</style>
""", unsafe_allow_html=True)

_STATUS_CLASS = {
    "operational": "status-ok",
    "healthy": "status-ok",
    "offline": "status-err",
}

_ACTIVITY_TAG = {
    "processing": "orange",
    "api": "violet",
    "tool": "blue",
    "success": "green",
    "error": "red",
}


def init_session():
    """Initialize session state on first load."""
    if "db_ready" not in st.session_state:
        init_db(CONFIG.database_url)
        st.session_state.db_ready = True
    if "orchestrator" not in st.session_state:
        orchestrator = build_orchestrator(CONFIG)
        orchestrator.start()
        st.session_state.orchestrator = orchestrator
    if "draft" not in st.session_state:
        st.session_state.draft = ""
    if "pending_draft" in st.session_state:
        # Widget values can only be set before the widget is created
        st.session_state.draft = st.session_state.pop("pending_draft")
    if "show_activity" not in st.session_state:
        st.session_state.show_activity = True


def new_session():
    """Dispose the current orchestrator and start a fresh session."""
    old = st.session_state.pop("orchestrator", None)
    if old is not None:
        old.close()
    st.session_state.pending_draft = ""


def render_message(msg):
    """Render a single transcript entry with optional tool chips and intent."""
    role = "user" if msg.sender == "user" else "assistant"
    with st.chat_message(role):
        if msg.error:
            st.error(msg.content)
        else:
            st.markdown(msg.content)
        if msg.tools:
            chips = "".join(f'<span class="tool-chip">{tool}</span>' for tool in msg.tools)
            st.markdown(chips, unsafe_allow_html=True)
        if msg.intent:
            st.caption(f"Intent: {msg.intent}")
        st.caption(msg.timestamp)


def render_status(api_status: dict):
    badges = "".join(
        f'<span class="status-badge {_STATUS_CLASS.get(status, "status-unknown")}">'
        f'* {name.title()}: {status}</span>'
        for name, status in api_status.items()
    )
    st.markdown(badges, unsafe_allow_html=True)


def render_activity(orchestrator):
    st.markdown("### Agent Activity")
    if not len(orchestrator.activity):
        st.caption("Agent activity will appear here during processing")
        return
    for entry in orchestrator.activity:
        color = _ACTIVITY_TAG.get(entry.kind, "gray")
        st.markdown(f":{color}[{entry.text}]  \n<small>{entry.timestamp}</small>",
                    unsafe_allow_html=True)


def render_suggestions(draft: str):
    """Slash-command suggestions for the current draft."""
    for spec in command_suggestions(draft):
        cols = st.columns([2, 3, 3])
        if cols[0].button(spec.cmd, key=f"cmd-{spec.cmd}"):
            st.session_state.pending_draft = complete_command(spec)
            st.rerun()
        cols[1].caption(spec.description)
        cols[2].caption(spec.example)


def submit(text: str):
    orchestrator = st.session_state.orchestrator
    with st.spinner("Processing..."):
        orchestrator.send(text)
    st.session_state.pending_draft = ""
    st.rerun()


def main():
    """Run the Streamlit chat application."""
    init_session()
    orchestrator = st.session_state.orchestrator

    # Header
    st.title("ChatBot AI Assistant")
    st.caption("ZUS Coffee Helper")

    if orchestrator.backend_offline:
        st.warning(f"[WARN] Backend is offline. Make sure FastAPI is running on {CONFIG.api_url}")

    # Sidebar
    with st.sidebar:
        st.markdown("### Session Info")
        st.code(orchestrator.session_id, language=None)
        render_status(orchestrator.state.api_status)

        if st.button("Check Connection", use_container_width=True):
            orchestrator.refresh_health()
            st.rerun()

        st.divider()
        st.session_state.show_activity = st.toggle(
            "Show agent activity", value=st.session_state.show_activity
        )
        if st.session_state.show_activity:
            render_activity(orchestrator)

        st.divider()
        if st.button("[RESET] Reset Conversation", use_container_width=True):
            orchestrator.reset()
            st.rerun()
        if st.button("[DEL] New Session", use_container_width=True):
            new_session()
            st.rerun()

    # Render existing messages
    for msg in orchestrator.messages:
        render_message(msg)

    # Quick actions
    if orchestrator.show_quick_actions:
        st.caption("Quick actions:")
        cols = st.columns(len(QUICK_ACTIONS))
        for col, (label, message) in zip(cols, QUICK_ACTIONS):
            if col.button(label, use_container_width=True):
                st.session_state.pending_draft = message
                st.rerun()

    # Command draft box: suggestions follow what is typed here
    draft = st.text_input(
        "Message",
        key="draft",
        placeholder="Ask about outlets, products, or calculations... (Type / for commands)",
        label_visibility="collapsed",
    )
    if draft.startswith("/"):
        render_suggestions(draft)
    if orchestrator.state.notice:
        st.info(orchestrator.state.notice)
    if st.button("Send", disabled=not draft.strip() or orchestrator.busy):
        submit(draft)

    # Chat input
    if user_input := st.chat_input("Ask a question..."):
        submit(user_input)


if __name__ == "__main__":
    main()
