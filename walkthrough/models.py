"""Pydantic models for the handshake walkthrough."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Stage(str, Enum):
    IDLE = "IDLE"
    CLIENT_HELLO = "CLIENT_HELLO"
    SERVER_HELLO = "SERVER_HELLO"
    KEY_DERIVATION = "KEY_DERIVATION"
    SERVER_FINISHED = "SERVER_FINISHED"
    CLIENT_FINISHED = "CLIENT_FINISHED"
    SECURE_TUNNEL = "SECURE_TUNNEL"


class Direction(str, Enum):
    TO_PEER = "to_peer"
    TO_CLIENT = "to_client"
    BIDIRECTIONAL = "bidirectional"
    NONE = "none"


class ChatRole(str, Enum):
    ASKER = "asker"
    RESPONDER = "responder"


# --- Static catalog ---


class StageMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    facts: tuple[str, ...]
    analogy: str
    rationale: str
    label: str
    direction: Direction


# --- Derived / owned state ---


class PlaybackState(BaseModel):
    model_config = ConfigDict(frozen=True)

    current_index: int = 0
    is_auto_advancing: bool = False


class RenderState(BaseModel):
    """Display flags for one stage. Pure function of the stage index."""
    model_config = ConfigDict(frozen=True)

    stage: Stage
    keys_established: bool
    tunnel_active: bool
    client_key_visible: bool
    server_key_visible: bool


class EnrichmentResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    for_stage: Stage
    text: str


class ChatTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: ChatRole
    text: str
    failed: bool = False


# --- Presentation snapshots ---


class PacketLogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    offset: str
    arrow: str
    label: str
    stage: Stage


class PlayerView(BaseModel):
    """Everything a presentation layer needs to draw one frame."""
    model_config = ConfigDict(frozen=True)

    step_number: int
    total_steps: int
    progress_percent: float
    metadata: StageMetadata
    render: RenderState
    is_playing: bool
    play_label: str
    can_retreat: bool
    can_advance: bool
    packet_log: tuple[PacketLogEntry, ...]
    idle_hint: str | None = None
    enrichment: str
    chat_busy: bool = False
