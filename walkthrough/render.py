"""Derived display state — pure functions of the stage index."""

from walkthrough.catalog import (
    LAST_INDEX,
    STAGE_COUNT,
    STAGE_SEQUENCE,
    index_of,
    metadata_for,
    stage_at,
)
from walkthrough.models import (
    Direction,
    PacketLogEntry,
    PlaybackState,
    PlayerView,
    RenderState,
    Stage,
)

KEY_DERIVATION_INDEX = index_of(Stage.KEY_DERIVATION)

IDLE_HINT = "Listening on port 443..."

_ARROWS = {
    Direction.TO_PEER: "→",
    Direction.TO_CLIENT: "←",
}


def derive_render_state(index: int) -> RenderState:
    """Map a stage index to its display flags."""
    stage = stage_at(index)
    keys_established = index >= KEY_DERIVATION_INDEX
    return RenderState(
        stage=stage,
        keys_established=keys_established,
        tunnel_active=stage == Stage.SECURE_TUNNEL,
        client_key_visible=keys_established,
        server_key_visible=keys_established,
    )


def packet_log(index: int) -> tuple[PacketLogEntry, ...]:
    """Packet capture lines for every stage reached so far (Idle sends nothing)."""
    entries: list[PacketLogEntry] = []
    for i, stage in enumerate(STAGE_SEQUENCE[: index + 1]):
        if stage == Stage.IDLE:
            continue
        info = metadata_for(stage)
        entries.append(PacketLogEntry(
            offset=f"0.{i}s",
            arrow=_ARROWS.get(info.direction, "•"),
            label=info.label,
            stage=stage,
        ))
    return tuple(entries)


def play_label(state: PlaybackState) -> str:
    if state.is_auto_advancing:
        return "PAUSE"
    return "REPLAY" if state.current_index == LAST_INDEX else "START"


def build_player_view(
    state: PlaybackState,
    enrichment: str,
    chat_busy: bool = False,
) -> PlayerView:
    """Assemble a read-only snapshot for the presentation layer."""
    index = state.current_index
    step_number = index + 1
    return PlayerView(
        step_number=step_number,
        total_steps=STAGE_COUNT,
        progress_percent=step_number / STAGE_COUNT * 100,
        metadata=metadata_for(stage_at(index)),
        render=derive_render_state(index),
        is_playing=state.is_auto_advancing,
        play_label=play_label(state),
        can_retreat=index > 0,
        can_advance=index < LAST_INDEX,
        packet_log=packet_log(index),
        idle_hint=IDLE_HINT if index == 0 else None,
        enrichment=enrichment,
        chat_busy=chat_busy,
    )
