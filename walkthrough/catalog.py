"""Stage catalog: the fixed handshake sequence and its static descriptions."""

from walkthrough.models import Direction, Stage, StageMetadata

STAGE_SEQUENCE: tuple[Stage, ...] = (
    Stage.IDLE,
    Stage.CLIENT_HELLO,
    Stage.SERVER_HELLO,
    Stage.KEY_DERIVATION,
    Stage.SERVER_FINISHED,
    Stage.CLIENT_FINISHED,
    Stage.SECURE_TUNNEL,
)

STAGE_COUNT = len(STAGE_SEQUENCE)
LAST_INDEX = STAGE_COUNT - 1

STAGE_DETAILS: dict[Stage, StageMetadata] = {
    Stage.IDLE: StageMetadata(
        title="1. Initial State (TCP Connected)",
        description=(
            "Before TLS can begin, a TCP connection (Layer 4) must be established "
            'via the "Three-way Handshake". The line is open but insecure.'
        ),
        facts=(
            "Transport: TCP connection on port 443.",
            "State: Unencrypted. No keys exist yet.",
        ),
        analogy=(
            "You have dialed a phone number. The line is open, but anyone can "
            "tap the wire and listen."
        ),
        rationale="TLS relies on TCP for reliability but adds the privacy layer.",
        label="",
        direction=Direction.NONE,
    ),
    Stage.CLIENT_HELLO: StageMetadata(
        title="2. Client Hello",
        description=(
            'The browser initiates the handshake, "guessing" the key exchange '
            "method (ECDHE) and sending its public key share immediately."
        ),
        facts=(
            "Protocol: TLS 1.3 (0x0304).",
            "Random: 32 bytes for replay protection.",
            "Key Share: Client's ephemeral public key.",
        ),
        analogy=(
            'Client shouts: "I want to talk securely! Here is my half of the '
            'secret key puzzle immediately to save time."'
        ),
        rationale=(
            'This "optimistic" key share saves one full round-trip compared to TLS 1.2.'
        ),
        label="ClientHello + KeyShare",
        direction=Direction.TO_PEER,
    ),
    Stage.SERVER_HELLO: StageMetadata(
        title="3. Server Hello & Certificate",
        description=(
            "The server accepts the key exchange method, sends its own public key "
            "share, and provides its Digital Certificate."
        ),
        facts=(
            "ServerHello: Confirms Cipher Suite.",
            "Certificate: X.509 Chain (Identity).",
            "Verify: Digital signature proving ownership.",
        ),
        analogy=(
            'Server replies: "Accepted. Here is my puzzle half and my ID card '
            'stamped by a trusted authority."'
        ),
        rationale="Ensures you are talking to the real website, not an imposter.",
        label="SvrHello + Cert + Key",
        direction=Direction.TO_CLIENT,
    ),
    Stage.KEY_DERIVATION: StageMetadata(
        title="4. Key Derivation",
        description=(
            'Both parties use Math (ECDHE) to calculate the same "Shared Secret" '
            "without ever transmitting it over the wire."
        ),
        facts=(
            "Algo: ECDHE (Elliptic Curve Diffie-Hellman).",
            "Property: Forward Secrecy.",
            "Result: Handshake & App Keys derived.",
        ),
        analogy=(
            "Both mix their private color with the public color to get the same "
            "secret color that no one else can see."
        ),
        rationale=(
            "Even if the server is hacked later, past conversations remain secure "
            "(Forward Secrecy)."
        ),
        label="Computing Keys...",
        direction=Direction.NONE,
    ),
    Stage.SERVER_FINISHED: StageMetadata(
        title="5. Server Finished",
        description=(
            "The server sends an encrypted HMAC of the entire conversation "
            "transcript to verify integrity."
        ),
        facts=(
            "Encryption: Handshake Key.",
            "Integrity: HMAC of Transcript.",
            "Defense: Prevents Downgrade Attacks.",
        ),
        analogy=(
            'Server: "Here is a summary of our chat. If it matches your notes, '
            'nobody tampered with the setup."'
        ),
        rationale="Locks in the security parameters and confirms no tampering occurred.",
        label="Finished (Encrypted)",
        direction=Direction.TO_CLIENT,
    ),
    Stage.CLIENT_FINISHED: StageMetadata(
        title="6. Client Finished",
        description=(
            "The client verifies the certificate and handshake hash, then sends "
            "its own finished message. The Secure Tunnel is open."
        ),
        facts=(
            "Validation: Check CA signature.",
            "State: Switch to Application Keys.",
            "Ready: HTTP data can now flow.",
        ),
        analogy='Client: "ID verified. Summary matches. I am ready to send private data."',
        rationale=(
            "The lock icon appears. The connection is fully authenticated and encrypted."
        ),
        label="Finished (Encrypted)",
        direction=Direction.TO_PEER,
    ),
    Stage.SECURE_TUNNEL: StageMetadata(
        title="7. Secure Data Tunnel",
        description=(
            "Symmetric encryption (AES-GCM) is now used to stream data at high speed."
        ),
        facts=(
            "Cipher: AES-256-GCM or ChaCha20.",
            "Performance: Hardware accelerated.",
            "Security: Authenticated Encryption (AEAD).",
        ),
        analogy=(
            "An armored truck driving back and forth. Thieves can stop it, but "
            "cannot open it."
        ),
        rationale="Protects your passwords, credit cards, and personal data.",
        label="HTTP Data (AES-256)",
        direction=Direction.BIDIRECTIONAL,
    ),
}


def stage_at(index: int) -> Stage:
    """Return the stage at a sequence position."""
    if not 0 <= index < STAGE_COUNT:
        raise ValueError(f"Stage index out of range: {index}")
    return STAGE_SEQUENCE[index]


def index_of(stage: Stage) -> int:
    return STAGE_SEQUENCE.index(stage)


def metadata_for(stage: Stage) -> StageMetadata:
    return STAGE_DETAILS[stage]


def parse_stage(name: str) -> Stage:
    """Resolve a user-supplied stage name, e.g. 'client_hello', 'ClientHello' or '2'."""
    raw = name.strip()
    if raw.isdigit():
        # 1-based, matching the numbered titles
        return stage_at(int(raw) - 1)

    normalized = raw.replace("-", "_").replace(" ", "_")
    for stage in STAGE_SEQUENCE:
        camel = "".join(part.capitalize() for part in stage.value.split("_"))
        if normalized.upper() == stage.value or raw == camel:
            return stage
    raise ValueError(f"Unknown stage: {name}")
