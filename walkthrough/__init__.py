"""TLS 1.3 handshake walkthrough — stage player with Gemini explanations."""
