# whisper_vault/client/responses.py
"""Canned auto-responses stored after each user message."""

RESPONSES = (
    "Thank you for your encrypted message. Your data is secure.",
    "Message received and stored on-chain with FHE protection.",
    "Your private communication has been recorded securely.",
    "Acknowledged. This conversation is end-to-end encrypted.",
    "Message stored. Only you can decrypt this conversation.",
)


def generate_auto_response(user_message: str) -> str:
    """Pick a response by message length."""
    return RESPONSES[len(user_message) % len(RESPONSES)]
