class ChatError(Exception):
    """Base class for failures reported back to the calling connection only."""

    default_message = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ChatError):
    default_message = "Username and room are required!"


class DuplicateUsernameError(ChatError):
    default_message = "Username is in use!"


class ProfanityError(ChatError):
    default_message = "Profanity is not allowed"
