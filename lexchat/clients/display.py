"""Display surface driven by the chat client."""


class ChatDisplay:
    """Receives every visible change of a chat; the base class renders nothing.

    Front-ends subclass this and override what they can show.
    """

    def set_busy(self, busy: bool) -> None:
        """Toggle the typing indicator and input lock."""

    def show_user_message(self, text: str) -> None:
        """Render a message typed by the user."""

    def begin_assistant_message(self) -> None:
        """Open an empty placeholder bubble for the upcoming answer."""

    def update_assistant_message(self, text: str) -> None:
        """Replace the placeholder's content with the full text received so far."""

    def finish_assistant_message(self, text: str) -> None:
        """Close the answer bubble, leaving ``text`` visible."""

    def discard_assistant_message(self) -> None:
        """Remove the placeholder bubble opened by the current attempt."""

    def show_error(self, message: str, retry_question: str | None = None) -> None:
        """Render a failure, offering a retry of ``retry_question`` when given."""

    def show_max_retries_notice(self, question: str) -> None:
        """Render the blocking notice shown when a question has failed too often."""
