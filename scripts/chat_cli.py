#!/usr/bin/env python3
"""Interactive chat CLI for the legal assistant service."""

import asyncio
import sys

from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from lexchat.clients.chat import ChatClient, ChatClientConfig, SendOutcome
from lexchat.clients.display import ChatDisplay
from lexchat.clients.history import JsonFileHistoryStore


class RichChatDisplay(ChatDisplay):
    """Terminal rendering of a chat, streaming answers into a live panel."""

    def __init__(self, console: Console):
        self.console = console
        self.retry_question: str | None = None
        self._live: Live | None = None

    def _answer_panel(self, text: str) -> Panel:
        return Panel(
            Markdown(text) if text else Text("…", style="dim"),
            title="[bold green]⚖️ Legal Assistant[/bold green]",
            border_style="green",
            padding=(1, 2),
        )

    def _stop_live(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None

    def set_busy(self, busy: bool) -> None:
        if busy:
            self.console.print("[dim]💭 Thinking...[/dim]")

    def begin_assistant_message(self) -> None:
        self._live = Live(self._answer_panel(""), console=self.console, refresh_per_second=12, transient=True)
        self._live.start()

    def update_assistant_message(self, text: str) -> None:
        if self._live is not None:
            self._live.update(self._answer_panel(text))

    def finish_assistant_message(self, text: str) -> None:
        self._stop_live()
        self.console.print(self._answer_panel(text))

    def discard_assistant_message(self) -> None:
        # The live panel is transient, stopping it removes the empty bubble
        self._stop_live()

    def show_error(self, message: str, retry_question: str | None = None) -> None:
        self._stop_live()
        self.retry_question = retry_question
        hint = "\n\n[dim]Type /retry to try this prompt again.[/dim]" if retry_question else ""
        self.console.print(Panel(f"{message}{hint}", title="[red]❌ Error[/red]", border_style="red"))

    def show_max_retries_notice(self, question: str) -> None:
        self.console.print(
            Panel(
                "This question has failed too many times. Please try again later or rephrase it.",
                title="[yellow]⚠️ Maximum retries reached[/yellow]",
                border_style="yellow",
            )
        )
        Prompt.ask("[dim]Press Enter to dismiss[/dim]", default="", show_default=False)


class ChatCLI:
    """Interactive chat interface for the legal assistant service."""

    def __init__(self, base_url: str = "http://localhost:8000", history_dir: str = ".lexchat_history"):
        """Initialize chat CLI."""
        self.console = Console()
        self.display = RichChatDisplay(self.console)
        self.client = ChatClient(
            config=ChatClientConfig(base_url=base_url),
            display=self.display,
            history_store=JsonFileHistoryStore(history_dir),
        )

    async def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]⚖️ Lexchat Legal Assistant - Interactive Chat[/bold blue]\n"
                "Type your questions to chat with the assistant.\n"
                "Commands: /help, /retry, /new, /quit",
                border_style="blue",
            )
        )

        if not await self._test_connection():
            self.console.print("[red]❌ Cannot connect to the service. Make sure it is running.[/red]")
            await self.client.aclose()
            return

        self.console.print("[green]✅ Connected to legal assistant service[/green]\n")

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")
                command = user_input.strip().lower()

                if command in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif command == "/help":
                    self._show_help()
                    continue
                elif command == "/new":
                    self.client.new_chat()
                    self.display.retry_question = None
                    self.console.print("[yellow]🔄 Started a new chat[/yellow]")
                    continue
                elif command == "/retry":
                    if not self.display.retry_question:
                        self.console.print("[dim]Nothing to retry.[/dim]")
                        continue
                    outcome = await self.client.send_message(self.display.retry_question, is_retry=True)
                elif command == "":
                    continue
                else:
                    outcome = await self.client.send_message(user_input)

                if outcome == SendOutcome.SUCCESS:
                    self.display.retry_question = None

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]👋 Goodbye![/yellow]")
            await self.client.aclose()

    async def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = await self.client.http.get("/health")
            return response.status_code == 200
        except Exception:
            return False

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /help  - Show this help message
• /retry - Resend the last question that failed
• /new   - Start a new chat (clears history)
• /quit  - Exit the chat

[bold]Example questions:[/bold]
1. "How much notice must an employer give before termination?"
2. "What are the requirements for a valid lease agreement?"

[bold]Tips:[/bold]
• Answers cite the articles they are based on
• A question that fails three times is blocked until you rephrase it
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]❓ Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

    chat = ChatCLI(base_url)
    asyncio.run(chat.start())


if __name__ == "__main__":
    main()
